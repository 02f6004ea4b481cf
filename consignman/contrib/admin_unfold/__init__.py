"""Consignman Admin with Unfold theme."""

__all__ = [
    "BaseModelAdmin",
    "BaseTabularInline",
    "ReadOnlyTabularInline",
    "format_quantity",
]


def __getattr__(name):
    """Lazy import to avoid importing unfold during app loading."""
    if name in __all__:
        from consignman.contrib.admin_unfold import base
        return getattr(base, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
