"""
Consignman Adapters.

Implementations of protocols for external systems, and the loader that
resolves the configured ones.
"""

from consignman.adapters.loader import (
    get_authorizer,
    get_event_sink,
    get_product_catalog,
    get_user_directory,
    reset_adapters,
)

__all__ = [
    "get_authorizer",
    "get_event_sink",
    "get_product_catalog",
    "get_user_directory",
    "reset_adapters",
]
