"""
Consignman configuration.

Usage in settings.py:
    CONSIGNMAN = {
        "PRODUCT_CATALOG": "catalog.adapters.ConsignmentCatalog",
        "USER_DIRECTORY": "consignman.adapters.django_auth.DjangoUserDirectory",
        "EVENT_SINK": "notifications.adapters.BoletaNotifier",
        "AUTHORIZER": "consignman.adapters.django_auth.DjangoPermissionAuthorizer",
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class ConsignmanSettings:
    """Consignman configuration settings."""

    # Product description lookup (dotted path)
    PRODUCT_CATALOG: str = "consignman.adapters.noop.NoopProductCatalog"

    # User name resolution for lock messages (dotted path)
    USER_DIRECTORY: str = "consignman.adapters.django_auth.DjangoUserDirectory"

    # Receives every transition and force release (dotted path)
    EVENT_SINK: str = "consignman.adapters.log_sink.LoggingEventSink"

    # Permission checks for transitions and force release (dotted path)
    AUTHORIZER: str = "consignman.adapters.noop.AllowAllAuthorizer"

    # Actor name used when an operation runs without a user (commands, scripts)
    DEFAULT_ACTOR_NAME: str = "sistema"


def get_consignman_settings() -> ConsignmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "CONSIGNMAN", {})
    return ConsignmanSettings(**{
        k: v for k, v in user_settings.items()
        if k in ConsignmanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_consignman_settings(), name)


consignman_settings = _LazySettings()
