"""
Consignman adapter loader — resolves collaborators from settings.

Usage:
    from consignman.adapters import get_event_sink

    get_event_sink().emit(event)

Settings:
    CONSIGNMAN = {
        "PRODUCT_CATALOG": "catalog.adapters.ConsignmentCatalog",
        "EVENT_SINK": "notifications.adapters.BoletaNotifier",
    }

Instances are cached per dotted path, so changing a setting (e.g. in
tests with override_settings) picks up the new adapter.
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from consignman.conf import consignman_settings
from consignman.protocols.authorization import Authorizer
from consignman.protocols.events import EventSink
from consignman.protocols.lookups import ProductCatalog, UserDirectory

logger = logging.getLogger(__name__)


_lock = threading.Lock()
_instances: dict[str, object] = {}


def _load(setting_name: str):
    """Return the cached adapter instance for a CONSIGNMAN setting."""
    path = getattr(consignman_settings, setting_name)
    if not path:
        raise ImproperlyConfigured(f"CONSIGNMAN['{setting_name}'] must be configured.")

    instance = _instances.get(path)
    if instance is None:
        with _lock:
            instance = _instances.get(path)
            if instance is None:  # double-checked
                try:
                    adapter_class = import_string(path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import {setting_name} '{path}': {e}"
                    ) from e
                instance = adapter_class()
                _instances[path] = instance
                logger.debug("Loaded %s: %s", setting_name, path)
    return instance


def get_product_catalog() -> ProductCatalog:
    """Return the configured product catalog."""
    return _load("PRODUCT_CATALOG")


def get_user_directory() -> UserDirectory:
    """Return the configured user directory."""
    return _load("USER_DIRECTORY")


def get_event_sink() -> EventSink:
    """Return the configured event sink."""
    return _load("EVENT_SINK")


def get_authorizer() -> Authorizer:
    """Return the configured authorizer."""
    return _load("AUTHORIZER")


def reset_adapters() -> None:
    """Reset cached adapters. Useful for testing."""
    with _lock:
        _instances.clear()
