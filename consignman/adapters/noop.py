"""
Noop adapters — defaults for development and testing.

- NoopProductCatalog: description = product id
- AllowAllAuthorizer: every permission granted

Usage in settings.py:
    CONSIGNMAN = {
        "PRODUCT_CATALOG": "consignman.adapters.noop.NoopProductCatalog",
        "AUTHORIZER": "consignman.adapters.noop.AllowAllAuthorizer",
    }

WARNING: AllowAllAuthorizer performs no checks. In production configure
consignman.adapters.django_auth.DjangoPermissionAuthorizer or your own.
"""

from __future__ import annotations


class NoopProductCatalog:
    """Catalog without a backing store: the product id is its own description."""

    def get_product_description(self, product_id: str) -> str:
        return product_id


class AllowAllAuthorizer:
    """Authorizer that grants everything."""

    def has_permission(self, user, permission: str) -> bool:
        return True
