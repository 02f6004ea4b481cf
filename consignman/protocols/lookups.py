"""
Lookup Protocols — read-only master data consumed by Consignman.

Consignman defines these protocols; the host project (catalog, user
directory) implements them.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ProductCatalog(Protocol):
    """
    Product master-data lookup.

    Called once per line when a counting session is finalized; the result
    is snapshotted onto the document line.
    """

    def get_product_description(self, product_id: str) -> str:
        """
        Return the product description.

        Args:
            product_id: Product code as stored on agreement rules

        Returns:
            Description, or an empty string if unknown
        """
        ...


@runtime_checkable
class UserDirectory(Protocol):
    """
    Identity resolution.

    Used to name the blocking user in lock-contention errors and in the
    active-session overview.
    """

    def resolve_user_name(self, user) -> str:
        """
        Return a display name for user.

        Args:
            user: AUTH_USER_MODEL instance

        Returns:
            Human-readable name
        """
        ...
