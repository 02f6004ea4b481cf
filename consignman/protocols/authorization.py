"""
Authorization Protocol — permission evaluation stays in the host project.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Authorizer(Protocol):
    """
    Permission check for privileged operations.

    Permissions are Django-style strings ("consignman.approve_restockdocument").
    See models.enums.ACTION_PERMISSIONS and FORCE_RELEASE_PERMISSION.
    """

    def has_permission(self, user, permission: str) -> bool:
        """
        Args:
            user: AUTH_USER_MODEL instance or None
            permission: Permission string

        Returns:
            True if user may perform the operation
        """
        ...
