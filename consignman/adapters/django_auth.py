"""
django.contrib.auth adapters — user names and model permissions.

Usage in settings.py:
    CONSIGNMAN = {
        "USER_DIRECTORY": "consignman.adapters.django_auth.DjangoUserDirectory",
        "AUTHORIZER": "consignman.adapters.django_auth.DjangoPermissionAuthorizer",
    }

Permissions are declared on the models (Meta.permissions) and granted
through groups/users as usual:
    consignman.submit_restockdocument
    consignman.approve_restockdocument
    consignman.dispatch_restockdocument
    consignman.invoice_restockdocument
    consignman.revert_restockdocument
    consignman.cancel_restockdocument
    consignman.force_release_countingsession
"""

from __future__ import annotations


class DjangoUserDirectory:
    """Display name from the user model: full name, falling back to username."""

    def resolve_user_name(self, user) -> str:
        if user is None:
            return ''
        get_full_name = getattr(user, 'get_full_name', None)
        full_name = get_full_name() if callable(get_full_name) else ''
        return (full_name or '').strip() or user.get_username()


class DjangoPermissionAuthorizer:
    """Delegates to user.has_perm (model and object-level backends apply)."""

    def has_permission(self, user, permission: str) -> bool:
        if user is None or not getattr(user, 'is_active', False):
            return False
        return user.has_perm(permission)
