"""
DRF permission classes based on the marketplace role.

Object-level checks (is this user the buyer or vendor on the order?) live in
the services, because the same rules apply to non-HTTP callers.
"""

from rest_framework.permissions import BasePermission


class IsPlatformAdmin(BasePermission):
    """Allow access only to admins (role=admin or staff)."""

    message = "Admin access required."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_platform_admin)
