"""Role-based permission classes shared by the domain apps."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore


def _is_admin(user) -> bool:
    if not user or not user.is_authenticated:
        return False
    if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
        return True
    return hasattr(user, "is_admin") and user.is_admin()


class IsPlatformAdmin(permissions.BasePermission):
    """Only platform admins (role=admin, staff or superusers)."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        return _is_admin(request.user)


class IsAdminOrReadOnly(permissions.BasePermission):
    """Anyone can read, only admins can write."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        return _is_admin(request.user)


class IsProviderOrAdmin(permissions.BasePermission):
    """
    Allow write access to providers and admins.

    Customers must switch their role to provider before listing services.
    """

    def has_permission(self, request, view) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        if not user.is_authenticated:
            return False
        if _is_admin(user):
            return True
        return hasattr(user, "is_provider") and user.is_provider()


class IsOwnerOrAdmin(permissions.BasePermission):
    """
    Object-level permission: writes only by the owner or an admin.

    The owner is read from ``view.owner_field`` (defaults to ``provider``).
    """

    def has_object_permission(self, request, view, obj) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        if _is_admin(request.user):
            return True
        owner_field = getattr(view, "owner_field", "provider")
        return getattr(obj, f"{owner_field}_id", None) == request.user.id
