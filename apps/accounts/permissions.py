"""
Role-based permission classes shared by all apps.

Admins manage investors, units, transactions and payouts. Investor
accounts get read access to the records of their own investor profile.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS


class IsAdminRole(BasePermission):
    """Allow access only to users with the admin role."""

    message = 'Only administrators can perform this action.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin_role)


class IsAdminOrReadOnly(BasePermission):
    """
    Read access for any authenticated user, writes for admins only.

    Object visibility for investors is narrowed in each view's queryset.
    """

    message = 'Only administrators can modify this resource.'

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        if request.method in SAFE_METHODS:
            return True
        return user.is_admin_role


def get_investor_profile(user):
    """Return the Investor linked to ``user``, or None for admins and unlinked accounts."""
    if user is None or not user.is_authenticated:
        return None
    return getattr(user, 'investor_profile', None)
