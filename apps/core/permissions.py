"""
Permission classes for role-based access control.
"""

from rest_framework import permissions


class IsPOSOperator(permissions.BasePermission):
    """
    Any active operator (administrator or cashier).
    """

    message = "You must be signed in as a shop operator."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_active)


class IsShopAdmin(permissions.BasePermission):
    """
    Only shop administrators. Cashiers are explicitly restricted.
    """

    message = "Access denied. Only administrators can perform this action."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin())


class IsShopAdminOrReadOnly(permissions.BasePermission):
    """
    Operators may read; only administrators may write.
    """

    message = "Access denied. Only administrators can modify the catalog."

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return user.can_manage_inventory()

