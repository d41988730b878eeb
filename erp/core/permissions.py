from rest_framework.permissions import BasePermission

from .utils import is_admin_user


class IsAdminRole(BasePermission):
    """Allow staff accounts and users with the admin role"""
    message = 'Only administrators can perform this action'

    def has_permission(self, request, view):
        return is_admin_user(request.user)
