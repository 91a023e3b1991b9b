"""Role-based permissions for marketplace users"""
from rest_framework.permissions import BasePermission


class IsBrand(BasePermission):
    message = 'Only brands can perform this action.'

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.user_type == 'brand')


class IsCreator(BasePermission):
    message = 'Only creators can perform this action.'

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.user_type == 'creator')


class IsAgent(BasePermission):
    """Support agents and super admins"""
    message = 'Agent access required.'

    def has_permission(self, request, view):
        return bool(
            request.user and request.user.is_authenticated
            and request.user.user_type in ('admin', 'super_admin')
            and request.user.status == 'active'
        )


class IsSuperAdmin(BasePermission):
    message = 'Super admin access required.'

    def has_permission(self, request, view):
        return bool(
            request.user and request.user.is_authenticated
            and request.user.user_type == 'super_admin'
        )
