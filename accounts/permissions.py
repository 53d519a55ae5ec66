"""
Role based access policies

Every view declares which roles may create, update and delete through a
``role_policy`` mapping. Reads are open to any authenticated user unless the
view narrows its queryset by ownership. Rows outside the caller's scope are
reported with the same generic 403 as a forbidden write.
"""
from django.http import Http404
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import SAFE_METHODS, BasePermission

from .models import Role

ADMINS = (Role.SUPER_ADMIN, Role.ADMIN)
ORDER_WRITERS = (Role.SUPER_ADMIN, Role.ADMIN, Role.SALES_REP, Role.ORDER_MANAGER)
ORDER_SUPERVISORS = (Role.SUPER_ADMIN, Role.ADMIN, Role.ORDER_MANAGER)
CUSTOMER_WRITERS = (Role.SUPER_ADMIN, Role.ADMIN, Role.SALES_REP)
EMAIL_LOG_READERS = (Role.SUPER_ADMIN, Role.ADMIN, Role.FINANCE_ADMIN)
REPORT_READERS = ORDER_SUPERVISORS + (Role.FINANCE_ADMIN,)
# Guards reach the status endpoints; orders.workflow narrows what they may set
ORDER_STATUS_EDITORS = ORDER_WRITERS + (Role.SECURITY_GUARD,)

POLICY_DENIED_MESSAGE = 'You do not have permission to access this record.'

ACTION_KINDS = {
    'POST': 'create',
    'PUT': 'update',
    'PATCH': 'update',
    'DELETE': 'destroy',
}


def user_has_role(user, roles):
    return bool(user and user.is_authenticated and getattr(user, 'role', None) in roles)


class RolePolicyPermission(BasePermission):
    """
    Checks ``view.role_policy`` for write requests.

    ``role_policy`` maps 'create', 'update', 'destroy' or a custom action
    name to the roles allowed to perform it. Kinds missing from the mapping
    are denied. Methods the view does not serve are let through so the view
    answers 405.
    """
    message = POLICY_DENIED_MESSAGE

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        if request.method in SAFE_METHODS:
            return True

        served = getattr(view, 'http_method_names', None)
        if served is not None and request.method.lower() not in served:
            return True

        policy = getattr(view, 'role_policy', {})
        action = getattr(view, 'action', None)
        if action in policy:
            return user_has_role(request.user, policy[action])

        kind = ACTION_KINDS.get(request.method)
        return user_has_role(request.user, policy.get(kind, ()))


class IsSuperAdmin(BasePermission):
    message = 'Only a Super Admin can manage users.'

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return bool(request.user and request.user.is_authenticated)
        return user_has_role(request.user, (Role.SUPER_ADMIN,))


class PolicyScopedMixin:
    """Report rows hidden by the queryset scope as a generic policy failure."""

    def get_object(self):
        try:
            return super().get_object()
        except Http404:
            raise PermissionDenied(POLICY_DENIED_MESSAGE)
