"""
Unit tests for role policy permissions
"""

from types import SimpleNamespace

from django.contrib.auth.models import AnonymousUser
from django.http import Http404
from django.test import SimpleTestCase
from rest_framework.exceptions import PermissionDenied

from accounts.models import Role, User
from accounts.permissions import (
    ADMINS, ORDER_WRITERS, POLICY_DENIED_MESSAGE, IsSuperAdmin, PolicyScopedMixin, RolePolicyPermission,
)


def make_request(user, method):
    return SimpleNamespace(user=user, method=method)


class RolePolicyPermissionTest(SimpleTestCase):
    """Test role_policy lookups"""

    def setUp(self):
        self.permission = RolePolicyPermission()
        self.view = SimpleNamespace(
            action=None,
            role_policy={'create': ORDER_WRITERS, 'destroy': ADMINS, 'approve': (Role.FINANCE_ADMIN,)},
        )
        self.rep = User(email='rep@farm.test', role=Role.SALES_REP)
        self.guard = User(email='guard@farm.test', role=Role.SECURITY_GUARD)
        self.finance = User(email='fin@farm.test', role=Role.FINANCE_ADMIN)

    def test_reads_open_to_authenticated_users(self):
        self.assertTrue(self.permission.has_permission(make_request(self.guard, 'GET'), self.view))
        self.assertFalse(self.permission.has_permission(make_request(AnonymousUser(), 'GET'), self.view))

    def test_write_kinds(self):
        self.assertTrue(self.permission.has_permission(make_request(self.rep, 'POST'), self.view))
        self.assertFalse(self.permission.has_permission(make_request(self.guard, 'POST'), self.view))
        self.assertFalse(self.permission.has_permission(make_request(self.rep, 'DELETE'), self.view))

    def test_missing_kind_is_denied(self):
        """Test updates are denied when the policy has no 'update' entry"""
        self.assertFalse(self.permission.has_permission(make_request(self.rep, 'PATCH'), self.view))

    def test_unserved_method_left_to_view(self):
        """Test methods outside http_method_names pass so the view can answer 405"""
        self.view.http_method_names = ['get', 'post', 'patch', 'head', 'options']
        self.assertTrue(self.permission.has_permission(make_request(self.rep, 'DELETE'), self.view))
        self.assertFalse(self.permission.has_permission(make_request(self.guard, 'POST'), self.view))
        self.assertFalse(self.permission.has_permission(make_request(AnonymousUser(), 'DELETE'), self.view))

    def test_action_policy_overrides_method_kind(self):
        self.view.action = 'approve'
        self.assertTrue(self.permission.has_permission(make_request(self.finance, 'POST'), self.view))
        self.assertFalse(self.permission.has_permission(make_request(self.rep, 'POST'), self.view))


class IsSuperAdminTest(SimpleTestCase):

    def test_only_super_admin_writes(self):
        permission = IsSuperAdmin()
        super_admin = User(email='root@farm.test', role=Role.SUPER_ADMIN)
        admin = User(email='admin@farm.test', role=Role.ADMIN)

        self.assertTrue(permission.has_permission(make_request(admin, 'GET'), None))
        self.assertFalse(permission.has_permission(make_request(admin, 'POST'), None))
        self.assertTrue(permission.has_permission(make_request(super_admin, 'DELETE'), None))


class PolicyScopedMixinTest(SimpleTestCase):
    """Test out-of-scope rows are reported as a policy failure"""

    def test_not_found_becomes_forbidden(self):
        class HiddenRowView:
            def get_object(self):
                raise Http404

        class ScopedView(PolicyScopedMixin, HiddenRowView):
            pass

        with self.assertRaises(PermissionDenied) as context:
            ScopedView().get_object()

        self.assertEqual(str(context.exception.detail), POLICY_DENIED_MESSAGE)
