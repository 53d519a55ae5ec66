"""
Unit tests for the order status workflow
Tests status validation, role limits and the off-hours bypass
"""

from decimal import Decimal
from unittest.mock import patch

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import IntegrityError, transaction
from django.test import TestCase

from accounts.models import Role, User
from customers.models import Customer
from orders import workflow
from orders.models import Order
from orders.services import create_order
from products.models import Product


class StatusValidationTest(TestCase):
    """Test that only the allowed statuses are ever stored"""

    def setUp(self):
        self.admin = User.objects.create_user(email='admin@farm.test', password='testpass123', role=Role.ADMIN)
        self.customer = Customer.objects.create(name='Green Grocers', address='Kandy', phone_number='0711111111')
        self.product = Product.objects.create(name='Coconut', sku='WC-1', quantity=Decimal('10.00'))
        self.order = create_order(self.admin, self.customer, [{'product': self.product, 'quantity': Decimal('1')}])

    def test_validate_status(self):
        for value in Order.STATUSES:
            workflow.validate_status(value)

        for value in ['Zzz-Invalid', 'pending', 'Shipped', '']:
            with self.assertRaises(ValidationError):
                workflow.validate_status(value)

    def test_model_validation_rejects_unknown_status(self):
        self.order.status = 'Zzz-Invalid'
        with self.assertRaises(ValidationError):
            self.order.full_clean()

    def test_database_rejects_unknown_status(self):
        with self.assertRaises(IntegrityError), transaction.atomic():
            Order.objects.filter(pk=self.order.pk).update(status='Zzz-Invalid')

    def test_change_status_rejects_unknown_status(self):
        with self.assertRaises(ValidationError):
            workflow.change_status(self.order, 'Zzz-Invalid', self.admin)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.PENDING)

    def test_cancel_twice_rejected(self):
        workflow.cancel_order(self.order, self.admin)

        with self.assertRaises(ValidationError):
            workflow.cancel_order(self.order, self.admin)

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, Decimal('10.00'))


class TransitionRulesTest(TestCase):
    """Test check_transition for each kind of role"""

    def setUp(self):
        self.guard = User(email='guard@farm.test', role=Role.SECURITY_GUARD)
        self.finance = User(email='fin@farm.test', role=Role.FINANCE_ADMIN)

    def order(self, current):
        return Order(status=current)

    def test_order_writers_set_any_status(self):
        for role in [Role.SUPER_ADMIN, Role.ADMIN, Role.SALES_REP, Role.ORDER_MANAGER]:
            user = User(email='w@farm.test', role=role)
            for current in Order.STATUSES:
                for target in Order.STATUSES:
                    workflow.check_transition(self.order(current), target, user)

    def test_guard_records_gate_results(self):
        for current in workflow.SECURITY_GATE_STATUSES:
            for target in workflow.SECURITY_RESULT_STATUSES:
                workflow.check_transition(self.order(current), target, self.guard)

    def test_guard_blocked_elsewhere(self):
        blocked = [
            (Order.PENDING, Order.SECURITY_CHECKED),
            (Order.PRODUCTS_LOADED, Order.DEPARTED_FARM),
            (Order.SECURITY_CHECKED, Order.DELIVERED),
            (Order.ASSIGNED, Order.CANCELLED),
        ]
        for current, target in blocked:
            with self.assertRaises(PermissionDenied):
                workflow.check_transition(self.order(current), target, self.guard)

    @patch('orders.workflow.is_off_hours', return_value=True)
    def test_guard_bypass_off_hours(self, mock_off_hours):
        workflow.check_transition(self.order(Order.SECURITY_CHECK_INCOMPLETE), Order.SECURITY_CHECK_BYPASSED, self.guard)

        with self.assertRaises(PermissionDenied):
            workflow.check_transition(self.order(Order.SECURITY_CHECK_INCOMPLETE), Order.SECURITY_CHECKED, self.guard)

    @patch('orders.workflow.is_off_hours', return_value=False)
    def test_guard_bypass_during_working_hours(self, mock_off_hours):
        with self.assertRaises(PermissionDenied):
            workflow.check_transition(
                self.order(Order.SECURITY_CHECK_INCOMPLETE), Order.SECURITY_CHECK_BYPASSED, self.guard
            )

    def test_other_roles_cannot_change_status(self):
        with self.assertRaises(PermissionDenied):
            workflow.check_transition(self.order(Order.PENDING), Order.IN_PROGRESS, self.finance)
