import json
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.utils import timezone
from rest_framework.test import APITestCase
from rest_framework import status

from accounts.models import Role, User
from customers.models import Customer
from products.models import Category, Product
from .models import Order, OrderItem, OrderReturn, Vehicle
from . import services


class OrderAPITestBase(APITestCase):
    """Users, a customer and stocked products shared by the order API tests"""

    def setUp(self):
        self.admin = User.objects.create_user(email='admin@farm.test', password='testpass123', role=Role.ADMIN)
        self.manager = User.objects.create_user(email='om@farm.test', password='testpass123', role=Role.ORDER_MANAGER)
        self.rep = User.objects.create_user(
            email='rep@farm.test', password='testpass123', role=Role.SALES_REP, first_name='Ravi', last_name='Perera'
        )
        self.guard = User.objects.create_user(email='guard@farm.test', password='testpass123', role=Role.SECURITY_GUARD)
        self.finance = User.objects.create_user(email='fin@farm.test', password='testpass123', role=Role.FINANCE_ADMIN)

        self.customer = Customer.objects.create(
            name='Green Grocers', address='Kandy', phone_number='0711111111',
            email='orders@greengrocers.test', customer_category='Dealer', type='Cash',
        )
        self.vat_customer = Customer.objects.create(
            name='Lagoon Hotel', address='Negombo', phone_number='0771234567',
            customer_category='Hotel', type='Credit', vat_status='VAT', tin_number='TIN-100',
        )

        category = Category.objects.create(category_name='White Coconut', category_code='WC')
        self.coconut = Product.objects.create(
            name='Coconut', category=category, sku='WC-1', quantity=Decimal('100.00'),
            price_dealer_cash=Decimal('100.00'), price_hotel_credit=Decimal('125.00'),
        )
        self.oil = Product.objects.create(
            name='Coconut Oil', category=category, sku='WC-2', quantity=Decimal('10.00'),
            price_dealer_cash=Decimal('500.00'), price_hotel_credit=Decimal('550.00'),
        )

    def create_order(self, customer=None, quantity='10', **kwargs):
        return services.create_order(
            self.admin,
            customer or self.customer,
            [{'product': self.coconut, 'quantity': Decimal(quantity)}],
            **kwargs
        )

    def set_status(self, order, value):
        Order.objects.filter(pk=order.pk).update(status=value)
        order.refresh_from_db()
        return order


class OrderCreationAPITest(OrderAPITestBase):
    """Test creating orders"""

    def test_sales_rep_creates_order(self):
        self.client.force_authenticate(user=self.rep)
        response = self.client.post('/api/orders/orders/', {
            'customer': self.customer.id,
            'items': [{'product': self.coconut.id, 'quantity': '10'}],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['order_display_id'], 'SAL0001')
        self.assertEqual(response.data['status'], Order.PENDING)
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('1000.00'))
        self.assertEqual(Decimal(response.data['items'][0]['price']), Decimal('100.00'))

        self.coconut.refresh_from_db()
        self.assertEqual(self.coconut.quantity, Decimal('90.00'))

    def test_vat_applied_for_vat_customer(self):
        """Test VAT uses the system VAT rate on the subtotal"""
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/orders/orders/', {
            'customer': self.vat_customer.id,
            'items': [{'product': self.coconut.id, 'quantity': '8'}],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        # 8 x 125.00 hotel credit price = 1000.00, VAT 18%
        self.assertTrue(response.data['is_vat_applicable'])
        self.assertEqual(Decimal(response.data['vat_amount']), Decimal('180.00'))
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('1180.00'))

    def test_order_with_assignee_starts_assigned(self):
        Vehicle.objects.create(vehicle_number='CAB-1234', vehicle_type='Lorry', sales_rep=self.rep)
        self.client.force_authenticate(user=self.manager)

        response = self.client.post('/api/orders/orders/', {
            'customer': self.customer.id,
            'assigned_to': self.rep.id,
            'items': [{'product': self.coconut.id, 'quantity': '1'}],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], Order.ASSIGNED)
        self.assertEqual(response.data['vehicle_number'], 'CAB-1234')

    def test_insufficient_stock_rolls_back_order(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/orders/orders/', {
            'customer': self.customer.id,
            'items': [
                {'product': self.coconut.id, 'quantity': '5'},
                {'product': self.oil.id, 'quantity': '11'},
            ],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Validation failed')
        self.assertFalse(Order.objects.exists())
        self.coconut.refresh_from_db()
        self.assertEqual(self.coconut.quantity, Decimal('100.00'))

    def test_security_guard_cannot_create_order(self):
        self.client.force_authenticate(user=self.guard)
        response = self.client.post('/api/orders/orders/', {
            'customer': self.customer.id,
            'items': [{'product': self.coconut.id, 'quantity': '1'}],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_order_needs_items(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/orders/orders/', {'customer': self.customer.id, 'items': []}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_orders_cannot_be_deleted(self):
        order = self.create_order()
        self.client.force_authenticate(user=self.admin)

        response = self.client.delete(f'/api/orders/orders/{order.id}/')

        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
        self.assertTrue(Order.objects.filter(pk=order.pk).exists())

    def test_filter_orders_by_status_list(self):
        first = self.create_order()
        second = self.create_order()
        self.set_status(second, Order.PRODUCTS_LOADED)
        self.client.force_authenticate(user=self.guard)

        response = self.client.get('/api/orders/orders/', {'status': 'Products Loaded,Product Reloaded'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ids = [row['id'] for row in response.data['results']]
        self.assertEqual(ids, [second.id])
        self.assertNotIn(first.id, ids)


class OrderStatusAPITest(OrderAPITestBase):
    """Test status updates through the workflow endpoints"""

    def test_every_allowed_status_is_accepted(self):
        order = self.create_order(quantity='1')
        self.client.force_authenticate(user=self.manager)

        for value in Order.STATUSES:
            if value == Order.SECURITY_CHECK_INCOMPLETE:
                payload = {'status': value, 'reasons': ['Missing crates']}
            else:
                payload = {'status': value}
            response = self.client.patch(f'/api/orders/orders/{order.id}/update-status/', payload, format='json')
            self.assertEqual(response.status_code, status.HTTP_200_OK, value)
            self.assertEqual(response.data['status'], value)

    def test_invalid_status_rejected(self):
        order = self.create_order()
        self.client.force_authenticate(user=self.admin)

        response = self.client.patch(
            f'/api/orders/orders/{order.id}/update-status/', {'status': 'Zzz-Invalid'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        order.refresh_from_db()
        self.assertEqual(order.status, Order.PENDING)

    def test_incomplete_check_needs_reason_or_note(self):
        order = self.set_status(self.create_order(), Order.PRODUCTS_LOADED)
        self.client.force_authenticate(user=self.guard)

        response = self.client.post(f'/api/orders/orders/{order.id}/security-check/', {'result': 'incomplete'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_guard_records_incomplete_check(self):
        order = self.set_status(self.create_order(), Order.PRODUCTS_LOADED)
        self.client.force_authenticate(user=self.guard)

        response = self.client.post(f'/api/orders/orders/{order.id}/security-check/', {
            'result': 'incomplete', 'reasons': ['Quantity mismatch'], 'custom_note': 'Two bags short'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], Order.SECURITY_CHECK_INCOMPLETE)
        self.assertEqual(response.data['security_check_status'], 'incomplete')
        self.assertEqual(response.data['security_check_details'], {
            'reasons': ['Quantity mismatch'], 'customNote': 'Two bags short'
        })

    def test_guard_passes_security_check(self):
        order = self.set_status(self.create_order(), Order.PRODUCT_RELOADED)
        self.client.force_authenticate(user=self.guard)

        response = self.client.post(f'/api/orders/orders/{order.id}/security-check/', {'result': 'completed'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], Order.SECURITY_CHECKED)
        self.assertIsNone(response.data['security_check_notes'])

    def test_guard_cannot_move_order_outside_the_gate(self):
        order = self.create_order()
        self.client.force_authenticate(user=self.guard)

        response = self.client.patch(
            f'/api/orders/orders/{order.id}/update-status/', {'status': Order.DELIVERED}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    @patch('orders.workflow.is_off_hours', return_value=True)
    def test_guard_bypasses_incomplete_check_off_hours(self, mock_off_hours):
        order = self.set_status(self.create_order(), Order.SECURITY_CHECK_INCOMPLETE)
        self.client.force_authenticate(user=self.guard)

        response = self.client.post(f'/api/orders/orders/{order.id}/bypass-security/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], Order.SECURITY_CHECK_BYPASSED)
        notes = json.loads(response.data['security_check_notes'])
        self.assertTrue(notes['bypassed'])
        self.assertEqual(notes['bypassedBy'], self.guard.id)
        self.assertEqual(notes['reason'], 'Bypassed due to off-hours operation')

    @patch('orders.workflow.is_off_hours', return_value=False)
    def test_guard_cannot_bypass_during_working_hours(self, mock_off_hours):
        order = self.set_status(self.create_order(), Order.SECURITY_CHECK_INCOMPLETE)
        self.client.force_authenticate(user=self.guard)

        response = self.client.post(f'/api/orders/orders/{order.id}/bypass-security/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        order.refresh_from_db()
        self.assertEqual(order.status, Order.SECURITY_CHECK_INCOMPLETE)

    @patch('orders.workflow.is_off_hours', return_value=True)
    def test_guard_leaves_incomplete_only_through_bypass(self, mock_off_hours):
        order = self.set_status(self.create_order(), Order.SECURITY_CHECK_INCOMPLETE)
        self.client.force_authenticate(user=self.guard)

        response = self.client.patch(
            f'/api/orders/orders/{order.id}/update-status/', {'status': Order.SECURITY_CHECKED}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_finance_admin_cannot_change_status(self):
        order = self.create_order()
        self.client.force_authenticate(user=self.finance)

        response = self.client.patch(
            f'/api/orders/orders/{order.id}/update-status/', {'status': Order.IN_PROGRESS}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_cancel_restocks_and_reopen_takes_stock_again(self):
        order = self.create_order(quantity='10')
        self.client.force_authenticate(user=self.admin)

        self.client.patch(f'/api/orders/orders/{order.id}/update-status/', {'status': Order.CANCELLED}, format='json')
        self.coconut.refresh_from_db()
        self.assertEqual(self.coconut.quantity, Decimal('100.00'))

        self.client.patch(f'/api/orders/orders/{order.id}/update-status/', {'status': Order.PENDING}, format='json')
        self.coconut.refresh_from_db()
        self.assertEqual(self.coconut.quantity, Decimal('90.00'))

    def test_completed_order_records_who_completed_it(self):
        order = self.create_order()
        self.client.force_authenticate(user=self.rep)

        response = self.client.patch(
            f'/api/orders/orders/{order.id}/update-status/', {'status': Order.COMPLETED}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['completed_by'], self.rep.id)
        self.assertIsNotNone(response.data['completed_at'])


class OrderAssignmentAPITest(OrderAPITestBase):
    """Test assigning orders to sales reps and vehicles"""

    def test_vehicle_fills_in_sales_rep(self):
        Vehicle.objects.create(vehicle_number='CAB-1234', vehicle_type='Lorry', sales_rep=self.rep)
        order = self.create_order()
        self.client.force_authenticate(user=self.manager)

        response = self.client.post(f'/api/orders/orders/{order.id}/assign/', {'vehicle_number': 'CAB-1234'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['assigned_to'], self.rep.id)
        self.assertEqual(response.data['status'], Order.ASSIGNED)

    def test_only_sales_reps_take_orders(self):
        order = self.create_order()
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(f'/api/orders/orders/{order.id}/assign/', {'assigned_to': self.guard.id}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_assign_needs_someone(self):
        order = self.create_order()
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(f'/api/orders/orders/{order.id}/assign/', {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_edit_delivery_details(self):
        order = self.create_order()
        self.client.force_authenticate(user=self.rep)

        response = self.client.patch(f'/api/orders/orders/{order.id}/', {'request_id': 'PO-7781'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['request_id'], 'PO-7781')


class PaymentConfirmationAPITest(OrderAPITestBase):
    """Test confirming payment on delivery"""

    def setUp(self):
        super().setUp()
        self.order = self.create_order(quantity='10', assigned_to=self.rep)

    @patch('orders.views.send_order_receipt', return_value={'success': True, 'error': None, 'log_id': 1})
    def test_full_payment(self, mock_send):
        self.client.force_authenticate(user=self.rep)
        response = self.client.post(f'/api/orders/orders/{self.order.id}/confirm-payment/', {
            'payment_method': 'Cash', 'collected_amount': '1000.00'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order']['status'], Order.DELIVERED)
        self.assertEqual(response.data['order']['payment_status'], 'fully_paid')
        self.assertEqual(response.data['order']['receipt_no'], 'REC0001')
        self.assertTrue(response.data['email']['success'])
        mock_send.assert_called_once()

    @patch('orders.views.send_order_receipt', return_value={'success': False, 'error': 'HTTP 500: boom', 'log_id': 1})
    def test_partial_payment_and_email_failure_reported(self, mock_send):
        self.client.force_authenticate(user=self.rep)
        response = self.client.post(f'/api/orders/orders/{self.order.id}/confirm-payment/', {
            'payment_method': 'Net', 'collected_amount': '400.00'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order']['payment_status'], 'partially_paid')
        self.assertFalse(response.data['email']['success'])
        self.order.refresh_from_db()
        self.assertEqual(self.order.collected_amount, Decimal('400.00'))

    def test_invalid_payment_method(self):
        self.client.force_authenticate(user=self.rep)
        response = self.client.post(f'/api/orders/orders/{self.order.id}/confirm-payment/', {
            'payment_method': 'Barter', 'collected_amount': '100.00'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cancelled_order_cannot_be_paid(self):
        self.set_status(self.order, Order.CANCELLED)
        self.client.force_authenticate(user=self.rep)

        response = self.client.post(f'/api/orders/orders/{self.order.id}/confirm-payment/', {
            'payment_method': 'Cash', 'collected_amount': '100.00'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class OrderReturnAPITest(OrderAPITestBase):
    """Test returning delivered items"""

    def setUp(self):
        super().setUp()
        self.order = self.create_order(quantity='10', assigned_to=self.rep)
        self.item = self.order.items.get()

    def test_return_restocks_product(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(f'/api/orders/orders/{self.order.id}/returns/', {
            'order_item': self.item.id, 'returned_quantity': '3', 'return_reason': 'Damaged in transit'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['sales_rep'], self.rep.id)
        self.item.refresh_from_db()
        self.assertEqual(self.item.returned_quantity, Decimal('3.00'))
        self.coconut.refresh_from_db()
        self.assertEqual(self.coconut.quantity, Decimal('93.00'))

        listing = self.client.get(f'/api/orders/orders/{self.order.id}/returns/')
        self.assertEqual(len(listing.data), 1)

    def test_cannot_return_more_than_delivered(self):
        OrderItem.objects.filter(pk=self.item.pk).update(returned_quantity=Decimal('8'))
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(f'/api/orders/orders/{self.order.id}/returns/', {
            'order_item': self.item.id, 'returned_quantity': '3', 'return_reason': 'Extra'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(OrderReturn.objects.exists())

    def test_return_needs_reason(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(f'/api/orders/orders/{self.order.id}/returns/', {
            'order_item': self.item.id, 'returned_quantity': '1', 'return_reason': '   '
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_guard_cannot_process_returns(self):
        self.client.force_authenticate(user=self.guard)
        response = self.client.post(f'/api/orders/orders/{self.order.id}/returns/', {
            'order_item': self.item.id, 'returned_quantity': '1', 'return_reason': 'Damaged'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class VehicleAndDashboardAPITest(OrderAPITestBase):
    """Test vehicles and the dashboard summary"""

    def test_order_manager_adds_vehicle(self):
        self.client.force_authenticate(user=self.manager)
        response = self.client.post('/api/orders/vehicles/', {
            'vehicle_number': 'CAB-9999', 'vehicle_type': 'Van', 'sales_rep': self.rep.id
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['sales_rep_name'], 'Ravi Perera')

    def test_sales_rep_cannot_add_vehicle(self):
        self.client.force_authenticate(user=self.rep)
        response = self.client.post('/api/orders/vehicles/', {
            'vehicle_number': 'CAB-9999', 'vehicle_type': 'Van'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_dashboard_summary(self):
        self.create_order(quantity='95')
        paid = self.create_order(quantity='1')
        Order.objects.filter(pk=paid.pk).update(payment_status='fully_paid', collected_amount=Decimal('100.00'))
        self.client.force_authenticate(user=self.finance)

        response = self.client.get('/api/orders/dashboard/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_orders'], 2)
        self.assertEqual(response.data['orders_by_status'][Order.PENDING], 2)
        self.assertEqual(response.data['revenue'], Decimal('100.00'))
        self.assertEqual(response.data['paid_orders'], 1)
        self.assertEqual(response.data['unpaid_orders'], 1)
        self.assertEqual(response.data['low_stock_count'], 0)

    def test_dashboard_revenue_skips_cancelled_orders(self):
        kept = self.create_order(quantity='1')
        cancelled = self.create_order(quantity='2')
        Order.objects.filter(pk__in=[kept.pk, cancelled.pk]).update(
            payment_status='fully_paid', collected_amount=Decimal('100.00')
        )
        self.set_status(cancelled, Order.CANCELLED)
        self.client.force_authenticate(user=self.admin)

        response = self.client.get('/api/orders/dashboard/')

        self.assertEqual(response.data['revenue'], Decimal('100.00'))
        self.assertEqual(response.data['paid_orders'], 1)
        self.assertEqual(response.data['orders_by_status'][Order.CANCELLED], 1)


class SalesReportAPITest(OrderAPITestBase):
    """Test the completed sales report"""

    def setUp(self):
        super().setUp()
        self.set_status(self.create_order(quantity='3'), Order.COMPLETED)
        oil_order = services.create_order(
            self.admin, self.customer, [{'product': self.oil, 'quantity': Decimal('1')}]
        )
        self.set_status(oil_order, Order.COMPLETED)
        # Still open, left out of the report
        self.create_order(quantity='4')

        older = self.set_status(self.create_order(quantity='2'), Order.COMPLETED)
        Order.objects.filter(pk=older.pk).update(created_at=timezone.now() - timedelta(days=10))

    def test_week_report(self):
        self.client.force_authenticate(user=self.finance)
        response = self.client.get('/api/orders/reports/sales/', {'range': 'week'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['sales_by_date']), 1)
        today = response.data['sales_by_date'][0]
        self.assertEqual(today['date'], timezone.localdate())
        self.assertEqual(today['total_sales'], Decimal('800.00'))
        self.assertEqual(today['order_count'], 2)
        self.assertEqual(today['customer_count'], 1)

        top = response.data['top_products']
        self.assertEqual([row['product_name'] for row in top], ['Coconut Oil', 'Coconut'])
        self.assertEqual(top[0]['total_revenue'], Decimal('500.00'))
        self.assertEqual(top[1]['total_quantity'], Decimal('3.00'))

    def test_month_report_is_the_default(self):
        self.client.force_authenticate(user=self.manager)
        response = self.client.get('/api/orders/reports/sales/')

        self.assertEqual(response.data['range'], 'month')
        self.assertEqual(len(response.data['sales_by_date']), 2)
        coconut = next(row for row in response.data['top_products'] if row['product_name'] == 'Coconut')
        self.assertEqual(coconut['total_revenue'], Decimal('500.00'))

    def test_unknown_range_rejected(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get('/api/orders/reports/sales/', {'range': 'year'})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_sales_rep_cannot_view_sales_report(self):
        self.client.force_authenticate(user=self.rep)
        response = self.client.get('/api/orders/reports/sales/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
