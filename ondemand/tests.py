from decimal import Decimal
from unittest.mock import patch

from django.core.exceptions import PermissionDenied, ValidationError
from django.test import TestCase
from rest_framework.test import APITestCase
from rest_framework import status

from accounts.models import Role, User
from customers.models import Customer
from products.models import Category, Product
from . import services
from .models import OnDemandAssignment, OnDemandAssignmentItem, OnDemandOrder


class OnDemandTestMixin:
    """Supervisor, two sales reps and stocked products"""

    def make_fixtures(self):
        self.manager = User.objects.create_user(email='om@farm.test', password='testpass123', role=Role.ORDER_MANAGER)
        self.rep = User.objects.create_user(
            email='rep@farm.test', password='testpass123', role=Role.SALES_REP, first_name='Ravi', last_name='Perera'
        )
        self.other_rep = User.objects.create_user(email='rep2@farm.test', password='testpass123', role=Role.SALES_REP)
        self.guard = User.objects.create_user(email='guard@farm.test', password='testpass123', role=Role.SECURITY_GUARD)
        self.finance = User.objects.create_user(email='fin@farm.test', password='testpass123', role=Role.FINANCE_ADMIN)

        category = Category.objects.create(category_name='Vegetables', category_code='VG')
        self.carrot = Product.objects.create(name='Carrot', category=category, sku='VG-1', quantity=Decimal('50.00'))
        self.leeks = Product.objects.create(name='Leeks', category=category, sku='VG-2', quantity=Decimal('20.00'))

    def assign(self, rep=None, quantity='10'):
        return services.create_assignment(
            self.manager, rep or self.rep, [{'product': self.carrot, 'quantity': Decimal(quantity)}]
        )


class AssignmentServiceTest(OnDemandTestMixin, TestCase):
    """Test stock movement for on-demand assignments"""

    def setUp(self):
        self.make_fixtures()

    def test_assignment_takes_stock(self):
        assignment = services.create_assignment(self.manager, self.rep, [
            {'product': self.carrot, 'quantity': Decimal('10')},
            {'product': self.leeks, 'quantity': Decimal('5')},
            {'product': self.carrot, 'quantity': Decimal('2.5')},
        ])

        self.assertEqual(assignment.assignment_type, 'admin_assigned')
        self.assertEqual(assignment.items.count(), 2)
        self.assertEqual(assignment.items.get(product=self.carrot).assigned_quantity, Decimal('12.50'))
        self.carrot.refresh_from_db()
        self.assertEqual(self.carrot.quantity, Decimal('37.50'))

    def test_assignment_beyond_stock_rolls_back(self):
        with self.assertRaises(ValidationError):
            services.create_assignment(self.manager, self.rep, [
                {'product': self.carrot, 'quantity': Decimal('5')},
                {'product': self.leeks, 'quantity': Decimal('21')},
            ])

        self.assertFalse(OnDemandAssignment.objects.exists())
        self.carrot.refresh_from_db()
        self.assertEqual(self.carrot.quantity, Decimal('50.00'))

    def test_sales_rep_cannot_assign_stock(self):
        with self.assertRaises(PermissionDenied):
            services.create_assignment(self.rep, self.rep, [{'product': self.carrot, 'quantity': Decimal('1')}])

    def test_cancel_restocks_unsold_quantity(self):
        assignment = self.assign(quantity='10')
        item = assignment.items.get()
        services.record_sale(self.rep, item, Decimal('4'), Decimal('80.00'), customer_name='Walk-in buyer')

        services.cancel_assignment(assignment, self.manager)

        self.carrot.refresh_from_db()
        self.assertEqual(self.carrot.quantity, Decimal('46.00'))
        assignment.refresh_from_db()
        self.assertEqual(assignment.status, 'cancelled')

    def test_complete_marks_leftovers_returned(self):
        assignment = self.assign(quantity='10')
        item = assignment.items.get()
        services.record_sale(self.rep, item, Decimal('6'), Decimal('80.00'), customer_name='Walk-in buyer')

        services.complete_assignment(assignment, self.manager)

        item.refresh_from_db()
        self.assertEqual(item.returned_quantity, Decimal('4.00'))
        self.assertEqual(item.remaining_quantity, Decimal('0.00'))
        self.carrot.refresh_from_db()
        self.assertEqual(self.carrot.quantity, Decimal('44.00'))

    def test_closed_assignment_cannot_be_cancelled(self):
        assignment = self.assign()
        services.complete_assignment(assignment, self.manager)

        with self.assertRaises(ValidationError):
            services.cancel_assignment(assignment, self.manager)


class OnDemandSaleServiceTest(OnDemandTestMixin, TestCase):
    """Test recording field sales"""

    def setUp(self):
        self.make_fixtures()
        self.item = self.assign(quantity='10').items.get()

    def test_sale_issues_display_id_and_receipt(self):
        first = services.record_sale(self.rep, self.item, Decimal('3'), Decimal('75.50'), customer_name='Sunil')
        second = services.record_sale(self.rep, self.item, Decimal('1'), Decimal('75.50'), customer_name='Kumari')

        self.assertEqual(first.on_demand_order_display_id, 'OND0001')
        self.assertEqual(first.receipt_no, 'ODR-000001')
        self.assertEqual(second.receipt_no, 'ODR-000002')
        self.assertEqual(first.total_amount, Decimal('226.50'))
        self.item.refresh_from_db()
        self.assertEqual(self.item.sold_quantity, Decimal('4.00'))

    def test_cannot_sell_more_than_remaining(self):
        services.return_stock(self.item, self.rep, Decimal('8'))

        with self.assertRaises(ValidationError):
            services.record_sale(self.rep, self.item, Decimal('3'), Decimal('50.00'), customer_name='Sunil')

    def test_existing_customer_fills_name_and_phone(self):
        customer = Customer.objects.create(name='Corner Shop', address='Galle', phone_number='0912222222')

        sale = services.record_sale(
            self.rep, self.item, Decimal('1'), Decimal('90.00'),
            customer_type='existing', existing_customer=customer, payment_method='Cash',
        )

        self.assertEqual(sale.customer_name, 'Corner Shop')
        self.assertEqual(sale.customer_phone, '0912222222')

    def test_walk_in_needs_name(self):
        with self.assertRaises(ValidationError):
            services.record_sale(self.rep, self.item, Decimal('1'), Decimal('90.00'), customer_name='  ')

    def test_other_rep_cannot_sell_from_assignment(self):
        with self.assertRaises(PermissionDenied):
            services.record_sale(self.other_rep, self.item, Decimal('1'), Decimal('90.00'), customer_name='Sunil')

        self.assertFalse(OnDemandOrder.objects.exists())

    def test_return_stock_puts_quantity_back(self):
        services.return_stock(self.item, self.rep, Decimal('2.5'))

        self.item.refresh_from_db()
        self.assertEqual(self.item.returned_quantity, Decimal('2.50'))
        self.carrot.refresh_from_db()
        self.assertEqual(self.carrot.quantity, Decimal('42.50'))


class OnDemandAPITest(OnDemandTestMixin, APITestCase):
    """Test on-demand endpoints and their role scoping"""

    def setUp(self):
        self.make_fixtures()

    def test_supervisor_creates_assignment(self):
        self.client.force_authenticate(user=self.manager)
        response = self.client.post('/api/ondemand/assignments/', {
            'sales_rep': self.rep.id,
            'items': [{'product': self.carrot.id, 'quantity': '10'}],
            'notes': 'Kandy market run',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['sales_rep_name'], 'Ravi Perera')
        self.assertEqual(len(response.data['items']), 1)

    def test_guard_cannot_create_assignment(self):
        self.client.force_authenticate(user=self.guard)
        response = self.client.post('/api/ondemand/assignments/', {
            'sales_rep': self.rep.id, 'items': [{'product': self.carrot.id, 'quantity': '1'}],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_sales_rep_requests_stock(self):
        self.client.force_authenticate(user=self.rep)
        response = self.client.post('/api/ondemand/assignments/request/', {
            'items': [{'product': self.leeks.id, 'quantity': '4'}],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['assignment_type'], 'sales_rep_requested')
        self.assertEqual(response.data['sales_rep'], self.rep.id)

    def test_sales_rep_sees_only_own_assignments(self):
        own = self.assign(rep=self.rep)
        other = self.assign(rep=self.other_rep)
        self.client.force_authenticate(user=self.rep)

        listing = self.client.get('/api/ondemand/assignments/')
        detail = self.client.get(f'/api/ondemand/assignments/{other.id}/')

        self.assertEqual([row['id'] for row in listing.data['results']], [own.id])
        self.assertEqual(detail.status_code, status.HTTP_403_FORBIDDEN)

    def test_sales_rep_cannot_cancel_assignment(self):
        assignment = self.assign()
        self.client.force_authenticate(user=self.rep)

        response = self.client.post(f'/api/ondemand/assignments/{assignment.id}/cancel/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_return_through_assignment_item(self):
        item = self.assign(quantity='10').items.get()
        self.client.force_authenticate(user=self.rep)

        response = self.client.post(f'/api/ondemand/assignment-items/{item.id}/return/', {'quantity': '3'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['remaining_quantity']), Decimal('7.00'))

    def test_other_rep_cannot_return_stock(self):
        item = self.assign().items.get()
        self.client.force_authenticate(user=self.other_rep)

        response = self.client.post(f'/api/ondemand/assignment-items/{item.id}/return/', {'quantity': '1'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_record_sale_without_receipt_email(self):
        item = self.assign().items.get()
        self.client.force_authenticate(user=self.rep)

        response = self.client.post('/api/ondemand/orders/', {
            'assignment_item': item.id, 'quantity_sold': '2', 'selling_price': '95.00',
            'customer_name': 'Sunil', 'payment_method': 'Cash',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['order']['receipt_no'], 'ODR-000001')
        self.assertEqual(Decimal(response.data['order']['total_amount']), Decimal('190.00'))
        self.assertNotIn('email', response.data)

    @patch('ondemand.views.send_on_demand_receipt', return_value={'success': True, 'error': None, 'log_id': 1})
    def test_record_sale_sends_receipt(self, mock_send):
        item = self.assign().items.get()
        self.client.force_authenticate(user=self.rep)

        response = self.client.post('/api/ondemand/orders/', {
            'assignment_item': item.id, 'quantity_sold': '1', 'selling_price': '95.00',
            'customer_name': 'Sunil', 'send_receipt_to': 'sunil@mail.test',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['email']['success'])
        self.assertEqual(mock_send.call_args.kwargs['recipient_email'], 'sunil@mail.test')

    def test_guard_cannot_record_sale(self):
        item = self.assign().items.get()
        self.client.force_authenticate(user=self.guard)

        response = self.client.post('/api/ondemand/orders/', {
            'assignment_item': item.id, 'quantity_sold': '1', 'selling_price': '95.00', 'customer_name': 'Sunil',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(OnDemandOrder.objects.exists())


class OnDemandReportAPITest(OnDemandTestMixin, APITestCase):
    """Test the on-demand sales reports"""

    def setUp(self):
        self.make_fixtures()
        rep_item = self.assign(rep=self.rep, quantity='10').items.get()
        other_item = self.assign(rep=self.other_rep, quantity='5').items.get()
        services.record_sale(self.rep, rep_item, Decimal('4'), Decimal('100.00'), customer_name='Sunil')
        services.record_sale(self.other_rep, other_item, Decimal('1'), Decimal('120.00'), customer_name='Kumari')

    def test_finance_admin_sees_all_reps(self):
        self.client.force_authenticate(user=self.finance)
        response = self.client.get('/api/ondemand/reports/overview/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['sales_reps']), 2)
        top = response.data['sales_reps'][0]
        self.assertEqual(top['sales_rep_id'], self.rep.id)
        self.assertEqual(top['total_revenue'], Decimal('400.00'))
        self.assertEqual(top['orders_count'], 1)
        self.assertEqual(response.data['assignments']['active'], 2)

    def test_sales_rep_sees_own_figures(self):
        self.client.force_authenticate(user=self.other_rep)
        response = self.client.get('/api/ondemand/reports/overview/')

        self.assertEqual([row['sales_rep_id'] for row in response.data['sales_reps']], [self.other_rep.id])

    def test_product_report_average_price(self):
        self.client.force_authenticate(user=self.manager)
        response = self.client.get('/api/ondemand/reports/products/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        row = response.data['products'][0]
        self.assertEqual(row['product_name'], 'Carrot')
        self.assertEqual(row['total_sold'], Decimal('5.00'))
        self.assertEqual(row['total_revenue'], Decimal('520.00'))
        self.assertEqual(row['avg_selling_price'], Decimal('104.00'))

    def test_reversed_date_range_rejected(self):
        self.client.force_authenticate(user=self.manager)
        response = self.client.get('/api/ondemand/reports/overview/', {
            'start_date': '2025-06-30', 'end_date': '2025-06-01'
        })

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
