from decimal import Decimal
from unittest.mock import MagicMock, patch

import requests
from django.core import mail
from django.test import TestCase, override_settings
from rest_framework.test import APITestCase
from rest_framework import status

from accounts.models import Role, User
from customers.models import Customer
from ondemand import services as ondemand_services
from orders import services as order_services
from orders.models import Order
from orders.workflow import confirm_payment
from products.models import Product
from .models import EmailLog
from .services import (
    EmailDeliveryError, TRANSPORT_FUNCTION, TRANSPORT_SMTP, build_order_receipt_payload,
    deliver_receipt, send_on_demand_receipt, send_order_receipt,
)

EMAIL_SETTINGS = {
    'RECEIPT_EMAIL_FUNCTION_URL': 'https://functions.farm.test/send-receipt-email',
    'INTERNAL_SEND_TOKEN': 'internal-token',
    'SUPABASE_KEY': 'anon-key',
    'EMAIL_BACKEND': 'django.core.mail.backends.locmem.EmailBackend',
}


def ok_response():
    response = MagicMock()
    response.ok = True
    response.status_code = 200
    return response


def error_response(code=500, body=None):
    response = MagicMock()
    response.ok = False
    response.status_code = code
    response.json.return_value = body or {'error': 'Function crashed'}
    return response


class ReceiptFixtureMixin:

    def make_paid_order(self, customer_email='orders@greengrocers.test'):
        self.admin = User.objects.create_user(email='admin@farm.test', password='testpass123', role=Role.ADMIN)
        self.rep = User.objects.create_user(
            email='rep@farm.test', password='testpass123', role=Role.SALES_REP, first_name='Ravi', last_name='Perera'
        )
        self.customer = Customer.objects.create(
            name='Green Grocers', address='Kandy', phone_number='0711111111', email=customer_email,
            customer_category='Dealer', type='Cash',
        )
        self.product = Product.objects.create(
            name='Coconut', sku='WC-1', quantity=Decimal('100.00'), price_dealer_cash=Decimal('100.00')
        )
        order = order_services.create_order(
            self.admin, self.customer, [{'product': self.product, 'quantity': Decimal('3')}],
            assigned_to=self.rep, vehicle_number='CAB-1234',
        )
        return confirm_payment(order, self.rep, 'Cash', Decimal('300.00'))


@override_settings(**EMAIL_SETTINGS)
class ReceiptDeliveryTest(ReceiptFixtureMixin, TestCase):
    """Test receipt delivery through the email function and SMTP fallback"""

    def setUp(self):
        self.order = self.make_paid_order()

    def test_order_payload(self):
        payload = build_order_receipt_payload(self.order)

        self.assertEqual(payload['to'], 'orders@greengrocers.test')
        self.assertEqual(payload['receiptNo'], 'REC0001')
        self.assertEqual(payload['orderDisplayId'], 'SAL0001')
        self.assertEqual(payload['salesRepName'], 'Ravi Perera')
        self.assertEqual(payload['vehicleNumber'], 'CAB-1234')
        self.assertEqual(payload['totalAmount'], 300.0)
        self.assertEqual(payload['orderItems'], [
            {'productName': 'Coconut', 'quantity': 3.0, 'price': 100.0, 'total': 300.0}
        ])

    @patch('notifications.services.requests.post')
    def test_sent_through_email_function(self, mock_post):
        mock_post.return_value = ok_response()

        result = send_order_receipt(self.order)

        self.assertTrue(result['success'])
        _, kwargs = mock_post.call_args
        self.assertEqual(kwargs['headers']['x-internal-send-token'], 'internal-token')
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer anon-key')
        self.assertEqual(kwargs['json']['receiptNo'], 'REC0001')

        log = EmailLog.objects.get(pk=result['log_id'])
        self.assertEqual(log.status, 'sent')
        self.assertEqual(log.metadata['transport'], TRANSPORT_FUNCTION)
        self.assertEqual(log.subject, 'Receipt REC0001 - Order SAL0001')
        self.assertEqual(len(mail.outbox), 0)

    @patch('notifications.services.requests.post')
    def test_falls_back_to_smtp(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError('connection refused')

        result = send_order_receipt(self.order)

        self.assertTrue(result['success'])
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['orders@greengrocers.test'])
        self.assertIn('REC0001', mail.outbox[0].body)

        log = EmailLog.objects.get(pk=result['log_id'])
        self.assertEqual(log.metadata['transport'], TRANSPORT_SMTP)
        self.assertIn('connection refused', log.metadata['primary_error'])

    @patch('notifications.services.send_via_smtp', side_effect=EmailDeliveryError('SMTP fallback failed: refused'))
    @patch('notifications.services.requests.post')
    def test_both_transports_fail(self, mock_post, mock_smtp):
        mock_post.return_value = error_response(500)

        result = send_order_receipt(self.order)

        self.assertFalse(result['success'])
        self.assertIn('HTTP 500: Function crashed', result['error'])
        self.assertIn('SMTP fallback failed', result['error'])
        self.assertEqual(EmailLog.objects.get(pk=result['log_id']).status, 'failed')

    def test_customer_without_email_is_skipped(self):
        Customer.objects.filter(pk=self.customer.pk).update(email='')
        self.order.refresh_from_db()

        result = send_order_receipt(self.order)

        self.assertTrue(result['skipped'])
        self.assertFalse(EmailLog.objects.exists())

    @patch('notifications.services.requests.post')
    def test_invalid_address_fails_without_sending(self, mock_post):
        payload = build_order_receipt_payload(self.order)
        payload['to'] = 'not-an-address'

        result = deliver_receipt(payload, order=self.order)

        self.assertFalse(result['success'])
        mock_post.assert_not_called()

    @patch('notifications.services.requests.post')
    def test_retry_reuses_log(self, mock_post):
        mock_post.return_value = ok_response()
        first = send_order_receipt(self.order)
        log = EmailLog.objects.get(pk=first['log_id'])

        second = send_order_receipt(self.order, log=log)

        self.assertEqual(second['log_id'], log.pk)
        log.refresh_from_db()
        self.assertEqual(log.retry_count, 1)
        self.assertEqual(EmailLog.objects.count(), 1)

    @override_settings(INTERNAL_SEND_TOKEN='')
    @patch('notifications.services.requests.post')
    def test_missing_token_goes_straight_to_smtp(self, mock_post):
        result = send_order_receipt(self.order)

        self.assertTrue(result['success'])
        mock_post.assert_not_called()
        self.assertEqual(len(mail.outbox), 1)


@override_settings(**EMAIL_SETTINGS)
class OnDemandReceiptTest(TestCase):
    """Test receipts for field sales"""

    def setUp(self):
        manager = User.objects.create_user(email='om@farm.test', password='testpass123', role=Role.ORDER_MANAGER)
        self.rep = User.objects.create_user(email='rep@farm.test', password='testpass123', role=Role.SALES_REP)
        product = Product.objects.create(name='Carrot', sku='VG-1', quantity=Decimal('50.00'))
        item = ondemand_services.create_assignment(
            manager, self.rep, [{'product': product, 'quantity': Decimal('10')}]
        ).items.get()
        self.customer = Customer.objects.create(
            name='Corner Shop', address='Galle', phone_number='0912222222', email='shop@corner.test'
        )
        self.sale = ondemand_services.record_sale(
            self.rep, item, Decimal('2'), Decimal('80.00'),
            customer_type='existing', existing_customer=self.customer, payment_method='Net',
        )

    @patch('notifications.services.requests.post')
    def test_defaults_to_customer_email(self, mock_post):
        mock_post.return_value = ok_response()

        result = send_on_demand_receipt(self.sale)

        self.assertTrue(result['success'])
        payload = mock_post.call_args.kwargs['json']
        self.assertEqual(payload['to'], 'shop@corner.test')
        self.assertEqual(payload['receiptNo'], 'ODR-000001')
        self.assertFalse(payload['isVatApplicable'])

    @patch('notifications.services.requests.post')
    def test_explicit_address_wins(self, mock_post):
        mock_post.return_value = ok_response()

        send_on_demand_receipt(self.sale, recipient_email='owner@corner.test')

        self.assertEqual(mock_post.call_args.kwargs['json']['to'], 'owner@corner.test')


@override_settings(**EMAIL_SETTINGS)
class ReceiptAPITest(ReceiptFixtureMixin, APITestCase):
    """Test the resend endpoints and email log visibility"""

    def setUp(self):
        self.order = self.make_paid_order()
        self.guard = User.objects.create_user(email='guard@farm.test', password='testpass123', role=Role.SECURITY_GUARD)
        self.finance = User.objects.create_user(email='fin@farm.test', password='testpass123', role=Role.FINANCE_ADMIN)
        self.other_rep = User.objects.create_user(email='rep2@farm.test', password='testpass123', role=Role.SALES_REP)

    @patch('notifications.services.requests.post')
    def test_finance_admin_resends_receipt(self, mock_post):
        mock_post.return_value = ok_response()
        self.client.force_authenticate(user=self.finance)

        response = self.client.post(f'/api/notifications/orders/{self.order.id}/send-receipt/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])

    def test_guard_cannot_resend_receipt(self):
        self.client.force_authenticate(user=self.guard)
        response = self.client.post(f'/api/notifications/orders/{self.order.id}/send-receipt/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    @patch('notifications.services.send_via_smtp', side_effect=EmailDeliveryError('SMTP fallback failed: refused'))
    @patch('notifications.services.requests.post')
    def test_failed_delivery_reported_as_bad_gateway(self, mock_post, mock_smtp):
        mock_post.return_value = error_response(503, {'message': 'Unavailable'})
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(f'/api/notifications/orders/{self.order.id}/send-receipt/')

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertFalse(response.data['success'])

    def test_unpaid_order_has_no_receipt_to_send(self):
        unpaid = order_services.create_order(self.admin, self.customer, [{'product': self.product, 'quantity': Decimal('1')}])
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(f'/api/notifications/orders/{unpaid.id}/send-receipt/')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(response.data['skipped'])

    @patch('notifications.services.requests.post')
    def test_email_logs_scoped_by_role(self, mock_post):
        mock_post.return_value = ok_response()
        send_order_receipt(self.order)

        self.client.force_authenticate(user=self.rep)
        self.assertEqual(self.client.get('/api/notifications/email-logs/').data['count'], 1)

        self.client.force_authenticate(user=self.other_rep)
        self.assertEqual(self.client.get('/api/notifications/email-logs/').data['count'], 0)

        self.client.force_authenticate(user=self.guard)
        self.assertEqual(self.client.get('/api/notifications/email-logs/').data['count'], 0)

        self.client.force_authenticate(user=self.finance)
        response = self.client.get('/api/notifications/email-logs/', {'status': 'sent'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['order_display_id'], Order.objects.get().order_display_id)
