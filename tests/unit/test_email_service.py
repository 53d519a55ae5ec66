"""
Unit tests for the receipt email function transport
"""

from unittest.mock import MagicMock, patch

import requests
from django.test import SimpleTestCase, override_settings

from notifications.services import EmailDeliveryError, receipt_subject, send_via_function

PAYLOAD = {'to': 'orders@greengrocers.test', 'receiptNo': 'REC0001', 'orderDisplayId': 'SAL0001'}


@override_settings(
    RECEIPT_EMAIL_FUNCTION_URL='https://functions.farm.test/send-receipt-email',
    INTERNAL_SEND_TOKEN='internal-token',
    SUPABASE_KEY='',
    RECEIPT_EMAIL_TIMEOUT=5,
)
class SendViaFunctionTest(SimpleTestCase):
    """Test the hosted email function call"""

    def test_subject(self):
        self.assertEqual(receipt_subject(PAYLOAD), 'Receipt REC0001 - Order SAL0001')

    @patch('notifications.services.requests.post')
    def test_posts_payload_with_token(self, mock_post):
        mock_post.return_value = MagicMock(ok=True, status_code=200)

        send_via_function(PAYLOAD)

        mock_post.assert_called_once()
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], 'https://functions.farm.test/send-receipt-email')
        self.assertEqual(kwargs['json'], PAYLOAD)
        self.assertEqual(kwargs['timeout'], 5)
        self.assertEqual(kwargs['headers']['x-internal-send-token'], 'internal-token')
        self.assertNotIn('Authorization', kwargs['headers'])

    @override_settings(RECEIPT_EMAIL_FUNCTION_URL='')
    def test_missing_url(self):
        with self.assertRaises(EmailDeliveryError):
            send_via_function(PAYLOAD)

    @patch('notifications.services.requests.post', side_effect=requests.exceptions.Timeout('timed out'))
    def test_request_errors_wrapped(self, mock_post):
        with self.assertRaises(EmailDeliveryError) as context:
            send_via_function(PAYLOAD)

        self.assertIn('timed out', str(context.exception))

    @patch('notifications.services.requests.post')
    def test_non_json_error_body(self, mock_post):
        response = MagicMock(ok=False, status_code=502, text='Bad gateway', reason='Bad Gateway')
        response.json.side_effect = ValueError('not json')
        mock_post.return_value = response

        with self.assertRaises(EmailDeliveryError) as context:
            send_via_function(PAYLOAD)

        self.assertEqual(str(context.exception), 'HTTP 502: Bad gateway')
