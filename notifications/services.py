"""
Receipt email delivery

Receipts go out through the hosted email function first. If that call
fails, one fallback attempt is made over SMTP. Every attempt is recorded
in EmailLog and the outcome is returned to the caller as a result dict.
"""
import logging

import requests
from django.conf import settings
from django.core.mail import EmailMessage
from django.template.loader import render_to_string
from django.utils import timezone

from .models import EmailLog

logger = logging.getLogger(__name__)

TRANSPORT_FUNCTION = 'edge_function'
TRANSPORT_SMTP = 'smtp'


class EmailDeliveryError(Exception):
    pass


def _amount(value):
    return float(value or 0)


def build_order_receipt_payload(order):
    items = [
        {
            'productName': item.product.name,
            'quantity': _amount(item.quantity),
            'price': _amount(item.price),
            'total': _amount(item.quantity * item.price),
        }
        for item in order.items.select_related('product')
    ]
    return {
        'to': order.customer.email,
        'customerName': order.customer.name,
        'orderDisplayId': order.order_display_id or 'N/A',
        'receiptNo': order.receipt_no,
        'totalAmount': _amount(order.total_amount),
        'paymentMethod': order.payment_method,
        'orderItems': items,
        'orderDate': timezone.localtime(order.created_at).strftime('%Y-%m-%d'),
        'salesRepName': order.assigned_to.display_name if order.assigned_to else 'N/A',
        'vehicleNumber': order.vehicle_number or None,
        'orderId': order.pk,
        'subTotal': _amount(order.total_amount - order.vat_amount),
        'vatAmount': _amount(order.vat_amount),
        'isVatApplicable': order.is_vat_applicable,
    }


def build_on_demand_receipt_payload(on_demand_order, recipient_email):
    item = on_demand_order.assignment_item
    return {
        'to': recipient_email,
        'customerName': on_demand_order.customer_name,
        'orderDisplayId': on_demand_order.on_demand_order_display_id,
        'receiptNo': on_demand_order.receipt_no,
        'totalAmount': _amount(on_demand_order.total_amount),
        'paymentMethod': on_demand_order.payment_method,
        'orderItems': [{
            'productName': item.product.name,
            'quantity': _amount(on_demand_order.quantity_sold),
            'price': _amount(on_demand_order.selling_price),
            'total': _amount(on_demand_order.total_amount),
        }],
        'orderDate': timezone.localtime(on_demand_order.sale_date).strftime('%Y-%m-%d'),
        'salesRepName': on_demand_order.sales_rep.display_name,
        'vehicleNumber': item.assignment.vehicle_number or None,
        'orderId': on_demand_order.pk,
        'subTotal': _amount(on_demand_order.total_amount),
        'vatAmount': 0.0,
        'isVatApplicable': False,
    }


def receipt_subject(payload):
    return f"Receipt {payload['receiptNo']} - Order {payload['orderDisplayId']}"


def send_via_function(payload):
    """POST the receipt to the hosted email function. Raises EmailDeliveryError on failure."""
    url = settings.RECEIPT_EMAIL_FUNCTION_URL
    token = settings.INTERNAL_SEND_TOKEN
    if not url:
        raise EmailDeliveryError('RECEIPT_EMAIL_FUNCTION_URL is not configured')
    if not token:
        raise EmailDeliveryError('INTERNAL_SEND_TOKEN is not configured')

    headers = {
        'Content-Type': 'application/json',
        'Accept': 'application/json',
        'x-internal-send-token': token,
    }
    if settings.SUPABASE_KEY:
        headers['Authorization'] = f'Bearer {settings.SUPABASE_KEY}'

    try:
        response = requests.post(url, json=payload, headers=headers, timeout=settings.RECEIPT_EMAIL_TIMEOUT)
    except requests.exceptions.RequestException as e:
        raise EmailDeliveryError(f'Email function request failed: {e}') from e

    if not response.ok:
        try:
            body = response.json()
            message = body.get('error') or body.get('message') or response.text
        except ValueError:
            message = response.text
        raise EmailDeliveryError(f'HTTP {response.status_code}: {message or response.reason}')

    return response


def send_via_smtp(payload):
    """Fallback transport through Django's mail framework"""
    body = render_to_string('notifications/receipt_email.txt', {'receipt': payload})
    message = EmailMessage(
        subject=receipt_subject(payload),
        body=body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[payload['to']],
    )
    try:
        message.send(fail_silently=False)
    except (OSError, ValueError) as e:
        raise EmailDeliveryError(f'SMTP fallback failed: {e}') from e


def deliver_receipt(payload, order=None, on_demand_order=None, log=None):
    """
    Send a receipt email and record the attempt.

    Passing an existing ``log`` counts the call as a retry of that log.
    Returns ``{'success': bool, 'error': str | None, 'log_id': int}``.
    """
    recipient = (payload.get('to') or '').strip()
    if log is None:
        log = EmailLog.objects.create(
            order=order,
            on_demand_order=on_demand_order,
            recipient_email=recipient,
            recipient_name=payload.get('customerName', ''),
            subject=receipt_subject(payload),
            metadata={'receipt_no': payload.get('receiptNo')},
        )
    else:
        log.retry_count += 1
        log.status = 'pending'
        log.recipient_email = recipient
        log.save(update_fields=['retry_count', 'status', 'recipient_email', 'updated_at'])

    if '@' not in recipient:
        return _record_failure(log, f'Invalid email address: {recipient}')

    try:
        send_via_function(payload)
        return _record_success(log, TRANSPORT_FUNCTION)
    except EmailDeliveryError as primary_error:
        logger.warning(f"[EMAIL] Function send failed for {log.subject}: {primary_error}. Trying SMTP fallback")
        log.metadata = {**log.metadata, 'primary_error': str(primary_error)}

    try:
        send_via_smtp(payload)
        return _record_success(log, TRANSPORT_SMTP)
    except EmailDeliveryError as fallback_error:
        return _record_failure(log, f"{log.metadata.get('primary_error')}; {fallback_error}")


def _record_success(log, transport):
    log.status = 'sent'
    log.sent_at = timezone.now()
    log.error_message = ''
    log.metadata = {**log.metadata, 'transport': transport}
    log.save(update_fields=['status', 'sent_at', 'error_message', 'metadata', 'updated_at'])
    logger.info(f"[EMAIL] Sent '{log.subject}' to {log.recipient_email} via {transport}")
    return {'success': True, 'error': None, 'log_id': log.pk}


def _record_failure(log, error):
    log.status = 'failed'
    log.error_message = error
    log.save(update_fields=['status', 'error_message', 'metadata', 'updated_at'])
    logger.error(f"[EMAIL] Failed to send '{log.subject}' to {log.recipient_email}: {error}")
    return {'success': False, 'error': error, 'log_id': log.pk}


def send_order_receipt(order, log=None):
    """Email the receipt for a paid order. Skipped when the customer has no email."""
    if not order.customer.email:
        logger.warning(f"[EMAIL] No email address for {order.customer.name}; skipping receipt for {order.order_display_id}")
        return {'success': False, 'error': 'Customer has no email address', 'skipped': True}
    if not order.receipt_no:
        return {'success': False, 'error': 'Order has no receipt number yet', 'skipped': True}
    return deliver_receipt(build_order_receipt_payload(order), order=order, log=log)


def send_on_demand_receipt(on_demand_order, recipient_email=None, log=None):
    """Email the receipt for a field sale, to the linked customer unless an address is given"""
    email = recipient_email
    if not email and on_demand_order.existing_customer:
        email = on_demand_order.existing_customer.email
    if not email:
        return {'success': False, 'error': 'No email address for this sale', 'skipped': True}
    payload = build_on_demand_receipt_payload(on_demand_order, email)
    return deliver_receipt(payload, on_demand_order=on_demand_order, log=log)
