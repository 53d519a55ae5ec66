"""
Order status workflow

Any value outside Order.STATUSES is rejected. Between allowed values the
workflow is permissive: order writers (Super Admin, Admin, Sales Rep, Order
Manager) may set any status. Security Guards are limited to the security
gate, and an order held at "Security Check Incomplete" can only leave it
through the off-hours bypass.
"""
import json
import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.utils import timezone

from accounts.models import Role
from accounts.permissions import ORDER_WRITERS
from products.services import adjust_stock
from sequences.services import next_display_id
from .models import Order
from .timeutils import is_off_hours

logger = logging.getLogger(__name__)

SECURITY_GATE_STATUSES = [Order.PRODUCTS_LOADED, Order.PRODUCT_RELOADED]
SECURITY_RESULT_STATUSES = [Order.SECURITY_CHECKED, Order.SECURITY_CHECK_INCOMPLETE]

BYPASS_REASON = 'Bypassed due to off-hours operation'
BYPASS_NOTE = 'Security check was bypassed as it is outside regular working hours'


def validate_status(value):
    if value not in Order.STATUSES:
        raise ValidationError({'status': f"'{value}' is not a valid order status."})


def check_transition(order, new_status, user):
    """Raise PermissionDenied unless ``user`` may move ``order`` to ``new_status``."""
    role = getattr(user, 'role', None)

    if role in ORDER_WRITERS:
        return

    if role == Role.SECURITY_GUARD:
        if order.status == Order.SECURITY_CHECK_INCOMPLETE:
            if new_status != Order.SECURITY_CHECK_BYPASSED:
                raise PermissionDenied('Security guards can only bypass an incomplete security check.')
            if not is_off_hours():
                raise PermissionDenied('Security checks can only be bypassed during off-hours.')
            return

        if new_status in SECURITY_RESULT_STATUSES and order.status in SECURITY_GATE_STATUSES:
            return

        raise PermissionDenied(f"Security guards cannot move an order from '{order.status}' to '{new_status}'.")

    raise PermissionDenied('Your role cannot change order status.')


def _security_incomplete_notes(reasons, custom_note):
    reasons = [reason for reason in (reasons or []) if reason]
    custom_note = (custom_note or '').strip()
    if not reasons and not custom_note:
        raise ValidationError({
            'reasons': 'Select at least one reason or provide custom notes for incomplete orders.'
        })
    return json.dumps({'reasons': reasons, 'customNote': custom_note})


def _bypass_notes(user):
    return json.dumps({
        'bypassed': True,
        'reason': BYPASS_REASON,
        'timestamp': timezone.now().isoformat(),
        'bypassedBy': user.pk,
        'note': BYPASS_NOTE,
    })


def _restock_items(order):
    for item in order.items.select_related('product'):
        remaining = item.quantity - item.returned_quantity
        if remaining > 0:
            adjust_stock(item.product, remaining, reason=f"(cancelled {order.order_display_id})")


def _reserve_items(order):
    for item in order.items.select_related('product'):
        remaining = item.quantity - item.returned_quantity
        if remaining > 0:
            adjust_stock(item.product, -remaining, reason=f"(reopened {order.order_display_id})")


@transaction.atomic
def change_status(order, new_status, user, reasons=None, custom_note=None):
    """
    Move an order to ``new_status`` on behalf of ``user``.

    Applies the side effects tied to each status: completion stamps,
    security check bookkeeping and stock movement on cancel or reopen.
    """
    validate_status(new_status)
    check_transition(order, new_status, user)

    previous = order.status
    update_fields = ['status', 'updated_at']

    if new_status == Order.COMPLETED:
        order.completed_by = user
        order.completed_at = timezone.now()
        update_fields += ['completed_by', 'completed_at']

    elif new_status == Order.SECURITY_CHECKED:
        order.security_check_status = 'completed'
        order.security_check_notes = None
        update_fields += ['security_check_status', 'security_check_notes']

    elif new_status == Order.SECURITY_CHECK_INCOMPLETE:
        order.security_check_status = 'incomplete'
        order.security_check_notes = _security_incomplete_notes(reasons, custom_note)
        update_fields += ['security_check_status', 'security_check_notes']

    elif new_status == Order.SECURITY_CHECK_BYPASSED:
        order.security_check_status = 'bypassed'
        order.security_check_notes = _bypass_notes(user)
        update_fields += ['security_check_status', 'security_check_notes']

    if new_status == Order.CANCELLED and previous != Order.CANCELLED:
        _restock_items(order)
    elif previous == Order.CANCELLED and new_status != Order.CANCELLED:
        _reserve_items(order)

    order.status = new_status
    order.full_clean(validate_unique=False)
    order.save(update_fields=update_fields)

    logger.info(f"[WORKFLOW] {order.order_display_id}: '{previous}' -> '{new_status}' by {user.email} ({user.role})")
    return order


def record_security_check(order, user, passed, reasons=None, custom_note=None):
    new_status = Order.SECURITY_CHECKED if passed else Order.SECURITY_CHECK_INCOMPLETE
    return change_status(order, new_status, user, reasons=reasons, custom_note=custom_note)


def bypass_security_check(order, user):
    return change_status(order, Order.SECURITY_CHECK_BYPASSED, user)


def cancel_order(order, user):
    if order.status == Order.CANCELLED:
        raise ValidationError({'status': 'Order is already cancelled.'})
    return change_status(order, Order.CANCELLED, user)


@transaction.atomic
def confirm_payment(order, user, payment_method, collected_amount):
    """
    Record payment on delivery and issue a receipt number.

    Collecting at least the order total marks it fully paid, anything less
    partially paid.
    """
    if getattr(user, 'role', None) not in ORDER_WRITERS:
        raise PermissionDenied('Your role cannot confirm payments.')
    if payment_method not in dict(Order.PAYMENT_METHOD_CHOICES):
        raise ValidationError({'payment_method': "Payment method must be 'Net' or 'Cash'."})
    if collected_amount is None or collected_amount <= 0:
        raise ValidationError({'collected_amount': 'Collected amount must be greater than zero.'})
    if order.status == Order.CANCELLED:
        raise ValidationError({'status': 'Cannot take payment for a cancelled order.'})

    previous = order.status
    order.status = Order.DELIVERED
    order.payment_status = 'fully_paid' if collected_amount >= order.total_amount else 'partially_paid'
    order.collected_amount = collected_amount
    order.payment_method = payment_method
    order.completed_at = timezone.now()
    order.completed_by = user
    if not order.receipt_no:
        order.receipt_no = next_display_id('order_receipt')

    order.full_clean(validate_unique=False)
    order.save()

    logger.info(
        f"[WORKFLOW] {order.order_display_id}: '{previous}' -> '{Order.DELIVERED}' "
        f"payment {order.payment_status} {collected_amount} via {payment_method}, receipt {order.receipt_no}"
    )
    return order
