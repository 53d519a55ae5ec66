"""
On-demand (field) sales

Stock is moved out of the product table when it is assigned to a sales rep
and moved back when it is returned or the assignment is cancelled. Sales
against an assignment item only move the item's counters.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.utils import timezone

from accounts.models import Role
from accounts.permissions import ADMINS, CUSTOMER_WRITERS, ORDER_SUPERVISORS
from orders.services import resolve_assignment
from products.services import adjust_stock
from .models import OnDemandAssignment, OnDemandAssignmentItem, OnDemandOrder

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def _role(user):
    return getattr(user, 'role', None)


def _merge_items(items):
    """Collapse repeated products into one line each, keeping the first-seen order"""
    merged = {}
    for entry in items:
        quantity = Decimal(str(entry['quantity']))
        if quantity <= 0:
            raise ValidationError({'items': 'Assigned quantities must be greater than zero.'})
        product = entry['product']
        if product.pk in merged:
            merged[product.pk] = (product, merged[product.pk][1] + quantity)
        else:
            merged[product.pk] = (product, quantity)
    return list(merged.values())


def _load_items(assignment, items):
    lines = _merge_items(items)
    if not lines:
        raise ValidationError({'items': 'Select at least one product.'})

    for product, quantity in lines:
        adjust_stock(product, -quantity, reason=f"(on-demand assignment {assignment.pk})")
        item = OnDemandAssignmentItem(assignment=assignment, product=product, assigned_quantity=quantity)
        item.full_clean()
        item.save()
    return assignment


@transaction.atomic
def create_assignment(user, sales_rep, items, notes='', vehicle_number='', assignment_date=None):
    """Load stock onto a sales rep for field sales"""
    if _role(user) not in ORDER_SUPERVISORS:
        raise PermissionDenied('Your role cannot assign on-demand stock.')

    sales_rep, vehicle_number = resolve_assignment(sales_rep, vehicle_number)
    if sales_rep is None:
        raise ValidationError({'sales_rep': 'A sales rep or a vehicle with a sales rep is required.'})

    assignment = OnDemandAssignment.objects.create(
        sales_rep=sales_rep,
        assigned_by=user,
        assignment_date=assignment_date or timezone.localdate(),
        notes=notes or '',
        vehicle_number=vehicle_number,
        assignment_type='admin_assigned',
    )
    _load_items(assignment, items)

    logger.info(f"[ONDEMAND] {user.email} assigned {len(items)} products to {sales_rep.email} (assignment {assignment.pk})")
    return assignment


@transaction.atomic
def request_stock(user, items, notes='', vehicle_number=''):
    """A sales rep takes stock for themselves"""
    if _role(user) != Role.SALES_REP:
        raise PermissionDenied('Only sales reps can request on-demand stock.')

    _, vehicle_number = resolve_assignment(user, vehicle_number)
    assignment = OnDemandAssignment.objects.create(
        sales_rep=user,
        assigned_by=user,
        notes=notes or '',
        vehicle_number=vehicle_number,
        assignment_type='sales_rep_requested',
    )
    _load_items(assignment, items)

    logger.info(f"[ONDEMAND] {user.email} requested {len(items)} products (assignment {assignment.pk})")
    return assignment


def _lock_active(assignment):
    assignment = OnDemandAssignment.objects.select_for_update().get(pk=assignment.pk)
    if not assignment.is_active:
        raise ValidationError({'status': f"Assignment is already {assignment.status}."})
    return assignment


@transaction.atomic
def cancel_assignment(assignment, user):
    """Cancel an assignment and put everything not sold or returned back into stock"""
    if _role(user) not in ORDER_SUPERVISORS:
        raise PermissionDenied('Your role cannot cancel on-demand assignments.')
    assignment = _lock_active(assignment)

    for item in assignment.items.select_for_update().select_related('product'):
        unsold = item.remaining_quantity
        if unsold > 0:
            adjust_stock(item.product, unsold, reason=f"(cancelled on-demand assignment {assignment.pk})")

    assignment.status = 'cancelled'
    assignment.save(update_fields=['status', 'updated_at'])

    logger.info(f"[ONDEMAND] {user.email} cancelled assignment {assignment.pk}")
    return assignment


@transaction.atomic
def complete_assignment(assignment, user):
    """Close an assignment; anything left on the vehicle is returned to stock"""
    if _role(user) not in ORDER_SUPERVISORS:
        raise PermissionDenied('Your role cannot complete on-demand assignments.')
    assignment = _lock_active(assignment)

    for item in assignment.items.select_for_update().select_related('product'):
        unsold = item.remaining_quantity
        if unsold > 0:
            item.returned_quantity += unsold
            item.save(update_fields=['returned_quantity'])
            adjust_stock(item.product, unsold, reason=f"(completed on-demand assignment {assignment.pk})")

    assignment.status = 'completed'
    assignment.save(update_fields=['status', 'updated_at'])

    logger.info(f"[ONDEMAND] {user.email} completed assignment {assignment.pk}")
    return assignment


def _check_item_owner(item, user, allowed_roles):
    if _role(user) in allowed_roles:
        return
    if _role(user) == Role.SALES_REP and item.assignment.sales_rep_id == user.pk:
        return
    raise PermissionDenied('You can only work with your own on-demand assignments.')


@transaction.atomic
def return_stock(assignment_item, user, quantity):
    """Return part of an assignment item to stock"""
    quantity = Decimal(str(quantity))
    if quantity <= 0:
        raise ValidationError({'quantity': 'Return quantity must be greater than 0.'})

    item = OnDemandAssignmentItem.objects.select_for_update().select_related(
        'assignment', 'product'
    ).get(pk=assignment_item.pk)
    _check_item_owner(item, user, ADMINS)

    if not item.assignment.is_active:
        raise ValidationError({'assignment': f"Assignment is already {item.assignment.status}."})
    if quantity > item.remaining_quantity:
        raise ValidationError({
            'quantity': f"Cannot return {quantity}. Only {item.remaining_quantity} left on this assignment."
        })

    item.returned_quantity += quantity
    item.full_clean()
    item.save(update_fields=['returned_quantity'])
    adjust_stock(item.product, quantity, reason=f"(on-demand return, assignment {item.assignment_id})")

    logger.info(f"[ONDEMAND] {user.email} returned {quantity} x {item.product.name} from assignment {item.assignment_id}")
    return item


@transaction.atomic
def record_sale(user, assignment_item, quantity_sold, selling_price, customer_name='', customer_phone='',
                customer_type='walk-in', existing_customer=None, payment_method=None, notes=''):
    """
    Sell from an assignment item.

    Issues an OND display ID and an ODR- receipt number. Existing customer
    sales take their name and phone from the customer record when omitted.
    """
    if _role(user) not in CUSTOMER_WRITERS:
        raise PermissionDenied('Your role cannot record on-demand sales.')

    quantity_sold = Decimal(str(quantity_sold))
    selling_price = Decimal(str(selling_price))
    if quantity_sold <= 0:
        raise ValidationError({'quantity_sold': 'Quantity must be greater than 0.'})
    if selling_price <= 0:
        raise ValidationError({'selling_price': 'Selling price must be greater than 0.'})

    if customer_type == 'existing':
        if existing_customer is None:
            raise ValidationError({'existing_customer': 'Select the customer for an existing customer sale.'})
        customer_name = customer_name or existing_customer.name
        customer_phone = customer_phone or existing_customer.phone_number
    else:
        existing_customer = None
    if not (customer_name or '').strip():
        raise ValidationError({'customer_name': 'Customer name is required.'})

    item = OnDemandAssignmentItem.objects.select_for_update().select_related(
        'assignment', 'product'
    ).get(pk=assignment_item.pk)
    _check_item_owner(item, user, ADMINS)

    if not item.assignment.is_active:
        raise ValidationError({'assignment': f"Cannot sell from an assignment that is {item.assignment.status}."})
    if quantity_sold > item.remaining_quantity:
        raise ValidationError({
            'quantity_sold': f"Only {item.remaining_quantity} of {item.product.name} left on this assignment."
        })

    item.sold_quantity += quantity_sold
    item.save(update_fields=['sold_quantity'])

    sale = OnDemandOrder(
        assignment_item=item,
        sales_rep=item.assignment.sales_rep,
        customer_name=customer_name.strip(),
        customer_phone=customer_phone or '',
        customer_type=customer_type,
        existing_customer=existing_customer,
        quantity_sold=quantity_sold,
        selling_price=selling_price,
        total_amount=(quantity_sold * selling_price).quantize(CENT, rounding=ROUND_HALF_UP),
        payment_method=payment_method,
        notes=notes or '',
    )
    sale.full_clean(exclude=['on_demand_order_display_id', 'receipt_no'])
    sale.save()

    logger.info(
        f"[ONDEMAND] {user.email} sold {quantity_sold} x {item.product.name} to {sale.customer_name} "
        f"as {sale.on_demand_order_display_id} (receipt {sale.receipt_no})"
    )
    return sale
