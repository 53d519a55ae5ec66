import logging
from decimal import Decimal, ROUND_HALF_UP

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction

from accounts.models import Role
from accounts.permissions import ORDER_WRITERS
from products.services import adjust_stock
from settings.models import SystemSetting
from .models import Order, OrderItem, OrderReturn, Vehicle
from .workflow import change_status

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def _money(value):
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def resolve_assignment(assigned_to, vehicle_number):
    """
    Fill in whichever of sales rep and vehicle is missing from the other.

    A vehicle with a rep on record supplies the rep; a rep with exactly one
    vehicle supplies the vehicle number.
    """
    vehicle_number = (vehicle_number or '').strip()
    if vehicle_number and assigned_to is None:
        vehicle = Vehicle.objects.filter(vehicle_number=vehicle_number).select_related('sales_rep').first()
        if vehicle and vehicle.sales_rep:
            assigned_to = vehicle.sales_rep
    elif assigned_to is not None and not vehicle_number:
        vehicles = list(Vehicle.objects.filter(sales_rep=assigned_to)[:2])
        if len(vehicles) == 1:
            vehicle_number = vehicles[0].vehicle_number

    if assigned_to is not None and assigned_to.role != Role.SALES_REP:
        raise ValidationError({'assigned_to': 'Orders can only be assigned to a sales rep.'})
    return assigned_to, vehicle_number


@transaction.atomic
def create_order(user, customer, items, assigned_to=None, vehicle_number='', request_id='', delivery_date=None):
    """
    Create an order with its items and take the stock out.

    ``items`` is a list of dicts with product, quantity and optional price
    and discount. Missing prices come from the customer's price tier.
    """
    if getattr(user, 'role', None) not in ORDER_WRITERS:
        raise PermissionDenied('Your role cannot create orders.')
    if not items:
        raise ValidationError({'items': 'An order needs at least one item.'})

    assigned_to, vehicle_number = resolve_assignment(assigned_to, vehicle_number)

    order = Order.objects.create(
        customer=customer,
        created_by=user,
        assigned_to=assigned_to,
        vehicle_number=vehicle_number,
        request_id=request_id or '',
        delivery_date=delivery_date,
        status=Order.ASSIGNED if assigned_to else Order.PENDING,
        is_vat_applicable=customer.is_vat_registered,
    )

    subtotal = Decimal('0.00')
    for entry in items:
        product = entry['product']
        quantity = Decimal(str(entry['quantity']))
        price = entry.get('price')
        price = product.get_customer_price(customer) if price is None else Decimal(str(price))
        discount = Decimal(str(entry.get('discount') or '0'))

        item = OrderItem(order=order, product=product, quantity=quantity, price=price, discount=discount)
        item.full_clean()
        item.save()
        adjust_stock(product, -quantity, reason=f"(order {order.order_display_id})")
        subtotal += item.line_total

    vat_amount = _money(subtotal * SystemSetting.get_vat_rate()) if order.is_vat_applicable else Decimal('0.00')
    order.vat_amount = vat_amount
    order.total_amount = _money(subtotal) + vat_amount
    order.save(update_fields=['vat_amount', 'total_amount', 'updated_at'])

    logger.info(
        f"[ORDER] {user.email} created {order.order_display_id} for {customer.name}: "
        f"{len(items)} items, total {order.total_amount} (VAT {vat_amount})"
    )
    return order


@transaction.atomic
def assign_order(order, user, assigned_to=None, vehicle_number=''):
    """Assign a sales rep and vehicle and move the order to Assigned"""
    if getattr(user, 'role', None) not in ORDER_WRITERS:
        raise PermissionDenied('Your role cannot assign orders.')
    if order.is_terminal:
        raise ValidationError({'status': f"Cannot assign an order that is '{order.status}'."})

    assigned_to, vehicle_number = resolve_assignment(assigned_to, vehicle_number)
    if assigned_to is None:
        raise ValidationError({'assigned_to': 'A sales rep or a vehicle with a sales rep is required.'})

    order.assigned_to = assigned_to
    order.vehicle_number = vehicle_number
    order.save(update_fields=['assigned_to', 'vehicle_number', 'updated_at'])

    return change_status(order, Order.ASSIGNED, user)


@transaction.atomic
def process_return(order_item, user, quantity, reason):
    """Take back part of a delivered line and put it back into stock"""
    if getattr(user, 'role', None) not in ORDER_WRITERS:
        raise PermissionDenied('Your role cannot process returns.')

    quantity = Decimal(str(quantity))
    reason = (reason or '').strip()
    if quantity <= 0:
        raise ValidationError({'returned_quantity': 'Return quantity must be greater than 0.'})
    if not reason:
        raise ValidationError({'return_reason': 'Please provide a reason for the return.'})

    item = OrderItem.objects.select_for_update().select_related('order', 'product').get(pk=order_item.pk)
    if item.order.status == Order.CANCELLED:
        raise ValidationError({'order': 'Cannot return items from a cancelled order.'})
    if quantity > item.returnable_quantity:
        raise ValidationError({
            'returned_quantity': f"Cannot return {quantity}. Only {item.returnable_quantity} available to return."
        })

    item.returned_quantity += quantity
    item.save(update_fields=['returned_quantity'])

    order_return = OrderReturn.objects.create(
        order_item=item,
        returned_quantity=quantity,
        return_reason=reason,
        returned_by=user,
        sales_rep=item.order.assigned_to or user,
    )
    adjust_stock(item.product, quantity, reason=f"(return on {item.order.order_display_id})")

    logger.info(f"[RETURN] {user.email} returned {quantity} x {item.product.name} on {item.order.order_display_id}")
    return order_return
