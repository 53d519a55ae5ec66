import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F

from .models import Product

logger = logging.getLogger(__name__)


def adjust_stock(product, delta, reason=''):
    """
    Move a product's stock by ``delta`` (negative to take stock out).

    The product row is locked for the rest of the caller's transaction.
    Taking out more than is on hand raises ValidationError.
    """
    delta = Decimal(str(delta))
    with transaction.atomic():
        locked = Product.objects.select_for_update().get(pk=product.pk)
        if locked.quantity + delta < 0:
            raise ValidationError({
                'quantity': f"Insufficient stock for {locked.name}: {locked.quantity} available, {-delta} requested"
            })
        Product.objects.filter(pk=locked.pk).update(quantity=F('quantity') + delta)
        locked.refresh_from_db(fields=['quantity'])

    product.quantity = locked.quantity
    logger.info(f"[STOCK] {locked.name} ({locked.product_display_id}) {delta:+} -> {locked.quantity} {reason}".rstrip())
    return locked.quantity
