"""
Display ID generation

Every human-readable identifier (PRO0001, SAL0001, WC-00001-2025, ...) is
issued from a DisplaySequence row. The row is locked and incremented inside
the caller's transaction, so concurrent callers for the same sequence never
receive the same value.
"""
import logging
import re

from django.apps import apps
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from .exceptions import InvalidCategoryCode
from .models import DisplaySequence

logger = logging.getLogger(__name__)

CATEGORY_CODE_PATTERN = re.compile(r'^[A-Z]{2,3}$')

# sequence name -> (prefix, zero padded width)
DISPLAY_ID_FORMATS = {
    'product': ('PRO', 4),
    'category': ('CAT', 4),
    'customer': ('CUS', 4),
    'order': ('SAL', 4),
    'on_demand_order': ('OND', 4),
    'order_receipt': ('REC', 4),
    'on_demand_receipt': ('ODR-', 6),
}

# sequence name -> (model, field) holding issued display IDs
DISPLAY_ID_FIELDS = {
    'product': ('products.Product', 'product_display_id'),
    'category': ('products.Category', 'category_display_id'),
    'customer': ('customers.Customer', 'customer_display_id'),
    'order': ('orders.Order', 'order_display_id'),
    'on_demand_order': ('ondemand.OnDemandOrder', 'on_demand_order_display_id'),
    'order_receipt': ('orders.Order', 'receipt_no'),
    'on_demand_receipt': ('ondemand.OnDemandOrder', 'receipt_no'),
}

PRODUCT_ID_WIDTH = 5


def next_value(name):
    """Atomically increment and return the counter for ``name``."""
    with transaction.atomic():
        sequence, created = DisplaySequence.objects.select_for_update().get_or_create(name=name)
        DisplaySequence.objects.filter(pk=sequence.pk).update(last_value=F('last_value') + 1)
        sequence.refresh_from_db(fields=['last_value'])

    if created:
        logger.info(f"Started display sequence '{name}'")
    logger.debug(f"Issued {name} #{sequence.last_value}")
    return sequence.last_value


def format_display_id(prefix, value, width):
    return f"{prefix}{value:0{width}d}"


def next_display_id(name):
    """Issue the next display ID for a registered entity type, e.g. ``PRO0001``."""
    try:
        prefix, width = DISPLAY_ID_FORMATS[name]
    except KeyError:
        raise ValueError(f"No display ID format registered for '{name}'")
    return format_display_id(prefix, next_value(name), width)


def _validate_category_code(category_code):
    if not category_code or not CATEGORY_CODE_PATTERN.match(category_code):
        raise InvalidCategoryCode(category_code)

    Category = apps.get_model('products', 'Category')
    if not Category.objects.filter(category_code=category_code).exists():
        raise InvalidCategoryCode(category_code)


def product_sequence_name(category_code, year):
    return f"product:{category_code}:{year}"


def generate_product_id(category_code, year=None):
    """
    Issue a category scoped product code such as ``WC-00001-2025``.

    The counter restarts for each category and calendar year. Unknown or
    malformed category codes raise InvalidCategoryCode.
    """
    _validate_category_code(category_code)
    year = year or timezone.localdate().year
    value = next_value(product_sequence_name(category_code, year))
    return f"{category_code}-{value:0{PRODUCT_ID_WIDTH}d}-{year}"


def scan_next_product_id(category_code, year=None):
    """
    Derive the next product code from the highest one already stored.

    Not safe under concurrent writers: two callers that scan before either
    inserts get the same code. Only used to fast-forward counters after an
    import, never to issue IDs.
    """
    _validate_category_code(category_code)
    year = year or timezone.localdate().year
    return f"{category_code}-{scan_max_product_value(category_code, year) + 1:0{PRODUCT_ID_WIDTH}d}-{year}"


def scan_max_product_value(category_code, year):
    Product = apps.get_model('products', 'Product')
    pattern = re.compile(rf'^{re.escape(category_code)}-(\d+)-{year}$')
    codes = Product.objects.filter(
        product_id__startswith=f"{category_code}-",
        product_id__endswith=f"-{year}",
    ).values_list('product_id', flat=True)

    highest = 0
    for code in codes:
        match = pattern.match(code)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


def scan_max_display_value(name):
    """Highest numeric suffix already stored for a registered display ID."""
    prefix, _ = DISPLAY_ID_FORMATS[name]
    model_label, field = DISPLAY_ID_FIELDS[name]
    model = apps.get_model(model_label)
    pattern = re.compile(rf'^{re.escape(prefix)}(\d+)$')

    highest = 0
    values = model.objects.filter(**{f'{field}__startswith': prefix}).values_list(field, flat=True)
    for value in values:
        match = pattern.match(value or '')
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


def advance_sequence(name, value):
    """Move a counter forward to at least ``value``. Returns True if it moved."""
    with transaction.atomic():
        sequence, _ = DisplaySequence.objects.select_for_update().get_or_create(name=name)
        if sequence.last_value >= value:
            return False
        sequence.last_value = value
        sequence.save(update_fields=['last_value', 'updated_at'])

    logger.info(f"Advanced display sequence '{name}' to {value}")
    return True
