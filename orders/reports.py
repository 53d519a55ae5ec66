from datetime import timedelta
from decimal import Decimal

from django.db.models import Count, DecimalField, ExpressionWrapper, F, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from .models import Order, OrderItem

ZERO = Decimal('0.00')
RANGE_DAYS = {'day': 1, 'week': 7, 'month': 30}
TOP_PRODUCT_COUNT = 5

LINE_REVENUE = ExpressionWrapper(
    F('quantity') * F('price'), output_field=DecimalField(max_digits=14, decimal_places=2)
)


def report_window(range_name, now=None):
    """Start and end of a named range ending now"""
    end = now or timezone.now()
    return end - timedelta(days=RANGE_DAYS[range_name]), end


def completed_sales(start, end):
    """
    Completed orders created within the window.

    Returns sales per day (line revenue, orders and customers) and the
    best selling products by revenue.
    """
    items = OrderItem.objects.filter(
        order__status=Order.COMPLETED,
        order__created_at__gte=start,
        order__created_at__lte=end,
    )

    by_date = items.annotate(date=TruncDate('order__created_at')).values('date').annotate(
        total_sales=Sum(LINE_REVENUE),
        order_count=Count('order', distinct=True),
        customer_count=Count('order__customer', distinct=True),
    ).order_by('date')

    top_products = items.values('product', 'product__name').annotate(
        total_quantity=Sum('quantity'),
        total_revenue=Sum(LINE_REVENUE),
    ).order_by('-total_revenue', 'product__name')[:TOP_PRODUCT_COUNT]

    return {
        'sales_by_date': [
            {
                'date': row['date'],
                'total_sales': row['total_sales'] or ZERO,
                'order_count': row['order_count'],
                'customer_count': row['customer_count'],
            }
            for row in by_date
        ],
        'top_products': [
            {
                'product_id': row['product'],
                'product_name': row['product__name'],
                'total_quantity': row['total_quantity'] or ZERO,
                'total_revenue': row['total_revenue'] or ZERO,
            }
            for row in top_products
        ],
    }
