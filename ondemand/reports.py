from collections import OrderedDict
from decimal import Decimal

from django.db.models import Count, Q, Sum

from .models import OnDemandAssignment, OnDemandAssignmentItem, OnDemandOrder

ZERO = Decimal('0.00')


def sales_rep_overview(date_from, date_to, sales_rep=None):
    """
    Per sales rep totals for assignments dated within the range.

    Revenue and order count only include sales made within the range.
    """
    assignments = OnDemandAssignment.objects.filter(
        assignment_date__gte=date_from, assignment_date__lte=date_to
    ).select_related('sales_rep')
    if sales_rep is not None:
        assignments = assignments.filter(sales_rep=sales_rep)

    quantities = OnDemandAssignmentItem.objects.filter(assignment__in=assignments).values(
        'assignment__sales_rep'
    ).annotate(
        total_assigned=Sum('assigned_quantity'),
        total_sold=Sum('sold_quantity'),
        total_returned=Sum('returned_quantity'),
    )
    sales = OnDemandOrder.objects.filter(
        assignment_item__assignment__in=assignments,
        sale_date__date__gte=date_from,
        sale_date__date__lte=date_to,
    ).values('assignment_item__assignment__sales_rep').annotate(
        total_revenue=Sum('total_amount'),
        orders_count=Count('id'),
    )

    rows = OrderedDict()
    for assignment in assignments:
        rep = assignment.sales_rep
        rows.setdefault(rep.pk, {
            'sales_rep_id': rep.pk,
            'sales_rep_name': rep.display_name,
            'total_assigned': ZERO,
            'total_sold': ZERO,
            'total_returned': ZERO,
            'total_revenue': ZERO,
            'orders_count': 0,
        })

    for row in quantities:
        entry = rows[row['assignment__sales_rep']]
        entry['total_assigned'] = row['total_assigned'] or ZERO
        entry['total_sold'] = row['total_sold'] or ZERO
        entry['total_returned'] = row['total_returned'] or ZERO

    for row in sales:
        entry = rows[row['assignment_item__assignment__sales_rep']]
        entry['total_revenue'] = row['total_revenue'] or ZERO
        entry['orders_count'] = row['orders_count']

    return sorted(rows.values(), key=lambda r: r['total_revenue'], reverse=True)


def product_sales(date_from, date_to, sales_rep=None):
    """Per product totals for items assigned within the range, best sellers first"""
    items = OnDemandAssignmentItem.objects.filter(
        created_at__date__gte=date_from, created_at__date__lte=date_to
    )
    if sales_rep is not None:
        items = items.filter(assignment__sales_rep=sales_rep)

    rows = items.values('product', 'product__name').annotate(
        total_assigned=Sum('assigned_quantity'),
        total_sold=Sum('sold_quantity'),
        total_returned=Sum('returned_quantity'),
    )
    revenue = dict(
        OnDemandOrder.objects.filter(
            assignment_item__in=items,
            sale_date__date__gte=date_from,
            sale_date__date__lte=date_to,
        ).values('assignment_item__product').annotate(
            total=Sum('total_amount')
        ).values_list('assignment_item__product', 'total')
    )

    report = []
    for row in rows:
        total_revenue = revenue.get(row['product']) or ZERO
        total_sold = row['total_sold'] or ZERO
        report.append({
            'product_id': row['product'],
            'product_name': row['product__name'],
            'total_assigned': row['total_assigned'] or ZERO,
            'total_sold': total_sold,
            'total_returned': row['total_returned'] or ZERO,
            'total_revenue': total_revenue,
            'avg_selling_price': (total_revenue / total_sold).quantize(Decimal('0.01')) if total_sold else ZERO,
        })

    return sorted(report, key=lambda r: r['total_revenue'], reverse=True)


def active_assignment_summary(sales_rep=None):
    queryset = OnDemandAssignment.objects.all()
    if sales_rep is not None:
        queryset = queryset.filter(sales_rep=sales_rep)
    return queryset.aggregate(
        active=Count('id', filter=Q(status='active')),
        completed=Count('id', filter=Q(status='completed')),
        cancelled=Count('id', filter=Q(status='cancelled')),
    )
