from django.contrib import admin
from django.utils.html import format_html

from .models import OnDemandAssignment, OnDemandAssignmentItem, OnDemandOrder


class OnDemandAssignmentItemInline(admin.TabularInline):
    model = OnDemandAssignmentItem
    extra = 0
    readonly_fields = ('sold_quantity', 'returned_quantity', 'remaining_quantity')
    fields = ('product', 'assigned_quantity', 'sold_quantity', 'returned_quantity', 'remaining_quantity')


@admin.register(OnDemandAssignment)
class OnDemandAssignmentAdmin(admin.ModelAdmin):
    inlines = (OnDemandAssignmentItemInline,)
    list_display = (
        'id', 'sales_rep', 'assigned_by', 'assignment_date', 'vehicle_number',
        'assignment_type', 'status_colored'
    )
    list_filter = ('status', 'assignment_type', 'assignment_date')
    search_fields = ('sales_rep__email', 'sales_rep__first_name', 'vehicle_number', 'notes')
    list_select_related = ('sales_rep', 'assigned_by')
    date_hierarchy = 'assignment_date'

    def status_colored(self, obj):
        colors = {'active': '#28a745', 'completed': '#007bff', 'cancelled': '#6c757d'}
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            colors.get(obj.status, '#000'), obj.get_status_display()
        )
    status_colored.short_description = 'Status'
    status_colored.admin_order_field = 'status'


@admin.register(OnDemandOrder)
class OnDemandOrderAdmin(admin.ModelAdmin):
    list_display = (
        'on_demand_order_display_id', 'receipt_no', 'customer_name', 'customer_type',
        'quantity_sold', 'selling_price', 'total_amount', 'payment_method', 'sales_rep', 'sale_date'
    )
    list_filter = ('customer_type', 'payment_method', 'sale_date')
    search_fields = ('on_demand_order_display_id', 'receipt_no', 'customer_name', 'customer_phone')
    readonly_fields = ('on_demand_order_display_id', 'receipt_no', 'created_at')
    list_select_related = ('sales_rep',)
