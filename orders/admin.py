from django.contrib import admin
from django.utils.html import format_html

from .models import Order, OrderItem, OrderReturn, Vehicle


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ('line_total', 'returned_quantity')
    fields = ('product', 'quantity', 'price', 'discount', 'returned_quantity', 'line_total')


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    inlines = (OrderItemInline,)
    list_display = (
        'order_display_id', 'customer', 'status_colored', 'assigned_to', 'vehicle_number',
        'total_amount', 'payment_status', 'receipt_no', 'created_at'
    )
    list_filter = ('status', 'payment_status', 'security_check_status', 'is_vat_applicable', 'created_at')
    search_fields = ('order_display_id', 'customer__name', 'request_id', 'receipt_no', 'vehicle_number')
    readonly_fields = ('order_display_id', 'receipt_no', 'created_at', 'updated_at', 'completed_at')
    list_select_related = ('customer', 'assigned_to')
    date_hierarchy = 'created_at'

    fieldsets = (
        ('Order Information', {
            'fields': ('order_display_id', 'customer', 'status', 'request_id', 'delivery_date')
        }),
        ('Assignment', {
            'fields': ('created_by', 'assigned_to', 'vehicle_number', 'completed_by', 'completed_at')
        }),
        ('Security Check', {
            'fields': ('security_check_status', 'security_check_notes'),
            'classes': ('collapse',)
        }),
        ('Pricing & Payment', {
            'fields': (
                'total_amount', 'vat_amount', 'is_vat_applicable',
                'payment_method', 'payment_status', 'collected_amount', 'receipt_no'
            )
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    STATUS_COLORS = {
        Order.PENDING: '#ffc107',
        Order.ASSIGNED: '#17a2b8',
        Order.SECURITY_CHECK_INCOMPLETE: '#dc3545',
        Order.SECURITY_CHECK_BYPASSED: '#fd7e14',
        Order.DELIVERED: '#28a745',
        Order.COMPLETED: '#28a745',
        Order.CANCELLED: '#6c757d',
    }

    def status_colored(self, obj):
        color = self.STATUS_COLORS.get(obj.status, '#007bff')
        return format_html('<span style="color: {}; font-weight: bold;">{}</span>', color, obj.status)
    status_colored.short_description = 'Status'
    status_colored.admin_order_field = 'status'

    def has_delete_permission(self, request, obj=None):
        # Orders are cancelled, never deleted
        return False


@admin.register(OrderReturn)
class OrderReturnAdmin(admin.ModelAdmin):
    list_display = ('order_item', 'returned_quantity', 'returned_by', 'sales_rep', 'returned_at')
    search_fields = ('order_item__order__order_display_id', 'order_item__product__name', 'return_reason')
    list_filter = ('returned_at',)
    readonly_fields = ('returned_at',)


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ('vehicle_number', 'vehicle_type', 'capacity_cbm', 'status', 'sales_rep')
    list_filter = ('status', 'vehicle_type')
    search_fields = ('vehicle_number', 'sales_rep__email', 'sales_rep__first_name')
