from django.contrib import admin
from django.utils.html import format_html

from .models import Category, Product


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = (
        'category_display_id', 'category_name', 'category_code', 'product_count',
        'status_icon', 'created_at'
    )
    list_filter = ('status',)
    search_fields = ('category_name', 'category_code', 'category_display_id')
    readonly_fields = ('category_display_id', 'created_at', 'updated_at')

    fieldsets = (
        ('Category Information', {
            'fields': ('category_display_id', 'category_name', 'category_code', 'description', 'status')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def status_icon(self, obj):
        if obj.status:
            return format_html('<span style="color: green;">✓ Active</span>')
        return format_html('<span style="color: red;">✗ Inactive</span>')
    status_icon.short_description = 'Status'
    status_icon.admin_order_field = 'status'

    def product_count(self, obj):
        return obj.products.count()
    product_count.short_description = 'Products'


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        'product_display_id', 'product_id', 'name', 'category', 'sku',
        'stock_colored', 'threshold', 'price_dealer_cash', 'price_hotel_cash'
    )
    list_filter = ('category',)
    search_fields = ('name', 'sku', 'product_display_id', 'product_id')
    readonly_fields = ('product_display_id', 'product_id', 'created_at', 'updated_at')
    list_select_related = ('category',)

    fieldsets = (
        ('Product Information', {
            'fields': ('product_display_id', 'product_id', 'name', 'category', 'sku')
        }),
        ('Stock', {
            'fields': ('quantity', 'threshold')
        }),
        ('Pricing', {
            'fields': ('price_dealer_cash', 'price_dealer_credit', 'price_hotel_cash', 'price_hotel_credit')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def stock_colored(self, obj):
        """Display stock level with low stock highlighted"""
        color = '#dc3545' if obj.is_low_stock else '#28a745'
        return format_html('<span style="color: {}; font-weight: bold;">{}</span>', color, obj.quantity)
    stock_colored.short_description = 'Stock'
    stock_colored.admin_order_field = 'quantity'
