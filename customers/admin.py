from django.contrib import admin

from .models import ContactPerson, Customer


class ContactPersonInline(admin.TabularInline):
    model = ContactPerson
    extra = 0
    readonly_fields = ('created_at',)


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    inlines = (ContactPersonInline,)
    list_display = (
        'customer_display_id', 'name', 'phone_number', 'email', 'type',
        'customer_category', 'vat_status', 'created_at'
    )
    list_filter = ('type', 'customer_category', 'vat_status')
    search_fields = ('name', 'customer_display_id', 'phone_number', 'email', 'tin_number')
    readonly_fields = ('customer_display_id', 'created_at', 'updated_at')

    fieldsets = (
        ('Customer Information', {
            'fields': ('customer_display_id', 'name', 'address', 'email', 'phone_number')
        }),
        ('Billing', {
            'fields': ('type', 'customer_category', 'vat_status', 'tin_number')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
