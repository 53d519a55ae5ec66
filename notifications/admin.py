from django.contrib import admin
from django.utils.html import format_html

from .models import EmailLog


@admin.register(EmailLog)
class EmailLogAdmin(admin.ModelAdmin):
    list_display = ('subject', 'recipient_email', 'email_type', 'status_colored', 'retry_count', 'sent_at', 'created_at')
    list_filter = ('status', 'email_type', 'created_at')
    search_fields = ('recipient_email', 'recipient_name', 'subject', 'error_message')
    readonly_fields = ('created_at', 'updated_at', 'sent_at')

    fieldsets = (
        ('Email', {
            'fields': ('order', 'on_demand_order', 'recipient_email', 'recipient_name', 'email_type', 'subject')
        }),
        ('Delivery', {
            'fields': ('status', 'error_message', 'sent_at', 'retry_count', 'metadata')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def status_colored(self, obj):
        colors = {'sent': '#28a745', 'failed': '#dc3545', 'bounced': '#fd7e14', 'pending': '#ffc107'}
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            colors.get(obj.status, '#000'), obj.get_status_display()
        )
    status_colored.short_description = 'Status'
    status_colored.admin_order_field = 'status'
