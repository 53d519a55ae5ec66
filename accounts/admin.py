from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html

from .models import Role, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = (
        'email', 'full_name', 'role_colored', 'employee_id', 'phone_number',
        'is_active_icon', 'first_login', 'last_login_formatted',
    )
    list_filter = (
        'role', 'is_active', 'first_login', 'is_staff',
        ('date_joined', admin.DateFieldListFilter),
    )
    search_fields = ('email', 'first_name', 'last_name', 'employee_id', 'phone_number')
    ordering = ('first_name', 'last_name')

    readonly_fields = ('date_joined', 'last_login')

    fieldsets = (
        ('Account Information', {
            'fields': ('email', 'password')
        }),
        ('Personal Details', {
            'fields': ('title', 'first_name', 'last_name', 'phone_number', 'employee_id')
        }),
        ('Role & Device', {
            'fields': ('role', 'device_id', 'first_login')
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',)
        }),
        ('Important Dates', {
            'fields': ('date_joined', 'last_login'),
            'classes': ('collapse',)
        }),
    )

    add_fieldsets = (
        ('Create New User', {
            'classes': ('wide',),
            'fields': ('email', 'password1', 'password2', 'first_name', 'last_name', 'role', 'employee_id', 'phone_number'),
        }),
    )

    def full_name(self, obj):
        """Display full name or email if no name"""
        name = obj.get_full_name().strip()
        if name:
            return name
        return format_html('<em>{}</em>', obj.email.split('@')[0])
    full_name.short_description = 'Full Name'
    full_name.admin_order_field = 'first_name'

    def role_colored(self, obj):
        colors = {
            Role.SUPER_ADMIN: '#dc3545',
            Role.ADMIN: '#fd7e14',
            Role.ORDER_MANAGER: '#6f42c1',
            Role.SALES_REP: '#28a745',
            Role.SECURITY_GUARD: '#007bff',
            Role.FINANCE_ADMIN: '#17a2b8',
        }
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            colors.get(obj.role, '#6c757d'),
            obj.role
        )
    role_colored.short_description = 'Role'
    role_colored.admin_order_field = 'role'

    def is_active_icon(self, obj):
        if obj.is_active:
            return format_html('<span style="color: green;">✓ Active</span>')
        return format_html('<span style="color: red;">✗ Inactive</span>')
    is_active_icon.short_description = 'Status'
    is_active_icon.admin_order_field = 'is_active'

    def last_login_formatted(self, obj):
        if obj.last_login:
            return obj.last_login.strftime('%Y-%m-%d %H:%M')
        return format_html('<em>Never</em>')
    last_login_formatted.short_description = 'Last Login'
    last_login_formatted.admin_order_field = 'last_login'
