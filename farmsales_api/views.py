from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response


@api_view(['GET'])
@permission_classes([AllowAny])
def api_overview(request):
    """
    API overview for the farm sales backend
    """

    api_endpoints = {
        "base_url": request.build_absolute_uri('/')[:-1],
        "version": "1.0",
        "description": "Farm Sales - Sales Orders, Field Sales and Inventory API",

        "authentication": {
            "login": "/api/auth/login/ [POST]",
            "token_refresh": "/api/auth/token/refresh/ [POST]",
            "user_profile": "/api/auth/profile/",
            "change_password": "/api/auth/change-password/ [POST]",
            "users": "/api/auth/users/ (Super Admin)",
        },

        "products": {
            "categories": "/api/products/categories/",
            "products": "/api/products/products/",
            "product_detail": "/api/products/products/{id}/",
            "low_stock": "/api/products/products/low-stock/",
            "customer_price": "/api/products/products/{id}/customer-price/?customer={id}",
        },

        "customers": {
            "customers": "/api/customers/customers/",
            "customer_detail": "/api/customers/customers/{id}/",
            "contact_persons": "/api/customers/contact-persons/",
        },

        "orders": {
            "orders": "/api/orders/orders/",
            "order_detail": "/api/orders/orders/{id}/",
            "update_status": "/api/orders/orders/{id}/update-status/ [PATCH]",
            "assign": "/api/orders/orders/{id}/assign/ [POST]",
            "security_check": "/api/orders/orders/{id}/security-check/ [POST]",
            "bypass_security": "/api/orders/orders/{id}/bypass-security/ [POST] (off-hours only)",
            "confirm_payment": "/api/orders/orders/{id}/confirm-payment/ [POST]",
            "returns": "/api/orders/orders/{id}/returns/",
            "vehicles": "/api/orders/vehicles/",
            "dashboard": "/api/orders/dashboard/",
        },

        "on_demand": {
            "assignments": "/api/ondemand/assignments/",
            "request_stock": "/api/ondemand/assignments/request/ [POST] (Sales Rep)",
            "cancel_assignment": "/api/ondemand/assignments/{id}/cancel/ [POST]",
            "complete_assignment": "/api/ondemand/assignments/{id}/complete/ [POST]",
            "assignment_items": "/api/ondemand/assignment-items/",
            "return_stock": "/api/ondemand/assignment-items/{id}/return/ [POST]",
            "orders": "/api/ondemand/orders/",
            "overview_report": "/api/ondemand/reports/overview/?start_date=&end_date=",
            "product_report": "/api/ondemand/reports/products/?start_date=&end_date=",
        },

        "notifications": {
            "email_logs": "/api/notifications/email-logs/",
            "send_order_receipt": "/api/notifications/orders/{id}/send-receipt/ [POST]",
            "send_ondemand_receipt": "/api/notifications/ondemand-orders/{id}/send-receipt/ [POST]",
        },

        "settings": {
            "system_settings": "/api/settings/system-settings/ [GET, PATCH]",
        },

        "documentation": {
            "schema": "/api/schema/",
            "swagger": "/api/docs/",
            "redoc": "/api/redoc/",
        },

        "order_statuses": [
            "Pending", "In Progress", "Assigned", "Products Loaded", "Product Reloaded",
            "Security Check Incomplete", "Security Checked", "Departed Farm", "Delivered",
            "Cancelled", "Completed", "Security Check Bypassed Due to Off Hours",
        ],

        "user_roles": {
            "Super Admin": "Full access, user management",
            "Admin": "Products, customers, orders and settings",
            "Sales Rep": "Customers, own orders and field sales",
            "Security Guard": "Security gate checks and off-hours bypass",
            "Order Manager": "Orders, vehicles and field sale assignments",
            "Finance Admin": "Payments, receipts and email logs",
        },
    }

    return Response(api_endpoints)
