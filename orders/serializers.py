import json
from decimal import Decimal

from rest_framework import serializers

from accounts.models import User
from customers.models import Customer
from products.models import Product
from .models import Order, OrderItem, OrderReturn, Vehicle


class OrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_display_id = serializers.CharField(source='product.product_display_id', read_only=True)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    returnable_quantity = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id', 'product', 'product_name', 'product_display_id', 'quantity', 'price',
            'discount', 'returned_quantity', 'returnable_quantity', 'line_total'
        ]


class OrderItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'), required=False, allow_null=True)
    discount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'), required=False, default=Decimal('0'))


class OrderSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    customer_email = serializers.CharField(source='customer.email', read_only=True)
    created_by_name = serializers.CharField(source='created_by.display_name', read_only=True)
    assigned_to_name = serializers.CharField(source='assigned_to.display_name', read_only=True, default=None)
    completed_by_name = serializers.CharField(source='completed_by.display_name', read_only=True, default=None)
    items = OrderItemSerializer(many=True, read_only=True)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    security_check_details = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'order_display_id', 'customer', 'customer_name', 'customer_email', 'status',
            'request_id', 'delivery_date', 'vehicle_number',
            'created_by', 'created_by_name', 'assigned_to', 'assigned_to_name',
            'completed_by', 'completed_by_name', 'completed_at',
            'security_check_status', 'security_check_notes', 'security_check_details',
            'subtotal', 'vat_amount', 'total_amount', 'is_vat_applicable',
            'payment_method', 'payment_status', 'collected_amount', 'receipt_no',
            'items', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_security_check_details(self, obj):
        """Decoded security check notes; plain text notes come back as a custom note"""
        if not obj.security_check_notes:
            return None
        try:
            return json.loads(obj.security_check_notes)
        except ValueError:
            return {'reasons': [], 'customNote': obj.security_check_notes}


class OrderCreateSerializer(serializers.Serializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all())
    items = OrderItemInputSerializer(many=True)
    assigned_to = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(is_active=True), required=False, allow_null=True)
    vehicle_number = serializers.CharField(max_length=30, required=False, allow_blank=True, default='')
    request_id = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    delivery_date = serializers.DateField(required=False, allow_null=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError('An order needs at least one item.')
        return value


class OrderUpdateSerializer(serializers.ModelSerializer):
    """Delivery details that can be edited outside the workflow"""

    class Meta:
        model = Order
        fields = ['request_id', 'delivery_date', 'vehicle_number']


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=50)
    reasons = serializers.ListField(child=serializers.CharField(max_length=200), required=False, default=list)
    custom_note = serializers.CharField(required=False, allow_blank=True, default='')


class SecurityCheckSerializer(serializers.Serializer):
    result = serializers.ChoiceField(choices=['completed', 'incomplete'])
    reasons = serializers.ListField(child=serializers.CharField(max_length=200), required=False, default=list)
    custom_note = serializers.CharField(required=False, allow_blank=True, default='')


class AssignOrderSerializer(serializers.Serializer):
    assigned_to = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(is_active=True), required=False, allow_null=True)
    vehicle_number = serializers.CharField(max_length=30, required=False, allow_blank=True, default='')


class PaymentConfirmationSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES)
    collected_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))


class OrderReturnSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='order_item.product.name', read_only=True)
    returned_by_name = serializers.CharField(source='returned_by.display_name', read_only=True)

    class Meta:
        model = OrderReturn
        fields = [
            'id', 'order_item', 'product_name', 'returned_quantity', 'return_reason',
            'returned_by', 'returned_by_name', 'sales_rep', 'returned_at'
        ]
        read_only_fields = fields


class ReturnRequestSerializer(serializers.Serializer):
    order_item = serializers.IntegerField()
    returned_quantity = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))
    return_reason = serializers.CharField()


class VehicleSerializer(serializers.ModelSerializer):
    sales_rep_name = serializers.CharField(source='sales_rep.display_name', read_only=True, default=None)

    class Meta:
        model = Vehicle
        fields = [
            'id', 'vehicle_number', 'vehicle_type', 'capacity_cbm', 'status',
            'sales_rep', 'sales_rep_name', 'created_at', 'updated_at'
        ]
