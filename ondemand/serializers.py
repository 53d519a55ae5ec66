from decimal import Decimal

from rest_framework import serializers

from accounts.models import User
from customers.models import Customer
from products.models import Product
from .models import OnDemandAssignment, OnDemandAssignmentItem, OnDemandOrder


class OnDemandAssignmentItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    category_name = serializers.CharField(source='product.category.category_name', read_only=True, default=None)
    remaining_quantity = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    sales_rep = serializers.IntegerField(source='assignment.sales_rep_id', read_only=True)

    class Meta:
        model = OnDemandAssignmentItem
        fields = [
            'id', 'assignment', 'sales_rep', 'product', 'product_name', 'category_name',
            'assigned_quantity', 'sold_quantity', 'returned_quantity', 'remaining_quantity', 'created_at'
        ]
        read_only_fields = fields


class OnDemandAssignmentSerializer(serializers.ModelSerializer):
    sales_rep_name = serializers.CharField(source='sales_rep.display_name', read_only=True)
    assigned_by_name = serializers.CharField(source='assigned_by.display_name', read_only=True)
    items = OnDemandAssignmentItemSerializer(many=True, read_only=True)
    total_sold = serializers.SerializerMethodField()

    class Meta:
        model = OnDemandAssignment
        fields = [
            'id', 'sales_rep', 'sales_rep_name', 'assigned_by', 'assigned_by_name',
            'assignment_date', 'notes', 'vehicle_number', 'status', 'assignment_type',
            'items', 'total_sold', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_total_sold(self, obj):
        return sum((item.sold_quantity for item in obj.items.all()), Decimal('0.00'))


class AssignmentItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))


class StockRequestSerializer(serializers.Serializer):
    items = AssignmentItemInputSerializer(many=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    vehicle_number = serializers.CharField(max_length=30, required=False, allow_blank=True, default='')

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError('Select at least one product.')
        return value


class AssignmentCreateSerializer(StockRequestSerializer):
    sales_rep = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(is_active=True), required=False, allow_null=True)
    assignment_date = serializers.DateField(required=False, allow_null=True)


class ReturnStockSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))


class OnDemandOrderSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='assignment_item.product.name', read_only=True)
    sales_rep_name = serializers.CharField(source='sales_rep.display_name', read_only=True)
    vehicle_number = serializers.CharField(source='assignment_item.assignment.vehicle_number', read_only=True)

    class Meta:
        model = OnDemandOrder
        fields = [
            'id', 'on_demand_order_display_id', 'receipt_no', 'assignment_item', 'product_name',
            'sales_rep', 'sales_rep_name', 'vehicle_number',
            'customer_name', 'customer_phone', 'customer_type', 'existing_customer',
            'quantity_sold', 'selling_price', 'total_amount', 'payment_method',
            'sale_date', 'notes', 'created_at'
        ]
        read_only_fields = fields


class OnDemandOrderCreateSerializer(serializers.Serializer):
    assignment_item = serializers.PrimaryKeyRelatedField(queryset=OnDemandAssignmentItem.objects.all())
    quantity_sold = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))
    selling_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))
    customer_type = serializers.ChoiceField(choices=OnDemandOrder.CUSTOMER_TYPE_CHOICES, default='walk-in')
    customer_name = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    customer_phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    existing_customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all(), required=False, allow_null=True)
    payment_method = serializers.ChoiceField(choices=OnDemandOrder.PAYMENT_METHOD_CHOICES, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    send_receipt_to = serializers.EmailField(required=False, allow_blank=True, default='')
