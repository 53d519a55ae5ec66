from rest_framework import serializers
from customers.models import Customer
from .models import Category, Product


class CategorySerializer(serializers.ModelSerializer):
    product_count = serializers.IntegerField(source='products.count', read_only=True)

    class Meta:
        model = Category
        fields = [
            'id', 'category_display_id', 'category_name', 'category_code',
            'description', 'status', 'product_count', 'created_at', 'updated_at'
        ]
        read_only_fields = ['category_display_id']

    def validate_category_code(self, value):
        value = value.strip()
        if self.instance and self.instance.category_code != value and self.instance.products.exists():
            raise serializers.ValidationError('Cannot change the code of a category that already has products.')
        return value


class ProductSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.category_name', read_only=True)
    category_code = serializers.CharField(source='category.category_code', read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'product_display_id', 'product_id', 'name', 'category', 'category_name',
            'category_code', 'sku', 'quantity', 'price_dealer_cash', 'price_dealer_credit',
            'price_hotel_cash', 'price_hotel_credit', 'threshold', 'is_low_stock',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['product_display_id', 'product_id']

    def validate_category(self, value):
        if value is not None and not value.status:
            raise serializers.ValidationError('Category is inactive.')
        if self.instance and self.instance.category_id and value != self.instance.category:
            raise serializers.ValidationError('Product category cannot be changed once a product ID has been issued.')
        return value


class CustomerPriceQuerySerializer(serializers.Serializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all())
