import logging

from django.db import transaction
from django.db.models import F, Q
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from accounts.permissions import ADMINS, RolePolicyPermission
from .models import Category, Product
from .serializers import CategorySerializer, CustomerPriceQuerySerializer, ProductSerializer

logger = logging.getLogger(__name__)


class CategoryViewSet(viewsets.ModelViewSet):
    """List, create, update or delete product categories"""
    serializer_class = CategorySerializer
    permission_classes = [RolePolicyPermission]
    role_policy = {'create': ADMINS, 'update': ADMINS, 'destroy': ADMINS}
    pagination_class = None

    def get_queryset(self):
        queryset = Category.objects.all()

        active = self.request.query_params.get('status')
        if active is not None:
            queryset = queryset.filter(status=active.lower() == 'true')

        return queryset

    def destroy(self, request, *args, **kwargs):
        category = self.get_object()
        if category.products.exists():
            return Response(
                {'error': 'Cannot delete a category that still has products'},
                status=status.HTTP_400_BAD_REQUEST
            )
        category.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


class ProductViewSet(viewsets.ModelViewSet):
    """List, create, update or delete products"""
    serializer_class = ProductSerializer
    permission_classes = [RolePolicyPermission]
    role_policy = {'create': ADMINS, 'update': ADMINS, 'destroy': ADMINS}

    def get_queryset(self):
        queryset = Product.objects.select_related('category').all()

        # Filter by category
        category = self.request.query_params.get('category')
        if category:
            queryset = queryset.filter(category_id=category)

        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(sku__icontains=search) |
                Q(product_display_id__icontains=search) | Q(product_id__icontains=search)
            )

        in_stock = self.request.query_params.get('in_stock')
        if in_stock is not None and in_stock.lower() == 'true':
            queryset = queryset.filter(quantity__gt=0)

        return queryset.order_by('name')

    def perform_create(self, serializer):
        product = serializer.save()
        logger.info(f"[PRODUCT] Created {product.name} as {product.product_display_id} / {product.product_id}")

    @action(detail=False, methods=['get'], url_path='low-stock')
    def low_stock(self, request):
        """Products at or below their threshold"""
        products = self.get_queryset().filter(quantity__lte=F('threshold'))
        serializer = self.get_serializer(products, many=True)
        return Response({'products': serializer.data, 'count': products.count()})

    @action(detail=True, methods=['get'], url_path='customer-price')
    def customer_price(self, request, pk=None):
        """Price tier that applies to the given customer"""
        product = self.get_object()
        query = CustomerPriceQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        customer = query.validated_data['customer']

        return Response({
            'product_id': product.id,
            'customer_id': customer.id,
            'customer_category': customer.customer_category,
            'customer_type': customer.type,
            'price': product.get_customer_price(customer),
        })

    @action(detail=False, methods=['post'])
    def bulk(self, request):
        """
        Create a batch of products.

        Every row is validated first and the batch is saved in one
        transaction, so a bad row leaves no products and no used IDs behind.
        """
        serializer = self.get_serializer(data=request.data, many=True, allow_empty=False)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            products = serializer.save()

        logger.info(f"[PRODUCT] {request.user.email} bulk created {len(products)} products")
        return Response({
            'created': len(products),
            'products': self.get_serializer(products, many=True).data,
        }, status=status.HTTP_201_CREATED)
