import logging

from django.db import transaction
from django.db.models import Q
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from accounts.permissions import ADMINS, CUSTOMER_WRITERS, RolePolicyPermission
from .models import ContactPerson, Customer
from .serializers import ContactPersonSerializer, CustomerSerializer

logger = logging.getLogger(__name__)


class CustomerViewSet(viewsets.ModelViewSet):
    """
    ViewSet for managing customers
    Sales reps and admins can add and edit customers; only admins delete them
    """
    serializer_class = CustomerSerializer
    permission_classes = [RolePolicyPermission]
    role_policy = {'create': CUSTOMER_WRITERS, 'update': CUSTOMER_WRITERS, 'destroy': ADMINS}

    def get_queryset(self):
        queryset = Customer.objects.prefetch_related('contact_persons').all()

        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(address__icontains=search) |
                Q(phone_number__icontains=search) | Q(email__icontains=search) |
                Q(customer_display_id__icontains=search) | Q(tin_number__icontains=search)
            )

        category = self.request.query_params.get('customer_category')
        if category:
            queryset = queryset.filter(customer_category=category)

        vat_status = self.request.query_params.get('vat_status')
        if vat_status:
            queryset = queryset.filter(vat_status=vat_status)

        return queryset

    def perform_create(self, serializer):
        customer = serializer.save()
        logger.info(f"[CUSTOMER] {self.request.user.email} created {customer.customer_display_id} {customer.name}")

    @action(detail=False, methods=['post'])
    def bulk(self, request):
        """Create a batch of customers with their contact persons, all or nothing"""
        serializer = self.get_serializer(data=request.data, many=True, allow_empty=False)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            customers = serializer.save()

        logger.info(f"[CUSTOMER] {request.user.email} bulk created {len(customers)} customers")
        return Response({
            'created': len(customers),
            'customers': self.get_serializer(customers, many=True).data,
        }, status=status.HTTP_201_CREATED)


class ContactPersonViewSet(viewsets.ModelViewSet):
    serializer_class = ContactPersonSerializer
    permission_classes = [RolePolicyPermission]
    role_policy = {'create': CUSTOMER_WRITERS, 'update': CUSTOMER_WRITERS, 'destroy': ADMINS}

    def get_queryset(self):
        queryset = ContactPerson.objects.select_related('customer').all()
        customer = self.request.query_params.get('customer')
        if customer:
            queryset = queryset.filter(customer_id=customer)
        return queryset
