import logging
from datetime import timedelta

from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.models import Role
from accounts.permissions import (
    ADMINS, CUSTOMER_WRITERS, ORDER_SUPERVISORS, REPORT_READERS, PolicyScopedMixin, RolePolicyPermission,
    user_has_role,
)
from notifications.services import send_on_demand_receipt
from . import reports, services
from .models import OnDemandAssignment, OnDemandAssignmentItem, OnDemandOrder
from .serializers import (
    AssignmentCreateSerializer, OnDemandAssignmentItemSerializer, OnDemandAssignmentSerializer,
    OnDemandOrderCreateSerializer, OnDemandOrderSerializer, ReturnStockSerializer, StockRequestSerializer,
)

logger = logging.getLogger(__name__)


class OnDemandAssignmentViewSet(PolicyScopedMixin, viewsets.ReadOnlyModelViewSet):
    """
    Stock assignments for field sales.

    Sales reps see only their own assignments. Assignments are created by
    supervisors, or requested by a sales rep through the request action.
    """
    serializer_class = OnDemandAssignmentSerializer
    permission_classes = [RolePolicyPermission]
    role_policy = {
        'create': ORDER_SUPERVISORS,
        'request_stock': (Role.SALES_REP,),
        'cancel': ORDER_SUPERVISORS,
        'complete': ORDER_SUPERVISORS,
    }

    def get_queryset(self):
        queryset = OnDemandAssignment.objects.select_related('sales_rep', 'assigned_by').prefetch_related(
            'items__product__category'
        )
        if not user_has_role(self.request.user, ORDER_SUPERVISORS):
            queryset = queryset.filter(sales_rep=self.request.user)

        assignment_status = self.request.query_params.get('status')
        if assignment_status:
            queryset = queryset.filter(status=assignment_status)

        sales_rep = self.request.query_params.get('sales_rep')
        if sales_rep:
            queryset = queryset.filter(sales_rep_id=sales_rep)

        assignment_type = self.request.query_params.get('assignment_type')
        if assignment_type:
            queryset = queryset.filter(assignment_type=assignment_type)

        assignment_date = self.request.query_params.get('assignment_date')
        if assignment_date:
            queryset = queryset.filter(assignment_date=assignment_date)

        return queryset

    def create(self, request, *args, **kwargs):
        serializer = AssignmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        assignment = services.create_assignment(
            request.user,
            data.get('sales_rep'),
            data['items'],
            notes=data.get('notes', ''),
            vehicle_number=data.get('vehicle_number', ''),
            assignment_date=data.get('assignment_date'),
        )
        return Response(OnDemandAssignmentSerializer(assignment).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'], url_path='request')
    def request_stock(self, request):
        """A sales rep loads stock for themselves"""
        serializer = StockRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        assignment = services.request_stock(
            request.user, data['items'], notes=data.get('notes', ''), vehicle_number=data.get('vehicle_number', ''),
        )
        return Response(OnDemandAssignmentSerializer(assignment).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        assignment = services.cancel_assignment(self.get_object(), request.user)
        return Response(OnDemandAssignmentSerializer(assignment).data)

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        assignment = services.complete_assignment(self.get_object(), request.user)
        return Response(OnDemandAssignmentSerializer(assignment).data)


class OnDemandAssignmentItemViewSet(viewsets.ReadOnlyModelViewSet):
    """Assignment lines are readable by everyone; returns go through the return action"""
    serializer_class = OnDemandAssignmentItemSerializer
    permission_classes = [RolePolicyPermission]
    role_policy = {'return_stock': ADMINS + (Role.SALES_REP,)}

    def get_queryset(self):
        queryset = OnDemandAssignmentItem.objects.select_related('assignment', 'product__category')

        assignment = self.request.query_params.get('assignment')
        if assignment:
            queryset = queryset.filter(assignment_id=assignment)

        sales_rep = self.request.query_params.get('sales_rep')
        if sales_rep:
            queryset = queryset.filter(assignment__sales_rep_id=sales_rep)

        active = self.request.query_params.get('active')
        if active is not None and active.lower() == 'true':
            queryset = queryset.filter(assignment__status='active')

        return queryset.order_by('-created_at')

    @action(detail=True, methods=['post'], url_path='return')
    def return_stock(self, request, pk=None):
        """Put unsold stock from this line back into the product table"""
        serializer = ReturnStockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        item = services.return_stock(self.get_object(), request.user, serializer.validated_data['quantity'])
        return Response(OnDemandAssignmentItemSerializer(item).data)


class OnDemandOrderViewSet(PolicyScopedMixin, mixins.CreateModelMixin, viewsets.ReadOnlyModelViewSet):
    serializer_class = OnDemandOrderSerializer
    permission_classes = [RolePolicyPermission]
    role_policy = {'create': CUSTOMER_WRITERS}

    def get_queryset(self):
        queryset = OnDemandOrder.objects.select_related(
            'assignment_item__product', 'assignment_item__assignment', 'sales_rep', 'existing_customer'
        )
        if not user_has_role(self.request.user, ORDER_SUPERVISORS):
            queryset = queryset.filter(sales_rep=self.request.user)

        sales_rep = self.request.query_params.get('sales_rep')
        if sales_rep:
            queryset = queryset.filter(sales_rep_id=sales_rep)

        date_from = self.request.query_params.get('date_from')
        if date_from:
            queryset = queryset.filter(sale_date__date__gte=date_from)
        date_to = self.request.query_params.get('date_to')
        if date_to:
            queryset = queryset.filter(sale_date__date__lte=date_to)

        return queryset

    def create(self, request, *args, **kwargs):
        serializer = OnDemandOrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        sale = services.record_sale(
            request.user,
            data['assignment_item'],
            data['quantity_sold'],
            data['selling_price'],
            customer_name=data.get('customer_name', ''),
            customer_phone=data.get('customer_phone', ''),
            customer_type=data['customer_type'],
            existing_customer=data.get('existing_customer'),
            payment_method=data.get('payment_method'),
            notes=data.get('notes', ''),
        )

        response_data = {'order': OnDemandOrderSerializer(sale).data}
        if data.get('send_receipt_to') or sale.existing_customer_id:
            response_data['email'] = send_on_demand_receipt(sale, recipient_email=data.get('send_receipt_to') or None)
        return Response(response_data, status=status.HTTP_201_CREATED)


def _report_range(request):
    """Date range from the query string; defaults to the last 30 days"""
    today = timezone.localdate()
    date_from = parse_date(request.query_params.get('start_date', '') or '') or today - timedelta(days=30)
    date_to = parse_date(request.query_params.get('end_date', '') or '') or today
    return date_from, date_to


def _report_scope(request):
    # Sales reps only ever see their own figures
    if user_has_role(request.user, REPORT_READERS):
        return None
    return request.user


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def overview_report(request):
    """Per sales rep totals for on-demand assignments in a date range"""
    date_from, date_to = _report_range(request)
    if date_from > date_to:
        return Response({'error': 'start_date must be on or before end_date'}, status=status.HTTP_400_BAD_REQUEST)

    scope = _report_scope(request)
    return Response({
        'start_date': date_from,
        'end_date': date_to,
        'sales_reps': reports.sales_rep_overview(date_from, date_to, sales_rep=scope),
        'assignments': reports.active_assignment_summary(sales_rep=scope),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_sales_report(request):
    """Per product on-demand sales in a date range"""
    date_from, date_to = _report_range(request)
    if date_from > date_to:
        return Response({'error': 'start_date must be on or before end_date'}, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        'start_date': date_from,
        'end_date': date_to,
        'products': reports.product_sales(date_from, date_to, sales_rep=_report_scope(request)),
    })
