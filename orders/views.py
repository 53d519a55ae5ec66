import logging

from django.db.models import Count, F, Q, Sum
from django.shortcuts import get_object_or_404
from rest_framework import status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import (
    ORDER_STATUS_EDITORS, ORDER_SUPERVISORS, ORDER_WRITERS, REPORT_READERS, RolePolicyPermission, user_has_role,
)
from notifications.services import send_order_receipt
from products.models import Product
from . import reports, services, workflow
from .models import Order, OrderItem, OrderReturn, Vehicle
from .serializers import (
    AssignOrderSerializer, OrderCreateSerializer, OrderReturnSerializer, OrderSerializer,
    OrderUpdateSerializer, PaymentConfirmationSerializer, ReturnRequestSerializer,
    SecurityCheckSerializer, StatusUpdateSerializer, VehicleSerializer,
)

logger = logging.getLogger(__name__)


class OrderViewSet(viewsets.ModelViewSet):
    """
    Sales orders and their workflow.

    Orders are never deleted; cancel them through update-status instead.
    Status changes go through orders.workflow so the stock and security
    bookkeeping stays consistent.
    """
    serializer_class = OrderSerializer
    permission_classes = [RolePolicyPermission]
    http_method_names = ['get', 'post', 'patch', 'head', 'options']
    role_policy = {
        'create': ORDER_WRITERS,
        'update': ORDER_WRITERS,
        'update_status': ORDER_STATUS_EDITORS,
        'security_check': ORDER_STATUS_EDITORS,
        'bypass_security': ORDER_STATUS_EDITORS,
        'assign': ORDER_WRITERS,
        'confirm_payment': ORDER_WRITERS,
        'returns': ORDER_WRITERS,
    }

    def get_queryset(self):
        queryset = Order.objects.select_related(
            'customer', 'created_by', 'assigned_to', 'completed_by'
        ).prefetch_related('items__product')

        # Filter by status, comma separated for the security gate screens
        status_param = self.request.query_params.get('status')
        if status_param:
            queryset = queryset.filter(status__in=[s.strip() for s in status_param.split(',') if s.strip()])

        assigned_to = self.request.query_params.get('assigned_to')
        if assigned_to:
            queryset = queryset.filter(assigned_to_id=assigned_to)

        customer = self.request.query_params.get('customer')
        if customer:
            queryset = queryset.filter(customer_id=customer)

        payment_status = self.request.query_params.get('payment_status')
        if payment_status:
            queryset = queryset.filter(payment_status=payment_status)

        date_from = self.request.query_params.get('date_from')
        if date_from:
            queryset = queryset.filter(created_at__date__gte=date_from)
        date_to = self.request.query_params.get('date_to')
        if date_to:
            queryset = queryset.filter(created_at__date__lte=date_to)

        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(order_display_id__icontains=search) | Q(customer__name__icontains=search) |
                Q(request_id__icontains=search) | Q(receipt_no__icontains=search) |
                Q(vehicle_number__icontains=search)
            )

        return queryset

    def create(self, request, *args, **kwargs):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = services.create_order(
            request.user,
            data['customer'],
            data['items'],
            assigned_to=data.get('assigned_to'),
            vehicle_number=data.get('vehicle_number', ''),
            request_id=data.get('request_id', ''),
            delivery_date=data.get('delivery_date'),
        )
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        order = self.get_object()
        if order.is_terminal:
            return Response(
                {'error': f"Cannot edit an order that is '{order.status}'"},
                status=status.HTTP_400_BAD_REQUEST
            )
        serializer = OrderUpdateSerializer(order, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=['patch'], url_path='update-status')
    def update_status(self, request, pk=None):
        """Move the order to any allowed status, within the caller's role limits"""
        order = self.get_object()
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = workflow.change_status(
            order, data['status'], request.user,
            reasons=data.get('reasons'), custom_note=data.get('custom_note'),
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=['post'], url_path='security-check')
    def security_check(self, request, pk=None):
        """Record the result of the security gate check"""
        order = self.get_object()
        serializer = SecurityCheckSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = workflow.record_security_check(
            order, request.user, passed=data['result'] == 'completed',
            reasons=data.get('reasons'), custom_note=data.get('custom_note'),
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=['post'], url_path='bypass-security')
    def bypass_security(self, request, pk=None):
        """Release an order held at the gate outside working hours"""
        order = self.get_object()
        order = workflow.bypass_security_check(order, request.user)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=['post'])
    def assign(self, request, pk=None):
        order = self.get_object()
        serializer = AssignOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = services.assign_order(
            order, request.user,
            assigned_to=data.get('assigned_to'), vehicle_number=data.get('vehicle_number', ''),
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=['post'], url_path='confirm-payment')
    def confirm_payment(self, request, pk=None):
        """Take payment on delivery, issue a receipt number and email the receipt"""
        order = self.get_object()
        serializer = PaymentConfirmationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = workflow.confirm_payment(order, request.user, data['payment_method'], data['collected_amount'])

        # Sent after the payment commits; a failed email does not undo the payment
        email_result = send_order_receipt(order)
        return Response({
            'order': OrderSerializer(order).data,
            'email': email_result,
        })

    @action(detail=True, methods=['get', 'post'])
    def returns(self, request, pk=None):
        """List the returns on an order, or return part of a line"""
        order = self.get_object()

        if request.method == 'GET':
            order_returns = OrderReturn.objects.filter(order_item__order=order).select_related(
                'order_item__product', 'returned_by'
            )
            return Response(OrderReturnSerializer(order_returns, many=True).data)

        serializer = ReturnRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order_item = get_object_or_404(OrderItem, pk=data['order_item'], order=order)
        order_return = services.process_return(
            order_item, request.user, data['returned_quantity'], data['return_reason']
        )
        return Response(OrderReturnSerializer(order_return).data, status=status.HTTP_201_CREATED)


class VehicleViewSet(viewsets.ModelViewSet):
    serializer_class = VehicleSerializer
    permission_classes = [RolePolicyPermission]
    role_policy = {'create': ORDER_SUPERVISORS, 'update': ORDER_SUPERVISORS, 'destroy': ORDER_SUPERVISORS}
    pagination_class = None

    def get_queryset(self):
        queryset = Vehicle.objects.select_related('sales_rep').all()

        vehicle_status = self.request.query_params.get('status')
        if vehicle_status:
            queryset = queryset.filter(status=vehicle_status)

        sales_rep = self.request.query_params.get('sales_rep')
        if sales_rep:
            queryset = queryset.filter(sales_rep_id=sales_rep)

        return queryset

    def perform_create(self, serializer):
        vehicle = serializer.save()
        logger.info(f"[VEHICLE] {self.request.user.email} added {vehicle.vehicle_number}")


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    """Order counts by status, collected revenue and low stock count"""
    status_counts = {value: 0 for value in Order.STATUSES}
    for row in Order.objects.values('status').annotate(count=Count('id')):
        status_counts[row['status']] = row['count']

    paid = Order.objects.filter(
        payment_status__in=['partially_paid', 'fully_paid']
    ).exclude(status=Order.CANCELLED)
    revenue = paid.aggregate(total=Sum('collected_amount'))['total'] or 0

    return Response({
        'total_orders': sum(status_counts.values()),
        'orders_by_status': status_counts,
        'paid_orders': paid.count(),
        'revenue': revenue,
        'unpaid_orders': Order.objects.filter(payment_status='unpaid').exclude(status=Order.CANCELLED).count(),
        'low_stock_count': Product.objects.filter(quantity__lte=F('threshold')).count(),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sales_report(request):
    """Completed sales per day and top products for the last day, week or 30 days"""
    if not user_has_role(request.user, REPORT_READERS):
        return Response(
            {'error': 'You do not have permission to view sales reports'},
            status=status.HTTP_403_FORBIDDEN
        )

    range_name = request.query_params.get('range', 'month')
    if range_name not in reports.RANGE_DAYS:
        return Response(
            {'error': f"range must be one of: {', '.join(reports.RANGE_DAYS)}"},
            status=status.HTTP_400_BAD_REQUEST
        )

    start, end = reports.report_window(range_name)
    return Response({
        'range': range_name,
        'start': start,
        'end': end,
        **reports.completed_sales(start, end),
    })
