import logging

from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status, viewsets
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.models import Role
from accounts.permissions import EMAIL_LOG_READERS, ORDER_WRITERS, PolicyScopedMixin, user_has_role
from ondemand.models import OnDemandOrder
from orders.models import Order
from .models import EmailLog
from .serializers import EmailLogSerializer, ResendReceiptSerializer
from .services import send_on_demand_receipt, send_order_receipt

logger = logging.getLogger(__name__)

RECEIPT_SENDERS = ORDER_WRITERS + (Role.FINANCE_ADMIN,)


class EmailLogViewSet(PolicyScopedMixin, viewsets.ReadOnlyModelViewSet):
    """
    Email delivery history.

    Super Admin, Admin and Finance Admin see every log; sales reps see the
    logs for their own orders and field sales.
    """
    serializer_class = EmailLogSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        user = self.request.user
        queryset = EmailLog.objects.select_related('order', 'on_demand_order')

        if user_has_role(user, EMAIL_LOG_READERS):
            pass
        elif user_has_role(user, (Role.SALES_REP,)):
            queryset = queryset.filter(Q(order__assigned_to=user) | Q(on_demand_order__sales_rep=user))
        else:
            queryset = queryset.none()

        log_status = self.request.query_params.get('status')
        if log_status:
            queryset = queryset.filter(status=log_status)

        order = self.request.query_params.get('order')
        if order:
            queryset = queryset.filter(order_id=order)

        on_demand_order = self.request.query_params.get('on_demand_order')
        if on_demand_order:
            queryset = queryset.filter(on_demand_order_id=on_demand_order)

        return queryset


def _receipt_response(result):
    if result.get('success'):
        return Response(result)
    if result.get('skipped'):
        return Response(result, status=status.HTTP_400_BAD_REQUEST)
    return Response(result, status=status.HTTP_502_BAD_GATEWAY)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def resend_order_receipt(request, order_id):
    """Send the receipt for a paid order again"""
    if not user_has_role(request.user, RECEIPT_SENDERS):
        return Response({'error': 'You do not have permission to send receipts'}, status=status.HTTP_403_FORBIDDEN)

    order = get_object_or_404(Order.objects.select_related('customer', 'assigned_to'), pk=order_id)
    last_log = order.email_logs.order_by('-created_at').first()

    logger.info(f"[EMAIL] {request.user.email} resending receipt for {order.order_display_id}")
    return _receipt_response(send_order_receipt(order, log=last_log))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def resend_on_demand_receipt(request, order_id):
    """Send the receipt for a field sale again, optionally to a different address"""
    if not user_has_role(request.user, RECEIPT_SENDERS):
        return Response({'error': 'You do not have permission to send receipts'}, status=status.HTTP_403_FORBIDDEN)

    serializer = ResendReceiptSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    on_demand_order = get_object_or_404(
        OnDemandOrder.objects.select_related('assignment_item__product', 'assignment_item__assignment', 'sales_rep'),
        pk=order_id,
    )
    if request.user.role == Role.SALES_REP and on_demand_order.sales_rep_id != request.user.pk:
        return Response({'error': 'You do not have permission to send receipts'}, status=status.HTTP_403_FORBIDDEN)

    email = serializer.validated_data.get('email') or None
    last_log = on_demand_order.email_logs.order_by('-created_at').first()

    logger.info(f"[EMAIL] {request.user.email} resending receipt for {on_demand_order.on_demand_order_display_id}")
    return _receipt_response(send_on_demand_receipt(on_demand_order, recipient_email=email, log=last_log))
