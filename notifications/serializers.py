from rest_framework import serializers

from .models import EmailLog


class EmailLogSerializer(serializers.ModelSerializer):
    order_display_id = serializers.CharField(source='order.order_display_id', read_only=True, default=None)
    on_demand_order_display_id = serializers.CharField(
        source='on_demand_order.on_demand_order_display_id', read_only=True, default=None
    )

    class Meta:
        model = EmailLog
        fields = [
            'id', 'order', 'order_display_id', 'on_demand_order', 'on_demand_order_display_id',
            'recipient_email', 'recipient_name', 'email_type', 'subject', 'status',
            'error_message', 'sent_at', 'retry_count', 'metadata', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class ResendReceiptSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False, allow_blank=True, default='')
