from decimal import Decimal

from rest_framework import serializers


class VatRateSerializer(serializers.Serializer):
    vat_rate = serializers.DecimalField(max_digits=None, decimal_places=None, min_value=Decimal('0'))

    def validate_vat_rate(self, value):
        if value >= 1:
            raise serializers.ValidationError('vat_rate must be a fraction between 0 and 1')
        return value
