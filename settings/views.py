from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from accounts.permissions import ADMINS, user_has_role
from .models import SystemSetting
from .serializers import VatRateSerializer


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def system_settings(request):
    """Get or update system settings (VAT rate)"""
    if request.method == 'GET':
        settings_data = {
            setting.key: setting.value
            for setting in SystemSetting.objects.all()
        }
        settings_data[SystemSetting.VAT_RATE] = str(SystemSetting.get_vat_rate())
        return Response(settings_data)

    if not user_has_role(request.user, ADMINS):
        return Response(
            {'error': 'Only administrators can change system settings'},
            status=status.HTTP_403_FORBIDDEN
        )

    serializer = VatRateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    vat_rate = serializer.validated_data['vat_rate']

    SystemSetting.objects.update_or_create(
        key=SystemSetting.VAT_RATE,
        defaults={'value': str(vat_rate), 'description': 'VAT rate applied to VAT registered customers'},
    )
    return Response({SystemSetting.VAT_RATE: str(vat_rate)})
