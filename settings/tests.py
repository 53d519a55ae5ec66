from decimal import Decimal

from django.test import TestCase, override_settings
from rest_framework.test import APITestCase
from rest_framework import status

from accounts.models import Role, User
from .models import SystemSetting


class SystemSettingModelTest(TestCase):
    """Test SystemSetting model functionality"""

    def test_system_setting_str_representation(self):
        """Test system setting string representation"""
        setting = SystemSetting.objects.create(key='api_timeout', value='30')
        self.assertEqual(str(setting), "api_timeout: 30")

    def test_vat_rate_seeded_by_migration(self):
        """Test the default VAT rate is available after migrating"""
        self.assertEqual(SystemSetting.get_vat_rate(), Decimal('0.18'))

    @override_settings(DEFAULT_VAT_RATE='0.15')
    def test_vat_rate_falls_back_to_configured_default(self):
        """Test VAT rate falls back to settings when no row exists"""
        SystemSetting.objects.filter(key=SystemSetting.VAT_RATE).delete()
        self.assertEqual(SystemSetting.get_vat_rate(), Decimal('0.15'))

    def test_unreadable_vat_rate_uses_default(self):
        """Test a malformed stored value does not break VAT calculation"""
        SystemSetting.objects.update_or_create(key=SystemSetting.VAT_RATE, defaults={'value': 'eighteen'})
        self.assertEqual(SystemSetting.get_vat_rate(), Decimal('0.18'))


class SystemSettingsAPITest(APITestCase):
    """Test the system settings endpoint"""

    def setUp(self):
        self.admin = User.objects.create_user(
            email='admin@farm.test', password='testpass123', role=Role.ADMIN
        )
        self.rep = User.objects.create_user(
            email='rep@farm.test', password='testpass123', role=Role.SALES_REP
        )

    def test_any_authenticated_user_can_read_settings(self):
        """Test settings are readable by every role"""
        self.client.force_authenticate(user=self.rep)
        response = self.client.get('/api/settings/system-settings/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['vat_rate'], '0.18')

    def test_admin_updates_vat_rate(self):
        """Test an admin can change the VAT rate"""
        self.client.force_authenticate(user=self.admin)
        response = self.client.patch('/api/settings/system-settings/', {'vat_rate': '0.15'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(SystemSetting.get_vat_rate(), Decimal('0.15'))

    def test_sales_rep_cannot_update_vat_rate(self):
        """Test non-admin roles cannot change settings"""
        self.client.force_authenticate(user=self.rep)
        response = self.client.patch('/api/settings/system-settings/', {'vat_rate': '0.05'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(SystemSetting.get_vat_rate(), Decimal('0.18'))

    def test_vat_rate_out_of_range_rejected(self):
        """Test VAT rate must be a fraction"""
        self.client.force_authenticate(user=self.admin)
        response = self.client.patch('/api/settings/system-settings/', {'vat_rate': '18'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_vat_rate_must_be_a_number(self):
        """Test non-numeric and non-finite VAT rates are rejected"""
        self.client.force_authenticate(user=self.admin)

        for value in ['eighteen', 'NaN', 'sNaN', 'Infinity', '-0.05']:
            response = self.client.patch('/api/settings/system-settings/', {'vat_rate': value}, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, value)
            self.assertIn('vat_rate', response.data)

        self.assertEqual(SystemSetting.get_vat_rate(), Decimal('0.18'))

    def test_vat_rate_required(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.patch('/api/settings/system-settings/', {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
