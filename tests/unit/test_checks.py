"""
Unit tests for the hosted backend configuration check
"""

from django.test import SimpleTestCase, override_settings

from farmsales_api.checks import check_hosted_backend_settings


class HostedBackendSettingsCheckTest(SimpleTestCase):

    @override_settings(SUPABASE_URL='https://farm.test', SUPABASE_KEY='key', INTERNAL_SEND_TOKEN='token')
    def test_all_settings_present(self):
        self.assertEqual(check_hosted_backend_settings(None), [])

    @override_settings(SUPABASE_URL='https://farm.test', SUPABASE_KEY='', INTERNAL_SEND_TOKEN='', PRODUCTION=False)
    def test_missing_settings_warn_in_development(self):
        messages = check_hosted_backend_settings(None)

        self.assertEqual(len(messages), 1)
        self.assertEqual(messages[0].id, 'farmsales.W001')
        self.assertIn('SUPABASE_KEY', messages[0].msg)
        self.assertIn('INTERNAL_SEND_TOKEN', messages[0].msg)

    @override_settings(SUPABASE_URL='', SUPABASE_KEY='key', INTERNAL_SEND_TOKEN='token', PRODUCTION=True)
    def test_missing_settings_fail_in_production(self):
        messages = check_hosted_backend_settings(None)

        self.assertEqual(messages[0].id, 'farmsales.E001')
        self.assertTrue(messages[0].is_serious())
