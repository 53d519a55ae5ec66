"""
Unit tests for device bound JWT authentication
"""

from django.test import TestCase, RequestFactory
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import Role, User
from farmsales_api.authentication import DeviceBoundJWTAuthentication


class DeviceBoundJWTAuthenticationTest(TestCase):
    """Test that bound devices must present their device ID"""

    def setUp(self):
        self.factory = RequestFactory()
        self.auth = DeviceBoundJWTAuthentication()
        self.user = User.objects.create_user(email='rep@farm.test', password='testpass123', role=Role.SALES_REP)
        self.token = str(AccessToken.for_user(self.user))

    def request(self, device_id=None):
        headers = {'HTTP_AUTHORIZATION': f'Bearer {self.token}'}
        if device_id is not None:
            headers['HTTP_X_DEVICE_ID'] = device_id
        return self.factory.get('/api/auth/profile/', **headers)

    def test_unbound_user_authenticates_with_token(self):
        user, _ = self.auth.authenticate(self.request())
        self.assertEqual(user, self.user)

    def test_no_token_returns_none(self):
        self.assertIsNone(self.auth.authenticate(self.factory.get('/api/auth/profile/')))

    def test_bound_user_with_matching_device(self):
        self.user.device_id = 'tablet-07'
        self.user.save()

        user, _ = self.auth.authenticate(self.request(device_id='tablet-07'))
        self.assertEqual(user, self.user)

    def test_bound_user_with_other_device(self):
        self.user.device_id = 'tablet-07'
        self.user.save()

        with self.assertRaises(AuthenticationFailed):
            self.auth.authenticate(self.request(device_id='phone-99'))

        with self.assertRaises(AuthenticationFailed):
            self.auth.authenticate(self.request())
