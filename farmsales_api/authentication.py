"""
Custom authentication classes for the Farm Sales API
"""
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication


class DeviceBoundJWTAuthentication(JWTAuthentication):
    """
    JWT authentication that also honours a user's bound device.

    Users with a device_id on record must send the same value in the
    X-Device-Id header. Users without one authenticate with the token alone.
    """

    def authenticate(self, request):
        result = super().authenticate(request)
        if result is None:
            return None

        user, token = result
        bound_device = getattr(user, 'device_id', '') or ''
        if bound_device:
            sent_device = request.META.get('HTTP_X_DEVICE_ID', '')
            if sent_device != bound_device:
                raise AuthenticationFailed('This account is bound to a different device')

        return (user, token)
