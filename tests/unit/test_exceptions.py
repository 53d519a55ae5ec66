"""
Unit tests for the API exception handler
"""

from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.test import SimpleTestCase
from rest_framework import status
from rest_framework.exceptions import NotFound

from farmsales_api.exceptions import api_exception_handler
from sequences.exceptions import InvalidCategoryCode


class ApiExceptionHandlerTest(SimpleTestCase):
    """Test constraint violations become 400 responses"""

    context = {'view': None}

    def test_model_validation_error(self):
        response = api_exception_handler(ValidationError({'status': ['Not allowed.']}), self.context)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Validation failed')
        self.assertEqual(response.data['details'], {'status': ['Not allowed.']})

    def test_plain_validation_error(self):
        response = api_exception_handler(ValidationError('Insufficient stock'), self.context)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['details'], ['Insufficient stock'])

    def test_integrity_error(self):
        response = api_exception_handler(IntegrityError('CHECK constraint failed: orders_status_check'), self.context)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Constraint violation')

    def test_sequence_error(self):
        response = api_exception_handler(InvalidCategoryCode('ZZ'), self.context)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("'ZZ'", response.data['details'])

    def test_drf_exceptions_pass_through(self):
        response = api_exception_handler(NotFound(), self.context)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_unhandled_errors_left_alone(self):
        self.assertIsNone(api_exception_handler(KeyError('boom'), self.context))
