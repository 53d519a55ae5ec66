import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from sequences.exceptions import SequenceError

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """
    DRF exception handler that turns constraint violations into 400 responses.

    Model validation errors, database integrity errors and display-ID
    generation failures are rejected per request so the caller can resubmit.
    """
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get('view')
    view_name = view.__class__.__name__ if view else 'unknown'

    if isinstance(exc, DjangoValidationError):
        details = exc.message_dict if hasattr(exc, 'error_dict') else exc.messages
        logger.info(f"[{view_name}] Validation failed: {details}")
        return Response(
            {'error': 'Validation failed', 'details': details},
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, SequenceError):
        logger.warning(f"[{view_name}] Display ID generation failed: {exc}")
        return Response(
            {'error': 'Display ID generation failed', 'details': str(exc)},
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, IntegrityError):
        logger.warning(f"[{view_name}] Constraint violation: {exc}")
        return Response(
            {'error': 'Constraint violation', 'details': str(exc)},
            status=status.HTTP_400_BAD_REQUEST,
        )

    return None
