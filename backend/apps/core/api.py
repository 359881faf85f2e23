"""
Uniform JSON envelope for API responses.

Success: {"success": true, "data": ..., ...}
Failure: {"success": false, "message": ..., "error_code": ...}
"""
import logging

from django.core.exceptions import RequestDataTooBig
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from apps.core.services.base import ServiceException, ServiceResult

logger = logging.getLogger(__name__)


def success_response(data=None, message=None, status_code=status.HTTP_200_OK, **extra):
    """Build a success envelope."""
    body = {'success': True}
    if message:
        body['message'] = message
    if data is not None:
        body['data'] = data
    body.update(extra)
    return Response(body, status=status_code)


def error_response(message, status_code=status.HTTP_400_BAD_REQUEST,
                   error_code=None, details=None):
    """Build a failure envelope."""
    body = {'success': False, 'message': message}
    if error_code:
        body['error_code'] = error_code
    if details:
        body['details'] = details
    return Response(body, status=status_code)


def result_error_response(result: ServiceResult):
    """Turn a failed ServiceResult into a failure envelope."""
    return error_response(
        result.error or 'Request failed',
        status_code=result.status_code or status.HTTP_400_BAD_REQUEST,
        error_code=result.error_code,
        details=result.details
    )


def _first_error_message(detail):
    """Flatten DRF validation detail into one readable message."""
    if isinstance(detail, dict):
        for field, value in detail.items():
            message = _first_error_message(value)
            if field in ('non_field_errors', 'detail'):
                return message
            return f"{field}: {message}"
    if isinstance(detail, (list, tuple)) and detail:
        return _first_error_message(detail[0])
    return str(detail)


def exception_handler(exc, context):
    """
    DRF exception handler that renders every error in the failure envelope.
    """
    if isinstance(exc, ServiceException):
        return error_response(
            exc.message,
            status_code=exc.status_code,
            error_code=exc.code,
            details=exc.details
        )

    if isinstance(exc, RequestDataTooBig):
        return error_response(
            'Uploaded file is too large',
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            error_code='PAYLOAD_TOO_LARGE'
        )

    if isinstance(exc, Http404):
        exc = exceptions.NotFound()

    response = drf_exception_handler(exc, context)
    if response is None:
        view = context.get('view')
        logger.error(
            f"Unhandled error in {view.__class__.__name__ if view else 'view'}",
            exc_info=exc
        )
        return error_response(
            'Internal Server Error',
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code='INTERNAL_ERROR'
        )

    if isinstance(exc, exceptions.ValidationError):
        message = _first_error_message(exc.detail)
        error_code = 'VALIDATION_ERROR'
    else:
        message = _first_error_message(exc.detail) if hasattr(exc, 'detail') else str(exc)
        error_code = getattr(exc, 'default_code', 'error').upper()

    response.data = {
        'success': False,
        'message': message,
        'error_code': error_code,
    }
    return response
