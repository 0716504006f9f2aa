"""
Domain errors and the DRF exception handler.

Every error the engine and the services raise is a SocialError subclass.
Client faults are raised before any pipeline stage touches the store;
UpstreamFailure is the only server fault and is never retried here.
"""
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from django.db import IntegrityError
import logging

logger = logging.getLogger(__name__)


class SocialError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid request.'

    def __init__(self, detail=None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidQuery(SocialError):
    """Malformed query or payload: blank search text, unknown sort field, missing mandatory filter."""
    default_detail = 'Invalid query.'


class InvalidReference(SocialError):
    """An id supplied by the caller is not a well-formed identifier."""
    default_detail = 'Invalid identifier.'


class NotFound(SocialError):
    """The mandatory root of a query (or the target of a write) does not exist."""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'


class PermissionDenied(SocialError):
    """A non-owner tried to modify an owned record."""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Only the owner can perform this action.'


class UpstreamFailure(SocialError):
    """The entity store itself failed (connectivity loss, driver error)."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'The data store is unavailable.'


def _domain_response(exc: SocialError) -> Response:
    if isinstance(exc, UpstreamFailure):
        logger.error(f"Upstream failure: {exc.detail}")
    return Response({'error': str(exc.detail)}, status=exc.status_code)


def custom_exception_handler(exc, context):
    """
    Render every error as {"error": message}.

    Domain errors carry their own status code. Errors DRF already knows
    (validation, authentication, throttling) keep DRF's status and move its
    payload under "details". Integrity violations that escaped a service
    become 409 and stray ValueErrors 400; anything else is logged and
    answered with an opaque 500.
    """
    if isinstance(exc, SocialError):
        return _domain_response(exc)

    response = exception_handler(exc, context)
    if response is not None:
        if not isinstance(response.data, dict) or 'error' not in response.data:
            response.data = {'error': str(exc), 'details': response.data}
        return response

    if isinstance(exc, IntegrityError):
        logger.warning(f"Integrity violation reached the API: {exc}")
        return Response(
            {'error': 'Conflicting write. The record may already exist.'},
            status=status.HTTP_409_CONFLICT
        )

    if isinstance(exc, ValueError):
        return Response({'error': str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    logger.exception(f"Unhandled exception: {exc}")
    return Response(
        {'error': 'An unexpected error occurred.'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
