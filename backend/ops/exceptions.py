"""
API exception handling.

Configured as REST_FRAMEWORK["EXCEPTION_HANDLER"].

- LedgerError subclasses become {"detail", "code"} with their own status.
- DRF and Django HTTP errors keep DRF's default handling.
- Anything else is logged with request context and answered with a
  generic 500, so ledger internals never reach the client.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from accounting.exceptions import LedgerError

logger = logging.getLogger(__name__)


def ledger_error_response(exc: LedgerError) -> Response:
    return Response(
        {"detail": exc.message, "code": exc.code},
        status=exc.status_code,
    )


def api_exception_handler(exc, context):
    if isinstance(exc, LedgerError):
        return ledger_error_response(exc)

    response = exception_handler(exc, context)
    if response is not None:
        return response

    request = context.get("request")
    view = context.get("view")
    logger.exception(
        f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}",
        extra={
            "method": getattr(request, "method", None),
            "path": getattr(request, "path", None),
            "view": view.__class__.__name__ if view else None,
        },
    )
    return Response(
        {"detail": "Internal server error.", "code": "internal_error"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
