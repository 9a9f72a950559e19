"""
giftsite.errors

Error taxonomy shared by every app, plus the DRF exception handler that turns
any error raised inside an API view into the uniform envelope:

    {"success": false, "error": "<message>", "code": "<code>", "retryable": <bool>}

Stack traces never reach the client; unexpected errors are logged here.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response

logger = logging.getLogger("giftsite.errors")


class GiftsiteError(Exception):
    status_code = 500
    code = "error"
    retryable = False
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)


class ValidationError(GiftsiteError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid request"


class NotFoundError(GiftsiteError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class ConflictError(GiftsiteError):
    status_code = 409
    code = "conflict"
    retryable = True
    default_message = "This name was just taken, please pick another one"


class ExternalServiceError(GiftsiteError):
    status_code = 502
    code = "external_service_error"
    retryable = True
    default_message = "Payment service is unavailable, please try again"


class TransactionError(GiftsiteError):
    status_code = 500
    code = "transaction_error"
    retryable = True
    default_message = "Could not save your order, please try again"


class PaymentTimeoutError(GiftsiteError):
    status_code = 504
    code = "payment_timeout"
    default_message = "Payment status is unknown, please check back later or contact support"


def error_payload(message: str, code: str, retryable: bool = False) -> Dict[str, Any]:
    return {"success": False, "error": message, "code": code, "retryable": retryable}


def first_error_message(detail: Any) -> str:
    """Flatten DRF's nested error detail into one readable message."""
    if isinstance(detail, dict):
        for field, value in detail.items():
            msg = first_error_message(value)
            if field in ("non_field_errors", "detail"):
                return msg
            return f"{field}: {msg}"
        return "Invalid request"
    if isinstance(detail, (list, tuple)):
        return first_error_message(detail[0]) if detail else "Invalid request"
    return str(detail)


def api_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    if isinstance(exc, GiftsiteError):
        if exc.status_code >= 500:
            logger.error("%s: %s context=%s", type(exc).__name__, exc.message, exc.context)
        return Response(error_payload(exc.message, exc.code, exc.retryable), status=exc.status_code)

    if isinstance(exc, Http404):
        exc = drf_exceptions.NotFound()

    if isinstance(exc, drf_exceptions.APIException):
        code = exc.default_code if isinstance(exc.default_code, str) else "error"
        return Response(error_payload(first_error_message(exc.detail), code), status=exc.status_code)

    view = context.get("view")
    logger.exception("Unhandled error in %s", type(view).__name__ if view else "api")
    return Response(error_payload(GiftsiteError.default_message, GiftsiteError.code), status=500)
