"""
Django REST Framework Exception Handler

Maps domain errors and DRF's own exceptions onto the standard error body:
{ success: false, error: { code, message, fields? }, request_id }
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional, Tuple, Type

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework.exceptions import (
    MethodNotAllowed,
    NotAcceptable,
    NotFound,
    ParseError,
    UnsupportedMediaType,
    ValidationError as DRFValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .errors import APIError, ErrorCode, ErrorEnvelope, format_validation_errors

logger = logging.getLogger(__name__)

VALIDATION_MESSAGE = "Validation failed. Please check your input."

# Checked in order; the first matching type wins.
DRF_ERROR_CODES: Tuple[Tuple[Type[Exception], ErrorCode, str], ...] = (
    (NotFound, ErrorCode.RESOURCE_NOT_FOUND, "Resource not found."),
    (Http404, ErrorCode.RESOURCE_NOT_FOUND, "Resource not found."),
    (MethodNotAllowed, ErrorCode.METHOD_NOT_ALLOWED, "Method not allowed."),
    (ParseError, ErrorCode.VALIDATION_ERROR, "Malformed request."),
    (UnsupportedMediaType, ErrorCode.VALIDATION_ERROR, "Unsupported media type."),
    (NotAcceptable, ErrorCode.VALIDATION_ERROR, "Requested format is not available."),
)


def _request_id(context: Dict[str, Any]) -> str:
    request = context.get("request")
    return getattr(request, "request_id", None) or str(uuid.uuid4())


def _validation_envelope(messages: Any) -> ErrorEnvelope:
    if not isinstance(messages, dict):
        messages = {"__all__": messages}
    return ErrorEnvelope(
        code=ErrorCode.VALIDATION_ERROR.value,
        message=VALIDATION_MESSAGE,
        fields=format_validation_errors(messages),
    )


def _describe(exc: Exception) -> ErrorEnvelope:
    if isinstance(exc, DRFValidationError):
        return _validation_envelope(exc.detail)

    detail = getattr(exc, "detail", None)
    for exc_type, code, default_message in DRF_ERROR_CODES:
        if isinstance(exc, exc_type):
            return ErrorEnvelope(code=code.value, message=str(detail) if detail else default_message)
    return ErrorEnvelope(
        code=ErrorCode.INTERNAL_ERROR.value,
        message=str(detail) if detail else "An error occurred.",
    )


def custom_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    request_id = _request_id(context)

    if isinstance(exc, APIError):
        exc.request_id = request_id
        logger.info(f"API error {exc.code} ({exc.status}): {exc.message}")
        return Response(exc.envelope().to_dict(), status=exc.status)

    if isinstance(exc, DjangoValidationError):
        envelope = _validation_envelope(exc.message_dict if hasattr(exc, "message_dict") else exc.messages)
        envelope.request_id = request_id
        return Response(envelope.to_dict(), status=400)

    response = exception_handler(exc, context)
    if response is None:
        # Unhandled: left to ErrorHandlingMiddleware.
        return None

    envelope = _describe(exc)
    envelope.request_id = request_id
    return Response(envelope.to_dict(), status=response.status_code)
