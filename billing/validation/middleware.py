"""
Error Handling Middleware

Last line of defence for JSON callers: domain errors raised outside DRF views
and unexpected exceptions become the standard error envelope. Browser
requests (admin) keep Django's own error pages.
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable, Optional

from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse

from .errors import APIError, ErrorCode, ErrorEnvelope

logger = logging.getLogger(__name__)

JSON_PATH_PREFIXES = ("/api/", "/health/")
GENERIC_MESSAGE = "An unexpected error occurred. Please try again later."


def wants_json(request: HttpRequest) -> bool:
    if request.path.startswith(JSON_PATH_PREFIXES):
        return True
    return "application/json" in request.headers.get("Accept", "")


class ErrorHandlingMiddleware:
    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        return self.get_response(request)

    def process_exception(self, request: HttpRequest, exc: Exception) -> Optional[JsonResponse]:
        if not wants_json(request):
            return None

        request_id = getattr(request, "request_id", None) or str(uuid.uuid4())

        if isinstance(exc, APIError):
            exc.request_id = request_id
            return exc.to_json_response()

        logger.exception(f"Unhandled exception on {request.method} {request.path}")
        message = f"{type(exc).__name__}: {exc}" if settings.DEBUG else GENERIC_MESSAGE
        envelope = ErrorEnvelope(ErrorCode.INTERNAL_ERROR.value, message, request_id=request_id)
        return envelope.to_json_response(500)
