"""
Request correlation for logs.

Every request carries an id, taken from the ``X-Request-ID`` header when the
caller supplies a usable one, generated otherwise. The id is stamped on log
records through ``RequestIDFilter``, returned in the response header and
included in API error bodies.
"""

import logging
import re
import threading
import uuid

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
NO_REQUEST_ID = "no-id"
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")

_thread_locals = threading.local()


class RequestIDFilter(logging.Filter):
    def filter(self, record):
        record.request_id = getattr(_thread_locals, "request_id", NO_REQUEST_ID)
        return True


def _incoming_request_id(request) -> str:
    candidate = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if candidate and _VALID_REQUEST_ID.match(candidate):
        return candidate
    return str(uuid.uuid4())


class RequestIDMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_id = _incoming_request_id(request)
        request.request_id = request_id
        _thread_locals.request_id = request_id

        try:
            response = self.get_response(request)
        finally:
            _thread_locals.request_id = NO_REQUEST_ID

        response[REQUEST_ID_HEADER] = request_id
        return response