"""
Standardized Error Handling

Error body returned by every API endpoint:
{ success: false, error: { code, message, fields? }, request_id }

HTTP status per error kind:
- 400 ValidationError: malformed input, zero workdays on a daily-rate invoice
- 404 NotFoundError: client, project, workday or invoice absent
- 409 ConflictError: invoice number already taken
- 502 DispatchError: the email channel refused or failed the send
- 500: rendering and other programming errors (never raised as APIError)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from django.http import JsonResponse


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    FIELD_REQUIRED = "FIELD_REQUIRED"
    FIELD_INVALID = "FIELD_INVALID"
    FIELD_TOO_SHORT = "FIELD_TOO_SHORT"
    FIELD_TOO_LONG = "FIELD_TOO_LONG"
    FIELD_OUT_OF_RANGE = "FIELD_OUT_OF_RANGE"
    FIELD_INVALID_FORMAT = "FIELD_INVALID_FORMAT"

    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_ALREADY_EXISTS = "RESOURCE_ALREADY_EXISTS"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"

    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    INVOICE_NUMBER_CONFLICT = "INVOICE_NUMBER_CONFLICT"
    WORKDAYS_REQUIRED = "WORKDAYS_REQUIRED"
    DISPATCH_FAILED = "DISPATCH_FAILED"


# DRF / Django validator codes -> field error codes
VALIDATOR_CODES = {
    "required": ErrorCode.FIELD_REQUIRED,
    "blank": ErrorCode.FIELD_REQUIRED,
    "null": ErrorCode.FIELD_REQUIRED,
    "empty": ErrorCode.FIELD_REQUIRED,
    "min_length": ErrorCode.FIELD_TOO_SHORT,
    "max_length": ErrorCode.FIELD_TOO_LONG,
    "min_value": ErrorCode.FIELD_OUT_OF_RANGE,
    "max_value": ErrorCode.FIELD_OUT_OF_RANGE,
    "invalid": ErrorCode.FIELD_INVALID_FORMAT,
    "invalid_choice": ErrorCode.FIELD_INVALID,
    "not_whole": ErrorCode.FIELD_INVALID,
    "does_not_exist": ErrorCode.RESOURCE_NOT_FOUND,
    "unique": ErrorCode.RESOURCE_ALREADY_EXISTS,
}


@dataclass
class FieldError:
    field: str
    code: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "code": self.code, "message": self.message}


@dataclass
class ErrorEnvelope:
    """The body every failed API request returns."""

    code: str
    message: str
    fields: Optional[List[FieldError]] = None
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.fields:
            error["fields"] = [f.to_dict() for f in self.fields]
        return {"success": False, "error": error, "request_id": self.request_id}

    def to_json_response(self, status: int) -> JsonResponse:
        return JsonResponse(self.to_dict(), status=status)


class APIError(Exception):
    """Base for errors that services raise and the API reports to the caller."""

    status = 400
    default_code: ErrorCode = ErrorCode.VALIDATION_ERROR
    default_message = "Request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        fields: Optional[List[FieldError]] = None,
        code: Union[ErrorCode, str, None] = None,
        request_id: Optional[str] = None,
    ):
        code = code or self.default_code
        self.code = code.value if isinstance(code, ErrorCode) else code
        self.message = message or self.default_message
        self.fields = fields
        self.request_id = request_id or str(uuid.uuid4())
        super().__init__(self.message)

    def envelope(self) -> ErrorEnvelope:
        return ErrorEnvelope(self.code, self.message, self.fields, self.request_id)

    def to_json_response(self) -> JsonResponse:
        return self.envelope().to_json_response(self.status)


class ValidationError(APIError):
    status = 400
    default_code = ErrorCode.VALIDATION_ERROR
    default_message = "Validation failed"


class NotFoundError(APIError):
    status = 404
    default_code = ErrorCode.RESOURCE_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(APIError):
    status = 409
    default_code = ErrorCode.RESOURCE_CONFLICT
    default_message = "Resource conflict"


class DispatchError(APIError):
    """The email channel did not accept the message. The invoice is untouched."""

    status = 502
    default_code = ErrorCode.DISPATCH_FAILED
    default_message = "Failed to send invoice email"


def format_validation_errors(errors: Dict[str, Any], prefix: str = "") -> List[FieldError]:
    """
    Flatten nested serializer or model errors into ``FieldError``s.

    Nested fields are joined with dots (``emails.1``). Codes come from the
    validator code carried by DRF's ``ErrorDetail`` when present, otherwise
    they are inferred from the message.
    """
    field_errors = []

    for field_name, error_list in errors.items():
        full_field = f"{prefix}{field_name}"

        if isinstance(error_list, dict):
            field_errors.extend(format_validation_errors(error_list, f"{full_field}."))
            continue

        if not isinstance(error_list, list):
            error_list = [error_list]

        for index, error in enumerate(error_list):
            if isinstance(error, dict):
                field_errors.extend(format_validation_errors(error, f"{full_field}.{index}."))
            elif isinstance(error, list):
                field_errors.extend(format_validation_errors({str(index): error}, f"{full_field}."))
            else:
                field_errors.append(FieldError(
                    field=full_field,
                    code=_error_code(error),
                    message=str(error),
                ))

    return field_errors


# Message fragments for errors raised without a validator code, first match wins.
MESSAGE_HINTS = (
    (("required", "blank", "null"), ErrorCode.FIELD_REQUIRED),
    (("too short", "at least"), ErrorCode.FIELD_TOO_SHORT),
    (("too long", "at most"), ErrorCode.FIELD_TOO_LONG),
    (("before", "greater than", "less than"), ErrorCode.FIELD_OUT_OF_RANGE),
    (("valid", "format"), ErrorCode.FIELD_INVALID_FORMAT),
)


def _error_code(error: Any) -> str:
    known = VALIDATOR_CODES.get(getattr(error, "code", None) or "")
    if known:
        return known.value
    message = str(error).lower()
    for fragments, code in MESSAGE_HINTS:
        if any(fragment in message for fragment in fragments):
            return code.value
    return ErrorCode.FIELD_INVALID.value
