"""
Domain-Specific Validation Schemas

Rules for inputs that do not pass through a model serializer alone:
client email sets, invoice email dispatch and explicit invoice numbers.
Each schema lists per-field constraints plus optional cross-field rules and
raises ``ValidationError`` with one ``FieldError`` per problem.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email

from .errors import FieldError, ValidationError, ErrorCode

INVOICE_NUMBER_FORMAT = re.compile(r"^INV-\d{4}-\d{3,}$")


def is_valid_email(value: Any) -> bool:
    """Django's email validator, shared by the model and the API."""
    if not isinstance(value, str):
        return False
    try:
        validate_email(value)
    except DjangoValidationError:
        return False
    return True


@dataclass(frozen=True)
class FieldConstraints:
    label: str
    max_length: int
    pattern: Optional[re.Pattern] = None
    pattern_message: Optional[str] = None
    validator: Optional[Callable[[str], bool]] = None

    def check(self, name: str, value: Any) -> Optional[FieldError]:
        if isinstance(value, str):
            value = value.strip()
        if value is None or value == "":
            return FieldError(name, ErrorCode.FIELD_REQUIRED.value, f"{self.label} is required.")
        if not isinstance(value, str):
            return FieldError(name, ErrorCode.FIELD_INVALID.value, f"{self.label} must be text.")
        if len(value) > self.max_length:
            return FieldError(
                name,
                ErrorCode.FIELD_TOO_LONG.value,
                f"{self.label} must be at most {self.max_length} characters.",
            )
        if not self.accepts(value):
            return FieldError(
                name,
                ErrorCode.FIELD_INVALID_FORMAT.value,
                self.pattern_message or f"{self.label} format is invalid.",
            )
        return None

    def accepts(self, value: str) -> bool:
        if self.pattern and not self.pattern.match(value):
            return False
        return self.validator is None or self.validator(value)


class BaseSchema:
    FIELDS: Dict[str, FieldConstraints] = {}

    @classmethod
    def errors(cls, data: Dict[str, Any]) -> List[FieldError]:
        found = [
            error
            for name, constraints in cls.FIELDS.items()
            if (error := constraints.check(name, data.get(name))) is not None
        ]
        return found + cls.cross_field_errors(data)

    @classmethod
    def cross_field_errors(cls, data: Dict[str, Any]) -> List[FieldError]:
        return []

    @classmethod
    def raise_if_invalid(cls, data: Dict[str, Any]) -> None:
        errors = cls.errors(data)
        if errors:
            raise ValidationError(
                message="Validation failed. Please check your input.",
                fields=errors,
            )


class ClientEmailsSchema(BaseSchema):
    FIELDS = {
        "billing_email": FieldConstraints(
            label="Billing email",
            max_length=254,
            validator=is_valid_email,
            pattern_message="Please enter a valid billing email address.",
        ),
    }

    @classmethod
    def cross_field_errors(cls, data: Dict[str, Any]) -> List[FieldError]:
        emails = data.get("emails")
        if not isinstance(emails, list) or not emails:
            return [FieldError(
                "emails",
                ErrorCode.FIELD_REQUIRED.value,
                "At least one email address is required.",
            )]
        return [
            FieldError(
                f"emails.{index}",
                ErrorCode.FIELD_INVALID_FORMAT.value,
                f"Invalid email address: {email}",
            )
            for index, email in enumerate(emails)
            if not is_valid_email(email)
        ]


class InvoiceEmailSchema(BaseSchema):
    FIELDS = {
        "recipient": FieldConstraints(
            label="Recipient",
            max_length=254,
            validator=is_valid_email,
            pattern_message="Please enter a valid recipient email address.",
        ),
        "subject": FieldConstraints(label="Subject", max_length=255),
        "message": FieldConstraints(label="Message", max_length=10000),
    }


class InvoiceNumberSchema(BaseSchema):
    FIELDS = {
        "invoice_number": FieldConstraints(
            label="Invoice number",
            max_length=50,
            pattern=INVOICE_NUMBER_FORMAT,
            pattern_message="Invoice number must look like INV-2025-001.",
        ),
    }
