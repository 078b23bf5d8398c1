"""
Centralized Validation Module

Domain errors and validation schemas shared by services and the API.
Server is authoritative; clients mirror constraints for UX.

Domains:
- Client: email set and billing email
- Invoice: explicit invoice numbers and email dispatch
"""

from .schemas import (
    ClientEmailsSchema,
    InvoiceEmailSchema,
    InvoiceNumberSchema,
)
from .errors import (
    APIError,
    ConflictError,
    DispatchError,
    ErrorCode,
    ErrorEnvelope,
    FieldError,
    NotFoundError,
    ValidationError,
    format_validation_errors,
)

__all__ = [
    "ClientEmailsSchema",
    "InvoiceEmailSchema",
    "InvoiceNumberSchema",
    "APIError",
    "ConflictError",
    "DispatchError",
    "ErrorCode",
    "ErrorEnvelope",
    "FieldError",
    "NotFoundError",
    "ValidationError",
    "format_validation_errors",
]
