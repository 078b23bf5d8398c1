"""
FreelanceFlow Services Layer

This module provides the business logic layer following strict separation:
- Models: Pure data + constraints (no business logic)
- Services: Business logic + transactions + side effects orchestration
- Views/APIs: Request parsing and response mapping
- Templates: Presentation only

All business logic should flow through these services.
"""

from .invoice_service import InvoiceService
from .numbering import InvoiceNumberAllocator, allocate_next_invoice_number
from .pdf_service import PDFService
from .rate_calculator import compute_invoice_amount
from .workday_service import WorkdayService

__all__ = [
    "InvoiceService",
    "InvoiceNumberAllocator",
    "PDFService",
    "WorkdayService",
    "allocate_next_invoice_number",
    "compute_invoice_amount",
]
