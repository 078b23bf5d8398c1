"""
Invoice Numbering - sequential, human-readable invoice identifiers.

Numbers look like ``INV-2025-001``. The next sequence is read from the most
recently created invoice (highest primary key, not latest invoice date) and
the year is always the year at allocation time. The sequence is not reset when
the year changes: ``INV-2025-007`` followed by an allocation in 2026 gives
``INV-2026-008``.
"""

from __future__ import annotations

import logging
import re
import threading
from datetime import date
from typing import Any, Callable, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from billing.models import Invoice
from billing.validation.errors import ConflictError, ErrorCode

logger = logging.getLogger(__name__)

INVOICE_NUMBER_PATTERN = re.compile(r"INV-(\d+)-(\d+)")
INVOICE_NUMBER_FORMAT = "INV-{year}-{number:03d}"


def parse_sequence(invoice_number: Optional[str]) -> Optional[int]:
    if not invoice_number:
        return None
    match = INVOICE_NUMBER_PATTERN.search(invoice_number)
    if not match:
        return None
    return int(match.group(2))


def allocate_next_invoice_number(current_year: int, latest_invoice_number: Optional[str] = None) -> str:
    sequence = parse_sequence(latest_invoice_number)
    next_num = sequence + 1 if sequence is not None else 1
    return INVOICE_NUMBER_FORMAT.format(year=current_year, number=next_num)


class InvoiceNumberAllocator:
    """
    Allocates a number and inserts the invoice carrying it as one step.

    "Read latest, compute, insert" runs under a process-wide lock and inside a
    transaction. The unique constraint on ``Invoice.invoice_number`` is what
    actually guarantees uniqueness across processes; on a collision the number
    is recomputed and the insert retried.
    """

    _lock = threading.Lock()

    def __init__(self, today: Optional[Callable[[], date]] = None, max_attempts: Optional[int] = None):
        self.today = today or timezone.localdate
        self.max_attempts = max_attempts or getattr(settings, "INVOICE_NUMBER_MAX_ATTEMPTS", 5)

    def latest_invoice_number(self) -> Optional[str]:
        return (
            Invoice.objects.order_by("-id")
            .values_list("invoice_number", flat=True)
            .first()
        )

    def next_invoice_number(self, floor: Optional[int] = None) -> str:
        """Next number after the latest row, or after ``floor`` when that is higher."""
        year = self.today().year
        sequence = parse_sequence(self.latest_invoice_number())
        if floor is not None and (sequence is None or floor > sequence):
            sequence = floor
        next_num = sequence + 1 if sequence is not None else 1
        return INVOICE_NUMBER_FORMAT.format(year=year, number=next_num)

    def create_invoice(self, **fields: Any) -> Invoice:
        # Highest sequence seen colliding; only ever rises.
        floor: Optional[int] = None

        with self._lock:
            for attempt in range(1, self.max_attempts + 1):
                number = self.next_invoice_number(floor=floor)
                try:
                    with transaction.atomic():
                        invoice = Invoice.objects.create(invoice_number=number, **fields)
                except IntegrityError:
                    logger.warning(
                        f"Invoice number {number} already taken (attempt {attempt}/{self.max_attempts}), retrying"
                    )
                    floor = max(floor or 0, parse_sequence(number))
                    continue

                logger.info(f"Allocated invoice number {number}")
                return invoice

        raise ConflictError(
            message=f"Could not allocate a unique invoice number after {self.max_attempts} attempts.",
            code=ErrorCode.INVOICE_NUMBER_CONFLICT,
        )
