"""
Rate Calculator - derives the amount of an invoice from a project's billing
mode and the workdays selected for it.

All amounts are integer minor units (cents). Workdays are calendar dates with
no time-of-day or time zone; a selection is a set, so the same date never
counts twice.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, FrozenSet, Iterable

from billing.models import Project
from billing.validation.errors import ErrorCode, FieldError, ValidationError

logger = logging.getLogger(__name__)


def normalize_workday_date(value: Any) -> date:
    """
    Reduce a date-like value to the abstract calendar day it names.

    ``datetime`` values keep the date as written (no time zone conversion);
    strings may be ``YYYY-MM-DD`` or a full ISO timestamp whose time part is
    ignored.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise ValidationError(
        message=f"Invalid workday date: {value!r}",
        fields=[FieldError(
            field="date",
            code=ErrorCode.FIELD_INVALID_FORMAT.value,
            message="Dates must be formatted as YYYY-MM-DD.",
        )],
    )


def _validated_rate(project) -> int:
    rate = project.rate
    if isinstance(rate, bool) or not isinstance(rate, int) or rate < 0:
        raise ValidationError(
            message="Project rate must be a non-negative whole number of minor currency units.",
            fields=[FieldError(
                field="rate",
                code=ErrorCode.FIELD_INVALID.value,
                message=f"Invalid rate: {rate!r}",
            )],
        )
    return rate


def compute_invoice_amount(project, selected_dates: Iterable[Any] = ()) -> int:
    """
    Total due for an invoice on ``project`` covering ``selected_dates``.

    Fixed-price projects bill their rate whatever the selection. Daily-rate
    projects bill the rate once per distinct selected date and refuse an
    empty selection.
    """
    rate = _validated_rate(project)

    if project.billing_mode == Project.BillingMode.FIXED_PRICE:
        return rate

    if project.billing_mode != Project.BillingMode.DAILY_RATE:
        raise ValidationError(
            message=f"Unknown billing mode: {project.billing_mode!r}",
            fields=[FieldError(
                field="billing_mode",
                code=ErrorCode.FIELD_INVALID.value,
                message="Billing mode must be daily_rate or fixed_price.",
            )],
        )

    days = {normalize_workday_date(value) for value in selected_dates}
    if not days:
        raise ValidationError(
            message="At least one workday is required for a daily-rate invoice.",
            fields=[FieldError(
                field="workday_ids",
                code=ErrorCode.WORKDAYS_REQUIRED.value,
                message="Select at least one workday.",
            )],
            code=ErrorCode.WORKDAYS_REQUIRED,
        )

    return rate * len(days)


def toggle_workday(selection: Iterable[Any], day: Any) -> FrozenSet[date]:
    """Add ``day`` to the selection if absent, remove it if present."""
    current = frozenset(normalize_workday_date(value) for value in selection)
    day = normalize_workday_date(day)
    if day in current:
        return current - {day}
    return current | {day}
