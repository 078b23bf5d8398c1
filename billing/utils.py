"""
Utility functions for FreelanceFlow.
Display formatting for money held in minor units and for calendar dates.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional, Union

from django.conf import settings

MINOR_UNITS_PER_MAJOR = 100


class CurrencyHelper:
    """Currency formatting for integer minor-unit amounts."""

    @staticmethod
    def default_symbol() -> str:
        return getattr(settings, "INVOICE_CURRENCY_SYMBOL", "$")

    @staticmethod
    def to_major(amount: int) -> Decimal:
        """Convert minor units to a major-unit Decimal. Display only, never sum the result."""
        return (Decimal(amount) / MINOR_UNITS_PER_MAJOR).quantize(Decimal("0.01"))

    @staticmethod
    def format_amount(amount: int, symbol: Optional[str] = None) -> str:
        """Format minor units as e.g. ``$1,200.00``."""
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise TypeError(f"Amounts are integer minor units, got {type(amount).__name__}")
        symbol = CurrencyHelper.default_symbol() if symbol is None else symbol
        major = CurrencyHelper.to_major(abs(amount))
        sign = "-" if amount < 0 else ""
        return f"{sign}{symbol}{major:,.2f}"


class DateHelper:
    """Date utilities for invoice operations."""

    @staticmethod
    def add_days(value: date, days: int) -> date:
        return value + timedelta(days=days)

    @staticmethod
    def format_long(value: Union[date, datetime, None]) -> str:
        """Long human-readable date, e.g. ``January 1, 2025``."""
        if value is None:
            return ""
        if isinstance(value, datetime):
            value = value.date()
        return f"{value.strftime('%B')} {value.day}, {value.year}"


def format_currency(amount: int, symbol: Optional[str] = None) -> str:
    return CurrencyHelper.format_amount(amount, symbol)


def format_long_date(value: Union[date, datetime, None]) -> str:
    return DateHelper.format_long(value)
