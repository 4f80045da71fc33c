"""
Input Validation Utilities

Validation for billing periods and money amounts shared by
repositories, services and schemas.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from .exceptions import ValidationError

MONEY_QUANTUM = Decimal("0.01")
ZERO = Decimal("0.00")

MONTH_ABBREVIATIONS = (
    "JAN", "FEB", "MAR", "APR", "MAY", "JUN",
    "JUL", "AUG", "SEP", "OCT", "NOV", "DEC",
)


class ValidationPatterns:
    """Common validation regex patterns"""

    BILLING_PERIOD = re.compile(r'^(\d{4})-(0[1-9]|1[0-2])$')


def validate_billing_period(period: Any) -> str:
    """
    Validate a billing period key of the form ``YYYY-MM``.

    Raises:
        ValidationError: if the value is not a well formed period
    """
    if not isinstance(period, str) or not ValidationPatterns.BILLING_PERIOD.match(period):
        raise ValidationError(
            f"Invalid billing period '{period}', expected YYYY-MM",
            field_errors={"month": ["must match YYYY-MM"]},
        )
    return period


def period_parts(period: str) -> tuple:
    """Return (year, month) integers for a validated period"""
    validate_billing_period(period)
    year, month = period.split("-")
    return int(year), int(month)


def period_for_date(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def period_start(period: str) -> date:
    year, month = period_parts(period)
    return date(year, month, 1)


def period_month_abbreviation(period: str) -> str:
    _, month = period_parts(period)
    return MONTH_ABBREVIATIONS[month - 1]


def period_label(period: str) -> str:
    """Human readable label, e.g. ``February 2024``"""
    year, month = period_parts(period)
    return date(year, month, 1).strftime("%B %Y")


def to_money(value: Any, field: str = "amount") -> Decimal:
    """Coerce a value to a two-place Decimal without validating its sign"""
    if value is None:
        return ZERO
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(
            f"Invalid {field}: {value!r}",
            field_errors={field: ["must be a number"]},
        ) from exc
    if not amount.is_finite():
        raise ValidationError(f"Invalid {field}: {value!r}", field_errors={field: ["must be finite"]})
    return amount.quantize(MONEY_QUANTUM)


def validate_amount(value: Any, field: str = "amount") -> Decimal:
    """
    Validate a non-negative money amount and quantize it to two places.

    Raises:
        ValidationError: if the amount is negative or not a number
    """
    amount = to_money(value, field)
    if amount < ZERO:
        raise ValidationError(
            f"{field} cannot be negative (got {amount})",
            field_errors={field: ["must be zero or greater"]},
        )
    return amount
