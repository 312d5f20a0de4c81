"""
Values -- Decimal money helpers and calendar-date normalization.

Responsibility:
    Provides the primitive conversions every settlement computation relies
    on: lenient text-to-number parsing for operator-entered fields, the
    single monetary rounding rule, and date-only normalization of the
    many shapes a persisted date can arrive in.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Imported by the
    settlement model, the engines, and the codec.

Invariants enforced:
    - Decimal-only arithmetic: floats are converted through ``str`` and
      never used in a computation.
    - Monetary rounding is 2 decimals, ROUND_HALF_UP.
    - Parsed operator numbers are finite, non-negative and no larger than
      MAX_AMOUNT (what a Numeric(14, 2) column holds), or absent.
    - Dates carry no time of day.

Failure modes:
    None.  Every helper is total; unparsable input yields ``None``.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0")
MAX_AMOUNT = Decimal("999999999999.99")

_DATE_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})")


def to_decimal(value: Any) -> Decimal | None:
    """
    Convert a number-like value to a finite Decimal.

    Accepts Decimal, int, float (via ``str``) and numeric text with
    surrounding whitespace.  Blank text, booleans, NaN and infinities
    yield ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = _safe_decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        result = _safe_decimal(text)
    else:
        return None
    if result is None or not result.is_finite():
        return None
    return result


def _safe_decimal(text: str) -> Decimal | None:
    try:
        return Decimal(text)
    except (InvalidOperation, ValueError):
        return None


def to_amount(value: Any) -> Decimal | None:
    """Like ``to_decimal``, but ``None`` when larger in magnitude than MAX_AMOUNT."""
    parsed = to_decimal(value)
    if parsed is None or abs(parsed) > MAX_AMOUNT:
        return None
    return parsed


def round_money(amount: Decimal) -> Decimal:
    """Round to cents, half-up."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def clamp_non_negative(amount: Decimal) -> Decimal:
    """Clamp a computed amount at zero."""
    return amount if amount > ZERO else round_money(ZERO)


def parse_non_negative_decimal(value: Any) -> Decimal | None:
    """Parse operator input as a non-negative Decimal up to MAX_AMOUNT, else ``None``."""
    parsed = to_amount(value)
    if parsed is None or parsed < ZERO:
        return None
    return parsed


def parse_non_negative_int(value: Any) -> int | None:
    """Parse operator input as a non-negative whole number of days.

    Fractions are truncated toward zero ("10.9" -> 10).
    """
    parsed = parse_non_negative_decimal(value)
    if parsed is None:
        return None
    return int(parsed.to_integral_value(rounding=ROUND_DOWN))


def normalize_numeric_text(value: Any) -> str:
    """
    Normalize a numeric text field.

    Returns the stripped text when it parses to a non-negative number,
    otherwise the empty string (absent).
    """
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, (int, float, Decimal)):
        text = str(value)
    elif isinstance(value, str):
        text = value.strip()
    else:
        return ""
    if parse_non_negative_decimal(text) is None:
        return ""
    return text


def to_date_only(value: Any) -> date | None:
    """
    Normalize a date-like value to a calendar date.

    Accepts ``date``, ``datetime`` (time of day dropped), and text that
    starts with ``YYYY-MM-DD`` or is a full ISO-8601 timestamp.
    Anything else yields ``None``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    match = _DATE_PREFIX.match(text)
    if match:
        try:
            return date.fromisoformat(match.group(1))
        except ValueError:
            return None
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def date_key(value: date | None) -> str | None:
    """Render a date as its ``YYYY-MM-DD`` key."""
    return value.isoformat() if value is not None else None


def shift_date(value: date, days: int) -> date | None:
    """Move a date by whole calendar days; ``None`` past the calendar's range."""
    try:
        return value + timedelta(days=days)
    except OverflowError:
        return None
