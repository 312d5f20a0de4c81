"""
Module: settlement_engines.projection
Responsibility:
    Calendar-day projections for settlement: when the payout is expected
    and how many days are left until then.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import settlement_kernel/domain.

Invariants enforced:
    - Purity: "today" is always passed in by the caller (from a Clock).
    - Dates carry no time of day; arithmetic is in whole calendar days.

Failure modes:
    - None.  Absent or unparsable inputs yield ``None``.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from settlement_kernel.domain.settlement import CountdownStart, WorkflowModel
from settlement_kernel.domain.values import parse_non_negative_int, shift_date, to_date_only

INVOITIX_PAYOUT_DAYS = 2


def add_days(value: Any, days: int) -> date | None:
    """Shift a date (or ``YYYY-MM-DD`` key) by ``days``; ``None`` if unparsable."""
    start = to_date_only(value)
    if start is None:
        return None
    return shift_date(start, days)


def days_until(target: Any, as_of: date) -> int | None:
    """Whole days from ``as_of`` to ``target``; negative once overdue."""
    parsed = to_date_only(target)
    if parsed is None:
        return None
    return (parsed - as_of).days


def invoitix_projected_payout_date(
    sent_at: Any,
    payout_days: int = INVOITIX_PAYOUT_DAYS,
) -> date | None:
    return add_days(sent_at, payout_days)


def valuta_countdown_start_date(model: WorkflowModel) -> date | None:
    """The event date that starts the Valuta countdown, if it happened."""
    valuta = model.valuta
    if valuta.countdown_start is CountdownStart.ORIGINALS_RECEIVED:
        return valuta.documents_arrived_at
    if valuta.countdown_start is CountdownStart.EMAIL_COPY_INVOICE:
        return valuta.invoice_sent_at
    return None


def valuta_projected_payout_date(model: WorkflowModel) -> date | None:
    """
    Countdown start plus the agreed number of days.

    ``None`` until both the start date and a whole, non-negative
    ``countdown_days`` are known.
    """
    days = parse_non_negative_int(model.valuta.countdown_days)
    start = valuta_countdown_start_date(model)
    if days is None or start is None:
        return None
    return shift_date(start, days)
