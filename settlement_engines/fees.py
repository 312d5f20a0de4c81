"""
Module: settlement_engines.fees
Responsibility:
    Fee and payout arithmetic for both settlement paths: the Invoitix
    factoring fee, the Skonto early-payment discount, and the expected
    payout of the active flow.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import settlement_kernel/domain.

Invariants enforced:
    - Decimal-only arithmetic; results are rounded to 2 decimals HALF_UP.
    - Payouts never go below zero.
    - A non-positive base amount yields a zero fee and a zero payout.

Failure modes:
    - None.  Unparsable or out-of-range input counts as zero.

Usage:
    from decimal import Decimal
    from settlement_engines.fees import invoitix_fee, invoitix_payout

    invoitix_fee(Decimal("1000"))     # Decimal("73.15")
    invoitix_payout(Decimal("1000"))  # Decimal("926.85")
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from settlement_kernel.domain.settlement import FlowType, ValutaMode, WorkflowModel
from settlement_kernel.domain.values import (
    ZERO,
    clamp_non_negative,
    parse_non_negative_decimal,
    round_money,
    to_amount,
)
from settlement_kernel.logging_config import get_logger
from settlement_engines.tracer import traced_engine

logger = get_logger("engines.fees")

INVOITIX_FEE_RATE = Decimal("0.07")
INVOITIX_FIXED_FEE = Decimal("3.15")

_HUNDRED = Decimal("100")


def _base(value: Any) -> Decimal:
    parsed = to_amount(value)
    return parsed if parsed is not None else ZERO


def invoitix_fee(
    base: Any,
    rate: Decimal = INVOITIX_FEE_RATE,
    fixed_fee: Decimal = INVOITIX_FIXED_FEE,
) -> Decimal:
    """Factoring fee: ``base * rate + fixed_fee`` for a positive base, else 0."""
    amount = _base(base)
    if amount <= ZERO:
        return round_money(ZERO)
    return round_money(amount * rate + fixed_fee)


def invoitix_payout(
    base: Any,
    rate: Decimal = INVOITIX_FEE_RATE,
    fixed_fee: Decimal = INVOITIX_FIXED_FEE,
) -> Decimal:
    """Amount Invoitix pays out after its fee, clamped at zero."""
    amount = _base(base)
    fee = invoitix_fee(amount, rate, fixed_fee)
    return clamp_non_negative(round_money(amount - fee))


def skonto_fee(base: Any, mode: ValutaMode | None, skonto_percent: Any) -> Decimal:
    """
    Early-payment discount in SKONTO mode.

    Zero unless ``mode`` is SKONTO and both the base and the percentage
    are positive.  ``skonto_percent`` may be operator text ("2.5").
    """
    amount = _base(base)
    percent = parse_non_negative_decimal(skonto_percent)
    if mode is not ValutaMode.SKONTO or amount <= ZERO or percent is None or percent <= ZERO:
        return round_money(ZERO)
    return round_money(amount * percent / _HUNDRED)


def valuta_payout(base: Any, skonto: Any, bank_fee: Any) -> Decimal:
    """Direct-invoice payout: base minus discount minus bank fee, clamped at zero."""
    amount = _base(base)
    discount = parse_non_negative_decimal(skonto) or ZERO
    fee = parse_non_negative_decimal(bank_fee) or ZERO
    return clamp_non_negative(round_money(amount - discount - fee))


@traced_engine("fees.projected_payout", "1.0", fingerprint_fields=("flow_type", "base", "model"))
def projected_payout(
    flow_type: FlowType | None,
    base: Any,
    model: WorkflowModel,
    rate: Decimal = INVOITIX_FEE_RATE,
    fixed_fee: Decimal = INVOITIX_FIXED_FEE,
) -> Decimal:
    """
    Expected payout for the selected flow.

    INVOITIX pays the factoring payout, VALUTA pays the base less the
    Skonto discount and the recorded bank fee, an undecided flow pays the
    base itself.  A non-positive base always yields zero.
    """
    amount = _base(base)
    if amount <= ZERO:
        return round_money(ZERO)

    if flow_type is FlowType.INVOITIX:
        return invoitix_payout(amount, rate, fixed_fee)
    if flow_type is FlowType.VALUTA:
        discount = skonto_fee(amount, model.valuta.mode, model.valuta.skonto_percent)
        return valuta_payout(amount, discount, model.valuta.bank_fee_amount)
    return round_money(amount)
