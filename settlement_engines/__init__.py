"""
Module: settlement_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    settlement engines.  Canonical import surface for settlement_modules.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import settlement_kernel (domain, exceptions, logging).
    MUST NOT import settlement_modules or settlement_config.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Callers pass today's date from a Clock.
    - Decimal-only arithmetic for all monetary amounts.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from settlement_engines.fees import invoitix_fee, projected_payout
    from settlement_engines.projection import valuta_projected_payout_date
    from settlement_engines.steps import derive_progress, StepState
    from settlement_engines.lock import ensure_flow_editable
"""

from settlement_kernel.logging_config import get_logger

logger = get_logger("engines")

from settlement_engines.fees import (
    INVOITIX_FEE_RATE,
    INVOITIX_FIXED_FEE,
    invoitix_fee,
    invoitix_payout,
    projected_payout,
    skonto_fee,
    valuta_payout,
)
from settlement_engines.lock import (
    changed_selection_fields,
    ensure_flow_editable,
    is_flow_edit_locked,
)
from settlement_engines.projection import (
    INVOITIX_PAYOUT_DAYS,
    add_days,
    days_until,
    invoitix_projected_payout_date,
    valuta_countdown_start_date,
    valuta_projected_payout_date,
)
from settlement_engines.steps import (
    SettlementProgress,
    SettlementStep,
    StepState,
    StepView,
    derive_progress,
    derive_step_state,
    status_label,
    step_sequence,
)
from settlement_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "INVOITIX_FEE_RATE",
    "INVOITIX_FIXED_FEE",
    "INVOITIX_PAYOUT_DAYS",
    "SettlementProgress",
    "SettlementStep",
    "StepState",
    "StepView",
    "add_days",
    "changed_selection_fields",
    "compute_input_fingerprint",
    "days_until",
    "derive_progress",
    "derive_step_state",
    "ensure_flow_editable",
    "invoitix_fee",
    "invoitix_payout",
    "invoitix_projected_payout_date",
    "is_flow_edit_locked",
    "projected_payout",
    "skonto_fee",
    "status_label",
    "step_sequence",
    "traced_engine",
    "valuta_countdown_start_date",
    "valuta_payout",
    "valuta_projected_payout_date",
]
