"""
Module: settlement_engines.steps
Responsibility:
    Derive the state of every settlement step from the workflow model and
    the load's completion, plus the human-readable payout status and a
    full progress snapshot (fees, projected payout, expected date, days
    left) for display.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import settlement_kernel/domain and sibling engine modules.

Invariants enforced:
    - One derivation function per step; every step is in exactly one
      ``StepState``.
    - A recorded completion field always wins: a step whose date is set is
      DONE regardless of the load's state.
    - Informational steps never gate later steps.
    - Purity: "today" is passed in as ``as_of``.

Failure modes:
    - None.  Every derivation is total over ``WorkflowModel``.

Usage:
    from settlement_engines.steps import derive_progress

    progress = derive_progress(model, load, as_of=clock.today())
    progress.status_label        # "Countdown in progress"
    progress.current_step        # SettlementStep.COUNTDOWN_AND_PAYOUT
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from settlement_kernel.domain.settlement import (
    CountdownStart,
    FlowType,
    LoadSnapshot,
    PaymentStatus,
    WorkflowModel,
)
from settlement_kernel.domain.values import ZERO, parse_non_negative_decimal, round_money
from settlement_kernel.logging_config import get_logger
from settlement_engines.fees import (
    INVOITIX_FEE_RATE,
    INVOITIX_FIXED_FEE,
    invoitix_fee,
    invoitix_payout,
    projected_payout,
    skonto_fee,
)
from settlement_engines.lock import is_flow_edit_locked
from settlement_engines.projection import (
    INVOITIX_PAYOUT_DAYS,
    days_until,
    invoitix_projected_payout_date,
    valuta_projected_payout_date,
)
from settlement_engines.tracer import traced_engine

logger = get_logger("engines.steps")


class StepState(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"
    LOCKED = "LOCKED"


class SettlementStep(str, Enum):
    """Every step of every settlement sequence."""

    SEND = "SEND"
    PROJECTED_PAYOUT = "PROJECTED_PAYOUT"
    CONFIRM_PAYOUT = "CONFIRM_PAYOUT"
    EMAIL_SENT = "EMAIL_SENT"
    WAITING_ON_DRIVER = "WAITING_ON_DRIVER"
    DOCUMENTS_SENT = "DOCUMENTS_SENT"
    DOCUMENTS_ARRIVED = "DOCUMENTS_ARRIVED"
    COUNTDOWN_AND_PAYOUT = "COUNTDOWN_AND_PAYOUT"

    @property
    def is_informational(self) -> bool:
        """True for display-only steps that have no confirmation."""
        return self in _INFORMATIONAL_STEPS


_INFORMATIONAL_STEPS = frozenset({
    SettlementStep.PROJECTED_PAYOUT,
    SettlementStep.WAITING_ON_DRIVER,
})

INVOITIX_STEPS: tuple[SettlementStep, ...] = (
    SettlementStep.SEND,
    SettlementStep.PROJECTED_PAYOUT,
    SettlementStep.CONFIRM_PAYOUT,
)

VALUTA_EMAIL_STEPS: tuple[SettlementStep, ...] = (
    SettlementStep.EMAIL_SENT,
    SettlementStep.COUNTDOWN_AND_PAYOUT,
)

VALUTA_ORIGINALS_STEPS: tuple[SettlementStep, ...] = (
    SettlementStep.WAITING_ON_DRIVER,
    SettlementStep.DOCUMENTS_SENT,
    SettlementStep.DOCUMENTS_ARRIVED,
    SettlementStep.COUNTDOWN_AND_PAYOUT,
)


# Status labels
FLOW_NOT_SET = "Flow not set"
WAITING_TO_BE_COMPLETED = "Waiting to be completed"
READY_TO_SEND_TO_INVOITIX = "Ready to send to Invoitix"
WAITING_FOR_PAYOUT = "Waiting for payout"
PAYOUT_CONFIRMED = "Payout confirmed"
WAITING_FOR_FLOW_SETUP = "Waiting for flow setup"
WAITING_FOR_DRIVER_RETURN = "Waiting for driver return"
WAITING_FOR_ORIGINALS = "Waiting for originals to arrive"
COUNTDOWN_IN_PROGRESS = "Countdown in progress"


def step_sequence(model: WorkflowModel) -> tuple[SettlementStep, ...]:
    """Ordered steps of the active sequence; empty until the flow is set up."""
    if model.flow_type is FlowType.INVOITIX:
        return INVOITIX_STEPS
    if model.flow_type is FlowType.VALUTA:
        if model.valuta.countdown_start is CountdownStart.EMAIL_COPY_INVOICE:
            return VALUTA_EMAIL_STEPS
        if model.valuta.countdown_start is CountdownStart.ORIGINALS_RECEIVED:
            return VALUTA_ORIGINALS_STEPS
    return ()


def _gated(done: bool, load_completed: bool, prior_done: bool = True) -> StepState:
    if done:
        return StepState.DONE
    if not load_completed:
        return StepState.NOT_STARTED
    if not prior_done:
        return StepState.LOCKED
    return StepState.IN_PROGRESS


# ---------------------------------------------------------------------------
# INVOITIX
# ---------------------------------------------------------------------------


def send_state(model: WorkflowModel, load_completed: bool) -> StepState:
    return _gated(model.invoitix.sent_at is not None, load_completed)


def projected_payout_state(model: WorkflowModel, load_completed: bool) -> StepState:
    """Informational: done as soon as the invoice went to Invoitix."""
    return _gated(model.invoitix.sent_at is not None, load_completed, prior_done=False)


def confirm_payout_state(model: WorkflowModel, load_completed: bool) -> StepState:
    return _gated(
        model.invoitix.payout_confirmed_at is not None,
        load_completed,
        prior_done=model.invoitix.sent_at is not None,
    )


# ---------------------------------------------------------------------------
# VALUTA
# ---------------------------------------------------------------------------


def email_sent_state(model: WorkflowModel, load_completed: bool) -> StepState:
    return _gated(model.valuta.invoice_sent_at is not None, load_completed)


def waiting_on_driver_state(model: WorkflowModel, load_completed: bool) -> StepState:
    """Informational: the driver is back once the originals were shipped."""
    return _gated(model.valuta.shipped_at is not None, load_completed)


def documents_sent_state(model: WorkflowModel, load_completed: bool) -> StepState:
    return _gated(model.valuta.shipped_at is not None, load_completed)


def documents_arrived_state(model: WorkflowModel, load_completed: bool) -> StepState:
    return _gated(
        model.valuta.documents_arrived_at is not None,
        load_completed,
        prior_done=model.valuta.shipped_at is not None,
    )


def countdown_and_payout_state(model: WorkflowModel, load_completed: bool) -> StepState:
    """
    Countdown to the expected payout, then its confirmation.

    Gated on the countdown's start event; stays NOT_STARTED while the
    projected date cannot be computed (no countdown days entered).
    """
    valuta = model.valuta
    if valuta.countdown_start is CountdownStart.ORIGINALS_RECEIVED:
        prior_done = valuta.documents_arrived_at is not None
    else:
        prior_done = valuta.invoice_sent_at is not None

    state = _gated(valuta.payout_received_at is not None, load_completed, prior_done)
    if state is StepState.IN_PROGRESS and valuta_projected_payout_date(model) is None:
        return StepState.NOT_STARTED
    return state


_DERIVATIONS = {
    SettlementStep.SEND: send_state,
    SettlementStep.PROJECTED_PAYOUT: projected_payout_state,
    SettlementStep.CONFIRM_PAYOUT: confirm_payout_state,
    SettlementStep.EMAIL_SENT: email_sent_state,
    SettlementStep.WAITING_ON_DRIVER: waiting_on_driver_state,
    SettlementStep.DOCUMENTS_SENT: documents_sent_state,
    SettlementStep.DOCUMENTS_ARRIVED: documents_arrived_state,
    SettlementStep.COUNTDOWN_AND_PAYOUT: countdown_and_payout_state,
}


def derive_step_state(step: SettlementStep, model: WorkflowModel, load_completed: bool) -> StepState:
    """State of one step, by its derivation function."""
    return _DERIVATIONS[step](model, load_completed)


# ---------------------------------------------------------------------------
# Status label
# ---------------------------------------------------------------------------


def _valuta_label(model: WorkflowModel, load_completed: bool) -> str:
    valuta = model.valuta
    if not load_completed:
        return WAITING_TO_BE_COMPLETED
    if valuta.countdown_start is None:
        return WAITING_FOR_FLOW_SETUP
    if valuta.payout_received_at is not None:
        return PAYOUT_CONFIRMED

    if valuta.countdown_start is CountdownStart.ORIGINALS_RECEIVED:
        if valuta.shipped_at is None:
            return WAITING_FOR_DRIVER_RETURN
        if valuta.documents_arrived_at is None:
            return WAITING_FOR_ORIGINALS
        return COUNTDOWN_IN_PROGRESS

    if valuta.invoice_sent_at is None:
        return WAITING_FOR_DRIVER_RETURN
    return COUNTDOWN_IN_PROGRESS


def status_label(model: WorkflowModel, load_completed: bool) -> str:
    """Human-readable payout status of the active flow."""
    if model.flow_type is None:
        return FLOW_NOT_SET
    if model.flow_type is FlowType.INVOITIX:
        if not load_completed:
            return WAITING_TO_BE_COMPLETED
        if model.invoitix.payout_confirmed_at is not None:
            return PAYOUT_CONFIRMED
        if model.invoitix.sent_at is not None:
            return WAITING_FOR_PAYOUT
        return READY_TO_SEND_TO_INVOITIX
    return _valuta_label(model, load_completed)


# ---------------------------------------------------------------------------
# Progress snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StepView:
    """One step of the active sequence with its derived state."""

    step: SettlementStep
    state: StepState

    @property
    def is_actionable(self) -> bool:
        """True when the operator can confirm this step now."""
        return self.state is StepState.IN_PROGRESS and not self.step.is_informational


@dataclass(frozen=True)
class SettlementProgress:
    """
    Everything needed to display one payment's settlement.

    Contract:
        Frozen snapshot computed by ``derive_progress``; all amounts are
        2-decimal Decimals, dates are calendar dates or None.
    """

    flow_type: FlowType | None
    status_label: str
    steps: tuple[StepView, ...]
    base_amount: Decimal
    invoitix_fee: Decimal
    invoitix_payout: Decimal
    skonto_fee: Decimal
    bank_fee: Decimal
    projected_payout: Decimal
    projected_payout_date: date | None
    days_left: int | None
    is_paid_out: bool
    is_flow_locked: bool
    is_bank_fee_editable: bool

    @property
    def current_step(self) -> SettlementStep | None:
        """First actionable step, if any."""
        for view in self.steps:
            if view.is_actionable:
                return view.step
        return None

    def state_of(self, step: SettlementStep) -> StepState | None:
        for view in self.steps:
            if view.step is step:
                return view.state
        return None


@traced_engine(
    "steps.derive_progress",
    "1.0",
    fingerprint_fields=("model", "load", "as_of", "bank_fee_saved", "payment_status"),
)
def derive_progress(
    model: WorkflowModel,
    load: LoadSnapshot,
    as_of: date,
    bank_fee_saved: bool = False,
    payment_status: PaymentStatus | None = None,
    fee_rate: Decimal = INVOITIX_FEE_RATE,
    fixed_fee: Decimal = INVOITIX_FIXED_FEE,
    invoitix_payout_days: int = INVOITIX_PAYOUT_DAYS,
) -> SettlementProgress:
    """
    Compute the full settlement progress of one payment.

    Args:
        model: Decoded workflow of the payment.
        load: The load the payment belongs to.
        as_of: Today's date, from the caller's Clock.
        bank_fee_saved: Whether a bank fee is already persisted on the
            payment's workflow record (the bank-fee field turns read-only).
        payment_status: Status of the Payment Record, if one exists.
    """
    completed = load.is_completed
    steps = tuple(
        StepView(step=step, state=derive_step_state(step, model, completed))
        for step in step_sequence(model)
    )

    base = load.base_amount
    fee = invoitix_fee(base, fee_rate, fixed_fee)
    discount = skonto_fee(base, model.valuta.mode, model.valuta.skonto_percent)
    bank_fee = round_money(parse_non_negative_decimal(model.valuta.bank_fee_amount) or ZERO)

    if model.flow_type is FlowType.INVOITIX:
        projected_date = invoitix_projected_payout_date(model.invoitix.sent_at, invoitix_payout_days)
    elif model.flow_type is FlowType.VALUTA:
        projected_date = valuta_projected_payout_date(model)
    else:
        projected_date = None

    is_paid_out = (
        payment_status is PaymentStatus.PAID
        or model.invoitix.payout_confirmed_at is not None
        or model.valuta.payout_received_at is not None
    )

    return SettlementProgress(
        flow_type=model.flow_type,
        status_label=status_label(model, completed),
        steps=steps,
        base_amount=base,
        invoitix_fee=fee,
        invoitix_payout=invoitix_payout(base, fee_rate, fixed_fee),
        skonto_fee=discount,
        bank_fee=bank_fee,
        projected_payout=projected_payout(model.flow_type, base, model, fee_rate, fixed_fee),
        projected_payout_date=projected_date,
        days_left=days_until(projected_date, as_of),
        is_paid_out=is_paid_out,
        is_flow_locked=is_flow_edit_locked(model),
        is_bank_fee_editable=(
            model.is_valuta
            and model.valuta.payout_received_at is not None
            and not bank_fee_saved
        ),
    )
