"""
Payment Settlement Service (``settlement_modules.payments.service``).

Responsibility
--------------
Orchestrates the settlement of one load's payment: opens the current
settlement view, selects the flow, and confirms each step of the
Invoitix and Valuta sequences.  Pure computation is delegated to
``settlement_engines``; persistence goes through a ``PaymentStore``.

Architecture position
---------------------
**Modules layer** -- thin orchestration glue.  ``PaymentSettlementService``
is the sole public entry point for settlement writes.  It composes the
fee / projection / step / lock engines, the workflow codec, the
declarative workflows of ``workflows.py`` and the injected store.

Invariants enforced
-------------------
* Every confirmation checks its workflow transition and guards before it
  asks the operator, and asks the operator before it writes.
* A declined confirmation writes nothing.
* All writes of one operation share a single ``unit_of_work()``.
* ``flow_type``, ``valuta.mode`` and ``valuta.countdown_start`` are
  immutable once the selected flow has recorded progress.
* The payment amount written is always strictly positive.

Failure modes
-------------
* ``WorkflowValidationError`` subclasses -- a precondition failed;
  nothing was written.
* ``TransportError`` subclasses -- the store failed; the unit of work was
  rolled back.

Audit relevance
---------------
Structured log events at operation start, on decline and on commit,
carrying load and payment IDs, the flow type and the amounts written.

Usage::

    service = PaymentSettlementService(store, clock=clock)
    snapshot = service.select_flow(
        load, FlowType.VALUTA,
        countdown_start=CountdownStart.EMAIL_COPY_INVOICE,
        countdown_days="30",
    )
    outcome = service.confirm_valuta_email_sent(load, approve=lambda prompt: True)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

from settlement_config import SettlementConfig, get_active_config
from settlement_engines.fees import invoitix_payout, projected_payout
from settlement_engines.lock import ensure_flow_editable
from settlement_engines.projection import (
    add_days,
    invoitix_projected_payout_date,
    valuta_countdown_start_date,
    valuta_projected_payout_date,
)
from settlement_engines.steps import SettlementProgress, derive_progress
from settlement_kernel.domain.clock import Clock, SystemClock
from settlement_kernel.domain.settlement import (
    CountdownStart,
    FlowType,
    InvoiceDispatch,
    LoadSnapshot,
    PaymentStatus,
    ValutaMode,
    WorkflowModel,
    merge_workflow,
)
from settlement_kernel.domain.values import (
    ZERO,
    parse_non_negative_decimal,
    parse_non_negative_int,
    round_money,
)
from settlement_kernel.domain.workflow import Workflow
from settlement_kernel.exceptions import (
    BrokerNotAssignedError,
    BankFeeLockedError,
    CountdownNotStartedError,
    FlowNotSelectedError,
    InvalidAmountError,
    InvalidNumberError,
    LoadNotCompletedError,
    MissingTrackingNumberError,
    StepOrderError,
)
from settlement_kernel.logging_config import LogContext, get_logger
from settlement_modules.payments.codec import encode_workflow, resolve_payment_workflow
from settlement_modules.payments.models import NewPayment, PaymentChanges, PaymentRecord
from settlement_modules.payments.store import PaymentStore
from settlement_modules.payments.workflows import (
    CONFIRM_DOCUMENTS_ARRIVED,
    CONFIRM_DOCUMENTS_SENT,
    CONFIRM_EMAIL_SENT,
    CONFIRM_INVOITIX_PAYOUT,
    CONFIRM_VALUTA_PAYOUT,
    COUNTDOWN_STARTED,
    INVOITIX_WORKFLOW,
    LOAD_COMPLETED,
    SEND_TO_INVOITIX,
    TRACKING_NUMBER_PRESENT,
    VALUTA_EMAIL_WORKFLOW,
    VALUTA_ORIGINALS_WORKFLOW,
    current_state,
    workflow_for,
)

logger = get_logger("modules.payments.service")

Approve = Callable[[str], bool]

MAX_COUNTDOWN_DAYS = 36_500


@runtime_checkable
class LoadFlagWriter(Protocol):
    """Writes the legacy boolean flow flags back onto the load."""

    def set_flow_flags(self, load_id: str, *, invoitix: bool, valuta_check: bool) -> None: ...


@dataclass(frozen=True)
class SettlementSnapshot:
    """Everything known about one load's settlement at a point in time."""

    load: LoadSnapshot
    payment: PaymentRecord | None
    model: WorkflowModel
    manual_note: str
    progress: SettlementProgress


@dataclass(frozen=True)
class StepOutcome:
    """
    Result of a confirmation.

    ``confirmed`` is False when the operator declined ``prompt``; the
    snapshot is then the unchanged settlement.
    """

    confirmed: bool
    prompt: str
    snapshot: SettlementSnapshot


def format_date(value: date | None) -> str:
    """Operator-facing date (``31/01/2024``)."""
    if value is None:
        return "-"
    return f"{value:%d/%m/%Y}"


def format_money(amount: Decimal, currency: str = "EUR") -> str:
    return f"{round_money(amount):,.2f} {currency}"


class PaymentSettlementService:
    """
    Drives one load's payment through its settlement steps.

    Contract:
        Every public method takes the current ``LoadSnapshot``, re-reads
        the payment from the store, and returns a fresh
        ``SettlementSnapshot`` (wrapped in a ``StepOutcome`` for
        confirmations).
    Guarantees:
        - "Today" comes from the injected ``Clock`` only.
        - Confirmations call ``approve`` exactly once, after all
          preconditions pass.
    Non-goals:
        Concurrent writers on one payment; the last unit of work wins.
    """

    def __init__(
        self,
        store: PaymentStore,
        clock: Clock | None = None,
        config: SettlementConfig | None = None,
        load_flags: LoadFlagWriter | None = None,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._load_flags = load_flags

    # =========================================================================
    # Reading
    # =========================================================================

    def open_settlement(self, load: LoadSnapshot) -> SettlementSnapshot:
        """Resolve the payment's workflow and derive its progress."""
        payment = self._store.get_by_load(load.load_id)
        decoded = resolve_payment_workflow(payment, load, self._config.notes_payload_kind)
        progress = derive_progress(
            decoded.model,
            load,
            self._clock.today(),
            bank_fee_saved=payment is not None and payment.workflow is not None
            and payment.workflow.has_bank_fee,
            payment_status=payment.status if payment is not None else None,
            fee_rate=self._config.invoitix_fee_rate,
            fixed_fee=self._config.invoitix_fixed_fee,
            invoitix_payout_days=self._config.invoitix_payout_days,
        )
        return SettlementSnapshot(
            load=load,
            payment=payment,
            model=decoded.model,
            manual_note=decoded.manual_note,
            progress=progress,
        )

    # =========================================================================
    # Saving
    # =========================================================================

    def save_payment_details(
        self,
        load: LoadSnapshot,
        model: WorkflowModel,
        manual_note: str = "",
        *,
        amount: Decimal | None = None,
        issue_date: date | None = None,
        due_date: date | None = None,
        status: PaymentStatus | None = None,
        mark_paid_date: date | None = None,
    ) -> SettlementSnapshot:
        """
        Persist a workflow and the payment fields derived from it.

        Creates the Payment Record on first save.  Omitted fields keep the
        record's current value, then fall back to the load's data.

        Raises:
            FlowNotSelectedError: ``model`` has no flow type.
            InvalidAmountError: the resulting amount is not positive.
            BrokerNotAssignedError: creating a record for a load without
                a broker.
            FlowLockedError: the locked flow selection would change.
        """
        current = self.open_settlement(load)
        with LogContext.bind(load_id=load.load_id):
            with self._store.unit_of_work():
                self._write(
                    current,
                    model,
                    manual_note,
                    amount=amount,
                    issue_date=issue_date,
                    due_date=due_date,
                    status=status,
                    mark_paid_date=mark_paid_date,
                )
        return self.open_settlement(load)

    def save_manual_note(self, load: LoadSnapshot, manual_note: str) -> SettlementSnapshot:
        """Replace the free-text note, keeping the workflow as is."""
        current = self.open_settlement(load)
        return self.save_payment_details(
            load,
            current.model,
            manual_note,
            amount=self._expected_amount(current),
        )

    def select_flow(
        self,
        load: LoadSnapshot,
        flow_type: FlowType,
        *,
        mode: ValutaMode | None = None,
        countdown_start: CountdownStart | None = None,
        countdown_days: Any = None,
        skonto_percent: Any = None,
    ) -> SettlementSnapshot:
        """
        Choose the settlement flow and, for Valuta, its terms.

        Omitted Valuta terms keep their current value.

        Raises:
            InvalidNumberError: ``countdown_days`` or ``skonto_percent`` is
                not a non-negative number.
            FlowLockedError: the selection is locked by recorded progress.
        """
        valuta: dict[str, Any] = {}
        if mode is not None:
            valuta["mode"] = mode
        if countdown_start is not None:
            valuta["countdown_start"] = countdown_start
        if countdown_days is not None:
            valuta["countdown_days"] = _number_input("Countdown days", countdown_days, whole=True)
        if skonto_percent is not None:
            valuta["skonto_percent"] = _number_input("Skonto percent", skonto_percent)

        current = self.open_settlement(load)
        proposed = merge_workflow(current.model, {"flow_type": flow_type, "valuta": valuta})

        logger.info(
            "settlement_flow_selected",
            extra={
                "load_id": load.load_id,
                "flow_type": flow_type.value,
                "valuta_mode": proposed.valuta.mode.value,
                "countdown_start": (
                    proposed.valuta.countdown_start.value
                    if proposed.valuta.countdown_start is not None else None
                ),
            },
        )
        return self.save_payment_details(
            load,
            proposed,
            current.manual_note,
            amount=self._expected_amount(current),
            status=current.payment.status if current.payment is not None else None,
        )

    def save_valuta_terms(
        self,
        load: LoadSnapshot,
        *,
        countdown_days: Any = None,
        skonto_percent: Any = None,
    ) -> SettlementSnapshot:
        """
        Update the Valuta countdown days and discount; allowed while locked.

        Raises:
            FlowNotSelectedError: the payment is not on the Valuta flow.
        """
        if self.open_settlement(load).model.flow_type is not FlowType.VALUTA:
            raise FlowNotSelectedError("Select the Valuta flow before editing its terms.")
        return self.select_flow(
            load,
            FlowType.VALUTA,
            countdown_days=countdown_days,
            skonto_percent=skonto_percent,
        )

    # =========================================================================
    # Invoitix
    # =========================================================================

    def send_to_invoitix(
        self,
        load: LoadSnapshot,
        approve: Approve,
        *,
        sent_on: date | None = None,
    ) -> StepOutcome:
        """
        Mark the invoice as sent to Invoitix.

        Preconditions: load completed; flow is Invoitix or not chosen yet;
        not already sent.
        Postconditions: ``sent_at`` and ``projected_income_added_at`` set;
        payment INVOICED for the base amount, due on the projected payout
        date.
        """
        current = self.open_settlement(load)
        self._check_transition(current, INVOITIX_WORKFLOW, SEND_TO_INVOITIX)
        ensure_flow_editable(
            current.model, merge_workflow(current.model, {"flow_type": FlowType.INVOITIX}),
        )

        sent = sent_on or self._clock.today()
        projected = invoitix_projected_payout_date(sent, self._config.invoitix_payout_days)
        payout = invoitix_payout(
            load.base_amount, self._config.invoitix_fee_rate, self._config.invoitix_fixed_fee,
        )
        prompt = (
            f"Are you sure you want to mark this load as sent to Invoitix on {format_date(sent)}?\n\n"
            f"Projected payout: {format_money(payout, load.currency)}\n"
            f"Projected date: {format_date(projected)}"
        )

        def write(state: SettlementSnapshot) -> None:
            model = merge_workflow(state.model, {
                "flow_type": FlowType.INVOITIX,
                "invoitix": {"sent_at": sent, "projected_income_added_at": sent},
            })
            self._write(
                state,
                model,
                state.manual_note,
                amount=load.base_amount,
                status=PaymentStatus.INVOICED,
                issue_date=sent,
                due_date=projected,
            )

        return self._confirm(current, SEND_TO_INVOITIX, prompt, approve, write)

    def confirm_invoitix_payout(self, load: LoadSnapshot, approve: Approve) -> StepOutcome:
        """
        Record the Invoitix payout.

        Preconditions: sent to Invoitix; payout not yet confirmed.
        Postconditions: ``paid_out_at`` and ``payout_confirmed_at`` set to
        today; payment PAID for the Invoitix payout.
        """
        current = self.open_settlement(load)
        self._check_transition(current, INVOITIX_WORKFLOW, CONFIRM_INVOITIX_PAYOUT)

        today = self._clock.today()
        sent = current.model.invoitix.sent_at
        prompt = "Confirm Invoitix payout received?"

        def write(state: SettlementSnapshot) -> None:
            model = merge_workflow(state.model, {
                "invoitix": {"paid_out_at": today, "payout_confirmed_at": today},
            })
            self._write(
                state,
                model,
                state.manual_note,
                amount=state.progress.invoitix_payout,
                status=PaymentStatus.PAID,
                issue_date=sent,
                due_date=invoitix_projected_payout_date(sent, self._config.invoitix_payout_days),
                mark_paid_date=today,
            )

        return self._confirm(current, CONFIRM_INVOITIX_PAYOUT, prompt, approve, write)

    # =========================================================================
    # Valuta
    # =========================================================================

    def confirm_valuta_email_sent(
        self,
        load: LoadSnapshot,
        approve: Approve,
        *,
        sent_on: date | None = None,
    ) -> StepOutcome:
        """
        Record that the invoice copy was emailed with the CMR.

        Starts the countdown of the EMAIL_COPY_INVOICE sequence.
        """
        current = self.open_settlement(load)
        self._check_transition(current, VALUTA_EMAIL_WORKFLOW, CONFIRM_EMAIL_SENT)

        sent = sent_on or self._clock.today()
        prompt = f"Confirm email copy + invoice sent on {format_date(sent)}?"

        def write(state: SettlementSnapshot) -> None:
            model = merge_workflow(state.model, {
                "valuta": {
                    "invoice_sent_at": sent,
                    "invoice_dispatch": InvoiceDispatch.EMAIL_WITH_CMR,
                },
            })
            days = parse_non_negative_int(model.valuta.countdown_days) or 0
            self._write(
                state,
                model,
                state.manual_note,
                amount=self._expected_amount(state),
                issue_date=sent,
                due_date=add_days(sent, days),
            )

        return self._confirm(current, CONFIRM_EMAIL_SENT, prompt, approve, write)

    def confirm_valuta_documents_sent(
        self,
        load: LoadSnapshot,
        approve: Approve,
        tracking_number: str,
        *,
        sent_on: date | None = None,
    ) -> StepOutcome:
        """
        Record that the original documents were shipped to the broker.

        Raises:
            MissingTrackingNumberError: ``tracking_number`` is blank.
        """
        current = self.open_settlement(load)
        tracking = (tracking_number or "").strip()
        self._check_transition(
            current, VALUTA_ORIGINALS_WORKFLOW, CONFIRM_DOCUMENTS_SENT, tracking_number=tracking,
        )

        sent = sent_on or self._clock.today()
        prompt = f"Confirm originals sent to broker on {format_date(sent)}?"

        def write(state: SettlementSnapshot) -> None:
            model = merge_workflow(state.model, {
                "valuta": {
                    "shipped_at": sent,
                    "tracking_number": tracking,
                    "invoice_dispatch": InvoiceDispatch.WAIT_AND_SHIP_ORIGINALS,
                },
            })
            self._write(
                state,
                model,
                state.manual_note,
                amount=self._expected_amount(state),
                issue_date=sent,
            )

        return self._confirm(current, CONFIRM_DOCUMENTS_SENT, prompt, approve, write)

    def confirm_valuta_documents_arrived(
        self,
        load: LoadSnapshot,
        approve: Approve,
        *,
        arrived_on: date | None = None,
    ) -> StepOutcome:
        """Record the arrival of the originals; starts the countdown."""
        current = self.open_settlement(load)
        self._check_transition(current, VALUTA_ORIGINALS_WORKFLOW, CONFIRM_DOCUMENTS_ARRIVED)

        arrived = arrived_on or self._clock.today()
        prompt = f"Confirm originals arrived on {format_date(arrived)}?"

        def write(state: SettlementSnapshot) -> None:
            model = merge_workflow(state.model, {"valuta": {"documents_arrived_at": arrived}})
            days = parse_non_negative_int(model.valuta.countdown_days) or 0
            self._write(
                state,
                model,
                state.manual_note,
                amount=self._expected_amount(state),
                due_date=add_days(arrived, days),
            )

        return self._confirm(current, CONFIRM_DOCUMENTS_ARRIVED, prompt, approve, write)

    def confirm_valuta_payout(self, load: LoadSnapshot, approve: Approve) -> StepOutcome:
        """
        Record the Valuta payout received today.

        Payment becomes PAID for the projected Valuta payout, due on the
        projected date (today when none can be projected).
        """
        current = self.open_settlement(load)
        workflow = workflow_for(current.model)
        if workflow not in (VALUTA_EMAIL_WORKFLOW, VALUTA_ORIGINALS_WORKFLOW):
            raise FlowNotSelectedError("Select the Valuta flow and its countdown start first.")
        self._check_transition(current, workflow, CONFIRM_VALUTA_PAYOUT)

        today = self._clock.today()
        prompt = f"Confirm payout received on {format_date(today)}?"

        def write(state: SettlementSnapshot) -> None:
            model = merge_workflow(state.model, {"valuta": {"payout_received_at": today}})
            self._write(
                state,
                model,
                state.manual_note,
                amount=self._valuta_amount(load, model),
                status=PaymentStatus.PAID,
                due_date=valuta_projected_payout_date(model) or today,
                mark_paid_date=today,
            )

        return self._confirm(current, CONFIRM_VALUTA_PAYOUT, prompt, approve, write)

    def save_valuta_bank_fee(self, load: LoadSnapshot, bank_fee: Any) -> SettlementSnapshot:
        """
        Record the bank fee deducted from a received Valuta payout.

        Raises:
            InvalidNumberError: ``bank_fee`` is not a non-negative number.
            FlowNotSelectedError: the payment is not on the Valuta flow.
            StepOrderError: the payout has not been received yet.
            BankFeeLockedError: a bank fee is already recorded.
        """
        fee_text = _number_input("Bank fee", bank_fee)
        current = self.open_settlement(load)
        if current.model.flow_type is not FlowType.VALUTA:
            raise FlowNotSelectedError("Select the Valuta flow first.")
        if current.model.valuta.payout_received_at is None:
            raise StepOrderError("save_valuta_bank_fee", CONFIRM_VALUTA_PAYOUT)
        saved = current.payment.workflow if current.payment is not None else None
        if saved is not None and saved.has_bank_fee:
            raise BankFeeLockedError(saved.valuta_bank_fee_amount)

        model = merge_workflow(current.model, {"valuta": {"bank_fee_amount": fee_text}})
        due = valuta_projected_payout_date(model)
        if due is None and current.payment is not None:
            due = current.payment.due_date

        logger.info(
            "valuta_bank_fee_saved",
            extra={"load_id": load.load_id, "bank_fee": fee_text},
        )
        return self.save_payment_details(
            load,
            model,
            current.manual_note,
            amount=self._valuta_amount(load, model),
            status=PaymentStatus.PAID,
            due_date=due,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _check_transition(
        self,
        current: SettlementSnapshot,
        workflow: Workflow,
        action: str,
        tracking_number: str | None = None,
    ) -> None:
        """Raise unless ``action`` is the next step and its guards hold."""
        model = current.model
        active = workflow_for(model)
        if workflow is INVOITIX_WORKFLOW:
            undecided_send = action == SEND_TO_INVOITIX and model.flow_type is None
            if active is not INVOITIX_WORKFLOW and not undecided_send:
                raise FlowNotSelectedError("Select the Invoitix flow first.")
        elif active is not workflow:
            raise FlowNotSelectedError("Select the Valuta flow and its countdown start first.")

        state = current_state(workflow, model)
        transition = workflow.find_transition(state, action)
        if transition is None:
            expected = next(t for t in workflow.transitions if t.action == action)
            required = next(
                (t.action for t in workflow.transitions if t.to_state == expected.from_state),
                expected.from_state,
            )
            logger.warning(
                "settlement_step_out_of_order",
                extra={
                    "load_id": current.load.load_id,
                    "action": action,
                    "current_state": state,
                    "required_state": required,
                },
            )
            raise StepOrderError(action, required)

        for guard in transition.guards:
            if guard is LOAD_COMPLETED and not current.load.is_completed:
                raise LoadNotCompletedError(current.load.load_id)
            if guard is TRACKING_NUMBER_PRESENT and not tracking_number:
                raise MissingTrackingNumberError()
            if guard is COUNTDOWN_STARTED and valuta_countdown_start_date(model) is None:
                start = model.valuta.countdown_start
                raise CountdownNotStartedError(start.value if start is not None else None)

    def _confirm(
        self,
        current: SettlementSnapshot,
        action: str,
        prompt: str,
        approve: Approve,
        write: Callable[[SettlementSnapshot], None],
    ) -> StepOutcome:
        load = current.load
        with LogContext.bind(load_id=load.load_id):
            if not approve(prompt):
                logger.info("settlement_step_declined", extra={"action": action})
                return StepOutcome(confirmed=False, prompt=prompt, snapshot=current)

            logger.info("settlement_step_started", extra={"action": action})
            with self._store.unit_of_work():
                write(current)

        snapshot = self.open_settlement(load)
        logger.info(
            "settlement_step_committed",
            extra={
                "load_id": load.load_id,
                "action": action,
                "status_label": snapshot.progress.status_label,
                "payment_status": (
                    snapshot.payment.status.value if snapshot.payment is not None else None
                ),
            },
        )
        return StepOutcome(confirmed=True, prompt=prompt, snapshot=snapshot)

    def _expected_amount(self, state: SettlementSnapshot) -> Decimal:
        """Base amount when positive, else whatever the record already holds."""
        base = state.load.base_amount
        if base > ZERO:
            return base
        if state.payment is not None:
            return state.payment.amount
        return base

    def _valuta_amount(self, load: LoadSnapshot, model: WorkflowModel) -> Decimal:
        return projected_payout(
            FlowType.VALUTA,
            load.base_amount,
            model,
            self._config.invoitix_fee_rate,
            self._config.invoitix_fixed_fee,
        )

    def _write(
        self,
        current: SettlementSnapshot,
        model: WorkflowModel,
        manual_note: str,
        *,
        amount: Decimal | None = None,
        issue_date: date | None = None,
        due_date: date | None = None,
        status: PaymentStatus | None = None,
        mark_paid_date: date | None = None,
    ) -> PaymentRecord:
        load = current.load
        payment = current.payment
        if model.flow_type is None:
            raise FlowNotSelectedError()
        ensure_flow_editable(current.model, model)

        resolved_amount = amount if amount is not None else load.base_amount
        if resolved_amount is None or resolved_amount <= ZERO:
            raise InvalidAmountError(resolved_amount)
        resolved_amount = round_money(resolved_amount)

        note = (manual_note or "").strip()
        issue = issue_date or (payment.issue_date if payment else None) or load.delivery_date_from
        due = (
            due_date
            or (payment.due_date if payment else None)
            or load.delivery_date_to
            or load.delivery_date_from
        )
        resolved_status = status or (payment.status if payment else None) or PaymentStatus.PENDING
        workflow = encode_workflow(model, note)

        if payment is not None:
            record = self._store.update(
                payment.payment_id,
                PaymentChanges(
                    amount=resolved_amount,
                    status=resolved_status,
                    issue_date=issue,
                    due_date=due,
                    notes=note,
                    workflow=workflow,
                ),
            )
        else:
            if not load.broker_id:
                raise BrokerNotAssignedError(load.load_id)
            record = self._store.create(
                NewPayment(
                    load_id=load.load_id,
                    broker_id=load.broker_id,
                    status=resolved_status,
                    amount=resolved_amount,
                    currency=load.currency or self._config.default_currency,
                    issue_date=issue,
                    due_date=due,
                    notes=note,
                    workflow=workflow,
                )
            )

        if mark_paid_date is not None:
            record = self._store.mark_paid(record.payment_id, mark_paid_date)

        self._sync_load_flags(load, model.flow_type)

        logger.info(
            "payment_details_saved",
            extra={
                "load_id": load.load_id,
                "payment_id": str(record.payment_id),
                "flow_type": model.flow_type.value,
                "amount": str(record.amount),
                "status": record.status.value,
                "record_created": payment is None,
            },
        )
        return record

    def _sync_load_flags(self, load: LoadSnapshot, flow_type: FlowType) -> None:
        invoitix = flow_type is FlowType.INVOITIX
        valuta_check = flow_type is FlowType.VALUTA
        if self._load_flags is None:
            return
        if load.legacy_invoitix_flag == invoitix and load.legacy_valuta_flag == valuta_check:
            return
        self._load_flags.set_flow_flags(load.load_id, invoitix=invoitix, valuta_check=valuta_check)
        logger.debug(
            "load_flow_flags_synced",
            extra={"load_id": load.load_id, "invoitix": invoitix, "valuta_check": valuta_check},
        )


def _number_input(label: str, value: Any, whole: bool = False) -> str:
    """
    Validate operator number input; blank text clears the field.

    Whole numbers are day counts and may not exceed MAX_COUNTDOWN_DAYS.
    """
    if isinstance(value, str) and not value.strip():
        return ""
    parsed = parse_non_negative_decimal(value)
    if parsed is None:
        raise InvalidNumberError(label, value)
    if whole:
        days = parse_non_negative_int(parsed)
        if days > MAX_COUNTDOWN_DAYS:
            raise InvalidNumberError(label, value)
        return str(days)
    return str(value).strip() if isinstance(value, str) else str(parsed)
