"""
Payment Domain Models (``settlement_modules.payments.models``).

Responsibility
--------------
Frozen value objects for the external Payment Record and its flat
workflow sub-record, plus the change sets the payment service hands to
the store.  ``PaymentWorkflowRecord`` owns the camelCase wire mapping.

Architecture position
---------------------
**Modules layer** -- pure data definitions.  No I/O, no database.  These
objects flow between ``PaymentSettlementService``, the codec, and the
payment stores.

Invariants enforced
-------------------
* All monetary fields use ``Decimal`` (never ``float``).
* All dataclasses are ``frozen=True``.
* ``PaymentWorkflowRecord.from_payload`` is lenient: a malformed field
  becomes ``None`` instead of failing the whole record.

Failure modes
-------------
* ``ValueError`` from ``PaymentRecord.__post_init__`` on a negative amount.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from settlement_kernel.domain.settlement import (
    CountdownStart,
    FlowType,
    InvoiceDispatch,
    InvoitixDecision,
    PaymentStatus,
    ValutaMode,
)
from settlement_kernel.domain.values import (
    ZERO,
    date_key,
    parse_non_negative_decimal,
    parse_non_negative_int,
    round_money,
    to_date_only,
)
from settlement_kernel.logging_config import get_logger

logger = get_logger("modules.payments.models")


@dataclass(frozen=True)
class PaymentWorkflowRecord:
    """
    Flat persisted form of a settlement workflow.

    Every field is optional; ``None`` means "not recorded".  Numbers are
    already parsed: whole countdown days, and percent / bank fee rounded
    to cents.  ``valuta_projected_payout_date`` is derived on encode and
    stored so readers need not recompute it.
    """

    manual_note: str | None = None
    flow_type: FlowType | None = None

    invoitix_sent_at: date | None = None
    invoitix_decision: InvoitixDecision | None = None
    invoitix_rejected_at: date | None = None
    invoitix_resubmitted_at: date | None = None
    invoitix_approved_at: date | None = None
    invoitix_paid_out_at: date | None = None
    invoitix_payout_reference: str | None = None
    invoitix_projected_income_added_at: date | None = None
    invoitix_payout_confirmed_at: date | None = None

    valuta_mode: ValutaMode | None = None
    valuta_countdown_start: CountdownStart | None = None
    valuta_countdown_days: int | None = None
    valuta_skonto_percent: Decimal | None = None
    valuta_sent_to_accountant_at: date | None = None
    valuta_invoice_dispatch: InvoiceDispatch | None = None
    valuta_invoice_sent_at: date | None = None
    valuta_shipped_at: date | None = None
    valuta_tracking_number: str | None = None
    valuta_documents_arrived_at: date | None = None
    valuta_projected_payout_date: date | None = None
    valuta_payout_received_at: date | None = None
    valuta_bank_fee_amount: Decimal | None = None

    @property
    def has_bank_fee(self) -> bool:
        return self.valuta_bank_fee_amount is not None

    def to_payload(self) -> dict[str, Any]:
        """camelCase wire dict; unset fields are omitted."""
        payload: dict[str, Any] = {}
        for wire_field in _WIRE_FIELDS:
            value = getattr(self, wire_field.attr)
            if value is None:
                continue
            payload[wire_field.wire] = wire_field.dump(value)
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> PaymentWorkflowRecord:
        """Build a record from a camelCase wire dict, ignoring unknown keys."""
        values: dict[str, Any] = {}
        for wire_field in _WIRE_FIELDS:
            raw = payload.get(wire_field.wire)
            values[wire_field.attr] = None if raw is None else wire_field.load(raw)
        return cls(**values)


# ---------------------------------------------------------------------------
# Wire mapping
# ---------------------------------------------------------------------------


def _load_enum(enum_cls: type[Enum]) -> Callable[[Any], Any]:
    def load(value: Any) -> Any:
        try:
            return enum_cls(value)
        except (ValueError, TypeError):
            return None

    return load


def _load_text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _load_money(value: Any) -> Decimal | None:
    parsed = parse_non_negative_decimal(value)
    return round_money(parsed) if parsed is not None else None


def _dump_enum(value: Enum) -> str:
    return value.value


def _dump_number(value: Decimal | int) -> float | int:
    return value if isinstance(value, int) else float(value)


def _identity(value: Any) -> Any:
    return value


@dataclass(frozen=True)
class _WireField:
    attr: str
    wire: str
    load: Callable[[Any], Any]
    dump: Callable[[Any], Any]


def _wire(attr: str, load: Callable[[Any], Any], dump: Callable[[Any], Any]) -> _WireField:
    head, *rest = attr.split("_")
    return _WireField(attr, head + "".join(part.capitalize() for part in rest), load, dump)


_LOADERS: dict[str, tuple[Callable[[Any], Any], Callable[[Any], Any]]] = {
    "manual_note": (_load_text, _identity),
    "flow_type": (_load_enum(FlowType), _dump_enum),
    "invoitix_decision": (_load_enum(InvoitixDecision), _dump_enum),
    "invoitix_payout_reference": (_load_text, _identity),
    "valuta_mode": (_load_enum(ValutaMode), _dump_enum),
    "valuta_countdown_start": (_load_enum(CountdownStart), _dump_enum),
    "valuta_countdown_days": (parse_non_negative_int, _identity),
    "valuta_skonto_percent": (_load_money, _dump_number),
    "valuta_invoice_dispatch": (_load_enum(InvoiceDispatch), _dump_enum),
    "valuta_tracking_number": (_load_text, _identity),
    "valuta_bank_fee_amount": (_load_money, _dump_number),
}

# Every other field is a calendar date.
_WIRE_FIELDS: tuple[_WireField, ...] = tuple(
    _wire(f.name, *_LOADERS.get(f.name, (to_date_only, date_key)))
    for f in fields(PaymentWorkflowRecord)
)


# ---------------------------------------------------------------------------
# Payment Record
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PaymentRecord:
    """
    The money owed for one load, as persisted by the payment store.

    Contract: frozen snapshot; ``notes`` may hold a legacy workflow
    payload when ``workflow`` is ``None``.
    """

    payment_id: UUID
    load_id: str
    broker_id: str
    status: PaymentStatus
    amount: Decimal
    currency: str = "EUR"
    issue_date: date | None = None
    due_date: date | None = None
    paid_date: date | None = None
    notes: str | None = None
    workflow: PaymentWorkflowRecord | None = None

    def __post_init__(self):
        if self.amount < ZERO:
            raise ValueError("amount cannot be negative")


@dataclass(frozen=True)
class NewPayment:
    """Everything needed to create a Payment Record."""

    load_id: str
    broker_id: str
    status: PaymentStatus
    amount: Decimal
    currency: str
    issue_date: date | None = None
    due_date: date | None = None
    notes: str | None = None
    workflow: PaymentWorkflowRecord | None = None


@dataclass(frozen=True)
class PaymentChanges:
    """Partial update of a Payment Record; ``None`` leaves a field unchanged."""

    amount: Decimal | None = None
    status: PaymentStatus | None = None
    issue_date: date | None = None
    due_date: date | None = None
    notes: str | None = None
    workflow: PaymentWorkflowRecord | None = None
