"""
Settlement workflow model (``settlement_kernel.domain.settlement``).

Responsibility
--------------
Immutable in-memory representation of one payment's settlement workflow
plus the total merge utility that produces it from partial input.  The
same merge is used when decoding persisted data and when applying
in-flight step patches, so every ``WorkflowModel`` in the system has
every field present and normalized.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  Engines,
the codec, and the payment service all build on these types.

Invariants enforced
-------------------
* Exactly one branch (``invoitix`` or ``valuta``) is active, selected by
  ``flow_type``; the other is retained but inert.
* Dates are ``datetime.date`` values (no time of day).
* Numeric text fields hold either ``""`` or text that parses to a
  non-negative number.
* ``merge_workflow`` is total: it never raises, and
  ``merge_defaults(merge_defaults(x)) == merge_defaults(x)``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from settlement_kernel.domain.values import (
    ZERO,
    normalize_numeric_text,
    to_amount,
    to_date_only,
)

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class FlowType(str, Enum):
    """Mutually exclusive settlement path."""

    INVOITIX = "INVOITIX"
    VALUTA = "VALUTA"


class InvoitixDecision(str, Enum):
    PENDING = "PENDING"
    REJECTED = "REJECTED"
    APPROVED = "APPROVED"


class ValutaMode(str, Enum):
    """Plain countdown, or countdown with an early-payment discount."""

    VALUTA = "VALUTA"
    SKONTO = "SKONTO"


class CountdownStart(str, Enum):
    """Which event's date starts the day-count toward expected payout."""

    ORIGINALS_RECEIVED = "ORIGINALS_RECEIVED"
    EMAIL_COPY_INVOICE = "EMAIL_COPY_INVOICE"


class InvoiceDispatch(str, Enum):
    EMAIL_WITH_CMR = "EMAIL_WITH_CMR"
    WAIT_AND_SHIP_ORIGINALS = "WAIT_AND_SHIP_ORIGINALS"


class PaymentStatus(str, Enum):
    """Status of the external Payment Record."""

    PENDING = "PENDING"
    INVOICED = "INVOICED"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    DISPUTED = "DISPUTED"
    WRITTEN_OFF = "WRITTEN_OFF"


# ---------------------------------------------------------------------------
# Workflow value objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InvoitixState:
    """Factoring branch substate. Meaningful only when flow is INVOITIX."""

    sent_at: date | None = None
    decision: InvoitixDecision = InvoitixDecision.PENDING
    rejected_at: date | None = None
    resubmitted_at: date | None = None
    approved_at: date | None = None
    paid_out_at: date | None = None
    payout_reference: str = ""
    projected_income_added_at: date | None = None
    payout_confirmed_at: date | None = None


@dataclass(frozen=True)
class ValutaState:
    """
    Direct-invoice branch substate. Meaningful only when flow is VALUTA.

    ``countdown_days``, ``skonto_percent`` and ``bank_fee_amount`` are kept
    as operator-entered text; parse them with the helpers in
    ``settlement_kernel.domain.values``.
    """

    mode: ValutaMode = ValutaMode.VALUTA
    countdown_start: CountdownStart | None = None
    countdown_days: str = ""
    skonto_percent: str = ""
    sent_to_accountant_at: date | None = None
    invoice_dispatch: InvoiceDispatch | None = None
    invoice_sent_at: date | None = None
    shipped_at: date | None = None
    tracking_number: str = ""
    documents_arrived_at: date | None = None
    payout_received_at: date | None = None
    bank_fee_amount: str = ""


@dataclass(frozen=True)
class WorkflowModel:
    """
    Settlement workflow of one Payment Record.

    Contract: frozen; construct through ``merge_defaults`` /
    ``merge_workflow`` when input is untrusted.
    """

    flow_type: FlowType | None = None
    invoitix: InvoitixState = field(default_factory=InvoitixState)
    valuta: ValutaState = field(default_factory=ValutaState)

    @property
    def is_invoitix(self) -> bool:
        return self.flow_type is FlowType.INVOITIX

    @property
    def is_valuta(self) -> bool:
        return self.flow_type is FlowType.VALUTA

    def to_dict(self) -> dict[str, Any]:
        """Nested snake_case mapping accepted back by ``merge_workflow``."""
        return {
            "flow_type": self.flow_type,
            "invoitix": {f.name: getattr(self.invoitix, f.name) for f in fields(InvoitixState)},
            "valuta": {f.name: getattr(self.valuta, f.name) for f in fields(ValutaState)},
        }


DEFAULT_WORKFLOW = WorkflowModel()


@dataclass(frozen=True)
class LoadSnapshot:
    """
    Read-only view of the Load a payment belongs to.

    ``base_amount`` is the agreed price, else the published price.
    ``legacy_*_flag`` are the boolean flow flags older loads carry.
    """

    load_id: str
    base_amount: Decimal
    is_completed: bool
    legacy_invoitix_flag: bool = False
    legacy_valuta_flag: bool = False
    broker_id: str | None = None
    currency: str = "EUR"
    delivery_date_from: date | None = None
    delivery_date_to: date | None = None

    @classmethod
    def of(
        cls,
        load_id: str,
        *,
        status: str,
        agreed_price: Any = None,
        published_price: Any = None,
        invoitix: bool = False,
        valuta_check: bool = False,
        broker_id: str | None = None,
        currency: str = "EUR",
        delivery_date_from: Any = None,
        delivery_date_to: Any = None,
    ) -> LoadSnapshot:
        """Build a snapshot from raw load attributes."""
        price = agreed_price if agreed_price is not None else published_price
        base_amount = to_amount(price)
        return cls(
            load_id=load_id,
            base_amount=base_amount if base_amount is not None else ZERO,
            is_completed=status == "DELIVERED",
            legacy_invoitix_flag=bool(invoitix),
            legacy_valuta_flag=bool(valuta_check),
            broker_id=broker_id,
            currency=currency,
            delivery_date_from=to_date_only(delivery_date_from),
            delivery_date_to=to_date_only(delivery_date_to),
        )


# ---------------------------------------------------------------------------
# Closed-schema merge
# ---------------------------------------------------------------------------

_INVALID = object()
_MISSING = object()


def _coerce_date(value: Any) -> Any:
    parsed = to_date_only(value)
    return _INVALID if parsed is None else parsed


def _coerce_text(value: Any) -> Any:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, Decimal)) and not isinstance(value, bool):
        return str(value)
    return _INVALID


def _coerce_enum(enum_cls: type[Enum]) -> Callable[[Any], Any]:
    def coerce(value: Any) -> Any:
        if isinstance(value, enum_cls):
            return value
        try:
            return enum_cls(value)
        except (ValueError, TypeError):
            return _INVALID

    return coerce


@dataclass(frozen=True)
class _FieldSpec:
    name: str
    alias: str
    coerce: Callable[[Any], Any]
    nullable: bool


def _field(name: str, coerce: Callable[[Any], Any], nullable: bool = True) -> _FieldSpec:
    head, *rest = name.split("_")
    alias = head + "".join(part.capitalize() for part in rest)
    return _FieldSpec(name=name, alias=alias, coerce=coerce, nullable=nullable)


_INVOITIX_SCHEMA: tuple[_FieldSpec, ...] = (
    _field("sent_at", _coerce_date),
    _field("decision", _coerce_enum(InvoitixDecision), nullable=False),
    _field("rejected_at", _coerce_date),
    _field("resubmitted_at", _coerce_date),
    _field("approved_at", _coerce_date),
    _field("paid_out_at", _coerce_date),
    _field("payout_reference", _coerce_text, nullable=False),
    _field("projected_income_added_at", _coerce_date),
    _field("payout_confirmed_at", _coerce_date),
)

_VALUTA_SCHEMA: tuple[_FieldSpec, ...] = (
    _field("mode", _coerce_enum(ValutaMode), nullable=False),
    _field("countdown_start", _coerce_enum(CountdownStart)),
    _field("countdown_days", normalize_numeric_text, nullable=False),
    _field("skonto_percent", normalize_numeric_text, nullable=False),
    _field("sent_to_accountant_at", _coerce_date),
    _field("invoice_dispatch", _coerce_enum(InvoiceDispatch)),
    _field("invoice_sent_at", _coerce_date),
    _field("shipped_at", _coerce_date),
    _field("tracking_number", _coerce_text, nullable=False),
    _field("documents_arrived_at", _coerce_date),
    _field("payout_received_at", _coerce_date),
    _field("bank_fee_amount", normalize_numeric_text, nullable=False),
)

# Numeric text fields clear to "" on None; other non-nullable fields keep base.
_CLEARABLE_TEXT = frozenset({"countdown_days", "skonto_percent", "bank_fee_amount"})

_FLOW_TYPE = _field("flow_type", _coerce_enum(FlowType))


def _lookup(incoming: Mapping[str, Any], entry: _FieldSpec) -> Any:
    if entry.name in incoming:
        return incoming[entry.name]
    if entry.alias in incoming:
        return incoming[entry.alias]
    return _MISSING


def _merge_value(base_value: Any, incoming: Mapping[str, Any], entry: _FieldSpec) -> Any:
    raw = _lookup(incoming, entry)
    if raw is _MISSING:
        return base_value
    if raw is None:
        if entry.nullable:
            return None
        return "" if entry.name in _CLEARABLE_TEXT else base_value
    value = entry.coerce(raw)
    return base_value if value is _INVALID else value


def _as_mapping(value: Any) -> Mapping[str, Any] | None:
    if isinstance(value, Mapping):
        return value
    if isinstance(value, (InvoitixState, ValutaState)):
        return {f.name: getattr(value, f.name) for f in fields(value)}
    return None


def _merge_section(base: Any, incoming: Any, schema: tuple[_FieldSpec, ...]) -> Any:
    mapping = _as_mapping(incoming)
    if mapping is None:
        return base
    values = {entry.name: _merge_value(getattr(base, entry.name), mapping, entry) for entry in schema}
    return type(base)(**values)


def merge_workflow(
    base: WorkflowModel,
    incoming: Mapping[str, Any] | WorkflowModel | None = None,
) -> WorkflowModel:
    """
    Deep-merge a partial workflow over ``base``.

    ``incoming`` may be a ``WorkflowModel`` or a nested mapping with
    snake_case or camelCase keys (``flow_type`` / ``flowType``).  Unknown
    keys are ignored; invalid values keep the base value.

    Postconditions:
        Returns a fully populated ``WorkflowModel``.  Never raises.
    """
    if isinstance(incoming, WorkflowModel):
        incoming = incoming.to_dict()
    if not isinstance(incoming, Mapping):
        return base

    return WorkflowModel(
        flow_type=_merge_value(base.flow_type, incoming, _FLOW_TYPE),
        invoitix=_merge_section(base.invoitix, incoming.get("invoitix"), _INVOITIX_SCHEMA),
        valuta=_merge_section(base.valuta, incoming.get("valuta"), _VALUTA_SCHEMA),
    )


def merge_defaults(partial: Mapping[str, Any] | WorkflowModel | None = None) -> WorkflowModel:
    """Merge a possibly-partial workflow over the all-default workflow."""
    return merge_workflow(DEFAULT_WORKFLOW, partial)


# ---------------------------------------------------------------------------
# Progress predicates
# ---------------------------------------------------------------------------


def has_invoitix_started(model: WorkflowModel) -> bool:
    """True once any Invoitix step has recorded a date."""
    inv = model.invoitix
    return any((
        inv.sent_at,
        inv.rejected_at,
        inv.resubmitted_at,
        inv.approved_at,
        inv.paid_out_at,
        inv.payout_confirmed_at,
        inv.projected_income_added_at,
    ))


def has_valuta_started(model: WorkflowModel) -> bool:
    """True once any Valuta step has recorded data."""
    val = model.valuta
    return any((
        val.invoice_sent_at,
        val.shipped_at,
        val.tracking_number.strip(),
        val.documents_arrived_at,
        val.payout_received_at,
        val.bank_fee_amount.strip(),
    ))
