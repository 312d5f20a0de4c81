"""
Workflow Codec (``settlement_modules.payments.codec``).

Responsibility
--------------
Translates between the in-memory ``WorkflowModel`` and its two persisted
forms: the flat ``PaymentWorkflowRecord`` sub-record of a Payment
Record, and the legacy JSON payload older records carry in their free
text ``notes``.  Also resolves which of the two a payment actually uses
and fills in an undecided flow type from the load's legacy flags.

Architecture position
---------------------
**Modules layer** -- storage boundary.  Pure functions over kernel domain
types and the payment models; no database access.

Invariants enforced
-------------------
* Decoding never raises: malformed input degrades to defaults.
* Notes are a tagged union: ``StructuredNotes`` only when the JSON
  ``kind`` matches the configured discriminator, otherwise ``RawNotes``
  and the whole text is the manual note.
* ``decode_workflow(encode_workflow(m, n))`` equals ``m`` for any model
  whose numeric text is already canonical.

Failure modes
-------------
* ``WorkflowDecodeError`` is raised by ``parse_structured_notes`` and
  caught by ``parse_notes``; it never escapes the public decoders.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any

from settlement_kernel.domain.settlement import (
    DEFAULT_WORKFLOW,
    FlowType,
    LoadSnapshot,
    WorkflowModel,
    merge_defaults,
)
from settlement_kernel.domain.values import (
    CENT,
    parse_non_negative_decimal,
    parse_non_negative_int,
    round_money,
)
from settlement_kernel.exceptions import WorkflowDecodeError
from settlement_kernel.logging_config import get_logger
from settlement_engines.projection import valuta_projected_payout_date
from settlement_modules.payments.models import PaymentRecord, PaymentWorkflowRecord

logger = get_logger("modules.payments.codec")

NOTES_PAYLOAD_KIND = "LOAD_PAYMENT_WORKFLOW_V1"


@dataclass(frozen=True)
class DecodedWorkflow:
    """A workflow together with the operator's free-text note."""

    manual_note: str
    model: WorkflowModel


@dataclass(frozen=True)
class StructuredNotes:
    """Notes text carrying a versioned workflow payload."""

    manual_note: str
    workflow: Mapping[str, Any]


@dataclass(frozen=True)
class RawNotes:
    """Plain free-text notes."""

    text: str


# ---------------------------------------------------------------------------
# Flat record
# ---------------------------------------------------------------------------


def _money(text: str) -> Decimal | None:
    parsed = parse_non_negative_decimal(text)
    return round_money(parsed) if parsed is not None else None


def _number_text(value: Decimal | int | None) -> str:
    """Render a stored number the way an operator would type it ("2.5", "100")."""
    if value is None:
        return ""
    if isinstance(value, int):
        return str(value)
    text = format(value.quantize(CENT), "f")
    return text.rstrip("0").rstrip(".") if "." in text else text


def encode_workflow(model: WorkflowModel, manual_note: str) -> PaymentWorkflowRecord:
    """
    Flatten a workflow into its persisted record.

    Postconditions:
        Blank text and unparsable numbers are stored as ``None``;
        ``valuta_projected_payout_date`` is derived from the countdown.
    """
    inv = model.invoitix
    val = model.valuta
    return PaymentWorkflowRecord(
        manual_note=manual_note,
        flow_type=model.flow_type,
        invoitix_sent_at=inv.sent_at,
        invoitix_decision=inv.decision,
        invoitix_rejected_at=inv.rejected_at,
        invoitix_resubmitted_at=inv.resubmitted_at,
        invoitix_approved_at=inv.approved_at,
        invoitix_paid_out_at=inv.paid_out_at,
        invoitix_payout_reference=inv.payout_reference.strip() or None,
        invoitix_projected_income_added_at=inv.projected_income_added_at,
        invoitix_payout_confirmed_at=inv.payout_confirmed_at,
        valuta_mode=val.mode,
        valuta_countdown_start=val.countdown_start,
        valuta_countdown_days=parse_non_negative_int(val.countdown_days),
        valuta_skonto_percent=_money(val.skonto_percent),
        valuta_sent_to_accountant_at=val.sent_to_accountant_at,
        valuta_invoice_dispatch=val.invoice_dispatch,
        valuta_invoice_sent_at=val.invoice_sent_at,
        valuta_shipped_at=val.shipped_at,
        valuta_tracking_number=val.tracking_number.strip() or None,
        valuta_documents_arrived_at=val.documents_arrived_at,
        valuta_projected_payout_date=valuta_projected_payout_date(model),
        valuta_payout_received_at=val.payout_received_at,
        valuta_bank_fee_amount=_money(val.bank_fee_amount),
    )


def decode_workflow(record: PaymentWorkflowRecord) -> WorkflowModel:
    """Rebuild a full workflow from its persisted record. Never raises."""
    return merge_defaults({
        "flow_type": record.flow_type,
        "invoitix": {
            "sent_at": record.invoitix_sent_at,
            "decision": record.invoitix_decision,
            "rejected_at": record.invoitix_rejected_at,
            "resubmitted_at": record.invoitix_resubmitted_at,
            "approved_at": record.invoitix_approved_at,
            "paid_out_at": record.invoitix_paid_out_at,
            "payout_reference": record.invoitix_payout_reference or "",
            "projected_income_added_at": record.invoitix_projected_income_added_at,
            "payout_confirmed_at": record.invoitix_payout_confirmed_at,
        },
        "valuta": {
            "mode": record.valuta_mode,
            "countdown_start": record.valuta_countdown_start,
            "countdown_days": _number_text(record.valuta_countdown_days),
            "skonto_percent": _number_text(record.valuta_skonto_percent),
            "sent_to_accountant_at": record.valuta_sent_to_accountant_at,
            "invoice_dispatch": record.valuta_invoice_dispatch,
            "invoice_sent_at": record.valuta_invoice_sent_at,
            "shipped_at": record.valuta_shipped_at,
            "tracking_number": record.valuta_tracking_number or "",
            "documents_arrived_at": record.valuta_documents_arrived_at,
            "payout_received_at": record.valuta_payout_received_at,
            "bank_fee_amount": _number_text(record.valuta_bank_fee_amount),
        },
    })


# ---------------------------------------------------------------------------
# Legacy notes
# ---------------------------------------------------------------------------


def parse_structured_notes(text: str, kind: str = NOTES_PAYLOAD_KIND) -> StructuredNotes:
    """
    Strictly parse a versioned notes payload.

    Raises:
        WorkflowDecodeError: not JSON, not an object, wrong ``kind``, or
            no ``workflow`` object.
    """
    try:
        payload = json.loads(text)
    except ValueError as exc:
        raise WorkflowDecodeError("notes are not JSON") from exc
    except RecursionError as exc:
        raise WorkflowDecodeError("notes nest too deeply") from exc
    if not isinstance(payload, dict):
        raise WorkflowDecodeError("notes payload is not an object")
    if payload.get("kind") != kind:
        raise WorkflowDecodeError(f"unexpected payload kind {payload.get('kind')!r}")
    workflow = payload.get("workflow")
    if not isinstance(workflow, dict):
        raise WorkflowDecodeError("payload has no workflow")
    manual_note = payload.get("manualNote")
    return StructuredNotes(
        manual_note=manual_note if isinstance(manual_note, str) else "",
        workflow=workflow,
    )


def parse_notes(text: str | None, kind: str = NOTES_PAYLOAD_KIND) -> StructuredNotes | RawNotes:
    """Classify notes text as a structured payload or plain text."""
    if not text:
        return RawNotes("")
    try:
        return parse_structured_notes(text, kind)
    except WorkflowDecodeError as exc:
        logger.debug("notes_treated_as_plain_text", extra={"reason": exc.reason})
        return RawNotes(text)


def decode_legacy(notes: str | None, kind: str = NOTES_PAYLOAD_KIND) -> DecodedWorkflow:
    """Decode legacy notes; anything unrecognised is kept as the manual note."""
    parsed = parse_notes(notes, kind)
    if isinstance(parsed, StructuredNotes):
        return DecodedWorkflow(parsed.manual_note, merge_defaults(parsed.workflow))
    return DecodedWorkflow(parsed.text, DEFAULT_WORKFLOW)


def encode_legacy_notes(
    model: WorkflowModel,
    manual_note: str,
    kind: str = NOTES_PAYLOAD_KIND,
) -> str:
    """Serialize a workflow into the versioned notes payload."""
    workflow = model.to_dict()
    nested = {
        "flowType": workflow["flow_type"],
        "invoitix": _camel_keys(workflow["invoitix"]),
        "valuta": _camel_keys(workflow["valuta"]),
    }
    return json.dumps(
        {"kind": kind, "manualNote": manual_note, "workflow": nested},
        default=_json_default,
        sort_keys=True,
    )


def _camel_keys(section: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in section.items():
        head, *rest = key.split("_")
        result[head + "".join(part.capitalize() for part in rest)] = value
    return result


def _json_default(value: Any) -> Any:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def infer_flow_type(model: WorkflowModel, load: LoadSnapshot) -> WorkflowModel:
    """Fill an undecided flow from the load's legacy flags (Invoitix first)."""
    if model.flow_type is not None:
        return model
    if load.legacy_invoitix_flag:
        return replace(model, flow_type=FlowType.INVOITIX)
    if load.legacy_valuta_flag:
        return replace(model, flow_type=FlowType.VALUTA)
    return model


def resolve_payment_workflow(
    payment: PaymentRecord | None,
    load: LoadSnapshot,
    kind: str = NOTES_PAYLOAD_KIND,
) -> DecodedWorkflow:
    """
    The workflow and manual note a payment actually carries.

    The structured sub-record wins over legacy notes; its manual note wins
    over the note found in the notes text.  An undecided flow is then
    inferred from the load.
    """
    if payment is None:
        return DecodedWorkflow("", infer_flow_type(DEFAULT_WORKFLOW, load))

    legacy = decode_legacy(payment.notes, kind)
    if payment.workflow is not None:
        model = decode_workflow(payment.workflow)
        source = "record"
    else:
        model = legacy.model
        source = "notes"

    manual_note = (
        payment.workflow.manual_note
        if payment.workflow is not None and payment.workflow.manual_note is not None
        else legacy.manual_note
    )
    resolved = infer_flow_type(model, load)

    logger.debug(
        "payment_workflow_resolved",
        extra={
            "payment_id": str(payment.payment_id),
            "source": source,
            "flow_type": resolved.flow_type,
            "flow_inferred": model.flow_type is None and resolved.flow_type is not None,
        },
    )
    return DecodedWorkflow(manual_note, resolved)
