"""
Payments Module (``settlement_modules.payments``).

Responsibility
--------------
Settlement of the money owed for a delivered load: the Payment Record,
its structured workflow sub-record, the legacy notes payload, and the
step confirmations of the Invoitix and Valuta flows.

Architecture position
---------------------
**Modules layer** -- value objects, declarative workflows, the workflow
codec, payment stores and the ``PaymentSettlementService`` facade.  All
computation is delegated to ``settlement_engines``.

Failure modes
-------------
* ``WorkflowValidationError`` -- a step precondition failed; nothing was
  written.
* ``TransportError`` -- the payment store failed after rollback.
"""

from settlement_modules.payments.codec import (
    NOTES_PAYLOAD_KIND,
    DecodedWorkflow,
    RawNotes,
    StructuredNotes,
    decode_legacy,
    decode_workflow,
    encode_legacy_notes,
    encode_workflow,
    infer_flow_type,
    parse_notes,
    resolve_payment_workflow,
)
from settlement_modules.payments.models import (
    NewPayment,
    PaymentChanges,
    PaymentRecord,
    PaymentWorkflowRecord,
)
from settlement_modules.payments.service import (
    LoadFlagWriter,
    PaymentSettlementService,
    SettlementSnapshot,
    StepOutcome,
)
from settlement_modules.payments.store import (
    InMemoryPaymentStore,
    PaymentStore,
    SqlAlchemyPaymentStore,
)
from settlement_modules.payments.workflows import (
    INVOITIX_WORKFLOW,
    VALUTA_EMAIL_WORKFLOW,
    VALUTA_ORIGINALS_WORKFLOW,
)

__all__ = [
    "NOTES_PAYLOAD_KIND",
    "DecodedWorkflow",
    "RawNotes",
    "StructuredNotes",
    "decode_legacy",
    "decode_workflow",
    "encode_legacy_notes",
    "encode_workflow",
    "infer_flow_type",
    "parse_notes",
    "resolve_payment_workflow",
    "NewPayment",
    "PaymentChanges",
    "PaymentRecord",
    "PaymentWorkflowRecord",
    "LoadFlagWriter",
    "PaymentSettlementService",
    "SettlementSnapshot",
    "StepOutcome",
    "InMemoryPaymentStore",
    "PaymentStore",
    "SqlAlchemyPaymentStore",
    "INVOITIX_WORKFLOW",
    "VALUTA_EMAIL_WORKFLOW",
    "VALUTA_ORIGINALS_WORKFLOW",
]
