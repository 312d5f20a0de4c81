"""
Settlement Workflows (``settlement_modules.payments.workflows``).

Responsibility
--------------
Declares the state machines of the three settlement sequences: Invoitix
factoring, Valuta with an emailed invoice copy, and Valuta with shipped
originals.  Guards name the preconditions the payment service checks
before a confirmation writes anything.

Architecture position
---------------------
**Modules layer** -- declarative workflow definitions.  Imports canonical
Guard, Transition, Workflow from ``settlement_kernel.domain.workflow``.
Consumed by ``PaymentSettlementService``.

Invariants enforced
-------------------
* All ``Workflow``, ``Transition`` and ``Guard`` instances are frozen.
* Each sequence is linear; its terminal state is the payout.
* ``current_state`` reads only recorded completion dates, so the state of
  a persisted workflow is reproducible.

Audit relevance
---------------
Workflow definitions logged at module-load time with state and
transition counts.
"""

from settlement_kernel.domain.settlement import CountdownStart, FlowType, WorkflowModel
from settlement_kernel.domain.workflow import Guard, Transition, Workflow
from settlement_kernel.logging_config import get_logger

logger = get_logger("modules.payments.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

LOAD_COMPLETED = Guard(
    name="load_completed",
    description="Load has been delivered",
)

TRACKING_NUMBER_PRESENT = Guard(
    name="tracking_number_present",
    description="Tracking number of the shipped originals is entered",
)

COUNTDOWN_STARTED = Guard(
    name="countdown_started",
    description="The countdown start event has a recorded date",
)

logger.info(
    "settlement_workflow_guards_defined",
    extra={
        "guards": [
            LOAD_COMPLETED.name,
            TRACKING_NUMBER_PRESENT.name,
            COUNTDOWN_STARTED.name,
        ],
    },
)


# -----------------------------------------------------------------------------
# Actions
# -----------------------------------------------------------------------------

SEND_TO_INVOITIX = "send_to_invoitix"
CONFIRM_INVOITIX_PAYOUT = "confirm_invoitix_payout"
CONFIRM_EMAIL_SENT = "confirm_email_sent"
CONFIRM_DOCUMENTS_SENT = "confirm_documents_sent"
CONFIRM_DOCUMENTS_ARRIVED = "confirm_documents_arrived"
CONFIRM_VALUTA_PAYOUT = "confirm_valuta_payout"


# -----------------------------------------------------------------------------
# Invoitix
# -----------------------------------------------------------------------------

INVOITIX_WORKFLOW = Workflow(
    name="invoitix_settlement",
    description="Factoring: send the invoice to Invoitix, then confirm its payout",
    initial_state="awaiting_send",
    states=("awaiting_send", "sent", "payout_confirmed"),
    terminal_states=("payout_confirmed",),
    transitions=(
        Transition("awaiting_send", "sent", action=SEND_TO_INVOITIX, guards=(LOAD_COMPLETED,)),
        Transition("sent", "payout_confirmed", action=CONFIRM_INVOITIX_PAYOUT),
    ),
)

logger.info(
    "invoitix_settlement_workflow_registered",
    extra={
        "workflow_name": INVOITIX_WORKFLOW.name,
        "state_count": len(INVOITIX_WORKFLOW.states),
        "transition_count": len(INVOITIX_WORKFLOW.transitions),
    },
)


# -----------------------------------------------------------------------------
# Valuta: email copy + invoice
# -----------------------------------------------------------------------------

VALUTA_EMAIL_WORKFLOW = Workflow(
    name="valuta_email_settlement",
    description="Direct invoice emailed with the CMR; countdown starts on sending",
    initial_state="awaiting_email",
    states=("awaiting_email", "email_sent", "payout_received"),
    terminal_states=("payout_received",),
    transitions=(
        Transition("awaiting_email", "email_sent", action=CONFIRM_EMAIL_SENT, guards=(LOAD_COMPLETED,)),
        Transition(
            "email_sent",
            "payout_received",
            action=CONFIRM_VALUTA_PAYOUT,
            guards=(LOAD_COMPLETED, COUNTDOWN_STARTED),
        ),
    ),
)

logger.info(
    "valuta_email_settlement_workflow_registered",
    extra={
        "workflow_name": VALUTA_EMAIL_WORKFLOW.name,
        "state_count": len(VALUTA_EMAIL_WORKFLOW.states),
        "transition_count": len(VALUTA_EMAIL_WORKFLOW.transitions),
    },
)


# -----------------------------------------------------------------------------
# Valuta: shipped originals
# -----------------------------------------------------------------------------

VALUTA_ORIGINALS_WORKFLOW = Workflow(
    name="valuta_originals_settlement",
    description="Direct invoice with originals shipped by post; countdown starts on arrival",
    initial_state="awaiting_shipment",
    states=("awaiting_shipment", "documents_sent", "documents_arrived", "payout_received"),
    terminal_states=("payout_received",),
    transitions=(
        Transition(
            "awaiting_shipment",
            "documents_sent",
            action=CONFIRM_DOCUMENTS_SENT,
            guards=(LOAD_COMPLETED, TRACKING_NUMBER_PRESENT),
        ),
        Transition("documents_sent", "documents_arrived", action=CONFIRM_DOCUMENTS_ARRIVED),
        Transition(
            "documents_arrived",
            "payout_received",
            action=CONFIRM_VALUTA_PAYOUT,
            guards=(LOAD_COMPLETED, COUNTDOWN_STARTED),
        ),
    ),
)

logger.info(
    "valuta_originals_settlement_workflow_registered",
    extra={
        "workflow_name": VALUTA_ORIGINALS_WORKFLOW.name,
        "state_count": len(VALUTA_ORIGINALS_WORKFLOW.states),
        "transition_count": len(VALUTA_ORIGINALS_WORKFLOW.transitions),
    },
)


def workflow_for(model: WorkflowModel) -> Workflow | None:
    """The sequence the model follows, or None until the flow is set up."""
    if model.flow_type is FlowType.INVOITIX:
        return INVOITIX_WORKFLOW
    if model.flow_type is FlowType.VALUTA:
        if model.valuta.countdown_start is CountdownStart.EMAIL_COPY_INVOICE:
            return VALUTA_EMAIL_WORKFLOW
        if model.valuta.countdown_start is CountdownStart.ORIGINALS_RECEIVED:
            return VALUTA_ORIGINALS_WORKFLOW
    return None


def current_state(workflow: Workflow, model: WorkflowModel) -> str:
    """Furthest state whose completion date is recorded."""
    inv = model.invoitix
    val = model.valuta
    if workflow is INVOITIX_WORKFLOW:
        if inv.payout_confirmed_at is not None:
            return "payout_confirmed"
        if inv.sent_at is not None:
            return "sent"
        return "awaiting_send"
    if val.payout_received_at is not None:
        return "payout_received"
    if workflow is VALUTA_EMAIL_WORKFLOW:
        return "email_sent" if val.invoice_sent_at is not None else "awaiting_email"
    if val.documents_arrived_at is not None:
        return "documents_arrived"
    if val.shipped_at is not None:
        return "documents_sent"
    return "awaiting_shipment"
