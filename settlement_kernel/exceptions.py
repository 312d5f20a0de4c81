"""
Typed Exception Hierarchy for the Settlement Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every settlement failure must be catchable by type and identifiable by a
machine-readable code.  Callers (UI handlers, API adapters) map these to
user-facing messages without parsing message text:

    try:
        service.confirm_valuta_documents_sent(load, tracking_number="")
    except MissingTrackingNumberError as e:
        show_error(e.code)          # "MISSING_TRACKING_NUMBER"
    except WorkflowValidationError as e:
        show_error(str(e))          # any other failed precondition

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    SettlementError (base)
    |
    +-- WorkflowValidationError          precondition failed, nothing written
    |   +-- FlowNotSelectedError
    |   +-- FlowLockedError
    |   +-- LoadNotCompletedError
    |   +-- MissingTrackingNumberError
    |   +-- StepOrderError
    |   +-- CountdownNotStartedError
    |   +-- BankFeeLockedError
    |   +-- InvalidAmountError
    |   +-- InvalidNumberError
    |   +-- BrokerNotAssignedError
    |
    +-- WorkflowDecodeError              malformed persisted data (never escapes
    |                                    the codec; it degrades to defaults)
    |
    +-- TransportError                   the Payment Record Store failed
        +-- PaymentStoreError
        +-- PaymentNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                     | When Raised
------------|--------------------------|------------------------------------------
Validation  | FLOW_NOT_SELECTED        | Saving/confirming without a flow type
            | FLOW_LOCKED              | Changing flow/mode/countdown start mid-flow
            | LOAD_NOT_COMPLETED       | Step requires a delivered load
            | MISSING_TRACKING_NUMBER  | Originals marked sent without tracking no.
            | STEP_ORDER               | Earlier step of the sequence not done
            | COUNTDOWN_NOT_STARTED    | Payout confirmed before countdown start
            | BANK_FEE_LOCKED          | Bank fee already saved for the payout
            | INVALID_AMOUNT           | Payment amount not greater than zero
            | INVALID_NUMBER           | Numeric input negative or out of range
            | BROKER_NOT_ASSIGNED      | Creating a payment for a load w/o broker
------------|--------------------------|------------------------------------------
Decode      | WORKFLOW_DECODE_ERROR    | Notes/workflow payload cannot be parsed
------------|--------------------------|------------------------------------------
Transport   | PAYMENT_STORE_ERROR      | Store read/write failed (rolled back)
            | PAYMENT_NOT_FOUND        | Payment id unknown to the store

No automatic retries are performed anywhere in the engine; callers decide.
"""


class SettlementError(Exception):
    """
    Base exception for all settlement errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "SETTLEMENT_ERROR"


# Validation


class WorkflowValidationError(SettlementError):
    """A required precondition for a workflow step is missing."""

    code: str = "WORKFLOW_VALIDATION_ERROR"


class FlowNotSelectedError(WorkflowValidationError):
    """No settlement flow has been chosen yet."""

    code: str = "FLOW_NOT_SELECTED"

    def __init__(self, message: str = "Select payment flow first (Invoitix or Valuta/Skonto)."):
        super().__init__(message)


class FlowLockedError(WorkflowValidationError):
    """Flow selection changed after workflow steps have started."""

    code: str = "FLOW_LOCKED"

    def __init__(self, flow_type: str | None, changed_fields: tuple[str, ...]):
        self.flow_type = flow_type
        self.changed_fields = changed_fields
        super().__init__(
            "Payment flow cannot be edited after workflow steps have started "
            f"(flow={flow_type}, changed={', '.join(changed_fields)})."
        )


class LoadNotCompletedError(WorkflowValidationError):
    """The step requires a delivered load."""

    code: str = "LOAD_NOT_COMPLETED"

    def __init__(self, load_id: str):
        self.load_id = load_id
        super().__init__(f"Load must be completed first: {load_id}")


class MissingTrackingNumberError(WorkflowValidationError):
    """Originals cannot be marked as sent without a tracking number."""

    code: str = "MISSING_TRACKING_NUMBER"

    def __init__(self):
        super().__init__("Enter tracking number before marking originals as sent.")


class StepOrderError(WorkflowValidationError):
    """An earlier step of the sequence has not been completed."""

    code: str = "STEP_ORDER"

    def __init__(self, step: str, required_step: str):
        self.step = step
        self.required_step = required_step
        super().__init__(f"Step {step} requires {required_step} to be done first.")


class CountdownNotStartedError(WorkflowValidationError):
    """Payout confirmed before the valuta countdown started."""

    code: str = "COUNTDOWN_NOT_STARTED"

    def __init__(self, countdown_start: str | None):
        self.countdown_start = countdown_start
        super().__init__("Countdown has not started yet.")


class BankFeeLockedError(WorkflowValidationError):
    """The bank fee of a received Valuta payout is already recorded."""

    code: str = "BANK_FEE_LOCKED"

    def __init__(self, bank_fee):
        self.bank_fee = bank_fee
        super().__init__(f"Bank fee already saved ({bank_fee}); it can no longer be changed.")


class InvalidAmountError(WorkflowValidationError):
    """Payment amount must be strictly positive."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount):
        self.amount = amount
        super().__init__(f"Payment amount must be greater than 0, got {amount}.")


class InvalidNumberError(WorkflowValidationError):
    """A numeric input is not a number in the accepted range."""

    code: str = "INVALID_NUMBER"

    def __init__(self, label: str, value):
        self.label = label
        self.value = value
        super().__init__(f"{label} must be a non-negative number, got {value!r}.")


class BrokerNotAssignedError(WorkflowValidationError):
    """A payment record cannot be created for a load without a broker."""

    code: str = "BROKER_NOT_ASSIGNED"

    def __init__(self, load_id: str):
        self.load_id = load_id
        super().__init__(f"Load has no broker assigned. Assign broker first: {load_id}")


# Decoding


class WorkflowDecodeError(SettlementError):
    """
    Persisted workflow data or legacy notes could not be parsed.

    Raised only by strict parsers; the codec always catches it and
    falls back to defaults.
    """

    code: str = "WORKFLOW_DECODE_ERROR"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Cannot decode payment workflow: {reason}")


# Transport


class TransportError(SettlementError):
    """Base exception for Payment Record Store failures."""

    code: str = "TRANSPORT_ERROR"


class PaymentStoreError(TransportError):
    """A store operation failed; the unit of work was rolled back."""

    code: str = "PAYMENT_STORE_ERROR"

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Payment store {operation} failed: {reason}")


class PaymentNotFoundError(TransportError):
    """Payment record with given ID was not found."""

    code: str = "PAYMENT_NOT_FOUND"

    def __init__(self, payment_id: str):
        self.payment_id = payment_id
        super().__init__(f"Payment not found: {payment_id}")
