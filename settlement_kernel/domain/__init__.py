"""
Pure domain layer.

Value objects and total helpers for the settlement workflow with NO
dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (except the injectable Clock itself)
- I/O

All domain objects are immutable and deterministic.
"""

from settlement_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from settlement_kernel.domain.settlement import (
    DEFAULT_WORKFLOW,
    CountdownStart,
    FlowType,
    InvoiceDispatch,
    InvoitixDecision,
    InvoitixState,
    LoadSnapshot,
    PaymentStatus,
    ValutaMode,
    ValutaState,
    WorkflowModel,
    has_invoitix_started,
    has_valuta_started,
    merge_defaults,
    merge_workflow,
)
from settlement_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "CountdownStart",
    "DEFAULT_WORKFLOW",
    "DeterministicClock",
    "FlowType",
    "Guard",
    "InvoiceDispatch",
    "InvoitixDecision",
    "InvoitixState",
    "LoadSnapshot",
    "PaymentStatus",
    "SystemClock",
    "Transition",
    "ValutaMode",
    "ValutaState",
    "Workflow",
    "WorkflowModel",
    "has_invoitix_started",
    "has_valuta_started",
    "merge_defaults",
    "merge_workflow",
]
