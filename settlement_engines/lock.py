"""
Module: settlement_engines.lock
Responsibility:
    Decide whether the flow selection of a payment may still change and
    reject selection edits that would rewrite an in-flight settlement.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import settlement_kernel/domain and settlement_kernel/exceptions.

Invariants enforced:
    - Once any step of the active flow has recorded data, ``flow_type``,
      ``valuta.mode`` and ``valuta.countdown_start`` are frozen.
    - Step-specific fields are never locked by this policy.

Failure modes:
    - FlowLockedError from ``ensure_flow_editable`` when a locked
      selection field would change.
"""

from __future__ import annotations

from settlement_kernel.domain.settlement import (
    WorkflowModel,
    has_invoitix_started,
    has_valuta_started,
)
from settlement_kernel.exceptions import FlowLockedError
from settlement_kernel.logging_config import get_logger

logger = get_logger("engines.lock")


def is_flow_edit_locked(model: WorkflowModel) -> bool:
    """True once the active flow has started recording step data."""
    return (model.is_invoitix and has_invoitix_started(model)) or (
        model.is_valuta and has_valuta_started(model)
    )


def changed_selection_fields(current: WorkflowModel, proposed: WorkflowModel) -> tuple[str, ...]:
    """Names of the flow-selection fields that differ between two models."""
    changed: list[str] = []
    if current.flow_type != proposed.flow_type:
        changed.append("flow_type")
    if current.valuta.mode != proposed.valuta.mode:
        changed.append("valuta.mode")
    if current.valuta.countdown_start != proposed.valuta.countdown_start:
        changed.append("valuta.countdown_start")
    return tuple(changed)


def ensure_flow_editable(current: WorkflowModel, proposed: WorkflowModel) -> None:
    """
    Reject a change of flow selection while the current flow is locked.

    Raises:
        FlowLockedError: ``current`` is locked and ``proposed`` changes
            ``flow_type``, ``valuta.mode`` or ``valuta.countdown_start``.
    """
    if not is_flow_edit_locked(current):
        return
    changed = changed_selection_fields(current, proposed)
    if changed:
        logger.warning(
            "flow_edit_rejected",
            extra={"flow_type": current.flow_type.value, "changed_fields": list(changed)},
        )
        raise FlowLockedError(current.flow_type.value, changed)
