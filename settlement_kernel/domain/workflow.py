"""
Canonical workflow types (``settlement_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for settlement state machines.  The Invoitix and the
two Valuta sequences are declared once with these types and consulted by
the payment service before any confirmation writes to the store.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/`` or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Terminal states have no outgoing transitions.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen, descriptive only.
    Non-goals: does not evaluate the condition -- the payment service does.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow."""
    from_state: str
    to_state: str
    action: str
    guards: tuple[Guard, ...] = ()


@dataclass(frozen=True)
class Workflow:
    """A linear or branching state machine definition.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(f"{self.name}: initial state {self.initial_state!r} not in states")
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(f"{self.name}: transition {t.action!r} references unknown state")
            if t.from_state in self.terminal_states:
                raise ValueError(f"{self.name}: terminal state {t.from_state!r} has outgoing transition")

    def transitions_from(self, state: str) -> tuple[Transition, ...]:
        """All transitions leaving ``state``."""
        return tuple(t for t in self.transitions if t.from_state == state)

    def find_transition(self, state: str, action: str) -> Transition | None:
        """The transition for ``action`` from ``state``, if one exists."""
        for t in self.transitions:
            if t.from_state == state and t.action == action:
                return t
        return None

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states
