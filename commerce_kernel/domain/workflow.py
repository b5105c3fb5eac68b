"""
Canonical workflow types (``commerce_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for state machines.  The three order dimensions
(order status, payment status, fulfillment status) are each one
``Workflow`` value; the shared cross-dimension condition is one ``Guard``.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

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
    Non-goals: does not evaluate the condition -- the state machine does.
    """
    name: str
    description: str

    def __post_init__(self) -> None:
        if not self.name or not self.description:
            raise ValueError("Guard name and description must be non-empty")


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    ``stamps`` names the order timestamp field recorded when the
    transition fires, if any.
    """
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None
    stamps: str | None = None


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for one order dimension.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    Guarantees: ``initial_state`` is a member of ``states``.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow {self.name}: initial state {self.initial_state} not in states"
            )
        known = set(self.states)
        for t in self.transitions:
            if t.from_state not in known or t.to_state not in known:
                raise ValueError(
                    f"Workflow {self.name}: transition {t.from_state}->{t.to_state} "
                    f"references unknown state"
                )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"Workflow {self.name}: terminal state {t.from_state} has outgoing transition"
                )

    def transitions_from(self, state: str) -> tuple[Transition, ...]:
        """Outgoing transitions of ``state`` in declaration order."""
        return tuple(t for t in self.transitions if t.from_state == state)

    def targets_from(self, state: str) -> tuple[str, ...]:
        return tuple(t.to_state for t in self.transitions_from(state))

    def find(self, from_state: str, to_state: str) -> Transition | None:
        for t in self.transitions:
            if t.from_state == from_state and t.to_state == to_state:
                return t
        return None
