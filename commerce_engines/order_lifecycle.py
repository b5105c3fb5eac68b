"""
Order State Machine - Validate and apply order status transitions.

Three independent transition tables (order status, payment status,
fulfillment status) share one guard: once the order status is CANCELLED,
no payment or fulfillment transition is allowed, whatever that
dimension's own table says.  The guard is evaluated before any table
lookup, both when applying a transition and when listing the transitions
a caller may offer.

Guards declared on individual transitions are evaluated by name through
the machine's evaluator map; a guard with no evaluator fails closed.

Rejections are returned as values, never raised across the boundary.

Usage:
    from commerce_engines.order_lifecycle import OrderStateMachine
    from commerce_kernel.domain.order import OrderDimension

    machine = OrderStateMachine(clock=SystemClock())
    outcome = machine.request_transition(order, OrderDimension.ORDER_STATUS, "CONFIRMED")
    if outcome.success:
        save(outcome.order)  # confirmed_at is set
    else:
        show(outcome.rejection.reason)  # INVALID_TARGET / ORDER_CANCELLED
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum

from commerce_engines.cancellation import CancellationPolicy
from commerce_engines.order_workflows import (
    CANCELLATION_PERMITTED,
    ORDER_NOT_CANCELLED,
    WORKFLOWS_BY_DIMENSION,
)
from commerce_engines.tracer import traced_engine
from commerce_kernel.domain.clock import Clock, SystemClock
from commerce_kernel.domain.order import (
    DIMENSION_FIELDS,
    FulfillmentStatus,
    Order,
    OrderDimension,
    OrderStatus,
    PaymentStatus,
)
from commerce_kernel.domain.workflow import Guard, Transition
from commerce_kernel.exceptions import (
    CancellationNotAllowedError,
    InvalidTransitionError,
    OrderCancelledError,
    TransitionError,
)
from commerce_kernel.logging_config import LogContext, get_logger

logger = get_logger("engines.order_lifecycle")

TRACE_TYPE_ORDER_TRANSITION = "ORDER_TRANSITION"
OUTCOME_SUCCESS = "success"
OUTCOME_REJECTED = "rejected"


class TransitionRejectionReason(str, Enum):
    INVALID_TARGET = "INVALID_TARGET"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    CANCELLATION_NOT_ALLOWED = "CANCELLATION_NOT_ALLOWED"


_REASON_ERRORS: dict[TransitionRejectionReason, type[TransitionError]] = {
    TransitionRejectionReason.INVALID_TARGET: InvalidTransitionError,
    TransitionRejectionReason.ORDER_CANCELLED: OrderCancelledError,
    TransitionRejectionReason.CANCELLATION_NOT_ALLOWED: CancellationNotAllowedError,
}


@dataclass(frozen=True)
class TransitionRejected:
    order_id: str
    dimension: OrderDimension
    current: str
    target: str
    reason: TransitionRejectionReason

    def to_exception(self) -> TransitionError:
        error_type = _REASON_ERRORS[self.reason]
        return error_type(self.order_id, self.dimension.value, self.current, self.target)

    @property
    def message(self) -> str:
        return str(self.to_exception())


@dataclass(frozen=True)
class TransitionOutcome:
    """Updated order on success, rejection otherwise."""

    order: Order | None = None
    rejection: TransitionRejected | None = None
    transition: Transition | None = None

    @property
    def success(self) -> bool:
        return self.rejection is None

    def raise_for_error(self) -> Order:
        if self.rejection is not None:
            raise self.rejection.to_exception()
        assert self.order is not None
        return self.order


@dataclass(frozen=True)
class ValidTransitions:
    valid_order_statuses: tuple[OrderStatus, ...]
    valid_payment_statuses: tuple[PaymentStatus, ...]
    valid_fulfillment_statuses: tuple[FulfillmentStatus, ...]

    def for_dimension(self, dimension: OrderDimension) -> tuple[Enum, ...]:
        dimension = OrderDimension(dimension)
        if dimension == OrderDimension.ORDER_STATUS:
            return self.valid_order_statuses
        if dimension == OrderDimension.PAYMENT_STATUS:
            return self.valid_payment_statuses
        return self.valid_fulfillment_statuses


# Rejection reported when a transition's guard fails, keyed by guard name.
GUARD_REJECTIONS: dict[str, TransitionRejectionReason] = {
    ORDER_NOT_CANCELLED.name: TransitionRejectionReason.ORDER_CANCELLED,
    CANCELLATION_PERMITTED.name: TransitionRejectionReason.CANCELLATION_NOT_ALLOWED,
}


def blocked_by_cancellation(order: Order, dimension: OrderDimension) -> bool:
    """The shared cross-dimension guard."""
    return dimension != OrderDimension.ORDER_STATUS and order.is_cancelled


def _normalize_target(target: str | Enum) -> str:
    if isinstance(target, Enum):
        return str(target.value)
    return str(target).strip().upper()


class OrderStateMachine:
    """
    Coupled order status state machines.

    Contract:
        Validates only against the order passed in.  Callers serialize
        concurrent mutations of the same order.

    Args:
        clock: Source of the ``confirmed_at`` / ``shipped_at`` /
            ``delivered_at`` timestamps.
        cancellation_policy: When given, order-status cancellation is
            also rejected in statuses the policy marks non-cancellable.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        cancellation_policy: CancellationPolicy | None = None,
    ):
        self._clock = clock or SystemClock()
        self._cancellation_policy = cancellation_policy
        self._guard_evaluators: dict[str, Callable[[Order], bool]] = {
            ORDER_NOT_CANCELLED.name: lambda o: not o.is_cancelled,
            CANCELLATION_PERMITTED.name: self._cancellation_permitted,
        }

    def evaluate_guard(self, guard: Guard, order: Order) -> bool:
        """True if ``guard`` passes for ``order``; unregistered guards fail."""
        fn = self._guard_evaluators.get(guard.name)
        if fn is None:
            logger.warning("guard_no_evaluator", extra={"guard_name": guard.name})
            return False
        return fn(order)

    @traced_engine(
        "order_lifecycle", "1.0", fingerprint_fields=("order", "dimension", "target")
    )
    def request_transition(
        self,
        order: Order,
        dimension: OrderDimension | str,
        target: str | Enum,
    ) -> TransitionOutcome:
        """
        Move one dimension of ``order`` to ``target``.

        Returns:
            TransitionOutcome with the updated order, or a TransitionRejected
            with reason INVALID_TARGET, ORDER_CANCELLED or
            CANCELLATION_NOT_ALLOWED.

        Raises:
            ValueError: ``dimension`` is not an order dimension.
        """
        t0 = time.monotonic()
        dimension = OrderDimension(dimension)
        workflow = WORKFLOWS_BY_DIMENSION[dimension]
        current = order.state_of(dimension)
        target_state = _normalize_target(target)

        reason: TransitionRejectionReason | None = None
        transition: Transition | None = None
        if blocked_by_cancellation(order, dimension):
            reason = TransitionRejectionReason.ORDER_CANCELLED
        else:
            transition = workflow.find(current, target_state)
            if transition is None:
                reason = TransitionRejectionReason.INVALID_TARGET
            else:
                reason = self._guard_rejection(transition, order)

        with LogContext.bind(order_id=order.id):
            if reason is not None:
                rejection = TransitionRejected(
                    order_id=order.id,
                    dimension=dimension,
                    current=current,
                    target=target_state,
                    reason=reason,
                )
                self._emit_trace(
                    workflow.name, current, target_state, OUTCOME_REJECTED,
                    reason.value, t0,
                )
                return TransitionOutcome(rejection=rejection)

            updated = self._apply(order, dimension, transition)
            self._emit_trace(
                workflow.name, current, target_state, OUTCOME_SUCCESS,
                transition.action, t0,
            )
            return TransitionOutcome(order=updated, transition=transition)

    def get_valid_transitions(self, order: Order) -> ValidTransitions:
        """Targets a caller may offer for each dimension of ``order``."""
        targets: dict[OrderDimension, list[str]] = {}
        for dimension, workflow in WORKFLOWS_BY_DIMENSION.items():
            if blocked_by_cancellation(order, dimension):
                targets[dimension] = []
                continue
            targets[dimension] = [
                t.to_state for t in workflow.transitions_from(order.state_of(dimension))
                if self._guard_rejection(t, order) is None
            ]
        return ValidTransitions(
            valid_order_statuses=tuple(
                OrderStatus(s) for s in targets[OrderDimension.ORDER_STATUS]
            ),
            valid_payment_statuses=tuple(
                PaymentStatus(s) for s in targets[OrderDimension.PAYMENT_STATUS]
            ),
            valid_fulfillment_statuses=tuple(
                FulfillmentStatus(s) for s in targets[OrderDimension.FULFILLMENT_STATUS]
            ),
        )

    def _guard_rejection(
        self, transition: Transition, order: Order
    ) -> TransitionRejectionReason | None:
        if transition.guard is None or self.evaluate_guard(transition.guard, order):
            return None
        return GUARD_REJECTIONS.get(
            transition.guard.name, TransitionRejectionReason.INVALID_TARGET
        )

    def _cancellation_permitted(self, order: Order) -> bool:
        if self._cancellation_policy is None:
            return True
        return not self._cancellation_policy.blocks(order)

    def _apply(
        self, order: Order, dimension: OrderDimension, transition: Transition
    ) -> Order:
        attr, enum_type = DIMENSION_FIELDS[dimension]
        changes = {attr: enum_type(transition.to_state)}
        if transition.stamps is not None:
            changes[transition.stamps] = self._clock.now()
        return replace(order, **changes)

    def _emit_trace(
        self,
        workflow_name: str,
        from_state: str,
        to_state: str,
        outcome: str,
        reason: str,
        t0: float,
    ) -> None:
        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        event = (
            "order_transition_applied" if outcome == OUTCOME_SUCCESS
            else "order_transition_rejected"
        )
        logger.info(event, extra={
            "trace_type": TRACE_TYPE_ORDER_TRANSITION,
            "workflow": workflow_name,
            "from_state": from_state,
            "to_state": to_state,
            "outcome": outcome,
            "reason": reason,
            "duration_ms": duration_ms,
        })
