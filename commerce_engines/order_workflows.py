"""Order Workflows.

Transition tables for the three order status dimensions.  Each dimension
is an independent state machine; they are coupled only through the shared
ORDER_NOT_CANCELLED guard, which the state machine checks before looking
at any table.  Guards attached to transitions are evaluated by name in
``OrderStateMachine``; every guard declared here needs an evaluator there.
"""

from commerce_kernel.domain.order import (
    FulfillmentStatus as F,
    OrderDimension,
    OrderStatus as O,
    PaymentStatus as P,
)
from commerce_kernel.domain.workflow import Guard, Transition, Workflow
from commerce_kernel.logging_config import get_logger

logger = get_logger("engines.order_workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

ORDER_NOT_CANCELLED = Guard(
    name="order_not_cancelled",
    description="Order status is not CANCELLED",
)

CANCELLATION_PERMITTED = Guard(
    name="cancellation_permitted",
    description="Store cancellation policy allows cancelling in the current status",
)


# -----------------------------------------------------------------------------
# Order status
# -----------------------------------------------------------------------------

ORDER_STATUS_WORKFLOW = Workflow(
    name="order_status",
    description="Order lifecycle from placement to completion",
    initial_state=O.PLACED.value,
    states=tuple(s.value for s in O),
    transitions=(
        Transition(O.PLACED.value, O.CONFIRMED.value, action="confirm", stamps="confirmed_at"),
        Transition(O.PLACED.value, O.CANCELLED.value, action="cancel", guard=CANCELLATION_PERMITTED),
        Transition(O.CONFIRMED.value, O.PROCESSING.value, action="process"),
        Transition(O.CONFIRMED.value, O.CANCELLED.value, action="cancel", guard=CANCELLATION_PERMITTED),
        Transition(O.PROCESSING.value, O.SHIPPED.value, action="ship", stamps="shipped_at"),
        Transition(O.PROCESSING.value, O.CANCELLED.value, action="cancel", guard=CANCELLATION_PERMITTED),
        Transition(O.SHIPPED.value, O.DELIVERED.value, action="deliver", stamps="delivered_at"),
        Transition(O.SHIPPED.value, O.CANCELLED.value, action="cancel", guard=CANCELLATION_PERMITTED),
        Transition(O.DELIVERED.value, O.COMPLETED.value, action="complete"),
    ),
    terminal_states=(O.COMPLETED.value, O.CANCELLED.value),
)


# -----------------------------------------------------------------------------
# Payment status
# -----------------------------------------------------------------------------

PAYMENT_STATUS_WORKFLOW = Workflow(
    name="payment_status",
    description="Payment capture and refund lifecycle",
    initial_state=P.PENDING.value,
    states=tuple(s.value for s in P),
    transitions=(
        Transition(P.PENDING.value, P.PAID.value, action="capture", guard=ORDER_NOT_CANCELLED),
        Transition(P.PENDING.value, P.FAILED.value, action="fail", guard=ORDER_NOT_CANCELLED),
        Transition(P.PAID.value, P.PARTIALLY_REFUNDED.value, action="partial_refund", guard=ORDER_NOT_CANCELLED),
        Transition(P.PAID.value, P.REFUNDED.value, action="refund", guard=ORDER_NOT_CANCELLED),
        Transition(P.FAILED.value, P.PENDING.value, action="retry", guard=ORDER_NOT_CANCELLED),
        Transition(P.PARTIALLY_REFUNDED.value, P.REFUNDED.value, action="refund", guard=ORDER_NOT_CANCELLED),
    ),
    terminal_states=(P.REFUNDED.value,),
)


# -----------------------------------------------------------------------------
# Fulfillment status
# -----------------------------------------------------------------------------

FULFILLMENT_STATUS_WORKFLOW = Workflow(
    name="fulfillment_status",
    description="Warehouse and carrier fulfillment lifecycle",
    initial_state=F.UNFULFILLED.value,
    states=tuple(s.value for s in F),
    transitions=(
        Transition(F.UNFULFILLED.value, F.PROCESSING.value, action="start_processing", guard=ORDER_NOT_CANCELLED),
        Transition(F.PROCESSING.value, F.PACKED.value, action="pack", guard=ORDER_NOT_CANCELLED),
        Transition(F.PACKED.value, F.DISPATCHED.value, action="dispatch", guard=ORDER_NOT_CANCELLED),
        Transition(F.DISPATCHED.value, F.IN_TRANSIT.value, action="hand_to_carrier", guard=ORDER_NOT_CANCELLED),
        Transition(F.IN_TRANSIT.value, F.OUT_FOR_DELIVERY.value, action="out_for_delivery", guard=ORDER_NOT_CANCELLED),
        Transition(F.IN_TRANSIT.value, F.FAILED_DELIVERY.value, action="fail_delivery", guard=ORDER_NOT_CANCELLED),
        Transition(F.OUT_FOR_DELIVERY.value, F.DELIVERED.value, action="deliver", guard=ORDER_NOT_CANCELLED),
        Transition(F.OUT_FOR_DELIVERY.value, F.FAILED_DELIVERY.value, action="fail_delivery", guard=ORDER_NOT_CANCELLED),
        Transition(F.FAILED_DELIVERY.value, F.IN_TRANSIT.value, action="reattempt", guard=ORDER_NOT_CANCELLED),
        Transition(F.FAILED_DELIVERY.value, F.RETURNED.value, action="return_to_sender", guard=ORDER_NOT_CANCELLED),
        Transition(F.DELIVERED.value, F.RETURNED.value, action="return", guard=ORDER_NOT_CANCELLED),
    ),
    terminal_states=(F.RETURNED.value,),
)


WORKFLOWS_BY_DIMENSION: dict[OrderDimension, Workflow] = {
    OrderDimension.ORDER_STATUS: ORDER_STATUS_WORKFLOW,
    OrderDimension.PAYMENT_STATUS: PAYMENT_STATUS_WORKFLOW,
    OrderDimension.FULFILLMENT_STATUS: FULFILLMENT_STATUS_WORKFLOW,
}

logger.debug(
    "order_workflows_defined",
    extra={
        "workflows": [w.name for w in WORKFLOWS_BY_DIMENSION.values()],
        "guards": [ORDER_NOT_CANCELLED.name, CANCELLATION_PERMITTED.name],
    },
)
