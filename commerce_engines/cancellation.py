"""
Cancellation Policy Engine - May a customer cancel, and for what fee?

A store's cancellation policy is a list of time windows measured from the
moment the order was placed.  The first window (shortest first) whose
limit has not yet passed decides the fee; once every window has passed the
default fee applies.  Orders in a non-cancellable status (order or
fulfillment dimension) cannot be cancelled at all.

Usage:
    from commerce_engines.cancellation import CancellationPolicy, evaluate_cancellation

    policy = CancellationPolicy.default()
    quote = evaluate_cancellation(order, policy, at=clock.now())
    if quote.allowed:
        print(quote.window_name, quote.fee)  # "Low fee", Money: 3.00 USD
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from commerce_kernel.domain.currency import CurrencyRegistry
from commerce_kernel.domain.order import Order
from commerce_kernel.domain.values import Money
from commerce_kernel.logging_config import get_logger

logger = get_logger("engines.cancellation")

_HUNDRED = Decimal("100")
_SECONDS_PER_HOUR = Decimal("3600")


class CancellationFeeType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class RefundMethod(str, Enum):
    ORIGINAL_PAYMENT = "original_payment"
    STORE_CREDIT = "store_credit"
    CUSTOMER_CHOICE = "customer_choice"


@dataclass(frozen=True)
class CancellationWindow:
    name: str
    max_hours_after_order: Decimal
    fee_type: CancellationFeeType = CancellationFeeType.PERCENTAGE
    fee_value: Decimal = Decimal("0")
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "max_hours_after_order", Decimal(str(self.max_hours_after_order))
        )
        object.__setattr__(self, "fee_value", Decimal(str(self.fee_value)))
        object.__setattr__(self, "fee_type", CancellationFeeType(self.fee_type))
        if self.max_hours_after_order < 0:
            raise ValueError(f"Window {self.name!r}: max_hours_after_order cannot be negative")
        if self.fee_value < 0:
            raise ValueError(f"Window {self.name!r}: fee_value cannot be negative")


@dataclass(frozen=True)
class CancellationPolicy:
    """
    A store's customer cancellation rules.

    ``non_cancellable_statuses`` may name order statuses or fulfillment
    statuses ("SHIPPED", "IN_TRANSIT").
    """

    enabled: bool = True
    windows: tuple[CancellationWindow, ...] = ()
    default_fee_type: CancellationFeeType = CancellationFeeType.PERCENTAGE
    default_fee_value: Decimal = Decimal("15")
    non_cancellable_statuses: frozenset[str] = frozenset({"SHIPPED", "DELIVERED"})
    require_reason: bool = True
    allow_partial_cancellation: bool = False
    refund_method: RefundMethod = RefundMethod.ORIGINAL_PAYMENT

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "windows",
            tuple(sorted(self.windows, key=lambda w: w.max_hours_after_order)),
        )
        object.__setattr__(
            self,
            "non_cancellable_statuses",
            frozenset(str(s).upper() for s in self.non_cancellable_statuses),
        )
        object.__setattr__(self, "default_fee_type", CancellationFeeType(self.default_fee_type))
        object.__setattr__(self, "default_fee_value", Decimal(str(self.default_fee_value)))
        object.__setattr__(self, "refund_method", RefundMethod(self.refund_method))

    @classmethod
    def default(cls) -> CancellationPolicy:
        """Policy a new store starts with."""
        return cls(
            windows=(
                CancellationWindow(
                    "Free cancellation", Decimal("6"),
                    CancellationFeeType.PERCENTAGE, Decimal("0"),
                    "Cancel within 6 hours at no charge.",
                ),
                CancellationWindow(
                    "Low fee", Decimal("24"),
                    CancellationFeeType.PERCENTAGE, Decimal("3"),
                    "A small processing fee applies within 24 hours.",
                ),
                CancellationWindow(
                    "Pre-delivery", Decimal("72"),
                    CancellationFeeType.PERCENTAGE, Decimal("10"),
                    "10% fee for cancellations before delivery.",
                ),
            ),
        )

    def blocks(self, order: Order) -> bool:
        """True when the order's current status forbids cancellation."""
        if not self.enabled:
            return True
        return (
            order.status.value in self.non_cancellable_statuses
            or order.fulfillment_status.value in self.non_cancellable_statuses
        )


@dataclass(frozen=True)
class CancellationQuote:
    allowed: bool
    reason: str
    fee: Money | None = None
    window_name: str | None = None
    hours_since_order: Decimal | None = None
    reason_required: bool = False
    partial_allowed: bool = False


def _fee(order: Order, fee_type: CancellationFeeType, value: Decimal) -> Money:
    if fee_type == CancellationFeeType.FIXED:
        return Money(value, order.currency).round()
    return (order.total * (value / _HUNDRED)).round()


def evaluate_cancellation(
    order: Order,
    policy: CancellationPolicy,
    at: datetime,
) -> CancellationQuote:
    """
    Decide whether ``order`` may be cancelled at ``at`` and the fee.

    An order without ``placed_at`` is treated as placed at ``at``.
    An allowed quote also tells the caller whether the cancel form must
    ask for a reason and whether single items may be cancelled.
    """
    if not policy.enabled:
        return CancellationQuote(False, "Cancellations are disabled")
    if order.is_cancelled:
        return CancellationQuote(False, "Order is already cancelled")
    if policy.blocks(order):
        return CancellationQuote(
            False,
            f"Orders in status {order.status.value}/{order.fulfillment_status.value} "
            f"cannot be cancelled",
        )

    placed_at = order.placed_at or at
    elapsed = Decimal(str((at - placed_at).total_seconds())) / _SECONDS_PER_HOUR
    if elapsed < 0:
        elapsed = Decimal("0")

    for window in policy.windows:
        if elapsed <= window.max_hours_after_order:
            quote = CancellationQuote(
                True,
                window.description or window.name,
                fee=_fee(order, window.fee_type, window.fee_value),
                window_name=window.name,
                hours_since_order=elapsed,
                reason_required=policy.require_reason,
                partial_allowed=policy.allow_partial_cancellation,
            )
            break
    else:
        quote = CancellationQuote(
            True,
            "Default cancellation fee",
            fee=_fee(order, policy.default_fee_type, policy.default_fee_value),
            hours_since_order=elapsed,
            reason_required=policy.require_reason,
            partial_allowed=policy.allow_partial_cancellation,
        )

    logger.info("cancellation_evaluated", extra={
        "order_id": order.id,
        "window": quote.window_name,
        "fee": str(quote.fee.amount) if quote.fee else None,
        "hours_since_order": str(elapsed.quantize(Decimal("0.01"))),
    })
    return quote


def _format_fixed(value: Decimal, currency_code: str) -> str:
    info = CurrencyRegistry.get_info(currency_code)
    symbol = info.symbol if info and info.symbol else f"{currency_code} "
    return f"{symbol}{value:.2f}"


def _format_percent(value: Decimal) -> str:
    return f"{value.normalize():f}%"


def generate_policy_text(policy: CancellationPolicy, currency_code: str = "USD") -> str:
    """Customer-facing summary of the policy, one rule per line."""
    if not policy.enabled:
        return "Cancellations are not available at this time."

    lines = ["Our cancellation policy:"]
    for w in policy.windows:
        if w.fee_value == 0:
            fee = "free"
        elif w.fee_type == CancellationFeeType.PERCENTAGE:
            fee = f"{_format_percent(w.fee_value)} fee"
        else:
            fee = f"{_format_fixed(w.fee_value, currency_code)} fee"
        lines.append(f"- Within {w.max_hours_after_order.normalize():f} hours: {fee}")

    if policy.default_fee_type == CancellationFeeType.PERCENTAGE:
        default_fee = _format_percent(policy.default_fee_value)
    else:
        default_fee = _format_fixed(policy.default_fee_value, currency_code)
    lines.append(f"- After all windows: {default_fee} fee")

    if policy.non_cancellable_statuses:
        statuses = ", ".join(sorted(policy.non_cancellable_statuses)).lower()
        lines.append(f"Orders that are {statuses} cannot be cancelled.")

    if policy.require_reason:
        lines.append("A reason is required to cancel an order.")
    if policy.allow_partial_cancellation:
        lines.append("Individual items can be cancelled.")
    else:
        lines.append("Orders are cancelled in full.")

    if policy.refund_method == RefundMethod.ORIGINAL_PAYMENT:
        lines.append("Refunds are issued to the original payment method.")
    elif policy.refund_method == RefundMethod.STORE_CREDIT:
        lines.append("Refunds are issued as store credit.")
    else:
        lines.append("Refunds can be issued to the original payment method or as store credit.")
    return "\n".join(lines)
