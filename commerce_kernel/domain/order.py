"""
Order value objects.

Responsibility:
    The order as seen by the rules engines: line items, addresses, money
    totals and the three independent status dimensions.  Orders are
    immutable; the state machine returns updated copies.

Architecture position:
    Kernel > Domain -- pure value objects, zero I/O.

Invariants enforced:
    - Line quantity is positive; line discount is non-negative and does
      not exceed the line's gross amount.
    - Every money amount on an order is in the order's currency.
    - A newly placed order starts PLACED / PENDING / UNFULFILLED.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Sequence

from commerce_kernel.domain.address import Address
from commerce_kernel.domain.values import Currency, Money


class OrderStatus(str, Enum):
    PLACED = "PLACED"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"
    REFUNDED = "REFUNDED"


class FulfillmentStatus(str, Enum):
    UNFULFILLED = "UNFULFILLED"
    PROCESSING = "PROCESSING"
    PACKED = "PACKED"
    DISPATCHED = "DISPATCHED"
    IN_TRANSIT = "IN_TRANSIT"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    FAILED_DELIVERY = "FAILED_DELIVERY"
    DELIVERED = "DELIVERED"
    RETURNED = "RETURNED"


class OrderDimension(str, Enum):
    """The three independently tracked status fields of an order."""

    ORDER_STATUS = "order_status"
    PAYMENT_STATUS = "payment_status"
    FULFILLMENT_STATUS = "fulfillment_status"


# Order attribute and enum holding each dimension's state
DIMENSION_FIELDS: dict[OrderDimension, tuple[str, type[Enum]]] = {
    OrderDimension.ORDER_STATUS: ("status", OrderStatus),
    OrderDimension.PAYMENT_STATUS: ("payment_status", PaymentStatus),
    OrderDimension.FULFILLMENT_STATUS: ("fulfillment_status", FulfillmentStatus),
}


@dataclass(frozen=True)
class OrderItem:
    """One order line.  ``tax_category`` is a ProductTaxCategory code."""

    id: str
    product_id: str
    quantity: int
    unit_price: Money
    discount: Money | None = None
    variant_id: str | None = None
    tax_category: str | None = None
    name: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise TypeError(f"Item {self.id}: quantity must be an int")
        if self.quantity <= 0:
            raise ValueError(f"Item {self.id}: quantity must be positive")
        if self.unit_price.is_negative:
            raise ValueError(f"Item {self.id}: unit_price cannot be negative")
        if self.discount is not None:
            if self.discount.currency != self.unit_price.currency:
                raise ValueError(f"Item {self.id}: discount currency differs from price")
            if self.discount.is_negative:
                raise ValueError(f"Item {self.id}: discount cannot be negative")
            if self.discount > self.gross_amount:
                raise ValueError(f"Item {self.id}: discount exceeds line amount")

    @property
    def gross_amount(self) -> Money:
        return self.unit_price * self.quantity

    @property
    def line_subtotal(self) -> Money:
        """quantity x unit price - line discount."""
        if self.discount is None:
            return self.gross_amount
        return self.gross_amount - self.discount


@dataclass(frozen=True)
class Order:
    """
    Order snapshot.

    Contract:
        Mutated only through ``OrderStateMachine.request_transition`` (which
        returns a new Order) and ``with_tax``.  Never deleted; orders end in
        a terminal state instead.
    """

    id: str
    items: tuple[OrderItem, ...]
    shipping_address: Address
    currency_code: str
    subtotal: Money
    tax: Money
    total: Money
    status: OrderStatus = OrderStatus.PLACED
    payment_status: PaymentStatus = PaymentStatus.PENDING
    fulfillment_status: FulfillmentStatus = FulfillmentStatus.UNFULFILLED
    billing_address: Address | None = None
    shipping_cost: Money | None = None
    placed_at: datetime | None = None
    confirmed_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))
        object.__setattr__(self, "status", OrderStatus(self.status))
        object.__setattr__(self, "payment_status", PaymentStatus(self.payment_status))
        object.__setattr__(
            self, "fulfillment_status", FulfillmentStatus(self.fulfillment_status)
        )
        currency = Currency(self.currency_code)
        object.__setattr__(self, "currency_code", currency.code)

        amounts = [self.subtotal, self.tax, self.total]
        amounts.extend(i.unit_price for i in self.items)
        if self.shipping_cost is not None:
            amounts.append(self.shipping_cost)
        for amount in amounts:
            if amount.currency != currency:
                raise ValueError(
                    f"Order {self.id}: amount {amount} is not in {currency.code}"
                )

    @classmethod
    def place(
        cls,
        *,
        order_id: str,
        items: Sequence[OrderItem],
        shipping_address: Address,
        currency_code: str,
        placed_at: datetime,
        billing_address: Address | None = None,
        shipping_cost: Money | None = None,
    ) -> Order:
        """
        Create a newly placed order.

        Postconditions:
            - status=PLACED, payment_status=PENDING, fulfillment_status=UNFULFILLED
            - subtotal is the sum of line subtotals; tax is zero until
              ``with_tax`` is applied; total = subtotal + shipping.
        """
        if not items:
            raise ValueError(f"Order {order_id}: at least one item is required")
        currency = Currency(currency_code)
        subtotal = Money.zero(currency)
        for item in items:
            subtotal = subtotal + item.line_subtotal
        total = subtotal + shipping_cost if shipping_cost is not None else subtotal
        return cls(
            id=order_id,
            items=tuple(items),
            shipping_address=shipping_address,
            billing_address=billing_address,
            currency_code=currency.code,
            subtotal=subtotal,
            tax=Money.zero(currency),
            total=total,
            shipping_cost=shipping_cost,
            placed_at=placed_at,
        )

    @property
    def currency(self) -> Currency:
        return Currency(self.currency_code)

    @property
    def is_cancelled(self) -> bool:
        return self.status == OrderStatus.CANCELLED

    def state_of(self, dimension: OrderDimension) -> str:
        """Current state string of one dimension."""
        attr, _ = DIMENSION_FIELDS[OrderDimension(dimension)]
        return getattr(self, attr).value

    def with_tax(self, tax: Money) -> Order:
        """Copy with ``tax`` set and ``total`` recomputed."""
        shipping = self.shipping_cost or Money.zero(self.currency)
        return replace(self, tax=tax, total=self.subtotal + shipping + tax)
