"""Tests for Order, OrderItem and Address value objects."""

from datetime import datetime, timezone

import pytest

from commerce_kernel.domain.address import Address, normalize_key
from commerce_kernel.domain.order import (
    FulfillmentStatus,
    Order,
    OrderDimension,
    OrderItem,
    OrderStatus,
    PaymentStatus,
)
from commerce_kernel.domain.values import Money

PLACED_AT = datetime(2024, 7, 1, 9, 0, tzinfo=timezone.utc)
MUMBAI = Address(country_code="IN", state_code="MH", city="Mumbai")


def _item(item_id="i1", price="100.00", quantity=1, discount=None, currency="INR"):
    return OrderItem(
        id=item_id,
        product_id="p1",
        quantity=quantity,
        unit_price=Money.of(price, currency),
        discount=Money.of(discount, currency) if discount else None,
    )


class TestOrderItem:

    def test_line_subtotal(self):
        assert _item(price="19.99", quantity=3).line_subtotal == Money.of("59.97", "INR")

    def test_discount_applied(self):
        assert _item(price="50", quantity=2, discount="15").line_subtotal == Money.of("85", "INR")

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_quantity_positive(self, quantity):
        with pytest.raises(ValueError):
            _item(quantity=quantity)

    def test_quantity_must_be_int(self):
        with pytest.raises(TypeError):
            _item(quantity=True)

    def test_negative_price_rejected(self):
        with pytest.raises(ValueError):
            _item(price="-1")

    def test_discount_exceeding_line_rejected(self):
        with pytest.raises(ValueError, match="exceeds"):
            _item(price="10", discount="10.01")

    def test_discount_currency_must_match(self):
        with pytest.raises(ValueError, match="currency"):
            OrderItem(
                id="i1", product_id="p1", quantity=1,
                unit_price=Money.of("10", "INR"), discount=Money.of("1", "USD"),
            )


class TestOrderPlace:

    def test_initial_states(self):
        order = Order.place(
            order_id="o1", items=[_item()], shipping_address=MUMBAI,
            currency_code="inr", placed_at=PLACED_AT,
        )
        assert order.status == OrderStatus.PLACED
        assert order.payment_status == PaymentStatus.PENDING
        assert order.fulfillment_status == FulfillmentStatus.UNFULFILLED
        assert order.currency_code == "INR"
        assert order.placed_at == PLACED_AT
        assert order.confirmed_at is None

    def test_totals(self):
        order = Order.place(
            order_id="o1",
            items=[_item("i1", "100", 2), _item("i2", "40", 1, discount="5")],
            shipping_address=MUMBAI,
            currency_code="INR",
            placed_at=PLACED_AT,
            shipping_cost=Money.of("50", "INR"),
        )
        assert order.subtotal == Money.of("235", "INR")
        assert order.tax == Money.zero("INR")
        assert order.total == Money.of("285", "INR")

    def test_with_tax_recomputes_total(self):
        order = Order.place(
            order_id="o1", items=[_item()], shipping_address=MUMBAI,
            currency_code="INR", placed_at=PLACED_AT,
            shipping_cost=Money.of("50", "INR"),
        )
        taxed = order.with_tax(Money.of("27.00", "INR"))
        assert taxed.total == Money.of("177.00", "INR")
        assert order.tax == Money.zero("INR")

    def test_empty_order_rejected(self):
        with pytest.raises(ValueError, match="at least one item"):
            Order.place(
                order_id="o1", items=[], shipping_address=MUMBAI,
                currency_code="INR", placed_at=PLACED_AT,
            )

    def test_item_currency_must_match(self):
        with pytest.raises(ValueError):
            Order.place(
                order_id="o1", items=[_item(currency="USD")], shipping_address=MUMBAI,
                currency_code="INR", placed_at=PLACED_AT,
            )

    def test_state_of(self):
        order = Order.place(
            order_id="o1", items=[_item()], shipping_address=MUMBAI,
            currency_code="INR", placed_at=PLACED_AT,
        )
        assert order.state_of(OrderDimension.ORDER_STATUS) == "PLACED"
        assert order.state_of("payment_status") == "PENDING"
        assert order.state_of(OrderDimension.FULFILLMENT_STATUS) == "UNFULFILLED"
        assert not order.is_cancelled


class TestAddress:

    def test_country_required(self):
        with pytest.raises(ValueError):
            Address(country_code="  ")

    def test_keys_normalized(self):
        address = Address(country_code=" IN ", state_name=" Maharashtra ")
        assert address.country_key == "in"
        assert address.state_key == "maharashtra"

    def test_state_code_preferred(self):
        assert Address(country_code="IN", state_code="MH", state_name="Maharashtra").state_key == "mh"

    def test_normalize_blank(self):
        assert normalize_key("   ") is None
        assert normalize_key(None) is None
