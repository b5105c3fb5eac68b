"""
Pytest fixtures for the commerce rules test suite.

Provides:
- A deterministic clock for transition timestamps and cancellation windows
- Ready-made tax configurations built from the setup templates
- An order factory for placing orders in any currency and status
- Log state isolation between tests
"""

from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from commerce_config.templates import canada_taxes, india_gst, us_sales_tax
from commerce_engines.cascade_delete import CascadeDeleteValidator, CatalogReferenceIndex
from commerce_kernel.domain.address import Address
from commerce_kernel.domain.catalog import ProductRecord
from commerce_kernel.domain.clock import DeterministicClock
from commerce_kernel.domain.order import Order, OrderItem
from commerce_kernel.domain.values import Money
from commerce_kernel.logging_config import LogContext, reset_logging

PLACED_AT = datetime(2024, 7, 1, 9, 0, 0, tzinfo=timezone.utc)
TAX_DATE = date(2024, 7, 1)


@pytest.fixture(autouse=True)
def _isolate_logging():
    """Every test starts with propagating loggers and an empty log context."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(PLACED_AT)


@pytest.fixture
def tax_date() -> date:
    return TAX_DATE


@pytest.fixture
def make_order():
    """
    Factory for orders.

    ``lines`` is a list of ``(unit_price, quantity)`` or
    ``(unit_price, quantity, tax_category)`` tuples; status fields are
    applied after placement.
    """

    def _make(
        *,
        order_id: str = "ord-1",
        lines=(("100.00", 1),),
        ship_to: Address | None = None,
        currency: str = "INR",
        shipping: str | None = None,
        placed_at: datetime = PLACED_AT,
        **status,
    ) -> Order:
        items = []
        for i, line in enumerate(lines, start=1):
            price, quantity = line[0], line[1]
            category = line[2] if len(line) > 2 else None
            items.append(OrderItem(
                id=f"{order_id}-item-{i}",
                product_id=f"prod-{i}",
                quantity=quantity,
                unit_price=Money.of(price, currency),
                tax_category=category,
            ))
        order = Order.place(
            order_id=order_id,
            items=items,
            shipping_address=ship_to or Address(country_code="IN", state_code="MH"),
            currency_code=currency,
            placed_at=placed_at,
            shipping_cost=Money.of(shipping, currency) if shipping is not None else None,
        )
        if status:
            order = replace(order, **status)
        return order

    return _make


@pytest.fixture
def india_configuration():
    """India GST, seller registered in Maharashtra."""
    return india_gst(effective_from=date(2024, 4, 1), business_state="MH")


@pytest.fixture
def canada_configuration():
    """Canada federal GST plus every province."""
    return canada_taxes(effective_from=date(2024, 1, 1))


@pytest.fixture
def us_configuration():
    return us_sales_tax(effective_from=date(2024, 1, 1), nexus_states=["CA", "TX", "OR"])


@pytest.fixture
def maharashtra() -> Address:
    return Address(country_code="IN", state_code="MH", city="Pune")


@pytest.fixture
def catalog_products() -> list[ProductRecord]:
    """
    p1 and p2 share warehouse wh-1; p1 alone uses category cat-1 and
    supplier sup-1; p3 shares category cat-2 with p2.
    """
    return [
        ProductRecord(
            id="p1", name="Kurta", category_id="cat-1", warehouse_id="wh-1",
            supplier_id="sup-1", variant_ids=("p1-s", "p1-m", "p1-l"),
        ),
        ProductRecord(
            id="p2", name="Saree", category_id="cat-2", warehouse_id="wh-1",
            supplier_id="sup-2", variant_ids=("p2-free",),
        ),
        ProductRecord(
            id="p3", name="Dupatta", category_id="cat-2", warehouse_id="wh-2",
            supplier_id="sup-3",
        ),
    ]


@pytest.fixture
def cascade_validator(catalog_products) -> CascadeDeleteValidator:
    return CascadeDeleteValidator(CatalogReferenceIndex(catalog_products))
