"""
Tax Engine - Calculate the tax breakdown for an order.

Supports US sales tax, VAT, GST, India's CGST/SGST/IGST split, and Canadian
compound taxes.  Pure functions with no I/O - jurisdictions, rates and
categories are provided as a TaxConfiguration parameter.

The intrastate/interstate decision is made once per order, before any
rates are selected: when the shipping address resolves to the seller's
own STATE jurisdiction the order is intrastate (CGST + SGST, no IGST);
otherwise it is interstate (IGST, no CGST/SGST/UTGST).

Rounding policy (line-level):
    Tax components are kept exact while a line is summed.  The line's tax
    total is rounded half-up to the currency minor unit once, and the
    order total is the sum of rounded line totals.  Per-component amounts
    shown in a line are individually rounded for display and may differ
    from the line total by a minor unit.

Usage:
    from commerce_engines.tax import TaxCalculator
    from datetime import date

    calculator = TaxCalculator()
    outcome = calculator.calculate(
        order=order,
        origin=Address(country_code="IN", state_code="MH"),
        configuration=configuration,
        tax_date=date(2024, 7, 1),
    )
    if outcome.setup_required:
        ...  # show "Setup Required"
    print(outcome.breakdown.total_tax)  # Money: 18.00 INR
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from commerce_engines.jurisdiction import JurisdictionResolver
from commerce_engines.rate_selector import RateSelector, SelectedRate, TaxBaseKind
from commerce_engines.tracer import traced_engine
from commerce_kernel.domain.address import Address
from commerce_kernel.domain.order import Order
from commerce_kernel.domain.outcomes import EngineError
from commerce_kernel.domain.tax_types import (
    INTERSTATE_TAX_TYPES,
    INTRASTATE_TAX_TYPES,
    JurisdictionKind,
    TaxConfiguration,
    TaxJurisdiction,
    TaxType,
)
from commerce_kernel.domain.values import Currency, Money
from commerce_kernel.exceptions import (
    JurisdictionNotConfiguredError,
    RateConfigurationError,
)
from commerce_kernel.logging_config import get_logger

logger = get_logger("engines.tax")

SHIPPING_LINE_ID = "shipping"


@dataclass(frozen=True)
class TaxComponent:
    """
    One tax applied to one line.

    ``amount`` is rounded for display; ``exact_amount`` is what the line
    total is summed from.
    """

    rate_id: str
    tax_type: TaxType
    rate: Decimal
    taxable_amount: Money
    amount: Money
    exact_amount: Decimal
    jurisdiction_id: str
    jurisdiction_code: str
    is_compound: bool = False
    name: str = ""

    @property
    def rate_percent(self) -> Decimal:
        return self.rate * Decimal("100")


@dataclass(frozen=True)
class LineTaxBreakdown:
    item_id: str
    taxable_amount: Money
    taxes: tuple[TaxComponent, ...]
    tax_total: Money
    is_exempt: bool = False


@dataclass(frozen=True)
class TaxBreakdown:
    """
    Complete tax breakdown for an order.

    ``per_line`` includes a ``"shipping"`` pseudo-line when a shipping
    charge was taxed.
    """

    per_line: tuple[LineTaxBreakdown, ...]
    total_tax: Money
    is_interstate: bool
    currency: Currency
    tax_date: date
    jurisdiction_ids: tuple[str, ...] = ()

    def line(self, item_id: str) -> LineTaxBreakdown | None:
        for line in self.per_line:
            if line.item_id == item_id:
                return line
        return None

    @property
    def tax_types(self) -> frozenset[TaxType]:
        return frozenset(t.tax_type for line in self.per_line for t in line.taxes)

    def tax_by_type(self, tax_type: TaxType) -> Money:
        """Sum of displayed component amounts of one tax type."""
        total = Money.zero(self.currency)
        for line in self.per_line:
            for tax in line.taxes:
                if tax.tax_type == tax_type:
                    total = total + tax.amount
        return total


@dataclass(frozen=True)
class TaxCalculationOutcome:
    """Either a breakdown or an error value, never both."""

    breakdown: TaxBreakdown | None = None
    error: EngineError | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def setup_required(self) -> bool:
        return (
            self.error is not None
            and self.error.code == JurisdictionNotConfiguredError.code
        )

    def raise_for_error(self) -> TaxBreakdown:
        if self.error is not None:
            self.error.raise_for_error()
        assert self.breakdown is not None
        return self.breakdown


def determine_interstate(
    resolver: JurisdictionResolver,
    destination_state: TaxJurisdiction | None,
    origin: Address,
    destination: Address,
) -> bool:
    """
    True when the sale crosses a state (or country) boundary.

    Compares resolved STATE jurisdictions.  When either side has no
    configured state, falls back to comparing the normalized country and
    state values of the two addresses.
    """
    origin_state = resolver.resolve_state(origin)
    if destination_state is not None and origin_state is not None:
        return destination_state.id != origin_state.id
    if origin.country_key != destination.country_key:
        return True
    return origin.state_key != destination.state_key


class TaxCalculator:
    """
    Calculate order taxes.

    Pure functions - no I/O.  Jurisdiction and rate tables are provided
    as parameters.

    Handles:
        - Multi-level jurisdictions (city, county, state, country)
        - CGST/SGST vs IGST selection
        - Compound taxes on tax-inclusive amounts
        - Category overrides and exempt/nil/zero-rated categories
        - Shipping charges
    """

    @traced_engine("tax", "1.0", fingerprint_fields=("order", "origin", "tax_date"))
    def calculate(
        self,
        order: Order,
        origin: Address,
        configuration: TaxConfiguration,
        tax_date: date,
    ) -> TaxCalculationOutcome:
        """
        Calculate the tax breakdown for ``order``.

        Args:
            order: Order whose items and shipping address are taxed.
            origin: Seller's registered business address.
            configuration: Jurisdiction, rate and category tables.
            tax_date: Date used to pick effective rates.

        Returns:
            TaxCalculationOutcome with a breakdown, or an error value when
            the destination country is not configured (setup required) or
            the rate configuration is broken (fatal).
        """
        t0 = time.monotonic()
        logger.info("tax_calculation_started", extra={
            "order_id": order.id,
            "currency": order.currency_code,
            "item_count": len(order.items),
            "tax_date": tax_date.isoformat(),
            "destination_country": order.shipping_address.country_code,
        })

        resolver = JurisdictionResolver(configuration)
        selector = RateSelector(configuration)

        try:
            chain = resolver.resolve(order.shipping_address)
        except JurisdictionNotConfiguredError as exc:
            logger.warning("tax_calculation_setup_required", extra={
                "order_id": order.id,
                "country_code": exc.country_code,
            })
            return TaxCalculationOutcome(error=EngineError.from_exception(exc))

        destination_state = next(
            (j for j in chain if j.kind == JurisdictionKind.STATE), None
        )
        is_interstate = determine_interstate(
            resolver, destination_state, origin, order.shipping_address
        )
        excluded = INTRASTATE_TAX_TYPES if is_interstate else INTERSTATE_TAX_TYPES

        currency = order.currency
        lines: list[LineTaxBreakdown] = []
        selections: dict[str | None, tuple[SelectedRate, ...]] = {}
        try:
            for item in order.items:
                category = configuration.category(item.tax_category)
                if category is not None and not category.is_taxable:
                    lines.append(LineTaxBreakdown(
                        item_id=item.id,
                        taxable_amount=item.line_subtotal,
                        taxes=(),
                        tax_total=Money.zero(currency),
                        is_exempt=True,
                    ))
                    continue
                if item.tax_category not in selections:
                    selections[item.tax_category] = selector.select(
                        chain, tax_date,
                        category=item.tax_category,
                        excluded_tax_types=excluded,
                    )
                lines.append(self._tax_line(
                    item.id, item.line_subtotal, selections[item.tax_category]
                ))

            if order.shipping_cost is not None and order.shipping_cost.is_positive:
                shipping_rates = selector.select(
                    chain, tax_date, excluded_tax_types=excluded, shipping=True
                )
                lines.append(self._tax_line(
                    SHIPPING_LINE_ID, order.shipping_cost, shipping_rates
                ))
        except RateConfigurationError as exc:
            logger.error("tax_rate_configuration_invalid", extra={
                "order_id": order.id,
                "error_code": exc.code,
                "error": str(exc),
            })
            return TaxCalculationOutcome(
                error=EngineError.from_exception(exc, fatal=True)
            )

        total_tax = Money.zero(currency)
        for line in lines:
            total_tax = total_tax + line.tax_total

        breakdown = TaxBreakdown(
            per_line=tuple(lines),
            total_tax=total_tax,
            is_interstate=is_interstate,
            currency=currency,
            tax_date=tax_date,
            jurisdiction_ids=tuple(j.id for j in chain),
        )

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("tax_calculation_completed", extra={
            "order_id": order.id,
            "total_tax": str(total_tax.amount),
            "is_interstate": is_interstate,
            "tax_types": sorted(t.value for t in breakdown.tax_types),
            "line_count": len(lines),
            "duration_ms": duration_ms,
        })
        return TaxCalculationOutcome(breakdown=breakdown)

    def _tax_line(
        self,
        item_id: str,
        taxable: Money,
        selected: tuple[SelectedRate, ...],
    ) -> LineTaxBreakdown:
        """Apply base then compound rates to one line amount."""
        currency = taxable.currency
        exact_by_rate: dict[str, Decimal] = {}
        components: list[TaxComponent] = []
        line_exact = Decimal("0")

        for s in selected:
            applies_to = taxable.amount
            if s.applies_to.kind == TaxBaseKind.SUBTOTAL_PLUS_BASE:
                applies_to = applies_to + exact_by_rate[s.applies_to.base_rate_id]
            exact = applies_to * s.rate
            exact_by_rate[s.rate_id] = exact
            if s.is_zero:
                continue
            line_exact += exact
            components.append(TaxComponent(
                rate_id=s.rate_id,
                tax_type=s.tax_type,
                rate=s.rate,
                taxable_amount=Money(applies_to, currency),
                amount=Money(exact, currency).round(),
                exact_amount=exact,
                jurisdiction_id=s.jurisdiction.id,
                jurisdiction_code=s.jurisdiction.code,
                is_compound=s.is_compound,
                name=s.tax_rate.name,
            ))

        return LineTaxBreakdown(
            item_id=item_id,
            taxable_amount=taxable,
            taxes=tuple(components),
            tax_total=Money(line_exact, currency).round(),
        )
