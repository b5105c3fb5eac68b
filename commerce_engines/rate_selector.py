"""
Rate Selector - Pick the effective tax rates for a jurisdiction chain.

For each jurisdiction (most specific first) and each tax type configured on
it, the rate whose ``[effective_from, effective_to)`` interval contains the
tax date is selected.  A tax type with no effective rate simply contributes
nothing.  Category overrides replace the rate value but keep the rest of
the rate's metadata.

Selected rates come back in application order:

1. Base (non-compound) rates, in jurisdiction order then priority.
   Each applies to the line subtotal.
2. Compound rates, in the order their base rate was resolved.  Each
   applies to the line subtotal plus its base rate's amount (Quebec QST
   on the GST-inclusive price).

A compound rate whose base is not among the selected base rates is a
configuration bug and raises ``InvalidCompoundReferenceError``; it is
never silently dropped.

Usage:
    from commerce_engines.rate_selector import RateSelector

    selector = RateSelector(configuration)
    selected = selector.select(chain, date(2024, 7, 1), category="apparel")
    for s in selected:
        print(s.tax_type, s.rate, s.applies_to)
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from commerce_kernel.domain.tax_types import (
    TaxConfiguration,
    TaxJurisdiction,
    TaxRate,
    TaxType,
)
from commerce_kernel.exceptions import (
    InvalidCompoundReferenceError,
    OverlappingRateError,
)
from commerce_kernel.logging_config import get_logger

logger = get_logger("engines.rate_selector")


class TaxBaseKind(str, Enum):
    """What amount a selected rate is multiplied against."""

    SUBTOTAL = "subtotal"
    SUBTOTAL_PLUS_BASE = "subtotal_plus_base"


@dataclass(frozen=True)
class TaxBase:
    kind: TaxBaseKind
    base_rate_id: str | None = None

    @classmethod
    def subtotal(cls) -> TaxBase:
        return cls(TaxBaseKind.SUBTOTAL)

    @classmethod
    def including(cls, base_rate_id: str) -> TaxBase:
        return cls(TaxBaseKind.SUBTOTAL_PLUS_BASE, base_rate_id)

    def __str__(self) -> str:
        if self.kind == TaxBaseKind.SUBTOTAL:
            return "subtotal"
        return f"subtotal + {self.base_rate_id}"


@dataclass(frozen=True)
class SelectedRate:
    """A rate chosen for one line, with the override already applied."""

    tax_rate: TaxRate
    jurisdiction: TaxJurisdiction
    rate: Decimal
    applies_to: TaxBase

    @property
    def rate_id(self) -> str:
        return self.tax_rate.id

    @property
    def tax_type(self) -> TaxType:
        return self.tax_rate.tax_type

    @property
    def is_compound(self) -> bool:
        return self.tax_rate.is_compound

    @property
    def is_zero(self) -> bool:
        return self.rate == Decimal("0")


class RateSelector:
    """
    Select effective rates for a jurisdiction chain.

    Pure - rates come from the TaxConfiguration supplied at construction.
    """

    def __init__(self, configuration: TaxConfiguration):
        self._configuration = configuration

    def select(
        self,
        jurisdictions: Sequence[TaxJurisdiction],
        tax_date: date,
        category: str | None = None,
        excluded_tax_types: Collection[TaxType] = (),
        shipping: bool = False,
    ) -> tuple[SelectedRate, ...]:
        """
        Select the rates that apply on ``tax_date``.

        Args:
            jurisdictions: Chain from JurisdictionResolver, most specific first.
            tax_date: Transaction date tested against each rate's interval.
            category: Product tax category code for override lookup.
            excluded_tax_types: Tax types to leave out (the CGST/SGST vs
                IGST switch decided by the caller).
            shipping: Select rates for a shipping charge instead of products.

        Returns:
            Base rates followed by compound rates, in application order.

        Raises:
            OverlappingRateError: More than one rate of a tax type is
                effective in one jurisdiction on ``tax_date``.
            InvalidCompoundReferenceError: A compound rate's base is not
                among the selected base rates.
        """
        excluded = frozenset(excluded_tax_types)
        base: list[SelectedRate] = []
        compound: list[SelectedRate] = []

        for jurisdiction in jurisdictions:
            by_type: dict[TaxType, list[TaxRate]] = {}
            for rate in self._configuration.rates_for(jurisdiction.id):
                if not rate.is_active or rate.tax_type in excluded:
                    continue
                if shipping and not rate.applies_to_shipping:
                    continue
                if not shipping and not rate.applies_to_products:
                    continue
                by_type.setdefault(rate.tax_type, []).append(rate)

            level: list[SelectedRate] = []
            for tax_type, candidates in by_type.items():
                effective = [r for r in candidates if r.is_effective(tax_date)]
                if not effective:
                    continue
                if len(effective) > 1:
                    raise OverlappingRateError(
                        jurisdiction.id, tax_type.value, [r.id for r in effective]
                    )
                chosen = effective[0]
                applies_to = (
                    TaxBase.including(chosen.compound_base)
                    if chosen.is_compound
                    else TaxBase.subtotal()
                )
                level.append(SelectedRate(
                    tax_rate=chosen,
                    jurisdiction=jurisdiction,
                    rate=chosen.rate_for(category),
                    applies_to=applies_to,
                ))

            level.sort(key=lambda s: s.tax_rate.priority)
            for selected in level:
                (compound if selected.is_compound else base).append(selected)

        base_position = {s.rate_id: i for i, s in enumerate(base)}
        for selected in compound:
            if selected.tax_rate.compound_base not in base_position:
                logger.error("compound_base_missing", extra={
                    "rate_id": selected.rate_id,
                    "compound_base": selected.tax_rate.compound_base,
                    "tax_date": tax_date.isoformat(),
                    "selected_base_ids": list(base_position),
                })
                raise InvalidCompoundReferenceError(
                    selected.rate_id, selected.tax_rate.compound_base, tax_date
                )
        compound.sort(key=lambda s: (
            base_position[s.tax_rate.compound_base], s.tax_rate.priority
        ))

        result = tuple(base) + tuple(compound)
        logger.debug("rates_selected", extra={
            "tax_date": tax_date.isoformat(),
            "category": category,
            "shipping": shipping,
            "excluded_tax_types": sorted(t.value for t in excluded),
            "rate_ids": [s.rate_id for s in result],
        })
        return result
