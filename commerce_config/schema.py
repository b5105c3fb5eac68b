"""
TaxConfigurationSet schema.

Defines the human-authored, reviewable source artifact for a store's tax
tables.  YAML fragments are parsed into these types by the loader and
composed by the assembler; engines only ever see the ``TaxConfiguration``
snapshot produced by ``TaxConfigurationSet.to_configuration()``.

Key distinction:
  TaxConfigurationSet = source artifact (human-authored, versioned, scoped)
  TaxConfiguration    = runtime artifact (kernel value object, indexed)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from commerce_config.lifecycle import ConfigStatus
from commerce_kernel.domain.address import Address
from commerce_kernel.domain.tax_types import (
    ProductTaxCategory,
    TaxConfiguration,
    TaxJurisdiction,
    TaxRate,
)


@dataclass(frozen=True)
class ConfigScope:
    """Scope of applicability for a configuration set."""

    store_code: str
    country_code: str
    currency: str
    effective_from: date
    effective_to: date | None = None
    business_state: str | None = None  # seller's registered state code

    def covers(self, as_of_date: date) -> bool:
        """True when ``as_of_date`` falls inside the inclusive scope range."""
        if as_of_date < self.effective_from:
            return False
        return self.effective_to is None or as_of_date <= self.effective_to


@dataclass(frozen=True)
class TaxConfigurationSet:
    """Human-authored tax tables for one store.

    Attributes:
        config_id: Unique identifier (e.g., "IN-MH-RETAIL-2024-v1")
        version: Configuration version number
        checksum: SHA-256 of canonical serialization
        scope: Applicability scope
        status: Lifecycle status
        jurisdictions: All jurisdictions, in file order
        rates: All tax rates, in file order
        categories: Product tax categories
        name: Display name
    """

    config_id: str
    version: int
    checksum: str
    scope: ConfigScope
    status: ConfigStatus
    jurisdictions: tuple[TaxJurisdiction, ...]
    rates: tuple[TaxRate, ...]
    categories: tuple[ProductTaxCategory, ...] = ()
    name: str = ""

    def to_configuration(self) -> TaxConfiguration:
        return TaxConfiguration(
            jurisdictions=self.jurisdictions,
            rates=self.rates,
            categories=self.categories,
        )

    def origin_address(self) -> Address:
        """Seller address implied by the scope, for the interstate decision."""
        return Address(
            country_code=self.scope.country_code,
            state_code=self.scope.business_state,
        )
