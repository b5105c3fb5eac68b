"""
Tax setup status -- how far a store is through configuring taxes.

``summarize_setup`` backs the "Configured / Setup Required" badge and the
completion meter.  A store counts as configured once its own country has
an active COUNTRY jurisdiction, which is exactly when the tax calculator
stops reporting setup required for domestic orders.
"""

from __future__ import annotations

from dataclasses import dataclass

from commerce_config.regions import country_code_for
from commerce_kernel.domain.tax_types import JurisdictionKind, TaxConfiguration

_COUNTRY_SCORE = 40
_STATES_SCORE = 20
_RATES_SCORE = 30
_MANY_RATES_SCORE = 10
_MANY_RATES = 4


@dataclass(frozen=True)
class TaxSetupStatus:
    is_configured: bool
    store_country: str | None
    store_country_code: str | None
    jurisdictions_count: int
    rates_count: int
    exemptions_count: int  # exempt, nil-rated and zero-rated categories
    has_country_jurisdiction: bool
    has_state_jurisdictions: bool
    has_active_tax_rates: bool
    completion_percentage: int


def setup_completion(
    jurisdictions_count: int,
    rates_count: int,
    has_country_jurisdiction: bool,
) -> int:
    """Completion score out of 100."""
    score = 0
    if has_country_jurisdiction:
        score += _COUNTRY_SCORE
    if jurisdictions_count > 1:
        score += _STATES_SCORE
    if rates_count > 0:
        score += _RATES_SCORE
    if rates_count > _MANY_RATES:
        score += _MANY_RATES_SCORE
    return min(score, 100)


def summarize_setup(
    configuration: TaxConfiguration,
    store_country: str | None,
) -> TaxSetupStatus:
    """
    Summarize a store's tax configuration.

    Args:
        configuration: The store's tax tables.
        store_country: Country name ("India") or code ("IN") from the
            store profile; may be missing on a new store.
    """
    code = country_code_for(store_country)
    active = [j for j in configuration.jurisdictions if j.is_active]
    country = next(
        (
            j for j in active
            if j.kind == JurisdictionKind.COUNTRY
            and code is not None
            and j.code.strip().upper() == code
        ),
        None,
    )
    has_states = country is not None and any(
        j.kind == JurisdictionKind.STATE and j.parent_id == country.id for j in active
    )
    rates_count = sum(1 for r in configuration.rates if r.is_active)
    exemptions = sum(1 for c in configuration.categories if not c.is_taxable)

    return TaxSetupStatus(
        is_configured=country is not None,
        store_country=store_country,
        store_country_code=code,
        jurisdictions_count=len(active),
        rates_count=rates_count,
        exemptions_count=exemptions,
        has_country_jurisdiction=country is not None,
        has_state_jurisdictions=has_states,
        has_active_tax_rates=rates_count > 0,
        completion_percentage=setup_completion(
            len(active), rates_count, country is not None
        ),
    )
