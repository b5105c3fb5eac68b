"""
Jurisdiction Resolver - Find the tax authorities that apply to an address.

Walks the configured jurisdiction tree from the address's country down to
state, county and city, and returns the chain most specific first.  Levels
with no configured (or no active) jurisdiction are skipped.

Usage:
    from commerce_engines.jurisdiction import JurisdictionResolver
    from commerce_kernel.domain.address import Address

    resolver = JurisdictionResolver(configuration)
    chain = resolver.resolve(Address(country_code="IN", state_code="MH"))
    # (TaxJurisdiction(kind=STATE, code="MH"), TaxJurisdiction(kind=COUNTRY, code="IN"))
"""

from __future__ import annotations

from commerce_kernel.domain.address import Address, normalize_key
from commerce_kernel.domain.tax_types import (
    JurisdictionKind,
    TaxConfiguration,
    TaxJurisdiction,
)
from commerce_kernel.exceptions import JurisdictionNotConfiguredError
from commerce_kernel.logging_config import get_logger

logger = get_logger("engines.jurisdiction")


def _matches(jurisdiction: TaxJurisdiction, *candidates: str | None) -> bool:
    """Case-insensitive match of any candidate against code, GST code or name."""
    keys = {
        normalize_key(jurisdiction.code),
        normalize_key(jurisdiction.state_code),
        normalize_key(jurisdiction.name),
    }
    keys.discard(None)
    for candidate in candidates:
        key = normalize_key(candidate)
        if key is not None and key in keys:
            return True
    return False


class JurisdictionResolver:
    """
    Resolve an address to its ordered jurisdiction chain.

    Pure - the jurisdiction table is supplied at construction and never
    modified.  Inactive jurisdictions are invisible, and so is everything
    beneath them.
    """

    def __init__(self, configuration: TaxConfiguration):
        self._countries: dict[str, TaxJurisdiction] = {}
        self._children: dict[str, list[TaxJurisdiction]] = {}
        for j in configuration.jurisdictions:
            if not j.is_active:
                continue
            if j.kind == JurisdictionKind.COUNTRY:
                self._countries[normalize_key(j.code)] = j
            elif j.parent_id is not None:
                self._children.setdefault(j.parent_id, []).append(j)

    def resolve(self, address: Address) -> tuple[TaxJurisdiction, ...]:
        """
        Return applicable jurisdictions, most specific first.

        Order is CITY, COUNTY, STATE, COUNTRY with unconfigured levels
        omitted.

        Raises:
            JurisdictionNotConfiguredError: no active COUNTRY jurisdiction
                matches ``address.country_code``.
        """
        country = self._match_country(address)
        if country is None:
            logger.warning("jurisdiction_not_configured", extra={
                "country_code": address.country_code,
                "configured_countries": sorted(self._countries),
            })
            raise JurisdictionNotConfiguredError(address.country_code)

        state = self._match_state(country, address)
        county = None
        city = None
        if state is not None:
            if address.county:
                county = self._match_child(
                    state.id, JurisdictionKind.COUNTY, address.county
                )
            if address.city:
                parents = [county.id] if county is not None else []
                parents.append(state.id)
                for parent_id in parents:
                    city = self._match_child(
                        parent_id, JurisdictionKind.CITY, address.city
                    )
                    if city is not None:
                        break

        chain = tuple(j for j in (city, county, state, country) if j is not None)
        logger.debug("jurisdiction_resolved", extra={
            "country_code": address.country_code,
            "jurisdiction_ids": [j.id for j in chain],
            "levels": [j.kind.value for j in chain],
        })
        return chain

    def resolve_state(self, address: Address) -> TaxJurisdiction | None:
        """STATE-level jurisdiction for an address, or None when unresolved."""
        country = self._match_country(address)
        if country is None:
            return None
        return self._match_state(country, address)

    def has_country(self, country_code: str) -> bool:
        return normalize_key(country_code) in self._countries

    def _match_country(self, address: Address) -> TaxJurisdiction | None:
        country = self._countries.get(address.country_key)
        if country is not None:
            return country
        for candidate in self._countries.values():
            if _matches(candidate, address.country_code):
                return candidate
        return None

    def _match_state(
        self, country: TaxJurisdiction, address: Address
    ) -> TaxJurisdiction | None:
        """Match by state code first, then fall back to the state name."""
        states = [
            j for j in self._children.get(country.id, ())
            if j.kind == JurisdictionKind.STATE
        ]
        if address.state_code:
            for state in states:
                if _matches(state, address.state_code):
                    return state
        if address.state_name:
            for state in states:
                if _matches(state, address.state_name):
                    return state
        return None

    def _match_child(
        self, parent_id: str, kind: JurisdictionKind, value: str
    ) -> TaxJurisdiction | None:
        for child in self._children.get(parent_id, ()):
            if child.kind == kind and _matches(child, value):
                return child
        return None
