"""Tests for resolving an address to its jurisdiction chain."""

import pytest

from commerce_engines.jurisdiction import JurisdictionResolver
from commerce_kernel.domain.address import Address
from commerce_kernel.domain.tax_types import (
    JurisdictionKind,
    TaxConfiguration,
    TaxJurisdiction,
)
from commerce_kernel.exceptions import JurisdictionNotConfiguredError


def _us_configuration(**overrides) -> TaxConfiguration:
    jurisdictions = {
        "us": TaxJurisdiction(id="us", kind=JurisdictionKind.COUNTRY, code="US", name="United States"),
        "us-ca": TaxJurisdiction(id="us-ca", kind=JurisdictionKind.STATE, code="CA", name="California", parent_id="us"),
        "us-ca-la": TaxJurisdiction(id="us-ca-la", kind=JurisdictionKind.COUNTY, code="LA", name="Los Angeles County", parent_id="us-ca"),
        "us-ca-la-pasadena": TaxJurisdiction(id="us-ca-la-pasadena", kind=JurisdictionKind.CITY, code="PAS", name="Pasadena", parent_id="us-ca-la"),
        "us-ca-sf": TaxJurisdiction(id="us-ca-sf", kind=JurisdictionKind.CITY, code="SF", name="San Francisco", parent_id="us-ca"),
    }
    jurisdictions.update(overrides)
    return TaxConfiguration(jurisdictions=tuple(jurisdictions.values()))


class TestResolve:

    def setup_method(self):
        self.resolver = JurisdictionResolver(_us_configuration())

    def test_full_chain_most_specific_first(self):
        address = Address(country_code="US", state_code="CA", county="Los Angeles County", city="Pasadena")

        chain = self.resolver.resolve(address)

        assert [j.id for j in chain] == ["us-ca-la-pasadena", "us-ca-la", "us-ca", "us"]
        assert [j.kind for j in chain] == [
            JurisdictionKind.CITY,
            JurisdictionKind.COUNTY,
            JurisdictionKind.STATE,
            JurisdictionKind.COUNTRY,
        ]

    def test_city_directly_under_state(self):
        chain = self.resolver.resolve(Address(country_code="US", state_code="CA", city="san francisco"))

        assert [j.id for j in chain] == ["us-ca-sf", "us-ca", "us"]

    def test_unconfigured_levels_skipped(self):
        chain = self.resolver.resolve(Address(country_code="US", state_code="CA", city="Fresno"))

        assert [j.id for j in chain] == ["us-ca", "us"]

    def test_unknown_state_gives_country_only(self):
        chain = self.resolver.resolve(Address(country_code="US", state_code="NV"))

        assert [j.id for j in chain] == ["us"]

    def test_match_is_case_insensitive(self):
        chain = self.resolver.resolve(Address(country_code=" us ", state_code="ca"))

        assert [j.id for j in chain] == ["us-ca", "us"]

    def test_state_matched_by_name(self):
        chain = self.resolver.resolve(Address(country_code="US", state_name="California"))

        assert chain[0].id == "us-ca"

    def test_unconfigured_country_raises(self):
        with pytest.raises(JurisdictionNotConfiguredError) as exc_info:
            self.resolver.resolve(Address(country_code="CA", state_code="QC"))

        assert exc_info.value.country_code == "CA"
        assert exc_info.value.code == "JURISDICTION_NOT_CONFIGURED"


class TestInactiveJurisdictions:

    def test_inactive_state_hides_children(self):
        base = _us_configuration()
        configuration = base.with_jurisdictions(base.jurisdiction("us-ca").deactivate())
        resolver = JurisdictionResolver(configuration)

        chain = resolver.resolve(Address(country_code="US", state_code="CA", city="San Francisco"))

        assert [j.id for j in chain] == ["us"]

    def test_inactive_country_requires_setup(self):
        base = _us_configuration()
        configuration = base.with_jurisdictions(base.jurisdiction("us").deactivate())
        resolver = JurisdictionResolver(configuration)

        assert resolver.has_country("US") is False
        with pytest.raises(JurisdictionNotConfiguredError):
            resolver.resolve(Address(country_code="US"))


class TestIndiaStates:

    def test_gst_state_code_resolves(self, india_configuration):
        resolver = JurisdictionResolver(india_configuration)

        state = resolver.resolve_state(Address(country_code="IN", state_code="27"))

        assert state.code == "MH"

    def test_resolve_state_without_country(self, india_configuration):
        resolver = JurisdictionResolver(india_configuration)

        assert resolver.resolve_state(Address(country_code="FR", state_code="IDF")) is None
