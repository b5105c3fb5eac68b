"""Tests for tax configuration value objects."""

from datetime import date
from decimal import Decimal

import pytest

from commerce_kernel.domain.tax_types import (
    JurisdictionKind,
    ProductTaxCategory,
    TaxConfiguration,
    TaxJurisdiction,
    TaxRate,
    TaxType,
    to_rate,
)

START = date(2024, 1, 1)


def _rate(**kwargs) -> TaxRate:
    fields = dict(
        id="gst",
        jurisdiction_id="ca",
        tax_type=TaxType.GST,
        rate=Decimal("0.05"),
        effective_from=START,
    )
    fields.update(kwargs)
    return TaxRate(**fields)


class TestTaxJurisdiction:

    def test_country_without_parent(self):
        country = TaxJurisdiction(id="in", kind=JurisdictionKind.COUNTRY, code="IN", name="India")
        assert country.parent_id is None
        assert country.is_active

    def test_country_with_parent_rejected(self):
        with pytest.raises(ValueError, match="cannot have a parent"):
            TaxJurisdiction(id="in", kind=JurisdictionKind.COUNTRY, code="IN", name="India", parent_id="x")

    def test_state_requires_parent(self):
        with pytest.raises(ValueError, match="requires a parent_id"):
            TaxJurisdiction(id="in-mh", kind=JurisdictionKind.STATE, code="MH", name="Maharashtra")

    def test_kind_from_string(self):
        state = TaxJurisdiction(id="in-mh", kind="state", code="MH", name="Maharashtra", parent_id="in")
        assert state.kind == JurisdictionKind.STATE

    def test_blank_code_rejected(self):
        with pytest.raises(ValueError):
            TaxJurisdiction(id="in", kind=JurisdictionKind.COUNTRY, code=" ", name="India")

    def test_deactivate_returns_copy(self):
        state = TaxJurisdiction(id="in-mh", kind=JurisdictionKind.STATE, code="MH", name="Maharashtra", parent_id="in", state_code="27")
        inactive = state.deactivate()
        assert state.is_active
        assert not inactive.is_active
        assert inactive.state_code == "27"


class TestTaxRate:

    def test_effective_interval_half_open(self):
        rate = _rate(effective_to=date(2024, 7, 1))
        assert not rate.is_effective(date(2023, 12, 31))
        assert rate.is_effective(START)
        assert rate.is_effective(date(2024, 6, 30))
        assert not rate.is_effective(date(2024, 7, 1))

    def test_open_ended(self):
        assert _rate().is_effective(date(2099, 1, 1))

    def test_end_must_follow_start(self):
        with pytest.raises(ValueError, match="effective_to"):
            _rate(effective_to=START)

    def test_overlaps(self):
        first = _rate(effective_to=date(2024, 7, 1))
        adjacent = _rate(id="gst-2", effective_from=date(2024, 7, 1))
        inside = _rate(id="gst-3", effective_from=date(2024, 3, 1), effective_to=date(2024, 4, 1))
        assert not first.overlaps(adjacent)
        assert first.overlaps(inside)
        assert _rate().overlaps(adjacent)

    def test_float_rate_rejected(self):
        with pytest.raises(TypeError):
            _rate(rate=0.05)

    @pytest.mark.parametrize("value", ["-0.01", "1.5"])
    def test_rate_out_of_range(self, value):
        with pytest.raises(ValueError, match="between 0 and 1"):
            _rate(rate=Decimal(value))

    def test_rate_from_string(self):
        assert _rate(rate="0.18").rate == Decimal("0.18")

    def test_compound_requires_base(self):
        with pytest.raises(ValueError, match="requires compound_base"):
            _rate(id="qst", is_compound=True)

    def test_base_on_non_compound_rejected(self):
        with pytest.raises(ValueError, match="non-compound"):
            _rate(id="qst", compound_base="gst")

    def test_self_reference_rejected(self):
        with pytest.raises(ValueError, match="itself"):
            _rate(id="qst", is_compound=True, compound_base="qst")

    def test_category_overrides_normalized(self):
        rate = _rate(category_overrides={"GST_5": "0.05", "GST_12": Decimal("0.12")})
        assert rate.category_overrides == (("GST_12", Decimal("0.12")), ("GST_5", Decimal("0.05")))
        assert rate.rate_for("GST_12") == Decimal("0.12")
        assert rate.rate_for("OTHER") == Decimal("0.05")
        assert rate.rate_for(None) == Decimal("0.05")
        hash(rate)

    def test_override_out_of_range(self):
        with pytest.raises(ValueError):
            _rate(category_overrides={"BAD": Decimal("2")})

    def test_rate_percent(self):
        assert _rate(rate=Decimal("0.09975")).rate_percent == Decimal("9.975")

    def test_tax_type_from_string(self):
        assert _rate(tax_type="igst").tax_type == TaxType.IGST


class TestToRate:

    def test_invalid_text(self):
        with pytest.raises(ValueError, match="Invalid rate"):
            to_rate("eighteen")

    def test_bounds_inclusive(self):
        assert to_rate("0") == Decimal("0")
        assert to_rate("1") == Decimal("1")


class TestProductTaxCategory:

    @pytest.mark.parametrize("flag", ["is_tax_exempt", "is_nil_rated", "is_zero_rated"])
    def test_not_taxable(self, flag):
        category = ProductTaxCategory(code="X", name="X", **{flag: True})
        assert category.is_taxable is False

    def test_taxable_by_default(self):
        assert ProductTaxCategory(code="GST_18", name="GST 18%").is_taxable


class TestTaxConfiguration:

    def setup_method(self):
        self.country = TaxJurisdiction(id="ca", kind=JurisdictionKind.COUNTRY, code="CA", name="Canada")
        self.configuration = TaxConfiguration(
            jurisdictions=[self.country],
            rates=[_rate()],
            categories=[ProductTaxCategory(code="ZERO", name="Zero", is_zero_rated=True)],
        )

    def test_lookups(self):
        assert self.configuration.jurisdiction("ca") is self.country
        assert self.configuration.jurisdiction("zz") is None
        assert [r.id for r in self.configuration.rates_for("ca")] == ["gst"]
        assert self.configuration.rates_for("zz") == ()
        assert self.configuration.category("ZERO").is_zero_rated
        assert self.configuration.category(None) is None
        assert self.configuration.rate("gst").rate == Decimal("0.05")

    def test_with_rates_replaces_by_id(self):
        updated = self.configuration.with_rates(_rate(rate=Decimal("0.06")), _rate(id="hst"))
        assert updated.rate("gst").rate == Decimal("0.06")
        assert len(updated.rates) == 2
        assert self.configuration.rate("gst").rate == Decimal("0.05")

    def test_with_jurisdictions(self):
        state = TaxJurisdiction(id="ca-qc", kind=JurisdictionKind.STATE, code="QC", name="Quebec", parent_id="ca")
        updated = self.configuration.with_jurisdictions(state, self.country.deactivate())
        assert updated.jurisdiction("ca-qc") == state
        assert not updated.jurisdiction("ca").is_active
        assert len(updated.jurisdictions) == 2

    def test_sequences_frozen_to_tuples(self):
        assert isinstance(self.configuration.jurisdictions, tuple)
        assert isinstance(self.configuration.rates, tuple)
