"""
Configuration Validator Tests - cross-object tax table invariants.

A single TaxRate or TaxJurisdiction checks its own fields at construction;
these tests cover what only the whole table can check: uniqueness,
hierarchy, overlapping effective ranges and compound references.
"""

from datetime import date
from decimal import Decimal

import pytest

from commerce_config.validator import (
    check_compound_references,
    find_compound_cycle,
    validate_tax_configuration,
)
from commerce_kernel.domain.tax_types import (
    JurisdictionKind,
    ProductTaxCategory,
    TaxConfiguration,
    TaxJurisdiction,
    TaxRate,
    TaxType,
)
from commerce_kernel.exceptions import CompoundCycleError

START = date(2024, 1, 1)

CANADA = TaxJurisdiction(id="ca", kind=JurisdictionKind.COUNTRY, code="CA", name="Canada")
QUEBEC = TaxJurisdiction(id="ca-qc", kind=JurisdictionKind.STATE, code="QC", name="Quebec", parent_id="ca")
ONTARIO = TaxJurisdiction(id="ca-on", kind=JurisdictionKind.STATE, code="ON", name="Ontario", parent_id="ca")


def _rate(rate_id, jurisdiction_id="ca", tax_type=TaxType.GST, rate="0.05", **kwargs) -> TaxRate:
    return TaxRate(
        id=rate_id,
        jurisdiction_id=jurisdiction_id,
        tax_type=tax_type,
        rate=Decimal(rate),
        effective_from=kwargs.pop("effective_from", START),
        **kwargs,
    )


def _validate(jurisdictions=(CANADA, QUEBEC, ONTARIO), rates=(), categories=()):
    return validate_tax_configuration(TaxConfiguration(
        jurisdictions=jurisdictions, rates=rates, categories=categories,
    ))


# =============================================================================
# Uniqueness and hierarchy
# =============================================================================


class TestUniqueness:

    def test_clean_configuration(self):
        result = _validate(rates=[_rate("ca-gst")])
        assert result.is_valid
        assert result.warnings == []

    def test_duplicate_jurisdiction_id(self):
        result = _validate(jurisdictions=[CANADA, QUEBEC, QUEBEC])
        assert "Duplicate jurisdiction id: ca-qc" in result.errors

    def test_duplicate_rate_id(self):
        result = _validate(rates=[_rate("ca-gst"), _rate("ca-gst", jurisdiction_id="ca-qc")])
        assert "Duplicate tax rate id: ca-gst" in result.errors

    def test_duplicate_category_code(self):
        category = ProductTaxCategory(code="BOOKS", name="Books")
        result = _validate(categories=[category, category])
        assert "Duplicate tax category code: BOOKS" in result.errors

    def test_duplicate_country_code(self):
        other = TaxJurisdiction(id="canada", kind=JurisdictionKind.COUNTRY, code="ca", name="Canada")
        result = _validate(jurisdictions=[CANADA, other])
        assert any("More than one COUNTRY" in e for e in result.errors)

    def test_inactive_duplicate_country_allowed(self):
        other = TaxJurisdiction(
            id="canada", kind=JurisdictionKind.COUNTRY, code="CA", name="Canada", is_active=False,
        )
        assert _validate(jurisdictions=[CANADA, other]).is_valid


class TestHierarchy:

    def test_unknown_parent(self):
        orphan = TaxJurisdiction(id="x-1", kind=JurisdictionKind.STATE, code="X1", name="X", parent_id="x")
        result = _validate(jurisdictions=[CANADA, orphan])
        assert any("unknown parent 'x'" in e for e in result.errors)

    def test_disallowed_parent_kind(self):
        city = TaxJurisdiction(id="ca-mtl", kind=JurisdictionKind.CITY, code="MTL", name="Montreal", parent_id="ca-qc")
        state_under_state = TaxJurisdiction(
            id="ca-qc-x", kind=JurisdictionKind.STATE, code="X", name="X", parent_id="ca-qc",
        )
        assert _validate(jurisdictions=[CANADA, QUEBEC, city]).is_valid
        result = _validate(jurisdictions=[CANADA, QUEBEC, state_under_state])
        assert any("cannot have a STATE parent" in e for e in result.errors)

    def test_active_child_under_inactive_parent_warns(self):
        result = _validate(jurisdictions=[CANADA.deactivate(), QUEBEC])
        assert result.is_valid
        assert any("inactive parent 'ca'" in w for w in result.warnings)


# =============================================================================
# Rates
# =============================================================================


class TestRateReferences:

    def test_unknown_jurisdiction(self):
        result = _validate(rates=[_rate("zz-vat", jurisdiction_id="zz")])
        assert any("unknown jurisdiction 'zz'" in e for e in result.errors)

    def test_active_rate_on_inactive_jurisdiction_warns(self):
        result = _validate(
            jurisdictions=[CANADA, QUEBEC.deactivate()],
            rates=[_rate("ca-qc-qst", jurisdiction_id="ca-qc", tax_type=TaxType.QST)],
        )
        assert result.is_valid
        assert any("inactive jurisdiction 'ca-qc'" in w for w in result.warnings)

    def test_override_for_unknown_category_warns(self):
        result = _validate(
            rates=[_rate("ca-gst", category_overrides={"BOOKZ": Decimal("0")})],
            categories=[ProductTaxCategory(code="BOOKS", name="Books")],
        )
        assert result.is_valid
        assert any("unknown category 'BOOKZ'" in w for w in result.warnings)

    def test_overrides_unchecked_without_categories(self):
        result = _validate(rates=[_rate("ca-gst", category_overrides={"BOOKS": Decimal("0")})])
        assert result.warnings == []


class TestOverlaps:

    def test_overlapping_ranges_rejected(self):
        result = _validate(rates=[
            _rate("gst-2024"),
            _rate("gst-mid", effective_from=date(2024, 6, 1), rate="0.06"),
        ])
        assert not result.is_valid
        assert any("Overlapping GST rates in jurisdiction ca" in e for e in result.errors)

    def test_adjacent_ranges_allowed(self):
        result = _validate(rates=[
            _rate("gst-h1", effective_to=date(2024, 7, 1)),
            _rate("gst-h2", effective_from=date(2024, 7, 1), rate="0.06"),
        ])
        assert result.is_valid

    def test_different_tax_types_allowed(self):
        result = _validate(rates=[
            _rate("ca-gst"),
            _rate("ca-hst", tax_type=TaxType.HST, rate="0.08"),
        ])
        assert result.is_valid

    def test_products_and_shipping_split_allowed(self):
        result = _validate(rates=[
            _rate("gst-products"),
            _rate("gst-shipping", applies_to_products=False, applies_to_shipping=True),
        ])
        assert result.is_valid

    def test_inactive_rate_ignored(self):
        result = _validate(rates=[_rate("gst-a"), _rate("gst-b", is_active=False)])
        assert result.is_valid


# =============================================================================
# Compound references
# =============================================================================


class TestCompoundReferences:

    def test_quebec_qst_on_federal_gst(self):
        result = _validate(rates=[
            _rate("ca-gst", applies_to_shipping=True),
            _rate("ca-qc-qst", "ca-qc", TaxType.QST, "0.09975",
                  is_compound=True, compound_base="ca-gst", applies_to_shipping=True),
        ])
        assert result.is_valid
        assert result.warnings == []

    def test_unknown_base(self):
        result = _validate(rates=[
            _rate("ca-qc-qst", "ca-qc", TaxType.QST, is_compound=True, compound_base="ca-gst"),
        ])
        assert any("unknown base 'ca-gst'" in e for e in result.errors)

    def test_compound_base_rejected(self):
        result = _validate(rates=[
            _rate("ca-gst"),
            _rate("ca-qc-qst", "ca-qc", TaxType.QST, is_compound=True, compound_base="ca-gst"),
            _rate("ca-qc-x", "ca-qc", TaxType.SPECIAL, is_compound=True, compound_base="ca-qc-qst"),
        ])
        assert any("uses compound rate 'ca-qc-qst' as its base" in e for e in result.errors)

    def test_base_outside_chain_warns(self):
        result = _validate(rates=[
            _rate("ca-on-hst", "ca-on", TaxType.HST, "0.08"),
            _rate("ca-qc-qst", "ca-qc", TaxType.QST, is_compound=True, compound_base="ca-on-hst"),
        ])
        assert result.is_valid
        assert any("outside its jurisdiction chain" in w for w in result.warnings)

    def test_shipping_compound_needs_shipping_base(self):
        result = _validate(rates=[
            _rate("ca-gst"),
            _rate("ca-qc-qst", "ca-qc", TaxType.QST, is_compound=True,
                  compound_base="ca-gst", applies_to_shipping=True),
        ])
        assert any("applies to shipping but its base 'ca-gst' does not" in e for e in result.errors)

    def test_cycle_reported(self):
        rates = [
            _rate("a", is_compound=True, compound_base="b"),
            _rate("b", "ca-qc", TaxType.QST, is_compound=True, compound_base="a"),
        ]
        result = _validate(rates=rates)
        assert any("Compound rate cycle: a -> b -> a" in e for e in result.errors)


class TestCompoundCycle:

    def test_acyclic(self):
        rates = [
            _rate("ca-gst"),
            _rate("ca-qc-qst", "ca-qc", TaxType.QST, is_compound=True, compound_base="ca-gst"),
        ]
        assert find_compound_cycle(rates) is None
        check_compound_references(rates)

    def test_three_rate_cycle(self):
        rates = [
            _rate("a", is_compound=True, compound_base="b"),
            _rate("b", tax_type=TaxType.QST, is_compound=True, compound_base="c"),
            _rate("c", tax_type=TaxType.PST, is_compound=True, compound_base="a"),
        ]
        assert find_compound_cycle(rates) == ("a", "b", "c", "a")

    def test_check_raises(self):
        rates = [
            _rate("a", is_compound=True, compound_base="b"),
            _rate("b", tax_type=TaxType.QST, is_compound=True, compound_base="a"),
        ]
        with pytest.raises(CompoundCycleError) as exc_info:
            check_compound_references(rates)
        assert exc_info.value.cycle == ("a", "b", "a")
        assert exc_info.value.code == "COMPOUND_CYCLE"
