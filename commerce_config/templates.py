"""
Setup templates -- ready-made tax tables for common store countries.

Responsibility:
    Build a complete ``TaxConfiguration`` for a new store in one call, the
    way the admin console's quick setup does: country and state
    jurisdictions plus the rates a seller in that country starts with.

Architecture position:
    Configuration -- pure builders, no I/O.  The result is validated with
    ``validate_tax_configuration`` and handed to the engines like any
    YAML-loaded configuration.

Conventions:
    - Jurisdiction ids are lower-case codes: ``in``, ``in-mh``, ``ca-qc``.
    - Rate ids are ``<jurisdiction id>-<tax type>``: ``in-igst``,
      ``in-mh-cgst``, ``ca-qc-qst``.
    - India GST slabs are expressed as one rate per tax type with
      category overrides (``GST_5``, ``GST_12``, ...), so exactly one rate
      of each type is effective at a time.

Usage:
    from commerce_config.templates import india_gst

    configuration = india_gst(business_state="MH", effective_from=date(2024, 4, 1))
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal

from commerce_config.gstin import state_from_gstin, validate_gstin
from commerce_config.regions import (
    AUSTRALIA_STATES,
    CANADA_PROVINCES,
    INDIA_GST_SLABS,
    INDIA_STATES,
    UK_REGIONS,
    US_STATE_SALES_TAX,
    StateInfo,
    india_state,
)
from commerce_kernel.domain.tax_types import (
    JurisdictionKind,
    ProductTaxCategory,
    TaxConfiguration,
    TaxJurisdiction,
    TaxRate,
    TaxType,
)
from commerce_kernel.logging_config import get_logger

logger = get_logger("config.templates")

_HUNDRED = Decimal("100")
CANADA_FEDERAL_GST = Decimal("5")

GST_EXEMPT = "GST_EXEMPT"
VAT_REDUCED = "VAT_REDUCED"
VAT_ZERO = "VAT_ZERO"
GST_FREE = "GST_FREE"


def slab_category(slab: Decimal) -> str:
    """Category code for an India GST slab: 18 -> ``GST_18``."""
    return f"GST_{slab.normalize():f}"


def _fraction(percent: Decimal) -> Decimal:
    return percent / _HUNDRED


def _country(code: str, name: str) -> TaxJurisdiction:
    return TaxJurisdiction(
        id=code.lower(), kind=JurisdictionKind.COUNTRY, code=code, name=name
    )


def _state(country: TaxJurisdiction, info: StateInfo) -> TaxJurisdiction:
    return TaxJurisdiction(
        id=f"{country.id}-{info.code.lower()}",
        kind=JurisdictionKind.STATE,
        code=info.code,
        name=info.name,
        parent_id=country.id,
        state_code=info.gst_state_code,
    )


def _log_built(template: str, configuration: TaxConfiguration) -> TaxConfiguration:
    logger.info("tax_template_built", extra={
        "template": template,
        "jurisdiction_count": len(configuration.jurisdictions),
        "rate_count": len(configuration.rates),
        "category_count": len(configuration.categories),
    })
    return configuration


def india_gst(
    effective_from: date,
    business_state: str | None = None,
    gstin: str | None = None,
    slabs: Sequence[Decimal] = INDIA_GST_SLABS,
    default_slab: Decimal = Decimal("18"),
) -> TaxConfiguration:
    """
    India GST: IGST at the country level, CGST + SGST at the seller's state.

    Every state and union territory is created so any Indian shipping
    address resolves.  Each slab's CGST and SGST are half the IGST rate.

    Args:
        effective_from: First day the rates apply.
        business_state: Seller's state, postal ("MH") or GST ("27") code.
            Derived from ``gstin`` when omitted.
        gstin: Seller's GSTIN; validated when given.
        slabs: GST slabs (percent) offered as product categories.
        default_slab: Rate for products without a slab category.

    Raises:
        ValueError: invalid GSTIN, or business state unknown or missing.
    """
    if gstin:
        check = validate_gstin(gstin)
        if not check.valid:
            raise ValueError(f"Invalid GSTIN {gstin!r}: {check.error}")
        if business_state is None:
            business_state = state_from_gstin(gstin).code
    if business_state is None:
        raise ValueError("India GST setup requires a business state or GSTIN")
    seller_state = india_state(business_state)
    if seller_state is None:
        raise ValueError(f"Unknown Indian state: {business_state!r}")

    slabs = tuple(Decimal(str(s)) for s in slabs)
    default_slab = Decimal(str(default_slab))
    country = _country("IN", "India")
    states = tuple(_state(country, info) for info in INDIA_STATES)
    seller = next(s for s in states if s.code == seller_state.code)

    categories = tuple(
        ProductTaxCategory(code=slab_category(s), name=f"GST {s.normalize():f}%", gst_slab=s)
        for s in slabs
    ) + (ProductTaxCategory(code=GST_EXEMPT, name="GST exempt", is_tax_exempt=True),)

    def gst_rate(rate_id: str, jurisdiction: TaxJurisdiction, tax_type: TaxType,
                 share: Decimal, priority: int) -> TaxRate:
        return TaxRate(
            id=rate_id,
            jurisdiction_id=jurisdiction.id,
            tax_type=tax_type,
            rate=_fraction(default_slab * share),
            effective_from=effective_from,
            category_overrides={slab_category(s): _fraction(s * share) for s in slabs},
            name=f"{tax_type.value} {(default_slab * share).normalize():f}%",
            priority=priority,
            applies_to_shipping=True,
        )

    half = Decimal("0.5")
    rates = (
        gst_rate(f"{country.id}-igst", country, TaxType.IGST, Decimal("1"), 1),
        gst_rate(f"{seller.id}-cgst", seller, TaxType.CGST, half, 1),
        gst_rate(f"{seller.id}-sgst", seller, TaxType.SGST, half, 2),
    )
    return _log_built("india_gst", TaxConfiguration(
        jurisdictions=(country,) + states,
        rates=rates,
        categories=categories,
    ))


def us_sales_tax(
    effective_from: date,
    nexus_states: Iterable[str] = (),
    business_state: str | None = None,
) -> TaxConfiguration:
    """
    US sales tax for the states where the seller has nexus.

    Falls back to the business state when no nexus states are given.
    States with no statewide sales tax get a jurisdiction but no rate.
    Shipping is not taxed.
    """
    wanted = [s.strip().upper() for s in nexus_states]
    if not wanted and business_state:
        wanted = [business_state.strip().upper()]

    country = _country("US", "United States")
    jurisdictions: list[TaxJurisdiction] = [country]
    rates: list[TaxRate] = []
    for code in dict.fromkeys(wanted):
        data = next((s for s in US_STATE_SALES_TAX if s.code == code), None)
        if data is None:
            logger.warning("tax_template_unknown_state", extra={
                "template": "us_sales_tax", "state": code,
            })
            continue
        state = _state(country, StateInfo(data.name, data.code))
        jurisdictions.append(state)
        if data.rate_percent > 0:
            rates.append(TaxRate(
                id=f"{state.id}-sales",
                jurisdiction_id=state.id,
                tax_type=TaxType.SALES,
                rate=_fraction(data.rate_percent),
                effective_from=effective_from,
                name=f"{data.name} Sales Tax",
                priority=1,
                applies_to_shipping=False,
            ))
    return _log_built("us_sales_tax", TaxConfiguration(
        jurisdictions=tuple(jurisdictions), rates=tuple(rates)
    ))


def uk_vat(effective_from: date) -> TaxConfiguration:
    """UK VAT: standard 20%, reduced 5% and zero-rated product categories."""
    country = _country("GB", "United Kingdom")
    regions = tuple(_state(country, info) for info in UK_REGIONS)
    standard = TaxRate(
        id="gb-vat",
        jurisdiction_id=country.id,
        tax_type=TaxType.VAT,
        rate=Decimal("0.20"),
        effective_from=effective_from,
        category_overrides={VAT_REDUCED: Decimal("0.05")},
        name="Standard VAT",
        priority=1,
        applies_to_shipping=True,
    )
    categories = (
        ProductTaxCategory(code=VAT_REDUCED, name="Reduced VAT"),
        ProductTaxCategory(code=VAT_ZERO, name="Zero-rated", is_zero_rated=True),
    )
    return _log_built("uk_vat", TaxConfiguration(
        jurisdictions=(country,) + regions,
        rates=(standard,),
        categories=categories,
    ))


def australia_gst(effective_from: date) -> TaxConfiguration:
    """Australia GST: 10% on products and shipping, GST-free category."""
    country = _country("AU", "Australia")
    states = tuple(_state(country, info) for info in AUSTRALIA_STATES)
    gst = TaxRate(
        id="au-gst",
        jurisdiction_id=country.id,
        tax_type=TaxType.GST,
        rate=Decimal("0.10"),
        effective_from=effective_from,
        name="GST",
        priority=1,
        applies_to_shipping=True,
    )
    return _log_built("australia_gst", TaxConfiguration(
        jurisdictions=(country,) + states,
        rates=(gst,),
        categories=(ProductTaxCategory(code=GST_FREE, name="GST-free", is_zero_rated=True),),
    ))


def canada_taxes(
    effective_from: date,
    provinces: Iterable[str] | None = None,
) -> TaxConfiguration:
    """
    Canada: federal GST plus each province's HST, PST or QST.

    QST is compound on the federal GST.  HST provinces carry only the
    provincial portion of the harmonized rate, so the federal GST plus the
    provincial HST add up to the published HST rate (13% in Ontario).
    Provinces with GST only (AB, NT, NU, YT) get a jurisdiction and no
    provincial rate.

    Args:
        effective_from: First day the rates apply.
        provinces: Province codes to create; all provinces when omitted.
    """
    wanted = None if provinces is None else {p.strip().upper() for p in provinces}
    country = _country("CA", "Canada")
    federal = TaxRate(
        id="ca-gst",
        jurisdiction_id=country.id,
        tax_type=TaxType.GST,
        rate=_fraction(CANADA_FEDERAL_GST),
        effective_from=effective_from,
        name="Federal GST",
        priority=1,
        applies_to_shipping=True,
    )
    jurisdictions: list[TaxJurisdiction] = [country]
    rates: list[TaxRate] = [federal]

    for province in CANADA_PROVINCES:
        if wanted is not None and province.code not in wanted:
            continue
        state = _state(country, StateInfo(province.name, province.code))
        jurisdictions.append(state)
        if province.rate_percent == 0:
            continue
        percent = province.rate_percent
        if province.tax_type == TaxType.HST:
            percent = percent - CANADA_FEDERAL_GST
        is_qst = province.tax_type == TaxType.QST
        rates.append(TaxRate(
            id=f"{state.id}-{province.tax_type.value.lower()}",
            jurisdiction_id=state.id,
            tax_type=province.tax_type,
            rate=_fraction(percent),
            effective_from=effective_from,
            is_compound=is_qst,
            compound_base=federal.id if is_qst else None,
            name=f"{province.name} {province.tax_type.value}",
            priority=2,
            applies_to_shipping=True,
        ))
    return _log_built("canada_taxes", TaxConfiguration(
        jurisdictions=tuple(jurisdictions), rates=tuple(rates)
    ))
