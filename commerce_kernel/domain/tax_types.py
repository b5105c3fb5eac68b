"""
Tax configuration value objects.

Responsibility:
    Jurisdictions, rates and product tax categories, plus the read-only
    ``TaxConfiguration`` snapshot that callers pass explicitly into the
    jurisdiction resolver, rate selector and tax calculator.

Architecture position:
    Kernel > Domain -- pure value objects, zero I/O.  Built by
    ``commerce_config`` from YAML sets or setup templates, or directly by
    callers holding their own tables.

Invariants enforced (per object):
    - Rates are Decimal fractions in [0, 1]; floats are rejected.
    - ``effective_to`` (exclusive) is after ``effective_from``.
    - A compound rate names a ``compound_base``; a base rate does not.
    - Non-country jurisdictions reference a parent.

Cross-object invariants (one COUNTRY per code, non-overlapping ranges,
acyclic compound references) are checked by
``commerce_config.validator`` at configuration-load time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping


class JurisdictionKind(str, Enum):
    """Level of a tax authority; values order from broadest to narrowest."""

    COUNTRY = "COUNTRY"
    STATE = "STATE"
    COUNTY = "COUNTY"
    CITY = "CITY"


# Most specific first, as returned by the resolver
RESOLUTION_ORDER: tuple[JurisdictionKind, ...] = (
    JurisdictionKind.CITY,
    JurisdictionKind.COUNTY,
    JurisdictionKind.STATE,
    JurisdictionKind.COUNTRY,
)

ALLOWED_PARENT_KINDS: dict[JurisdictionKind, frozenset[JurisdictionKind]] = {
    JurisdictionKind.COUNTRY: frozenset(),
    JurisdictionKind.STATE: frozenset({JurisdictionKind.COUNTRY}),
    JurisdictionKind.COUNTY: frozenset({JurisdictionKind.STATE}),
    JurisdictionKind.CITY: frozenset({JurisdictionKind.STATE, JurisdictionKind.COUNTY}),
}


class TaxType(str, Enum):
    """Type of tax."""

    SALES = "SALES"  # US sales tax
    VAT = "VAT"  # Value Added Tax
    GST = "GST"  # Goods and Services Tax (AU, CA federal)
    CGST = "CGST"  # India central GST (intrastate)
    SGST = "SGST"  # India state GST (intrastate)
    IGST = "IGST"  # India integrated GST (interstate)
    UTGST = "UTGST"  # India union territory GST (intrastate)
    CESS = "CESS"
    HST = "HST"  # Harmonized Sales Tax (Canada)
    PST = "PST"  # Provincial Sales Tax (Canada)
    QST = "QST"  # Quebec Sales Tax
    CITY = "CITY"
    COUNTY = "COUNTY"
    STATE = "STATE"
    SPECIAL = "SPECIAL"


INTRASTATE_TAX_TYPES: frozenset[TaxType] = frozenset(
    {TaxType.CGST, TaxType.SGST, TaxType.UTGST}
)
INTERSTATE_TAX_TYPES: frozenset[TaxType] = frozenset({TaxType.IGST})

_ZERO = Decimal("0")
_ONE = Decimal("1")


def to_rate(value: Any, label: str = "rate") -> Decimal:
    """Coerce a rate fraction to Decimal and check it lies in [0, 1]."""
    if isinstance(value, float):
        raise TypeError(f"{label} must not be a float; pass a Decimal or str")
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value))
        except InvalidOperation as e:
            raise ValueError(f"Invalid {label}: {value!r}") from e
    if value < _ZERO or value > _ONE:
        raise ValueError(f"{label} must be between 0 and 1, got {value}")
    return value


@dataclass(frozen=True)
class TaxJurisdiction:
    """
    A geographic tax authority scope.

    ``code`` is the country/state/county/city code used for matching
    ("IN", "MH", "QC").  ``state_code`` carries India's numeric GST state
    code ("27") so GSTIN-derived addresses resolve too.
    """

    id: str
    kind: JurisdictionKind
    code: str
    name: str
    parent_id: str | None = None
    state_code: str | None = None
    is_active: bool = True

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Jurisdiction id is required")
        if not self.code or not self.code.strip():
            raise ValueError(f"Jurisdiction {self.id}: code is required")
        if not isinstance(self.kind, JurisdictionKind):
            object.__setattr__(self, "kind", JurisdictionKind(str(self.kind).upper()))
        if self.kind == JurisdictionKind.COUNTRY and self.parent_id is not None:
            raise ValueError(f"Jurisdiction {self.id}: COUNTRY cannot have a parent")
        if self.kind != JurisdictionKind.COUNTRY and not self.parent_id:
            raise ValueError(
                f"Jurisdiction {self.id}: {self.kind.value} requires a parent_id"
            )

    def deactivate(self) -> TaxJurisdiction:
        """Return a deactivated copy; jurisdictions are never edited in place."""
        return TaxJurisdiction(
            id=self.id,
            kind=self.kind,
            code=self.code,
            name=self.name,
            parent_id=self.parent_id,
            state_code=self.state_code,
            is_active=False,
        )


@dataclass(frozen=True)
class TaxRate:
    """
    Tax rate definition attached to one jurisdiction.

    ``rate`` is a fraction (0.18 for 18%).  The effective interval is
    ``[effective_from, effective_to)``; ``effective_to=None`` is open-ended.
    ``category_overrides`` maps a product tax category code to a
    replacement rate; it is stored as sorted pairs so the rate stays
    hashable.
    """

    id: str
    jurisdiction_id: str
    tax_type: TaxType
    rate: Decimal
    effective_from: date
    effective_to: date | None = None
    is_compound: bool = False
    compound_base: str | None = None
    category_overrides: tuple[tuple[str, Decimal], ...] = ()
    name: str = ""
    priority: int = 0
    applies_to_products: bool = True
    applies_to_shipping: bool = False
    is_active: bool = True

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Tax rate id is required")
        if not isinstance(self.tax_type, TaxType):
            object.__setattr__(self, "tax_type", TaxType(str(self.tax_type).upper()))
        object.__setattr__(self, "rate", to_rate(self.rate, f"rate {self.id}"))

        if self.effective_to is not None and self.effective_to <= self.effective_from:
            raise ValueError(
                f"Tax rate {self.id}: effective_to must be after effective_from"
            )
        if self.is_compound and not self.compound_base:
            raise ValueError(f"Tax rate {self.id}: compound rate requires compound_base")
        if not self.is_compound and self.compound_base:
            raise ValueError(
                f"Tax rate {self.id}: compound_base set on a non-compound rate"
            )
        if self.compound_base == self.id:
            raise ValueError(f"Tax rate {self.id}: compound_base references itself")

        overrides = self.category_overrides
        if isinstance(overrides, Mapping):
            overrides = overrides.items()
        normalized = tuple(
            sorted(
                (str(category), to_rate(value, f"override {category} on {self.id}"))
                for category, value in overrides
            )
        )
        object.__setattr__(self, "category_overrides", normalized)

    def is_effective(self, on_date: date) -> bool:
        """True when ``on_date`` lies in ``[effective_from, effective_to)``."""
        if on_date < self.effective_from:
            return False
        if self.effective_to is not None and on_date >= self.effective_to:
            return False
        return True

    def overlaps(self, other: TaxRate) -> bool:
        """True when the two effective intervals share at least one day."""
        self_end = self.effective_to or date.max
        other_end = other.effective_to or date.max
        return self.effective_from < other_end and other.effective_from < self_end

    def rate_for(self, category: str | None) -> Decimal:
        """Rate after applying a category override, if one exists."""
        if category is not None:
            for code, value in self.category_overrides:
                if code == category:
                    return value
        return self.rate

    @property
    def rate_percent(self) -> Decimal:
        """Rate as percentage (e.g., 18 for 18%)."""
        return self.rate * Decimal("100")


@dataclass(frozen=True)
class ProductTaxCategory:
    """
    Product tax category (HSN-coded for India).

    Exempt, nil-rated and zero-rated categories carry no tax.  ``gst_slab``
    is informational; the applied rate comes from the rate's category
    override.
    """

    code: str
    name: str
    hsn_code: str | None = None
    gst_slab: Decimal | None = None
    is_tax_exempt: bool = False
    is_nil_rated: bool = False
    is_zero_rated: bool = False

    @property
    def is_taxable(self) -> bool:
        return not (self.is_tax_exempt or self.is_nil_rated or self.is_zero_rated)


@dataclass(frozen=True)
class TaxConfiguration:
    """
    Read-only snapshot of a store's tax tables.

    Contract:
        Passed explicitly into the tax engines; nothing reads it from
        ambient state.  Lookups are indexed once at construction.
    """

    jurisdictions: tuple[TaxJurisdiction, ...] = ()
    rates: tuple[TaxRate, ...] = ()
    categories: tuple[ProductTaxCategory, ...] = ()

    _jurisdictions_by_id: dict[str, TaxJurisdiction] = field(
        init=False, repr=False, compare=False, hash=False
    )
    _rates_by_jurisdiction: dict[str, tuple[TaxRate, ...]] = field(
        init=False, repr=False, compare=False, hash=False
    )
    _categories_by_code: dict[str, ProductTaxCategory] = field(
        init=False, repr=False, compare=False, hash=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "jurisdictions", tuple(self.jurisdictions))
        object.__setattr__(self, "rates", tuple(self.rates))
        object.__setattr__(self, "categories", tuple(self.categories))

        object.__setattr__(
            self, "_jurisdictions_by_id", {j.id: j for j in self.jurisdictions}
        )
        grouped: dict[str, list[TaxRate]] = {}
        for rate in self.rates:
            grouped.setdefault(rate.jurisdiction_id, []).append(rate)
        object.__setattr__(
            self,
            "_rates_by_jurisdiction",
            {k: tuple(v) for k, v in grouped.items()},
        )
        object.__setattr__(
            self, "_categories_by_code", {c.code: c for c in self.categories}
        )

    def jurisdiction(self, jurisdiction_id: str) -> TaxJurisdiction | None:
        return self._jurisdictions_by_id.get(jurisdiction_id)

    def rates_for(self, jurisdiction_id: str) -> tuple[TaxRate, ...]:
        return self._rates_by_jurisdiction.get(jurisdiction_id, ())

    def category(self, code: str | None) -> ProductTaxCategory | None:
        if code is None:
            return None
        return self._categories_by_code.get(code)

    def rate(self, rate_id: str) -> TaxRate | None:
        for rate in self.rates:
            if rate.id == rate_id:
                return rate
        return None

    def with_jurisdictions(self, *jurisdictions: TaxJurisdiction) -> TaxConfiguration:
        """Copy with jurisdictions added or replaced by id."""
        merged = dict(self._jurisdictions_by_id)
        for j in jurisdictions:
            merged[j.id] = j
        return TaxConfiguration(
            jurisdictions=tuple(merged.values()),
            rates=self.rates,
            categories=self.categories,
        )

    def with_rates(self, *rates: TaxRate) -> TaxConfiguration:
        """Copy with rates added or replaced by id."""
        merged = {r.id: r for r in self.rates}
        for r in rates:
            merged[r.id] = r
        return TaxConfiguration(
            jurisdictions=self.jurisdictions,
            rates=tuple(merged.values()),
            categories=self.categories,
        )
