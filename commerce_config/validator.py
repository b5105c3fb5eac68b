"""
Configuration Validator (``commerce_config.validator``).

Responsibility
--------------
Validates tax tables at load time, checking the cross-object invariants a
single ``TaxJurisdiction`` or ``TaxRate`` cannot check on its own.  The
engines trust a configuration that passed here.

Architecture position
---------------------
**Config layer** -- load-time validation.  Called by
``commerce_config.get_active_config()`` after assembly, and by the setup
templates' tests.  Depends on kernel value objects only.

Invariants enforced
-------------------
* Id uniqueness -- jurisdiction ids, rate ids and category codes.
* One COUNTRY jurisdiction per country code.
* Hierarchy -- every parent exists and has an allowed kind.
* Rates reference a known jurisdiction.
* No two rates of the same tax type in one jurisdiction overlap in time
  (for the same kind of charge: products or shipping).
* Compound rates name an existing, non-compound base; the base lives in
  the same jurisdiction chain (warning otherwise); references are acyclic.

Rate ranges and ``effective_to > effective_from`` are enforced when the
rates are constructed, so they never reach this module invalid.

Failure modes
-------------
* Validation errors (``ConfigValidationResult.errors``)  -> the
  configuration MUST NOT be handed to the engines.
* Validation warnings (``ConfigValidationResult.warnings``)  -> usable,
  but should be reviewed.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from commerce_config.schema import TaxConfigurationSet
from commerce_kernel.domain.tax_types import (
    ALLOWED_PARENT_KINDS,
    JurisdictionKind,
    TaxConfiguration,
    TaxJurisdiction,
    TaxRate,
)
from commerce_kernel.exceptions import CompoundCycleError, OverlappingRateError


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    Contract
    --------
    * ``is_valid`` returns ``True`` only when ``errors`` is empty.
    * Warnings do not block loading but should be reviewed.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_tax_configuration(
    config: TaxConfiguration | TaxConfigurationSet,
) -> ConfigValidationResult:
    """
    Validate jurisdictions, rates and categories.

    Accepts either the runtime ``TaxConfiguration`` or an assembled
    ``TaxConfigurationSet``; for a set the scope is checked as well.
    """
    result = ConfigValidationResult()

    _validate_uniqueness(config, result)
    _validate_country_uniqueness(config.jurisdictions, result)
    _validate_hierarchy(config.jurisdictions, result)
    _validate_rate_jurisdictions(config, result)
    _validate_overlaps(config.rates, result)
    _validate_compound_references(config, result)
    _validate_category_overrides(config, result)
    if isinstance(config, TaxConfigurationSet):
        _validate_scope(config, result)

    return result


def _duplicates(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    dupes: list[str] = []
    for value in values:
        if value in seen and value not in dupes:
            dupes.append(value)
        seen.add(value)
    return dupes


def _validate_uniqueness(
    config: TaxConfiguration | TaxConfigurationSet, result: ConfigValidationResult
) -> None:
    for dup in _duplicates(j.id for j in config.jurisdictions):
        result.add_error(f"Duplicate jurisdiction id: {dup}")
    for dup in _duplicates(r.id for r in config.rates):
        result.add_error(f"Duplicate tax rate id: {dup}")
    for dup in _duplicates(c.code for c in config.categories):
        result.add_error(f"Duplicate tax category code: {dup}")


def _validate_country_uniqueness(
    jurisdictions: Sequence[TaxJurisdiction], result: ConfigValidationResult
) -> None:
    """Exactly one active COUNTRY jurisdiction may claim a country code."""
    codes = (
        j.code.strip().upper()
        for j in jurisdictions
        if j.kind == JurisdictionKind.COUNTRY and j.is_active
    )
    for dup in _duplicates(codes):
        result.add_error(f"More than one COUNTRY jurisdiction for code {dup}")


def _validate_hierarchy(
    jurisdictions: Sequence[TaxJurisdiction], result: ConfigValidationResult
) -> None:
    by_id = {j.id: j for j in jurisdictions}
    for j in jurisdictions:
        if j.parent_id is None:
            continue
        parent = by_id.get(j.parent_id)
        if parent is None:
            result.add_error(
                f"Jurisdiction '{j.id}' references unknown parent '{j.parent_id}'"
            )
            continue
        if parent.kind not in ALLOWED_PARENT_KINDS[j.kind]:
            result.add_error(
                f"Jurisdiction '{j.id}' ({j.kind.value}) cannot have a "
                f"{parent.kind.value} parent"
            )
        if j.is_active and not parent.is_active:
            result.add_warning(
                f"Jurisdiction '{j.id}' is active under inactive parent '{parent.id}'"
            )


def _validate_rate_jurisdictions(
    config: TaxConfiguration | TaxConfigurationSet, result: ConfigValidationResult
) -> None:
    by_id = {j.id: j for j in config.jurisdictions}
    for rate in config.rates:
        jurisdiction = by_id.get(rate.jurisdiction_id)
        if jurisdiction is None:
            result.add_error(
                f"Tax rate '{rate.id}' references unknown jurisdiction "
                f"'{rate.jurisdiction_id}'"
            )
        elif rate.is_active and not jurisdiction.is_active:
            result.add_warning(
                f"Tax rate '{rate.id}' is active on inactive jurisdiction "
                f"'{jurisdiction.id}'"
            )


def _same_charge(a: TaxRate, b: TaxRate) -> bool:
    return (
        (a.applies_to_products and b.applies_to_products)
        or (a.applies_to_shipping and b.applies_to_shipping)
    )


def _validate_overlaps(
    rates: Sequence[TaxRate], result: ConfigValidationResult
) -> None:
    """Effective ranges of one jurisdiction and tax type must not overlap."""
    grouped: dict[tuple[str, str], list[TaxRate]] = {}
    for rate in rates:
        if rate.is_active:
            grouped.setdefault((rate.jurisdiction_id, rate.tax_type.value), []).append(rate)

    for (jurisdiction_id, tax_type), group in grouped.items():
        ordered = sorted(group, key=lambda r: (r.effective_from, r.id))
        for i, first in enumerate(ordered):
            for second in ordered[i + 1:]:
                if first.overlaps(second) and _same_charge(first, second):
                    result.add_error(str(OverlappingRateError(
                        jurisdiction_id, tax_type, [first.id, second.id]
                    )))


def _chain_ids(jurisdiction_id: str, by_id: dict[str, TaxJurisdiction]) -> set[str]:
    """The jurisdiction and all its ancestors."""
    chain: set[str] = set()
    current = by_id.get(jurisdiction_id)
    while current is not None and current.id not in chain:
        chain.add(current.id)
        current = by_id.get(current.parent_id) if current.parent_id else None
    return chain


def find_compound_cycle(rates: Sequence[TaxRate]) -> tuple[str, ...] | None:
    """Return the first compound-base cycle as a list of rate ids, or None."""
    base_of = {r.id: r.compound_base for r in rates if r.compound_base}
    done: set[str] = set()
    for start in sorted(base_of):
        path: list[str] = []
        current: str | None = start
        while current is not None and current not in done:
            if current in path:
                return tuple(path[path.index(current):]) + (current,)
            path.append(current)
            current = base_of.get(current)
        done.update(path)
    return None


def check_compound_references(rates: Sequence[TaxRate]) -> None:
    """Raise ``CompoundCycleError`` when compound references form a cycle."""
    cycle = find_compound_cycle(rates)
    if cycle is not None:
        raise CompoundCycleError(cycle)


def _validate_compound_references(
    config: TaxConfiguration | TaxConfigurationSet, result: ConfigValidationResult
) -> None:
    rates_by_id = {r.id: r for r in config.rates}
    jurisdictions_by_id = {j.id: j for j in config.jurisdictions}

    for rate in config.rates:
        if not rate.is_compound:
            continue
        base = rates_by_id.get(rate.compound_base)
        if base is None:
            result.add_error(
                f"Compound rate '{rate.id}' references unknown base "
                f"'{rate.compound_base}'"
            )
            continue
        if base.is_compound:
            result.add_error(
                f"Compound rate '{rate.id}' uses compound rate '{base.id}' as its base"
            )
        if base.jurisdiction_id not in _chain_ids(rate.jurisdiction_id, jurisdictions_by_id):
            result.add_warning(
                f"Compound rate '{rate.id}' bases on '{base.id}' outside its "
                f"jurisdiction chain; it only applies where both resolve"
            )
        if rate.applies_to_shipping and not base.applies_to_shipping:
            result.add_error(
                f"Compound rate '{rate.id}' applies to shipping but its base "
                f"'{base.id}' does not"
            )

    cycle = find_compound_cycle(config.rates)
    if cycle is not None:
        result.add_error(str(CompoundCycleError(cycle)))


def _validate_category_overrides(
    config: TaxConfiguration | TaxConfigurationSet, result: ConfigValidationResult
) -> None:
    if not config.categories:
        return
    known = {c.code for c in config.categories}
    for rate in config.rates:
        for code, _ in rate.category_overrides:
            if code not in known:
                result.add_warning(
                    f"Tax rate '{rate.id}' overrides unknown category '{code}'"
                )


def _validate_scope(config: TaxConfigurationSet, result: ConfigValidationResult) -> None:
    country = config.scope.country_code.strip().upper()
    countries = [
        j for j in config.jurisdictions
        if j.kind == JurisdictionKind.COUNTRY and j.code.strip().upper() == country
    ]
    if not countries:
        result.add_warning(
            f"Scope country {country} has no COUNTRY jurisdiction; "
            f"orders will report setup required"
        )
        return
    state = config.scope.business_state
    if state is None:
        return
    key = state.strip().upper()
    found = any(
        j.kind == JurisdictionKind.STATE
        and j.parent_id == countries[0].id
        and (j.code.strip().upper() == key or (j.state_code or "").strip().upper() == key)
        for j in config.jurisdictions
    )
    if not found:
        result.add_warning(
            f"Business state {state} is not configured under {country}; "
            f"the interstate decision falls back to comparing addresses"
        )
