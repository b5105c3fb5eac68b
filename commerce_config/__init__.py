"""
commerce_config -- single public entrypoint for tax configuration.

Responsibility:
    Provides the ONLY way to obtain a store's tax tables at runtime through
    ``get_active_config()``.  Returns a validated ``TaxConfigurationSet``;
    engines receive ``set.to_configuration()`` and the seller address from
    ``set.origin_address()``.  YAML loading is internal tooling and never
    exposed to callers.

Architecture position:
    Configuration -- YAML-driven tax tables, load-time validation.
    This package sits above ``commerce_kernel`` and beside
    ``commerce_engines``.  The kernel and the engines MUST NEVER import
    from ``commerce_config``.

Invariants enforced:
    - Single entrypoint: all runtime tax configuration flows through
      ``get_active_config()``.
    - Load-time validation: the set must pass
      ``validate_tax_configuration`` before it is returned.
    - Deterministic assembly: same YAML fragments always produce the same
      checksum.

Failure modes:
    - ``FileNotFoundError`` -- no configuration set matches the requested
      store and date.
    - ``ValueError`` -- validation errors.
    - ``AssemblyError`` -- a fragment cannot be parsed.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``COMMERCE_CONFIG_TRACE`` log entry containing the config_id, version,
    checksum, scope and table sizes, tying each tax calculation back to
    the exact tables that governed it.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

from commerce_config.assembler import AssemblyError, assemble_from_directory
from commerce_config.lifecycle import ConfigStatus
from commerce_config.schema import ConfigScope, TaxConfigurationSet
from commerce_config.validator import ConfigValidationResult, validate_tax_configuration

_logger = logging.getLogger("commerce_kernel.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

__all__ = [
    "AssemblyError",
    "ConfigScope",
    "ConfigStatus",
    "ConfigValidationResult",
    "TaxConfigurationSet",
    "get_active_config",
    "validate_tax_configuration",
]


def get_active_config(
    store_code: str,
    as_of_date: date,
    config_dir: Path | None = None,
) -> TaxConfigurationSet:
    """The ONLY public configuration entrypoint.

    Guarantees:
        - The returned set has passed ``validate_tax_configuration``.
        - A ``COMMERCE_CONFIG_TRACE`` log entry is emitted on every
          successful call.

    Non-goals:
        - Sets are not cached across calls; callers hold the returned set
          for as long as they need a stable view.

    Args:
        store_code: Store identifier for scope matching.
        as_of_date: Date for effective date filtering.
        config_dir: Override path to configuration sets directory.
            Defaults to commerce_config/sets/.

    Raises:
        FileNotFoundError: If no matching configuration set is found.
        ValueError: If configuration validation fails.
        AssemblyError: If a fragment cannot be parsed.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR

    config_set = _find_matching_config(sets_dir, store_code, as_of_date)

    validation = validate_tax_configuration(config_set)
    if not validation.is_valid:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )
    for warning in validation.warnings:
        _logger.warning(
            "config_validation_warning",
            extra={"config_set_id": config_set.config_id, "warning": warning},
        )

    _logger.info(
        "COMMERCE_CONFIG_TRACE",
        extra={
            "trace_type": "COMMERCE_CONFIG_TRACE",
            "config_set_id": config_set.config_id,
            "config_set_version": config_set.version,
            "checksum": config_set.checksum,
            "scope_store_code": config_set.scope.store_code,
            "scope_country": config_set.scope.country_code,
            "scope_business_state": config_set.scope.business_state,
            "jurisdiction_count": len(config_set.jurisdictions),
            "rate_count": len(config_set.rates),
            "category_count": len(config_set.categories),
        },
    )
    return config_set


def _find_matching_config(
    sets_dir: Path, store_code: str, as_of_date: date
) -> TaxConfigurationSet:
    """Find the configuration set for a store and date.

    Scans all subdirectories of *sets_dir* holding a ``root.yaml``.  A set
    matches when its scope names *store_code* (or ``"*"``) and its
    effective range covers *as_of_date*.  Among several matches PUBLISHED
    sets win, then the highest version.  When nothing matches and only one
    set exists, that set is used (development convenience).

    Raises:
        FileNotFoundError: If ``sets_dir`` does not exist or no
            configuration set matches.
    """
    if not sets_dir.is_dir():
        raise FileNotFoundError(f"Configuration sets directory not found: {sets_dir}")

    all_sets = [
        assemble_from_directory(subdir)
        for subdir in sorted(sets_dir.iterdir())
        if subdir.is_dir() and (subdir / "root.yaml").exists()
    ]
    candidates = [
        s for s in all_sets
        if s.scope.store_code in (store_code, "*") and s.scope.covers(as_of_date)
    ]

    if not candidates:
        if len(all_sets) == 1:
            return all_sets[0]
        raise FileNotFoundError(
            f"No configuration set found for store_code='{store_code}' "
            f"as_of_date={as_of_date} in {sets_dir}"
        )

    if len(candidates) == 1:
        return candidates[0]

    # Multiple matches: prefer PUBLISHED, then exact store over wildcard, then version
    published = [c for c in candidates if c.status == ConfigStatus.PUBLISHED]
    pool = published or candidates
    return max(pool, key=lambda c: (c.scope.store_code == store_code, c.version))
