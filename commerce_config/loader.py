"""
Configuration Loader (``commerce_config.loader``).

Responsibility
--------------
Loads individual YAML fragment files and parses them into the kernel's
tax value objects and the ``commerce_config.schema`` dataclasses.  This is
**build/test tooling only** -- request handlers obtain configuration
through ``commerce_config.get_active_config()``.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Consumed by
``commerce_config.assembler`` during configuration set assembly.  Depends
on the kernel's value objects, never on the engines.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; there are no silent defaults for required fields.
* Rates are written as percentages in YAML (``rate_percent: 18``) and
  converted to Decimal fractions.  YAML floats are converted through
  their text form, never through binary arithmetic.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys in parsed dict  -> ``KeyError`` propagates.
* Invalid date or number  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from commerce_config.schema import ConfigScope
from commerce_kernel.domain.tax_types import (
    JurisdictionKind,
    ProductTaxCategory,
    TaxJurisdiction,
    TaxRate,
    TaxType,
)

_HUNDRED = Decimal("100")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_decimal(value: Any, label: str = "value") -> Decimal:
    """Parse a YAML number or numeric string into a Decimal."""
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Cannot parse {label} from {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Cannot parse {label} from {value!r}") from e


def parse_percent(value: Any, label: str = "rate_percent") -> Decimal:
    """Parse a percentage (``18``, ``"9.975"``) into a fraction."""
    return parse_decimal(value, label) / _HUNDRED


def parse_scope(data: dict[str, Any]) -> ConfigScope:
    """Parse a ConfigScope from a dict."""
    return ConfigScope(
        store_code=data["store_code"],
        country_code=data["country_code"],
        currency=data["currency"],
        effective_from=parse_date(data["effective_from"]),
        effective_to=parse_date(data["effective_to"]) if data.get("effective_to") else None,
        business_state=data.get("business_state"),
    )


def _parse_code(value: Any, label: str, jurisdiction_id: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(
            f"Jurisdiction {jurisdiction_id!r}: {label} must be a quoted string, "
            f"got {type(value).__name__} {value!r}"
        )
    return value


def parse_jurisdiction(data: dict[str, Any]) -> TaxJurisdiction:
    """
    Parse a ``TaxJurisdiction`` from a dict.

    ``code`` and ``state_code`` must already be strings.  YAML reads an
    unquoted ``07`` as the integer 7 and ``ON``/``NO`` as booleans, and
    neither can be turned back into the code that was written, so such
    values are rejected and must be quoted in the file.

    Raises:
        KeyError: if ``id``, ``kind`` or ``code`` is missing.
        ValueError: if ``code`` or ``state_code`` is not a string.
    """
    code = _parse_code(data["code"], "code", data.get("id"))
    state_code = data.get("state_code")
    if state_code is not None:
        state_code = _parse_code(state_code, "state_code", data.get("id"))
    return TaxJurisdiction(
        id=data["id"],
        kind=JurisdictionKind(str(data["kind"]).upper()),
        code=code,
        name=data.get("name", code),
        parent_id=data.get("parent_id"),
        state_code=state_code,
        is_active=data.get("is_active", True),
    )


def parse_rate(data: dict[str, Any]) -> TaxRate:
    """
    Parse a ``TaxRate`` from a dict.

    Preconditions:
        - ``data`` contains ``id``, ``jurisdiction_id``, ``tax_type``,
          ``rate_percent`` and ``effective_from``.
    Raises:
        KeyError: if required keys are missing.
        ValueError: if a date, number or tax type cannot be parsed, or the
            rate itself is inconsistent (see ``TaxRate``).
    """
    overrides = {
        str(category): parse_percent(value, f"override {category}")
        for category, value in (data.get("category_overrides") or {}).items()
    }
    return TaxRate(
        id=data["id"],
        jurisdiction_id=data["jurisdiction_id"],
        tax_type=TaxType(str(data["tax_type"]).upper()),
        rate=parse_percent(data["rate_percent"], f"rate_percent of {data['id']}"),
        effective_from=parse_date(data["effective_from"]),
        effective_to=parse_date(data["effective_to"]) if data.get("effective_to") else None,
        is_compound=data.get("is_compound", False),
        compound_base=data.get("compound_base"),
        category_overrides=overrides,
        name=data.get("name", ""),
        priority=int(data.get("priority", 0)),
        applies_to_products=data.get("applies_to_products", True),
        applies_to_shipping=data.get("applies_to_shipping", False),
        is_active=data.get("is_active", True),
    )


def parse_category(data: dict[str, Any]) -> ProductTaxCategory:
    """Parse a ProductTaxCategory from a dict."""
    slab = data.get("gst_slab")
    hsn = data.get("hsn_code")
    return ProductTaxCategory(
        code=str(data["code"]),
        name=data.get("name", str(data["code"])),
        hsn_code=str(hsn) if hsn is not None else None,
        gst_slab=parse_decimal(slab, "gst_slab") if slab is not None else None,
        is_tax_exempt=data.get("is_tax_exempt", False),
        is_nil_rated=data.get("is_nil_rated", False),
        is_zero_rated=data.get("is_zero_rated", False),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
