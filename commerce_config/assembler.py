"""
commerce_config.assembler -- composes YAML fragments into one TaxConfigurationSet.

Responsibility:
    Tax tables are edited as small YAML fragments (one per tax regime or
    region).  This module composes them into a single
    ``TaxConfigurationSet``.  Strictly build/test tooling; request
    handlers go through ``commerce_config.get_active_config()``.

Fragment structure::

    sets/in-mh-retail/
    +-- root.yaml            # Identity, scope, status (may also hold lists)
    +-- jurisdictions.yaml   # jurisdictions: [...]
    +-- categories.yaml      # categories: [...]
    +-- rates/               # One YAML per tax regime
        +-- gst.yaml         # rates: [...]

Every fragment may carry any of the ``jurisdictions``, ``rates`` and
``categories`` lists; lists are concatenated in path order with
``root.yaml`` first.

Invariants enforced:
    - ``root.yaml`` must exist in every fragment directory.
    - A deterministic SHA-256 checksum is computed over all assembled data.
    - All parsed structures are immutable frozen dataclasses.

Failure modes:
    - ``AssemblyError`` -- missing directory or ``root.yaml``, or a
      fragment that cannot be parsed.
    - ``yaml.YAMLError`` (propagated from loader) -- invalid YAML syntax.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from commerce_config.lifecycle import ConfigStatus
from commerce_config.loader import (
    compute_checksum,
    load_yaml_file,
    parse_category,
    parse_jurisdiction,
    parse_rate,
    parse_scope,
)
from commerce_config.schema import TaxConfigurationSet
from commerce_kernel.exceptions import CommerceRulesError

ROOT_FILE = "root.yaml"
_LIST_KEYS = ("jurisdictions", "rates", "categories")


class AssemblyError(CommerceRulesError):
    """Error during fragment assembly.

    Raised when a fragment directory is missing, ``root.yaml`` is absent,
    or a fragment entry cannot be parsed.  The first fatal issue aborts
    assembly.
    """

    code: str = "ASSEMBLY_FAILED"


def _fragment_paths(fragment_dir: Path) -> list[Path]:
    root_path = fragment_dir / ROOT_FILE
    others = sorted(
        p for p in fragment_dir.rglob("*.yaml") if p.is_file() and p != root_path
    )
    return [root_path] + others


def assemble_from_directory(fragment_dir: Path) -> TaxConfigurationSet:
    """Compose fragments from a directory into one TaxConfigurationSet.

    Args:
        fragment_dir: Path to the fragment directory (e.g.,
            ``commerce_config/sets/in-mh-retail/``).

    Returns:
        Assembled ``TaxConfigurationSet``.

    Raises:
        AssemblyError: If required fragments are missing or malformed.
    """
    if not fragment_dir.is_dir():
        raise AssemblyError(f"Fragment directory not found: {fragment_dir}")

    root_path = fragment_dir / ROOT_FILE
    if not root_path.exists():
        raise AssemblyError(f"root.yaml not found in {fragment_dir}")

    collected: dict[str, list[dict[str, Any]]] = {key: [] for key in _LIST_KEYS}
    root_data: dict[str, Any] = {}
    for path in _fragment_paths(fragment_dir):
        data = load_yaml_file(path)
        if path == root_path:
            root_data = data
        for key in _LIST_KEYS:
            collected[key].extend(data.get(key) or [])

    try:
        scope = parse_scope(root_data["scope"])
        jurisdictions = tuple(parse_jurisdiction(j) for j in collected["jurisdictions"])
        rates = tuple(parse_rate(r) for r in collected["rates"])
        categories = tuple(parse_category(c) for c in collected["categories"])
        config_id = root_data["config_id"]
        status = ConfigStatus(root_data.get("status", "draft"))
    except (KeyError, ValueError, TypeError) as e:
        raise AssemblyError(f"Invalid configuration set in {fragment_dir}: {e}") from e

    checksum = compute_checksum({
        "root": {k: v for k, v in root_data.items() if k not in _LIST_KEYS},
        **collected,
    })

    # INVARIANT: checksum must be a non-empty SHA-256 hex digest.
    assert checksum and len(checksum) == 64, (
        f"Checksum must be a 64-char SHA-256 hex digest, got {checksum!r}"
    )

    return TaxConfigurationSet(
        config_id=config_id,
        version=root_data.get("version", 1),
        checksum=checksum,
        scope=scope,
        status=status,
        jurisdictions=jurisdictions,
        rates=rates,
        categories=categories,
        name=root_data.get("name", ""),
    )
