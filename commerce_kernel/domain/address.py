"""Postal address value object used for jurisdiction resolution."""

from __future__ import annotations

from dataclasses import dataclass


def normalize_key(value: str | None) -> str | None:
    """Case-fold and strip a code or name for comparison; blank becomes None."""
    if value is None:
        return None
    stripped = value.strip()
    return stripped.casefold() if stripped else None


@dataclass(frozen=True)
class Address:
    """
    Shipping, billing or seller address.

    ``state_code`` may be a postal abbreviation ("MH", "QC") or a numeric
    GST state code ("27"); ``state_name`` is the human-readable name.
    Only ``country_code`` is required.
    """

    country_code: str
    state_code: str | None = None
    state_name: str | None = None
    county: str | None = None
    city: str | None = None
    postal_code: str | None = None
    line1: str | None = None

    def __post_init__(self) -> None:
        if not self.country_code or not self.country_code.strip():
            raise ValueError("Address country_code is required")

    @property
    def country_key(self) -> str:
        return normalize_key(self.country_code) or ""

    @property
    def state_key(self) -> str | None:
        """Normalized state identifier: code when present, else name."""
        return normalize_key(self.state_code) or normalize_key(self.state_name)
