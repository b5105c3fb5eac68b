"""GSTIN (India GST identification number) checks."""

from __future__ import annotations

import re
from dataclasses import dataclass

from commerce_config.regions import INDIA_STATES, StateInfo

GSTIN_LENGTH = 15
GSTIN_PATTERN = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}$")


@dataclass(frozen=True)
class GstinCheck:
    valid: bool
    state_code: str | None = None
    error: str | None = None


def validate_gstin(gstin: str | None) -> GstinCheck:
    """
    Check a GSTIN's length, format and state code.

    The GSTIN is optional on a store profile, so an empty value is valid.
    """
    if not gstin:
        return GstinCheck(valid=True)
    if len(gstin) != GSTIN_LENGTH:
        return GstinCheck(valid=False, error="GSTIN must be 15 characters")
    if not GSTIN_PATTERN.match(gstin.upper()):
        return GstinCheck(valid=False, error="Invalid GSTIN format")

    state_code = gstin[:2]
    if not any(s.gst_state_code == state_code for s in INDIA_STATES):
        return GstinCheck(valid=False, error="Invalid state code in GSTIN")
    return GstinCheck(valid=True, state_code=state_code)


def state_from_gstin(gstin: str | None) -> StateInfo | None:
    """State a GSTIN was issued in, from its first two digits."""
    if not gstin or len(gstin) < 2:
        return None
    prefix = gstin[:2]
    for state in INDIA_STATES:
        if state.gst_state_code == prefix:
            return state
    return None
