"""
Typed Exception Hierarchy for the Commerce Rules Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Tax and order rules are surfaced to people as precise UI states ("Setup
Required", a disabled "Ship" button, a list of blocking warehouses).
Generic exceptions force callers to parse messages to tell those apart.

Every error in this package therefore:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA (not just a message string)

Inside the engines these exceptions are raised.  At each public engine
operation they are converted into values (``EngineError``,
``TransitionRejected``, ``CascadeValidationResult``) so request handlers
never need try/except for expected outcomes.  ``raise_for_error()`` on
those values turns them back into the exceptions below.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    CommerceRulesError (base)
    |
    +-- JurisdictionError
    |   +-- JurisdictionNotConfiguredError
    |
    +-- RateConfigurationError
    |   +-- InvalidCompoundReferenceError
    |   +-- OverlappingRateError
    |   +-- CompoundCycleError
    |
    +-- TransitionError
    |   +-- InvalidTransitionError
    |   +-- OrderCancelledError
    |   +-- CancellationNotAllowedError
    |
    +-- CascadeError
        +-- CascadeBlockedError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|---------------------------------------
Jurisdiction    | JURISDICTION_NOT_CONFIGURED   | No COUNTRY jurisdiction for address
----------------|-------------------------------|---------------------------------------
Rates           | INVALID_COMPOUND_REFERENCE    | Compound rate's base not selected
                | OVERLAPPING_RATE              | Effective ranges overlap
                | COMPOUND_CYCLE                | Compound base chain loops
----------------|-------------------------------|---------------------------------------
Transition      | INVALID_TARGET                | Target not allowed from current state
                | ORDER_CANCELLED               | Payment/fulfillment on cancelled order
                | CANCELLATION_NOT_ALLOWED      | Cancellation policy forbids cancel
----------------|-------------------------------|---------------------------------------
Cascade         | CASCADE_BLOCKED               | Shared entity still referenced
"""

from __future__ import annotations

from datetime import date
from typing import Sequence


class CommerceRulesError(Exception):
    """
    Base exception for all commerce rules errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "COMMERCE_RULES_ERROR"


# Jurisdiction exceptions


class JurisdictionError(CommerceRulesError):
    """Base exception for jurisdiction resolution errors."""

    code: str = "JURISDICTION_ERROR"


class JurisdictionNotConfiguredError(JurisdictionError):
    """
    No active COUNTRY-level jurisdiction matches the address.

    Tax cannot be computed without a country jurisdiction; callers surface
    this as "Setup Required".
    """

    code: str = "JURISDICTION_NOT_CONFIGURED"

    def __init__(self, country_code: str):
        self.country_code = country_code
        super().__init__(
            f"No tax jurisdiction configured for country: {country_code!r}"
        )


# Rate configuration exceptions


class RateConfigurationError(CommerceRulesError):
    """Base exception for tax rate configuration integrity errors."""

    code: str = "RATE_CONFIGURATION_ERROR"


class InvalidCompoundReferenceError(RateConfigurationError):
    """
    Compound rate's base is missing from the selected rate set.

    This is a data-integrity bug in rate configuration, never a
    user-recoverable condition.
    """

    code: str = "INVALID_COMPOUND_REFERENCE"

    def __init__(self, rate_id: str, compound_base: str | None, tax_date: date):
        self.rate_id = rate_id
        self.compound_base = compound_base
        self.tax_date = tax_date
        super().__init__(
            f"Compound rate {rate_id} references base {compound_base!r} "
            f"which is not effective on {tax_date.isoformat()}"
        )


class OverlappingRateError(RateConfigurationError):
    """Two rates for the same jurisdiction and tax type overlap in time."""

    code: str = "OVERLAPPING_RATE"

    def __init__(self, jurisdiction_id: str, tax_type: str, rate_ids: Sequence[str]):
        self.jurisdiction_id = jurisdiction_id
        self.tax_type = tax_type
        self.rate_ids = tuple(rate_ids)
        super().__init__(
            f"Overlapping {tax_type} rates in jurisdiction {jurisdiction_id}: "
            f"{', '.join(self.rate_ids)}"
        )


class CompoundCycleError(RateConfigurationError):
    """Compound base references form a cycle."""

    code: str = "COMPOUND_CYCLE"

    def __init__(self, cycle: Sequence[str]):
        self.cycle = tuple(cycle)
        super().__init__(f"Compound rate cycle: {' -> '.join(self.cycle)}")


# Transition exceptions


class TransitionError(CommerceRulesError):
    """Base exception for order transition rejections."""

    code: str = "TRANSITION_ERROR"

    def __init__(self, order_id: str, dimension: str, current: str, target: str, message: str):
        self.order_id = order_id
        self.dimension = dimension
        self.current = current
        self.target = target
        super().__init__(message)


class InvalidTransitionError(TransitionError):
    """Target state is not reachable from the current state."""

    code: str = "INVALID_TARGET"

    def __init__(self, order_id: str, dimension: str, current: str, target: str):
        super().__init__(
            order_id, dimension, current, target,
            f"Order {order_id}: cannot move {dimension} from {current} to {target}",
        )


class OrderCancelledError(TransitionError):
    """Payment or fulfillment transition requested on a cancelled order."""

    code: str = "ORDER_CANCELLED"

    def __init__(self, order_id: str, dimension: str, current: str, target: str):
        super().__init__(
            order_id, dimension, current, target,
            f"Order {order_id} is cancelled; {dimension} cannot move to {target}",
        )


class CancellationNotAllowedError(TransitionError):
    """The store's cancellation policy forbids cancelling this order."""

    code: str = "CANCELLATION_NOT_ALLOWED"

    def __init__(self, order_id: str, dimension: str, current: str, target: str):
        super().__init__(
            order_id, dimension, current, target,
            f"Order {order_id} cannot be cancelled in its current state",
        )


# Cascade deletion exceptions


class CascadeError(CommerceRulesError):
    """Base exception for cascade deletion errors."""

    code: str = "CASCADE_ERROR"


class CascadeBlockedError(CascadeError):
    """Deletion is blocked by entities still referenced elsewhere."""

    code: str = "CASCADE_BLOCKED"

    def __init__(self, product_ids: Sequence[str], blocked: Sequence[tuple[str, str, int]]):
        self.product_ids = tuple(product_ids)
        # (entity_type, entity_id, referencing_count)
        self.blocked = tuple(blocked)
        summary = ", ".join(f"{t} {i} ({n})" for t, i, n in self.blocked)
        super().__init__(
            f"Cannot delete {', '.join(self.product_ids)}: blocked by {summary}"
        )
