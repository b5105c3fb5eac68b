"""
Module: commerce_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure rules
    engines.  This is the canonical import surface for request handlers.

Architecture position:
    Engines -- pure rules layer, zero I/O.
    May only import commerce_kernel (and sibling engine modules).
    MUST NOT import commerce_config.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Tax dates are parameters and timestamps come from an injected Clock.
    - Decimal-only arithmetic: amounts and rates use ``Decimal``.
    - Determinism: identical inputs always produce identical outputs.
    - Errors cross the package boundary as values.

Audit relevance:
    Top-level operations are traced via ``@traced_engine`` (see
    ``commerce_engines.tracer``), emitting COMMERCE_ENGINE_TRACE log
    records with engine name, version, input fingerprint and duration.

Usage:
    from commerce_engines import (
        CascadeDeleteValidator,
        JurisdictionResolver,
        OrderStateMachine,
        RateSelector,
        TaxCalculator,
    )
"""

from commerce_kernel.logging_config import get_logger

logger = get_logger("engines")

from commerce_engines.cancellation import (
    CancellationFeeType,
    CancellationPolicy,
    CancellationQuote,
    CancellationWindow,
    RefundMethod,
    evaluate_cancellation,
    generate_policy_text,
)
from commerce_engines.cascade_delete import (
    CascadeDeleteValidator,
    CatalogReferenceIndex,
    ProductReferenceSource,
)
from commerce_engines.jurisdiction import JurisdictionResolver
from commerce_engines.order_lifecycle import (
    OrderStateMachine,
    TransitionOutcome,
    TransitionRejected,
    TransitionRejectionReason,
    ValidTransitions,
)
from commerce_engines.order_workflows import (
    FULFILLMENT_STATUS_WORKFLOW,
    ORDER_STATUS_WORKFLOW,
    PAYMENT_STATUS_WORKFLOW,
)
from commerce_engines.rate_selector import (
    RateSelector,
    SelectedRate,
    TaxBase,
    TaxBaseKind,
)
from commerce_engines.tax import (
    LineTaxBreakdown,
    TaxBreakdown,
    TaxCalculationOutcome,
    TaxCalculator,
    TaxComponent,
)
from commerce_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    # Cancellation
    "CancellationFeeType",
    "CancellationPolicy",
    "CancellationQuote",
    "CancellationWindow",
    "RefundMethod",
    "evaluate_cancellation",
    "generate_policy_text",
    # Cascade delete
    "CascadeDeleteValidator",
    "CatalogReferenceIndex",
    "ProductReferenceSource",
    # Jurisdiction / rates / tax
    "JurisdictionResolver",
    "RateSelector",
    "SelectedRate",
    "TaxBase",
    "TaxBaseKind",
    "LineTaxBreakdown",
    "TaxBreakdown",
    "TaxCalculationOutcome",
    "TaxCalculator",
    "TaxComponent",
    # Order lifecycle
    "OrderStateMachine",
    "TransitionOutcome",
    "TransitionRejected",
    "TransitionRejectionReason",
    "ValidTransitions",
    "ORDER_STATUS_WORKFLOW",
    "PAYMENT_STATUS_WORKFLOW",
    "FULFILLMENT_STATUS_WORKFLOW",
    # Tracer
    "compute_input_fingerprint",
    "traced_engine",
]
