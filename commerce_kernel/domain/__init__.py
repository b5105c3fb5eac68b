"""
Pure domain layer.

Value objects with NO dependencies on:
- Persistence
- Time (use an injected Clock)
- I/O

All domain objects are immutable and deterministic.
"""

from commerce_kernel.domain.address import Address
from commerce_kernel.domain.catalog import (
    AffectedSummary,
    BlockedEntity,
    CascadeDeleteOptions,
    CascadeDeleteRequest,
    CascadeEntityType,
    CascadeValidationResult,
    DeletableEntity,
    ProductRecord,
)
from commerce_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from commerce_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from commerce_kernel.domain.order import (
    FulfillmentStatus,
    Order,
    OrderDimension,
    OrderItem,
    OrderStatus,
    PaymentStatus,
)
from commerce_kernel.domain.outcomes import EngineError
from commerce_kernel.domain.tax_types import (
    JurisdictionKind,
    ProductTaxCategory,
    TaxConfiguration,
    TaxJurisdiction,
    TaxRate,
    TaxType,
)
from commerce_kernel.domain.values import Currency, Money
from commerce_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Address",
    "AffectedSummary",
    "BlockedEntity",
    "CascadeDeleteOptions",
    "CascadeDeleteRequest",
    "CascadeEntityType",
    "CascadeValidationResult",
    "Clock",
    "Currency",
    "CurrencyInfo",
    "CurrencyRegistry",
    "DeletableEntity",
    "DeterministicClock",
    "EngineError",
    "FulfillmentStatus",
    "Guard",
    "JurisdictionKind",
    "Money",
    "Order",
    "OrderDimension",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "ProductRecord",
    "ProductTaxCategory",
    "SystemClock",
    "TaxConfiguration",
    "TaxJurisdiction",
    "TaxRate",
    "TaxType",
    "Transition",
    "Workflow",
]
