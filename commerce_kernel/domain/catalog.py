"""
Catalog records and cascade-deletion values.

A product owns its variants exclusively.  Category, warehouse and supplier
are shared references: they may be deleted along with a product only when
no other product points at them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from commerce_kernel.exceptions import CascadeBlockedError


class CascadeEntityType(str, Enum):
    PRODUCT = "product"
    VARIANTS = "variants"
    CATEGORY = "category"
    WAREHOUSE = "warehouse"
    SUPPLIER = "supplier"


SHARED_ENTITY_TYPES: tuple[CascadeEntityType, ...] = (
    CascadeEntityType.CATEGORY,
    CascadeEntityType.WAREHOUSE,
    CascadeEntityType.SUPPLIER,
)


@dataclass(frozen=True)
class ProductRecord:
    """Reference data for one product, as the catalog store reports it."""

    id: str
    name: str = ""
    category_id: str | None = None
    warehouse_id: str | None = None
    supplier_id: str | None = None
    variant_ids: tuple[str, ...] = ()

    def reference(self, entity_type: CascadeEntityType) -> str | None:
        """Id of the shared entity of ``entity_type`` this product points at."""
        if entity_type == CascadeEntityType.CATEGORY:
            return self.category_id
        if entity_type == CascadeEntityType.WAREHOUSE:
            return self.warehouse_id
        if entity_type == CascadeEntityType.SUPPLIER:
            return self.supplier_id
        raise ValueError(f"{entity_type} is not a shared reference")


@dataclass(frozen=True)
class CascadeDeleteOptions:
    delete_variants: bool = True
    delete_category: bool = False
    delete_warehouse: bool = False
    delete_supplier: bool = False

    def requests(self, entity_type: CascadeEntityType) -> bool:
        """Whether deletion of ``entity_type`` was asked for."""
        return {
            CascadeEntityType.VARIANTS: self.delete_variants,
            CascadeEntityType.CATEGORY: self.delete_category,
            CascadeEntityType.WAREHOUSE: self.delete_warehouse,
            CascadeEntityType.SUPPLIER: self.delete_supplier,
        }.get(entity_type, False)


@dataclass(frozen=True)
class CascadeDeleteRequest:
    product_id: str
    options: CascadeDeleteOptions = CascadeDeleteOptions()


@dataclass(frozen=True)
class BlockedEntity:
    """A shared entity that cannot be deleted because other products use it."""

    entity_type: CascadeEntityType
    entity_id: str
    reason: str
    referencing_entities: tuple[str, ...]

    @property
    def referencing_count(self) -> int:
        return len(self.referencing_entities)


@dataclass(frozen=True)
class DeletableEntity:
    entity_type: CascadeEntityType
    entity_id: str


@dataclass(frozen=True)
class AffectedSummary:
    """
    What a deletion would touch.

    ``variants`` is always the count of owned variants.  The ``*_shared``
    flags report whether the shared entity is used by another product,
    whether or not its deletion was requested.
    """

    variants: int = 0
    category_shared: bool = False
    warehouse_shared: bool = False
    supplier_shared: bool = False
    deletable: tuple[DeletableEntity, ...] = ()


@dataclass(frozen=True)
class CascadeValidationResult:
    product_ids: tuple[str, ...]
    blocked: tuple[BlockedEntity, ...]
    affected_summary: AffectedSummary

    @property
    def can_delete(self) -> bool:
        return not self.blocked

    def blocked_ids(self, entity_type: CascadeEntityType) -> tuple[str, ...]:
        return tuple(b.entity_id for b in self.blocked if b.entity_type == entity_type)

    def raise_for_error(self) -> None:
        """Raise CascadeBlockedError when anything blocks the deletion."""
        if self.blocked:
            raise CascadeBlockedError(
                self.product_ids,
                [(b.entity_type.value, b.entity_id, b.referencing_count) for b in self.blocked],
            )
