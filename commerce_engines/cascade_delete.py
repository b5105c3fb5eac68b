"""
Cascade Delete Validator - Preview what deleting a product would remove.

A product owns its variants, so variants never block deletion; they are
only counted.  Category, warehouse and supplier are shared: each one the
caller asks to delete along with the product is checked for other products
still pointing at it.  Any such reference blocks that entity, and the
blocking product ids are reported so the UI can list them.

Reference data comes from an injected ``ProductReferenceSource``; the
validator itself holds no state and performs no I/O.

Usage:
    from commerce_engines.cascade_delete import CascadeDeleteValidator, CatalogReferenceIndex

    validator = CascadeDeleteValidator(CatalogReferenceIndex(products))
    result = validator.validate("prod-1", CascadeDeleteOptions(delete_warehouse=True))
    if not result.can_delete:
        for b in result.blocked:
            print(b.entity_type, b.entity_id, b.referencing_count)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from commerce_engines.tracer import traced_engine
from commerce_kernel.domain.catalog import (
    SHARED_ENTITY_TYPES,
    AffectedSummary,
    BlockedEntity,
    CascadeDeleteOptions,
    CascadeDeleteRequest,
    CascadeEntityType,
    CascadeValidationResult,
    DeletableEntity,
    ProductRecord,
)
from commerce_kernel.logging_config import get_logger

logger = get_logger("engines.cascade_delete")

_SHARED_FLAG = {
    CascadeEntityType.CATEGORY: "category_shared",
    CascadeEntityType.WAREHOUSE: "warehouse_shared",
    CascadeEntityType.SUPPLIER: "supplier_shared",
}


class ProductReferenceSource(Protocol):
    """Read-only product reference data supplied by the catalog store."""

    def product(self, product_id: str) -> ProductRecord | None:
        ...

    def products_referencing(
        self, entity_type: CascadeEntityType, entity_id: str
    ) -> Sequence[str]:
        """Ids of every product pointing at the shared entity."""
        ...


class CatalogReferenceIndex:
    """In-memory ProductReferenceSource built from product records."""

    def __init__(self, products: Iterable[ProductRecord]):
        self._products: dict[str, ProductRecord] = {}
        self._references: dict[tuple[CascadeEntityType, str], set[str]] = {}
        for record in products:
            if record.id in self._products:
                raise ValueError(f"Duplicate product id: {record.id}")
            self._products[record.id] = record
            for entity_type in SHARED_ENTITY_TYPES:
                entity_id = record.reference(entity_type)
                if entity_id is not None:
                    self._references.setdefault((entity_type, entity_id), set()).add(record.id)

    def product(self, product_id: str) -> ProductRecord | None:
        return self._products.get(product_id)

    def products_referencing(
        self, entity_type: CascadeEntityType, entity_id: str
    ) -> Sequence[str]:
        return sorted(self._references.get((entity_type, entity_id), ()))


class CascadeDeleteValidator:
    """Validate single and bulk product cascade deletions."""

    def __init__(self, references: ProductReferenceSource):
        self._references = references

    @traced_engine("cascade_delete", "1.0", fingerprint_fields=("product_id", "options"))
    def validate(
        self,
        product_id: str,
        options: CascadeDeleteOptions | None = None,
    ) -> CascadeValidationResult:
        """
        Check which requested entities may be deleted with ``product_id``.

        Returns:
            CascadeValidationResult whose ``blocked`` lists shared entities
            still referenced by other products (and the product itself when
            it does not exist).  Identical inputs over unchanged reference
            data always give an identical result.
        """
        options = options or CascadeDeleteOptions()
        product = self._references.product(product_id)
        if product is None:
            logger.warning("cascade_product_not_found", extra={"product_id": product_id})
            return CascadeValidationResult(
                product_ids=(product_id,),
                blocked=(BlockedEntity(
                    entity_type=CascadeEntityType.PRODUCT,
                    entity_id=product_id,
                    reason="product not found",
                    referencing_entities=(),
                ),),
                affected_summary=AffectedSummary(),
            )

        blocked: list[BlockedEntity] = []
        deletable: list[DeletableEntity] = []
        flags = {name: False for name in _SHARED_FLAG.values()}

        if options.delete_variants:
            deletable.extend(
                DeletableEntity(CascadeEntityType.VARIANTS, variant_id)
                for variant_id in product.variant_ids
            )

        for entity_type in SHARED_ENTITY_TYPES:
            entity_id = product.reference(entity_type)
            if entity_id is None:
                continue
            others = tuple(
                pid for pid in self._references.products_referencing(entity_type, entity_id)
                if pid != product_id
            )
            flags[_SHARED_FLAG[entity_type]] = bool(others)
            if not options.requests(entity_type):
                continue
            if others:
                blocked.append(BlockedEntity(
                    entity_type=entity_type,
                    entity_id=entity_id,
                    reason=(
                        f"{entity_type.value} {entity_id} is used by "
                        f"{len(others)} other product(s)"
                    ),
                    referencing_entities=others,
                ))
            else:
                deletable.append(DeletableEntity(entity_type, entity_id))

        result = CascadeValidationResult(
            product_ids=(product_id,),
            blocked=tuple(blocked),
            affected_summary=AffectedSummary(
                variants=len(product.variant_ids),
                deletable=tuple(deletable),
                **flags,
            ),
        )
        logger.info("cascade_validation_completed", extra={
            "product_id": product_id,
            "blocked": [f"{b.entity_type.value}:{b.entity_id}" for b in result.blocked],
            "variants": result.affected_summary.variants,
            "can_delete": result.can_delete,
        })
        return result

    def validate_request(self, request: CascadeDeleteRequest) -> CascadeValidationResult:
        return self.validate(request.product_id, request.options)

    def validate_bulk(
        self,
        product_ids: Sequence[str],
        options: CascadeDeleteOptions | None = None,
    ) -> CascadeValidationResult:
        """
        Run ``validate`` for every product and union the results.

        Each product is checked exactly as on its own, excluding only
        itself from the reference counts.  Blocked entries are deduplicated
        by (entity type, entity id) with their referencing ids merged;
        variant counts are summed and shared flags OR-ed.
        """
        options = options or CascadeDeleteOptions()
        unique_ids = tuple(dict.fromkeys(product_ids))

        blocked: dict[tuple[CascadeEntityType, str], BlockedEntity] = {}
        deletable: dict[tuple[CascadeEntityType, str], DeletableEntity] = {}
        variants = 0
        flags = {name: False for name in _SHARED_FLAG.values()}

        for product_id in unique_ids:
            result = self.validate(product_id, options)
            summary = result.affected_summary
            variants += summary.variants
            for name in flags:
                flags[name] = flags[name] or getattr(summary, name)
            for entity in summary.deletable:
                deletable.setdefault((entity.entity_type, entity.entity_id), entity)
            for entry in result.blocked:
                key = (entry.entity_type, entry.entity_id)
                existing = blocked.get(key)
                if existing is None:
                    blocked[key] = entry
                    continue
                merged = tuple(sorted(
                    set(existing.referencing_entities) | set(entry.referencing_entities)
                ))
                blocked[key] = BlockedEntity(
                    entity_type=entry.entity_type,
                    entity_id=entry.entity_id,
                    reason=(
                        f"{entry.entity_type.value} {entry.entity_id} is used by "
                        f"{len(merged)} other product(s)"
                    ),
                    referencing_entities=merged,
                )

        bulk = CascadeValidationResult(
            product_ids=unique_ids,
            blocked=tuple(blocked.values()),
            affected_summary=AffectedSummary(
                variants=variants,
                deletable=tuple(e for k, e in deletable.items() if k not in blocked),
                **flags,
            ),
        )
        logger.info("cascade_bulk_validation_completed", extra={
            "product_count": len(unique_ids),
            "blocked_count": len(bulk.blocked),
            "can_delete": bulk.can_delete,
        })
        return bulk
