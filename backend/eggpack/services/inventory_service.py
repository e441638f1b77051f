# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

# backend/eggpack/services/inventory_service.py

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from flask import current_app

from ..errors import InsufficientStockError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Product, RawMaterial
from ..money import ZERO, as_decimal, quantize_quantity, to_decimal, to_number
from .concurrency import lock_for_update
"""
Inventory Stock Invariants (authoritative)

Stock model:
- stock_quantity on RawMaterial and Product is a counter moved only by
  business events, inside the unit of work of that event:
    purchase receipt      raw_material  +quantity
    production consumption raw_material -quantity_used
    production output     product       +quantity_produced
    sale                  product       -quantity
- The deltas are not kept as their own ledger; purchases, production
  batches and sales are the audit trail.

Business invariants:
- Product stock may never go negative.
- Raw material stock may never go negative unless
  ALLOW_NEGATIVE_MATERIAL_STOCK is enabled.
- All line items of one event are checked against current stock BEFORE any
  of them is applied; one shortage fails the whole event.
"""

STOCK_RAW_MATERIAL = "raw_material"
STOCK_PRODUCT = "product"

_MODELS = {
    STOCK_RAW_MATERIAL: RawMaterial,
    STOCK_PRODUCT: Product,
}


@dataclass(frozen=True)
class StockDelta:
    entity_kind: str
    entity_id: int
    delta: Decimal


def _model_for(entity_kind: str):
    model = _MODELS.get(entity_kind)
    if model is None:
        raise ValidationError(f"Unknown stock entity kind: {entity_kind}")
    return model


def _is_guarded(entity_kind: str) -> bool:
    if entity_kind == STOCK_PRODUCT:
        return True
    return not current_app.config.get("ALLOW_NEGATIVE_MATERIAL_STOCK", False)


def load_stock_rows(entity_kind: str, entity_ids, *, lock: bool = True) -> dict:
    """
    Load (and lock) the rows for a set of ids of one kind.

    Raises NotFoundError listing every missing id.
    """
    model = _model_for(entity_kind)
    ids = sorted(set(entity_ids))
    if not ids:
        return {}

    query = db.session.query(model).filter(model.id.in_(ids)).order_by(model.id)
    if lock:
        query = lock_for_update(query)
    rows = {row.id: row for row in query.all()}

    missing = [i for i in ids if i not in rows]
    if missing:
        label = entity_kind.replace("_", " ")
        raise NotFoundError(
            f"{label.capitalize()} not found: {', '.join(str(i) for i in missing)}",
            details={"entity_kind": entity_kind, "missing_ids": missing},
        )
    return rows


def apply_stock_deltas(deltas: list[StockDelta]) -> dict[tuple[str, int], Decimal]:
    """
    Apply a set of stock movements belonging to ONE business event.

    Deltas for the same entity are summed first, every row is validated, and
    only then are the counters written. Nothing is committed here; the
    caller's unit of work owns the transaction.

    Returns the new quantity per (entity_kind, entity_id).
    """
    totals: dict[tuple[str, int], Decimal] = {}
    for d in deltas:
        _model_for(d.entity_kind)
        key = (d.entity_kind, d.entity_id)
        totals[key] = totals.get(key, ZERO) + to_decimal(d.delta, "delta")

    rows_by_kind = {}
    for kind in {k for k, _ in totals}:
        rows_by_kind[kind] = load_stock_rows(kind, [i for k, i in totals if k == kind])

    shortages = []
    for (kind, entity_id), delta in sorted(totals.items()):
        row = rows_by_kind[kind][entity_id]
        current = as_decimal(row.stock_quantity)
        if delta < 0 and current + delta < 0 and _is_guarded(kind):
            shortages.append({
                "entity_kind": kind,
                "entity_id": entity_id,
                "name": row.name,
                "available": to_number(current),
                "required": to_number(-delta),
            })

    if shortages:
        first = shortages[0]
        raise InsufficientStockError(
            f"Insufficient stock for {first['entity_kind'].replace('_', ' ')} {first['entity_id']}. "
            f"Available: {first['available']}, Required: {first['required']}",
            details={"items": shortages},
        )

    new_quantities = {}
    for (kind, entity_id), delta in totals.items():
        row = rows_by_kind[kind][entity_id]
        row.stock_quantity = quantize_quantity(as_decimal(row.stock_quantity) + delta)
        new_quantities[(kind, entity_id)] = row.stock_quantity

    db.session.flush()
    return new_quantities


def adjust_stock(entity_kind: str, entity_id: int, delta) -> Decimal:
    """Single-entity form of apply_stock_deltas."""
    result = apply_stock_deltas([StockDelta(entity_kind, entity_id, to_decimal(delta, "delta"))])
    return result[(entity_kind, entity_id)]


def list_low_stock() -> dict:
    """Materials and active products at or below their minimum_stock."""
    materials = (
        RawMaterial.query
        .filter(RawMaterial.stock_quantity <= RawMaterial.minimum_stock)
        .order_by(RawMaterial.name)
        .all()
    )
    products = (
        Product.query
        .filter(Product.is_active.is_(True), Product.stock_quantity <= Product.minimum_stock)
        .order_by(Product.name)
        .all()
    )
    return {
        "raw_materials": [m.to_dict() for m in materials],
        "products": [p.to_dict() for p in products],
    }
