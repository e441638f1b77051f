# Overview: Service-layer operations for production batches; allocates batch cost (HPP) to outputs.

# backend/eggpack/services/production_service.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import ProductionBatch, ProductionInput, ProductionOutput
from ..models.production import BATCH_STATUS_COMPLETED
from ..money import (
    ZERO,
    as_decimal,
    positive_decimal,
    quantize_cost,
    quantize_quantity,
    to_number,
)
from ..time_utils import parse_business_date, today as business_today
from .concurrency import unit_of_work
from .inventory_service import (
    STOCK_PRODUCT,
    STOCK_RAW_MATERIAL,
    StockDelta,
    apply_stock_deltas,
    load_stock_rows,
)
"""
Production Cost Invariants (authoritative)

Costing:
- Batch cost is SUM(quantity_used * unit_cost) over inputs, where unit_cost is
  the material's CURRENT unit_cost (last purchase price, not an average).
- Cost is allocated to outputs strictly by quantity share:
    portion      = quantity_produced / total_output_quantity
    total_hpp    = portion * total_cost
    hpp_per_unit = total_hpp / quantity_produced
  Every output of one batch therefore gets the same hpp_per_unit.
- SUM(total_hpp) == total_cost under exact arithmetic.
- When total cost or total output is zero nothing is allocated; the outputs
  keep NULL hpp and product cost_price is left untouched.

Effects (one unit of work):
- material stock -= quantity_used, product stock += quantity_produced
- product cost_price = hpp_per_unit (last batch wins)
- batch, inputs and outputs are written; the batch is never edited afterwards
- no FinancialTransaction: materials were expensed when purchased
"""


@dataclass(frozen=True)
class OutputAllocation:
    product_id: int
    quantity: object
    hpp_per_unit: Optional[object]
    total_hpp: Optional[object]


def allocate_batch_cost(total_cost, outputs) -> list[OutputAllocation]:
    """
    Distribute total_cost across outputs by quantity share.

    `outputs` is a sequence of (product_id, quantity). Works on any exact
    numeric type (Decimal, Fraction); no rounding is applied here.
    """
    outputs = list(outputs)
    total_quantity = sum((qty for _, qty in outputs), 0 * total_cost)

    if total_quantity <= 0 or total_cost <= 0:
        return [OutputAllocation(pid, qty, None, None) for pid, qty in outputs]

    allocations = []
    for product_id, qty in outputs:
        portion = qty / total_quantity
        product_total = portion * total_cost
        allocations.append(OutputAllocation(product_id, qty, product_total / qty, product_total))
    return allocations


@dataclass
class BatchResult:
    batch_id: int
    batch_number: str
    total_cost: object
    outputs: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "batch_id": self.batch_id,
            "batch_number": self.batch_number,
            "total_cost": to_number(self.total_cost),
            "outputs": [
                {
                    "product_id": a.product_id,
                    "quantity_produced": to_number(a.quantity),
                    "hpp_per_unit": to_number(a.hpp_per_unit),
                    "total_hpp": to_number(a.total_hpp),
                }
                for a in self.outputs
            ],
        }


def _normalize_lines(lines, id_field: str, qty_field: str, label: str) -> list[tuple[int, object]]:
    if lines is None:
        lines = []
    if not isinstance(lines, (list, tuple)):
        raise ValidationError(f"{label} must be a list")

    normalized = []
    for idx, line in enumerate(lines):
        if not isinstance(line, dict):
            raise ValidationError(f"{label}[{idx}] must be an object")
        entity_id = line.get(id_field)
        if not isinstance(entity_id, int) or isinstance(entity_id, bool):
            raise ValidationError(f"{label}[{idx}].{id_field} is required")
        qty = quantize_quantity(positive_decimal(line.get(qty_field), f"{label}[{idx}].{qty_field}"))
        if qty <= ZERO:
            raise ValidationError(f"{label}[{idx}].{qty_field} must be positive")
        normalized.append((entity_id, qty))
    return normalized


def run_production_batch(
    *,
    batch_number: str,
    production_date=None,
    inputs=None,
    outputs=None,
    notes: str | None = None,
) -> BatchResult:
    """
    Record a production run: consume materials, add finished goods, set HPP.

    Everything is validated (references exist, stock suffices) before the
    first write; any failure leaves the database untouched.

    batch_number uniqueness is left to the database; a duplicate surfaces as
    StorageError.
    """
    if not batch_number or not str(batch_number).strip():
        raise ValidationError("batch_number is required")
    batch_date = parse_business_date(production_date, "production_date", default=business_today())

    input_lines = _normalize_lines(inputs, "raw_material_id", "quantity_used", "inputs")
    output_lines = _normalize_lines(outputs, "product_id", "quantity_produced", "outputs")
    if not output_lines:
        raise ValidationError("At least one output product is required")

    output_ids = [pid for pid, _ in output_lines]
    if len(set(output_ids)) != len(output_ids):
        raise ValidationError("Each product may appear only once in outputs")

    with unit_of_work():
        materials = load_stock_rows(STOCK_RAW_MATERIAL, [mid for mid, _ in input_lines])
        products = load_stock_rows(STOCK_PRODUCT, output_ids)

        # Step 1: cost at current unit_cost, captured before any write
        input_costs = []
        total_cost = ZERO
        for material_id, qty in input_lines:
            unit_cost = as_decimal(materials[material_id].unit_cost)
            line_cost = qty * unit_cost
            input_costs.append((material_id, qty, unit_cost, line_cost))
            total_cost += line_cost

        # Steps 2-3: stock movements, all-or-nothing
        deltas = [StockDelta(STOCK_RAW_MATERIAL, mid, -qty) for mid, qty in input_lines]
        deltas += [StockDelta(STOCK_PRODUCT, pid, qty) for pid, qty in output_lines]
        apply_stock_deltas(deltas)

        # Step 4
        allocations = allocate_batch_cost(total_cost, output_lines)

        # Step 5: last batch wins
        for allocation in allocations:
            if allocation.hpp_per_unit is not None:
                products[allocation.product_id].cost_price = quantize_cost(allocation.hpp_per_unit)

        # Step 6
        batch = ProductionBatch(
            batch_number=str(batch_number).strip(),
            production_date=batch_date,
            total_cost=quantize_cost(total_cost),
            status=BATCH_STATUS_COMPLETED,
            notes=notes,
        )
        db.session.add(batch)
        db.session.flush()

        for material_id, qty, unit_cost, line_cost in input_costs:
            db.session.add(ProductionInput(
                batch_id=batch.id,
                raw_material_id=material_id,
                quantity_used=qty,
                unit_cost=quantize_cost(unit_cost),
                line_cost=quantize_cost(line_cost),
            ))
        for allocation in allocations:
            db.session.add(ProductionOutput(
                batch_id=batch.id,
                product_id=allocation.product_id,
                quantity_produced=allocation.quantity,
                hpp_per_unit=None if allocation.hpp_per_unit is None else quantize_cost(allocation.hpp_per_unit),
                total_hpp=None if allocation.total_hpp is None else quantize_cost(allocation.total_hpp),
            ))

    return BatchResult(
        batch_id=batch.id,
        batch_number=batch.batch_number,
        total_cost=total_cost,
        outputs=allocations,
    )


def get_batch_detail(batch_id: int) -> dict:
    batch = db.session.get(ProductionBatch, batch_id)
    if batch is None:
        raise NotFoundError("Production batch not found")

    data = batch.to_dict()
    data["inputs"] = [i.to_dict() for i in batch.inputs]
    data["outputs"] = [o.to_dict() for o in batch.outputs]
    return data


def list_batches(*, start_date=None, end_date=None) -> list[ProductionBatch]:
    q = ProductionBatch.query
    if start_date is not None:
        q = q.filter(ProductionBatch.production_date >= start_date)
    if end_date is not None:
        q = q.filter(ProductionBatch.production_date <= end_date)
    return q.order_by(ProductionBatch.production_date.desc(), ProductionBatch.id.desc()).all()
