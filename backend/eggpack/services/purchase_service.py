# Overview: Service-layer operations for raw material purchases.

from __future__ import annotations

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Purchase, PurchaseItem, Supplier
from ..models.finance import FT_EXPENSE
from ..money import ZERO, positive_decimal, quantize_cost, quantize_money, quantize_quantity
from ..time_utils import parse_business_date, today as business_today
from .concurrency import unit_of_work
from .finance_service import CATEGORY_PURCHASE, REF_PURCHASE, append_financial_transaction
from .inventory_service import STOCK_RAW_MATERIAL, StockDelta, apply_stock_deltas, load_stock_rows


def _normalize_items(items) -> list[dict]:
    if not isinstance(items, (list, tuple)) or not items:
        raise ValidationError("At least one purchase item is required")

    normalized = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{idx}] must be an object")
        material_id = item.get("raw_material_id")
        if not isinstance(material_id, int) or isinstance(material_id, bool):
            raise ValidationError(f"items[{idx}].raw_material_id is required")
        quantity = quantize_quantity(positive_decimal(item.get("quantity"), f"items[{idx}].quantity"))
        unit_price = quantize_cost(positive_decimal(item.get("unit_price"), f"items[{idx}].unit_price"))
        if quantity <= ZERO or unit_price <= ZERO:
            raise ValidationError(f"items[{idx}] quantity and unit_price must be positive")
        normalized.append({
            "raw_material_id": material_id,
            "quantity": quantity,
            "unit_price": unit_price,
            "total_price": quantize_money(quantity * unit_price),
        })
    return normalized


def record_purchase(*, supplier_id: int, items, purchase_date=None, notes: str | None = None) -> Purchase:
    """
    Receive raw materials from a supplier.

    Stock goes up by each line's quantity and the material's unit_cost is
    overwritten with the line's unit_price (last purchase price, no
    averaging). The purchase total is expensed as one FinancialTransaction.
    """
    lines = _normalize_items(items)
    purchased_on = parse_business_date(purchase_date, "purchase_date", default=business_today())
    total_amount = quantize_money(sum((line["total_price"] for line in lines), ZERO))

    with unit_of_work():
        supplier = db.session.get(Supplier, supplier_id)
        if supplier is None:
            raise NotFoundError("Supplier not found")

        materials = load_stock_rows(STOCK_RAW_MATERIAL, [line["raw_material_id"] for line in lines])

        purchase = Purchase(
            supplier_id=supplier.id,
            purchase_date=purchased_on,
            total_amount=total_amount,
            notes=notes,
        )
        db.session.add(purchase)
        db.session.flush()

        for line in lines:
            db.session.add(PurchaseItem(purchase_id=purchase.id, **line))

        apply_stock_deltas([
            StockDelta(STOCK_RAW_MATERIAL, line["raw_material_id"], line["quantity"]) for line in lines
        ])
        # later lines for the same material win
        for line in lines:
            materials[line["raw_material_id"]].unit_cost = line["unit_price"]

        append_financial_transaction(
            type=FT_EXPENSE,
            category=CATEGORY_PURCHASE,
            description=f"Purchase from {supplier.name}",
            amount=total_amount,
            transaction_date=purchased_on,
            reference_id=purchase.id,
            reference_type=REF_PURCHASE,
        )

    return purchase


def list_purchases(*, start_date=None, end_date=None) -> list[Purchase]:
    q = Purchase.query
    if start_date is not None:
        q = q.filter(Purchase.purchase_date >= start_date)
    if end_date is not None:
        q = q.filter(Purchase.purchase_date <= end_date)
    return q.order_by(Purchase.purchase_date.desc(), Purchase.id.desc()).all()
