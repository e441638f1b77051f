# Overview: Service-layer operations for sales; routes the proceeds to income or a receivable.

from __future__ import annotations

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Customer, Sale, SaleItem
from ..models.finance import FT_INCOME
from ..money import (
    ZERO,
    non_negative_decimal,
    positive_decimal,
    quantize_money,
    quantize_quantity,
)
from ..time_utils import parse_business_date, today as business_today
from .bank_service import TYPE_CREDIT, _post_bank_transaction_inner
from .concurrency import unit_of_work
from .credit_service import _open_credit_sale_inner
from .finance_service import CATEGORY_SALES, REF_SALE, append_financial_transaction
from .inventory_service import STOCK_PRODUCT, StockDelta, apply_stock_deltas, load_stock_rows

PAYMENT_CASH = "cash"
PAYMENT_TRANSFER = "transfer"
PAYMENT_CREDIT = "credit"
PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_TRANSFER, PAYMENT_CREDIT)


def _normalize_items(items) -> list[dict]:
    if not isinstance(items, (list, tuple)) or not items:
        raise ValidationError("At least one sale item is required")

    normalized = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{idx}] must be an object")
        product_id = item.get("product_id")
        if not isinstance(product_id, int) or isinstance(product_id, bool):
            raise ValidationError(f"items[{idx}].product_id is required")

        quantity = quantize_quantity(positive_decimal(item.get("quantity"), f"items[{idx}].quantity"))
        unit_price = quantize_money(positive_decimal(item.get("unit_price"), f"items[{idx}].unit_price"))
        discount = quantize_money(non_negative_decimal(
            item.get("discount_amount", 0) or 0, f"items[{idx}].discount_amount"
        ))
        if quantity <= ZERO or unit_price <= ZERO:
            raise ValidationError(f"items[{idx}] quantity and unit_price must be positive")

        total_price = quantize_money(quantity * unit_price - discount)
        if total_price < ZERO:
            raise ValidationError(f"items[{idx}].discount_amount exceeds the line total")

        normalized.append({
            "product_id": product_id,
            "quantity": quantity,
            "unit_price": unit_price,
            "discount_amount": discount,
            "total_price": total_price,
        })
    return normalized


def record_sale(
    *,
    items,
    sale_date=None,
    customer_id: int | None = None,
    discount_amount=0,
    tax_amount=0,
    payment_method: str = PAYMENT_CASH,
    due_date=None,
    payment_terms: str | None = None,
    interest_rate=0,
    bank_account_id: int | None = None,
    notes: str | None = None,
) -> Sale:
    """
    Record a sale of finished products.

    Every line is checked against product stock before anything is written.
    Credit sales open a receivable for the final amount; other sales are
    booked as income straight away. A transfer into a known bank account is
    also posted to that account's ledger, without a second income entry.
    """
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of {list(PAYMENT_METHODS)}")

    lines = _normalize_items(items)
    sold_on = parse_business_date(sale_date, "sale_date", default=business_today())
    discount = quantize_money(non_negative_decimal(discount_amount or 0, "discount_amount"))
    tax = quantize_money(non_negative_decimal(tax_amount or 0, "tax_amount"))

    subtotal = quantize_money(sum((line["total_price"] for line in lines), ZERO))
    final_amount = quantize_money(subtotal - discount + tax)
    if final_amount <= ZERO:
        raise ValidationError("final_amount must be positive")

    due = None
    if payment_method == PAYMENT_CREDIT:
        due = parse_business_date(due_date, "due_date")
        if due < sold_on:
            raise ValidationError("due_date cannot be before sale_date")

    with unit_of_work():
        if customer_id is not None and db.session.get(Customer, customer_id) is None:
            raise NotFoundError("Customer not found")

        products = load_stock_rows(STOCK_PRODUCT, [line["product_id"] for line in lines])
        inactive = [pid for pid, p in products.items() if not p.is_active]
        if inactive:
            raise NotFoundError(
                f"Product not found: {', '.join(str(i) for i in inactive)}",
                details={"entity_kind": STOCK_PRODUCT, "missing_ids": inactive},
            )

        apply_stock_deltas([StockDelta(STOCK_PRODUCT, line["product_id"], -line["quantity"]) for line in lines])

        sale = Sale(
            customer_id=customer_id,
            sale_date=sold_on,
            total_amount=subtotal,
            discount_amount=discount,
            tax_amount=tax,
            final_amount=final_amount,
            payment_method=payment_method,
            bank_account_id=bank_account_id if payment_method == PAYMENT_TRANSFER else None,
            notes=notes,
        )
        db.session.add(sale)
        db.session.flush()

        for line in lines:
            db.session.add(SaleItem(sale_id=sale.id, **line))

        if payment_method == PAYMENT_CREDIT:
            _open_credit_sale_inner(
                sale_id=sale.id,
                customer_id=customer_id,
                total_amount=final_amount,
                due_date=due,
                payment_terms=payment_terms,
                interest_rate=interest_rate,
                notes=notes,
            )
        else:
            append_financial_transaction(
                type=FT_INCOME,
                category=CATEGORY_SALES,
                description=f"Sale #{sale.id}",
                amount=final_amount,
                transaction_date=sold_on,
                reference_id=sale.id,
                reference_type=REF_SALE,
            )
            if payment_method == PAYMENT_TRANSFER and bank_account_id is not None:
                _post_bank_transaction_inner(
                    account_id=bank_account_id,
                    transaction_type=TYPE_CREDIT,
                    amount=final_amount,
                    description=f"Transfer for sale #{sale.id}",
                    transaction_date=sold_on,
                    reference_number=None,
                    create_financial_transaction=False,
                    category=None,
                )

    return sale


def list_sales(*, start_date=None, end_date=None, customer_id: int | None = None) -> list[Sale]:
    q = Sale.query
    if start_date is not None:
        q = q.filter(Sale.sale_date >= start_date)
    if end_date is not None:
        q = q.filter(Sale.sale_date <= end_date)
    if customer_id is not None:
        q = q.filter(Sale.customer_id == customer_id)
    return q.order_by(Sale.sale_date.desc(), Sale.id.desc()).all()
