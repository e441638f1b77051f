# Overview: Service-layer operations for the financial transaction log and reports.

from __future__ import annotations

from datetime import date

from sqlalchemy import func

from ..errors import ValidationError
from ..extensions import db
from ..models import (
    CreditSale,
    FinancialTransaction,
    Product,
    RawMaterial,
    Sale,
)
from ..models.finance import FT_EXPENSE, FT_INCOME
from ..models.sales import CREDIT_STATUS_PAID
from ..money import ZERO, as_decimal, positive_money, to_number
from ..time_utils import parse_business_date, to_iso_date, today as business_today
from .concurrency import unit_of_work

"""
Financial Transaction Log Invariants (authoritative)

- Flat income/expense records; single-sided category tagging, no double entry.
- Append-only: written inside the unit of work of the event that produced it.
- amount is always positive; the direction lives in `type`.
- (reference_type, reference_id) is a weak back-pointer, never cascaded.
"""

VALID_TYPES = (FT_INCOME, FT_EXPENSE)

# Categories written by the engine itself
CATEGORY_PURCHASE = "purchase"
CATEGORY_SALES = "sales"
CATEGORY_CREDIT_PAYMENT = "credit_payment"
CATEGORY_BANK_DEPOSIT = "bank_deposit"
CATEGORY_BANK_WITHDRAWAL = "bank_withdrawal"
CATEGORY_PETTY_CASH_IN = "petty_cash_in"
CATEGORY_PETTY_CASH_OUT = "petty_cash_out"

REF_PURCHASE = "purchase"
REF_SALE = "sale"
REF_BANK_TRANSACTION = "bank_transaction"
REF_PETTY_CASH = "petty_cash"
REF_CREDIT_PAYMENT = "credit_payment"


def append_financial_transaction(
    *,
    type: str,
    category: str,
    description: str,
    amount,
    transaction_date: date,
    reference_id: int | None = None,
    reference_type: str | None = None,
) -> FinancialTransaction:
    """
    Append one income/expense entry to the current session without committing.

    Called from inside another operation's unit of work.
    """
    if type not in VALID_TYPES:
        raise ValidationError(f"type must be one of {list(VALID_TYPES)}")

    entry = FinancialTransaction(
        type=type,
        category=category,
        description=description,
        amount=positive_money(amount, "amount"),
        transaction_date=transaction_date,
        reference_id=reference_id,
        reference_type=reference_type,
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def record_financial_transaction(
    *,
    type: str,
    category: str,
    description: str,
    amount,
    transaction_date=None,
) -> FinancialTransaction:
    """Manual income/expense entry (operating costs, other income)."""
    if not type or not category or not description:
        raise ValidationError("type, category and description are required")
    if type not in VALID_TYPES:
        raise ValidationError("type must be 'income' or 'expense'")

    entry_date = parse_business_date(transaction_date, "transaction_date")
    with unit_of_work():
        entry = append_financial_transaction(
            type=type,
            category=category.strip(),
            description=description.strip(),
            amount=amount,
            transaction_date=entry_date,
        )
    return entry


def list_financial_transactions(
    *,
    type: str | None = None,
    category: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int | None = None,
) -> list[FinancialTransaction]:
    q = FinancialTransaction.query
    if type:
        q = q.filter(FinancialTransaction.type == type)
    if category:
        q = q.filter(FinancialTransaction.category == category)
    if start_date is not None:
        q = q.filter(FinancialTransaction.transaction_date >= start_date)
    if end_date is not None:
        q = q.filter(FinancialTransaction.transaction_date <= end_date)

    q = q.order_by(
        FinancialTransaction.transaction_date.desc(),
        FinancialTransaction.created_at.desc(),
        FinancialTransaction.id.desc(),
    )
    if limit:
        q = q.limit(limit)
    return q.all()


def financial_summary(*, start_date: date | None = None, end_date: date | None = None) -> dict:
    """
    Income statement over an optional inclusive date range.

    Returns totals, net profit, per-category totals and the 50 most recent
    entries of the range.
    """
    if start_date and end_date and start_date > end_date:
        raise ValidationError("start_date must not be after end_date")

    q = db.session.query(
        FinancialTransaction.type,
        FinancialTransaction.category,
        func.coalesce(func.sum(FinancialTransaction.amount), 0),
    )
    if start_date is not None:
        q = q.filter(FinancialTransaction.transaction_date >= start_date)
    if end_date is not None:
        q = q.filter(FinancialTransaction.transaction_date <= end_date)
    rows = q.group_by(FinancialTransaction.type, FinancialTransaction.category).all()

    total_income = ZERO
    total_expense = ZERO
    by_category: dict[str, dict] = {FT_INCOME: {}, FT_EXPENSE: {}}
    for tx_type, category, total in rows:
        amount = as_decimal(total)
        by_category.setdefault(tx_type, {})[category] = to_number(amount)
        if tx_type == FT_INCOME:
            total_income += amount
        elif tx_type == FT_EXPENSE:
            total_expense += amount

    recent = list_financial_transactions(start_date=start_date, end_date=end_date, limit=50)

    return {
        "start_date": to_iso_date(start_date),
        "end_date": to_iso_date(end_date),
        "total_income": to_number(total_income),
        "total_expense": to_number(total_expense),
        "net_profit": to_number(total_income - total_expense),
        "by_category": by_category,
        "recent_transactions": [tx.to_dict() for tx in recent],
    }


def dashboard_summary(*, as_of: date | None = None) -> dict:
    as_of = as_of or business_today()

    active_products = db.session.query(func.count(Product.id)).filter(Product.is_active.is_(True)).scalar()
    today_sales_count = db.session.query(func.count(Sale.id)).filter(Sale.sale_date == as_of).scalar()
    today_sales_amount = (
        db.session.query(func.coalesce(func.sum(Sale.final_amount), 0))
        .filter(Sale.sale_date == as_of)
        .scalar()
    )
    low_stock_products = (
        db.session.query(func.count(Product.id))
        .filter(Product.is_active.is_(True), Product.stock_quantity <= Product.minimum_stock)
        .scalar()
    )
    low_stock_materials = (
        db.session.query(func.count(RawMaterial.id))
        .filter(RawMaterial.stock_quantity <= RawMaterial.minimum_stock)
        .scalar()
    )
    credit_outstanding = (
        db.session.query(func.coalesce(func.sum(CreditSale.amount_remaining), 0))
        .filter(CreditSale.status != CREDIT_STATUS_PAID)
        .scalar()
    )

    return {
        "as_of": to_iso_date(as_of),
        "total_products": int(active_products or 0),
        "today_sales_count": int(today_sales_count or 0),
        "today_sales_amount": to_number(as_decimal(today_sales_amount)),
        "low_stock_products": int(low_stock_products or 0),
        "low_stock_materials": int(low_stock_materials or 0),
        "total_credit_outstanding": to_number(as_decimal(credit_outstanding)),
    }
