# Overview: Service-layer operations for credit sales (receivables), payments and interest.

# backend/eggpack/services/credit_service.py

from __future__ import annotations

from datetime import date
from decimal import Decimal

from flask import current_app

from ..errors import (
    ExceedsBalanceError,
    LedgerError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from ..extensions import db
from ..models import CreditPayment, CreditSale, Customer, Sale
from ..models.finance import FT_INCOME
from ..models.sales import (
    CREDIT_STATUS_OUTSTANDING,
    CREDIT_STATUS_PAID,
    CREDIT_STATUS_PARTIAL,
)
from ..money import (
    ZERO,
    as_decimal,
    non_negative_decimal,
    positive_money,
    quantize_money,
    to_number,
)
from ..time_utils import parse_business_date, today as business_today
from .concurrency import lock_for_update, unit_of_work
from .finance_service import (
    CATEGORY_CREDIT_PAYMENT,
    REF_CREDIT_PAYMENT,
    append_financial_transaction,
)
"""
Credit Sale Invariants (authoritative)

Amortization:
- amount_paid + amount_remaining == total_amount after every operation.
- A payment may not exceed amount_remaining (ExceedsBalanceError, no write).
- Status is derived from the amounts after each payment:
    remaining <= 0  -> paid
    paid > 0        -> partial
    otherwise       -> outstanding
  A paid credit sale has nothing remaining, so no later payment can move it.
- Each payment appends FinancialTransaction(income, credit_payment).

Interest:
- Simple interest on the outstanding principal of overdue, unpaid credit
  sales with interest_rate > 0:
    principal = amount_remaining - accrued_interest  (payments hit principal first)
    interest(days) = principal * interest_rate / 100 * days / 365
- Interest is never charged on interest. A run charges
  interest(today - due_date) - interest(last_accrual - due_date), so daily
  runs add up to the same total as one run at the end, and a second run on
  the same day accrues nothing.
- total_amount, amount_remaining and accrued_interest grow together; status
  is untouched.

Derived (never stored):
- overdue:  due_date < today and status != paid
- due_soon: today <= due_date <= today + DUE_SOON_DAYS and status != paid
"""

PAYMENT_METHODS = ("cash", "transfer", "credit")

DUE_ON_TIME = "on_time"
DUE_SOON = "due_soon"
DUE_OVERDUE = "overdue"

DAYS_PER_YEAR = Decimal(365)


# =============================================================================
# Derivations
# =============================================================================

def derive_credit_status(amount_paid, amount_remaining) -> str:
    if amount_remaining <= 0:
        return CREDIT_STATUS_PAID
    if amount_paid > 0:
        return CREDIT_STATUS_PARTIAL
    return CREDIT_STATUS_OUTSTANDING


def classify_due_status(due_date: date, status: str, today: date, due_soon_days: int = 7) -> str:
    """Pure read-side classification of a credit sale's due date."""
    if status == CREDIT_STATUS_PAID:
        return DUE_ON_TIME
    if due_date < today:
        return DUE_OVERDUE
    if (due_date - today).days <= due_soon_days:
        return DUE_SOON
    return DUE_ON_TIME


def _due_soon_days() -> int:
    return int(current_app.config.get("DUE_SOON_DAYS", 7))


def _require_id(value, field: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"{field} is required")
    return value


def _get_credit_sale(credit_sale_id: int, *, lock: bool = False) -> CreditSale:
    query = db.session.query(CreditSale).filter_by(id=credit_sale_id)
    if lock:
        query = lock_for_update(query)
    credit = query.first()
    if credit is None:
        raise NotFoundError(f"Credit sale {credit_sale_id} not found")
    return credit


# =============================================================================
# Opening
# =============================================================================

def _open_credit_sale_inner(
    *,
    sale_id: int,
    customer_id: int | None,
    total_amount,
    due_date: date,
    payment_terms: str | None = None,
    interest_rate=0,
    notes: str | None = None,
) -> CreditSale:
    """Create the receivable inside the caller's unit of work."""
    total = positive_money(total_amount, "total_amount")
    rate = non_negative_decimal(interest_rate if interest_rate is not None else 0, "interest_rate")

    if db.session.get(Sale, sale_id) is None:
        raise NotFoundError("Sale not found")
    if customer_id is not None and db.session.get(Customer, customer_id) is None:
        raise NotFoundError("Customer not found")

    credit = CreditSale(
        sale_id=sale_id,
        customer_id=customer_id,
        total_amount=total,
        amount_paid=ZERO,
        amount_remaining=total,
        accrued_interest=ZERO,
        due_date=due_date,
        payment_terms=payment_terms,
        interest_rate=rate,
        status=CREDIT_STATUS_OUTSTANDING,
        notes=notes,
    )
    db.session.add(credit)
    db.session.flush()
    return credit


def open_credit_sale(
    *,
    sale_id: int,
    customer_id: int | None,
    total_amount,
    due_date,
    payment_terms: str | None = None,
    interest_rate=0,
    notes: str | None = None,
) -> int:
    """Open a receivable for an existing sale. Returns the credit sale id."""
    _require_id(sale_id, "sale_id")
    due = parse_business_date(due_date, "due_date")
    with unit_of_work():
        credit = _open_credit_sale_inner(
            sale_id=sale_id,
            customer_id=customer_id,
            total_amount=total_amount,
            due_date=due,
            payment_terms=payment_terms,
            interest_rate=interest_rate,
            notes=notes,
        )
    return credit.id


# =============================================================================
# Payments
# =============================================================================

def _record_credit_payment_inner(
    *,
    credit_sale_id: int,
    amount: Decimal,
    payment_date: date,
    payment_method: str,
    reference_number: str | None,
    notes: str | None,
    created_by: str | None,
    description: str,
) -> tuple[CreditPayment, CreditSale]:
    credit = _get_credit_sale(credit_sale_id, lock=True)

    remaining = as_decimal(credit.amount_remaining)
    if amount > remaining:
        raise ExceedsBalanceError(
            f"Payment amount exceeds remaining balance for credit sale {credit_sale_id}",
            details={"amount_remaining": to_number(remaining), "requested": to_number(amount)},
        )

    payment = CreditPayment(
        credit_sale_id=credit.id,
        amount=amount,
        payment_date=payment_date,
        payment_method=payment_method,
        reference_number=reference_number,
        notes=notes,
        created_by=created_by or "system",
    )
    db.session.add(payment)
    db.session.flush()

    new_paid = quantize_money(as_decimal(credit.amount_paid) + amount)
    new_remaining = quantize_money(remaining - amount)
    credit.amount_paid = new_paid
    credit.amount_remaining = new_remaining
    credit.status = derive_credit_status(new_paid, new_remaining)

    append_financial_transaction(
        type=FT_INCOME,
        category=CATEGORY_CREDIT_PAYMENT,
        description=description,
        amount=amount,
        transaction_date=payment_date,
        reference_id=payment.id,
        reference_type=REF_CREDIT_PAYMENT,
    )
    return payment, credit


def _validate_payment_method(payment_method: str | None) -> str:
    method = payment_method or "cash"
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of {list(PAYMENT_METHODS)}")
    return method


def record_credit_payment(
    *,
    credit_sale_id: int,
    amount,
    payment_date=None,
    payment_method: str = "cash",
    reference_number: str | None = None,
    notes: str | None = None,
    created_by: str | None = None,
) -> dict:
    """
    Apply one payment to a credit sale.

    Returns {"payment_id", "new_amount_paid", "new_amount_remaining", "new_status"}.
    """
    _require_id(credit_sale_id, "credit_sale_id")
    amount = positive_money(amount, "amount")
    paid_on = parse_business_date(payment_date, "payment_date", default=business_today())
    method = _validate_payment_method(payment_method)

    with unit_of_work():
        payment, credit = _record_credit_payment_inner(
            credit_sale_id=credit_sale_id,
            amount=amount,
            payment_date=paid_on,
            payment_method=method,
            reference_number=reference_number,
            notes=notes,
            created_by=created_by,
            description="Pembayaran piutang",
        )

    return {
        "payment_id": payment.id,
        "new_amount_paid": credit.amount_paid,
        "new_amount_remaining": credit.amount_remaining,
        "new_status": credit.status,
    }


def record_credit_payment_batch(
    *,
    credit_sale_ids,
    amount,
    payment_date,
    notes: str | None = None,
    payment_method: str = "cash",
    reference_number: str | None = None,
    created_by: str | None = None,
) -> dict:
    """
    Apply the same payment to several credit sales.

    Each credit sale is its own unit of work: a failure is reported in
    `errors` and does not undo the payments already applied.
    """
    if not isinstance(credit_sale_ids, (list, tuple)) or not credit_sale_ids:
        raise ValidationError("Credit sale IDs are required")
    for idx, credit_sale_id in enumerate(credit_sale_ids):
        _require_id(credit_sale_id, f"credit_sale_ids[{idx}]")
    amount = positive_money(amount, "amount")
    paid_on = parse_business_date(payment_date, "payment_date")
    method = _validate_payment_method(payment_method)

    results = []
    errors = []
    for credit_sale_id in credit_sale_ids:
        try:
            with unit_of_work():
                payment, credit = _record_credit_payment_inner(
                    credit_sale_id=credit_sale_id,
                    amount=amount,
                    payment_date=paid_on,
                    payment_method=method,
                    reference_number=reference_number,
                    notes=notes,
                    created_by=created_by,
                    description="Pembayaran piutang (batch)",
                )
        except LedgerError as e:
            current_app.logger.warning("Batch payment skipped credit sale %s: %s", credit_sale_id, e)
            errors.append({"credit_sale_id": credit_sale_id, "error": str(e)})
            continue

        results.append({
            "credit_sale_id": credit.id,
            "payment_id": payment.id,
            "new_amount_paid": credit.amount_paid,
            "new_amount_remaining": credit.amount_remaining,
            "new_status": credit.status,
        })

    return {"processed": len(results), "results": results, "errors": errors}


# =============================================================================
# Interest
# =============================================================================

def compute_simple_interest(principal, interest_rate, days: int) -> Decimal:
    """Simple interest, rounded to money places."""
    if days <= 0:
        return ZERO
    raw = as_decimal(principal) * (as_decimal(interest_rate) / 100) * Decimal(days) / DAYS_PER_YEAR
    return quantize_money(raw)


def outstanding_principal(credit: CreditSale) -> Decimal:
    return max(as_decimal(credit.amount_remaining) - as_decimal(credit.accrued_interest), ZERO)


def accrue_overdue_interest(*, today: date | None = None) -> list[dict]:
    """
    Accrue interest on every overdue credit sale.

    Aggregates are processed one unit of work at a time; a storage failure
    on one is logged and the rest still run.
    """
    today = today or business_today()

    candidate_ids = [
        row.id
        for row in db.session.query(CreditSale.id)
        .filter(
            CreditSale.due_date < today,
            CreditSale.status != CREDIT_STATUS_PAID,
            CreditSale.interest_rate > 0,
        )
        .order_by(CreditSale.id)
        .all()
    ]

    results = []
    for credit_sale_id in candidate_ids:
        try:
            with unit_of_work():
                credit = _get_credit_sale(credit_sale_id, lock=True)
                start = credit.due_date
                if credit.last_interest_accrual_date and credit.last_interest_accrual_date > start:
                    start = credit.last_interest_accrual_date
                days_overdue = (today - credit.due_date).days
                days_accrued = (today - start).days
                if days_accrued <= 0:
                    continue

                principal = outstanding_principal(credit)
                interest = (
                    compute_simple_interest(principal, credit.interest_rate, days_overdue)
                    - compute_simple_interest(principal, credit.interest_rate, days_overdue - days_accrued)
                )
                if interest <= ZERO:
                    continue

                credit.total_amount = quantize_money(as_decimal(credit.total_amount) + interest)
                credit.amount_remaining = quantize_money(as_decimal(credit.amount_remaining) + interest)
                credit.accrued_interest = quantize_money(as_decimal(credit.accrued_interest) + interest)
                credit.last_interest_accrual_date = today
                new_total = credit.total_amount
        except StorageError:
            current_app.logger.exception("Failed to accrue interest for credit sale %s", credit_sale_id)
            continue

        current_app.logger.info(
            "Interest calculated for credit sale %s: %s for %s days overdue",
            credit_sale_id, interest, days_overdue,
        )
        results.append({
            "credit_sale_id": credit_sale_id,
            "days_overdue": days_overdue,
            "days_accrued": days_accrued,
            "interest_amount": interest,
            "new_total": new_total,
        })

    return results


# =============================================================================
# Reads
# =============================================================================

def list_credit_sales(*, status: str | None = None, customer_id: int | None = None) -> list[CreditSale]:
    q = CreditSale.query
    if status:
        q = q.filter(CreditSale.status == status)
    if customer_id is not None:
        q = q.filter(CreditSale.customer_id == customer_id)
    return q.order_by(CreditSale.due_date, CreditSale.id).all()


def list_credit_payments(credit_sale_id: int) -> list[CreditPayment]:
    _get_credit_sale(credit_sale_id)
    return (
        CreditPayment.query
        .filter_by(credit_sale_id=credit_sale_id)
        .order_by(CreditPayment.payment_date.desc(), CreditPayment.created_at.desc(), CreditPayment.id.desc())
        .all()
    )


def list_credit_reminders(*, today: date | None = None) -> dict:
    """Overdue and due-soon credit sales, classified at read time."""
    today = today or business_today()
    due_soon_days = _due_soon_days()

    overdue = []
    due_soon = []
    for credit in list_credit_sales():
        if credit.status == CREDIT_STATUS_PAID:
            continue
        classification = classify_due_status(credit.due_date, credit.status, today, due_soon_days)
        if classification == DUE_OVERDUE:
            data = credit.to_dict()
            data["days_overdue"] = (today - credit.due_date).days
            overdue.append(data)
        elif classification == DUE_SOON:
            data = credit.to_dict()
            data["days_until_due"] = (credit.due_date - today).days
            due_soon.append(data)

    overdue.sort(key=lambda c: c["due_date"])
    due_soon.sort(key=lambda c: c["due_date"])
    return {"as_of": today.isoformat(), "overdue": overdue, "due_soon": due_soon}


def send_credit_reminder(credit_sale_id: int, *, method: str | None = None) -> dict:
    """
    Record that a payment reminder went out for a credit sale.

    Delivery (SMS, WhatsApp, ...) happens outside the engine; the reminder is
    only logged.
    """
    _require_id(credit_sale_id, "credit_sale_id")
    credit = _get_credit_sale(credit_sale_id)
    customer_name = credit.customer.name if credit.customer else None
    method = method or "system_notification"

    current_app.logger.info(
        "Payment reminder sent for credit sale %s to customer %s via %s",
        credit_sale_id, customer_name, method,
    )
    return {
        "credit_sale_id": credit_sale_id,
        "message": f"Reminder sent to {customer_name or 'customer'}",
        "method": method,
    }
