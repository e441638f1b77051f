# Overview: Service-layer operations for the petty-cash till.

from __future__ import annotations

from ..errors import InsufficientFundsError, ValidationError
from ..extensions import db
from ..models import PettyCashEntry
from ..models.finance import FT_EXPENSE, FT_INCOME
from ..money import ZERO, as_decimal, positive_money, quantize_money, to_number
from ..time_utils import parse_business_date, today as business_today
from .concurrency import unit_of_work
from .finance_service import (
    CATEGORY_PETTY_CASH_IN,
    CATEGORY_PETTY_CASH_OUT,
    REF_PETTY_CASH,
    append_financial_transaction,
)
"""
Petty Cash Invariants (authoritative)

- One implicit till; its balance is balance_after of the entry with the
  highest sequence_number (0 when empty).
- sequence_number = previous + 1 and is unique, so two postings racing on
  the same predecessor cannot both commit.
- "out" may never take the balance below zero (InsufficientFundsError, no write).
- Every entry is mirrored into the FinancialTransaction log.
"""

TYPE_IN = "in"
TYPE_OUT = "out"
TRANSACTION_TYPES = (TYPE_IN, TYPE_OUT)


def _last_entry() -> PettyCashEntry | None:
    return PettyCashEntry.query.order_by(PettyCashEntry.sequence_number.desc()).first()


def get_petty_cash_balance():
    last = _last_entry()
    return as_decimal(last.balance_after) if last is not None else ZERO


def post_petty_cash(
    *,
    transaction_type: str,
    amount,
    description: str,
    transaction_date=None,
    reference_number: str | None = None,
    created_by: str | None = None,
) -> dict:
    """
    Post money into or out of the till.

    Returns {"transaction_id", "new_balance"}.
    """
    if transaction_type not in TRANSACTION_TYPES:
        raise ValidationError("transaction_type must be 'in' or 'out'")
    if not description or not str(description).strip():
        raise ValidationError("description is required")
    amount = positive_money(amount, "amount")
    entry_date = parse_business_date(transaction_date, "transaction_date", default=business_today())
    description = str(description).strip()

    with unit_of_work():
        last = _last_entry()
        balance = as_decimal(last.balance_after) if last is not None else ZERO
        if last is not None and entry_date < last.transaction_date:
            raise ValidationError(
                f"transaction_date {entry_date.isoformat()} is before the latest petty cash entry "
                f"({last.transaction_date.isoformat()}); back-dated entries are not supported"
            )

        if transaction_type == TYPE_IN:
            new_balance = quantize_money(balance + amount)
        else:
            new_balance = quantize_money(balance - amount)
            if new_balance < ZERO:
                raise InsufficientFundsError(
                    "Insufficient petty cash balance",
                    details={"balance": to_number(balance), "requested": to_number(amount)},
                )

        ft = append_financial_transaction(
            type=FT_INCOME if transaction_type == TYPE_IN else FT_EXPENSE,
            category=CATEGORY_PETTY_CASH_IN if transaction_type == TYPE_IN else CATEGORY_PETTY_CASH_OUT,
            description=f"Petty cash {transaction_type}: {description}",
            amount=amount,
            transaction_date=entry_date,
            reference_type=REF_PETTY_CASH,
        )

        entry = PettyCashEntry(
            sequence_number=(last.sequence_number + 1) if last is not None else 1,
            transaction_type=transaction_type,
            amount=amount,
            description=description,
            reference_number=reference_number,
            transaction_date=entry_date,
            balance_after=new_balance,
            financial_transaction_id=ft.id,
            created_by=created_by,
        )
        db.session.add(entry)
        db.session.flush()
        ft.reference_id = entry.id

    return {"transaction_id": entry.id, "new_balance": new_balance}


def list_petty_cash(*, limit: int = 100) -> list[PettyCashEntry]:
    return (
        PettyCashEntry.query
        .order_by(PettyCashEntry.sequence_number.desc())
        .limit(limit)
        .all()
    )


def verify_petty_cash() -> dict:
    """Replay the till from the first entry and compare each balance_after."""
    running = ZERO
    mismatches = []
    for entry in PettyCashEntry.query.order_by(PettyCashEntry.sequence_number).all():
        amount = as_decimal(entry.amount)
        running = running + amount if entry.transaction_type == TYPE_IN else running - amount
        if as_decimal(entry.balance_after) != running:
            mismatches.append(entry.sequence_number)

    return {
        "balance": to_number(get_petty_cash_balance()),
        "ledger_sum": to_number(running),
        "mismatched_sequence_numbers": mismatches,
        "ok": not mismatches and get_petty_cash_balance() == running,
    }
