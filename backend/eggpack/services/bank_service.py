# Overview: Service-layer operations for bank accounts; append-only ledger with a cached running balance.

# backend/eggpack/services/bank_service.py

from __future__ import annotations

from decimal import Decimal

from flask import current_app
from sqlalchemy import case, func

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import BankAccount, BankTransaction
from ..models.finance import FT_EXPENSE, FT_INCOME
from ..money import ZERO, as_decimal, positive_money, quantize_money, to_decimal, to_number
from ..time_utils import parse_business_date, today as business_today
from .concurrency import lock_for_update, unit_of_work
from .finance_service import (
    CATEGORY_BANK_DEPOSIT,
    CATEGORY_BANK_WITHDRAWAL,
    REF_BANK_TRANSACTION,
    append_financial_transaction,
)
"""
Bank Ledger Invariants (authoritative)

- BankTransaction rows are append-only; balance_after is written once.
- credit adds to the balance, debit subtracts. Bank balances have no floor
  (overdraft is allowed).
- BankAccount.current_balance == balance_after of the last entry, ordered by
  (transaction_date, created_at, id). It is written only together with a new
  entry, including manual adjustments.
- An entry dated before the account's latest entry is rejected; balances are
  never recomputed retroactively.
- Optional mirror: one FinancialTransaction per entry (income for credit,
  expense for debit), linked through financial_transaction_id.
"""

TYPE_CREDIT = "credit"
TYPE_DEBIT = "debit"
TRANSACTION_TYPES = (TYPE_CREDIT, TYPE_DEBIT)


def _get_account(account_id: int, *, lock: bool = False) -> BankAccount:
    query = db.session.query(BankAccount).filter_by(id=account_id)
    if lock:
        query = lock_for_update(query)
    account = query.first()
    if account is None:
        raise NotFoundError("Bank account not found")
    return account


def _latest_entry(account_id: int) -> BankTransaction | None:
    return (
        BankTransaction.query
        .filter_by(bank_account_id=account_id)
        .order_by(
            BankTransaction.transaction_date.desc(),
            BankTransaction.created_at.desc(),
            BankTransaction.id.desc(),
        )
        .first()
    )


def _validate_type(transaction_type: str) -> str:
    if transaction_type not in TRANSACTION_TYPES:
        raise ValidationError("transaction_type must be 'credit' or 'debit'")
    return transaction_type


def append_bank_entry(
    account: BankAccount,
    *,
    transaction_type: str,
    amount: Decimal,
    description: str,
    transaction_date,
    reference_number: str | None = None,
    financial_transaction_id: int | None = None,
) -> BankTransaction:
    """
    Append one entry and move the cached balance. Does not commit.

    The caller holds the account row (locked) inside its unit of work.
    """
    _validate_type(transaction_type)
    amount = positive_money(amount, "amount")

    latest = _latest_entry(account.id)
    if latest is not None and transaction_date < latest.transaction_date:
        raise ValidationError(
            f"transaction_date {transaction_date.isoformat()} is before the latest entry "
            f"({latest.transaction_date.isoformat()}); back-dated entries are not supported"
        )

    balance = as_decimal(account.current_balance)
    new_balance = balance + amount if transaction_type == TYPE_CREDIT else balance - amount
    new_balance = quantize_money(new_balance)

    entry = BankTransaction(
        bank_account_id=account.id,
        transaction_type=transaction_type,
        amount=amount,
        description=description,
        reference_number=reference_number,
        transaction_date=transaction_date,
        balance_after=new_balance,
        financial_transaction_id=financial_transaction_id,
    )
    db.session.add(entry)
    account.current_balance = new_balance
    db.session.flush()
    return entry


def _post_bank_transaction_inner(
    *,
    account_id: int,
    transaction_type: str,
    amount,
    description: str,
    transaction_date,
    reference_number: str | None,
    create_financial_transaction: bool,
    category: str | None,
) -> BankTransaction:
    account = _get_account(account_id, lock=True)
    if not account.is_active:
        raise ValidationError("Bank account is inactive")

    amount = positive_money(amount, "amount")

    ft_id = None
    if create_financial_transaction:
        ft = append_financial_transaction(
            type=FT_INCOME if transaction_type == TYPE_CREDIT else FT_EXPENSE,
            category=category or (
                CATEGORY_BANK_DEPOSIT if transaction_type == TYPE_CREDIT else CATEGORY_BANK_WITHDRAWAL
            ),
            description=f"Bank {transaction_type}: {description}",
            amount=amount,
            transaction_date=transaction_date,
            reference_type=REF_BANK_TRANSACTION,
        )
        ft_id = ft.id

    entry = append_bank_entry(
        account,
        transaction_type=transaction_type,
        amount=amount,
        description=description,
        transaction_date=transaction_date,
        reference_number=reference_number,
        financial_transaction_id=ft_id,
    )

    if ft_id is not None:
        ft.reference_id = entry.id
    return entry


def post_bank_transaction(
    *,
    account_id: int,
    transaction_type: str,
    amount,
    description: str,
    transaction_date=None,
    reference_number: str | None = None,
    create_financial_transaction: bool = True,
    category: str | None = None,
) -> dict:
    """
    Post a credit or debit to a bank account.

    Returns {"transaction_id", "new_balance"}.
    """
    _validate_type(transaction_type)
    if not description or not str(description).strip():
        raise ValidationError("description is required")
    entry_date = parse_business_date(transaction_date, "transaction_date", default=business_today())

    with unit_of_work():
        entry = _post_bank_transaction_inner(
            account_id=account_id,
            transaction_type=transaction_type,
            amount=amount,
            description=str(description).strip(),
            transaction_date=entry_date,
            reference_number=reference_number,
            create_financial_transaction=create_financial_transaction,
            category=category,
        )

    return {"transaction_id": entry.id, "new_balance": entry.balance_after}


def adjust_bank_balance(*, account_id: int, new_balance, reason: str | None = None) -> dict:
    """
    Reconcile an account to a statement balance.

    A difference larger than BALANCE_ADJUST_EPSILON is written as a
    synthesized credit/debit entry (no FinancialTransaction mirror), dated
    today or the latest entry's date if that is later. Smaller differences
    are ignored.

    Returns {"previous_balance", "new_balance", "adjusted"}.
    """
    target = quantize_money(to_decimal(new_balance, "new_balance"))
    epsilon = Decimal(str(current_app.config.get("BALANCE_ADJUST_EPSILON", "0.01")))

    with unit_of_work():
        account = _get_account(account_id, lock=True)
        previous = as_decimal(account.current_balance)
        delta = target - previous

        adjusted = abs(delta) > epsilon
        if adjusted:
            entry_date = business_today()
            latest = _latest_entry(account.id)
            if latest is not None and latest.transaction_date > entry_date:
                entry_date = latest.transaction_date

            append_bank_entry(
                account,
                transaction_type=TYPE_CREDIT if delta > 0 else TYPE_DEBIT,
                amount=abs(delta),
                description=f"Balance adjustment: {reason or 'Manual adjustment'}",
                transaction_date=entry_date,
            )
            account.current_balance = target

    if adjusted:
        current_app.logger.info(
            "Bank account %s balance adjusted from %s to %s (%s)",
            account_id, previous, target, reason or "no reason given",
        )

    return {
        "previous_balance": previous,
        "new_balance": target if adjusted else previous,
        "adjusted": adjusted,
    }


def get_bank_account(account_id: int) -> BankAccount:
    return _get_account(account_id)


def list_bank_accounts(*, include_inactive: bool = False) -> list[BankAccount]:
    q = BankAccount.query
    if not include_inactive:
        q = q.filter(BankAccount.is_active.is_(True))
    return q.order_by(BankAccount.bank_name, BankAccount.account_name).all()


def list_bank_transactions(account_id: int, *, limit: int | None = None) -> list[BankTransaction]:
    _get_account(account_id)
    q = BankTransaction.query.filter_by(bank_account_id=account_id).order_by(
        BankTransaction.transaction_date.desc(),
        BankTransaction.created_at.desc(),
        BankTransaction.id.desc(),
    )
    if limit:
        q = q.limit(limit)
    return q.all()


def verify_bank_account(account_id: int) -> dict:
    """
    Compare the cached balance with the ledger.

    ok is True when current_balance equals the last entry's balance_after
    and the signed sum of all entries.
    """
    account = _get_account(account_id)
    cached = as_decimal(account.current_balance)

    latest = _latest_entry(account.id)
    last_balance = as_decimal(latest.balance_after) if latest is not None else ZERO

    signed_sum = (
        db.session.query(
            func.coalesce(
                func.sum(
                    case(
                        (BankTransaction.transaction_type == TYPE_CREDIT, BankTransaction.amount),
                        else_=-BankTransaction.amount,
                    )
                ),
                0,
            )
        )
        .filter(BankTransaction.bank_account_id == account.id)
        .scalar()
    )
    ledger_sum = quantize_money(as_decimal(signed_sum))

    return {
        "account_id": account.id,
        "current_balance": to_number(cached),
        "last_balance_after": to_number(last_balance),
        "ledger_sum": to_number(ledger_sum),
        "ok": cached == last_balance == ledger_sum,
    }
