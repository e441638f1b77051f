from __future__ import annotations

from ..extensions import db
from ..money import to_number
from ..time_utils import to_iso_date, to_utc_z, utcnow


class BankAccount(db.Model):
    """
    Bank account with a cached running balance.

    INVARIANT: current_balance equals balance_after of the account's last
    BankTransaction (0 when there is none). It is only written together with
    an appended transaction, including manual adjustments which synthesize
    their own transaction.
    """
    __tablename__ = "bank_accounts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    bank_name = db.Column(db.String(128), nullable=False)
    account_name = db.Column(db.String(255), nullable=False)
    account_number = db.Column(db.String(64), nullable=False)
    account_type = db.Column(db.String(32), nullable=False, default="checking")

    current_balance = db.Column(db.Numeric(18, 2), nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    notes = db.Column(db.Text, nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<BankAccount id={self.id} bank={self.bank_name!r} balance={self.current_balance}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bank_name": self.bank_name,
            "account_name": self.account_name,
            "account_number": self.account_number,
            "account_type": self.account_type,
            "current_balance": to_number(self.current_balance),
            "is_active": self.is_active,
            "notes": self.notes,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class BankTransaction(db.Model):
    """
    Append-only bank ledger entry.

    balance_after is the account balance immediately after this entry and is
    never rewritten. Entries are ordered by (transaction_date, created_at, id).
    """
    __tablename__ = "bank_transactions"
    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_bank_transactions_amount_positive"),
        db.Index("ix_bank_tx_account_date", "bank_account_id", "transaction_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bank_account_id = db.Column(db.Integer, db.ForeignKey("bank_accounts.id"), nullable=False, index=True)

    # credit (money in) / debit (money out)
    transaction_type = db.Column(db.String(16), nullable=False)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    description = db.Column(db.String(255), nullable=False)
    reference_number = db.Column(db.String(128), nullable=True)
    transaction_date = db.Column(db.Date, nullable=False)
    balance_after = db.Column(db.Numeric(18, 2), nullable=False)

    financial_transaction_id = db.Column(
        db.Integer, db.ForeignKey("financial_transactions.id"), nullable=True
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    account = db.relationship("BankAccount", backref=db.backref("transactions", lazy="dynamic"))

    def to_dict(self) -> dict:
        account = self.account
        return {
            "id": self.id,
            "bank_account_id": self.bank_account_id,
            "bank_name": account.bank_name if account else None,
            "account_name": account.account_name if account else None,
            "transaction_type": self.transaction_type,
            "amount": to_number(self.amount),
            "description": self.description,
            "reference_number": self.reference_number,
            "transaction_date": to_iso_date(self.transaction_date),
            "balance_after": to_number(self.balance_after),
            "financial_transaction_id": self.financial_transaction_id,
            "created_at": to_utc_z(self.created_at),
        }


class PettyCashEntry(db.Model):
    """
    Entry in the single petty-cash till.

    The till has no account row; its balance is balance_after of the entry
    with the highest sequence_number. sequence_number is unique so two
    concurrent postings cannot both extend the same predecessor.
    """
    __tablename__ = "petty_cash"
    __table_args__ = (
        db.UniqueConstraint("sequence_number", name="uq_petty_cash_sequence"),
        db.CheckConstraint("amount > 0", name="ck_petty_cash_amount_positive"),
        db.CheckConstraint("balance_after >= 0", name="ck_petty_cash_balance_floor"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sequence_number = db.Column(db.Integer, nullable=False)

    # in / out
    transaction_type = db.Column(db.String(8), nullable=False)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    description = db.Column(db.String(255), nullable=False)
    reference_number = db.Column(db.String(128), nullable=True)
    transaction_date = db.Column(db.Date, nullable=False, index=True)
    balance_after = db.Column(db.Numeric(18, 2), nullable=False)

    financial_transaction_id = db.Column(
        db.Integer, db.ForeignKey("financial_transactions.id"), nullable=True
    )
    created_by = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sequence_number": self.sequence_number,
            "transaction_type": self.transaction_type,
            "amount": to_number(self.amount),
            "description": self.description,
            "reference_number": self.reference_number,
            "transaction_date": to_iso_date(self.transaction_date),
            "balance_after": to_number(self.balance_after),
            "financial_transaction_id": self.financial_transaction_id,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }
