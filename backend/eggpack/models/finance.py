from __future__ import annotations

from ..extensions import db
from ..money import to_number
from ..time_utils import to_iso_date, to_utc_z, utcnow

FT_INCOME = "income"
FT_EXPENSE = "expense"


class FinancialTransaction(db.Model):
    """
    Flat income/expense log.

    Append-only: rows are written by purchases, sales, bank postings, petty
    cash and credit payments, and never updated or deleted by normal
    operation. (reference_type, reference_id) is a weak back-pointer to the
    originating row; nothing cascades through it.
    """
    __tablename__ = "financial_transactions"
    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_financial_transactions_amount_positive"),
        db.Index("ix_fin_tx_type_date", "type", "transaction_date"),
        db.Index("ix_fin_tx_reference", "reference_type", "reference_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(16), nullable=False)
    category = db.Column(db.String(64), nullable=False, index=True)
    description = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    transaction_date = db.Column(db.Date, nullable=False)

    reference_id = db.Column(db.Integer, nullable=True)
    reference_type = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<FinancialTransaction id={self.id} {self.type} {self.category} {self.amount}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "category": self.category,
            "description": self.description,
            "amount": to_number(self.amount),
            "transaction_date": to_iso_date(self.transaction_date),
            "reference_id": self.reference_id,
            "reference_type": self.reference_type,
            "created_at": to_utc_z(self.created_at),
        }
