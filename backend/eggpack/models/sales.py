from __future__ import annotations

from ..extensions import db
from ..money import to_number
from ..time_utils import to_iso_date, to_utc_z, utcnow

CREDIT_STATUS_OUTSTANDING = "outstanding"
CREDIT_STATUS_PARTIAL = "partial"
CREDIT_STATUS_PAID = "paid"


class Sale(db.Model):
    __tablename__ = "sales"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    sale_date = db.Column(db.Date, nullable=False, index=True)

    total_amount = db.Column(db.Numeric(18, 2), nullable=False)
    discount_amount = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    tax_amount = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    final_amount = db.Column(db.Numeric(18, 2), nullable=False)

    # cash / transfer / credit
    payment_method = db.Column(db.String(16), nullable=False, default="cash")
    bank_account_id = db.Column(db.Integer, db.ForeignKey("bank_accounts.id"), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))
    items = db.relationship("SaleItem", backref="sale", lazy=True, order_by="SaleItem.id")

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_name": self.customer.name if self.customer else None,
            "sale_date": to_iso_date(self.sale_date),
            "total_amount": to_number(self.total_amount),
            "discount_amount": to_number(self.discount_amount),
            "tax_amount": to_number(self.tax_amount),
            "final_amount": to_number(self.final_amount),
            "payment_method": self.payment_method,
            "bank_account_id": self.bank_account_id,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Numeric(14, 3), nullable=False)
    unit_price = db.Column(db.Numeric(18, 2), nullable=False)
    discount_amount = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    total_price = db.Column(db.Numeric(18, 2), nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "quantity": to_number(self.quantity),
            "unit_price": to_number(self.unit_price),
            "discount_amount": to_number(self.discount_amount),
            "total_price": to_number(self.total_price),
        }


class CreditSale(db.Model):
    """
    Receivable opened by a credit sale.

    INVARIANTS:
    - amount_paid + amount_remaining == total_amount after every operation
    - amount_paid never decreases; amount_remaining never goes negative
    - status: outstanding -> partial (repeatable) -> paid; never leaves paid

    Overdue / due-soon are NOT stored. They are derived at read time from
    due_date, status and the current date.

    last_interest_accrual_date guards against accruing interest twice for
    the same day.
    """
    __tablename__ = "credit_sales"
    __table_args__ = (
        db.CheckConstraint("amount_remaining >= 0", name="ck_credit_sales_remaining_non_negative"),
        db.CheckConstraint("amount_paid >= 0", name="ck_credit_sales_paid_non_negative"),
        db.Index("ix_credit_sales_status_due", "status", "due_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)

    total_amount = db.Column(db.Numeric(18, 2), nullable=False)
    amount_paid = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    amount_remaining = db.Column(db.Numeric(18, 2), nullable=False)

    due_date = db.Column(db.Date, nullable=False)
    payment_terms = db.Column(db.String(64), nullable=True)
    # percent per annum, simple interest on overdue balance
    interest_rate = db.Column(db.Numeric(7, 4), nullable=False, default=0)
    # interest added to total_amount so far; total_amount - accrued_interest is the principal
    accrued_interest = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    last_interest_accrual_date = db.Column(db.Date, nullable=True)

    status = db.Column(db.String(16), nullable=False, default=CREDIT_STATUS_OUTSTANDING)
    notes = db.Column(db.Text, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    sale = db.relationship("Sale", backref=db.backref("credit_sale", uselist=False))
    customer = db.relationship("Customer", backref=db.backref("credit_sales", lazy=True))
    payments = db.relationship(
        "CreditPayment",
        backref="credit_sale",
        lazy=True,
        order_by="CreditPayment.id",
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return (
            f"<CreditSale id={self.id} total={self.total_amount} "
            f"remaining={self.amount_remaining} status={self.status}>"
        )

    def to_dict(self) -> dict:
        customer = self.customer
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "sale_date": to_iso_date(self.sale.sale_date) if self.sale else None,
            "customer_id": self.customer_id,
            "customer_name": customer.name if customer else None,
            "customer_phone": customer.phone if customer else None,
            "total_amount": to_number(self.total_amount),
            "amount_paid": to_number(self.amount_paid),
            "amount_remaining": to_number(self.amount_remaining),
            "due_date": to_iso_date(self.due_date),
            "payment_terms": self.payment_terms,
            "interest_rate": to_number(self.interest_rate),
            "accrued_interest": to_number(self.accrued_interest),
            "last_interest_accrual_date": to_iso_date(self.last_interest_accrual_date),
            "status": self.status,
            "notes": self.notes,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class CreditPayment(db.Model):
    """Immutable payment against a credit sale."""
    __tablename__ = "credit_payments"
    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_credit_payments_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    credit_sale_id = db.Column(db.Integer, db.ForeignKey("credit_sales.id"), nullable=False, index=True)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    payment_date = db.Column(db.Date, nullable=False)
    payment_method = db.Column(db.String(16), nullable=False, default="cash")
    reference_number = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "credit_sale_id": self.credit_sale_id,
            "amount": to_number(self.amount),
            "payment_date": to_iso_date(self.payment_date),
            "payment_method": self.payment_method,
            "reference_number": self.reference_number,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }
