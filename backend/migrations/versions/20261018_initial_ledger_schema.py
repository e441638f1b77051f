"""Initial ledger schema: catalog, purchasing, production, banking, sales and credit

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
    ]


def upgrade():
    # ---- catalog -----------------------------------------------------------
    op.create_table(
        "suppliers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contact_person", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("customer_type", sa.String(16), nullable=False, server_default="umum"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "raw_materials",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("unit", sa.String(32), nullable=False),
        sa.Column("stock_quantity", sa.Numeric(14, 3), nullable=False, server_default=sa.text("0")),
        sa.Column("unit_cost", sa.Numeric(18, 4), nullable=False, server_default=sa.text("0")),
        sa.Column("minimum_stock", sa.Numeric(14, 3), nullable=False, server_default=sa.text("0")),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("unit", sa.String(32), nullable=False),
        sa.Column("stock_quantity", sa.Numeric(14, 3), nullable=False, server_default=sa.text("0")),
        sa.Column("cost_price", sa.Numeric(18, 4), nullable=False, server_default=sa.text("0")),
        sa.Column("selling_price", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("minimum_stock", sa.Numeric(14, 3), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    # ---- financial log -----------------------------------------------------
    op.create_table(
        "financial_transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("category", sa.String(64), nullable=False),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("transaction_date", sa.Date(), nullable=False),
        sa.Column("reference_id", sa.Integer(), nullable=True),
        sa.Column("reference_type", sa.String(32), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("amount > 0", name="ck_financial_transactions_amount_positive"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("financial_transactions", schema=None) as batch_op:
        batch_op.create_index("ix_financial_transactions_category", ["category"], unique=False)
        batch_op.create_index("ix_fin_tx_type_date", ["type", "transaction_date"], unique=False)
        batch_op.create_index("ix_fin_tx_reference", ["reference_type", "reference_id"], unique=False)

    # ---- purchasing --------------------------------------------------------
    op.create_table(
        "purchases",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("supplier_id", sa.Integer(), nullable=False),
        sa.Column("purchase_date", sa.Date(), nullable=False),
        sa.Column("total_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("purchases", schema=None) as batch_op:
        batch_op.create_index("ix_purchases_supplier_id", ["supplier_id"], unique=False)
        batch_op.create_index("ix_purchases_purchase_date", ["purchase_date"], unique=False)

    op.create_table(
        "purchase_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("purchase_id", sa.Integer(), nullable=False),
        sa.Column("raw_material_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 3), nullable=False),
        sa.Column("unit_price", sa.Numeric(18, 4), nullable=False),
        sa.Column("total_price", sa.Numeric(18, 2), nullable=False),
        sa.ForeignKeyConstraint(["purchase_id"], ["purchases.id"]),
        sa.ForeignKeyConstraint(["raw_material_id"], ["raw_materials.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("purchase_items", schema=None) as batch_op:
        batch_op.create_index("ix_purchase_items_purchase_id", ["purchase_id"], unique=False)
        batch_op.create_index("ix_purchase_items_raw_material_id", ["raw_material_id"], unique=False)

    # ---- production --------------------------------------------------------
    op.create_table(
        "production_batches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("batch_number", sa.String(64), nullable=False),
        sa.Column("production_date", sa.Date(), nullable=False),
        sa.Column("total_cost", sa.Numeric(18, 4), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(16), nullable=False, server_default="completed"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("batch_number", name="uq_production_batches_number"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("production_batches", schema=None) as batch_op:
        batch_op.create_index("ix_production_batches_production_date", ["production_date"], unique=False)

    op.create_table(
        "production_inputs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("batch_id", sa.Integer(), nullable=False),
        sa.Column("raw_material_id", sa.Integer(), nullable=False),
        sa.Column("quantity_used", sa.Numeric(14, 3), nullable=False),
        sa.Column("unit_cost", sa.Numeric(18, 4), nullable=False, server_default=sa.text("0")),
        sa.Column("line_cost", sa.Numeric(18, 4), nullable=False, server_default=sa.text("0")),
        sa.ForeignKeyConstraint(["batch_id"], ["production_batches.id"]),
        sa.ForeignKeyConstraint(["raw_material_id"], ["raw_materials.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("production_inputs", schema=None) as batch_op:
        batch_op.create_index("ix_production_inputs_batch_id", ["batch_id"], unique=False)
        batch_op.create_index("ix_production_inputs_raw_material_id", ["raw_material_id"], unique=False)

    op.create_table(
        "production_outputs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("batch_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("quantity_produced", sa.Numeric(14, 3), nullable=False),
        sa.Column("hpp_per_unit", sa.Numeric(18, 4), nullable=True),
        sa.Column("total_hpp", sa.Numeric(18, 4), nullable=True),
        sa.ForeignKeyConstraint(["batch_id"], ["production_batches.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("batch_id", "product_id", name="uq_production_outputs_batch_product"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("production_outputs", schema=None) as batch_op:
        batch_op.create_index("ix_production_outputs_batch_id", ["batch_id"], unique=False)
        batch_op.create_index("ix_production_outputs_product_id", ["product_id"], unique=False)

    # ---- banking -----------------------------------------------------------
    op.create_table(
        "bank_accounts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("bank_name", sa.String(128), nullable=False),
        sa.Column("account_name", sa.String(255), nullable=False),
        sa.Column("account_number", sa.String(64), nullable=False),
        sa.Column("account_type", sa.String(32), nullable=False, server_default="checking"),
        sa.Column("current_balance", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "bank_transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("bank_account_id", sa.Integer(), nullable=False),
        sa.Column("transaction_type", sa.String(16), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("reference_number", sa.String(128), nullable=True),
        sa.Column("transaction_date", sa.Date(), nullable=False),
        sa.Column("balance_after", sa.Numeric(18, 2), nullable=False),
        sa.Column("financial_transaction_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("amount > 0", name="ck_bank_transactions_amount_positive"),
        sa.ForeignKeyConstraint(["bank_account_id"], ["bank_accounts.id"]),
        sa.ForeignKeyConstraint(["financial_transaction_id"], ["financial_transactions.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("bank_transactions", schema=None) as batch_op:
        batch_op.create_index("ix_bank_transactions_bank_account_id", ["bank_account_id"], unique=False)
        batch_op.create_index("ix_bank_tx_account_date", ["bank_account_id", "transaction_date"], unique=False)

    op.create_table(
        "petty_cash",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sequence_number", sa.Integer(), nullable=False),
        sa.Column("transaction_type", sa.String(8), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("reference_number", sa.String(128), nullable=True),
        sa.Column("transaction_date", sa.Date(), nullable=False),
        sa.Column("balance_after", sa.Numeric(18, 2), nullable=False),
        sa.Column("financial_transaction_id", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.String(255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("amount > 0", name="ck_petty_cash_amount_positive"),
        sa.CheckConstraint("balance_after >= 0", name="ck_petty_cash_balance_floor"),
        sa.ForeignKeyConstraint(["financial_transaction_id"], ["financial_transactions.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("sequence_number", name="uq_petty_cash_sequence"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("petty_cash", schema=None) as batch_op:
        batch_op.create_index("ix_petty_cash_transaction_date", ["transaction_date"], unique=False)

    # ---- sales and credit --------------------------------------------------
    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=True),
        sa.Column("sale_date", sa.Date(), nullable=False),
        sa.Column("total_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("discount_amount", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("tax_amount", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("final_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("payment_method", sa.String(16), nullable=False, server_default="cash"),
        sa.Column("bank_account_id", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["bank_account_id"], ["bank_accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("sales", schema=None) as batch_op:
        batch_op.create_index("ix_sales_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_sales_sale_date", ["sale_date"], unique=False)

    op.create_table(
        "sale_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sale_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 3), nullable=False),
        sa.Column("unit_price", sa.Numeric(18, 2), nullable=False),
        sa.Column("discount_amount", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_price", sa.Numeric(18, 2), nullable=False),
        sa.ForeignKeyConstraint(["sale_id"], ["sales.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("sale_items", schema=None) as batch_op:
        batch_op.create_index("ix_sale_items_sale_id", ["sale_id"], unique=False)
        batch_op.create_index("ix_sale_items_product_id", ["product_id"], unique=False)

    op.create_table(
        "credit_sales",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sale_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=True),
        sa.Column("total_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("amount_paid", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("amount_remaining", sa.Numeric(18, 2), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("payment_terms", sa.String(64), nullable=True),
        sa.Column("interest_rate", sa.Numeric(7, 4), nullable=False, server_default=sa.text("0")),
        sa.Column("last_interest_accrual_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="outstanding"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.CheckConstraint("amount_remaining >= 0", name="ck_credit_sales_remaining_non_negative"),
        sa.CheckConstraint("amount_paid >= 0", name="ck_credit_sales_paid_non_negative"),
        sa.ForeignKeyConstraint(["sale_id"], ["sales.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("credit_sales", schema=None) as batch_op:
        batch_op.create_index("ix_credit_sales_sale_id", ["sale_id"], unique=False)
        batch_op.create_index("ix_credit_sales_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_credit_sales_status_due", ["status", "due_date"], unique=False)

    op.create_table(
        "credit_payments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("credit_sale_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("payment_method", sa.String(16), nullable=False, server_default="cash"),
        sa.Column("reference_number", sa.String(128), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("amount > 0", name="ck_credit_payments_amount_positive"),
        sa.ForeignKeyConstraint(["credit_sale_id"], ["credit_sales.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("credit_payments", schema=None) as batch_op:
        batch_op.create_index("ix_credit_payments_credit_sale_id", ["credit_sale_id"], unique=False)


def downgrade():
    for table in (
        "credit_payments",
        "credit_sales",
        "sale_items",
        "sales",
        "petty_cash",
        "bank_transactions",
        "bank_accounts",
        "production_outputs",
        "production_inputs",
        "production_batches",
        "purchase_items",
        "purchases",
        "financial_transactions",
        "products",
        "raw_materials",
        "customers",
        "suppliers",
    ):
        op.drop_table(table)
