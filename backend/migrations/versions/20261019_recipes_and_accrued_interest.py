"""Add product recipes and track accrued interest on credit sales

Revision ID: 20261019_recipes
Revises: 20261018_initial
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_recipes"
down_revision = "20261018_initial"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "product_recipes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("raw_material_id", sa.Integer(), nullable=False),
        sa.Column("quantity_needed", sa.Numeric(14, 3), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.CheckConstraint("quantity_needed > 0", name="ck_product_recipes_quantity_positive"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.ForeignKeyConstraint(["raw_material_id"], ["raw_materials.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("product_id", "raw_material_id", name="uq_product_recipes_product_material"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("product_recipes", schema=None) as batch_op:
        batch_op.create_index("ix_product_recipes_product_id", ["product_id"], unique=False)

    with op.batch_alter_table("credit_sales", schema=None) as batch_op:
        batch_op.add_column(
            sa.Column("accrued_interest", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0"))
        )


def downgrade():
    with op.batch_alter_table("credit_sales", schema=None) as batch_op:
        batch_op.drop_column("accrued_interest")

    with op.batch_alter_table("product_recipes", schema=None) as batch_op:
        batch_op.drop_index("ix_product_recipes_product_id")
    op.drop_table("product_recipes")
