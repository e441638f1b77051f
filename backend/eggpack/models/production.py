from __future__ import annotations

from ..extensions import db
from ..money import to_number
from ..time_utils import to_iso_date, to_utc_z, utcnow

BATCH_STATUS_COMPLETED = "completed"


class ProductionBatch(db.Model):
    """
    One production run, created atomically with its inputs and outputs.

    LIFECYCLE: single state. A batch is written as "completed" and never
    edited or deleted afterwards.

    batch_number uniqueness is enforced by the database constraint only.
    """
    __tablename__ = "production_batches"
    __table_args__ = (
        db.UniqueConstraint("batch_number", name="uq_production_batches_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    batch_number = db.Column(db.String(64), nullable=False)
    production_date = db.Column(db.Date, nullable=False, index=True)
    total_cost = db.Column(db.Numeric(18, 4), nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default=BATCH_STATUS_COMPLETED)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    inputs = db.relationship(
        "ProductionInput",
        backref="batch",
        lazy=True,
        order_by="ProductionInput.id",
    )
    outputs = db.relationship(
        "ProductionOutput",
        backref="batch",
        lazy=True,
        order_by="ProductionOutput.id",
    )

    def __repr__(self) -> str:
        return f"<ProductionBatch id={self.id} batch_number={self.batch_number!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "batch_number": self.batch_number,
            "production_date": to_iso_date(self.production_date),
            "total_cost": to_number(self.total_cost),
            "status": self.status,
            "notes": self.notes,
            "output_count": len(self.outputs),
            "total_output_quantity": to_number(sum(o.quantity_produced for o in self.outputs)),
            "created_at": to_utc_z(self.created_at),
        }


class ProductionInput(db.Model):
    """
    Raw material consumed by a batch.

    unit_cost snapshots the material's unit_cost at run time so the batch
    detail stays reproducible after later purchases overwrite it.
    """
    __tablename__ = "production_inputs"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    batch_id = db.Column(db.Integer, db.ForeignKey("production_batches.id"), nullable=False, index=True)
    raw_material_id = db.Column(db.Integer, db.ForeignKey("raw_materials.id"), nullable=False, index=True)
    quantity_used = db.Column(db.Numeric(14, 3), nullable=False)
    unit_cost = db.Column(db.Numeric(18, 4), nullable=False, default=0)
    line_cost = db.Column(db.Numeric(18, 4), nullable=False, default=0)

    raw_material = db.relationship("RawMaterial")

    def to_dict(self) -> dict:
        material = self.raw_material
        return {
            "id": self.id,
            "batch_id": self.batch_id,
            "raw_material_id": self.raw_material_id,
            "raw_material_name": material.name if material else None,
            "raw_material_unit": material.unit if material else None,
            "quantity_used": to_number(self.quantity_used),
            "unit_cost": to_number(self.unit_cost),
            "total_cost": to_number(self.line_cost),
        }


class ProductionOutput(db.Model):
    __tablename__ = "production_outputs"
    __table_args__ = (
        db.UniqueConstraint("batch_id", "product_id", name="uq_production_outputs_batch_product"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    batch_id = db.Column(db.Integer, db.ForeignKey("production_batches.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity_produced = db.Column(db.Numeric(14, 3), nullable=False)

    # NULL when the batch had no cost to allocate
    hpp_per_unit = db.Column(db.Numeric(18, 4), nullable=True)
    total_hpp = db.Column(db.Numeric(18, 4), nullable=True)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        product = self.product
        return {
            "id": self.id,
            "batch_id": self.batch_id,
            "product_id": self.product_id,
            "product_name": product.name if product else None,
            "product_unit": product.unit if product else None,
            "quantity_produced": to_number(self.quantity_produced),
            "hpp_per_unit": to_number(self.hpp_per_unit),
            "total_hpp": to_number(self.total_hpp),
        }
