from __future__ import annotations

from ..extensions import db
from ..money import to_number
from ..time_utils import to_utc_z, utcnow


class Supplier(db.Model):
    __tablename__ = "suppliers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    contact_person = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Supplier id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact_person": self.contact_person,
            "phone": self.phone,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class Customer(db.Model):
    """
    Buyer of finished products.

    customer_type selects the price tier (umum, toko, grosir). Tier pricing
    itself lives outside the ledger; sale lines carry the agreed unit price.
    """
    __tablename__ = "customers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(64), nullable=True)
    customer_type = db.Column(db.String(16), nullable=False, default="umum")
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Customer id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "customer_type": self.customer_type,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class RawMaterial(db.Model):
    """
    Raw material (egg trays, pulp, packaging film, ...).

    STOCK: stock_quantity is a counter moved only by purchases (+) and
    production consumption (-), inside the unit of work of that event.

    COST: unit_cost is the LAST purchase price, overwritten on every
    purchase receipt. It is not a moving average; the production cost
    allocator reads it as-is.
    """
    __tablename__ = "raw_materials"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    unit = db.Column(db.String(32), nullable=False)

    stock_quantity = db.Column(db.Numeric(14, 3), nullable=False, default=0)
    unit_cost = db.Column(db.Numeric(18, 4), nullable=False, default=0)
    minimum_stock = db.Column(db.Numeric(14, 3), nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<RawMaterial id={self.id} name={self.name!r} stock={self.stock_quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "unit": self.unit,
            "stock_quantity": to_number(self.stock_quantity),
            "unit_cost": to_number(self.unit_cost),
            "minimum_stock": to_number(self.minimum_stock),
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Finished product.

    cost_price holds the HPP of the most recent production batch that
    produced this product (last batch wins), or the recipe standard cost when
    a recipe was set or recalculated after that batch. selling_price is
    maintained by the catalog and only read here.
    """
    __tablename__ = "products"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    unit = db.Column(db.String(32), nullable=False)

    stock_quantity = db.Column(db.Numeric(14, 3), nullable=False, default=0)
    cost_price = db.Column(db.Numeric(18, 4), nullable=False, default=0)
    selling_price = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    minimum_stock = db.Column(db.Numeric(14, 3), nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock_quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "unit": self.unit,
            "stock_quantity": to_number(self.stock_quantity),
            "cost_price": to_number(self.cost_price),
            "selling_price": to_number(self.selling_price),
            "minimum_stock": to_number(self.minimum_stock),
            "is_active": self.is_active,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductRecipe(db.Model):
    """
    Bill of materials for one unit of a product.

    Drives the standard cost: SUM(quantity_needed * raw material unit_cost).
    """
    __tablename__ = "product_recipes"
    __table_args__ = (
        db.UniqueConstraint("product_id", "raw_material_id", name="uq_product_recipes_product_material"),
        db.CheckConstraint("quantity_needed > 0", name="ck_product_recipes_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    raw_material_id = db.Column(db.Integer, db.ForeignKey("raw_materials.id"), nullable=False)
    quantity_needed = db.Column(db.Numeric(14, 3), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    product = db.relationship("Product", backref=db.backref("recipe_items", lazy=True))
    raw_material = db.relationship("RawMaterial")

    def to_dict(self) -> dict:
        material = self.raw_material
        return {
            "id": self.id,
            "product_id": self.product_id,
            "raw_material_id": self.raw_material_id,
            "raw_material_name": material.name if material else None,
            "unit": material.unit if material else None,
            "unit_cost": to_number(material.unit_cost) if material else None,
            "quantity_needed": to_number(self.quantity_needed),
        }
