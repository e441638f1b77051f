# Overview: Create helpers for the catalog rows the ledger reads, plus recipe-based standard costing.

from __future__ import annotations

from decimal import Decimal

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import BankAccount, Customer, Product, ProductRecipe, RawMaterial, Supplier
from ..money import (
    ZERO,
    as_decimal,
    non_negative_decimal,
    positive_decimal,
    positive_money,
    quantize_cost,
    quantize_money,
    quantize_quantity,
    to_decimal,
)
from ..time_utils import parse_business_date, today as business_today
from .concurrency import unit_of_work
from .inventory_service import STOCK_RAW_MATERIAL, load_stock_rows

CUSTOMER_TYPES = ("umum", "toko", "grosir")
ACCOUNT_TYPES = ("checking", "savings", "current")


def _require_text(value, field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required")
    return str(value).strip()


def create_supplier(*, name: str, contact_person: str | None = None, phone: str | None = None) -> Supplier:
    supplier = Supplier(name=_require_text(name, "name"), contact_person=contact_person, phone=phone)
    with unit_of_work():
        db.session.add(supplier)
    return supplier


def create_customer(*, name: str, phone: str | None = None, customer_type: str = "umum") -> Customer:
    if customer_type not in CUSTOMER_TYPES:
        raise ValidationError(f"customer_type must be one of {list(CUSTOMER_TYPES)}")
    customer = Customer(name=_require_text(name, "name"), phone=phone, customer_type=customer_type)
    with unit_of_work():
        db.session.add(customer)
    return customer


def create_raw_material(
    *,
    name: str,
    unit: str,
    stock_quantity=0,
    unit_cost=0,
    minimum_stock=0,
) -> RawMaterial:
    material = RawMaterial(
        name=_require_text(name, "name"),
        unit=_require_text(unit, "unit"),
        stock_quantity=quantize_quantity(non_negative_decimal(stock_quantity, "stock_quantity")),
        unit_cost=quantize_cost(non_negative_decimal(unit_cost, "unit_cost")),
        minimum_stock=quantize_quantity(non_negative_decimal(minimum_stock, "minimum_stock")),
    )
    with unit_of_work():
        db.session.add(material)
    return material


def create_product(
    *,
    name: str,
    unit: str,
    selling_price,
    stock_quantity=0,
    cost_price=0,
    minimum_stock=0,
    description: str | None = None,
    is_active: bool = True,
) -> Product:
    product = Product(
        name=_require_text(name, "name"),
        unit=_require_text(unit, "unit"),
        description=description,
        selling_price=positive_money(selling_price, "selling_price"),
        stock_quantity=quantize_quantity(non_negative_decimal(stock_quantity, "stock_quantity")),
        cost_price=quantize_cost(non_negative_decimal(cost_price, "cost_price")),
        minimum_stock=quantize_quantity(non_negative_decimal(minimum_stock, "minimum_stock")),
        is_active=is_active,
    )
    with unit_of_work():
        db.session.add(product)
    return product


def create_bank_account(
    *,
    bank_name: str,
    account_name: str,
    account_number: str,
    account_type: str = "checking",
    opening_balance=0,
    opening_date=None,
    notes: str | None = None,
) -> BankAccount:
    """
    Create a bank account.

    A non-zero opening balance is written as the account's first ledger entry
    (credit, or debit for an overdrawn account) so the cached balance always
    matches the ledger.
    """
    from .bank_service import TYPE_CREDIT, TYPE_DEBIT, append_bank_entry

    if account_type not in ACCOUNT_TYPES:
        raise ValidationError(f"account_type must be one of {list(ACCOUNT_TYPES)}")
    opening = quantize_money(to_decimal(opening_balance, "opening_balance"))
    opened_on = parse_business_date(opening_date, "opening_date", default=business_today())

    account = BankAccount(
        bank_name=_require_text(bank_name, "bank_name"),
        account_name=_require_text(account_name, "account_name"),
        account_number=_require_text(account_number, "account_number"),
        account_type=account_type,
        current_balance=ZERO,
        notes=notes,
    )
    with unit_of_work():
        db.session.add(account)
        db.session.flush()
        if opening != ZERO:
            append_bank_entry(
                account,
                transaction_type=TYPE_CREDIT if opening > 0 else TYPE_DEBIT,
                amount=abs(opening),
                description="Opening balance",
                transaction_date=opened_on,
            )
    return account


# =============================================================================
# Recipes (standard cost)
# =============================================================================

def _get_product(product_id) -> Product:
    if not isinstance(product_id, int) or isinstance(product_id, bool):
        raise ValidationError("product_id is required")
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def _normalize_recipe_items(items) -> list[tuple[int, Decimal]]:
    if items is None:
        items = []
    if not isinstance(items, (list, tuple)):
        raise ValidationError("items must be a list")

    normalized = []
    seen = set()
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{idx}] must be an object")
        material_id = item.get("raw_material_id")
        if not isinstance(material_id, int) or isinstance(material_id, bool):
            raise ValidationError(f"items[{idx}].raw_material_id is required")
        if material_id in seen:
            raise ValidationError(f"items[{idx}].raw_material_id appears more than once")
        seen.add(material_id)
        qty = quantize_quantity(positive_decimal(item.get("quantity_needed"), f"items[{idx}].quantity_needed"))
        if qty <= ZERO:
            raise ValidationError(f"items[{idx}].quantity_needed must be positive")
        normalized.append((material_id, qty))
    return normalized


def compute_standard_cost(recipe_items) -> Decimal:
    """SUM(quantity_needed * unit_cost) at the materials' current unit_cost."""
    total = sum(
        (as_decimal(item.quantity_needed) * as_decimal(item.raw_material.unit_cost) for item in recipe_items),
        ZERO,
    )
    return quantize_cost(total)


def get_product_recipe(product_id: int) -> list[ProductRecipe]:
    _get_product(product_id)
    return ProductRecipe.query.filter_by(product_id=product_id).order_by(ProductRecipe.id).all()


def set_product_recipe(product_id: int, items) -> Product:
    """
    Replace a product's recipe and reprice it at standard cost.

    An empty item list clears the recipe and leaves cost_price as it is.
    """
    lines = _normalize_recipe_items(items)
    with unit_of_work():
        product = _get_product(product_id)
        load_stock_rows(STOCK_RAW_MATERIAL, [mid for mid, _ in lines], lock=False)

        ProductRecipe.query.filter_by(product_id=product.id).delete()
        for material_id, qty in lines:
            db.session.add(ProductRecipe(product_id=product.id, raw_material_id=material_id, quantity_needed=qty))
        db.session.flush()

        if lines:
            product.cost_price = compute_standard_cost(
                ProductRecipe.query.filter_by(product_id=product.id).all()
            )
    return product


def recalculate_product_costs() -> list[dict]:
    """
    Reprice every product that has a recipe from current material unit costs.

    Products without a recipe keep their cost_price (batch HPP).
    """
    updated = []
    with unit_of_work():
        recipes: dict[int, list[ProductRecipe]] = {}
        for item in ProductRecipe.query.order_by(ProductRecipe.product_id, ProductRecipe.id).all():
            recipes.setdefault(item.product_id, []).append(item)

        for product_id, recipe_items in recipes.items():
            product = recipe_items[0].product
            previous = as_decimal(product.cost_price)
            product.cost_price = compute_standard_cost(recipe_items)
            updated.append({
                "product_id": product_id,
                "previous_cost_price": previous,
                "cost_price": product.cost_price,
            })
    return updated
