"""
Purchase and sale flow tests.

Verifies:
- purchases raise material stock, overwrite unit_cost and book an expense
- sales check product stock for every line before writing anything
- cash sales book income, credit sales open a receivable, transfers also
  hit the bank ledger without a second income entry
"""

from datetime import date
from decimal import Decimal

import pytest

from eggpack.errors import InsufficientStockError, NotFoundError, ValidationError
from eggpack.models import BankTransaction, CreditSale, FinancialTransaction, Purchase, Sale
from eggpack.services import inventory_service, production_service, purchase_service, sales_service


@pytest.fixture
def stocked_products(db_session, flour, product_a, product_b):
    production_service.run_production_batch(
        batch_number="SEED-1",
        production_date=date(2024, 3, 1),
        inputs=[{"raw_material_id": flour.id, "quantity_used": 10}],
        outputs=[
            {"product_id": product_a.id, "quantity_produced": 50},
            {"product_id": product_b.id, "quantity_produced": 50},
        ],
    )
    return product_a, product_b


# =============================================================================
# PURCHASES
# =============================================================================


class TestRecordPurchase:

    def test_purchase_updates_stock_and_last_cost(self, db_session, supplier, flour):
        purchase = purchase_service.record_purchase(
            supplier_id=supplier.id,
            purchase_date="2024-03-02",
            items=[{"raw_material_id": flour.id, "quantity": 25, "unit_price": 2200}],
        )

        assert purchase.total_amount == Decimal("55000")
        assert flour.stock_quantity == Decimal("125")
        # overwritten, not averaged
        assert flour.unit_cost == Decimal("2200")

        ft = FinancialTransaction.query.one()
        assert ft.type == "expense"
        assert ft.category == "purchase"
        assert ft.reference_type == "purchase"
        assert ft.reference_id == purchase.id
        assert ft.amount == Decimal("55000")

    def test_unknown_material_writes_nothing(self, db_session, supplier, flour):
        with pytest.raises(NotFoundError):
            purchase_service.record_purchase(
                supplier_id=supplier.id,
                items=[
                    {"raw_material_id": flour.id, "quantity": 5, "unit_price": 100},
                    {"raw_material_id": 5555, "quantity": 5, "unit_price": 100},
                ],
            )

        assert Purchase.query.count() == 0
        assert flour.stock_quantity == Decimal("100")
        assert FinancialTransaction.query.count() == 0

    def test_unknown_supplier(self, db_session, flour):
        with pytest.raises(NotFoundError):
            purchase_service.record_purchase(
                supplier_id=8080, items=[{"raw_material_id": flour.id, "quantity": 1, "unit_price": 1}]
            )

    def test_empty_items_rejected(self, db_session, supplier):
        with pytest.raises(ValidationError):
            purchase_service.record_purchase(supplier_id=supplier.id, items=[])


# =============================================================================
# SALES
# =============================================================================


class TestRecordSale:

    def test_cash_sale_books_income(self, db_session, stocked_products, customer):
        product_a, _ = stocked_products

        sale = sales_service.record_sale(
            sale_date="2024-03-05",
            customer_id=customer.id,
            items=[{"product_id": product_a.id, "quantity": 10, "unit_price": 2500, "discount_amount": 500}],
            discount_amount=1000,
            tax_amount=2000,
        )

        assert sale.total_amount == Decimal("24500")
        assert sale.final_amount == Decimal("25500")
        assert product_a.stock_quantity == Decimal("40")

        ft = FinancialTransaction.query.filter_by(category="sales").one()
        assert ft.type == "income"
        assert ft.amount == Decimal("25500")
        assert ft.reference_id == sale.id

    def test_credit_sale_opens_receivable(self, db_session, stocked_products, customer):
        product_a, _ = stocked_products

        sale = sales_service.record_sale(
            sale_date="2024-03-05",
            customer_id=customer.id,
            items=[{"product_id": product_a.id, "quantity": 4, "unit_price": 2500}],
            payment_method="credit",
            due_date="2024-04-04",
            interest_rate=12,
        )

        credit = CreditSale.query.filter_by(sale_id=sale.id).one()
        assert credit.total_amount == Decimal("10000")
        assert credit.amount_remaining == Decimal("10000")
        assert credit.status == "outstanding"
        assert FinancialTransaction.query.filter_by(category="sales").count() == 0

    def test_credit_sale_requires_due_date(self, db_session, stocked_products, customer):
        product_a, _ = stocked_products
        with pytest.raises(ValidationError):
            sales_service.record_sale(
                customer_id=customer.id,
                items=[{"product_id": product_a.id, "quantity": 1, "unit_price": 2500}],
                payment_method="credit",
            )
        assert Sale.query.count() == 0

    def test_transfer_posts_to_bank_without_second_income(self, db_session, stocked_products, bank_account):
        product_a, _ = stocked_products

        sale = sales_service.record_sale(
            sale_date="2024-03-05",
            items=[{"product_id": product_a.id, "quantity": 2, "unit_price": 2500}],
            payment_method="transfer",
            bank_account_id=bank_account.id,
        )

        entry = BankTransaction.query.filter_by(bank_account_id=bank_account.id).one()
        assert entry.transaction_type == "credit"
        assert entry.amount == Decimal("5000")
        assert entry.financial_transaction_id is None
        assert bank_account.current_balance == Decimal("5000")
        assert FinancialTransaction.query.count() == 1
        assert sale.bank_account_id == bank_account.id

    def test_shortage_on_any_line_writes_nothing(self, db_session, stocked_products):
        product_a, product_b = stocked_products

        with pytest.raises(InsufficientStockError) as exc:
            sales_service.record_sale(
                items=[
                    {"product_id": product_a.id, "quantity": 10, "unit_price": 2500},
                    {"product_id": product_b.id, "quantity": 51, "unit_price": 1500},
                ],
            )

        assert exc.value.details["items"][0]["entity_id"] == product_b.id
        assert product_a.stock_quantity == Decimal("50")
        assert product_b.stock_quantity == Decimal("50")
        assert Sale.query.count() == 0

    def test_repeated_lines_are_summed_before_checking(self, db_session, stocked_products):
        product_a, _ = stocked_products

        with pytest.raises(InsufficientStockError):
            sales_service.record_sale(
                items=[
                    {"product_id": product_a.id, "quantity": 30, "unit_price": 2500},
                    {"product_id": product_a.id, "quantity": 30, "unit_price": 2500},
                ],
            )
        assert product_a.stock_quantity == Decimal("50")

    def test_inactive_product_cannot_be_sold(self, db_session, stocked_products):
        product_a, _ = stocked_products
        product_a.is_active = False
        db_session.commit()

        with pytest.raises(NotFoundError):
            sales_service.record_sale(items=[{"product_id": product_a.id, "quantity": 1, "unit_price": 1}])

    def test_discount_cannot_exceed_total(self, db_session, stocked_products):
        product_a, _ = stocked_products
        with pytest.raises(ValidationError):
            sales_service.record_sale(
                items=[{"product_id": product_a.id, "quantity": 1, "unit_price": 1000}],
                discount_amount=1000,
            )


# =============================================================================
# INVENTORY HELPERS
# =============================================================================


class TestInventoryHelpers:

    def test_adjust_stock_single_entity(self, db_session, flour):
        new_qty = inventory_service.adjust_stock(inventory_service.STOCK_RAW_MATERIAL, flour.id, "-2.5")
        db_session.commit()
        assert new_qty == Decimal("97.5")
        assert flour.stock_quantity == Decimal("97.5")

    def test_adjust_stock_rejects_negative_product(self, db_session, product_a):
        with pytest.raises(InsufficientStockError):
            inventory_service.adjust_stock(inventory_service.STOCK_PRODUCT, product_a.id, -1)
        db_session.rollback()

    def test_unknown_entity_kind(self, db_session):
        with pytest.raises(ValidationError):
            inventory_service.adjust_stock("widget", 1, 1)

    def test_low_stock(self, db_session, flour, film, product_a):
        report = inventory_service.list_low_stock()

        # products start at 0 with minimum 0
        assert [p["id"] for p in report["products"]] == [product_a.id]
        assert report["raw_materials"] == []

        inventory_service.adjust_stock(inventory_service.STOCK_RAW_MATERIAL, film.id, -16)
        db_session.commit()
        report = inventory_service.list_low_stock()
        assert [m["id"] for m in report["raw_materials"]] == [film.id]
