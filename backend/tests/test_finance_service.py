"""
Financial transaction log and report tests.
"""

from datetime import date
from decimal import Decimal

import pytest

from eggpack.errors import ValidationError
from eggpack.services import finance_service, petty_cash_service, purchase_service


class TestFinancialLog:

    def test_manual_entry(self, db_session):
        entry = finance_service.record_financial_transaction(
            type="expense", category=" operational ", description="Gaji harian",
            amount="150000", transaction_date="2024-03-05",
        )
        assert entry.category == "operational"
        assert entry.amount == Decimal("150000")
        assert entry.reference_type is None

    @pytest.mark.parametrize("kwargs", [
        {"type": "refund", "category": "x", "description": "x", "amount": 1},
        {"type": "income", "category": "", "description": "x", "amount": 1},
        {"type": "income", "category": "x", "description": "x", "amount": 0},
        {"type": "income", "category": "x", "description": "x", "amount": 1, "transaction_date": None},
    ])
    def test_invalid_entries(self, db_session, kwargs):
        kwargs.setdefault("transaction_date", "2024-03-05")
        with pytest.raises(ValidationError):
            finance_service.record_financial_transaction(**kwargs)

    def test_list_filters_and_order(self, db_session):
        for day, tx_type in ((1, "income"), (3, "expense"), (2, "income")):
            finance_service.record_financial_transaction(
                type=tx_type, category="other", description=f"day {day}",
                amount=100 * day, transaction_date=date(2024, 3, day),
            )

        incomes = finance_service.list_financial_transactions(type="income")
        assert [e.description for e in incomes] == ["day 2", "day 1"]

        ranged = finance_service.list_financial_transactions(
            start_date=date(2024, 3, 2), end_date=date(2024, 3, 3)
        )
        assert [e.description for e in ranged] == ["day 3", "day 2"]


class TestFinancialSummary:

    def test_summary_totals(self, db_session, supplier, flour):
        purchase_service.record_purchase(
            supplier_id=supplier.id, purchase_date="2024-03-02",
            items=[{"raw_material_id": flour.id, "quantity": 10, "unit_price": 2000}],
        )
        petty_cash_service.post_petty_cash(
            transaction_type="in", amount=50000, description="Isi kas",
            transaction_date=date(2024, 3, 3),
        )
        finance_service.record_financial_transaction(
            type="income", category="other", description="Jual kardus bekas",
            amount=5000, transaction_date="2024-04-01",
        )

        report = finance_service.financial_summary(
            start_date=date(2024, 3, 1), end_date=date(2024, 3, 31)
        )

        assert report["total_income"] == 50000
        assert report["total_expense"] == 20000
        assert report["net_profit"] == 30000
        assert report["by_category"]["expense"] == {"purchase": 20000}
        assert report["by_category"]["income"] == {"petty_cash_in": 50000}
        assert len(report["recent_transactions"]) == 2

    def test_inverted_range_rejected(self, db_session):
        with pytest.raises(ValidationError):
            finance_service.financial_summary(start_date=date(2024, 3, 2), end_date=date(2024, 3, 1))

    def test_dashboard(self, db_session, flour, product_a, today):
        summary = finance_service.dashboard_summary(as_of=today)
        assert summary["as_of"] == "2024-03-15"
        assert summary["total_products"] == 1
        assert summary["today_sales_count"] == 0
        assert summary["low_stock_products"] == 1
        assert summary["low_stock_materials"] == 0
        assert summary["total_credit_outstanding"] == 0
