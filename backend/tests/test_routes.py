"""
HTTP surface tests.

Verifies:
- endpoints return JSON with the documented status codes
- ledger errors map to 400 / 404 / 409 with an "error" message
- Decimal values are serialized as JSON numbers
"""

import pytest


# =============================================================================
# HEALTH
# =============================================================================


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "ok"
    assert body["database"]["status"] == "healthy"


# =============================================================================
# PRODUCTION
# =============================================================================


class TestProductionRoutes:

    def _run(self, client, flour, product_a, product_b, **overrides):
        payload = {
            "batch_number": "B-001",
            "production_date": "2024-03-01",
            "inputs": [{"raw_material_id": flour.id, "quantity_used": 10}],
            "outputs": [
                {"product_id": product_a.id, "quantity_produced": 50},
                {"product_id": product_b.id, "quantity_produced": 50},
            ],
        }
        payload.update(overrides)
        return client.post("/api/production", json=payload)

    def test_run_batch(self, client, flour, product_a, product_b):
        resp = self._run(client, flour, product_a, product_b)
        assert resp.status_code == 201

        body = resp.get_json()
        assert body["total_cost"] == 20000
        assert [o["hpp_per_unit"] for o in body["outputs"]] == [200, 200]

        detail = client.get(f"/api/production/{body['batch_id']}").get_json()
        assert detail["inputs"][0]["unit_cost"] == 2000
        assert detail["inputs"][0]["total_cost"] == 20000
        assert len(detail["outputs"]) == 2

    def test_shortage_is_400_with_details(self, client, flour, product_a, product_b):
        resp = self._run(
            client, flour, product_a, product_b,
            inputs=[{"raw_material_id": flour.id, "quantity_used": 150}],
        )
        assert resp.status_code == 400
        body = resp.get_json()
        assert "Insufficient stock" in body["error"]
        assert body["details"]["items"][0]["available"] == 100

        batches = client.get("/api/production").get_json()["batches"]
        assert batches == []

    def test_unknown_product_is_404(self, client, flour, product_a, product_b):
        resp = self._run(
            client, flour, product_a, product_b,
            outputs=[{"product_id": 4242, "quantity_produced": 1}],
        )
        assert resp.status_code == 404

    def test_missing_batch_is_404(self, client):
        assert client.get("/api/production/999").status_code == 404


# =============================================================================
# PETTY CASH
# =============================================================================


class TestPettyCashRoutes:

    def test_overdraw_is_409(self, client):
        resp = client.post("/api/petty-cash", json={
            "transaction_type": "in", "amount": 100000, "description": "Isi kas",
            "transaction_date": "2024-03-01",
        })
        assert resp.status_code == 201
        assert resp.get_json()["new_balance"] == 100000

        resp = client.post("/api/petty-cash", json={
            "transaction_type": "out", "amount": 150000, "description": "Beli lem",
            "transaction_date": "2024-03-01",
        })
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "Insufficient petty cash balance"

        assert client.get("/api/petty-cash/balance").get_json()["balance"] == 100000
        assert len(client.get("/api/petty-cash").get_json()["entries"]) == 1

    def test_invalid_type_is_400(self, client):
        resp = client.post("/api/petty-cash", json={
            "transaction_type": "sideways", "amount": 1, "description": "x",
        })
        assert resp.status_code == 400


# =============================================================================
# BANKING
# =============================================================================


class TestBankingRoutes:

    def test_post_and_adjust(self, client):
        account = client.post("/api/bank-accounts", json={
            "bank_name": "BRI", "account_name": "Ops", "account_number": "0001",
            "opening_balance": 1000000, "opening_date": "2024-03-01",
        }).get_json()
        assert account["current_balance"] == 1000000

        resp = client.post("/api/bank-transactions", json={
            "bank_account_id": account["id"], "transaction_type": "debit",
            "amount": 250000, "description": "Bayar supplier",
            "transaction_date": "2024-03-02", "create_financial_transaction": False,
        })
        assert resp.status_code == 201
        assert resp.get_json()["new_balance"] == 750000

        resp = client.post(f"/api/bank-accounts/{account['id']}/adjust-balance", json={
            "new_balance": 740000, "reason": "Biaya admin",
        })
        assert resp.get_json() == {"previous_balance": 750000, "new_balance": 740000, "adjusted": True}

        txs = client.get(f"/api/bank-accounts/{account['id']}/transactions").get_json()["transactions"]
        assert len(txs) == 3
        assert client.get(f"/api/bank-accounts/{account['id']}/verify").get_json()["ok"] is True

        # opening balance and adjustment never hit the log; the debit opted out
        assert client.get("/api/financial-transactions").get_json()["transactions"] == []

    def test_unknown_account_is_404(self, client):
        resp = client.post("/api/bank-transactions", json={
            "bank_account_id": 9999, "transaction_type": "credit", "amount": 1, "description": "x",
        })
        assert resp.status_code == 404


# =============================================================================
# CREDIT
# =============================================================================


class TestCreditRoutes:

    def _credit_sale(self, client, product_id, customer_id, quantity, due_date="2024-04-01"):
        resp = client.post("/api/sales", json={
            "customer_id": customer_id,
            "sale_date": "2024-03-01",
            "items": [{"product_id": product_id, "quantity": quantity, "unit_price": 2500}],
            "payment_method": "credit",
            "due_date": due_date,
            "interest_rate": 12,
        })
        assert resp.status_code == 201
        return resp.get_json()["credit_sale_id"]

    @pytest.fixture
    def stocked(self, client, flour, product_a, product_b):
        client.post("/api/production", json={
            "batch_number": "SEED",
            "production_date": "2024-02-28",
            "inputs": [{"raw_material_id": flour.id, "quantity_used": 5}],
            "outputs": [{"product_id": product_a.id, "quantity_produced": 200}],
        })
        return product_a

    def test_payment_and_overpayment(self, client, stocked, customer):
        credit_id = self._credit_sale(client, stocked.id, customer.id, 40)

        resp = client.post("/api/credit-payments", json={
            "credit_sale_id": credit_id, "amount": 40000, "payment_date": "2024-03-05",
        })
        assert resp.status_code == 201
        assert resp.get_json()["new_amount_remaining"] == 60000
        assert resp.get_json()["new_status"] == "partial"

        resp = client.post("/api/credit-payments", json={
            "credit_sale_id": credit_id, "payment_amount": 60001, "payment_date": "2024-03-06",
        })
        assert resp.status_code == 409

        payments = client.get(f"/api/credit-sales/{credit_id}/payments").get_json()["payments"]
        assert len(payments) == 1

    def test_batch_reports_errors_and_keeps_successes(self, client, stocked, customer):
        small = self._credit_sale(client, stocked.id, customer.id, 20)  # 50,000
        large = self._credit_sale(client, stocked.id, customer.id, 80)  # 200,000

        resp = client.post("/api/credit-payments/batch", json={
            "credit_sale_ids": [small, large], "amount": 100000, "payment_date": "2024-03-10",
        })
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["processed"] == 1
        assert body["errors"][0]["credit_sale_id"] == small
        assert body["results"][0]["new_amount_remaining"] == 100000

    def test_calculate_interest_and_reminders(self, client, stocked, customer):
        credit_id = self._credit_sale(client, stocked.id, customer.id, 40, due_date="2024-03-01")

        resp = client.post("/api/credit-sales/calculate-interest", json={"as_of": "2024-03-31"})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["processed"] == 1
        assert body["results"][0]["credit_sale_id"] == credit_id
        assert body["results"][0]["days_overdue"] == 30

        reminders = client.get("/api/credit-sales/reminders?as_of=2024-03-31").get_json()
        assert [c["id"] for c in reminders["overdue"]] == [credit_id]

    def test_bad_date_is_400(self, client):
        resp = client.get("/api/credit-sales/reminders?as_of=31-03-2024")
        assert resp.status_code == 400

    def test_payment_without_credit_sale_id_is_400(self, client):
        resp = client.post("/api/credit-payments", json={"amount": 1000, "payment_date": "2024-03-05"})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "credit_sale_id is required"

    def test_send_reminder(self, client, stocked, customer):
        credit_id = self._credit_sale(client, stocked.id, customer.id, 4)

        resp = client.post(f"/api/credit-sales/{credit_id}/send-reminder", json={"method": "sms"})
        assert resp.status_code == 200
        assert resp.get_json()["message"] == "Reminder sent to Toko Sari"
        assert resp.get_json()["method"] == "sms"

        assert client.post("/api/credit-sales/9999/send-reminder").status_code == 404


# =============================================================================
# PRODUCT RECIPES
# =============================================================================


class TestRecipeRoutes:

    def test_set_get_and_recalculate(self, client, flour, product_a):
        resp = client.post(f"/api/products/{product_a.id}/recipe", json={
            "items": [{"raw_material_id": flour.id, "quantity_needed": 0.5}],
        })
        assert resp.status_code == 200
        assert resp.get_json()["cost_price"] == 1000

        items = client.get(f"/api/products/{product_a.id}/recipe").get_json()["items"]
        assert [(i["raw_material_id"], i["quantity_needed"]) for i in items] == [(flour.id, 0.5)]

        resp = client.post("/api/products/recalculate-costs")
        assert resp.status_code == 200
        assert resp.get_json()["updated"] == [
            {"product_id": product_a.id, "previous_cost_price": 1000, "cost_price": 1000}
        ]

    def test_unknown_product_is_404(self, client):
        assert client.get("/api/products/777/recipe").status_code == 404


# =============================================================================
# FINANCE
# =============================================================================


class TestFinanceRoutes:

    def test_manual_entry_and_report(self, client):
        resp = client.post("/api/financial-transactions", json={
            "type": "expense", "category": "operational", "description": "Listrik Maret",
            "amount": 350000, "transaction_date": "2024-03-05",
        })
        assert resp.status_code == 201

        report = client.get("/api/financial-reports?start_date=2024-03-01&end_date=2024-03-31").get_json()
        assert report["total_expense"] == 350000
        assert report["net_profit"] == -350000
        assert report["by_category"]["expense"]["operational"] == 350000

    def test_invalid_type_is_400(self, client):
        resp = client.post("/api/financial-transactions", json={
            "type": "transfer", "category": "x", "description": "x", "amount": 1,
            "transaction_date": "2024-03-05",
        })
        assert resp.status_code == 400

    def test_low_stock(self, client, flour, product_a):
        body = client.get("/api/low-stock").get_json()
        assert [p["id"] for p in body["products"]] == [product_a.id]
