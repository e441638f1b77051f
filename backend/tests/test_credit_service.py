"""
Credit sale tests.

Verifies:
- payments amortize the receivable and derive the status
- overpayment is rejected with nothing written
- batch payments keep their successes and report failures
- interest accrues once per day, on principal only
- missing or malformed ids are validation errors
- reminders are logged and confirmed
- overdue / due-soon classification is a pure read-side function
"""

import logging
from datetime import date, timedelta
from decimal import Decimal

import pytest

from eggpack.errors import ExceedsBalanceError, NotFoundError, ValidationError
from eggpack.extensions import db
from eggpack.models import CreditPayment, CreditSale, FinancialTransaction, Sale
from eggpack.services import credit_service
from eggpack.services.credit_service import (
    DUE_ON_TIME,
    DUE_OVERDUE,
    DUE_SOON,
    classify_due_status,
)


def _open_credit(customer, total, due_date=date(2024, 4, 1), interest_rate=0):
    sale = Sale(
        customer_id=customer.id,
        sale_date=date(2024, 3, 1),
        total_amount=Decimal(total),
        final_amount=Decimal(total),
        payment_method="credit",
    )
    db.session.add(sale)
    db.session.commit()
    credit_id = credit_service.open_credit_sale(
        sale_id=sale.id,
        customer_id=customer.id,
        total_amount=total,
        due_date=due_date,
        payment_terms="NET 30",
        interest_rate=interest_rate,
    )
    return db.session.get(CreditSale, credit_id)


def _pay(credit_id, amount, on=date(2024, 3, 10)):
    return credit_service.record_credit_payment(
        credit_sale_id=credit_id, amount=amount, payment_date=on
    )


def _assert_amortized(credit):
    assert credit.amount_paid + credit.amount_remaining == credit.total_amount


# =============================================================================
# OPENING
# =============================================================================


class TestOpenCreditSale:

    def test_initial_state(self, db_session, customer):
        credit = _open_credit(customer, 1000000)

        assert credit.amount_paid == Decimal("0")
        assert credit.amount_remaining == Decimal("1000000")
        assert credit.status == "outstanding"
        _assert_amortized(credit)

    def test_unknown_sale(self, db_session, customer):
        with pytest.raises(NotFoundError):
            credit_service.open_credit_sale(
                sale_id=4040, customer_id=customer.id, total_amount=100, due_date="2024-04-01"
            )

    def test_due_date_required(self, db_session, customer):
        with pytest.raises(ValidationError):
            credit_service.open_credit_sale(
                sale_id=1, customer_id=customer.id, total_amount=100, due_date=None
            )


# =============================================================================
# PAYMENTS
# =============================================================================


class TestRecordCreditPayment:

    def test_partial_then_paid(self, db_session, customer):
        credit = _open_credit(customer, 1000000)

        first = _pay(credit.id, 400000)
        assert first["new_amount_paid"] == Decimal("400000")
        assert first["new_amount_remaining"] == Decimal("600000")
        assert first["new_status"] == "partial"

        second = _pay(credit.id, 600000)
        assert second["new_amount_paid"] == Decimal("1000000")
        assert second["new_amount_remaining"] == Decimal("0")
        assert second["new_status"] == "paid"
        _assert_amortized(credit)

        with pytest.raises(ExceedsBalanceError):
            _pay(credit.id, 1)

        assert credit.status == "paid"
        assert CreditPayment.query.filter_by(credit_sale_id=credit.id).count() == 2

    def test_overpayment_rejected_without_writes(self, db_session, customer):
        credit = _open_credit(customer, 50000)

        with pytest.raises(ExceedsBalanceError):
            _pay(credit.id, 50000.01)

        assert credit.amount_paid == Decimal("0")
        assert credit.amount_remaining == Decimal("50000")
        assert credit.status == "outstanding"
        assert CreditPayment.query.count() == 0
        assert FinancialTransaction.query.count() == 0

    def test_payment_appends_income(self, db_session, customer):
        credit = _open_credit(customer, 300000)
        result = _pay(credit.id, 100000)

        ft = FinancialTransaction.query.filter_by(reference_type="credit_payment").one()
        assert ft.type == "income"
        assert ft.category == "credit_payment"
        assert ft.description == "Pembayaran piutang"
        assert ft.amount == Decimal("100000")
        assert ft.reference_id == result["payment_id"]
        assert ft.transaction_date == date(2024, 3, 10)

    @pytest.mark.parametrize("amount", [0, -1, "nope", Decimal("0.004")])
    def test_invalid_amount(self, db_session, customer, amount):
        credit = _open_credit(customer, 1000)
        with pytest.raises(ValidationError):
            _pay(credit.id, amount)

    def test_invalid_payment_method(self, db_session, customer):
        credit = _open_credit(customer, 1000)
        with pytest.raises(ValidationError):
            credit_service.record_credit_payment(
                credit_sale_id=credit.id, amount=10, payment_method="barter"
            )

    def test_unknown_credit_sale(self, db_session):
        with pytest.raises(NotFoundError):
            _pay(777, 10)

    @pytest.mark.parametrize("credit_sale_id", [None, "7", True])
    def test_missing_credit_sale_id_is_validation_error(self, db_session, credit_sale_id):
        with pytest.raises(ValidationError):
            _pay(credit_sale_id, 10)
        assert CreditPayment.query.count() == 0

    def test_payments_listed_newest_first(self, db_session, customer):
        credit = _open_credit(customer, 1000)
        _pay(credit.id, 100, on=date(2024, 3, 10))
        _pay(credit.id, 200, on=date(2024, 3, 12))

        payments = credit_service.list_credit_payments(credit.id)
        assert [p.amount for p in payments] == [Decimal("200"), Decimal("100")]


# =============================================================================
# BATCH PAYMENTS
# =============================================================================


class TestBatchPayment:

    def test_partial_success_is_kept(self, db_session, customer):
        credit_a = _open_credit(customer, 50000)
        credit_b = _open_credit(customer, 200000)

        outcome = credit_service.record_credit_payment_batch(
            credit_sale_ids=[credit_a.id, credit_b.id],
            amount=100000,
            payment_date=date(2024, 3, 10),
        )

        assert outcome["processed"] == 1
        assert len(outcome["results"]) == 1
        assert len(outcome["errors"]) == 1
        assert outcome["errors"][0]["credit_sale_id"] == credit_a.id
        assert outcome["results"][0]["credit_sale_id"] == credit_b.id
        assert outcome["results"][0]["new_status"] == "partial"

        assert credit_a.amount_paid == Decimal("0")
        assert credit_a.amount_remaining == Decimal("50000")
        assert credit_a.status == "outstanding"
        assert credit_b.amount_remaining == Decimal("100000")

        ft = FinancialTransaction.query.one()
        assert ft.description == "Pembayaran piutang (batch)"

    def test_earlier_success_survives_later_failure(self, db_session, customer):
        credit_a = _open_credit(customer, 200000)

        outcome = credit_service.record_credit_payment_batch(
            credit_sale_ids=[credit_a.id, 999999],
            amount=100000,
            payment_date="2024-03-10",
        )

        assert outcome["processed"] == 1
        assert outcome["errors"][0]["credit_sale_id"] == 999999
        assert credit_a.amount_paid == Decimal("100000")

    def test_empty_id_list_rejected(self, db_session):
        with pytest.raises(ValidationError):
            credit_service.record_credit_payment_batch(
                credit_sale_ids=[], amount=1, payment_date="2024-03-10"
            )

    def test_non_integer_id_rejects_whole_batch(self, db_session, customer):
        credit = _open_credit(customer, 1000)
        with pytest.raises(ValidationError):
            credit_service.record_credit_payment_batch(
                credit_sale_ids=[credit.id, None], amount=100, payment_date="2024-03-10"
            )
        assert credit.amount_paid == Decimal("0")


# =============================================================================
# INTEREST
# =============================================================================


class TestInterestAccrual:

    def test_simple_interest(self, db_session, customer):
        credit = _open_credit(customer, 1000000, due_date=date(2024, 1, 1), interest_rate=12)

        results = credit_service.accrue_overdue_interest(today=date(2024, 1, 31))

        # 1,000,000 * 12% * 30/365
        expected = Decimal("9863.01")
        assert len(results) == 1
        assert results[0]["days_overdue"] == 30
        assert results[0]["interest_amount"] == expected
        assert credit.total_amount == Decimal("1000000") + expected
        assert credit.amount_remaining == Decimal("1000000") + expected
        assert credit.status == "outstanding"
        _assert_amortized(credit)

    def test_second_run_same_day_accrues_nothing(self, db_session, customer):
        credit = _open_credit(customer, 1000000, due_date=date(2024, 1, 1), interest_rate=12)

        credit_service.accrue_overdue_interest(today=date(2024, 1, 31))
        again = credit_service.accrue_overdue_interest(today=date(2024, 1, 31))

        assert again == []
        assert credit.total_amount == Decimal("1009863.01")

    def test_next_day_accrues_only_new_days(self, db_session, customer):
        credit = _open_credit(customer, 365000, due_date=date(2024, 1, 1), interest_rate=10)

        credit_service.accrue_overdue_interest(today=date(2024, 1, 11))
        results = credit_service.accrue_overdue_interest(today=date(2024, 1, 12))

        assert results[0]["days_overdue"] == 11
        assert results[0]["days_accrued"] == 1
        # 365000 * 10% / 365 = 100 per day, never on the 1000 already accrued
        assert results[0]["interest_amount"] == Decimal("100")
        assert credit.total_amount == Decimal("366100")
        assert credit.accrued_interest == Decimal("1100")

    def test_daily_runs_equal_one_run(self, db_session, customer):
        daily = _open_credit(customer, 1000000, due_date=date(2024, 1, 1), interest_rate=12)

        day = date(2024, 1, 2)
        while day <= date(2024, 12, 31):
            credit_service.accrue_overdue_interest(today=day)
            day += timedelta(days=1)

        once = _open_credit(customer, 1000000, due_date=date(2024, 1, 1), interest_rate=12)
        credit_service.accrue_overdue_interest(today=date(2024, 12, 31))

        # 1,000,000 * 12% * 365/365
        assert daily.total_amount == Decimal("1120000")
        assert daily.accrued_interest == Decimal("120000")
        assert once.total_amount == daily.total_amount
        _assert_amortized(daily)

    def test_interest_follows_principal_after_payment(self, db_session, customer):
        credit = _open_credit(customer, 500000, due_date=date(2024, 1, 1), interest_rate=24)
        _pay(credit.id, 200000, on=date(2023, 12, 20))

        first = credit_service.accrue_overdue_interest(today=date(2024, 1, 31))
        # 300,000 * 24% * 30/365
        assert first[0]["interest_amount"] == Decimal("5917.81")

        _pay(credit.id, 100000, on=date(2024, 2, 1))
        second = credit_service.accrue_overdue_interest(today=date(2024, 3, 1))

        # principal is now 200,000: 200,000 * 24% * (60 - 30)/365
        assert second[0]["days_overdue"] == 60
        assert second[0]["days_accrued"] == 30
        assert second[0]["interest_amount"] == Decimal("3945.20")
        assert credit.accrued_interest == Decimal("9863.01")
        _assert_amortized(credit)

    def test_skips_paid_not_due_and_zero_rate(self, db_session, customer):
        paid = _open_credit(customer, 1000, due_date=date(2024, 1, 1), interest_rate=12)
        _pay(paid.id, 1000)
        not_due = _open_credit(customer, 1000, due_date=date(2024, 6, 1), interest_rate=12)
        no_rate = _open_credit(customer, 1000, due_date=date(2024, 1, 1), interest_rate=0)

        results = credit_service.accrue_overdue_interest(today=date(2024, 3, 1))

        assert results == []
        for credit in (paid, not_due, no_rate):
            _assert_amortized(credit)
        assert not_due.total_amount == Decimal("1000")
        assert no_rate.total_amount == Decimal("1000")

    def test_partial_payment_then_interest_keeps_equality(self, db_session, customer):
        credit = _open_credit(customer, 500000, due_date=date(2024, 1, 1), interest_rate=24)
        _pay(credit.id, 200000, on=date(2023, 12, 20))

        credit_service.accrue_overdue_interest(today=date(2024, 2, 1))

        assert credit.status == "partial"
        assert credit.amount_paid == Decimal("200000")
        _assert_amortized(credit)


# =============================================================================
# DUE-DATE CLASSIFICATION
# =============================================================================


class TestClassifyDueStatus:

    @pytest.mark.parametrize("due_offset,status,expected", [
        (-1, "outstanding", DUE_OVERDUE),
        (-30, "partial", DUE_OVERDUE),
        (-1, "paid", DUE_ON_TIME),
        (0, "outstanding", DUE_SOON),
        (7, "partial", DUE_SOON),
        (8, "outstanding", DUE_ON_TIME),
        (3, "paid", DUE_ON_TIME),
    ])
    def test_classification(self, today, due_offset, status, expected):
        due = today + timedelta(days=due_offset)
        assert classify_due_status(due, status, today) == expected
        # pure: same answer on repeat
        assert classify_due_status(due, status, today) == expected

    def test_reminders(self, db_session, customer, today):
        overdue = _open_credit(customer, 1000, due_date=today - timedelta(days=5))
        soon = _open_credit(customer, 2000, due_date=today + timedelta(days=3))
        _open_credit(customer, 3000, due_date=today + timedelta(days=30))

        report = credit_service.list_credit_reminders(today=today)

        assert [c["id"] for c in report["overdue"]] == [overdue.id]
        assert report["overdue"][0]["days_overdue"] == 5
        assert [c["id"] for c in report["due_soon"]] == [soon.id]
        assert report["due_soon"][0]["days_until_due"] == 3


# =============================================================================
# REMINDERS SENT
# =============================================================================


class TestSendReminder:

    def test_reminder_is_logged(self, db_session, customer, caplog):
        credit = _open_credit(customer, 1000)

        with caplog.at_level(logging.INFO):
            result = credit_service.send_credit_reminder(credit.id, method="whatsapp")

        assert result["message"] == "Reminder sent to Toko Sari"
        assert result["method"] == "whatsapp"
        assert f"Payment reminder sent for credit sale {credit.id}" in caplog.text

    def test_default_method(self, db_session, customer):
        credit = _open_credit(customer, 1000)
        assert credit_service.send_credit_reminder(credit.id)["method"] == "system_notification"

    def test_unknown_credit_sale(self, db_session):
        with pytest.raises(NotFoundError):
            credit_service.send_credit_reminder(31337)
