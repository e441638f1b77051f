# Overview: Flask API routes for credit sales and their payments; parses input and returns JSON responses.

# backend/eggpack/routes/credit.py
"""
Credit Sale API Routes

DESIGN:
- Single payments are all-or-nothing; batch payments report per-item
  results and errors and keep the successes
- Interest accrual is safe to call more than once a day
- Reminders (overdue / due soon) are derived at request time
"""

from flask import Blueprint, request, jsonify, current_app

from ..errors import LedgerError
from ..money import to_number
from ..services import credit_service
from ..time_utils import parse_optional_date


credit_bp = Blueprint("credit", __name__, url_prefix="/api")


def _payment_amount(data: dict):
    # older clients send payment_amount
    return data.get("amount", data.get("payment_amount"))


def _payment_result_json(result: dict) -> dict:
    payload = dict(result)
    for key in ("new_amount_paid", "new_amount_remaining"):
        payload[key] = to_number(payload[key])
    return payload


# =============================================================================
# CREDIT SALES
# =============================================================================

@credit_bp.post("/credit-sales")
def open_credit_sale_route():
    """
    Open a receivable for an existing sale.

    Request body:
    {
        "sale_id": 10,
        "customer_id": 2,
        "total_amount": 1000000,
        "due_date": "2024-04-01",
        "payment_terms": "NET 30",
        "interest_rate": 12
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        credit_sale_id = credit_service.open_credit_sale(
            sale_id=data.get("sale_id"),
            customer_id=data.get("customer_id"),
            total_amount=data.get("total_amount"),
            due_date=data.get("due_date"),
            payment_terms=data.get("payment_terms"),
            interest_rate=data.get("interest_rate", 0),
            notes=data.get("notes"),
        )
        return jsonify({"id": credit_sale_id}), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to open credit sale")
        return jsonify({"error": "Internal server error"}), 500


@credit_bp.get("/credit-sales")
def list_credit_sales_route():
    try:
        credits = credit_service.list_credit_sales(
            status=request.args.get("status"),
            customer_id=request.args.get("customer_id", type=int),
        )
        return jsonify({"credit_sales": [c.to_dict() for c in credits]}), 200
    except Exception:
        current_app.logger.exception("Failed to list credit sales")
        return jsonify({"error": "Internal server error"}), 500


@credit_bp.get("/credit-sales/reminders")
def credit_reminders_route():
    try:
        as_of = parse_optional_date(request.args.get("as_of"), "as_of")
        return jsonify(credit_service.list_credit_reminders(today=as_of)), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list credit reminders")
        return jsonify({"error": "Internal server error"}), 500


@credit_bp.get("/credit-sales/<int:credit_sale_id>/payments")
def list_credit_payments_route(credit_sale_id: int):
    try:
        payments = credit_service.list_credit_payments(credit_sale_id)
        return jsonify({"payments": [p.to_dict() for p in payments]}), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list credit payments")
        return jsonify({"error": "Internal server error"}), 500


@credit_bp.post("/credit-sales/<int:credit_sale_id>/send-reminder")
def send_reminder_route(credit_sale_id: int):
    try:
        data = request.get_json(silent=True) or {}
        result = credit_service.send_credit_reminder(credit_sale_id, method=data.get("method"))
        return jsonify(result), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to send reminder")
        return jsonify({"error": "Internal server error"}), 500


@credit_bp.post("/credit-sales/calculate-interest")
def calculate_interest_route():
    try:
        data = request.get_json(silent=True) or {}
        as_of = parse_optional_date(data.get("as_of"), "as_of")

        results = credit_service.accrue_overdue_interest(today=as_of)
        return jsonify({
            "processed": len(results),
            "results": [
                {
                    "credit_sale_id": r["credit_sale_id"],
                    "days_overdue": r["days_overdue"],
                    "days_accrued": r["days_accrued"],
                    "interest_amount": to_number(r["interest_amount"]),
                    "new_total": to_number(r["new_total"]),
                }
                for r in results
            ],
        }), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to calculate interest")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# PAYMENTS
# =============================================================================

@credit_bp.post("/credit-payments")
def record_credit_payment_route():
    """
    Request body:
    {
        "credit_sale_id": 7,
        "amount": 400000,
        "payment_date": "2024-03-15",
        "payment_method": "cash" | "transfer" | "credit",
        "reference_number": "optional",
        "notes": "optional"
    }

    Returns:
        201: new paid / remaining / status
        404: Credit sale not found
        409: Payment exceeds remaining balance
    """
    try:
        data = request.get_json(silent=True) or {}

        result = credit_service.record_credit_payment(
            credit_sale_id=data.get("credit_sale_id"),
            amount=_payment_amount(data),
            payment_date=data.get("payment_date"),
            payment_method=data.get("payment_method", "cash"),
            reference_number=data.get("reference_number"),
            notes=data.get("notes"),
            created_by=data.get("created_by"),
        )
        return jsonify(_payment_result_json(result)), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to record credit payment")
        return jsonify({"error": "Internal server error"}), 500


@credit_bp.post("/credit-payments/batch")
def record_credit_payment_batch_route():
    """
    Request body:
    {
        "credit_sale_ids": [7, 8, 9],
        "amount": 100000,
        "payment_date": "2024-03-15",
        "notes": "optional"
    }

    Always 200 once the request itself is valid; per-item failures are
    listed under "errors".
    """
    try:
        data = request.get_json(silent=True) or {}

        outcome = credit_service.record_credit_payment_batch(
            credit_sale_ids=data.get("credit_sale_ids"),
            amount=_payment_amount(data),
            payment_date=data.get("payment_date"),
            notes=data.get("notes"),
            payment_method=data.get("payment_method", "cash"),
            reference_number=data.get("reference_number"),
            created_by=data.get("created_by"),
        )
        return jsonify({
            "processed": outcome["processed"],
            "results": [_payment_result_json(r) for r in outcome["results"]],
            "errors": outcome["errors"],
        }), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to record batch credit payment")
        return jsonify({"error": "Internal server error"}), 500
