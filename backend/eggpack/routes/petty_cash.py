# Overview: Flask API routes for the petty-cash till; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..errors import LedgerError
from ..money import to_number
from ..services import petty_cash_service


petty_cash_bp = Blueprint("petty_cash", __name__, url_prefix="/api/petty-cash")


@petty_cash_bp.post("")
def post_petty_cash_route():
    """
    Request body:
    {
        "transaction_type": "in" | "out",
        "amount": 50000,
        "description": "Beli lakban",
        "transaction_date": "2024-03-01",
        "reference_number": "optional"
    }

    Returns:
        201: Entry id and new till balance
        400: Invalid input
        409: Insufficient petty cash balance
    """
    try:
        data = request.get_json(silent=True) or {}

        result = petty_cash_service.post_petty_cash(
            transaction_type=data.get("transaction_type"),
            amount=data.get("amount"),
            description=data.get("description"),
            transaction_date=data.get("transaction_date"),
            reference_number=data.get("reference_number"),
            created_by=data.get("created_by"),
        )
        return jsonify({
            "transaction_id": result["transaction_id"],
            "new_balance": to_number(result["new_balance"]),
        }), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to post petty cash entry")
        return jsonify({"error": "Internal server error"}), 500


@petty_cash_bp.get("")
def list_petty_cash_route():
    limit = request.args.get("limit", default=100, type=int)
    try:
        entries = petty_cash_service.list_petty_cash(limit=limit)
        return jsonify({"entries": [e.to_dict() for e in entries]}), 200
    except Exception:
        current_app.logger.exception("Failed to list petty cash")
        return jsonify({"error": "Internal server error"}), 500


@petty_cash_bp.get("/balance")
def petty_cash_balance_route():
    try:
        return jsonify({"balance": to_number(petty_cash_service.get_petty_cash_balance())}), 200
    except Exception:
        current_app.logger.exception("Failed to read petty cash balance")
        return jsonify({"error": "Internal server error"}), 500
