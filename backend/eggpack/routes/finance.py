# Overview: Flask API routes for the financial transaction log, reports and dashboard.

from flask import Blueprint, request, jsonify, current_app

from ..errors import LedgerError
from ..services import finance_service, inventory_service
from ..time_utils import parse_optional_date


finance_bp = Blueprint("finance", __name__, url_prefix="/api")


@finance_bp.post("/financial-transactions")
def create_financial_transaction_route():
    """
    Manual income/expense entry.

    Request body:
    {
        "type": "income" | "expense",
        "category": "operational",
        "description": "Listrik Maret",
        "amount": 350000,
        "transaction_date": "2024-03-05"
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        entry = finance_service.record_financial_transaction(
            type=data.get("type"),
            category=data.get("category"),
            description=data.get("description"),
            amount=data.get("amount"),
            transaction_date=data.get("transaction_date"),
        )
        return jsonify(entry.to_dict()), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to record financial transaction")
        return jsonify({"error": "Internal server error"}), 500


@finance_bp.get("/financial-transactions")
def list_financial_transactions_route():
    try:
        entries = finance_service.list_financial_transactions(
            type=request.args.get("type"),
            category=request.args.get("category"),
            start_date=parse_optional_date(request.args.get("start_date"), "start_date"),
            end_date=parse_optional_date(request.args.get("end_date"), "end_date"),
            limit=request.args.get("limit", type=int),
        )
        return jsonify({"transactions": [e.to_dict() for e in entries]}), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list financial transactions")
        return jsonify({"error": "Internal server error"}), 500


@finance_bp.get("/financial-reports")
def financial_report_route():
    try:
        report = finance_service.financial_summary(
            start_date=parse_optional_date(request.args.get("start_date"), "start_date"),
            end_date=parse_optional_date(request.args.get("end_date"), "end_date"),
        )
        return jsonify(report), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to build financial report")
        return jsonify({"error": "Internal server error"}), 500


@finance_bp.get("/dashboard")
def dashboard_route():
    try:
        as_of = parse_optional_date(request.args.get("as_of"), "as_of")
        return jsonify(finance_service.dashboard_summary(as_of=as_of)), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to build dashboard")
        return jsonify({"error": "Internal server error"}), 500


@finance_bp.get("/low-stock")
def low_stock_route():
    try:
        return jsonify(inventory_service.list_low_stock()), 200
    except Exception:
        current_app.logger.exception("Failed to list low stock")
        return jsonify({"error": "Internal server error"}), 500
