# Overview: Flask API routes for bank accounts and their ledgers; parses input and returns JSON responses.

# backend/eggpack/routes/banking.py
"""
Bank Ledger API Routes

DESIGN:
- Accounts are created with an optional opening balance (first ledger entry)
- Credits/debits are posted through /bank-transactions and may mirror into
  the financial transaction log
- adjust-balance reconciles to a statement balance via a synthesized entry
"""

from flask import Blueprint, request, jsonify, current_app

from ..errors import LedgerError
from ..money import to_number
from ..services import bank_service, catalog_service


banking_bp = Blueprint("banking", __name__, url_prefix="/api")


# =============================================================================
# ACCOUNTS
# =============================================================================

@banking_bp.post("/bank-accounts")
def create_bank_account_route():
    try:
        data = request.get_json(silent=True) or {}

        account = catalog_service.create_bank_account(
            bank_name=data.get("bank_name"),
            account_name=data.get("account_name"),
            account_number=data.get("account_number"),
            account_type=data.get("account_type", "checking"),
            opening_balance=data.get("opening_balance", 0),
            opening_date=data.get("opening_date"),
            notes=data.get("notes"),
        )
        return jsonify(account.to_dict()), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create bank account")
        return jsonify({"error": "Internal server error"}), 500


@banking_bp.get("/bank-accounts")
def list_bank_accounts_route():
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"
    try:
        accounts = bank_service.list_bank_accounts(include_inactive=include_inactive)
        return jsonify({"accounts": [a.to_dict() for a in accounts]}), 200
    except Exception:
        current_app.logger.exception("Failed to list bank accounts")
        return jsonify({"error": "Internal server error"}), 500


@banking_bp.get("/bank-accounts/<int:account_id>/transactions")
def list_bank_transactions_route(account_id: int):
    try:
        transactions = bank_service.list_bank_transactions(
            account_id, limit=request.args.get("limit", type=int)
        )
        return jsonify({"transactions": [t.to_dict() for t in transactions]}), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list bank transactions")
        return jsonify({"error": "Internal server error"}), 500


@banking_bp.post("/bank-accounts/<int:account_id>/adjust-balance")
def adjust_balance_route(account_id: int):
    """
    Request body:
    {
        "new_balance": 1250000,
        "reason": "Bank statement March"
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        result = bank_service.adjust_bank_balance(
            account_id=account_id,
            new_balance=data.get("new_balance"),
            reason=data.get("reason"),
        )
        return jsonify({
            "previous_balance": to_number(result["previous_balance"]),
            "new_balance": to_number(result["new_balance"]),
            "adjusted": result["adjusted"],
        }), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to adjust bank balance")
        return jsonify({"error": "Internal server error"}), 500


@banking_bp.get("/bank-accounts/<int:account_id>/verify")
def verify_bank_account_route(account_id: int):
    try:
        return jsonify(bank_service.verify_bank_account(account_id)), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to verify bank account")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# TRANSACTIONS
# =============================================================================

@banking_bp.post("/bank-transactions")
def post_bank_transaction_route():
    """
    Request body:
    {
        "bank_account_id": 1,
        "transaction_type": "credit" | "debit",
        "amount": 500000,
        "description": "Setoran tunai",
        "transaction_date": "2024-03-01",
        "reference_number": "optional",
        "create_financial_transaction": true,
        "category": "optional override"
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        result = bank_service.post_bank_transaction(
            account_id=data.get("bank_account_id"),
            transaction_type=data.get("transaction_type"),
            amount=data.get("amount"),
            description=data.get("description"),
            transaction_date=data.get("transaction_date"),
            reference_number=data.get("reference_number"),
            create_financial_transaction=data.get("create_financial_transaction") is not False,
            category=data.get("category"),
        )
        return jsonify({
            "transaction_id": result["transaction_id"],
            "new_balance": to_number(result["new_balance"]),
        }), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to post bank transaction")
        return jsonify({"error": "Internal server error"}), 500
