# Overview: Flask API routes for raw material purchases; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..errors import LedgerError
from ..services import purchase_service
from ..time_utils import parse_optional_date


purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


@purchases_bp.post("")
def create_purchase_route():
    """
    Record a purchase receipt.

    Request body:
    {
        "supplier_id": 1,
        "purchase_date": "2024-03-01",
        "items": [{"raw_material_id": 1, "quantity": 25, "unit_price": 2000}],
        "notes": "optional"
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        purchase = purchase_service.record_purchase(
            supplier_id=data.get("supplier_id"),
            items=data.get("items"),
            purchase_date=data.get("purchase_date"),
            notes=data.get("notes"),
        )
        return jsonify(purchase.to_dict(include_items=True)), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to record purchase")
        return jsonify({"error": "Internal server error"}), 500


@purchases_bp.get("")
def list_purchases_route():
    try:
        purchases = purchase_service.list_purchases(
            start_date=parse_optional_date(request.args.get("start_date"), "start_date"),
            end_date=parse_optional_date(request.args.get("end_date"), "end_date"),
        )
        return jsonify({"purchases": [p.to_dict() for p in purchases]}), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list purchases")
        return jsonify({"error": "Internal server error"}), 500
