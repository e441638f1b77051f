# Overview: Flask API routes for production batches; parses input and returns JSON responses.

# backend/eggpack/routes/production.py
"""
Production API Routes

DESIGN:
- POST runs a whole batch (consumption, output, HPP) in one unit of work
- GET lists batches; GET /<id> returns inputs and outputs with their costs
"""

from flask import Blueprint, request, jsonify, current_app

from ..errors import LedgerError
from ..services import production_service
from ..time_utils import parse_optional_date


production_bp = Blueprint("production", __name__, url_prefix="/api/production")


@production_bp.post("")
def run_batch_route():
    """
    Run a production batch.

    Request body:
    {
        "batch_number": "B-2024-001",
        "production_date": "2024-03-01",
        "inputs": [{"raw_material_id": 1, "quantity_used": 10}],
        "outputs": [{"product_id": 3, "quantity_produced": 50}],
        "notes": "optional"
    }

    Returns:
        201: Batch result with per-output HPP
        400: Invalid input or insufficient stock
        404: Material or product not found
    """
    try:
        data = request.get_json(silent=True) or {}

        result = production_service.run_production_batch(
            batch_number=data.get("batch_number"),
            production_date=data.get("production_date"),
            inputs=data.get("inputs"),
            outputs=data.get("outputs"),
            notes=data.get("notes"),
        )
        return jsonify(result.to_dict()), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to run production batch")
        return jsonify({"error": "Internal server error"}), 500


@production_bp.get("")
def list_batches_route():
    try:
        batches = production_service.list_batches(
            start_date=parse_optional_date(request.args.get("start_date"), "start_date"),
            end_date=parse_optional_date(request.args.get("end_date"), "end_date"),
        )
        return jsonify({"batches": [b.to_dict() for b in batches]}), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list production batches")
        return jsonify({"error": "Internal server error"}), 500


@production_bp.get("/<int:batch_id>")
def get_batch_route(batch_id: int):
    try:
        return jsonify(production_service.get_batch_detail(batch_id)), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load production batch")
        return jsonify({"error": "Internal server error"}), 500
