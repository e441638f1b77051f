# Overview: Flask API routes for product recipes and standard cost recalculation.

from flask import Blueprint, request, jsonify, current_app

from ..errors import LedgerError
from ..money import to_number
from ..services import catalog_service


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("/<int:product_id>/recipe")
def get_recipe_route(product_id: int):
    try:
        items = catalog_service.get_product_recipe(product_id)
        return jsonify({"items": [i.to_dict() for i in items]}), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load product recipe")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.post("/<int:product_id>/recipe")
def set_recipe_route(product_id: int):
    """
    Replace the recipe and reprice the product.

    Request body:
    {
        "items": [{"raw_material_id": 1, "quantity_needed": 0.25}]
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        product = catalog_service.set_product_recipe(product_id, data.get("items"))
        return jsonify(product.to_dict()), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to set product recipe")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.post("/recalculate-costs")
def recalculate_costs_route():
    try:
        updated = catalog_service.recalculate_product_costs()
        return jsonify({
            "updated": [
                {
                    "product_id": u["product_id"],
                    "previous_cost_price": to_number(u["previous_cost_price"]),
                    "cost_price": to_number(u["cost_price"]),
                }
                for u in updated
            ],
        }), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to recalculate product costs")
        return jsonify({"error": "Internal server error"}), 500
