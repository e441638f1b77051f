# Overview: Flask API routes for sales; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..errors import LedgerError
from ..services import sales_service
from ..time_utils import parse_optional_date


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
def create_sale_route():
    """
    Record a sale.

    Request body:
    {
        "customer_id": 2,                     (optional)
        "sale_date": "2024-03-02",
        "items": [{"product_id": 3, "quantity": 10, "unit_price": 2500, "discount_amount": 0}],
        "discount_amount": 0,
        "tax_amount": 0,
        "payment_method": "cash" | "transfer" | "credit",
        "bank_account_id": 1,                 (transfer only)
        "due_date": "2024-04-01",             (credit only)
        "payment_terms": "NET 30",            (credit only)
        "interest_rate": 12                   (credit only, % per annum)
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        sale = sales_service.record_sale(
            items=data.get("items"),
            sale_date=data.get("sale_date"),
            customer_id=data.get("customer_id"),
            discount_amount=data.get("discount_amount", 0),
            tax_amount=data.get("tax_amount", 0),
            payment_method=data.get("payment_method", "cash"),
            due_date=data.get("due_date"),
            payment_terms=data.get("payment_terms"),
            interest_rate=data.get("interest_rate", 0),
            bank_account_id=data.get("bank_account_id"),
            notes=data.get("notes"),
        )

        payload = sale.to_dict(include_items=True)
        if sale.credit_sale is not None:
            payload["credit_sale_id"] = sale.credit_sale.id
        return jsonify(payload), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
def list_sales_route():
    try:
        sales = sales_service.list_sales(
            start_date=parse_optional_date(request.args.get("start_date"), "start_date"),
            end_date=parse_optional_date(request.args.get("end_date"), "end_date"),
            customer_id=request.args.get("customer_id", type=int),
        )
        return jsonify({"sales": [s.to_dict() for s in sales]}), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error"}), 500
