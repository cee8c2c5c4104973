# Overview: Flask API routes for sales (checkout); parses input and returns JSON responses.

# backend/posadmin/routes/sales.py
from flask import Blueprint, current_app, jsonify, request

from ..services import sales_service
from ..services.errors import ServiceError
from ..validation import ValidationError, validate_sale_payload


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
def create_sale_route():
    """
    Commit a cash sale.

    Body: {"items": [{"product_id": 1, "quantity": 2}, ...], "amount_paid": "50.00"}

    400 validation / insufficient payment, 404 unknown product,
    409 insufficient stock, 500 consistency fault.
    """
    try:
        lines, amount_paid_cents = validate_sale_payload(request.get_json(silent=True))
        sale = sales_service.create_sale(lines, amount_paid_cents)
        return jsonify({"sale": sale.to_dict()}), 201

    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error", "code": "INTERNAL_ERROR", "details": {}}), 500


@sales_bp.get("")
def list_sales_route():
    """All sales with items, newest first."""
    sales = sales_service.list_sales()
    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)}), 200


@sales_bp.get("/<int:sale_id>")
def get_sale_route(sale_id: int):
    sale = sales_service.get_sale(sale_id)
    if not sale:
        return jsonify({"error": "Sale not found", "code": "SALE_NOT_FOUND", "details": {"sale_id": sale_id}}), 404
    return jsonify({"sale": sale.to_dict()}), 200
