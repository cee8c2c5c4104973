# backend/posadmin/routes/inventory.py
"""
Stock adjustment routes.

POST creates a manual ADD / REDUCE correction (applied immediately, with an
audit row); GET lists the audit trail newest first.
"""
from flask import Blueprint, current_app, request

from ..models import StockAdjustment
from ..services import inventory_service
from ..services.errors import ServiceError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    enforce_rules_stock_adjustment,
)


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")

STOCK_ADJUSTMENT_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "adjustment_type", "quantity", "reason"},
    required_on_create={"product_id", "adjustment_type", "quantity"},
)


@inventory_bp.post("/adjustments")
def create_stock_adjustment_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(
            model=StockAdjustment,
            payload=payload,
            policy=STOCK_ADJUSTMENT_POLICY,
            partial=False,
        )
        enforce_rules_stock_adjustment(patch)
    except ValidationError as e:
        return e.to_dict(), 400

    try:
        adjustment = inventory_service.adjust_stock(
            product_id=patch["product_id"],
            adjustment_type=patch["adjustment_type"],
            quantity=patch["quantity"],
            reason=patch.get("reason"),
        )
    except ValidationError as e:
        return e.to_dict(), 400
    except ServiceError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create stock adjustment")
        return {"error": "Internal server error", "code": "INTERNAL_ERROR", "details": {}}, 500

    return {"adjustment": adjustment.to_dict(), "product": adjustment.product.to_dict()}, 201


@inventory_bp.get("/adjustments")
def list_stock_adjustments_route():
    """Query params: product_id (optional)."""
    product_id = request.args.get("product_id", type=int)
    adjustments = inventory_service.list_stock_adjustments(product_id=product_id)
    return {"items": [a.to_dict() for a in adjustments], "count": len(adjustments)}
