# Overview: Flask API routes for the product catalog; parses input and returns JSON responses.

# backend/posadmin/routes/products.py
from flask import Blueprint, current_app, request

from ..models import Product
from ..services import products_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "barcode", "purchase_price", "selling_price", "stock_quantity"},
    required_on_create={"name", "selling_price"},
    money_fields={
        "purchase_price": "purchase_price_cents",
        "selling_price": "selling_price_cents",
    },
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """List all products ordered by name."""
    return products_service.list_products()


@products_bp.get("/search")
def search_products():
    """
    Search products.

    Query params:
    - query: case-insensitive name substring, or exact barcode
    - barcode: exact barcode
    Both empty -> every product.
    """
    products = products_service.search_products(
        query=request.args.get("query"),
        barcode=request.args.get("barcode"),
    )
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    product = products_service.get_product(product_id)
    if product is None:
        return {"error": "Product not found", "code": "PRODUCT_NOT_FOUND", "details": {"product_id": product_id}}, 404
    return product.to_dict()


@products_bp.post("")
def create_product_route():
    """Create a new product."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        patch.setdefault("purchase_price_cents", 0)
        patch.setdefault("stock_quantity", 0)
        enforce_rules_product(patch)
    except ValidationError as e:
        return e.to_dict(), 400

    try:
        created = products_service.create_product(patch=patch)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error", "code": "INTERNAL_ERROR", "details": {}}, 500

    return created.to_dict(), 201


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    """Partial update; only supplied fields change."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return e.to_dict(), 400

    try:
        updated = products_service.update_product(product_id=product_id, patch=patch)
    except Exception:
        current_app.logger.exception("Failed to update product")
        return {"error": "Internal server error", "code": "INTERNAL_ERROR", "details": {}}, 500

    if updated is None:
        return {"error": "Product not found", "code": "PRODUCT_NOT_FOUND", "details": {"product_id": product_id}}, 404
    return updated.to_dict(), 200
