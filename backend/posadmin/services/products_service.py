# backend/posadmin/services/products_service.py
"""
Catalog Store.

Owns product records. The sale commit and stock adjustment engines use the
collaborator half of this module (get_products_by_ids, get_product,
apply_stock_delta); the API uses the management half (create, update,
list, search).

Stock is never written with a read-then-assign from Python. All deltas go
through apply_stock_delta, a single UPDATE whose WHERE clause refuses to
take stock below zero.
"""
from __future__ import annotations

from typing import Iterable

from sqlalchemy import or_, update

from ..extensions import db
from ..models import Product
from posadmin.time_utils import utcnow
from .concurrency import execute_or_fault, lock_for_update, run_with_retry

PRODUCT_MUTABLE_FIELDS = {
    "name",
    "barcode",
    "purchase_price_cents",
    "selling_price_cents",
    "stock_quantity",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def get_products_by_ids(ids: Iterable[int], *, lock: bool = False) -> list[Product]:
    """
    Batch lookup. Missing ids are simply absent from the result; the caller
    compares counts.
    """
    ids = set(ids)
    if not ids:
        return []
    query = db.session.query(Product).filter(Product.id.in_(ids)).order_by(Product.id.asc())
    if lock:
        # Always re-read locked rows; never trust identity-map state for stock
        query = lock_for_update(query).populate_existing()
    return query.all()


def get_product(product_id: int, *, lock: bool = False) -> Product | None:
    query = db.session.query(Product).filter(Product.id == product_id)
    if lock:
        # Always re-read locked rows; never trust identity-map state for stock
        query = lock_for_update(query).populate_existing()
    return query.first()


def apply_stock_delta(product_id: int, delta: int) -> Product | None:
    """
    Atomically apply a signed delta to stock_quantity and touch updated_at.

    The UPDATE only matches while the resulting stock stays >= 0, so a
    concurrent writer can never drive stock negative. Returns the refreshed
    product, or None when no row matched (product gone, or the delta would
    go below zero). Callers validate first; None means they lost a race.

    Does not commit.
    """
    result = execute_or_fault(
        update(Product)
        .where(Product.id == product_id, Product.stock_quantity + delta >= 0)
        .values(
            stock_quantity=Product.stock_quantity + delta,
            updated_at=utcnow(),
            version_id=Product.version_id + 1,
        )
        .execution_options(synchronize_session=False),
        "stock update",
    )
    if result.rowcount != 1:
        return None
    return db.session.get(Product, product_id, populate_existing=True)


def list_products() -> dict:
    products = db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()
    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
    }


def search_products(query: str | None = None, barcode: str | None = None) -> list[Product]:
    """
    Case-insensitive substring match on name OR exact barcode match.

    `query` is tried against both name and barcode; `barcode` only against
    barcode. Conditions are OR'd. Nothing to match on returns everything.
    """
    query = (query or "").strip()
    barcode = (barcode or "").strip()

    conditions = []
    if query:
        conditions.append(Product.name_key.contains(query.casefold(), autoescape=True))
        conditions.append(Product.barcode == query)
    if barcode:
        conditions.append(Product.barcode == barcode)

    q = db.session.query(Product)
    if conditions:
        q = q.filter(or_(*conditions))
    return q.order_by(Product.name.asc(), Product.id.asc()).all()


def create_product(*, patch: dict) -> Product:
    """Create product from a validated patch dict."""
    p = Product()
    apply_product_patch(p, patch)
    now = utcnow()
    p.created_at = now
    p.updated_at = now

    db.session.add(p)
    db.session.commit()
    return p


def update_product(*, product_id: int, patch: dict) -> Product | None:
    """
    Partial update. Returns None if the product does not exist.

    Runs under the product's optimistic version check; if a sale or
    adjustment touched the row meanwhile the patch is re-applied to the
    fresh row.
    """
    def _op():
        p = get_product(product_id)
        if p is None:
            return None
        apply_product_patch(p, patch)
        p.updated_at = utcnow()
        db.session.commit()
        return p

    return run_with_retry(_op)
