# Overview: Stock Adjustment Engine; manual ADD/REDUCE corrections with an audit trail.

# backend/posadmin/services/inventory_service.py

from flask import current_app

from ..extensions import db
from ..models import StockAdjustment, ADJUSTMENT_ADD, ADJUSTMENT_REDUCE, ADJUSTMENT_TYPES
from ..validation import MAX_QUANTITY, ValidationError
from posadmin.time_utils import utcnow
from . import products_service
from .concurrency import begin_write_transaction, commit_or_fault, flush_or_fault, run_with_retry
from .errors import ConsistencyFault, InsufficientStock, ProductNotFound, ServiceError
"""
Stock Adjustment Invariants (authoritative)

- stock_quantity may never go negative. REDUCE to exactly zero is allowed.
- Every adjustment row corresponds to exactly one applied stock delta on its
  product, written in the same transaction. Either both exist or neither.
- The audit row records the requested type and quantity, not the resulting
  stock level.
- Adjustments are immutable once written.
"""


def _adjust_stock_locked(product_id: int, adjustment_type: str, quantity: int, reason: str | None) -> StockAdjustment:
    product = products_service.get_product(product_id, lock=True)
    if product is None:
        raise ProductNotFound([product_id])

    if adjustment_type == ADJUSTMENT_REDUCE and quantity > product.stock_quantity:
        raise InsufficientStock(
            product_id=product.id,
            product_name=product.name,
            available=product.stock_quantity,
            requested=quantity,
        )

    if adjustment_type == ADJUSTMENT_ADD and product.stock_quantity + quantity > MAX_QUANTITY:
        raise ValidationError(f"stock_quantity cannot exceed {MAX_QUANTITY}")

    delta = quantity if adjustment_type == ADJUSTMENT_ADD else -quantity
    updated = products_service.apply_stock_delta(product_id, delta)
    if updated is None:
        current = products_service.get_product(product_id, lock=True)
        if current is None:
            raise ProductNotFound([product_id])
        raise InsufficientStock(
            product_id=product_id,
            product_name=current.name,
            available=current.stock_quantity,
            requested=quantity,
        )

    adjustment = StockAdjustment(
        product_id=product_id,
        adjustment_type=adjustment_type,
        quantity=quantity,
        reason=reason,
        created_at=utcnow(),
    )
    db.session.add(adjustment)
    flush_or_fault("stock adjustment")
    return adjustment


def adjust_stock(
    *,
    product_id: int,
    adjustment_type: str,
    quantity: int,
    reason: str | None = None,
) -> StockAdjustment:
    """
    Apply a manual ADD / REDUCE to a product's stock and record the audit row.

    Raises ValidationError, ProductNotFound, InsufficientStock (nothing
    written) or ConsistencyFault (write failed, rolled back).
    """
    adjustment_type = (adjustment_type or "").upper()
    if adjustment_type not in ADJUSTMENT_TYPES:
        raise ValidationError("adjustment_type must be ADD or REDUCE")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("quantity must be a positive integer")
    if quantity > MAX_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}")
    if reason is not None:
        reason = reason.strip() or None

    def _op():
        begin_write_transaction()
        try:
            adjustment = _adjust_stock_locked(product_id, adjustment_type, quantity, reason)
            commit_or_fault("stock adjustment")
        except Exception:
            db.session.rollback()
            raise
        return adjustment

    try:
        adjustment = run_with_retry(_op)
    except ConsistencyFault:
        current_app.logger.error("Stock adjustment failed part-way and was rolled back", exc_info=True)
        raise
    except ServiceError as exc:
        current_app.logger.warning("Stock adjustment rejected: %s", exc)
        raise

    current_app.logger.info(
        "Stock adjustment id=%s product_id=%s %s %s",
        adjustment.id, adjustment.product_id, adjustment.adjustment_type, adjustment.quantity,
    )
    return adjustment


def list_stock_adjustments(product_id: int | None = None) -> list[StockAdjustment]:
    """Adjustments newest first, optionally for one product."""
    q = db.session.query(StockAdjustment)
    if product_id is not None:
        q = q.filter(StockAdjustment.product_id == product_id)
    return q.order_by(StockAdjustment.created_at.desc(), StockAdjustment.id.desc()).all()
