# Overview: Error taxonomy shared by the sale commit and stock adjustment engines.
from __future__ import annotations

from ..money import format_cents


class ServiceError(Exception):
    """Base class; carries an HTTP status, a stable code and structured details."""

    status_code = 400
    code = "SERVICE_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": str(self), "code": self.code, "details": self.details}


class ProductNotFound(ServiceError):
    """Referenced product id(s) do not exist. Raised before any mutation."""

    status_code = 404
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_ids):
        self.product_ids = sorted(product_ids)
        if len(self.product_ids) == 1:
            message = f"Product with id {self.product_ids[0]} not found"
        else:
            message = f"Products not found: {', '.join(str(i) for i in self.product_ids)}"
        super().__init__(message, details={"product_ids": self.product_ids})


class InsufficientStock(ServiceError):
    """Requested reduction exceeds current stock. Raised before any mutation."""

    status_code = 409
    code = "INSUFFICIENT_STOCK"

    def __init__(self, *, product_id: int, product_name: str, available: int, requested: int):
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for product {product_name}. "
            f"Available: {available}, Requested: {requested}",
            details={
                "product_id": product_id,
                "product_name": product_name,
                "available": available,
                "requested": requested,
            },
        )


class InsufficientPayment(ServiceError):
    """amount_paid is below the computed sale total. Raised before persistence."""

    status_code = 400
    code = "INSUFFICIENT_PAYMENT"

    def __init__(self, *, total_amount_cents: int, amount_paid_cents: int):
        self.total_amount_cents = total_amount_cents
        self.amount_paid_cents = amount_paid_cents
        super().__init__(
            f"Amount paid {format_cents(amount_paid_cents)} is less than "
            f"total {format_cents(total_amount_cents)}",
            details={
                "total_amount": format_cents(total_amount_cents),
                "amount_paid": format_cents(amount_paid_cents),
            },
        )


class ConsistencyFault(ServiceError):
    """
    A write failed part-way through a unit of work. The transaction has been
    rolled back; this is surfaced as-is and never retried automatically.
    """

    status_code = 500
    code = "CONSISTENCY_FAULT"
