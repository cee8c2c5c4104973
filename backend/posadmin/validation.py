# Overview: Boundary validation for JSON payloads (products, sales, stock adjustments).
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .models import ADJUSTMENT_TYPES
from .money import MAX_MONEY_CENTS, MoneyFormatError, to_cents

# Hard cap on a single sale
MAX_CART_LINES = 500

# Largest integer accepted for ids, quantities and stock levels (signed 32-bit)
MAX_QUANTITY = 2_147_483_647


class ValidationError(ValueError):
    """400-level input problem."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def to_dict(self) -> dict:
        return {"error": str(self), "code": self.code, "details": {}}


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - money_fields: API field -> cents column (e.g. selling_price -> selling_price_cents)
    """
    writable_fields: set[str]
    required_on_create: set[str] | None = None
    money_fields: dict[str, str] | None = None


@dataclass(frozen=True)
class CartLine:
    """One (product_id, quantity) pair of a sale request."""
    product_id: int
    quantity: int


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_int(key: str, value: Any) -> int:
    result = _parse_int(key, value)
    if abs(result) > MAX_QUANTITY:
        raise ValidationError(f"{key} cannot exceed {MAX_QUANTITY}")
    return result


def _parse_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_money(key: str, value: Any) -> int:
    try:
        cents = to_cents(value)
    except MoneyFormatError as e:
        raise ValidationError(f"{key}: {e}")
    if abs(cents) > MAX_MONEY_CENTS:
        raise ValidationError(f"{key} cannot exceed {MAX_MONEY_CENTS / 100:,.2f}")
    return cents


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return _coerce_int(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    if isinstance(coltype, (String, Text)):
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by column name.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    money_fields = policy.money_fields or {}
    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols and k not in money_fields:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        if k in money_fields:
            col = cols[money_fields[k]]
            if raw is None:
                if not col.nullable:
                    raise ValidationError(f"{k} cannot be null")
                patch[col.key] = None
                continue
            patch[col.key] = _coerce_money(k, raw)
            continue

        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and isinstance(val, str) and val == "":
            if not col.nullable:
                raise ValidationError(f"{k} cannot be blank")
            val = None

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if patch.get("purchase_price_cents") is not None and patch["purchase_price_cents"] < 0:
        raise ValidationError("purchase_price must be >= 0")

    if "selling_price_cents" in patch and patch["selling_price_cents"] <= 0:
        raise ValidationError("selling_price must be > 0")

    if "stock_quantity" in patch and patch["stock_quantity"] < 0:
        raise ValidationError("stock_quantity must be >= 0")


def enforce_rules_stock_adjustment(patch: dict) -> None:
    adjustment_type = patch.get("adjustment_type")
    if adjustment_type is not None:
        adjustment_type = adjustment_type.upper()
        if adjustment_type not in ADJUSTMENT_TYPES:
            raise ValidationError("adjustment_type must be ADD or REDUCE")
        patch["adjustment_type"] = adjustment_type

    if "quantity" in patch and patch["quantity"] <= 0:
        raise ValidationError("quantity must be > 0")


def parse_cart_lines(raw: Any) -> list[CartLine]:
    """
    Validate the items array of a sale request.

    Lines are kept as submitted: the same product may appear on several
    lines and each becomes its own sale item.
    """
    if not isinstance(raw, list) or not raw:
        raise ValidationError("items must be a non-empty list")
    if len(raw) > MAX_CART_LINES:
        raise ValidationError(f"items cannot exceed {MAX_CART_LINES} lines")

    lines: list[CartLine] = []
    for index, entry in enumerate(raw):
        if isinstance(entry, CartLine):
            product_id, quantity = entry.product_id, entry.quantity
        elif isinstance(entry, dict):
            unknown = set(entry) - {"product_id", "quantity"}
            if unknown:
                raise ValidationError(f"items[{index}]: field not allowed: {sorted(unknown)[0]}")
            if "product_id" not in entry or "quantity" not in entry:
                raise ValidationError(f"items[{index}]: product_id and quantity are required")
            product_id, quantity = entry["product_id"], entry["quantity"]
        else:
            raise ValidationError(f"items[{index}] must be an object")

        product_id = _coerce_int(f"items[{index}].product_id", product_id)
        quantity = _coerce_int(f"items[{index}].quantity", quantity)
        if quantity <= 0:
            raise ValidationError(f"items[{index}].quantity must be > 0")
        lines.append(CartLine(product_id=product_id, quantity=quantity))

    return lines


def parse_amount_paid(raw: Any) -> int:
    if raw is None:
        raise ValidationError("amount_paid is required")
    cents = _coerce_money("amount_paid", raw)
    if cents <= 0:
        raise ValidationError("amount_paid must be > 0")
    return cents


def validate_sale_payload(payload: Any) -> tuple[list[CartLine], int]:
    """Returns (cart lines, amount_paid_cents)."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    unknown = set(payload) - {"items", "amount_paid"}
    if unknown:
        raise ValidationError(f"Field not allowed: {sorted(unknown)[0]}")
    return parse_cart_lines(payload.get("items")), parse_amount_paid(payload.get("amount_paid"))
