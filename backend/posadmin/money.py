# Overview: Cents <-> decimal conversion for every monetary field.
"""
Money handling.

Authoritative storage is integer cents. The API speaks decimal strings with
exactly two places; inbound JSON numbers are routed through str() so binary
floats never take part in arithmetic.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation

# Maximum amount: 9,999,999.99 (999,999,999 cents)
MAX_MONEY_CENTS = 999_999_999

_CENT = Decimal("0.01")


class MoneyFormatError(ValueError):
    """Value cannot be read as a two-decimal amount."""


def to_decimal(value) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise MoneyFormatError("amount must be a number")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise MoneyFormatError("amount must be a number") from None
    else:
        raise MoneyFormatError("amount must be a number")

    if not amount.is_finite():
        raise MoneyFormatError("amount must be finite")
    try:
        exact = amount == amount.quantize(_CENT)
    except InvalidOperation:
        raise MoneyFormatError("amount is out of range") from None
    if not exact:
        raise MoneyFormatError("amount cannot have more than 2 decimal places")
    return amount


def to_cents(value) -> int:
    """Decimal / str / JSON number -> integer cents (exact)."""
    return int(to_decimal(value) * 100)


def cents_to_decimal(cents: int | None) -> Decimal | None:
    if cents is None:
        return None
    return (Decimal(cents) / 100).quantize(_CENT)


def format_cents(cents: int | None) -> str | None:
    """12345 -> "123.45"."""
    amount = cents_to_decimal(cents)
    return None if amount is None else f"{amount:.2f}"
