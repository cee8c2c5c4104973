"""
Sale Commit Engine.

create_sale() turns a cart into a committed sale:

1. collect distinct product ids (lines are never merged)
2. batch-fetch the products; any missing id -> ProductNotFound
3. check aggregate quantity per product against live stock -> InsufficientStock
4. price every line at the product's current selling price
5. amount_paid must cover the total -> InsufficientPayment
6. write the sale header and items (snapshots of name and price)
7. decrement stock by the aggregate quantity per product

Steps 2-5 never write. Steps 6-7 and the commit run in the same database
transaction, opened with the write lock held (BEGIN IMMEDIATE on SQLite,
row locks elsewhere), and each decrement is a conditional UPDATE. Any
failure rolls the whole unit back, so a failed commit leaves no trace and
can be retried by the caller as-is.
"""
from __future__ import annotations

from collections import OrderedDict
from typing import Iterable

from flask import current_app

from ..extensions import db
from ..models import Product, Sale
from ..money import MAX_MONEY_CENTS
from ..validation import CartLine, ValidationError, parse_cart_lines
from . import ledger_service, products_service
from .concurrency import begin_write_transaction, commit_or_fault, run_with_retry
from .errors import ConsistencyFault, InsufficientPayment, InsufficientStock, ProductNotFound, ServiceError
from .ledger_service import SaleItemDraft


def aggregate_quantities(lines: Iterable[CartLine]) -> "OrderedDict[int, int]":
    """Sum requested quantity per product, in first-seen order."""
    totals: OrderedDict[int, int] = OrderedDict()
    for line in lines:
        totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
    return totals


def _load_products(product_ids: list[int]) -> dict[int, Product]:
    products = products_service.get_products_by_ids(product_ids, lock=True)
    if len(products) != len(product_ids):
        found = {p.id for p in products}
        raise ProductNotFound([pid for pid in product_ids if pid not in found])
    return {p.id: p for p in products}


def _validate_on_hand(products: dict[int, Product], totals: dict[int, int]) -> None:
    for product_id, requested in totals.items():
        product = products[product_id]
        if product.stock_quantity < requested:
            raise InsufficientStock(
                product_id=product_id,
                product_name=product.name,
                available=product.stock_quantity,
                requested=requested,
            )


def _price_lines(products: dict[int, Product], lines: list[CartLine]) -> list[SaleItemDraft]:
    return [
        SaleItemDraft(
            product_id=line.product_id,
            product_name=products[line.product_id].name,
            quantity=line.quantity,
            unit_price_cents=products[line.product_id].selling_price_cents,
        )
        for line in lines
    ]


def _decrement_stock(products: dict[int, Product], totals: dict[int, int]) -> None:
    for product_id, requested in totals.items():
        updated = products_service.apply_stock_delta(product_id, -requested)
        if updated is None:
            # Lost a race against another writer despite the lock; re-read
            # so the error reports what is actually there now.
            current = products_service.get_product(product_id, lock=True)
            if current is None:
                raise ProductNotFound([product_id])
            raise InsufficientStock(
                product_id=product_id,
                product_name=current.name,
                available=current.stock_quantity,
                requested=requested,
            )


def _commit_sale_locked(lines: list[CartLine], amount_paid_cents: int) -> Sale:
    totals = aggregate_quantities(lines)
    products = _load_products(list(totals))

    _validate_on_hand(products, totals)

    drafts = _price_lines(products, lines)
    total_amount_cents = sum(d.total_price_cents for d in drafts)

    if amount_paid_cents < total_amount_cents:
        raise InsufficientPayment(
            total_amount_cents=total_amount_cents,
            amount_paid_cents=amount_paid_cents,
        )
    change_amount_cents = max(0, amount_paid_cents - total_amount_cents)

    sale = ledger_service.record_sale(
        total_amount_cents=total_amount_cents,
        amount_paid_cents=amount_paid_cents,
        change_amount_cents=change_amount_cents,
        items=drafts,
    )
    _decrement_stock(products, totals)
    return sale


def create_sale(lines: Iterable[CartLine | dict], amount_paid_cents: int) -> Sale:
    """
    Commit a cash sale. Returns the persisted Sale with its items in line order.

    Raises ValidationError, ProductNotFound, InsufficientStock,
    InsufficientPayment (nothing written) or ConsistencyFault (write failed,
    rolled back).
    """
    cart = parse_cart_lines(list(lines))
    if isinstance(amount_paid_cents, bool) or not isinstance(amount_paid_cents, int):
        raise ValidationError("amount_paid_cents must be an integer")
    if amount_paid_cents <= 0:
        raise ValidationError("amount_paid must be > 0")
    if amount_paid_cents > MAX_MONEY_CENTS:
        raise ValidationError(f"amount_paid cannot exceed {MAX_MONEY_CENTS / 100:,.2f}")

    def _op() -> Sale:
        begin_write_transaction()
        try:
            sale = _commit_sale_locked(cart, amount_paid_cents)
            commit_or_fault("sale")
        except Exception:
            db.session.rollback()
            raise
        return sale

    try:
        sale = run_with_retry(_op)
    except ConsistencyFault:
        current_app.logger.error("Sale commit failed part-way and was rolled back", exc_info=True)
        raise
    except ServiceError as exc:
        current_app.logger.warning("Sale rejected: %s", exc)
        raise

    current_app.logger.info(
        "Committed sale id=%s lines=%s total_cents=%s change_cents=%s",
        sale.id, len(sale.items), sale.total_amount_cents, sale.change_amount_cents,
    )
    return sale


def get_sale(sale_id: int) -> Sale | None:
    return ledger_service.get_sale(sale_id)


def list_sales() -> list[Sale]:
    return ledger_service.list_sales()
