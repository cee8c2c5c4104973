# Overview: Sale Ledger; append-only store of sale headers and their line items.

from __future__ import annotations

from dataclasses import dataclass

from ..extensions import db
from ..models import Sale, SaleItem
from posadmin.time_utils import utcnow
from .concurrency import flush_or_fault
"""
Sale Ledger Invariants (authoritative)

- Sales and their items are written once, together, and never updated or
  deleted afterwards.
- Item rows keep the insertion order of the cart lines (ordered by id).
- record_sale() never commits: the caller owns the transaction so the
  header, its items and the stock decrements land as one unit.
"""


@dataclass(frozen=True)
class SaleItemDraft:
    """Priced line ready to persist (snapshot of the product at commit time)."""
    product_id: int
    product_name: str
    quantity: int
    unit_price_cents: int

    @property
    def total_price_cents(self) -> int:
        return self.quantity * self.unit_price_cents


def record_sale(
    *,
    total_amount_cents: int,
    amount_paid_cents: int,
    change_amount_cents: int,
    items: list[SaleItemDraft],
) -> Sale:
    """Write one sale header and all of its items. Flushes, does not commit."""
    sale = Sale(
        total_amount_cents=total_amount_cents,
        amount_paid_cents=amount_paid_cents,
        change_amount_cents=change_amount_cents,
        created_at=utcnow(),
    )
    db.session.add(sale)
    flush_or_fault("sale header")

    for draft in items:
        sale.items.append(
            SaleItem(
                product_id=draft.product_id,
                product_name=draft.product_name,
                quantity=draft.quantity,
                unit_price_cents=draft.unit_price_cents,
                total_price_cents=draft.total_price_cents,
            )
        )
    flush_or_fault("sale items")
    return sale


def get_sale(sale_id: int) -> Sale | None:
    return db.session.get(Sale, sale_id)


def list_sales() -> list[Sale]:
    """All sales, newest first (items eager-loaded)."""
    return (
        db.session.query(Sale)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .all()
    )
