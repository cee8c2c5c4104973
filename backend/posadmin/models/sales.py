from __future__ import annotations

from ..extensions import db
from ..money import format_cents
from posadmin.time_utils import to_utc_z, utcnow


class Sale(db.Model):
    """
    Committed sale header (cash only).

    IMMUTABLE: written once by sales_service.create_sale together with its
    items and the stock decrements, in a single transaction.

    total_amount_cents = sum(items.total_price_cents)
    change_amount_cents = max(0, amount_paid_cents - total_amount_cents)
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("total_amount_cents >= 0", name="ck_sales_total_non_negative"),
        db.CheckConstraint("amount_paid_cents >= total_amount_cents", name="ck_sales_paid_covers_total"),
        db.CheckConstraint("change_amount_cents >= 0", name="ck_sales_change_non_negative"),
        db.Index("ix_sales_created", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # All amounts in cents
    total_amount_cents = db.Column(db.Integer, nullable=False)
    amount_paid_cents = db.Column(db.Integer, nullable=False)
    change_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    items = db.relationship(
        "SaleItem",
        back_populates="sale",
        order_by="SaleItem.id",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Sale id={self.id} total_cents={self.total_amount_cents}>"

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "total_amount": format_cents(self.total_amount_cents),
            "amount_paid": format_cents(self.amount_paid_cents),
            "change_amount": format_cents(self.change_amount_cents),
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """
    One cart line of a sale.

    SNAPSHOT: unit_price_cents and product_name are copied from the product
    at commit time so receipts stay stable after later catalog edits.
    product_id has no foreign key; line items outlive catalog rows.
    """
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
        db.CheckConstraint("unit_price_cents >= 0", name="ck_sale_items_unit_price_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_price_cents = db.Column(db.Integer, nullable=False)
    product_name = db.Column(db.String(255), nullable=False)

    sale = db.relationship("Sale", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": format_cents(self.unit_price_cents),
            "total_price": format_cents(self.total_price_cents),
            "product_name": self.product_name,
        }
