from __future__ import annotations

from sqlalchemy.orm import validates

from ..extensions import db
from ..money import format_cents
from posadmin.time_utils import to_utc_z, utcnow

ADJUSTMENT_ADD = "ADD"
ADJUSTMENT_REDUCE = "REDUCE"
ADJUSTMENT_TYPES = (ADJUSTMENT_ADD, ADJUSTMENT_REDUCE)


class Product(db.Model):
    """
    Product master data and the live stock level.

    STOCK: stock_quantity is the single source of truth for availability.
    It is only ever changed through products_service.apply_stock_delta
    (sales, adjustments) or an explicit catalog edit, and may never go
    negative (CHECK constraint + conditional UPDATE).

    BARCODE: optional and deliberately not unique; lookups return every match.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("purchase_price_cents >= 0", name="ck_products_purchase_price_non_negative"),
        db.CheckConstraint("selling_price_cents > 0", name="ck_products_selling_price_positive"),
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    # Case-insensitive search key: name.casefold(), kept in sync by _fold_name
    name_key = db.Column(db.String(1024), nullable=False, default="")
    barcode = db.Column(db.String(64), nullable=True, index=True)

    # Authoritative storage in cents (API renders two-decimal strings)
    purchase_price_cents = db.Column(db.Integer, nullable=False, default=0)
    selling_price_cents = db.Column(db.Integer, nullable=False)

    stock_quantity = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    @validates("name")
    def _fold_name(self, key, value):
        self.name_key = value.casefold() if value is not None else ""
        return value

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock_quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "barcode": self.barcode,
            "purchase_price": format_cents(self.purchase_price_cents),
            "selling_price": format_cents(self.selling_price_cents),
            "stock_quantity": self.stock_quantity,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockAdjustment(db.Model):
    """
    Manual stock correction audit record.

    IMMUTABLE: one row per applied delta. quantity/type record what was
    requested (ADD 5, REDUCE 3), never the resulting stock level.
    """
    __tablename__ = "stock_adjustments"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_stock_adjustments_quantity_positive"),
        db.CheckConstraint(
            "adjustment_type IN ('ADD', 'REDUCE')",
            name="ck_stock_adjustments_type",
        ),
        db.Index("ix_stock_adjustments_created", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    # ADD | REDUCE
    adjustment_type = db.Column(db.String(16), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    product = db.relationship("Product", backref=db.backref("stock_adjustments", lazy=True))

    @property
    def quantity_delta(self) -> int:
        return self.quantity if self.adjustment_type == ADJUSTMENT_ADD else -self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "adjustment_type": self.adjustment_type,
            "quantity": self.quantity,
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
        }
