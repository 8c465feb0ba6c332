from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from stockledger.time_utils import to_utc_z


class Category(db.Model):
    """
    Storefront grouping for items.

    Items reference categories weakly: deleting a category clears
    items.category_id and never removes an item.
    """
    __tablename__ = "categories"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
        }


class Item(db.Model):
    """
    Catalog entry with pricing and stock.

    PRICING:
    Money is stored in integer cents. selling_price_cents is derived from
    original_price_cents and discount_percentage on every catalog write
    (see services/pricing.py) and snapshotted onto SaleRecord at sale time.

    STOCK:
    quantity is the on-hand count. After creation it only moves through
    admin edits or the sale engine (services/sales_service.py), which also
    bumps sold_quantity and flips status to sold_out when stock reaches zero.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_items_quantity_non_negative"),
        db.CheckConstraint("sold_quantity >= 0", name="ck_items_sold_quantity_non_negative"),
        db.Index("ix_items_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    category_id = db.Column(
        db.Integer,
        db.ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    original_price_cents = db.Column(db.Integer, nullable=False)
    selling_price_cents = db.Column(db.Integer, nullable=False)
    cost_price_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_percentage = db.Column(db.Numeric(5, 2), nullable=False, default=Decimal("0"))

    quantity = db.Column(db.Integer, nullable=False, default=0)
    sold_quantity = db.Column(db.Integer, nullable=False, default=0)

    sku = db.Column(db.String(100), nullable=True, unique=True)
    status = db.Column(db.String(16), nullable=False, default="available", index=True)

    # Ordered list of image references ("/uploads/<file>")
    images = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("items", lazy=True, passive_deletes=True))

    def __repr__(self) -> str:
        return f"<Item id={self.id} name={self.name!r} quantity={self.quantity} status={self.status!r}>"

    def to_dict(self) -> dict:
        discount = self.discount_percentage if self.discount_percentage is not None else Decimal("0")
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category_id": self.category_id,
            "category_name": self.category.name if self.category else None,
            "original_price_cents": self.original_price_cents,
            "selling_price_cents": self.selling_price_cents,
            "cost_price_cents": self.cost_price_cents,
            "discount_percentage": f"{Decimal(discount):.2f}",
            "quantity": self.quantity,
            "sold_quantity": self.sold_quantity,
            "sku": self.sku,
            "status": self.status,
            "images": list(self.images or []),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
