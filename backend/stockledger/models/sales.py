from __future__ import annotations

from ..extensions import db
from stockledger.time_utils import to_utc_z


class SaleRecord(db.Model):
    """
    Append-only sales ledger entry.

    Written only by services.sales_service.record_sale, in the same DB
    transaction as the stock decrement. Financial terms are snapshots of the
    item at the moment of sale; later price edits never touch these rows.

    item_id is a weak reference (ON DELETE SET NULL); product_name keeps the
    history readable after the item is deleted.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sales_quantity_positive"),
        db.Index("ix_sales_item_sold_at", "item_id", "sold_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    item_id = db.Column(
        db.Integer,
        db.ForeignKey("items.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    product_name = db.Column(db.String(255), nullable=True)

    quantity = db.Column(db.Integer, nullable=False)

    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_price_cents = db.Column(db.Integer, nullable=False)
    unit_cost_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cost_cents = db.Column(db.Integer, nullable=False, default=0)
    profit_cents = db.Column(db.Integer, nullable=False)

    customer_name = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(50), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    recorded_by_user_id = db.Column(
        db.Integer,
        db.ForeignKey("admin_users.id", ondelete="SET NULL"),
        nullable=True,
    )

    sold_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<SaleRecord id={self.id} item_id={self.item_id} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_price_cents": self.total_price_cents,
            "unit_cost_cents": self.unit_cost_cents,
            "total_cost_cents": self.total_cost_cents,
            "profit_cents": self.profit_cents,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "notes": self.notes,
            "recorded_by_user_id": self.recorded_by_user_id,
            "sold_at": to_utc_z(self.sold_at),
        }
