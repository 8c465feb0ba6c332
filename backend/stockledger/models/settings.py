from __future__ import annotations

from ..extensions import db
from stockledger.time_utils import to_utc_z


class Setting(db.Model):
    """
    Key-value business display settings (name, contact numbers, address).

    Read by the public storefront; written from the admin console.
    """
    __tablename__ = "settings"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    key = db.Column(db.String(255), nullable=False, unique=True)
    value = db.Column(db.Text, nullable=True)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "key": self.key,
            "value": self.value,
            "updated_at": to_utc_z(self.updated_at),
        }
