# Overview: Service-layer operations for the sales ledger; encapsulates business logic and database work.

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func

from ..extensions import db
from ..models import SaleRecord
from ..validation import ValidationError
from stockledger.time_utils import is_date_only, parse_iso_datetime
"""
Sales Ledger Invariants (authoritative)

- Append-only: rows are written by the sale engine inside its transaction
  and never updated or deleted through this module.
- sold_at is business time (UTC-naive).
- Range filters are inclusive on both ends; a date-only upper bound covers
  the whole day.
- Aggregates default to 0 over an empty set.
"""

SUMMABLE_FIELDS = {
    "quantity": SaleRecord.quantity,
    "total_price_cents": SaleRecord.total_price_cents,
    "total_cost_cents": SaleRecord.total_cost_cents,
    "profit_cents": SaleRecord.profit_cents,
}


def append_sale_record(
    *,
    item_id: int | None,
    product_name: str | None,
    quantity: int,
    unit_price_cents: int,
    total_price_cents: int,
    unit_cost_cents: int,
    total_cost_cents: int,
    profit_cents: int,
    sold_at: datetime,
    customer_name: Optional[str] = None,
    customer_phone: Optional[str] = None,
    notes: Optional[str] = None,
    recorded_by_user_id: int | None = None,
) -> SaleRecord:
    """
    Append a ledger row without committing.

    The caller owns the transaction; the row becomes visible only with the
    caller's commit.
    """
    record = SaleRecord(
        item_id=item_id,
        product_name=product_name,
        quantity=quantity,
        unit_price_cents=unit_price_cents,
        total_price_cents=total_price_cents,
        unit_cost_cents=unit_cost_cents,
        total_cost_cents=total_cost_cents,
        profit_cents=profit_cents,
        customer_name=customer_name,
        customer_phone=customer_phone,
        notes=notes,
        recorded_by_user_id=recorded_by_user_id,
        sold_at=sold_at,
    )
    db.session.add(record)
    db.session.flush()  # ensures record.id is assigned without committing
    return record


def parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    """Parse from/to query values; a date-only `to` is widened to the end of that day."""
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError:
        raise ValidationError("from/to must be ISO-8601 dates or datetimes")

    if end_dt is not None and is_date_only(end):
        end_dt = end_dt + timedelta(days=1) - timedelta(microseconds=1)
    return start_dt, end_dt


def _apply_range(query, start: datetime | None, end: datetime | None, *, end_exclusive: bool = False):
    if start is not None:
        query = query.filter(SaleRecord.sold_at >= start)
    if end is not None:
        if end_exclusive:
            query = query.filter(SaleRecord.sold_at < end)
        else:
            query = query.filter(SaleRecord.sold_at <= end)
    return query


def list_sales(
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int | None = None,
) -> list[SaleRecord]:
    """Ledger rows newest first (ties broken by id)."""
    query = _apply_range(db.session.query(SaleRecord), start, end)
    query = query.order_by(SaleRecord.sold_at.desc(), SaleRecord.id.desc())
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def aggregate_sum(
    field: str,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    end_exclusive: bool = False,
) -> int:
    """SUM(field) over the ledger, 0 when nothing matches."""
    column = SUMMABLE_FIELDS.get(field)
    if column is None:
        raise ValueError(f"Cannot aggregate ledger field {field!r}")

    query = db.session.query(func.coalesce(func.sum(column), 0))
    query = _apply_range(query, start, end, end_exclusive=end_exclusive)
    return int(query.scalar() or 0)
