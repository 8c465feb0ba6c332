# Overview: Service-layer operations for reporting; encapsulates business logic and database work.

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy import func

from stockledger.extensions import db
from stockledger.models import Item
from stockledger.services import ledger_service
from stockledger.time_utils import local_day_bounds, utcnow, to_utc_z


def _catalog_totals(low_stock_threshold: int) -> dict:
    row = db.session.query(
        func.count(Item.id).label("total_items"),
        func.coalesce(func.sum(Item.quantity), 0).label("total_stock"),
        func.coalesce(func.sum(Item.sold_quantity), 0).label("total_sold"),
    ).one()

    low_stock = db.session.query(func.count(Item.id)).filter(
        Item.quantity > 0,
        Item.quantity <= low_stock_threshold,
    ).scalar()

    return {
        "total_items": int(row.total_items or 0),
        "total_stock": int(row.total_stock or 0),
        "total_sold": int(row.total_sold or 0),
        "low_stock_count": int(low_stock or 0),
    }


def dashboard_stats(*, now: datetime | None = None) -> dict:
    """
    Dashboard snapshot, recomputed from the catalog and ledger on each call.

    `now` (UTC-naive) picks the "today" window in STORE_TIMEZONE; it defaults
    to the wall clock and exists so callers can pin the day boundary.
    """
    config = current_app.config
    now = now or utcnow()
    day_start, day_end = local_day_bounds(now, config["STORE_TIMEZONE"])

    stats = _catalog_totals(config["LOW_STOCK_THRESHOLD"])

    stats.update({
        "total_revenue_cents": ledger_service.aggregate_sum("total_price_cents"),
        "total_profit_cents": ledger_service.aggregate_sum("profit_cents"),
        "total_cost_cents": ledger_service.aggregate_sum("total_cost_cents"),
        "today_revenue_cents": ledger_service.aggregate_sum(
            "total_price_cents", start=day_start, end=day_end, end_exclusive=True,
        ),
        "today_profit_cents": ledger_service.aggregate_sum(
            "profit_cents", start=day_start, end=day_end, end_exclusive=True,
        ),
        "recent_sales": [
            sale.to_dict()
            for sale in ledger_service.list_sales(limit=config["RECENT_SALES_LIMIT"])
        ],
        "today": {
            "timezone": config["STORE_TIMEZONE"],
            "start": to_utc_z(day_start),
            "end": to_utc_z(day_end),
        },
    })
    return stats
