"""
Sales Service - inventory transaction engine

record_sale turns a sale request into one consistent change:
stock decrement, sold-count bump, status flip and ledger append, committed
together or not at all.

Concurrency:
- SQLite: BEGIN IMMEDIATE serializes writers before the stock read.
- Other backends: the item row is read with SELECT ... FOR UPDATE.
- Either way the decrement is a guarded UPDATE (quantity >= requested)
  checked by rowcount, so a lost race is reported as InsufficientStock and
  stock can never go negative.

No retries happen here. TransactionFailed is surfaced to the caller, who
may resubmit.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import case, update
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Item, SaleRecord
from ..validation import MAX_DB_INTEGER, MIN_DB_INTEGER, ValidationError, coerce_integer
from stockledger.time_utils import utcnow
from .concurrency import begin_write_transaction, lock_for_update
from .ledger_service import append_sale_record


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ItemNotFound(SaleError):
    pass


class InvalidQuantity(SaleError):
    pass


class InsufficientStock(SaleError):
    pass


class TransactionFailed(SaleError):
    pass


CUSTOMER_FIELDS = ("customer_name", "customer_phone", "notes")


def parse_quantity(value: Any) -> int:
    """Positive integer or InvalidQuantity (bools, floats and "2.5" are rejected)."""
    if value is None:
        raise InvalidQuantity("quantity is required")
    try:
        quantity = coerce_integer("quantity", value)
    except ValidationError as exc:
        raise InvalidQuantity(str(exc)) from exc
    if quantity <= 0:
        raise InvalidQuantity("quantity must be > 0", details={"quantity": quantity})
    return quantity


def _clean_customer_info(customer_info: dict | None) -> dict:
    info = customer_info or {}
    cleaned = {}
    for key in CUSTOMER_FIELDS:
        value = info.get(key)
        if value is None:
            cleaned[key] = None
            continue
        value = str(value).strip()
        cleaned[key] = value or None
    return cleaned


def _decrement_stock(item_id: int, quantity: int) -> bool:
    """
    Guarded decrement. Returns False when stock no longer covers `quantity`.

    status is overwritten to sold_out whenever the new quantity hits zero,
    whatever it was before (hidden included).
    """
    new_quantity = Item.quantity - quantity
    result = db.session.execute(
        update(Item)
        .where(Item.id == item_id, Item.quantity >= quantity)
        .values(
            quantity=new_quantity,
            sold_quantity=Item.sold_quantity + quantity,
            status=case((new_quantity <= 0, "sold_out"), else_=Item.status),
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _record_sale_locked(
    item_id: int,
    quantity: int,
    customer: dict,
    *,
    sold_at: datetime,
    recorded_by_user_id: int | None,
) -> SaleRecord:
    item = (
        lock_for_update(db.session.query(Item).filter(Item.id == item_id))
        .populate_existing()
        .first()
    )
    if item is None:
        raise ItemNotFound("Product not found", details={"item_id": item_id})

    on_hand = item.quantity
    if on_hand < quantity:
        raise InsufficientStock(
            "Insufficient stock",
            details={"item_id": item_id, "requested_quantity": quantity, "on_hand": on_hand},
        )

    # Financial terms are snapshotted from the item as it is right now
    unit_price_cents = item.selling_price_cents
    unit_cost_cents = item.cost_price_cents or 0
    total_price_cents = unit_price_cents * quantity
    total_cost_cents = unit_cost_cents * quantity
    profit_cents = total_price_cents - total_cost_cents
    product_name = item.name

    if not _decrement_stock(item_id, quantity):
        raise InsufficientStock(
            "Insufficient stock",
            details={"item_id": item_id, "requested_quantity": quantity, "on_hand": on_hand},
        )

    record = append_sale_record(
        item_id=item_id,
        product_name=product_name,
        quantity=quantity,
        unit_price_cents=unit_price_cents,
        total_price_cents=total_price_cents,
        unit_cost_cents=unit_cost_cents,
        total_cost_cents=total_cost_cents,
        profit_cents=profit_cents,
        customer_name=customer["customer_name"],
        customer_phone=customer["customer_phone"],
        notes=customer["notes"],
        recorded_by_user_id=recorded_by_user_id,
        sold_at=sold_at,
    )
    return record


def record_sale(
    item_id: int,
    quantity: Any,
    customer_info: dict | None = None,
    *,
    recorded_by_user_id: int | None = None,
    sold_at: datetime | None = None,
) -> SaleRecord:
    """
    Sell `quantity` units of an item.

    Returns the new SaleRecord. Raises ItemNotFound, InvalidQuantity,
    InsufficientStock or TransactionFailed; every failure leaves the item and
    the ledger untouched.
    """
    # Fetch before quantity validation so a missing item is reported first;
    # an id outside the INTEGER range cannot exist
    if not MIN_DB_INTEGER <= item_id <= MAX_DB_INTEGER or db.session.get(Item, item_id) is None:
        raise ItemNotFound("Product not found", details={"item_id": item_id})

    qty = parse_quantity(quantity)
    customer = _clean_customer_info(customer_info)
    sold_at = sold_at or utcnow()

    try:
        begin_write_transaction()
        record = _record_sale_locked(
            item_id,
            qty,
            customer,
            sold_at=sold_at,
            recorded_by_user_id=recorded_by_user_id,
        )
        db.session.commit()
    except SaleError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise TransactionFailed(
            "Sale could not be committed; no changes were applied",
            details={"item_id": item_id, "reason": exc.__class__.__name__},
        ) from exc

    return record
