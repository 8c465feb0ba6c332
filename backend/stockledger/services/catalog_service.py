# Overview: Service-layer operations for the item catalog; encapsulates business logic and database work.

# backend/stockledger/services/catalog_service.py
"""
Catalog Service

- Items are created and edited by admins; the storefront only lists them.
- Every write runs the pricing rule before persisting.
- Stock changes after creation come from admin edits or the sale engine.
- Deleting an item releases its image files; ledger rows keep their
  product_name snapshot and lose the item reference (ON DELETE SET NULL).
"""
from __future__ import annotations

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Category, Item, SaleRecord
from ..validation import ConflictError, ValidationError, ITEM_STATUSES
from .pricing import derive_selling_price_cents, validate_discount
from . import storage_service

ITEM_MUTABLE_FIELDS = {
    "name",
    "description",
    "category_id",
    "original_price_cents",
    "selling_price_cents",
    "cost_price_cents",
    "discount_percentage",
    "quantity",
    "sku",
    "status",
}


def apply_item_patch(item: Item, patch: dict) -> None:
    for k, v in patch.items():
        if k not in ITEM_MUTABLE_FIELDS:
            continue
        setattr(item, k, v)


def _ensure_category(category_id: int | None) -> None:
    if category_id is None:
        return
    if db.session.get(Category, category_id) is None:
        raise ValidationError("category_id does not reference an existing category")


def _ensure_unique_sku(sku: str | None, *, exclude_item_id: int | None = None) -> None:
    if not sku:
        return
    query = db.session.query(Item).filter(Item.sku == sku)
    if exclude_item_id is not None:
        query = query.filter(Item.id != exclude_item_id)
    if query.first() is not None:
        raise ConflictError("SKU already exists.")


def _resolve_status(*, explicit: str | None, quantity: int, quantity_supplied: bool, current: str | None) -> str:
    """
    Status for a catalog write.

    Explicit status wins (an admin may hide an item that still has stock),
    except that "available" with no stock is stored as sold_out. Without an
    explicit status, a supplied quantity re-derives it: 0 -> sold_out (hidden
    included, as at sale time), and a restock lifts sold_out back to
    available. A restock leaves a hidden item hidden.
    """
    if explicit is not None:
        if explicit == "available" and quantity <= 0:
            return "sold_out"
        return explicit

    status = current or "available"
    if not quantity_supplied:
        return status
    if quantity <= 0:
        return "sold_out"
    if status == "sold_out":
        return "available"
    return status


def _commit_or_conflict() -> None:
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("SKU already exists.") from exc


def list_items(
    *,
    category_id: int | None = None,
    status: str | None = None,
    search: str | None = None,
) -> list[Item]:
    """
    Catalog listing, newest first.

    Filters combine with AND:
    - category_id: exact match on the item's category reference
    - status: exact match
    - search: case-insensitive substring of name OR description
    """
    if status is not None and status not in ITEM_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(ITEM_STATUSES)}")

    query = db.session.query(Item)

    if category_id is not None:
        query = query.filter(Item.category_id == category_id)

    if status is not None:
        query = query.filter(Item.status == status)

    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                db.func.lower(Item.name).like(pattern),
                db.func.lower(db.func.coalesce(Item.description, "")).like(pattern),
            )
        )

    return query.order_by(Item.created_at.desc(), Item.id.desc()).all()


def get_item(item_id: int) -> Item | None:
    return db.session.get(Item, item_id)


def create_item(*, patch: dict, images: list[str] | None = None) -> Item:
    """
    Create an item from a validated patch dict.

    `images` are references already produced by storage_service.

    Raises:
        ValidationError: pricing inputs or category reference invalid
        ConflictError: SKU already exists
    """
    if patch.get("original_price_cents") is None:
        raise ValidationError("original_price_cents is required")

    discount = validate_discount(patch.get("discount_percentage"))
    selling = derive_selling_price_cents(
        patch["original_price_cents"],
        discount,
        patch.get("selling_price_cents"),
    )

    _ensure_category(patch.get("category_id"))
    _ensure_unique_sku(patch.get("sku"))

    quantity = patch.get("quantity") or 0

    item = Item(sold_quantity=0)
    apply_item_patch(item, patch)
    item.discount_percentage = discount
    item.selling_price_cents = selling
    item.cost_price_cents = patch.get("cost_price_cents") or 0
    item.quantity = quantity
    item.status = _resolve_status(
        explicit=patch.get("status"),
        quantity=quantity,
        quantity_supplied=True,
        current=None,
    )
    item.images = list(images or [])

    db.session.add(item)
    _commit_or_conflict()
    return item


def merge_images(current: list[str], retained: list[str] | None, new: list[str] | None) -> list[str]:
    """
    Image list after an edit: retained references (in the caller's order,
    restricted to ones the item already owns) followed by new uploads.
    retained=None keeps every current image.
    """
    if retained is None:
        kept = list(current)
    else:
        owned = set(current)
        kept = []
        for ref in retained:
            if ref in owned and ref not in kept:
                kept.append(ref)
    return kept + list(new or [])


def update_item(
    *,
    item_id: int,
    patch: dict,
    retained_images: list[str] | None = None,
    new_images: list[str] | None = None,
) -> Item | None:
    """
    Replace the supplied mutable fields of an item.

    Images become retained_images + new_images (see merge_images).
    References that drop out are released from storage after the commit.

    Returns:
        Updated Item, or None if not found

    Raises:
        ValidationError: pricing inputs or category reference invalid
        ConflictError: new SKU already exists
    """
    item = db.session.get(Item, item_id)
    if item is None:
        return None

    original = patch.get("original_price_cents", item.original_price_cents)
    discount = validate_discount(patch.get("discount_percentage", item.discount_percentage))
    selling = derive_selling_price_cents(
        original,
        discount,
        patch.get("selling_price_cents", item.selling_price_cents),
    )

    if "category_id" in patch:
        _ensure_category(patch["category_id"])
    if "sku" in patch and patch["sku"] != item.sku:
        _ensure_unique_sku(patch["sku"], exclude_item_id=item.id)

    quantity = patch.get("quantity", item.quantity)
    status = _resolve_status(
        explicit=patch.get("status"),
        quantity=quantity,
        quantity_supplied="quantity" in patch,
        current=item.status,
    )

    current_images = list(item.images or [])
    images = merge_images(current_images, retained_images, new_images)
    released = [ref for ref in current_images if ref not in images]
    if images != current_images:
        item.images = images

    apply_item_patch(item, patch)
    if item.cost_price_cents is None:
        item.cost_price_cents = 0
    item.discount_percentage = discount
    item.selling_price_cents = selling
    item.status = status

    _commit_or_conflict()

    storage_service.release_images(released)
    return item


def delete_item(*, item_id: int) -> bool:
    """
    Hard-delete an item and release its images.

    SaleRecords referencing the item keep their snapshot; their item_id is
    cleared in the same transaction (matches ON DELETE SET NULL on backends
    that enforce it).

    Returns:
        True if deleted, False if not found
    """
    item = db.session.get(Item, item_id)
    if item is None:
        return False

    images = list(item.images or [])

    db.session.execute(
        update(SaleRecord)
        .where(SaleRecord.item_id == item.id)
        .values(item_id=None)
        .execution_options(synchronize_session=False)
    )
    db.session.delete(item)
    db.session.commit()

    storage_service.release_images(images)
    return True
