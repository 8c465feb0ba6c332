# Overview: Service-layer operations for categories; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import update

from ..extensions import db
from ..models import Category, Item

CATEGORY_MUTABLE_FIELDS = {"name", "description"}


def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.name.asc(), Category.id.asc()).all()


def create_category(*, patch: dict) -> Category:
    category = Category()
    for k, v in patch.items():
        if k in CATEGORY_MUTABLE_FIELDS:
            setattr(category, k, v)
    db.session.add(category)
    db.session.commit()
    return category


def update_category(*, category_id: int, patch: dict) -> Category | None:
    category = db.session.get(Category, category_id)
    if category is None:
        return None
    for k, v in patch.items():
        if k in CATEGORY_MUTABLE_FIELDS:
            setattr(category, k, v)
    db.session.commit()
    return category


def delete_category(*, category_id: int) -> bool:
    """
    Delete a category. Items in it are kept and simply lose the reference.

    Returns:
        True if deleted, False if not found
    """
    category = db.session.get(Category, category_id)
    if category is None:
        return False

    db.session.execute(
        update(Item)
        .where(Item.category_id == category_id)
        .values(category_id=None)
        .execution_options(synchronize_session=False)
    )
    db.session.delete(category)
    db.session.commit()
    return True
