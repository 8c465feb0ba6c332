# Overview: Flask API routes for catalog items; parses input and returns JSON responses.

# backend/stockledger/routes/items.py
"""
Catalog routes.

Reads are public (storefront). Writes require an admin session and accept
either JSON or multipart/form-data (the admin form uploads images under the
"images" field and lists kept images in "existing_images").
"""
import json

from flask import Blueprint, request, current_app

from ..services import catalog_service, storage_service
from ..services.catalog_service import ITEM_MUTABLE_FIELDS
from ..models import Item
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_item,
    coerce_integer,
    ValidationError,
    ConflictError,
    MAX_DB_INTEGER,
)
from ..decorators import require_auth

ITEM_POLICY = ModelValidationPolicy(
    writable_fields=set(ITEM_MUTABLE_FIELDS),
    required_on_create={"name", "original_price_cents"},
    ignored_fields={"existing_images", "images"},
)

items_bp = Blueprint("items", __name__, url_prefix="/api/products")

# Ids past the INTEGER range 404 at routing instead of overflowing the driver
ITEM_ID = f"<int(max={MAX_DB_INTEGER}):item_id>"


def _read_payload() -> tuple[dict, list[str] | None]:
    """
    Return (field payload, retained image refs or None).

    Multipart values arrive as strings; blank ones are treated as null.
    """
    if request.mimetype == "multipart/form-data" or request.form:
        payload = {k: (v if v.strip() != "" else None) for k, v in request.form.items()}
    else:
        payload = request.get_json(silent=True) or {}
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")

    raw_existing = payload.get("existing_images")
    if raw_existing is None:
        return payload, None
    if isinstance(raw_existing, str):
        try:
            raw_existing = json.loads(raw_existing)
        except ValueError:
            raise ValidationError("existing_images must be a JSON list")
    if not isinstance(raw_existing, list) or not all(isinstance(ref, str) for ref in raw_existing):
        raise ValidationError("existing_images must be a list of image references")
    return payload, raw_existing


@items_bp.get("")
def list_items():
    """
    Public catalog listing, newest first.

    Query params:
    - category: int (optional) - category id
    - status: available | sold_out | hidden (optional)
    - search: str (optional) - case-insensitive match on name or description
    """
    try:
        category = request.args.get("category")
        category_id = coerce_integer("category", category) if category else None
        items = catalog_service.list_items(
            category_id=category_id,
            status=request.args.get("status") or None,
            search=request.args.get("search") or None,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400

    return {"items": [i.to_dict() for i in items], "count": len(items)}


@items_bp.get(f"/{ITEM_ID}")
def get_item(item_id: int):
    item = catalog_service.get_item(item_id)
    if item is None:
        return {"error": "Product not found"}, 404
    return item.to_dict()


@items_bp.post("")
@require_auth
def create_item_route():
    """Create an item (JSON or multipart with up to five images)."""
    try:
        payload, _ = _read_payload()
        patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=False)
        enforce_rules_item(patch)
        refs = storage_service.save_images(request.files.getlist("images"))
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        item = catalog_service.create_item(patch=patch, images=refs)
    except ConflictError as e:
        storage_service.release_images(refs)
        return {"error": str(e)}, 409
    except ValidationError as e:
        storage_service.release_images(refs)
        return {"error": str(e)}, 400
    except Exception:
        storage_service.release_images(refs)
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500

    return item.to_dict(), 201


@items_bp.put(f"/{ITEM_ID}")
@require_auth
def update_item_route(item_id: int):
    """Update an item; new uploads are appended after the retained images."""
    try:
        payload, retained = _read_payload()
        patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=True)
        enforce_rules_item(patch)
        refs = storage_service.save_images(request.files.getlist("images"))
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = catalog_service.update_item(
            item_id=item_id,
            patch=patch,
            retained_images=retained,
            new_images=refs,
        )
    except ConflictError as e:
        storage_service.release_images(refs)
        return {"error": str(e)}, 409
    except ValidationError as e:
        storage_service.release_images(refs)
        return {"error": str(e)}, 400
    except Exception:
        storage_service.release_images(refs)
        current_app.logger.exception("Failed to update product")
        return {"error": "Internal server error"}, 500

    if updated is None:
        storage_service.release_images(refs)
        return {"error": "Product not found"}, 404

    return updated.to_dict(), 200


@items_bp.delete(f"/{ITEM_ID}")
@require_auth
def delete_item_route(item_id: int):
    """Delete an item and its image files. Sales history is kept."""
    if not catalog_service.delete_item(item_id=item_id):
        return {"error": "Product not found"}, 404
    return {"ok": True, "message": "Product deleted"}, 200
