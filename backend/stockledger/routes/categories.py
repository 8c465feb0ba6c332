# Overview: Flask API routes for categories; parses input and returns JSON responses.

from flask import Blueprint, request

from ..services import category_service
from ..models import Category
from ..validation import ModelValidationPolicy, validate_payload, ValidationError, MAX_DB_INTEGER
from ..decorators import require_auth

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name"},
)

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")

CATEGORY_ID = f"<int(max={MAX_DB_INTEGER}):category_id>"


@categories_bp.get("")
def list_categories():
    categories = category_service.list_categories()
    return {"items": [c.to_dict() for c in categories], "count": len(categories)}


@categories_bp.post("")
@require_auth
def create_category_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    category = category_service.create_category(patch=patch)
    return category.to_dict(), 201


@categories_bp.put(f"/{CATEGORY_ID}")
@require_auth
def update_category_route(category_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
    except ValidationError as e:
        return {"error": str(e)}, 400

    category = category_service.update_category(category_id=category_id, patch=patch)
    if category is None:
        return {"error": "Category not found"}, 404
    return category.to_dict(), 200


@categories_bp.delete(f"/{CATEGORY_ID}")
@require_auth
def delete_category_route(category_id: int):
    """Delete a category; its items stay in the catalog without a category."""
    if not category_service.delete_category(category_id=category_id):
        return {"error": "Category not found"}, 404
    return {"ok": True, "message": "Category deleted"}, 200
