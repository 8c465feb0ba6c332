# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/stockledger/routes/sales.py
"""Sales API routes (admin only)."""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import sales_service, ledger_service
from ..services.sales_service import (
    SaleError,
    ItemNotFound,
    InvalidQuantity,
    InsufficientStock,
    TransactionFailed,
)
from ..validation import ValidationError, coerce_integer
from ..decorators import require_auth


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

SALE_ERROR_STATUS = {
    ItemNotFound: 404,
    InvalidQuantity: 400,
    InsufficientStock: 400,
    TransactionFailed: 503,
}


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    Sales ledger, newest first.

    Query params:
    - from: ISO-8601 date/datetime (inclusive)
    - to: ISO-8601 date/datetime (inclusive; a plain date covers the whole day)
    """
    try:
        start, end = ledger_service.parse_range(request.args.get("from"), request.args.get("to"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    sales = ledger_service.list_sales(start=start, end=end)
    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)}), 200


@sales_bp.post("")
@require_auth
def record_sale_route():
    """
    Record a sale: decrements stock and appends a ledger entry atomically.

    Body: product_id, quantity, customer_name?, customer_phone?, notes?
    """
    data = request.get_json(silent=True) or {}

    raw_item_id = data.get("product_id", data.get("item_id"))
    if raw_item_id is None:
        return jsonify({"error": "product_id required"}), 400
    try:
        item_id = coerce_integer("product_id", raw_item_id)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        record = sales_service.record_sale(
            item_id,
            data.get("quantity"),
            data,
            recorded_by_user_id=g.current_user.id,
        )
    except SaleError as e:
        status = SALE_ERROR_STATUS.get(type(e), 400)
        if isinstance(e, InsufficientStock):
            current_app.logger.warning("Sale rejected: %s %s", e, e.details)
        elif isinstance(e, TransactionFailed):
            current_app.logger.exception("Sale transaction failed")
        return jsonify({"error": str(e), "details": e.details}), status
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info(
        "Sale %s recorded: item=%s quantity=%s total_cents=%s",
        record.id, record.item_id, record.quantity, record.total_price_cents,
    )
    return jsonify(record.to_dict()), 201
