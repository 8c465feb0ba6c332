from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..decorators import require_auth
from ..services import settings_service
from ..services.settings_service import SettingsValidationError


settings_bp = Blueprint("settings", __name__, url_prefix="/api")


@settings_bp.get("/settings")
def get_settings_route():
    # Public: the storefront shows business name and contact numbers
    return jsonify(settings_service.get_settings())


@settings_bp.put("/settings")
@require_auth
def update_settings_route():
    payload = request.get_json(silent=True)
    try:
        settings = settings_service.update_settings(payload)
    except SettingsValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"message": "Settings updated", "settings": settings}), 200
