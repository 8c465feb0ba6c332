# Overview: Flask API routes for dashboard reporting; parses input and returns JSON responses.

from flask import Blueprint, jsonify

from ..services import reporting_service
from ..decorators import require_auth


reports_bp = Blueprint("reports", __name__, url_prefix="/api")


@reports_bp.get("/stats")
@require_auth
def stats_route():
    """Dashboard totals, today's figures, low-stock count and recent sales."""
    return jsonify(reporting_service.dashboard_stats()), 200
