# backend/stockledger/routes/system.py
"""
System health endpoint and uploaded image serving.
"""

import time
from flask import Blueprint, current_app, send_from_directory
from sqlalchemy import text

from ..extensions import db
from stockledger.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/api/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: database reachable
    - 503: database unreachable
    """
    database_health = check_database_health()
    healthy = database_health["status"] == "healthy"

    response = {
        "status": "ok" if healthy else "unhealthy",
        "timestamp": utcnow().isoformat() + "Z",
        "database": database_health,
    }
    return response, 200 if healthy else 503


@system_bp.get("/uploads/<path:filename>")
def uploaded_image(filename: str):
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], filename)
