# backend/stockledger/config.py
from __future__ import annotations
import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored relative to the working directory unless DATABASE_URL is set
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///stockledger.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Image uploads. None means "<instance_path>/uploads", resolved in create_app.
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER")
    UPLOAD_URL_PREFIX = "/uploads"
    MAX_IMAGE_BYTES = 5 * 1024 * 1024
    MAX_IMAGES_PER_REQUEST = 5
    # Whole multipart body: five images plus form fields
    MAX_CONTENT_LENGTH = MAX_IMAGES_PER_REQUEST * MAX_IMAGE_BYTES + 1024 * 1024
    ALLOWED_IMAGE_EXTENSIONS = {"jpeg", "jpg", "png", "webp"}

    # Calendar day used by "today" figures on the dashboard
    STORE_TIMEZONE = os.environ.get("STORE_TIMEZONE", "UTC")
    LOW_STOCK_THRESHOLD = _env_int("LOW_STOCK_THRESHOLD", 5)
    RECENT_SALES_LIMIT = _env_int("RECENT_SALES_LIMIT", 5)

    SESSION_ABSOLUTE_TIMEOUT_HOURS = _env_int("SESSION_ABSOLUTE_TIMEOUT_HOURS", 24)
    SESSION_IDLE_TIMEOUT_MINUTES = _env_int("SESSION_IDLE_TIMEOUT_MINUTES", 120)

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if origin.strip()
    }

    # Seed values for the business display settings (flask settings seed)
    DEFAULT_SETTINGS = {
        "business_name": os.environ.get("BUSINESS_NAME", "SJ Spark Jewel"),
        "whatsapp_number": os.environ.get("WHATSAPP_NUMBER", "+91XXXXXXXXXX"),
        "phone_number": os.environ.get("PHONE_NUMBER", "+91XXXXXXXXXX"),
        "business_address": os.environ.get("BUSINESS_ADDRESS", "Your Address Here"),
    }
