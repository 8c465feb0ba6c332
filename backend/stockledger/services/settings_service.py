# Overview: Business display settings (key/value) read by the storefront.

from __future__ import annotations

from ..extensions import db
from ..models import Setting
from ..validation import ValidationError

MAX_KEY_LENGTH = 255


class SettingsValidationError(ValidationError):
    pass


def get_settings() -> dict[str, str | None]:
    rows = db.session.query(Setting).order_by(Setting.key.asc()).all()
    return {row.key: row.value for row in rows}


def _normalize_updates(updates: dict) -> dict[str, str | None]:
    if not isinstance(updates, dict) or not updates:
        raise SettingsValidationError("Settings payload must be a non-empty object")

    normalized = {}
    for key, value in updates.items():
        key = str(key).strip()
        if not key:
            raise SettingsValidationError("Setting keys cannot be blank")
        if len(key) > MAX_KEY_LENGTH:
            raise SettingsValidationError(f"Setting key exceeds max length {MAX_KEY_LENGTH}")
        if isinstance(value, (dict, list)):
            raise SettingsValidationError(f"Setting {key} must be a scalar value")
        normalized[key] = None if value is None else str(value)
    return normalized


def update_settings(updates: dict) -> dict[str, str | None]:
    """Upsert each key; returns the full settings map."""
    normalized = _normalize_updates(updates)

    existing = {
        row.key: row
        for row in db.session.query(Setting).filter(Setting.key.in_(normalized.keys())).all()
    }
    for key, value in normalized.items():
        row = existing.get(key)
        if row is None:
            db.session.add(Setting(key=key, value=value))
        else:
            row.value = value

    db.session.commit()
    return get_settings()


def seed_default_settings(defaults: dict[str, str]) -> list[str]:
    """Insert missing defaults without touching existing values. Returns the keys created."""
    present = {key for (key,) in db.session.query(Setting.key).all()}
    created = []
    for key, value in defaults.items():
        if key in present:
            continue
        db.session.add(Setting(key=key, value=value))
        created.append(key)
    db.session.commit()
    return created
