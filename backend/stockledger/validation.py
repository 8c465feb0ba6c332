from __future__ import annotations
from datetime import datetime
from decimal import Decimal, InvalidOperation
from stockledger.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: 99,999,999.99 (the DECIMAL(10, 2) ceiling, in cents)
MAX_PRICE_CENTS = 9_999_999_999

# Signed 64-bit INTEGER column range (SQLite, Postgres BIGINT)
MAX_DB_INTEGER = 2**63 - 1
MIN_DB_INTEGER = -(2**63)

ITEM_STATUSES = ("available", "sold_out", "hidden")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - ignored_fields: transport-only keys that may appear in a payload but are
      handled outside the model (e.g. existing_images on multipart updates)
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    ignored_fields: set[str] | None = None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _check_db_integer(key: str, value: int) -> int:
    if value < MIN_DB_INTEGER or value > MAX_DB_INTEGER:
        raise ValidationError(f"{key} is out of range")
    return value


def coerce_integer(key: str, value: Any) -> int:
    """
    Strict integer parsing shared by column coercion and sale quantities.

    Rejects bools, floats, decimals, scientific notation and values outside
    the signed 64-bit range of an INTEGER column.
    """
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return _check_db_integer(key, value)
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            parsed = int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
        return _check_db_integer(key, parsed)
    # Reject floats explicitly
    if isinstance(value, (float, Decimal)):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    # Other types
    raise ValidationError(f"{key} must be an integer")


def coerce_decimal(key: str, value: Any, scale: int | None = None) -> Decimal:
    """Parse a fixed-point value; floats go through str() so 12.5 stays 12.5."""
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, Decimal):
        dec = value
    elif isinstance(value, (int, float)):
        dec = Decimal(str(value))
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be a number")
        try:
            dec = Decimal(stripped)
        except InvalidOperation:
            raise ValidationError(f"{key} must be a number")
    else:
        raise ValidationError(f"{key} must be a number")

    if not dec.is_finite():
        raise ValidationError(f"{key} must be a finite number")
    if scale is not None:
        try:
            dec = dec.quantize(Decimal(1).scaleb(-scale))
        except InvalidOperation:
            # More digits than the decimal context holds
            raise ValidationError(f"{key} is out of range")
    return dec


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        return coerce_integer(col.key, value)

    # Fixed-point (discount percentage)
    if isinstance(coltype, Numeric):
        return coerce_decimal(col.key, value, coltype.scale)

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        # fallback: truthiness
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")


    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON (or form) data against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    ignored = policy.ignored_fields or set()
    payload = {k: v for k, v in payload.items() if k not in ignored}

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_cents(patch: dict, key: str, *, allow_zero: bool) -> None:
    if key not in patch or patch[key] is None:
        return
    cents = patch[key]
    if cents < 0 or (cents == 0 and not allow_zero):
        raise ValidationError(f"{key} must be {'>= 0' if allow_zero else '> 0'}")
    if cents > MAX_PRICE_CENTS:
        raise ValidationError(f"{key} cannot exceed {MAX_PRICE_CENTS}")


def enforce_rules_item(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _check_cents(patch, "original_price_cents", allow_zero=False)
    _check_cents(patch, "selling_price_cents", allow_zero=True)
    _check_cents(patch, "cost_price_cents", allow_zero=True)

    if "cost_price_cents" in patch and patch["cost_price_cents"] is None:
        patch["cost_price_cents"] = 0

    if "quantity" in patch and patch["quantity"] is not None and patch["quantity"] < 0:
        raise ValidationError("quantity must be >= 0")

    if "status" in patch and patch["status"] not in ITEM_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(ITEM_STATUSES)}")

    # Blank SKU means "no SKU"; "" would collide under the unique constraint
    if "sku" in patch and patch["sku"] == "":
        patch["sku"] = None

    if "category_id" in patch and patch["category_id"] is not None and patch["category_id"] <= 0:
        patch["category_id"] = None
