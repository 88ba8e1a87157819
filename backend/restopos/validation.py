from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .models.types import Money
from .money import MAX_AMOUNT, to_money
from .time_utils import parse_iso_datetime

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    What a client may write to one model.

    - writable_fields: allowlist; anything else (restaurant_id included) is rejected
    - required_on_create: must be present when partial=False
    - min_lengths: minimum stripped length of text fields
    - email_fields: normalized to lowercase and checked for shape
    - blank_to_null: nullable text fields where "" means "clear it"
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    min_lengths: dict[str, int] = field(default_factory=dict)
    email_fields: set[str] = field(default_factory=set)
    blank_to_null: set[str] = field(default_factory=set)


def validate_email(value: Any, *, key: str = "email") -> str:
    """Trimmed, lowercased email or ValidationError."""
    if not isinstance(value, str) or not EMAIL_RE.match(value.strip()):
        raise ValidationError(f"{key} must be a valid email address")
    return value.strip().lower()


def coerce_int(key: str, value: Any) -> int:
    """Whole numbers only: bools, floats, "1.0" and "1e3" are refused."""
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("+-").isdigit():
            return int(text)
        if "e" in text.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if "." in text:
            raise ValidationError(f"{key} must be an integer (no decimals)")
    raise ValidationError(f"{key} must be an integer")


def _coerce_amount(key: str, value: Any):
    amount = to_money(value, field=key)
    if amount < 0:
        raise ValidationError(f"{key} must be >= 0")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{key} cannot exceed {MAX_AMOUNT:,}")
    return amount


def _coerce_datetime(key: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            parsed = parse_iso_datetime(value)
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed
    raise ValidationError(f"{key} must be an ISO-8601 datetime")


def _coerce(key: str, column, value: Any):
    kind = column.type
    if isinstance(kind, Money):
        return _coerce_amount(key, value)
    if isinstance(kind, Integer):
        return coerce_int(key, value)
    if isinstance(kind, Boolean):
        if not isinstance(value, bool):
            raise ValidationError(f"{key} must be true or false")
        return value
    if isinstance(kind, DateTime):
        return _coerce_datetime(key, value)
    if isinstance(kind, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{key} must be a string")
        return str(value).strip()
    return value


def _check_text(key: str, column, value: str, policy: ModelValidationPolicy):
    if value == "":
        if key in policy.blank_to_null and column.nullable:
            return None
        if not column.nullable:
            raise ValidationError(f"{key} cannot be blank")
        return value

    if key in policy.email_fields:
        value = validate_email(value, key=key)

    limit = getattr(column.type, "length", None)
    if limit and len(value) > limit:
        raise ValidationError(f"{key} exceeds max length {limit}")

    minimum = policy.min_lengths.get(key)
    if minimum and len(value) < minimum:
        raise ValidationError(f"{key} must be at least {minimum} characters")
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Check a JSON body against the model's columns and the policy.

    Create (partial=False) also enforces required_on_create; patch
    (partial=True) looks only at the keys sent. Keys are mapper attribute
    names, so money fields are "price", never "price_cents".

    Returns a new dict holding only coerced, writable values.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(policy.required_on_create - set(payload))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {prop.key: prop.columns[0] for prop in model.__mapper__.column_attrs}

    cleaned: dict = {}
    for key, raw in payload.items():
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        column = columns.get(key)
        if column is None:
            raise ValidationError(f"Unknown field: {key}")

        if raw is None:
            if not column.nullable:
                raise ValidationError(f"{key} cannot be null")
            cleaned[key] = None
            continue

        value = _coerce(key, column, raw)
        if isinstance(value, str):
            value = _check_text(key, column, value, policy)
        cleaned[key] = value

    return cleaned


def enforce_rules_positive_quantity(patch: dict, key: str = "quantity") -> None:
    if patch.get(key) is not None and patch[key] <= 0:
        raise ValidationError(f"{key} must be > 0")
