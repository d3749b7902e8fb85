from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from portaria.time_utils import parse_iso_datetime


# Maximum price: R$ 9.999.999,99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ValidationError(ValueError):
    """400-level input problem."""


@dataclass(frozen=True)
class Field:
    """
    Declared shape of one input value.

    kind is one of: string, int, number, bool, datetime, enum.
    """
    kind: str
    required: bool = True
    min_length: int | None = None
    max_length: int | None = None
    minimum: float | None = None
    positive: bool = False
    choices: tuple[str, ...] | None = None
    email: bool = False


@dataclass(frozen=True)
class Shape:
    """
    Declared shape of an object input.

    optional=True lets the whole object be omitted (null input).
    Keys not declared in fields are dropped.
    """
    fields: dict[str, Field] = field(default_factory=dict)
    optional: bool = False


def _coerce_value(key: str, rule: Field, value: Any):
    kind = rule.kind

    # Integers - strict validation to reject floats and scientific notation
    if kind == "int":
        if isinstance(value, bool):
            raise ValidationError(f"{key} must be an integer")
        if isinstance(value, int):
            result = value
        elif isinstance(value, float) and value.is_integer():
            result = int(value)
        elif isinstance(value, str):
            stripped = value.strip()
            if not stripped or not re.fullmatch(r"-?\d+", stripped):
                raise ValidationError(f"{key} must be an integer")
            result = int(stripped)
        else:
            raise ValidationError(f"{key} must be an integer")
        _check_range(key, rule, result)
        return result

    if kind == "number":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"{key} must be a number")
        _check_range(key, rule, value)
        return value

    if kind == "bool":
        if not isinstance(value, bool):
            raise ValidationError(f"{key} must be a boolean")
        return value

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if kind == "datetime":
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{key} must be a datetime")

    if kind == "enum":
        if value not in (rule.choices or ()):
            allowed = ", ".join(rule.choices or ())
            raise ValidationError(f"{key} must be one of: {allowed}")
        return value

    if kind == "string":
        if not isinstance(value, str):
            raise ValidationError(f"{key} must be a string")
        val = value.strip()
        if rule.min_length is not None and len(val) < rule.min_length:
            if rule.min_length == 1:
                raise ValidationError(f"{key} cannot be blank")
            raise ValidationError(f"{key} must be at least {rule.min_length} characters")
        if rule.max_length is not None and len(val) > rule.max_length:
            raise ValidationError(f"{key} exceeds max length {rule.max_length}")
        if rule.email and not _EMAIL_RE.match(val):
            raise ValidationError(f"{key} must be a valid email")
        return val

    raise ValidationError(f"{key} has unsupported type {kind}")


def _check_range(key: str, rule: Field, value) -> None:
    if rule.positive and value <= 0:
        raise ValidationError(f"{key} must be > 0")
    if rule.minimum is not None and value < rule.minimum:
        raise ValidationError(f"{key} must be >= {rule.minimum:g}")


def validate_input(schema: Shape | Field | None, payload: Any) -> Any:
    """
    Validates + normalizes an RPC input against its declared shape.

    - schema None: input is ignored and None is returned
    - Field: payload is a single scalar (e.g. a ticket id)
    - Shape: payload is an object; returns a cleaned dict holding only
      declared keys, with optional keys that were omitted left out
    """
    if schema is None:
        return None

    if isinstance(schema, Field):
        if payload is None:
            if schema.required:
                raise ValidationError("input is required")
            return None
        return _coerce_value("input", schema, payload)

    if payload is None:
        if schema.optional:
            return {}
        raise ValidationError("input is required")
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    missing = [
        k for k, rule in schema.fields.items()
        if rule.required and payload.get(k) is None
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cleaned: dict = {}
    for k, rule in schema.fields.items():
        raw = payload.get(k)
        if raw is None:
            continue
        cleaned[k] = _coerce_value(k, rule, raw)

    return cleaned


def enforce_price_cents(price_cents: int) -> None:
    """Business rules for ticket type prices that the input shape cannot express."""
    if price_cents < 0:
        raise ValidationError("price must be >= 0")
    if price_cents > MAX_PRICE_CENTS:
        raise ValidationError(f"price cannot exceed {MAX_PRICE_CENTS / 100:,.2f}")
