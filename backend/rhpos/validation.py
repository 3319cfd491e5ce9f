from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError


# Maximum price: 9,999,999,999.99 fits Numeric(12, 2)
MAX_PRICE = Decimal("9999999999.99")
CENT = Decimal("0.01")

# Signed 64-bit range of INTEGER columns
MIN_INT = -(2 ** 63)
MAX_INT = 2 ** 63 - 1

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def clamp_pagination(page: int | None, per_page: int | None) -> tuple[int, int]:
    """page >= 1 and 1 <= per_page <= 100; missing values fall back to defaults."""
    page = max(page or 1, 1)
    if per_page is None:
        per_page = DEFAULT_PAGE_SIZE
    per_page = min(max(per_page, 1), MAX_PAGE_SIZE)
    return page, per_page


def parse_int(value: Any, field: str) -> int:
    """Strict integer: rejects bools, floats, decimals and scientific notation."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return _bounded_int(value, field)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            number = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
        return _bounded_int(number, field)
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def _bounded_int(value: int, field: str) -> int:
    if value < MIN_INT or value > MAX_INT:
        raise ValidationError(f"{field} is out of range")
    return value


def parse_money(value: Any, field: str) -> Decimal:
    """
    Decimal currency amount. Floats go through str() so 12000.5 stays 12000.5
    rather than its binary expansion.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return amount


def parse_percent(value: Any, field: str) -> Decimal:
    if value is None:
        return Decimal("0")
    pct = parse_money(value, field)
    if pct < 0 or pct > 100:
        raise ValidationError(f"{field} must be between 0 and 100")
    if pct != pct.quantize(CENT):
        raise ValidationError(f"{field} allows at most 2 decimal places")
    return pct


def require_text(payload: dict, field: str, max_length: int | None = None) -> str:
    raw = payload.get(field)
    if raw is None:
        raise ValidationError(f"{field} is required")
    value = str(raw).strip()
    if not value:
        raise ValidationError(f"{field} cannot be blank")
    if max_length and len(value) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return value


def optional_text(payload: dict, field: str) -> str | None:
    raw = payload.get(field)
    if raw is None:
        return None
    value = str(raw).strip()
    return value or None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Numeric before Integer: money columns
    if isinstance(coltype, Numeric):
        amount = parse_money(value, col.key)
        if coltype.scale is not None and amount != amount.quantize(Decimal(1).scaleb(-coltype.scale)):
            raise ValidationError(f"{col.key} allows at most {coltype.scale} decimal places")
        return amount

    if isinstance(coltype, Integer):
        return parse_int(value, col.key)

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
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

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

    clean: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            clean[k] = None
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

        clean[k] = val

    return clean


def enforce_rules_product(clean: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    for field in ("cost_price", "sale_price"):
        if field in clean and clean[field] is not None:
            price = clean[field]
            if price < 0:
                raise ValidationError(f"{field} must be >= 0")
            if price > MAX_PRICE:
                raise ValidationError(f"{field} cannot exceed {MAX_PRICE}")

    if "stock" in clean and clean["stock"] is not None and clean["stock"] < 0:
        raise ValidationError("stock must be >= 0")
