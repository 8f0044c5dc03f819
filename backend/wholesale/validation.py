from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from wholesale.errors import ComplianceError, ValidationError
from wholesale.money import to_decimal

# Farm Bill cap on Delta-9 THC (percent, dry weight)
MAX_DELTA9_THC = Decimal("0.3")

# Maximum price per lb: $9,999,999.99
MAX_PRICE = Decimal("9999999.99")

STATE_CODE_RE = re.compile(r"^[A-Z]{2}$")


def json_object(payload: Any) -> dict:
    """Request body as a dict; a missing body is empty, any other JSON type is a 400."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - reject floats, bools and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped or "e" in stripped.lower() or "." in stripped:
                raise ValidationError(f"{col.key} must be an integer")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        raise ValidationError(f"{col.key} must be an integer")

    # Decimals (money, weights, percentages)
    if isinstance(coltype, Numeric):
        try:
            return to_decimal(value)
        except ValueError:
            raise ValidationError(f"{col.key} must be a number")

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        if isinstance(value, str) and value.strip().lower() in ("true", "false", "1", "0"):
            return value.strip().lower() in ("true", "1")
        raise ValidationError(f"{col.key} must be a boolean")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

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
    Returns a cleaned patch dict with only the keys the client sent.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    payload = json_object(payload)

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def normalize_state_list(value: Any, *, key: str = "restricted_states") -> str | None:
    """Accept ["ID", "or"] or "ID, OR" and return canonical "ID,OR" (None when empty)."""
    if value is None:
        return None
    if isinstance(value, str):
        parts = value.split(",")
    elif isinstance(value, (list, tuple)):
        parts = value
    else:
        raise ValidationError(f"{key} must be a list of state codes")

    codes: list[str] = []
    for part in parts:
        if not isinstance(part, str):
            raise ValidationError(f"{key} must contain two-letter state codes")
        code = part.strip().upper()
        if not code:
            continue
        if not STATE_CODE_RE.match(code):
            raise ValidationError(f"{key} contains an invalid state code: {part!r}")
        if code not in codes:
            codes.append(code)
    return ",".join(codes) or None


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.

    Range checks run first so a malformed write never reaches the
    compliance check.
    """
    for key in ("price_per_lb", "price_5lb", "price_10lb"):
        price = patch.get(key)
        if price is None:
            continue
        if price < 0:
            raise ValidationError(f"{key} must be >= 0")
        if price > MAX_PRICE:
            raise ValidationError(f"{key} cannot exceed {MAX_PRICE}")

    for key in ("inventory_lbs", "delta9_thc_pct", "thca_pct", "cbd_pct"):
        value = patch.get(key)
        if value is not None and value < 0:
            raise ValidationError(f"{key} must be >= 0")

    for key in ("thca_pct", "cbd_pct"):
        value = patch.get(key)
        if value is not None and value > 100:
            raise ValidationError(f"{key} must be <= 100")

    thc = patch.get("delta9_thc_pct")
    if thc is not None and thc > MAX_DELTA9_THC:
        raise ComplianceError(
            f"Delta-9 THC exceeds the Farm Bill limit of {MAX_DELTA9_THC}%",
            details={"delta9_thc_pct": str(thc), "max": str(MAX_DELTA9_THC)},
        )
