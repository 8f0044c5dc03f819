from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """
    Coerce JSON input to Decimal.

    Floats go through str() so 0.3 stays 0.3 instead of its binary expansion.
    Raises ValueError for anything that is not a finite number.
    """
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"not a number: {value!r}")
    else:
        raise ValueError(f"not a number: {value!r}")

    if not result.is_finite():
        raise ValueError("number must be finite")
    return result


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def decimal_str(value: Optional[Decimal]) -> Optional[str]:
    """Render Numeric columns as strings so JSON never goes through float."""
    if value is None:
        return None
    return str(value)
