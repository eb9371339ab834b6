"""
Numeric Normalization

Single ingestion point for loosely-typed values coming out of the
persistence layer (Decimal columns, strings, None). Everything past this
module works with plain floats, ints and dates.
"""

import math
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional, Union


def to_amount(value: Any) -> float:
    """
    Normalize a monetary or rate value to a finite float.

    Accepts None, numbers, numeric strings, Decimal and objects exposing
    ``to_number()``. Anything unparseable, NaN or infinite becomes 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if hasattr(value, "to_number") and callable(value.to_number):
        value = value.to_number()

    try:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return 0.0
            number = float(Decimal(value))
        else:
            number = float(value)
    except (TypeError, ValueError, InvalidOperation, OverflowError):
        return 0.0

    if not math.isfinite(number):
        return 0.0
    return number


def to_int(value: Any) -> int:
    """Normalize a count (months, periods per year). Truncates toward zero."""
    return int(to_amount(value))


def to_date(value: Any) -> Optional[date]:
    """Normalize a date-like value; datetimes keep only their date part."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            try:
                return date.fromisoformat(text[:10])
            except ValueError:
                return None
    return None


def round_half_up(value: float, places: int = 0) -> Union[int, float]:
    """
    Round half away from zero (unlike the built-in banker's rounding).

    ``places=0`` returns an int.
    """
    if not math.isfinite(value):
        return 0 if places == 0 else 0.0
    quantum = Decimal(1).scaleb(-places)
    try:
        rounded = Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # Beyond Decimal's context precision; already coarser than the quantum.
        rounded = Decimal(repr(value))
    if places == 0:
        return int(rounded)
    return float(rounded)


def round_currency(value: float) -> float:
    """Round a monetary value to cents."""
    return round_half_up(value, 2)


def sum_currency(values) -> float:
    """Sum monetary values and round the result to cents."""
    return round_currency(sum(values, 0.0))
