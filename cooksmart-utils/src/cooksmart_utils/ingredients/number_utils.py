import math
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

_LEADING_NUMBER = re.compile(r"-?\d+(?:\.\d+)?(?:\s*/\s*\d+)?")


def _is_integer(text: str) -> bool:
    """Check if a string represents a valid integer."""
    try:
        int(text)
        return True
    except ValueError:
        return False


def _is_number(text: str) -> bool:
    """Check if a string represents a valid number (int or float)."""
    try:
        float(text)
        return True
    except ValueError:
        return False


def _is_fraction(text: str) -> bool:
    """Check if a string represents a valid fraction (e.g., '1/2')."""
    if "/" not in text:
        return False
    parts = text.split("/")
    return len(parts) == 2 and all(_is_integer(part) for part in parts)


def _parse_fraction(text: str) -> Decimal:
    """Parse a fraction string (e.g., '1/2') into a Decimal."""
    if "/" not in text:
        raise ValueError(f"Not a fraction: {text}")

    numerator_str, denominator_str = text.split("/")
    numerator = Decimal(numerator_str)
    denominator = Decimal(denominator_str)

    if denominator == 0:
        raise ZeroDivisionError("Division by zero in fraction")

    return numerator / denominator


def _coerce_number(value: Any) -> Optional[float]:
    """Best-effort conversion of a loosely typed value to a float.

    Accepts ints, floats, numeric strings, fractions ("1/2") and strings that
    start with a number ("25 minutes", "350 kcal"). Booleans and anything
    else return None.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            return _finite(float(value))
        except OverflowError:
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if _is_number(text):
        return _finite(float(text))

    match = _LEADING_NUMBER.match(text)
    if not match:
        return None
    token = match.group(0).replace(" ", "")
    try:
        if _is_fraction(token):
            return _finite(float(_parse_fraction(token)))
        return _finite(float(token))
    except (ValueError, ZeroDivisionError, OverflowError):
        return None


def _finite(number: float) -> Optional[float]:
    """Drop NaN and infinities."""
    return number if math.isfinite(number) else None


def safe_float(value: Any, default: float = 0.0, minimum: Optional[float] = 0.0) -> float:
    """Coerce a value to a float, falling back to ``default`` on failure.

    Args:
        value: Raw value from an external payload.
        default: Value used when the input is not numeric.
        minimum: Lower clamp; pass None to allow any value.

    Examples:
        >>> safe_float("2.5")
        2.5
        >>> safe_float("lots")
        0.0
    """
    number = _coerce_number(value)
    if number is None:
        return default
    if minimum is not None and number < minimum:
        return minimum
    return number


def safe_int(value: Any, default: int = 0, minimum: Optional[int] = 0) -> int:
    """Coerce a value to an int (rounded half up), falling back to ``default``.

    Examples:
        >>> safe_int("25 minutes", default=30)
        25
        >>> safe_int(None, default=4)
        4
    """
    number = _coerce_number(value)
    if number is None:
        return default
    result = int(Decimal(str(number)).to_integral_value(rounding=ROUND_HALF_UP))
    if minimum is not None and result < minimum:
        return minimum
    return result
