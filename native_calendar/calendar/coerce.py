"""Coerce-or-default decoders for loosely-typed call arguments.

Every decoder returns ``default`` when the value has the wrong shape
instead of raising. Event and settings models decode their fields one
at a time through these helpers.
"""
import math
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

# Largest magnitude accepted as an integer; epoch millis stay far below it
MAX_INT_MAGNITUDE = 10**18
# Decimal exponents past this are rejected before converting to int
MAX_DECIMAL_EXPONENT = 18


def as_str(value: Any, default: str | None = None) -> str | None:
    """Return ``value`` if it is a string, else ``default``."""
    if isinstance(value, str):
        return value
    return default


def _bounded(number: int, default: int | None) -> int | None:
    if abs(number) > MAX_INT_MAGNITUDE:
        return default
    return number


def _decimal_to_int(number: Decimal, default: int | None) -> int | None:
    # int() on a huge exponent builds the whole number, so check it first
    if not number.is_finite() or number.adjusted() > MAX_DECIMAL_EXPONENT:
        return default
    return _bounded(int(number), default)


def as_int(value: Any, default: int | None = None) -> int | None:
    """
    Coerce ints, floats, decimals and numeric strings to ``int``.

    Floats and decimals are truncated toward zero. Booleans are rejected
    because they are never a meaningful number on the wire. Non-finite
    values and magnitudes above ``MAX_INT_MAGNITUDE`` fall back to
    ``default``.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return _bounded(value, default)
    if isinstance(value, float):
        if not math.isfinite(value):
            return default
        return _bounded(int(value), default)
    if isinstance(value, Decimal):
        return _decimal_to_int(value, default)
    if isinstance(value, str):
        text = value.strip()
        try:
            number = Decimal(text)
        except InvalidOperation:
            return default
        return _decimal_to_int(number, default)
    return default


def as_float(value: Any, default: float | None = None) -> float | None:
    """Coerce numbers and numeric strings to a finite ``float``."""
    if isinstance(value, bool):
        return default
    try:
        if isinstance(value, (int, float, Decimal)):
            number = float(value)
        elif isinstance(value, str):
            number = float(value.strip())
        else:
            return default
    except (ValueError, OverflowError):
        return default
    if not math.isfinite(number):
        return default
    return number


def as_bool(value: Any, default: bool | None = None) -> bool | None:
    """Return ``value`` if it is a real boolean, else ``default``."""
    if isinstance(value, bool):
        return value
    return default


def as_list(value: Any) -> list | None:
    """Wrap a scalar in a list; pass lists and tuples through; ``None`` stays ``None``."""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def as_mapping(value: Any) -> Mapping | None:
    """Return ``value`` if it is a mapping, else ``None``."""
    if isinstance(value, Mapping):
        return value
    return None
