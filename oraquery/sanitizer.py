"""Conversion of driver row values into JSON-safe primitives."""
import base64
import datetime
from decimal import Decimal
from typing import Any, Dict, List

PRIMITIVE_TYPES = (str, bool, int, float)


def _stringify(value: Any) -> str:
    # Prefer a type's own __str__; fall back to repr for plain objects
    if type(value).__str__ is not object.__str__:
        return str(value)
    return repr(value)


def sanitize_value(value: Any) -> Any:
    """Return ``value`` as a str, int, float, bool or None."""
    if value is None or isinstance(value, PRIMITIVE_TYPES):
        return value
    try:
        if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
            return value.isoformat()
        if isinstance(value, (bytes, bytearray, memoryview)):
            return base64.b64encode(bytes(value)).decode("ascii")
        if isinstance(value, Decimal):
            if value == value.to_integral_value():
                return int(value)
            return float(value)
        return _stringify(value)
    except Exception:
        return f"<unprintable {type(value).__name__}>"


def sanitize_row(row: Any) -> Any:
    if not isinstance(row, dict):
        return row
    return {key: sanitize_value(value) for key, value in row.items()}


def sanitize_rows(rows: List[Any]) -> List[Any]:
    return [sanitize_row(row) for row in rows or []]
