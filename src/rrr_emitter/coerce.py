"""
Attribute value coercion.

Both helpers are total: any input yields a string / number, never an exception.
"""

from __future__ import annotations

import json
import math
from typing import Any, Union

Number = Union[int, float]


def _num_to_string(val: Number) -> str:
    if isinstance(val, float):
        if math.isnan(val):
            return "NaN"
        if math.isinf(val):
            return "Infinity" if val > 0 else "-Infinity"
        if val.is_integer():
            return str(int(val))
    return str(val)


def to_string_value(val: Any) -> str:
    """Canonical string form of an attribute value."""
    if isinstance(val, str):
        return val
    if isinstance(val, bool):
        return "true" if val else "false"
    if isinstance(val, (int, float)):
        return _num_to_string(val)
    if val is None:
        return ""
    if isinstance(val, (dict, list, tuple)):
        try:
            return json.dumps(val, separators=(",", ":"), default=str)
        except (TypeError, ValueError):
            return ""
    try:
        return str(val)
    except Exception:
        return ""


def to_number_value(val: Any) -> Number:
    """Numeric form of an attribute value; 0 when it does not parse or is not finite."""
    if isinstance(val, bool):
        return 1 if val else 0
    if isinstance(val, int):
        return val
    if isinstance(val, float):
        return val if math.isfinite(val) else 0
    if isinstance(val, (bytes, bytearray)):
        val = val.decode("utf-8", errors="replace")
    if isinstance(val, str):
        s = val.strip()
        if not s:
            return 0
        try:
            return int(s)
        except ValueError:
            pass
        try:
            f = float(s)
        except ValueError:
            return 0
        return f if math.isfinite(f) else 0
    if val is None:
        return 0
    try:
        f = float(val)
    except (TypeError, ValueError, OverflowError):
        return 0
    return f if math.isfinite(f) else 0
