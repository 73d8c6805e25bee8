"""General value conversion and inspection helpers used across the toolbelt."""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from typing import Any


def extract_path(expression: str) -> str:
    """Strip operators and sigils from an expression, leaving its data path."""
    kept = "".join(
        char
        for char in expression
        if char.isalpha() or char.isdecimal() or char in "[]._{}"
    )
    return kept.strip("{}")


def is_map(value: Any) -> bool:
    """Return True if value is a mapping."""
    return isinstance(value, Mapping)


def is_slice(value: Any) -> bool:
    """Return True if value is a list or tuple."""
    return isinstance(value, (list, tuple))


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def as_string(value: Any) -> str:
    """Return a textual form of value."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, separators=(",", ":"), default=as_string)
    return str(value)


def as_int(value: Any) -> int:
    """Convert value to int, returning 0 when it cannot be converted."""
    if value is None:
        return 0
    if isinstance(value, (bool, int)):
        return int(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return 0
        return int(value)
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return as_int(float(text))
        except ValueError:
            return 0
    return 0


def as_float(value: Any) -> float:
    """Convert value to float, returning 0.0 when it cannot be converted."""
    if value is None:
        return 0.0
    if isinstance(value, (bool, int, float)):
        return float(value)
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return 0.0
    return 0.0


def as_boolean(value: Any) -> bool:
    """Convert value to bool: "true", "t" and "1" are true, numbers are true when non-zero."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, str):
        return value.strip().lower() in ("true", "t", "1")
    return False


def sort_keys(key: Any, mapping: Mapping) -> list:
    """Return the keys of mapping sorted by the kind of value that key is."""
    if not mapping:
        return []
    if isinstance(key, int) and not isinstance(key, bool):
        return sorted(as_int(item) for item in mapping)
    if isinstance(key, float):
        return sorted(as_float(item) for item in mapping)
    if isinstance(key, str):
        return sorted(as_string(item) for item in mapping)
    raise ValueError(f"unable sort, unsupported type: {type(key).__name__}")