"""Printing of data as JSON."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping
from typing import Any

from toolbelt.helper import as_string, is_map, is_slice


def _default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    return as_string(value)


def _is_struct(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if is_map(value) or is_slice(value):
        return len(value) == 0
    return isinstance(value, str) and value == ""


def delete_empty_keys(data: Mapping) -> dict:
    """Return a copy of data without keys whose values are None, empty text or empty containers."""
    result: dict = {}
    for key, value in data.items():
        if is_map(value):
            value = delete_empty_keys(value)
        elif is_slice(value):
            value = [
                delete_empty_keys(item) if is_map(item) else item
                for item in value
            ]
        if _is_empty(value):
            continue
        result[key] = value
    return result


def dump(data: Any) -> None:
    """Print data as compact JSON; data that cannot be encoded prints nothing."""
    try:
        text = json.dumps(data, separators=(",", ":"), sort_keys=True, default=_default)
    except (TypeError, ValueError):
        return
    print(text)


def dump_indent(data: Any, remove_empty_keys: bool) -> None:
    """Print data as indented JSON, optionally dropping empty keys from maps."""
    if is_map(data) or _is_struct(data):
        mapping = dataclasses.asdict(data) if _is_struct(data) else dict(data)
        data = delete_empty_keys(mapping) if remove_empty_keys else mapping
    text = json.dumps(data, indent=2, sort_keys=True, default=_default)
    print(text)