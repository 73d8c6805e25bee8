"""Conversion, loading and timing functions usable as data-map user functions."""

from __future__ import annotations

import dataclasses
import json
import math
import struct
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from toolbelt import helper
from toolbelt.helper import is_map, is_slice


@dataclasses.dataclass
class Doc:
    """Documentation of a user defined function."""

    description: str = ""
    example: str = ""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_struct(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def _json_default(value: Any) -> Any:
    if _is_struct(value):
        return dataclasses.asdict(value)
    return helper.as_string(value)


def _as_number(value: Any) -> int | float:
    number = helper.as_float(value)
    if math.isfinite(number) and float(int(number)) == number:
        return int(number)
    return number


def _text_if_bytes(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    return value


def _to_map(source: Any) -> dict:
    if _is_struct(source):
        return {f.name: getattr(source, f.name) for f in dataclasses.fields(source)}
    if hasattr(source, "__dict__") and not callable(source):
        return dict(vars(source))
    raise ValueError(f"unable to convert {type(source).__name__} to map")


def _normalize(value: Any) -> Any:
    if is_map(value):
        return {helper.as_string(key): _normalize(item) for key, item in value.items()}
    if is_slice(value):
        return [_normalize(item) for item in value]
    return value


def _load_yaml(text: str) -> Any:
    if not text.strip():
        raise ValueError("EOF")
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"invalid YAML: {exc}") from exc


def as_int(source: Any, state: Any = None) -> int:
    """Convert source to int, raising ValueError when it cannot be converted."""
    if isinstance(source, bool):
        return int(source)
    if isinstance(source, int):
        return source
    if isinstance(source, float):
        if not math.isfinite(source):
            raise ValueError(f"unable to convert {source} to int")
        return int(source)
    source = _text_if_bytes(source)
    if isinstance(source, str):
        text = source.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return as_int(float(text))
        except ValueError:
            raise ValueError(f"unable to convert {source!r} to int") from None
    raise ValueError(f"unable to convert {type(source).__name__} to int")


def as_string(source: Any, state: Any = None) -> str:
    """Convert source to text; maps, lists and dataclasses become JSON."""
    if is_slice(source) or is_map(source) or _is_struct(source):
        try:
            return json.dumps(
                source, separators=(",", ":"), ensure_ascii=False, default=_json_default
            )
        except (TypeError, ValueError):
            pass
    if _is_number(source):
        source = _as_number(source)
    return helper.as_string(source)


def to_lower(source: Any, state: Any = None) -> str:
    """Return source as lower case text."""
    return helper.as_string(source).lower()


def to_upper(source: Any, state: Any = None) -> str:
    """Return source as upper case text."""
    return helper.as_string(source).upper()


def as_float(source: Any, state: Any = None) -> float:
    """Convert source to float, or 0.0."""
    return helper.as_float(source)


def as_float32(source: Any, state: Any = None) -> float:
    """Convert source to float rounded to single precision."""
    value = helper.as_float(source)
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def as_bool(source: Any, state: Any = None) -> bool:
    """Convert source to bool."""
    return helper.as_boolean(source)


def as_map(source: Any, state: Any = None) -> Any:
    """Convert source, a map, JSON or YAML text, or a dataclass, into a dict."""
    if source is None or is_map(source):
        return source
    source = _text_if_bytes(source)
    if isinstance(source, str):
        text = source.strip()
        result: dict = {}
        if text.startswith("{") or text.endswith("}"):
            decoded = json.loads(text)
            if not isinstance(decoded, dict):
                raise ValueError(f"expected a JSON object, but had {type(decoded).__name__}")
            result.update(decoded)
        decoded = _load_yaml(source)
        if decoded is not None:
            if not is_map(decoded):
                raise ValueError(f"expected a map, but had {type(decoded).__name__}")
            result.update(decoded)
        return _normalize(result)
    return _to_map(source)


def as_collection(source: Any, state: Any = None) -> Any:
    """Convert source, a list or JSON or YAML text, into decoded data."""
    if source is None or is_slice(source):
        return source
    source = _text_if_bytes(source)
    if isinstance(source, str):
        text = source.strip()
        if text.startswith("[") or text.endswith("["):
            decoded = json.loads(text)
            if not isinstance(decoded, list):
                raise ValueError(f"expected a JSON array, but had {type(decoded).__name__}")
        return _normalize(_load_yaml(source))
    raise ValueError(f"unable convert to slice, unsupported type: {type(source).__name__}")


def as_data(source: Any, state: Any = None) -> Any:
    """Decode JSON or YAML text into a map or list; other values are returned as is."""
    if source is None or is_map(source) or is_slice(source):
        return source
    source = _text_if_bytes(source)
    if isinstance(source, str):
        text = source.strip()
        if (
            text.startswith("[")
            or text.endswith("[")
            or text.startswith("{")
            or text.endswith("}")
        ):
            json.loads(text)
        return _normalize(_load_yaml(source))
    return source


def as_json(source: Any, state: Any = None) -> str:
    """Return source as indented JSON."""
    return json.dumps(source, indent=2, ensure_ascii=False, default=_json_default)


def type_of(source: Any, state: Any = None) -> int:
    """Print the type name of source and return the number of bytes printed."""
    name = type(source).__name__
    print(name, end="")
    return len(name.encode("utf-8"))


def as_string_map(source: Any, state: Any = None) -> dict[str, str]:
    """Return a dict whose values are all text."""
    if source is None:
        raise ValueError("not a map")
    mapping = source if is_map(source) else _to_map(source)
    return {helper.as_string(key): helper.as_string(value) for key, value in mapping.items()}


def _is_new_line_delimited_json(text: str) -> bool:
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if len(lines) < 2:
        return False
    return all(
        (line.startswith("{") and line.endswith("}"))
        or (line.startswith("[") and line.endswith("]"))
        for line in lines
    )


def load_json(source: Any, state: Any = None) -> Any:
    """Load a JSON or new-line delimited JSON file whose path is source."""
    location = helper.as_string(source)
    if not location:
        raise ValueError("location was empty at load_json")
    try:
        text = Path(location).read_text(encoding="utf-8")
    except OSError as exc:
        raise OSError(exc.errno, f"failed to load: {location}: {exc.strerror}") from exc
    if _is_new_line_delimited_json(text):
        items = (json.loads(line) for line in text.splitlines() if line.strip())
        return [
            item
            for item in items
            if item is not None and not (is_map(item) and len(item) == 0)
        ]
    return json.loads(text)


def _to_time(source: Any) -> datetime:
    if isinstance(source, datetime):
        return source
    text = helper.as_string(source).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        raise ValueError(f"unable to parse time: {source!r}") from None
    if moment.tzinfo is None:
        raise ValueError(f"time has no timezone: {source!r}")
    return moment


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def _rem(a: int, b: int) -> int:
    return a - b * _trunc_div(a, b)


def elapsed(source: Any, state: Any = None) -> str:
    """Return the time since source, an RFC 3339 time, e.g. "2d0s", "1h0s" or "5m3s"."""
    moment = _to_time(source)
    now = datetime.now(moment.tzinfo) if moment.tzinfo else datetime.now()
    delta = now - moment
    seconds = _trunc_div(
        delta.days * 86400 * 1_000_000 + delta.seconds * 1_000_000 + delta.microseconds,
        1_000_000,
    )
    days = _trunc_div(seconds, 86400)
    hours = _rem(_trunc_div(seconds, 3600), 24)
    minutes = _rem(_trunc_div(seconds, 60), 60)
    secs = _rem(seconds, 60)
    result = f"{days}d" if days > 0 else ""
    if not result and hours > 0:
        result += f"{hours}h"
    if not result and minutes > 0:
        result += f"{minutes}m"
    return result + f"{secs}s"