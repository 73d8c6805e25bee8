"""Text, encoding, aggregation and collection functions usable as data-map user functions."""

from __future__ import annotations

import base64
import binascii
import json
import math
import random
import re
import urllib.parse
from collections.abc import Callable, Mapping, MutableMapping
from typing import Any

from toolbelt import udf_convert
from toolbelt.datamap import DataMap
from toolbelt.helper import as_boolean, as_float, as_int, as_string, is_map, is_slice

_INVALID_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_OR_SPLIT = re.compile(r"\|\|?")
_AND_SPLIT = re.compile(r"&&?")
_COMPARISON = re.compile(r"^(.*?)\s*(>=|<=|!=|==|=|>|<)\s*(.*)$", re.DOTALL)


def _as_data_map(state: Any) -> DataMap:
    return state if isinstance(state, DataMap) else DataMap(state)


def length(source: Any, state: Any = None) -> int:
    """Return the length of a list, map, bytes or text; other values give 0."""
    if is_slice(source):
        return len(source)
    if is_map(source):
        return len(source)
    if isinstance(source, (bytes, bytearray)):
        return len(source)
    if isinstance(source, str):
        if source.startswith("$"):
            raise ValueError(f"unexpanded variable: {source}")
        return len(source.encode("utf-8"))
    return 0


def replace(source: Any, state: Any = None) -> str:
    """Replace every occurrence of old with new in text; source is [text, old, new]."""
    if not is_slice(source):
        raise TypeError(f"expected list, but had {type(source).__name__}")
    if len(source) < 3:
        raise ValueError(
            f"expected 3 arguments (text, old, new), but had: {len(source)}"
        )
    text, old, new = (as_string(item) for item in source[:3])
    return text.replace(old, new)


def _pair(args: Any) -> list:
    if not is_slice(args):
        raise TypeError(f"expected 2 arguments but had: {type(args).__name__}")
    if len(args) != 2:
        raise ValueError(f"expected 2 arguments but had: {len(args)}")
    return list(args)


def join(args: Any, state: Any = None) -> str:
    """Join the items of a list with a separator; args is [items, separator]."""
    items, separator = _pair(args)
    if not is_slice(items):
        raise TypeError(
            f"expected 1st arguments as slice but had: {type(items).__name__}"
        )
    return as_string(separator).join(as_string(item) for item in items)


def split(args: Any, state: Any = None) -> list[str]:
    """Split text by a separator and trim each part; args is [text, separator]."""
    text, separator = _pair(args)
    if not isinstance(text, str):
        raise TypeError(
            f"expected 1st arguments as string but had: {type(text).__name__}"
        )
    separator = as_string(separator)
    parts = list(text) if separator == "" else text.split(separator)
    return [part.strip() for part in parts]


def _mapping_of(source: Any, state: Any) -> Mapping:
    mapping = udf_convert.as_map(source, state)
    if not is_map(mapping):
        raise ValueError("not a map")
    return mapping


def keys(source: Any, state: Any = None) -> list:
    """Return the keys of a map, or of JSON or YAML text describing one."""
    return list(_mapping_of(source, state).keys())


def values(source: Any, state: Any = None) -> list:
    """Return the values of a map, or of JSON or YAML text describing one."""
    return list(_mapping_of(source, state).values())


def index_of(source: Any, state: Any = None) -> int:
    """Return the position of an item in text or a collection, or -1; source is [container, item]."""
    if not is_slice(source):
        raise TypeError(f"expected arguments but had: {type(source).__name__}")
    if len(source) != 2:
        raise ValueError(f"expected 2 arguments but had: {len(source)}")
    container, wanted = source
    if isinstance(container, str):
        position = container.find(as_string(wanted))
        if position < 0:
            return -1
        return len(container[:position].encode("utf-8"))
    collection = udf_convert.as_collection(container, state)
    if not is_slice(collection):
        return -1
    wanted_text = as_string(wanted)
    for position, candidate in enumerate(collection):
        if candidate == wanted or as_string(candidate) == wanted_text:
            return position
    return -1


def _encodable_bytes(source: Any) -> bytes:
    if isinstance(source, str):
        return source.encode("utf-8")
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if is_map(source) or is_slice(source):
        try:
            return json.dumps(source, separators=(",", ":"), sort_keys=True).encode(
                "utf-8"
            )
        except (TypeError, ValueError):
            pass
    raise TypeError(f"unsupported type: {type(source).__name__}")


def _decodable_text(source: Any) -> str:
    if isinstance(source, str):
        return source
    if isinstance(source, (bytes, bytearray)):
        return bytes(source).decode("ascii", errors="replace")
    raise TypeError(f"unsupported type: {type(source).__name__}")


def base64_encode(source: Any, state: Any = None) -> str:
    """Encode text, bytes, or a map or list as JSON, with standard padded base64."""
    if source is None:
        return ""
    return base64.b64encode(_encodable_bytes(source)).decode("ascii")


def base64_raw_url_encode(source: Any, state: Any = None) -> str:
    """Encode like base64_encode but with the URL alphabet and no padding."""
    if source is None:
        return ""
    encoded = base64.urlsafe_b64encode(_encodable_bytes(source)).decode("ascii")
    return encoded.rstrip("=")


def base64_raw_url_decode(source: Any, state: Any = None) -> bytes | str:
    """Decode unpadded URL-alphabet base64 into bytes."""
    if source is None:
        return ""
    text = _decodable_text(source)
    if "=" in text:
        raise ValueError("illegal base64 data: unexpected padding")
    padded = text + "=" * (-len(text) % 4)
    try:
        return base64.b64decode(padded, altchars=b"-_", validate=True)
    except binascii.Error as exc:
        raise ValueError(f"illegal base64 data: {exc}") from exc


def base64_decode(source: Any, state: Any = None) -> bytes | str:
    """Decode standard padded base64 into bytes."""
    if source is None:
        return ""
    try:
        return base64.b64decode(_decodable_text(source), validate=True)
    except binascii.Error as exc:
        raise ValueError(f"illegal base64 data: {exc}") from exc


def base64_decode_text(source: Any, state: Any = None) -> str:
    """Decode standard padded base64 into text."""
    return as_string(base64_decode(source, state))


def query_escape(source: Any, state: Any = None) -> str:
    """Escape text for use in a URL query."""
    return urllib.parse.quote_plus(as_string(source), safe="")


def query_unescape(source: Any, state: Any = None) -> str:
    """Reverse query_escape, raising ValueError on malformed escapes."""
    text = as_string(source)
    bad = _INVALID_ESCAPE.search(text)
    if bad:
        raise ValueError(f"invalid URL escape {text[bad.start():bad.start() + 3]!r}")
    return urllib.parse.unquote_plus(text, errors="replace")


def trim_space(source: Any, state: Any = None) -> str:
    """Return text with leading and trailing white space removed."""
    return as_string(source).strip()


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            pass
    raise ValueError(f"unable to convert {value!r} to float")


def _aggregate(
    x_path: Any, state: Any, agg: Callable[[float, float], float]
) -> float:
    if state is None:
        raise ValueError("state was empty")
    total = 0.0

    def handle(value: Any) -> None:
        nonlocal total
        if value is None:
            return
        total = agg(total, _to_float(value))

    _match_path(as_string(x_path), state, handle)
    return total


def count(x_path: Any, state: Any = None) -> int | float:
    """Return the number of non-empty values matched by a slash-separated path."""
    return as_number(_aggregate(x_path, state, lambda previous, _: previous + 1))


def sum_values(x_path: Any, state: Any = None) -> int | float:
    """Return the sum of the values matched by a slash-separated path."""
    return as_number(
        _aggregate(x_path, state, lambda previous, value: previous + value)
    )


def select(params: Any, state: Any = None) -> list:
    """Return matched nodes, or chosen attributes of them; params is [path, attr, "attr:alias", ...]."""
    arguments = list(params) if is_slice(params) else [params]
    if not arguments:
        raise ValueError("expected a path argument")
    x_path = as_string(arguments[0])
    attributes = [as_string(item) for item in arguments[1:]]
    result: list = []

    def handle(matched: Any) -> None:
        if not attributes:
            result.append(matched)
            return
        if not is_map(matched):
            raise TypeError(
                f"expected map for {x_path}, but had {type(matched).__name__}"
            )
        matched_map = DataMap(matched)
        selected: dict[str, Any] = {}
        for attribute in attributes:
            path, _, alias = attribute.partition(":")
            value, found = matched_map.get_value(path)
            if found:
                selected[alias if ":" in attribute else attribute] = value
        result.append(selected)

    _match_path(x_path, state if state is not None else DataMap(), handle)
    return result


def as_number(value: Any, state: Any = None) -> int | float:
    """Return value as int when it is whole, otherwise as float."""
    number = as_float(value)
    if math.isfinite(number) and float(int(number)) == number:
        return int(number)
    return number


def _to_number(value: Any) -> float | None:
    try:
        return _to_float(value)
    except ValueError:
        return None


def _operand(record: DataMap, token: str) -> Any:
    token = token.strip()
    if token:
        value, found = record.get_value(token)
        if found:
            return value
    return token


def _compare(left: Any, operator: str, right: Any) -> bool:
    left_number, right_number = _to_number(left), _to_number(right)
    if left_number is not None and right_number is not None:
        a, b = left_number, right_number
    else:
        a, b = as_string(left), as_string(right)
    if operator in ("=", "=="):
        return a == b
    if operator == "!=":
        return a != b
    if operator == ">":
        return a > b
    if operator == "<":
        return a < b
    if operator == ">=":
        return a >= b
    return a <= b


def _evaluate_condition(record: DataMap, condition: str) -> bool:
    match = _COMPARISON.match(condition.strip())
    if not match:
        return as_boolean(_operand(record, condition))
    left, operator, right = match.groups()
    return _compare(_operand(record, left), operator, _operand(record, right))


def _evaluate_predicate(record: Mapping, expression: str) -> bool:
    data = DataMap(record)
    return any(
        all(_evaluate_condition(data, condition) for condition in _AND_SPLIT.split(part))
        for part in _OR_SPLIT.split(expression)
    )


def _match_path(x_path: str, state: Mapping, handler: Callable[[Any], None]) -> None:
    fragments = x_path.split("/")
    node: Mapping = state
    node_value: Any = None
    for position, part in enumerate(fragments):
        if position == len(fragments) - 1:
            if part == "*":
                if is_slice(node_value):
                    for item in node_value:
                        handler(item)
                    return
                if is_map(node_value):
                    for item in node_value.values():
                        handler(item)
                handler(node_value)
                return
            bracket = part.find("[")
            if bracket != -1 and part.endswith("]"):
                if bracket == 0:
                    raise ValueError(
                        "predicate expression operator [] must be applied to a slice "
                        f"of maps. E.g. node1/obj[id = 1].  node1/obj/[id = 1] is not valid: {part}"
                    )
                node_name = part[:bracket]
                node_value = node.get(node_name)
                if not is_slice(node_value):
                    raise TypeError(
                        f"expected slice for {node_name}, but had {type(node_value).__name__}"
                    )
                expression = part[bracket + 1 : -1]
                matched = []
                for record in node_value:
                    if not is_map(record):
                        raise TypeError(
                            f"expected slice elements to be map for {node_name}, "
                            f"but had {type(record).__name__}"
                        )
                    if _evaluate_predicate(record, expression):
                        matched.append(record)
                for record in matched:
                    handler(record)
                return
            if part not in node:
                break
            handler(node[part])
            continue
        if part != "*":
            node_value = node.get(part)
            if node_value is None:
                break
            if is_map(node_value):
                node = node_value
                continue
            if is_slice(node_value):
                continue
            break
        if node_value is None:
            break
        sub_path = "/".join(fragments[position + 1 :])
        items = (
            node_value
            if is_slice(node_value)
            else node_value.values() if is_map(node_value) else ()
        )
        for item in items:
            if not is_map(item):
                raise TypeError(f"unsupported path type:{type(item).__name__}")
            _match_path(sub_path, item, handler)
        break


def rand(params: Any, state: Any = None) -> int | float:
    """Return a random float in [0, 1), or an int in [min, max) when params is [min, max]."""
    value = random.random()
    if params is None or not is_slice(params) or len(params) != 2:
        return value
    low, high = as_int(params[0]), as_int(params[1])
    return low + int((high - low) * value)


def concat(params: Any, state: Any = None) -> Any:
    """Concatenate text when the first item is text, otherwise flatten items into a list."""
    if params is None or not is_slice(params):
        raise ValueError(
            "invalid signature, expected: $Concat(arrayOrItem1, arrayOrItem2)"
        )
    if not params:
        return []
    if isinstance(params[0], str):
        return "".join(as_string(item) for item in params)
    result: list = []
    for item in params:
        if is_slice(item):
            result.extend(item)
        else:
            result.append(item)
    return result


def merge(params: Any, state: Any = None) -> dict:
    """Merge maps, or paths to maps in state, into a new dict; later ones win."""
    if params is None or not is_slice(params):
        raise ValueError("invalid signature, expected: $Merge(map1, map2, override)")
    result: dict = {}
    lookup = _as_data_map(state) if state is not None else None
    for item in params:
        if isinstance(item, str) and lookup is not None:
            item, found = lookup.get_value(item)
            if not found:
                continue
        if not is_map(item):
            continue
        result.update(item)
    return result


def as_new_line_delimited_json(source: Any, state: Any = None) -> str:
    """Encode each item of a list as one line of compact JSON."""
    if source is None or not is_slice(source):
        raise ValueError(
            "invalid signature, expected: $AsNewLineDelimitedJSON([])"
        )
    lines = []
    for item in source:
        try:
            lines.append(json.dumps(item, separators=(",", ":"), sort_keys=True))
        except (TypeError, ValueError):
            lines.append("")
    return "\n".join(lines)


def register(a_map: MutableMapping) -> None:
    """Put every user function of this package into a_map under its expression name."""
    functions: dict[str, Callable[[Any, Any], Any]] = {
        "AsInt": udf_convert.as_int,
        "AsString": udf_convert.as_string,
        "AsFloat": udf_convert.as_float,
        "AsFloat32": udf_convert.as_float32,
        "AsFloat32Ptr": udf_convert.as_float32,
        "AsBool": udf_convert.as_bool,
        "AsMap": udf_convert.as_map,
        "AsData": udf_convert.as_data,
        "AsCollection": udf_convert.as_collection,
        "AsJSON": udf_convert.as_json,
        "Type": udf_convert.type_of,
        "Join": join,
        "Split": split,
        "Keys": keys,
        "Values": values,
        "Length": length,
        "Len": length,
        "IndexOf": index_of,
        "QueryEscape": query_escape,
        "QueryUnescape": query_unescape,
        "Base64Encode": base64_encode,
        "Base64Decode": base64_decode,
        "Base64RawURLEncode": base64_raw_url_encode,
        "Base64RawURLDecode": base64_raw_url_decode,
        "Base64DecodeText": base64_decode_text,
        "TrimSpace": trim_space,
        "Elapsed": udf_convert.elapsed,
        "Sum": sum_values,
        "Count": count,
        "AsNumber": as_number,
        "Select": select,
        "Rand": rand,
        "Concat": concat,
        "Merge": merge,
        "AsStringMap": udf_convert.as_string_map,
        "Replace": replace,
        "ToLower": udf_convert.to_lower,
        "ToUpper": udf_convert.to_upper,
        "AsNewLineDelimitedJSON": as_new_line_delimited_json,
        "LoadJSON": udf_convert.load_json,
    }
    for name, function in functions.items():
        a_map[name] = function