"""A dictionary with dotted-path access, increments, shifts and pushes."""

from __future__ import annotations

import re
from collections.abc import Mapping, MutableMapping
from typing import Any

from toolbelt.collection import Collection
from toolbelt.helper import (
    as_boolean,
    as_float,
    as_int,
    as_string,
    is_map,
    is_slice,
)

_REFERENCE = re.compile(r"\$\{([^{}]+)\}|\$([\w.\[\]]+)")


def _arity(value: Any) -> int | None:
    """Return the number of positional parameters of a Python function, if known."""
    code = getattr(value, "__code__", None)
    if code is None:
        return None
    count = code.co_argcount
    if getattr(value, "__self__", None) is not None:
        count -= 1
    return count


def _accepts(value: Any, count: int) -> bool:
    """Return True if value is a function taking exactly count positional arguments."""
    if not callable(value) or isinstance(value, type):
        return False
    return _arity(value) == count


def _parse_index(text: str) -> int | None:
    try:
        return int(text.strip())
    except ValueError:
        return None


def _store(state: Mapping, key: str, value: Any) -> None:
    if isinstance(state, MutableMapping):
        state[key] = value


def _collection_of(state: Mapping, key: str) -> Collection | None:
    if key not in state:
        return None
    value = state[key]
    if isinstance(value, Collection):
        return value
    if is_slice(value):
        return Collection(value)
    return None


def _map_of(state: MutableMapping, key: str) -> MutableMapping | None:
    if key not in state:
        return None
    value = state[key]
    if isinstance(value, MutableMapping):
        return value
    if isinstance(value, Mapping):
        converted = DataMap(value)
        state[key] = converted
        return converted
    return None


def _as_encodable_value(value: Any) -> Any:
    if value is None:
        return None
    if callable(value) and not isinstance(value, type):
        return "func()"
    if is_map(value):
        return DataMap(value).as_encodable_map()
    if is_slice(value):
        return [_as_encodable_value(item) for item in value]
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return value
    return as_string(value)


class DataMap(dict):
    """A dict whose keys may be addressed with path expressions such as a.b[0].c."""

    def put(self, key: str, value: Any) -> None:
        """Set key to value."""
        self[key] = value

    def delete(self, *args: str) -> None:
        """Remove the given keys; a key may be a dotted path such as request.method."""
        for key in args:
            if "." not in key:
                self.pop(key, None)
                continue
            parts = key.split(".")
            node: Any = self
            for position, part in enumerate(parts):
                if not isinstance(node, MutableMapping):
                    break
                if position == len(parts) - 1:
                    node.pop(part, None)
                elif is_map(node.get(part)):
                    node = node[part]
                else:
                    break

    def replace(self, key: str, val: str) -> None:
        """Set the value at key, a dotted path, only where the path already leads through maps."""
        if "." not in key:
            self[key] = val
            return
        parts = key.split(".")
        node: Any = self
        for position, part in enumerate(parts):
            if not isinstance(node, MutableMapping):
                break
            if position == len(parts) - 1:
                node[part] = val
            elif is_map(node.get(part)):
                node = node[part]
            else:
                break

    def has(self, key: str) -> bool:
        """Return True if key is present."""
        return key in self

    def get_value(self, expr: str) -> tuple[Any, bool]:
        """Evaluate a path expression, returning (value, found).

        Supported forms: a.b.c nested access, a[0] and a[key] indexing,
        <-key shift, ++key pre increment, key++ post increment and
        $key reference, where the key's content names the path.
        """
        if not expr:
            return None, False
        if expr.startswith("{") and expr.endswith("}"):
            expr = expr[1:-1]
        is_shift = expr.startswith("<-")
        if is_shift:
            expr = expr[2:]
        is_post_increment = expr.endswith("++")
        if is_post_increment:
            expr = expr[:-2]
        is_pre_increment = expr.startswith("++")
        if is_pre_increment:
            expr = expr[2:]
        if expr.startswith("$"):
            expr = self.get_string(expr[1:])
            if not expr:
                return None, False

        state: Mapping = self
        if "." in expr or expr.endswith("]"):
            fragments = expr.split(".")
            for position, fragment in enumerate(fragments):
                index: str | None = None
                start = fragment.find("[")
                if start != -1:
                    end = fragment.find("]")
                    if end > start:
                        index = fragment[start + 1 : end]
                        fragment = fragment[:start]
                is_last = position == len(fragments) - 1
                if fragment not in state:
                    return None, False
                candidate = state[fragment]
                if not is_last and candidate is None:
                    return None, False
                if index is not None:
                    int_index = _parse_index(index)
                    if int_index is not None:
                        if not is_slice(candidate) or not 0 <= int_index < len(candidate):
                            return None, False
                        candidate = candidate[int_index]
                    else:
                        if not is_map(candidate) or index not in candidate:
                            return None, False
                        candidate = candidate[index]
                    if is_last:
                        return candidate, True
                if is_last:
                    expr = fragment
                    continue
                if is_map(candidate):
                    state = candidate
                    continue
                value = state.get(fragment)
                if _accepts(value, 1):
                    return value(fragments[position + 1]), True
                return None, False

        if expr not in state:
            return None, False
        result = state[expr]
        if is_post_increment:
            _store(state, expr, as_int(result) + 1)
        elif is_pre_increment:
            result = as_int(result) + 1
            _store(state, expr, result)
        elif is_shift:
            collection = _collection_of(state, expr)
            if not collection:
                return None, False
            _store(state, expr, Collection(collection[1:]))
            return collection[0], True
        if _accepts(result, 0):
            return result(), True
        return result, True

    def _expand_references(self, text: str) -> str:
        """Substitute $name and ${name} references with their values as text."""

        def substitute(match: re.Match) -> str:
            name = match.group(1) or match.group(2)
            value, found = self.get_value(name)
            return as_string(value) if found else match.group(0)

        return _REFERENCE.sub(substitute, text)

    def set_value(self, expr: str, value: Any) -> None:
        """Set value at a path expression, creating intermediate maps as needed.

        A leading -> appends value to the collection at the path; $key
        references are replaced by the content of key first. None values
        are ignored.
        """
        if not expr or value is None:
            return
        if "$" in expr:
            expr = self._expand_references(expr)
        state: MutableMapping = self
        is_push = expr.startswith("->")
        if is_push:
            expr = expr[2:]
        if expr.startswith("{") and expr.endswith("}"):
            expr = expr[1:-1]

        if "." in expr:
            fragments = expr.split(".")
            node_path = ".".join(fragments[:-1])
            node, found = self.get_value(node_path)
            if found and is_map(node):
                if not isinstance(node, MutableMapping):
                    node = DataMap(node)
                    self.set_value(node_path, node)
                state = node
            else:
                for fragment in fragments[:-1]:
                    sub_state = _map_of(state, fragment)
                    if sub_state is None:
                        sub_state = DataMap()
                        state[fragment] = sub_state
                    state = sub_state
            expr = fragments[-1]

        if is_push:
            collection = _collection_of(state, expr)
            if collection is None:
                collection = Collection()
            collection.push(value)
            state[expr] = collection
            return
        state[expr] = value

    def apply(self, source: Mapping[str, Any]) -> None:
        """Copy every entry of source into this map."""
        self.update(source)

    def get_string(self, key: str) -> str:
        """Return the value for key as text, or an empty string."""
        return as_string(self[key]) if key in self else ""

    def get_int(self, key: str) -> int:
        """Return the value for key as int, or 0."""
        return as_int(self[key]) if key in self else 0

    def get_float(self, key: str) -> float:
        """Return the value for key as float, or 0.0."""
        return as_float(self[key]) if key in self else 0.0

    def get_boolean(self, key: str) -> bool:
        """Return the value for key as bool, or False."""
        return as_boolean(self[key]) if key in self else False

    def get_collection(self, key: str) -> Collection | None:
        """Return the value for key as a Collection, or None if it is not a sequence."""
        return _collection_of(self, key)

    def get_map(self, key: str) -> MutableMapping | None:
        """Return the value for key as a mutable map, converting and storing it when needed."""
        return _map_of(self, key)

    def clone(self) -> "DataMap":
        """Return a copy of this map; nested DataMap values are copied too."""
        return DataMap(
            (key, value.clone() if isinstance(value, DataMap) else value)
            for key, value in self.items()
        )

    def as_encodable_map(self) -> dict:
        """Return a plain dict suitable for JSON encoding; functions become "func()"."""
        return {
            key: _as_encodable_value(value)
            for key, value in self.items()
            if value is not None
        }