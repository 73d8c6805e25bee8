"""A memory-compact store of records with varying fields."""

from __future__ import annotations

import json
import threading
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from toolbelt.helper import as_float, as_int, as_string, sort_keys


@dataclass
class Field:
    """A named column of a compacted slice."""

    name: str
    type: type | None
    index: int


@dataclass(frozen=True)
class NilGroup:
    """A run of consecutive empty values in a compressed record."""

    count: int


class RecordIterator:
    """Iterates records produced on demand by a provider."""

    def __init__(self, size: int, provider: Callable[[int], dict]) -> None:
        self._size = size
        self._provider = provider
        self._index = 0

    def has_next(self) -> bool:
        """Return True if another record is available."""
        return self._index < self._size

    def __iter__(self) -> Iterator[dict]:
        return self

    def __next__(self) -> dict:
        if not self.has_next():
            raise StopIteration
        record = self._provider(self._index)
        self._index += 1
        return record


def _record_to_map(fields: list[Field], record: list) -> dict:
    result = {}
    for field in fields:
        if field.index >= len(record):
            continue
        value = record[field.index]
        if value is None:
            continue
        result[field.name] = value
    return result


def _index_value(positions: list[int], record: list) -> Any:
    def at(position: int) -> Any:
        return record[position] if position < len(record) else None

    if len(positions) == 1:
        return at(positions[0])
    return "-".join(as_string(at(position)) for position in positions)


def _is_empty(value: Any) -> bool:
    if isinstance(value, str):
        return value == ""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return as_int(value) == 0
    if isinstance(value, float):
        return as_float(value) == 0.0
    return False


class CompactedSlice:
    """A collection of maps stored as positional records sharing one field index.

    Reading records through range, sorted_range, iterator or sorted_iterator
    removes them from the slice.
    """

    def __init__(self, omit_empty: bool = False, compress_nils: bool = False) -> None:
        self.omit_empty = omit_empty
        self.compress_nils = compress_nils
        self.raw_encoding = False
        self._lock = threading.RLock()
        self._field_names: dict[str, Field] = {}
        self._fields: list[Field] = []
        self._data: list[list] = []
        self._size = 0

    def fields(self) -> list[Field]:
        """Return the fields known to this slice."""
        return self._fields

    def size(self) -> int:
        """Return the number of records held."""
        with self._lock:
            return self._size

    def __len__(self) -> int:
        return self.size()

    def _index(self, name: str, value: Any) -> int:
        with self._lock:
            field = self._field_names.get(name)
            if field is None:
                field = Field(
                    name=name,
                    type=None if value is None else type(value),
                    index=len(self._field_names),
                )
                self._field_names[name] = field
                self._fields.append(field)
            return field.index

    def compress(self, data: list) -> list:
        """Replace runs of None with NilGroup markers and drop trailing Nones."""
        compressed: list = []
        nil_count = 0
        for item in data:
            if item is None:
                nil_count += 1
                continue
            if nil_count == 1:
                compressed.append(None)
            elif nil_count > 1:
                compressed.append(NilGroup(nil_count))
            compressed.append(item)
            nil_count = 0
        return compressed

    def uncompress(self, data: list, size: int) -> list:
        """Expand a compressed record back to at least size positions."""
        record: list = []
        for item in data:
            if isinstance(item, NilGroup):
                record.extend([None] * item.count)
            else:
                record.append(item)
        if len(record) < size:
            record.extend([None] * (size - len(record)))
        return record

    def add(self, data: Mapping[str, Any]) -> None:
        """Add a record given as a mapping of field name to value."""
        record: list = [None] * max(len(self._field_names), len(data))
        for name, value in data.items():
            position = self._index(name, value)
            if position >= len(record):
                record.extend([None] * (position + 1 - len(record)))
            if self.omit_empty and _is_empty(value):
                value = None
            record[position] = value
        if self.compress_nils:
            record = self.compress(record)
        with self._lock:
            self._size += 1
            self._data.append(record)

    def _take(self) -> tuple[list[Field], list[list]]:
        with self._lock:
            fields = list(self._fields)
            data = self._data
            self._data = []
        return fields, data

    def _expand(self, item: list, width: int) -> list:
        return self.uncompress(item, width) if self.compress_nils else item

    def _decrement(self, count: int = 1) -> None:
        with self._lock:
            self._size -= count

    def _positions(self, names: list[str]) -> list[int]:
        positions = []
        for name in names:
            field = self._field_names.get(name)
            if field is None:
                raise KeyError(f"failed to lookup field: {name}")
            positions.append(field.index)
        return positions

    def _sorted_records(
        self, index_by: list[str], fields: list[Field], data: list[list]
    ) -> list[list]:
        positions = self._positions(index_by)
        indexed: dict[Any, list] = {}
        key: Any = None
        for item in data:
            self._decrement()
            record = self._expand(item, len(fields))
            key = _index_value(positions, record)
            indexed[key] = record
        return [indexed[sorted_key] for sorted_key in sort_keys(key, indexed)]

    def range(self, handler: Callable[[dict], bool]) -> None:
        """Call handler with each record as a dict while it returns true, consuming the records."""
        fields, data = self._take()
        for item in data:
            self._decrement()
            record = self._expand(item, len(fields))
            if not handler(_record_to_map(fields, record)):
                return

    def sorted_range(self, index_by: list[str], handler: Callable[[dict], bool]) -> None:
        """Like range, but in the order of the index_by fields."""
        fields, data = self._take()
        for record in self._sorted_records(index_by, fields, data):
            if not handler(_record_to_map(fields, record)):
                return

    def sorted_iterator(self, index_by: list[str]) -> RecordIterator:
        """Return an iterator over the records ordered by the index_by fields."""
        fields, data = self._take()
        if not index_by:
            raise ValueError("index_by was empty")
        records = self._sorted_records(index_by, fields, data)

        def provider(index: int) -> dict:
            if index >= len(records):
                raise IndexError(f"index: {index} out bounds:{len(records)}")
            return _record_to_map(fields, records[index])

        return RecordIterator(len(records), provider)

    def iterator(self) -> RecordIterator:
        """Return an iterator over the records in insertion order."""
        fields, data = self._take()
        self._decrement(len(data))

        def provider(index: int) -> dict:
            if index >= len(data):
                raise IndexError(f"index: {index} out bounds:{len(data)}")
            return _record_to_map(fields, self._expand(data[index], len(fields)))

        return RecordIterator(len(data), provider)

    def ranger(self) -> "CompactedSlice":
        """Move all records into a new slice and return it."""
        with self._lock:
            clone = CompactedSlice(self.omit_empty, self.compress_nils)
            clone._data = self._data
            clone._fields = self._fields
            clone._field_names = self._field_names
            clone._size = self._size
            self._data = []
            self._size = 0
        return clone

    def to_json(self) -> str:
        """Return the records as a JSON array without consuming them."""
        with self._lock:
            fields = list(self._fields)
            data = list(self._data)
        items = (
            json.dumps(
                _record_to_map(fields, self._expand(item, len(fields))),
                separators=(",", ":"),
                sort_keys=True,
            )
            for item in data
        )
        return "[" + ",".join(items) + "]"