"""A generic list with convenience iteration helpers."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from toolbelt.helper import as_int, as_string


class Collection(list):
    """A list of arbitrary values."""

    def push(self, value: Any) -> None:
        """Append value to the collection."""
        self.append(value)

    def pad_with_map(self, size: int) -> None:
        """Append empty maps until the collection holds size elements."""
        while len(self) < size:
            self.push({})

    def range(self, handler: Callable[[Any, int], bool]) -> None:
        """Call handler(item, index) for each item while it returns true."""
        for index, item in enumerate(self):
            if not handler(item, index):
                break

    def range_map(self, handler: Callable[[Mapping | None, int], bool]) -> None:
        """Call handler with each map item, or None for non-map items, while it returns true."""
        for index, item in enumerate(self):
            candidate = item if isinstance(item, Mapping) else None
            if not handler(candidate, index):
                break

    def range_string(self, handler: Callable[[str, int], bool]) -> None:
        """Call handler with each item as a string while it returns true."""
        for index, item in enumerate(self):
            if not handler(as_string(item), index):
                break

    def range_int(self, handler: Callable[[int, int], bool]) -> None:
        """Call handler with each item as an int while it returns true."""
        for index, item in enumerate(self):
            if not handler(as_int(item), index):
                break

    def __str__(self) -> str:
        return "[" + ",".join(as_string(item) for item in self) + "]"