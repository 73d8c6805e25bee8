"""Error types and helpers for classifying errors."""

from __future__ import annotations


class NilPointerError(Exception):
    """Raised when a required reference is missing."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message or "NilPointerError"


class NotFoundError(Exception):
    """Raised when a resource addressed by a URL does not exist."""

    def __init__(self, url: str) -> None:
        super().__init__(url)
        self.url = url

    def __str__(self) -> str:
        return f"not found: {self.url}"


def is_nil_pointer_error(err: BaseException | None) -> bool:
    """Return True if err is a NilPointerError."""
    return isinstance(err, NilPointerError)


def is_not_found_error(err: BaseException | None) -> bool:
    """Return True if err is a NotFoundError."""
    return isinstance(err, NotFoundError)


def reclassify_not_found_if_matched(
    err: BaseException | None, url: str
) -> BaseException | None:
    """Turn err into a NotFoundError for url when its message says the resource is missing."""
    if err is None:
        return None
    text = str(err)
    lowered = text.lower()
    if (
        "doesn't exist" in lowered
        or "no such file or directory" in lowered
        or "404" in text
        or "nosuchbucket" in text
    ):
        return NotFoundError(url)
    return err