"""Cursor pagination."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


class InvalidCursorError(ValueError):
    """Raised when a continuation cursor cannot be decoded."""


@dataclass
class PaginationOpts:
    num_items: int
    cursor: str | None = None

    def __post_init__(self) -> None:
        if self.num_items < 1:
            raise ValueError(f"num_items must be at least 1, got {self.num_items}")


@dataclass
class PaginationResult(Generic[T]):
    page: list[T] = field(default_factory=list)
    # Authoritative "can load more" signal.
    is_done: bool = True
    continue_cursor: str = ""


def encode_cursor(offset: int) -> str:
    raw = json.dumps({"o": offset}, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_cursor(cursor: str | None) -> int:
    """Return the offset a cursor points at. None or "" is the first page."""
    if not cursor:
        return 0
    padded = cursor + "=" * (-len(cursor) % 4)
    try:
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        offset = data["o"]
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError) as exc:
        raise InvalidCursorError(f"Invalid cursor: {cursor!r}") from exc
    if not isinstance(offset, int) or isinstance(offset, bool) or offset < 0:
        raise InvalidCursorError(f"Invalid cursor: {cursor!r}")
    return offset
