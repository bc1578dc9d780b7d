"""Cursor-based pagination primitives shared by every store.

A cursor is an opaque urlsafe-base64 JSON document holding the sort key of
the last row of the previous page. Callers must treat it as a token.
"""

import base64
import binascii
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Generic, Iterable, TypeVar
from uuid import UUID

from events.domain.errors import InvalidCursorError

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    """Page size, resume token and filter predicates for a listing."""

    limit: int
    cursor: str | None = None
    filters: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.limit < 1:
            raise ValueError("limit must be a positive integer")

    def filter_value(self, key: str) -> Any:
        """Return a filter value, treating empty strings as absent."""
        value = self.filters.get(key)
        if isinstance(value, str):
            value = value.strip()
        return value or None


@dataclass(frozen=True)
class Page(Generic[T]):
    data: list[T]
    next_cursor: str | None = None


def encode_cursor(position: dict[str, Any]) -> str:
    raw = json.dumps(position, separators=(",", ":"), sort_keys=True).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_cursor(cursor: str, required: Iterable[str]) -> dict[str, Any]:
    try:
        position = json.loads(base64.urlsafe_b64decode(cursor.encode("ascii")))
    except (binascii.Error, UnicodeError, ValueError):
        raise InvalidCursorError() from None
    if not isinstance(position, dict) or any(key not in position for key in required):
        raise InvalidCursorError()
    return position


def paginate(
    rows: list[T],
    limit: int,
    position_of: Callable[[T], dict[str, Any]],
    keep: Callable[[T], bool] | None = None,
) -> Page[T]:
    """Cut an ordered fetch of ``limit + 1`` rows into a page.

    ``keep`` is applied after the cut, so a filtered page can hold fewer than
    ``limit`` items while more matches exist further on.
    """
    has_more = len(rows) > limit
    window = rows[:limit]
    next_cursor = encode_cursor(position_of(window[-1])) if has_more and window else None
    data = [row for row in window if keep(row)] if keep else window
    return Page(data=data, next_cursor=next_cursor)


def contains_text(term: str | None, *values: str | None) -> bool:
    """Case-insensitive substring match across several fields."""
    if not term:
        return True
    needle = term.lower()
    return any(needle in (value or "").lower() for value in values)


def decode_created_cursor(cursor: str) -> tuple[datetime, UUID]:
    """Decode the (created_at, id) keyset used by newest-first listings."""
    position = decode_cursor(cursor, ("created_at", "id"))
    try:
        return datetime.fromisoformat(position["created_at"]), UUID(position["id"])
    except (TypeError, ValueError):
        raise InvalidCursorError() from None
