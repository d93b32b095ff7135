"""Page-number and keyset pagination primitives.

``Paginator`` does the arithmetic for classic ``?page=N`` navigation over a
counted result set. The database work stays in the repositories: they ask
the paginator for ``bounds()`` and translate them into OFFSET/LIMIT.

Keyset cursors back the "load more" endpoint. A cursor remembers the sort
key and primary key of the last row served, so the next query can seek
past it with an index range scan instead of skipping rows with OFFSET.
"""

from __future__ import annotations

import base64
import binascii
import json
import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

ELLIPSIS = "…"


class InvalidPage(ValueError):
    """Requested page cannot be served."""


class PageNotAnInteger(InvalidPage):
    pass


class EmptyPage(InvalidPage):
    pass


class InvalidCursor(ValueError):
    """Cursor is malformed or belongs to another sort order."""


class Paginator:
    """Split ``count`` items into pages of ``per_page``.

    ``orphans`` trailing items that would end up alone on a last page are
    merged into the previous page instead.
    """

    def __init__(
        self,
        count: int,
        per_page: int,
        orphans: int = 0,
        allow_empty_first_page: bool = True,
    ) -> None:
        if per_page < 1:
            raise ValueError("per_page must be at least 1")
        if count < 0:
            raise ValueError("count cannot be negative")
        self.count = count
        self.per_page = per_page
        self.orphans = max(0, min(orphans, per_page - 1))
        self.allow_empty_first_page = allow_empty_first_page

    @property
    def num_pages(self) -> int:
        if self.count == 0 and not self.allow_empty_first_page:
            return 0
        hits = max(1, self.count - self.orphans)
        return math.ceil(hits / self.per_page)

    @property
    def page_range(self) -> range:
        return range(1, self.num_pages + 1)

    def validate_number(self, number: Any) -> int:
        """Return ``number`` as a valid 1-based page number or raise InvalidPage."""
        try:
            if isinstance(number, float) and not number.is_integer():
                raise ValueError
            number = int(number)
        except (TypeError, ValueError, OverflowError):
            raise PageNotAnInteger("That page number is not an integer") from None
        if number < 1:
            raise EmptyPage("That page number is less than 1")
        if number > self.num_pages:
            if number == 1 and self.allow_empty_first_page:
                return number
            raise EmptyPage("That page contains no results")
        return number

    def get_page_number(self, number: Any) -> int:
        """Lenient variant of validate_number for pages rendered to humans."""
        try:
            return self.validate_number(number)
        except PageNotAnInteger:
            return 1
        except EmptyPage:
            return max(1, self.num_pages)

    def bounds(self, number: Any) -> tuple[int, int]:
        """Validated ``(offset, limit)`` of a page."""
        number = self.validate_number(number)
        offset = (number - 1) * self.per_page
        top = offset + self.per_page
        if top + self.orphans >= self.count:
            top = self.count
        return offset, max(0, top - offset)

    def page(self, number: Any, items: Sequence[T]) -> Page[T]:
        return Page(items=list(items), number=self.validate_number(number), paginator=self)

    def elided_page_range(
        self, number: int = 1, *, on_each_side: int = 3, on_ends: int = 2
    ) -> Iterator[int | str]:
        """Page numbers to link, collapsing long runs into ELLIPSIS.

        The full range is produced when there are few enough pages.
        """
        number = self.validate_number(number)

        if self.num_pages <= (on_each_side + on_ends) * 2:
            yield from self.page_range
            return

        if number > (1 + on_each_side + on_ends) + 1:
            yield from range(1, on_ends + 1)
            yield ELLIPSIS
            yield from range(number - on_each_side, number + 1)
        else:
            yield from range(1, number + 1)

        if number < (self.num_pages - on_each_side - on_ends) - 1:
            yield from range(number + 1, number + on_each_side + 1)
            yield ELLIPSIS
            yield from range(self.num_pages - on_ends + 1, self.num_pages + 1)
        else:
            yield from range(number + 1, self.num_pages + 1)


@dataclass
class Page(Generic[T]):
    items: list[T]
    number: int
    paginator: Paginator

    def __len__(self) -> int:
        return len(self.items)

    def has_next(self) -> bool:
        return self.number < self.paginator.num_pages

    def has_previous(self) -> bool:
        return self.number > 1

    def has_other_pages(self) -> bool:
        return self.has_previous() or self.has_next()

    def next_page_number(self) -> int:
        return self.paginator.validate_number(self.number + 1)

    def previous_page_number(self) -> int:
        return self.paginator.validate_number(self.number - 1)

    def start_index(self) -> int:
        """1-based index of the first item on this page (0 when empty)."""
        if self.paginator.count == 0:
            return 0
        return (self.paginator.per_page * (self.number - 1)) + 1

    def end_index(self) -> int:
        """1-based index of the last item on this page."""
        if self.number == self.paginator.num_pages:
            return self.paginator.count
        return self.number * self.paginator.per_page


@dataclass(frozen=True)
class Cursor:
    """Position after the last row of a keyset page."""

    sort: str
    value: Any
    id: str


def encode_cursor(cursor: Cursor) -> str:
    payload = json.dumps(
        [cursor.sort, cursor.value, cursor.id], separators=(",", ":"), default=str
    )
    return base64.urlsafe_b64encode(payload.encode("utf-8")).rstrip(b"=").decode("ascii")


def decode_cursor(token: str, expected_sort: str | None = None) -> Cursor:
    """Parse a token produced by ``encode_cursor``.

    Raises:
        InvalidCursor: for malformed tokens or a sort order other than
            ``expected_sort``.
    """
    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise InvalidCursor("Cursor is not valid") from e

    if (
        not isinstance(data, list)
        or len(data) != 3
        or not isinstance(data[0], str)
        or not isinstance(data[2], str)
        or not isinstance(data[1], (str, int, float))
    ):
        raise InvalidCursor("Cursor is not valid")

    cursor = Cursor(sort=data[0], value=data[1], id=data[2])
    if expected_sort is not None and cursor.sort != expected_sort:
        raise InvalidCursor(
            f"Cursor was issued for sort '{cursor.sort}', not '{expected_sort}'"
        )
    return cursor
