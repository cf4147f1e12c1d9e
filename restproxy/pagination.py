"""Pagination helpers.

:func:`paginate` drives a caller-supplied page fetcher until it stops
returning a ``next_cursor``, accumulating the items of every page::

    async def fetch_page(options: PaginationOptions) -> PaginationResult[dict]:
        items = await api.users.get({"limit": options.limit, "cursor": options.cursor})
        next_cursor = (
            encode_cursor_cursor(items[-1]["id"])
            if len(items) == options.limit
            else None
        )
        return PaginationResult(items, next_cursor=next_cursor)

    result = await paginate(fetch_page, PaginationOptions(limit=50))

Pages are requested strictly one after another. There is no upper bound on
the number of pages: a fetcher that always returns a ``next_cursor`` loops
forever, so wrap the call in a timeout if the upstream is not trusted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class PaginationOptions:
    """Page size and the cursor of the page to fetch."""

    limit: int
    cursor: str | None = None


@dataclass
class PaginationResult(Generic[T]):
    """One page, or the accumulation of several pages."""

    data: list[T] = field(default_factory=list)
    next_cursor: str | None = None
    previous_cursor: str | None = None


async def paginate(
    fetch_page: Callable[[PaginationOptions], Awaitable[PaginationResult[T]]],
    options: PaginationOptions,
) -> PaginationResult[T]:
    """Fetch every page starting at ``options.cursor`` and concatenate them.

    Returns:
        A result holding all items in page order, ``next_cursor=None`` and
        the cursor of the last page fetched as ``previous_cursor``.
    """
    next_cursor = options.cursor
    previous_cursor: str | None = None
    data: list[T] = []

    while True:
        page = await fetch_page(PaginationOptions(options.limit, next_cursor))
        data.extend(page.data)
        previous_cursor = next_cursor
        next_cursor = page.next_cursor
        if not next_cursor:
            break

    return PaginationResult(data, next_cursor=None, previous_cursor=previous_cursor)


def paginate_sync(
    fetch_page: Callable[[PaginationOptions], PaginationResult[T]],
    options: PaginationOptions,
) -> PaginationResult[T]:
    """Synchronous counterpart of :func:`paginate`."""
    next_cursor = options.cursor
    previous_cursor: str | None = None
    data: list[T] = []

    while True:
        page = fetch_page(PaginationOptions(options.limit, next_cursor))
        data.extend(page.data)
        previous_cursor = next_cursor
        next_cursor = page.next_cursor
        if not next_cursor:
            break

    return PaginationResult(data, next_cursor=None, previous_cursor=previous_cursor)
