"""Pagination Engine — bounded, deterministic pages from a single over-fetch query.

Invariants:
    - Effective take is always clamped to [MIN_TAKE, MAX_TAKE]; skip to >= 0
    - The query is asked for take + 1 rows; has_next_page = rows > take
    - Returned items are exactly the first `take` rows, in query order
    - Same filters + same window against unchanged data => identical page

Design Decisions:
    - Clamp silently instead of rejecting out-of-range take/skip (lenient paging)
    - query_fn receives a PageWindow and owns ordering, so the engine works with
      any store; order_clauses() supplies the SQL ordering with an id tie-breaker
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from switchyard.core.domain_types import SortDirection
from switchyard.core.errors import timeout

T = TypeVar("T")

MIN_TAKE = 1
MAX_TAKE = 100
DEFAULT_TAKE = 10


class PaginationRequest(BaseModel):
    """Caller-supplied paging parameters. Resource schemas narrow order_by to an Enum."""
    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    take: int = DEFAULT_TAKE
    skip: int | None = None
    order_by: str = "created_at"
    direction: SortDirection = SortDirection.DESC
    filters: dict[str, Any] | None = None


class PaginationResult(BaseModel, Generic[T]):
    items: list[T] = Field(default_factory=list)
    has_next_page: bool = False


@dataclass(frozen=True)
class PageWindow:
    """What the query function must fetch: `limit` rows starting at `offset`."""
    limit: int
    offset: int
    order_by: str
    direction: SortDirection


def clamp_take(take: int) -> int:
    return max(MIN_TAKE, min(MAX_TAKE, take))


def clamp_skip(skip: int | None) -> int:
    return max(0, skip or 0)


def page_window(request: PaginationRequest) -> PageWindow:
    """Over-fetch window for a request: one extra row detects the next page."""
    order_by = request.order_by
    return PageWindow(
        limit=clamp_take(request.take) + 1,
        offset=clamp_skip(request.skip),
        order_by=getattr(order_by, "value", order_by),
        direction=request.direction,
    )


def build_page(rows: Sequence[T], take: int) -> PaginationResult[T]:
    """Truncate an over-fetched row list to `take` and derive has_next_page."""
    take = clamp_take(take)
    return PaginationResult(
        items=list(rows[:take]),
        has_next_page=len(rows) > take,
    )


async def paginate(
    request: PaginationRequest,
    query_fn: Callable[[PageWindow], Awaitable[Sequence[T]]],
    *,
    remaining_seconds: float | None = None,
) -> PaginationResult[T]:
    """Run one over-fetch query and build the page. Respects a propagated deadline."""
    window = page_window(request)
    if remaining_seconds is None:
        rows = await query_fn(window)
    else:
        if remaining_seconds <= 0:
            raise timeout()
        try:
            rows = await asyncio.wait_for(query_fn(window), timeout=remaining_seconds)
        except TimeoutError as e:
            raise timeout() from e
    return build_page(rows, request.take)


def order_clauses(
    columns: dict[str, Any], window: PageWindow, tie_breaker: Any,
) -> list[Any]:
    """SQL ORDER BY for a window: the requested column, then a stable tie-breaker."""
    column = columns[window.order_by]
    if window.direction is SortDirection.ASC:
        return [column.asc(), tie_breaker.asc()]
    return [column.desc(), tie_breaker.desc()]
