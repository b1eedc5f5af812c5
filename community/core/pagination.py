"""Offset pagination: total count + page/size + row fetcher + row mapper -> Page."""
import math
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from community.core.config import settings
from community.core.exceptions import InvalidInputError
from community.schemas.pagination import Page, PageInfo

T = TypeVar("T")


def validate_page_params(page: int, size: int) -> None:
    if page < 0:
        raise InvalidInputError("page must be zero or greater", "invalid_page")
    if size < 1 or size > settings.MAX_PAGE_SIZE:
        raise InvalidInputError(f"size must be between 1 and {settings.MAX_PAGE_SIZE}", "invalid_page_size")


async def paginate(
    total: int,
    page: int,
    size: int,
    fetch_rows: Callable[[int, int], Awaitable[Sequence[Any]]],
    to_item: Callable[[Any], T],
) -> Page:
    """Build one page. ``fetch_rows(offset, limit)`` is skipped past the last page."""
    validate_page_params(page, size)
    offset = page * size
    rows = await fetch_rows(offset, size) if offset < total else []
    items = [to_item(row) for row in rows]
    return Page(
        page_info=PageInfo(
            current_page=page,
            current_size=len(items),
            total_pages=math.ceil(total / size) if total else 0,
            total_size=total,
        ),
        items=items,
    )
