import math
from typing import Sequence, TypeVar

from subtracker.functional import INVALID_PAGE_INDEX, INVALID_PAGE_SIZE, Either, Right, failure

T = TypeVar('T')


def check_page_size(page_size: int) -> Either[dict, int]:
    if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size <= 0:
        return failure(
            INVALID_PAGE_SIZE,
            f"Page size must be a positive integer, got {page_size!r}",
            page_size=page_size,
        )
    return Right(page_size)


def page_count(total: int, page_size: int) -> int:
    """Number of pages for ``total`` items; never less than 1."""
    return max(1, math.ceil(total / page_size))


def paginate(items: Sequence[T], page_index: int, page_size: int) -> Either[dict, tuple[T, ...]]:
    """Items on page ``page_index`` (1-based).

    A page past the end is empty, not an error. Moving the caller back to
    page 1 when the item count shrinks is up to the caller.
    """
    def _slice(size: int) -> Either[dict, tuple[T, ...]]:
        if isinstance(page_index, bool) or not isinstance(page_index, int) or page_index < 1:
            return failure(
                INVALID_PAGE_INDEX,
                f"Page index must be 1 or greater, got {page_index!r}",
                page_index=page_index,
            )
        start = (page_index - 1) * size
        return Right(tuple(items[start:start + size]))

    return check_page_size(page_size).bind(_slice)
