"""Client-side search, filtering, sorting and paging of subscriptions."""
from typing import Callable, Optional

from subtracker.domain import (
    UNCATEGORIZED,
    BillingCycle,
    Category,
    NormalizedSubscription,
    QueryResult,
    QueryState,
    SortKey,
)
from subtracker.functional import INVALID_SORT_KEY, Either, Right, failure, pipe, safe_category
from subtracker.pagination import check_page_size, page_count, paginate

Predicate = Callable[[NormalizedSubscription], bool]
Stage = Callable[[tuple[NormalizedSubscription, ...]], tuple[NormalizedSubscription, ...]]

_SORT_FIELDS: dict[SortKey, Callable[[NormalizedSubscription], object]] = {
    SortKey.START_DATE: lambda s: s.start_date,
    SortKey.COST: lambda s: s.cost,
    SortKey.ANNUALIZED_COST: lambda s: s.annualized_cost,
}


def category_name(cats: tuple[Category, ...], cat_id: Optional[str]) -> str:
    return safe_category(cats, cat_id).map(lambda c: c.name).get_or_else(UNCATEGORIZED)


def matching_text(cats: tuple[Category, ...], text: str) -> Optional[Predicate]:
    needle = (text or "").strip().casefold()
    if not needle:
        return None
    names = {c.id: c.name.casefold() for c in cats}

    def _filter(s: NormalizedSubscription) -> bool:
        if needle in s.service_name.casefold():
            return True
        return needle in names.get(s.category_id, UNCATEGORIZED.casefold())

    return _filter


def in_category(cat_id: Optional[str]) -> Optional[Predicate]:
    if cat_id is None:
        return None

    def _filter(s: NormalizedSubscription) -> bool:
        return s.category_id == cat_id

    return _filter


def with_cycle(cycle: Optional[BillingCycle]) -> Optional[Predicate]:
    if cycle is None:
        return None

    def _filter(s: NormalizedSubscription) -> bool:
        return s.billing_cycle == cycle

    return _filter


def keep(pred: Optional[Predicate]) -> Stage:
    """A pipeline stage; an inactive (None) predicate keeps everything."""
    def _stage(subs: tuple[NormalizedSubscription, ...]) -> tuple[NormalizedSubscription, ...]:
        if pred is None:
            return subs
        return tuple(s for s in subs if pred(s))

    return _stage


def parse_sort_key(value) -> Either[dict, SortKey]:
    try:
        return Right(SortKey(value))
    except ValueError:
        allowed = ", ".join(k.value for k in SortKey)
        return failure(
            INVALID_SORT_KEY,
            f"Unknown sort key {value!r}; expected one of {allowed}",
            sort_key=value,
        )


def order_by(key: SortKey) -> Stage:
    """Highest / most recent first; equal keys keep their input order."""
    field = _SORT_FIELDS[key]

    def _stage(subs: tuple[NormalizedSubscription, ...]) -> tuple[NormalizedSubscription, ...]:
        return tuple(sorted(subs, key=field, reverse=True))

    return _stage


def evaluate(
    subs: tuple[NormalizedSubscription, ...],
    cats: tuple[Category, ...],
    query: QueryState,
) -> Either[dict, QueryResult]:
    def _run(size: int, key: SortKey) -> Either[dict, QueryResult]:
        matched = pipe(
            tuple(subs),
            keep(matching_text(cats, query.search_text)),
            keep(in_category(query.category_filter)),
            keep(with_cycle(query.billing_cycle_filter)),
            order_by(key),
        )
        return Right(QueryResult(
            items=matched,
            total_matched=len(matched),
            page_count=page_count(len(matched), size),
        ))

    return check_page_size(query.page_size).bind(
        lambda size: parse_sort_key(query.sort_key).bind(lambda key: _run(size, key))
    )


def evaluate_page(
    subs: tuple[NormalizedSubscription, ...],
    cats: tuple[Category, ...],
    query: QueryState,
) -> Either[dict, tuple[QueryResult, int, tuple[NormalizedSubscription, ...]]]:
    """Evaluate and slice the current page.

    A page index past the last page is clamped to the last page. Returns
    (result, effective page index, page items).
    """
    def _page(result: QueryResult):
        index = min(max(1, query.page_index), result.page_count)
        return paginate(result.items, index, query.page_size).map(
            lambda items: (result, index, items)
        )

    return evaluate(subs, cats, query).bind(_page)
