"""Ingestion of raw records and immutable collection updates.

Raw records come from the seed file or from the REST backend, whose
payloads are not consistent about ids (``id`` vs ``_id``) or categories (a
bare id, an embedded object, or ``category_id``). Everything is validated
here so that only well-formed values reach the pure core.
"""
import json
from datetime import date, datetime
from typing import Any, Optional, Tuple

from subtracker.domain import Category, Subscription
from subtracker.functional import (
    CATEGORY_NOT_FOUND,
    DUPLICATE_CATEGORY,
    INVALID_CATEGORY_NAME,
    INVALID_DATE,
    INVALID_RECORD,
    INVALID_SERVICE_NAME,
    SUBSCRIPTION_NOT_FOUND,
    Either,
    Left,
    Right,
    failure,
)
from subtracker.normalizer import parse_cost, parse_cycle
from subtracker.utils import get_logger

logger = get_logger(__name__)


def parse_date(value) -> Either[dict, date]:
    if isinstance(value, datetime):
        return Right(value.date())
    if isinstance(value, date):
        return Right(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return Right(datetime.fromisoformat(text).date())
        except ValueError:
            pass
    return failure(INVALID_DATE, f"Not a valid calendar date: {value!r}", value=value)


def _record_id(raw: dict) -> Optional[str]:
    for k in ("id", "_id"):
        if raw.get(k) not in (None, ""):
            return str(raw[k])
    return None


def _category_ref(raw: dict) -> Optional[str]:
    ref = raw.get("category_id", raw.get("category"))
    if isinstance(ref, dict):
        return _record_id(ref)
    if ref in (None, ""):
        return None
    return str(ref)


def category_from_record(raw: Any) -> Either[dict, Category]:
    if not isinstance(raw, dict) or _record_id(raw) is None:
        return failure(INVALID_RECORD, "Category record needs an id", record=raw)
    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        return failure(INVALID_CATEGORY_NAME, "Category name must not be empty", record=raw)
    return Right(Category(id=_record_id(raw), name=name.strip()))


def subscription_from_record(raw: Any) -> Either[dict, Subscription]:
    if not isinstance(raw, dict) or _record_id(raw) is None:
        return failure(INVALID_RECORD, "Subscription record needs an id", record=raw)

    sub_id = _record_id(raw)
    name = raw.get("service_name", raw.get("serviceName"))
    if not isinstance(name, str) or not name.strip():
        return failure(
            INVALID_SERVICE_NAME, "Service name must not be empty", subscription_id=sub_id
        )

    auto_renews = raw.get("auto_renews", raw.get("autoRenews", True))
    if not isinstance(auto_renews, bool):
        return failure(
            INVALID_RECORD,
            f"auto_renews must be true or false, got {auto_renews!r}",
            subscription_id=sub_id,
        )

    def _build(cost):
        return parse_cycle(raw.get("billing_cycle", raw.get("billingCycle"))).bind(
            lambda cycle: parse_date(raw.get("start_date", raw.get("startDate"))).map(
                lambda start: Subscription(
                    id=sub_id,
                    service_name=name.strip(),
                    cost=cost,
                    billing_cycle=cycle,
                    category_id=_category_ref(raw),
                    auto_renews=auto_renews,
                    start_date=start,
                )
            )
        )

    result = parse_cost(raw.get("cost")).bind(_build)
    if result.is_left():
        return Left({**result.get_error(), "subscription_id": sub_id})
    return result


def load_seed(
    path: str,
) -> Tuple[Tuple[Category, ...], Tuple[Subscription, ...], Tuple[dict, ...]]:
    """Read categories and subscriptions from a JSON file.

    Returns (categories, subscriptions, rejected); each rejected entry is the
    error dict of a record that failed validation.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    categories, subscriptions, rejected = [], [], []
    for raw in data.get("categories", []):
        r = category_from_record(raw)
        if r.is_right():
            categories.append(r.get_or_else(None))
        else:
            rejected.append(r.get_error())
    for raw in data.get("subscriptions", []):
        r = subscription_from_record(raw)
        if r.is_right():
            subscriptions.append(r.get_or_else(None))
        else:
            rejected.append(r.get_error())

    for err in rejected:
        logger.warning("Rejected record from %s: %s (%s)", path, err["message"], err["error"])
    logger.info(
        "Loaded %d categories and %d subscriptions from %s",
        len(categories), len(subscriptions), path,
    )
    return tuple(categories), tuple(subscriptions), tuple(rejected)


def add_subscription(
    subs: Tuple[Subscription, ...], sub: Subscription
) -> Tuple[Subscription, ...]:
    return subs + (sub,)


def update_subscription(
    subs: Tuple[Subscription, ...], sub: Subscription
) -> Either[dict, Tuple[Subscription, ...]]:
    if not any(s.id == sub.id for s in subs):
        return failure(
            SUBSCRIPTION_NOT_FOUND,
            f"Subscription with ID {sub.id} does not exist",
            subscription_id=sub.id,
        )
    return Right(tuple(sub if s.id == sub.id else s for s in subs))


def delete_subscription(
    subs: Tuple[Subscription, ...], sub_id: str
) -> Tuple[Subscription, ...]:
    return tuple(s for s in subs if s.id != sub_id)


def _check_category_name(
    cats: Tuple[Category, ...], name: str, ignore_id: Optional[str] = None
) -> Either[dict, str]:
    cleaned = (name or "").strip()
    if not cleaned:
        return failure(INVALID_CATEGORY_NAME, "Category name must not be empty")
    taken = any(
        c.name.casefold() == cleaned.casefold() and c.id != ignore_id for c in cats
    )
    if taken:
        return failure(
            DUPLICATE_CATEGORY, f"A category named {cleaned} already exists", name=cleaned
        )
    return Right(cleaned)


def add_category(
    cats: Tuple[Category, ...], cat_id: str, name: str
) -> Either[dict, Tuple[Category, ...]]:
    return _check_category_name(cats, name).map(
        lambda cleaned: cats + (Category(id=cat_id, name=cleaned),)
    )


def rename_category(
    cats: Tuple[Category, ...], cat_id: str, name: str
) -> Either[dict, Tuple[Category, ...]]:
    if not any(c.id == cat_id for c in cats):
        return failure(
            CATEGORY_NOT_FOUND, f"Category with ID {cat_id} does not exist", category_id=cat_id
        )
    return _check_category_name(cats, name, ignore_id=cat_id).map(
        lambda cleaned: tuple(
            Category(id=c.id, name=cleaned) if c.id == cat_id else c for c in cats
        )
    )


def delete_category(cats: Tuple[Category, ...], cat_id: str) -> Tuple[Category, ...]:
    """Remove a category. Subscriptions that referenced it show as Uncategorized."""
    return tuple(c for c in cats if c.id != cat_id)
