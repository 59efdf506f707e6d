import json
from datetime import date
from decimal import Decimal

from subtracker.domain import BillingCycle, Category, Subscription
from subtracker.transforms import (
    add_category,
    add_subscription,
    category_from_record,
    delete_category,
    delete_subscription,
    load_seed,
    parse_date,
    rename_category,
    subscription_from_record,
    update_subscription,
)


def record(**overrides):
    raw = {
        "_id": "s1",
        "service_name": "Netflix",
        "cost": 15.49,
        "billing_cycle": "Monthly",
        "category": "c1",
        "auto_renews": True,
        "start_date": "2024-01-15T00:00:00.000Z",
    }
    raw.update(overrides)
    return raw


def test_load_seed():
    categories, subscriptions, rejected = load_seed("data/seed.json")

    assert len(categories) >= 5
    assert len(subscriptions) >= 10
    assert rejected == ()


def test_load_seed_rejects_bad_records(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps({
        "categories": [{"id": "c1", "name": "Streaming"}, {"id": "c2", "name": "  "}],
        "subscriptions": [record(), record(_id="s2", cost=-5), record(_id="s3", billing_cycle="Weekly")],
    }))

    categories, subscriptions, rejected = load_seed(str(path))

    assert [c.id for c in categories] == ["c1"]
    assert [s.id for s in subscriptions] == ["s1"]
    assert sorted(err["error"] for err in rejected) == [
        "invalid_category_name", "invalid_cost", "invalid_cycle",
    ]


def test_subscription_from_record():
    sub = subscription_from_record(record()).get_or_else(None)

    assert sub == Subscription(
        "s1", "Netflix", Decimal("15.49"), BillingCycle.MONTHLY, "c1", True, date(2024, 1, 15)
    )


def test_subscription_category_shapes():
    embedded = subscription_from_record(record(category={"_id": "c7", "name": "Music"}))
    explicit = subscription_from_record(record(category_id="c8"))
    missing = subscription_from_record(record(category=None))

    assert embedded.get_or_else(None).category_id == "c7"
    assert explicit.get_or_else(None).category_id == "c8"
    assert missing.get_or_else(None).category_id is None


def test_subscription_validation_errors():
    cases = {
        "invalid_service_name": record(service_name=" "),
        "invalid_cost": record(cost="free"),
        "invalid_cycle": record(billing_cycle="Biweekly"),
        "invalid_date": record(start_date="15/01/2024"),
        "invalid_record": record(auto_renews="yes"),
    }
    for code, raw in cases.items():
        result = subscription_from_record(raw)
        assert result.is_left(), code
        assert result.get_error()["error"] == code
        assert result.get_error()["subscription_id"] == "s1"

    no_id = subscription_from_record({"service_name": "X"})
    assert no_id.get_error()["error"] == "invalid_record"


def test_parse_date():
    assert parse_date("2024-02-29").get_or_else(None) == date(2024, 2, 29)
    assert parse_date(date(2024, 1, 1)).get_or_else(None) == date(2024, 1, 1)
    assert parse_date("2024-02-30").is_left()
    assert parse_date(None).get_error()["error"] == "invalid_date"


def test_category_from_record():
    assert category_from_record({"_id": "c1", "name": " Music "}).get_or_else(None) == Category("c1", "Music")
    assert category_from_record({"name": "Music"}).get_error()["error"] == "invalid_record"


SUB = Subscription("s1", "Netflix", Decimal("15"), BillingCycle.MONTHLY, "c1", True, date(2024, 1, 1))


def test_add_update_delete_subscription():
    subs = add_subscription((), SUB)
    other = Subscription("s2", "Hulu", Decimal("8"), BillingCycle.MONTHLY, None, True, date(2024, 1, 1))
    subs = add_subscription(subs, other)

    changed = Subscription("s1", "Netflix Premium", Decimal("22"), BillingCycle.MONTHLY, "c1", True, date(2024, 1, 1))
    updated = update_subscription(subs, changed).get_or_else(None)

    assert [s.id for s in updated] == ["s1", "s2"]
    assert updated[0].service_name == "Netflix Premium"
    assert subs[0].service_name == "Netflix"

    assert delete_subscription(updated, "s1") == (other,)


def test_update_missing_subscription():
    result = update_subscription((), SUB)

    assert result.is_left()
    assert result.get_error()["error"] == "subscription_not_found"


def test_category_lifecycle():
    cats = add_category((), "c1", "Streaming").get_or_else(None)

    duplicate = add_category(cats, "c2", " streaming ")
    assert duplicate.get_error()["error"] == "duplicate_category"
    assert add_category(cats, "c2", "").get_error()["error"] == "invalid_category_name"

    cats = add_category(cats, "c2", "Music").get_or_else(None)
    renamed = rename_category(cats, "c1", "Video").get_or_else(None)
    assert [c.name for c in renamed] == ["Video", "Music"]
    assert rename_category(cats, "c1", "STREAMING").is_right()
    assert rename_category(cats, "c9", "Other").get_error()["error"] == "category_not_found"

    assert delete_category(renamed, "c1") == (Category("c2", "Music"),)
