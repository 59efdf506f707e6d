from datetime import date
from decimal import Decimal

from subtracker.aggregator import (
    aggregate_by_category,
    dashboard_summary,
    portfolio_totals,
    recommend_budget_actions,
    top_subscriptions,
)
from subtracker.domain import BillingCycle, BudgetThresholds, Category, Subscription
from subtracker.normalizer import normalize_subscription


def sub(sid, cost, cycle=BillingCycle.MONTHLY, cat_id="c1"):
    s = Subscription(sid, f"Service {sid}", Decimal(str(cost)), cycle, cat_id, True, date(2024, 1, 1))
    return normalize_subscription(s).get_or_else(None)


CATEGORIES = (
    Category("c1", "Streaming"),
    Category("c2", "Music"),
    Category("c3", "Books"),
    Category("c4", "Apps"),
)

SUBS = (
    sub("s1", 15, cat_id="c1"),                        # 180 / year
    sub("s2", 120, BillingCycle.YEARLY, cat_id="c1"),  # 120 / year
    sub("s3", 30, BillingCycle.QUARTERLY, cat_id="c2"),  # 120 / year
    sub("s4", 10, cat_id="missing"),                   # 120 / year
    sub("s5", 5, cat_id=None),                         # 60 / year
)


def test_one_stat_per_category_sorted():
    stats = aggregate_by_category(SUBS, CATEGORIES)

    assert [st.category_id for st in stats] == ["c1", "c2", "c4", "c3"]
    streaming = stats[0]
    assert streaming.subscription_count == 2
    assert streaming.total_annualized_cost == Decimal("300")
    assert streaming.total_monthly_cost == Decimal("25")
    assert [m.id for m in streaming.members] == ["s1", "s2"]


def test_empty_categories_are_included():
    stats = {st.category_id: st for st in aggregate_by_category(SUBS, CATEGORIES)}

    assert stats["c3"].subscription_count == 0
    assert stats["c3"].total_annualized_cost == Decimal("0")
    assert stats["c3"].members == ()


def test_ties_are_broken_by_name():
    cats = (Category("x", "Zeta"), Category("y", "Alpha"))
    subs = (sub("a", 10, cat_id="x"), sub("b", 10, cat_id="y"))

    assert [st.name for st in aggregate_by_category(subs, cats)] == ["Alpha", "Zeta"]


def test_portfolio_total_covers_uncategorized():
    stats = aggregate_by_category(SUBS, CATEGORIES)
    totals = portfolio_totals(SUBS)
    uncategorized = [s for s in SUBS if s.category_id not in {c.id for c in CATEGORIES}]

    categorized_sum = sum(st.total_annualized_cost for st in stats)
    assert categorized_sum + sum(s.annualized_cost for s in uncategorized) == totals.total_annualized_cost
    assert totals.total_annualized_cost == sum(s.annualized_cost for s in SUBS)
    assert totals.subscription_count == 5


def test_dashboard_summary():
    summary = dashboard_summary(SUBS)

    assert summary.highest_subscription.id == "s1"
    assert summary.totals.total_monthly_cost == Decimal("50")

    empty = dashboard_summary(())
    assert empty.highest_subscription is None
    assert empty.totals.total_annualized_cost == Decimal("0")


def test_top_subscriptions():
    top = list(top_subscriptions(SUBS, 2))

    assert [s.id for s in top] == ["s1", "s2"]
    assert list(top_subscriptions(SUBS, 0)) == []


def thresholds(portfolio="1000", category="1000", single="1000"):
    return BudgetThresholds(Decimal(portfolio), Decimal(category), Decimal(single))


def test_no_recommendations_when_under_thresholds():
    stats = aggregate_by_category(SUBS, CATEGORIES)

    assert recommend_budget_actions(stats, thresholds()) == ()


def test_all_recommendations_in_order():
    stats = aggregate_by_category(SUBS, CATEGORIES)
    recs = recommend_budget_actions(stats, thresholds(portfolio="30", category="5", single="9"))

    assert [r.level for r in recs] == ["warning", "info", "suggestion"]
    assert recs[1].count == 2       # Streaming (25) and Music (10)
    assert recs[2].count == 1       # Music has a single 10/month member


def test_portfolio_warning_uses_given_totals():
    stats = aggregate_by_category(SUBS, CATEGORIES)
    limits = thresholds(portfolio="40")

    # categorized monthly spend is 35, the full portfolio is 50
    assert recommend_budget_actions(stats, limits) == ()
    recs = recommend_budget_actions(stats, limits, portfolio_totals(SUBS))
    assert [r.code for r in recs] == ["portfolio_over_ceiling"]
    assert "$50.00" in recs[0].message


def test_messages_use_the_given_currency_symbol():
    stats = aggregate_by_category(SUBS, CATEGORIES)
    recs = recommend_budget_actions(
        stats, thresholds(portfolio="30", category="5", single="9"), portfolio_totals(SUBS), "₹"
    )

    assert len(recs) == 3
    assert all("$" not in r.message for r in recs)
    assert "₹50.00" in recs[0].message and "₹30.00" in recs[0].message
    assert "₹5.00" in recs[1].message
    assert "₹9.00" in recs[2].message
    assert recs[0].amount == Decimal("50")
    assert [r.ceiling for r in recs] == [Decimal("30"), Decimal("5"), Decimal("9")]
