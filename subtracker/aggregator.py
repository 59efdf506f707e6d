from collections import defaultdict
from decimal import Decimal
from typing import Iterator, Optional

from subtracker.domain import (
    INFO,
    SUGGESTION,
    WARNING,
    BudgetThresholds,
    Category,
    CategoryStat,
    DashboardSummary,
    NormalizedSubscription,
    PortfolioTotals,
    Recommendation,
)
from subtracker.utils import format_money

ZERO = Decimal("0")


def aggregate_by_category(
    subs: tuple[NormalizedSubscription, ...], cats: tuple[Category, ...]
) -> tuple[CategoryStat, ...]:
    """One stat per category, most expensive first (ties by name).

    Subscriptions pointing at no known category are left out here; they
    still count in ``portfolio_totals``.
    """
    members_by_category: dict[str, list[NormalizedSubscription]] = defaultdict(list)
    for s in subs:
        if s.category_id is not None:
            members_by_category[s.category_id].append(s)

    stats = []
    for cat in cats:
        members = tuple(members_by_category.get(cat.id, ()))
        stats.append(
            CategoryStat(
                category_id=cat.id,
                name=cat.name,
                subscription_count=len(members),
                total_monthly_cost=sum((m.monthly_cost for m in members), ZERO),
                total_annualized_cost=sum((m.annualized_cost for m in members), ZERO),
                members=members,
            )
        )

    return tuple(sorted(stats, key=lambda st: (-st.total_annualized_cost, st.name)))


def portfolio_totals(subs: tuple[NormalizedSubscription, ...]) -> PortfolioTotals:
    return PortfolioTotals(
        subscription_count=len(subs),
        total_monthly_cost=sum((s.monthly_cost for s in subs), ZERO),
        total_annualized_cost=sum((s.annualized_cost for s in subs), ZERO),
    )


def dashboard_summary(subs: tuple[NormalizedSubscription, ...]) -> DashboardSummary:
    highest: Optional[NormalizedSubscription] = None
    for s in subs:
        if highest is None or s.annualized_cost > highest.annualized_cost:
            highest = s
    return DashboardSummary(totals=portfolio_totals(subs), highest_subscription=highest)


def top_subscriptions(
    subs: tuple[NormalizedSubscription, ...], k: int
) -> Iterator[NormalizedSubscription]:
    ordered = sorted(subs, key=lambda s: s.annualized_cost, reverse=True)
    for s in ordered[: max(0, k)]:
        yield s


def recommend_budget_actions(
    stats: tuple[CategoryStat, ...],
    thresholds: BudgetThresholds,
    portfolio: Optional[PortfolioTotals] = None,
    symbol: str = "$",
) -> tuple[Recommendation, ...]:
    """Advisory items, in order: warning, info, suggestion.

    Without ``portfolio`` the monthly total is the sum over ``stats``, which
    misses subscriptions whose category no longer exists.
    """
    recommendations = []

    if portfolio is not None:
        monthly_total = portfolio.total_monthly_cost
    else:
        monthly_total = sum((st.total_monthly_cost for st in stats), ZERO)

    if monthly_total > thresholds.monthly_portfolio_ceiling:
        recommendations.append(Recommendation(
            level=WARNING,
            code="portfolio_over_ceiling",
            message=(
                f"Monthly subscription spend {format_money(monthly_total, symbol)} is above "
                f"the ceiling of {format_money(thresholds.monthly_portfolio_ceiling, symbol)}"
            ),
            amount=monthly_total,
            ceiling=thresholds.monthly_portfolio_ceiling,
        ))

    expensive_categories = [
        st for st in stats if st.total_monthly_cost > thresholds.per_category_ceiling
    ]
    if expensive_categories:
        n = len(expensive_categories)
        recommendations.append(Recommendation(
            level=INFO,
            code="categories_over_ceiling",
            message=(
                f"{n} {'category costs' if n == 1 else 'categories cost'} more than "
                f"{format_money(thresholds.per_category_ceiling, symbol)} a month"
            ),
            count=n,
            ceiling=thresholds.per_category_ceiling,
        ))

    lone_expensive = [
        st for st in stats
        if st.subscription_count == 1
        and st.members[0].monthly_cost > thresholds.single_item_ceiling
    ]
    if lone_expensive:
        n = len(lone_expensive)
        recommendations.append(Recommendation(
            level=SUGGESTION,
            code="single_expensive_subscription",
            message=(
                f"{n} {'category is' if n == 1 else 'categories are'} carried by a single "
                f"subscription above {format_money(thresholds.single_item_ceiling, symbol)} a month; "
                "consider a cheaper plan"
            ),
            count=n,
            ceiling=thresholds.single_item_ceiling,
        ))

    return tuple(recommendations)
