"""Conversion of a subscription's billing-period cost into monthly and annual figures.

All amounts stay as full-precision Decimals; rounding is a display concern
(see ``subtracker.utils.format_money``).
"""
from decimal import Decimal, InvalidOperation
from typing import Union

from subtracker.domain import BillingCycle, CostBreakdown, NormalizedSubscription, Subscription
from subtracker.functional import (
    INVALID_COST,
    INVALID_CYCLE,
    Either,
    Left,
    Right,
    collect,
    failure,
)

MONTHS_PER_YEAR = 12


def parse_cost(value) -> Either[dict, Decimal]:
    if isinstance(value, bool) or value is None:
        return failure(INVALID_COST, f"Cost must be a positive number, got {value!r}", cost=value)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return failure(INVALID_COST, f"Cost must be a positive number, got {value!r}", cost=value)
    if not amount.is_finite() or amount <= 0:
        return failure(INVALID_COST, f"Cost must be a finite positive number, got {value!r}", cost=value)
    return Right(amount)


def parse_cycle(value: Union[BillingCycle, str]) -> Either[dict, BillingCycle]:
    if isinstance(value, BillingCycle):
        return Right(value)
    try:
        return Right(BillingCycle(value))
    except ValueError:
        allowed = ", ".join(c.value for c in BillingCycle)
        return failure(
            INVALID_CYCLE,
            f"Unknown billing cycle {value!r}; expected one of {allowed}",
            billing_cycle=value,
        )


def _breakdown(cost: Decimal, cycle: BillingCycle) -> CostBreakdown:
    periods_per_year = MONTHS_PER_YEAR // cycle.months
    return CostBreakdown(
        monthly_cost=cost / cycle.months,
        annualized_cost=cost * periods_per_year,
    )


def normalize(cost, cycle) -> Either[dict, CostBreakdown]:
    """Monthly-equivalent and annualized cost for one billing period's charge.

    Monthly: cost, cost*12. Quarterly: cost/3, cost*4. Yearly: cost/12, cost.
    """
    return parse_cycle(cycle).bind(
        lambda c: parse_cost(cost).map(lambda amount: _breakdown(amount, c))
    )


def normalize_subscription(sub: Subscription) -> Either[dict, NormalizedSubscription]:
    def _attach(b: CostBreakdown) -> NormalizedSubscription:
        return NormalizedSubscription(
            subscription=sub,
            monthly_cost=b.monthly_cost,
            annualized_cost=b.annualized_cost,
        )

    result = normalize(sub.cost, sub.billing_cycle).map(_attach)
    if result.is_left():
        return Left({**result.get_error(), "subscription_id": sub.id})
    return result


def normalize_all(subs: tuple[Subscription, ...]) -> Either[dict, tuple[NormalizedSubscription, ...]]:
    return collect(normalize_subscription(s) for s in subs)
