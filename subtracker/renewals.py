"""Upcoming renewal calendar."""
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from subtracker.domain import BillingCycle, NormalizedSubscription, RenewalEntry
from subtracker.functional import INVALID_HORIZON, Either, Right, failure
from subtracker.transforms import parse_date


def next_renewal_date(start: date, cycle: BillingCycle, now: date) -> date:
    """First date on or after ``now`` that is a whole number of periods past ``start``.

    Each candidate is computed from ``start`` itself so a day-31 start lands
    on the last day of short months without drifting afterwards.
    """
    step = cycle.months
    elapsed_months = (now.year - start.year) * 12 + (now.month - start.month)
    periods = max(0, elapsed_months // step)
    candidate = start + relativedelta(months=periods * step)
    while candidate < now:
        periods += 1
        candidate = start + relativedelta(months=periods * step)
    return candidate


def upcoming_renewals(
    subs: tuple[NormalizedSubscription, ...], now, horizon_days: int
) -> Either[dict, tuple[RenewalEntry, ...]]:
    if isinstance(horizon_days, bool) or not isinstance(horizon_days, int) or horizon_days < 0:
        return failure(
            INVALID_HORIZON,
            f"Horizon must be a whole number of days >= 0, got {horizon_days!r}",
            horizon_days=horizon_days,
        )

    def _select(today: date) -> Either[dict, tuple[RenewalEntry, ...]]:
        until = today + timedelta(days=horizon_days)
        entries = []
        for s in subs:
            if not s.auto_renews:
                continue
            renews_on = next_renewal_date(s.start_date, s.billing_cycle, today)
            if renews_on <= until:
                entries.append(RenewalEntry(
                    subscription=s,
                    next_renewal_date=renews_on,
                    days_until=(renews_on - today).days,
                ))
        entries.sort(key=lambda e: (e.next_renewal_date, e.subscription.service_name))
        return Right(tuple(entries))

    return parse_date(now).bind(_select)
