from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

UNCATEGORIZED = "Uncategorized"


class BillingCycle(str, Enum):
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    YEARLY = "Yearly"

    @property
    def months(self) -> int:
        return _CYCLE_MONTHS[self]


_CYCLE_MONTHS = {
    BillingCycle.MONTHLY: 1,
    BillingCycle.QUARTERLY: 3,
    BillingCycle.YEARLY: 12,
}


class SortKey(str, Enum):
    START_DATE = "start_date"
    COST = "cost"
    ANNUALIZED_COST = "annualized_cost"


@dataclass(frozen=True)
class Category:
    id: str
    name: str


@dataclass(frozen=True)
class Subscription:
    id: str
    service_name: str
    cost: Decimal              # per billing period, always > 0
    billing_cycle: BillingCycle
    category_id: Optional[str]
    auto_renews: bool
    start_date: date


@dataclass(frozen=True)
class CostBreakdown:
    monthly_cost: Decimal
    annualized_cost: Decimal


@dataclass(frozen=True)
class NormalizedSubscription:
    """A subscription snapshot together with its derived costs."""

    subscription: Subscription
    monthly_cost: Decimal
    annualized_cost: Decimal

    @property
    def id(self) -> str:
        return self.subscription.id

    @property
    def service_name(self) -> str:
        return self.subscription.service_name

    @property
    def cost(self) -> Decimal:
        return self.subscription.cost

    @property
    def billing_cycle(self) -> BillingCycle:
        return self.subscription.billing_cycle

    @property
    def category_id(self) -> Optional[str]:
        return self.subscription.category_id

    @property
    def auto_renews(self) -> bool:
        return self.subscription.auto_renews

    @property
    def start_date(self) -> date:
        return self.subscription.start_date


# Fields whose change invalidates the current page position
_VIEW_FIELDS = ("search_text", "category_filter", "billing_cycle_filter", "sort_key", "page_size")


@dataclass(frozen=True)
class QueryState:
    search_text: str = ""
    category_filter: Optional[str] = None
    billing_cycle_filter: Optional[BillingCycle] = None
    sort_key: SortKey = SortKey.START_DATE
    page_index: int = 1
    page_size: int = 10

    def with_changes(self, **changes) -> "QueryState":
        """Return a new state; moving to a different view resets to page 1."""
        resets = any(
            name in changes and changes[name] != getattr(self, name)
            for name in _VIEW_FIELDS
        )
        if resets and "page_index" not in changes:
            changes["page_index"] = 1
        return replace(self, **changes)


@dataclass(frozen=True)
class QueryResult:
    items: tuple[NormalizedSubscription, ...]
    total_matched: int
    page_count: int


@dataclass(frozen=True)
class CategoryStat:
    category_id: str
    name: str
    subscription_count: int
    total_monthly_cost: Decimal
    total_annualized_cost: Decimal
    members: tuple[NormalizedSubscription, ...]


@dataclass(frozen=True)
class PortfolioTotals:
    subscription_count: int
    total_monthly_cost: Decimal
    total_annualized_cost: Decimal


@dataclass(frozen=True)
class DashboardSummary:
    totals: PortfolioTotals
    highest_subscription: Optional[NormalizedSubscription]


@dataclass(frozen=True)
class BudgetThresholds:
    monthly_portfolio_ceiling: Decimal
    per_category_ceiling: Decimal
    single_item_ceiling: Decimal


WARNING = "warning"
INFO = "info"
SUGGESTION = "suggestion"


@dataclass(frozen=True)
class Recommendation:
    level: str   # warning / info / suggestion
    code: str
    message: str
    count: int = 1
    amount: Optional[Decimal] = None     # the spend that crossed the ceiling
    ceiling: Optional[Decimal] = None


@dataclass(frozen=True)
class RenewalEntry:
    subscription: NormalizedSubscription
    next_renewal_date: date
    days_until: int
