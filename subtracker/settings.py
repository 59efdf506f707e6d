"""Configuration for the subscription tracker dashboard."""

from decimal import Decimal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from subtracker.domain import BudgetThresholds


class Settings(BaseSettings):
    """Settings read from ``SUBTRACKER_*`` environment variables or a .env file."""

    seed_path: str = "data/seed.json"
    page_size: int = Field(default=10, ge=1)
    renewal_horizon_days: int = Field(default=30, ge=0)
    monthly_portfolio_ceiling: Decimal = Decimal("200")
    per_category_ceiling: Decimal = Decimal("75")
    single_item_ceiling: Decimal = Decimal("40")
    currency_symbol: str = "$"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="SUBTRACKER_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    def thresholds(self) -> BudgetThresholds:
        return BudgetThresholds(
            monthly_portfolio_ceiling=self.monthly_portfolio_ceiling,
            per_category_ceiling=self.per_category_ceiling,
            single_item_ceiling=self.single_item_ceiling,
        )


def get_settings() -> "Settings":
    """Return an instance of the application settings."""
    return Settings()
