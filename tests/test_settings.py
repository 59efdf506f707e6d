from decimal import Decimal

from subtracker.settings import Settings, get_settings
from subtracker.utils import format_money, get_logger, round_money


def test_defaults(monkeypatch):
    monkeypatch.delenv("SUBTRACKER_PAGE_SIZE", raising=False)
    settings = Settings(_env_file=None)

    assert settings.page_size == 10
    assert settings.renewal_horizon_days == 30
    assert settings.seed_path == "data/seed.json"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SUBTRACKER_PAGE_SIZE", "25")
    monkeypatch.setenv("SUBTRACKER_MONTHLY_PORTFOLIO_CEILING", "150.50")
    settings = get_settings()

    assert settings.page_size == 25
    assert settings.thresholds().monthly_portfolio_ceiling == Decimal("150.50")


def test_format_money():
    assert round_money(Decimal("16.665")) == Decimal("16.67")
    assert format_money(Decimal("1234.5")) == "$1,234.50"
    assert format_money(Decimal("50") / 3, "€") == "€16.67"


def test_get_logger_installs_one_handler():
    first = get_logger("subtracker.test")
    second = get_logger("subtracker.test", "DEBUG")

    assert first is second
    assert len(second.handlers) == 1
    assert second.propagate is False
