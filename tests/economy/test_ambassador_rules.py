from __future__ import annotations

from datetime import date
from decimal import Decimal

from app.economy.ambassadors.rules import month_start, monthly_earnings, rank_from_higher_count, referrals_to_next_tier


def test_monthly_earnings_apply_rate_percentage() -> None:
    assert monthly_earnings(Decimal("1250.00"), Decimal("12")) == Decimal("150.00")
    assert monthly_earnings(Decimal("0"), Decimal("12")) == Decimal("0.00")


def test_rank_counts_strictly_higher_earners() -> None:
    assert rank_from_higher_count(0) == 1
    assert rank_from_higher_count(4) == 5


def test_referrals_to_next_tier() -> None:
    assert referrals_to_next_tier(15, 25) == 10
    assert referrals_to_next_tier(30, 25) == 0
    assert referrals_to_next_tier(30, None) is None


def test_month_start() -> None:
    assert month_start(date(2026, 2, 28)) == date(2026, 2, 1)
