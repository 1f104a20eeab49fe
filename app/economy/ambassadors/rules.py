from __future__ import annotations

from datetime import date
from decimal import Decimal

from app.economy.commission.rules import compute_commission_amount


def month_start(day: date) -> date:
    return day.replace(day=1)


def monthly_earnings(monthly_country_revenue: Decimal, rate: Decimal) -> Decimal:
    return compute_commission_amount(monthly_country_revenue, rate)


def rank_from_higher_count(higher_count: int) -> int:
    """Rank 1 is the top earner; ties share a rank."""
    return max(higher_count, 0) + 1


def referrals_to_next_tier(total_referrals: int, next_min_referrals: int | None) -> int | None:
    if next_min_referrals is None:
        return None
    return max(next_min_referrals - total_referrals, 0)
