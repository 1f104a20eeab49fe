from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID


@dataclass(slots=True)
class CountryMetricPoint:
    metric_date: date
    ad_revenue: Decimal
    user_count: int
    new_users: int


@dataclass(slots=True)
class AmbassadorDashboard:
    user_id: UUID
    country: str
    tier_name: str | None
    commission_rate: Decimal
    cached_commission_rate: Decimal
    next_tier_name: str | None
    next_tier_min_referrals: int | None
    referrals_to_next_tier: int | None
    total_referrals: int
    total_earnings: Decimal
    monthly_country_revenue: Decimal
    monthly_earnings: Decimal
    rank: int
    recent_metrics: list[CountryMetricPoint] = field(default_factory=list)
