from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.ambassadors_repo import AmbassadorsRepo
from app.economy.ambassadors.rules import (
    month_start,
    monthly_earnings,
    rank_from_higher_count,
    referrals_to_next_tier,
)
from app.economy.ambassadors.types import AmbassadorDashboard, CountryMetricPoint
from app.economy.commission.rules import next_commission_tier, resolve_commission_rate, select_commission_tier
from app.economy.commission.service import CommissionService, configured_default_rate
from app.economy.errors import NotFoundError
from app.economy.rewards.time import utc_date


class AmbassadorDashboardService:
    @staticmethod
    async def get_dashboard(session: AsyncSession, *, user_id: UUID, now_utc: datetime) -> AmbassadorDashboard:
        """Read-only view; the commission rate is always resolved from live tiers."""
        ambassador = await AmbassadorsRepo.get_by_user_id(session, user_id)
        if ambassador is None or not ambassador.is_active:
            raise NotFoundError("You are not an active ambassador.", user_id=str(user_id))

        tiers = await CommissionService.load_active_tiers(session)
        rate = resolve_commission_rate(
            tiers,
            ambassador.total_referrals,
            ambassador.country,
            default_rate=configured_default_rate(),
        )
        current_tier = select_commission_tier(tiers, ambassador.total_referrals)
        next_tier = next_commission_tier(tiers, ambassador.total_referrals)

        today = utc_date(now_utc)
        revenue = await AmbassadorsRepo.sum_country_ad_revenue(
            session,
            country=ambassador.country,
            from_date=month_start(today),
            to_date=today,
        )
        higher = await AmbassadorsRepo.count_active_with_higher_earnings(
            session,
            country=ambassador.country,
            total_earnings=ambassador.total_earnings,
        )
        metrics = await AmbassadorsRepo.list_recent_country_metrics(session, country=ambassador.country, limit=7)

        next_min = next_tier.min_referrals if next_tier is not None else None
        return AmbassadorDashboard(
            user_id=user_id,
            country=ambassador.country,
            tier_name=current_tier.name if current_tier is not None else None,
            commission_rate=rate,
            cached_commission_rate=ambassador.commission_rate,
            next_tier_name=next_tier.name if next_tier is not None else None,
            next_tier_min_referrals=next_min,
            referrals_to_next_tier=referrals_to_next_tier(ambassador.total_referrals, next_min),
            total_referrals=ambassador.total_referrals,
            total_earnings=ambassador.total_earnings,
            monthly_country_revenue=revenue,
            monthly_earnings=monthly_earnings(revenue, rate),
            rank=rank_from_higher_count(higher),
            recent_metrics=[
                CountryMetricPoint(
                    metric_date=metric.metric_date,
                    ad_revenue=metric.ad_revenue,
                    user_count=metric.user_count,
                    new_users=metric.new_users,
                )
                for metric in metrics
            ],
        )
