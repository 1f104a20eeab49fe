from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.ambassador_referrals import AmbassadorReferral
from app.db.models.ambassadors import Ambassador
from app.db.models.country_metrics import CountryMetric


class AmbassadorsRepo:
    @staticmethod
    async def get_by_user_id(session: AsyncSession, user_id: UUID) -> Ambassador | None:
        return await session.get(Ambassador, user_id)

    @staticmethod
    async def get_by_user_id_for_update(session: AsyncSession, user_id: UUID) -> Ambassador | None:
        stmt = (
            select(Ambassador)
            .where(Ambassador.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, ambassador: Ambassador) -> Ambassador:
        session.add(ambassador)
        await session.flush()
        return ambassador

    @staticmethod
    async def count_active_with_higher_earnings(
        session: AsyncSession,
        *,
        country: str,
        total_earnings: Decimal,
    ) -> int:
        stmt = select(func.count(Ambassador.user_id)).where(
            Ambassador.country == country,
            Ambassador.is_active.is_(True),
            Ambassador.total_earnings > total_earnings,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def get_referral_by_referred_user(
        session: AsyncSession,
        referred_user_id: UUID,
    ) -> AmbassadorReferral | None:
        stmt = select(AmbassadorReferral).where(AmbassadorReferral.referred_user_id == referred_user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_referral(session: AsyncSession, *, referral: AmbassadorReferral) -> AmbassadorReferral:
        async with session.begin_nested():
            session.add(referral)
            await session.flush()
        return referral

    @staticmethod
    async def sum_country_ad_revenue(
        session: AsyncSession,
        *,
        country: str,
        from_date: date,
        to_date: date,
    ) -> Decimal:
        stmt = select(func.coalesce(func.sum(CountryMetric.ad_revenue), 0)).where(
            CountryMetric.country == country,
            CountryMetric.metric_date >= from_date,
            CountryMetric.metric_date <= to_date,
        )
        result = await session.execute(stmt)
        return Decimal(result.scalar_one() or 0)

    @staticmethod
    async def list_recent_country_metrics(
        session: AsyncSession,
        *,
        country: str,
        limit: int = 7,
    ) -> list[CountryMetric]:
        stmt = (
            select(CountryMetric)
            .where(CountryMetric.country == country)
            .order_by(CountryMetric.metric_date.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
