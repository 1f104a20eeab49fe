from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.commission_events import CommissionEvent
from app.db.models.commission_tiers import CommissionTier


class CommissionRepo:
    @staticmethod
    async def list_tiers(session: AsyncSession, *, active_only: bool = True) -> list[CommissionTier]:
        stmt = select(CommissionTier)
        if active_only:
            stmt = stmt.where(CommissionTier.is_active.is_(True))
        stmt = stmt.order_by(CommissionTier.min_referrals.asc(), CommissionTier.created_at.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_tier_for_update(session: AsyncSession, tier_id: UUID) -> CommissionTier | None:
        stmt = (
            select(CommissionTier)
            .where(CommissionTier.id == tier_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_tier(session: AsyncSession, *, tier: CommissionTier) -> CommissionTier:
        async with session.begin_nested():
            session.add(tier)
            await session.flush()
        return tier

    @staticmethod
    async def save_tier(session: AsyncSession, *, tier: CommissionTier) -> CommissionTier:
        async with session.begin_nested():
            await session.flush()
        return tier

    @staticmethod
    async def delete_tier(session: AsyncSession, *, tier: CommissionTier) -> None:
        await session.delete(tier)
        await session.flush()

    @staticmethod
    async def get_event_by_idempotency_key(
        session: AsyncSession,
        idempotency_key: str,
    ) -> CommissionEvent | None:
        stmt = select(CommissionEvent).where(CommissionEvent.idempotency_key == idempotency_key)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_event(session: AsyncSession, *, event: CommissionEvent) -> CommissionEvent:
        async with session.begin_nested():
            session.add(event)
            await session.flush()
        return event
