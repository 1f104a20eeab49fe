from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.redeemed_items import RedeemedItem
from app.db.models.redemption_status_events import RedemptionStatusEvent


class RedemptionsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, redemption_id: UUID) -> RedeemedItem | None:
        return await session.get(RedeemedItem, redemption_id)

    @staticmethod
    async def get_by_idempotency_key(
        session: AsyncSession,
        *,
        user_id: UUID,
        idempotency_key: str,
    ) -> RedeemedItem | None:
        stmt = select(RedeemedItem).where(
            RedeemedItem.user_id == user_id,
            RedeemedItem.idempotency_key == idempotency_key,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, redemption_id: UUID) -> RedeemedItem | None:
        stmt = (
            select(RedeemedItem)
            .where(RedeemedItem.id == redemption_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, redemption: RedeemedItem) -> RedeemedItem:
        session.add(redemption)
        await session.flush()
        return redemption

    @staticmethod
    async def list_for_user(
        session: AsyncSession,
        *,
        user_id: UUID,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[RedeemedItem]:
        stmt = select(RedeemedItem).where(RedeemedItem.user_id == user_id)
        if status is not None:
            stmt = stmt.where(RedeemedItem.status == status)
        stmt = stmt.order_by(RedeemedItem.redeemed_at.desc(), RedeemedItem.id.desc())
        result = await session.execute(stmt.limit(limit).offset(offset))
        return list(result.scalars().all())

    @staticmethod
    async def create_status_event(
        session: AsyncSession,
        *,
        event: RedemptionStatusEvent,
    ) -> RedemptionStatusEvent:
        session.add(event)
        await session.flush()
        return event

    @staticmethod
    async def list_status_events(session: AsyncSession, redemption_id: UUID) -> list[RedemptionStatusEvent]:
        stmt = (
            select(RedemptionStatusEvent)
            .where(RedemptionStatusEvent.redemption_id == redemption_id)
            .order_by(RedemptionStatusEvent.created_at.asc(), RedemptionStatusEvent.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
