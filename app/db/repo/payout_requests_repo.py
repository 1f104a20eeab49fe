from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.payout_requests import PayoutRequest


class PayoutRequestsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, payout_request: PayoutRequest) -> PayoutRequest:
        session.add(payout_request)
        await session.flush()
        return payout_request

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, request_id: UUID) -> PayoutRequest | None:
        stmt = (
            select(PayoutRequest)
            .where(PayoutRequest.id == request_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def sum_amount_for_user(
        session: AsyncSession,
        *,
        user_id: UUID,
        statuses: frozenset[str],
    ) -> Decimal:
        stmt = select(func.coalesce(func.sum(PayoutRequest.amount), 0)).where(
            PayoutRequest.user_id == user_id,
            PayoutRequest.status.in_(sorted(statuses)),
        )
        result = await session.execute(stmt)
        return Decimal(result.scalar_one() or 0)

    @staticmethod
    async def list_requests(
        session: AsyncSession,
        *,
        user_id: UUID | None = None,
        status: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[PayoutRequest]:
        stmt = select(PayoutRequest)
        if user_id is not None:
            stmt = stmt.where(PayoutRequest.user_id == user_id)
        if status is not None:
            stmt = stmt.where(PayoutRequest.status == status)
        stmt = stmt.order_by(PayoutRequest.requested_at.desc(), PayoutRequest.id.desc())
        result = await session.execute(stmt.limit(limit).offset(offset))
        return list(result.scalars().all())

    @staticmethod
    async def count_requests(
        session: AsyncSession,
        *,
        user_id: UUID | None = None,
        status: str | None = None,
    ) -> int:
        stmt = select(func.count(PayoutRequest.id))
        if user_id is not None:
            stmt = stmt.where(PayoutRequest.user_id == user_id)
        if status is not None:
            stmt = stmt.where(PayoutRequest.status == status)
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)
