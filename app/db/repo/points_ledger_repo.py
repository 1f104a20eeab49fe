from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.points_ledger import PointsLedgerEntry


class PointsLedgerRepo:
    @staticmethod
    async def get_by_idempotency_key(
        session: AsyncSession,
        idempotency_key: str,
    ) -> PointsLedgerEntry | None:
        stmt = select(PointsLedgerEntry).where(PointsLedgerEntry.idempotency_key == idempotency_key)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, entry: PointsLedgerEntry) -> PointsLedgerEntry:
        session.add(entry)
        await session.flush()
        return entry

    @staticmethod
    async def list_for_user(
        session: AsyncSession,
        *,
        user_id: UUID,
        entry_types: Sequence[str] | None = None,
        limit: int = 50,
    ) -> list[PointsLedgerEntry]:
        stmt = select(PointsLedgerEntry).where(PointsLedgerEntry.user_id == user_id)
        if entry_types:
            stmt = stmt.where(PointsLedgerEntry.entry_type.in_(tuple(entry_types)))
        stmt = stmt.order_by(PointsLedgerEntry.created_at.desc(), PointsLedgerEntry.id.desc()).limit(limit)
        result = await session.execute(stmt)
        return list(result.scalars().all())
