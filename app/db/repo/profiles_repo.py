from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.profiles import Profile


class ProfilesRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: UUID) -> Profile | None:
        return await session.get(Profile, user_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, user_id: UUID) -> Profile | None:
        stmt = (
            select(Profile)
            .where(Profile.id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def set_role(
        session: AsyncSession,
        *,
        profile: Profile,
        role: str,
        now_utc: datetime,
    ) -> Profile:
        profile.role = role
        profile.updated_at = now_utc
        await session.flush()
        return profile
