from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.app_settings import AppSetting


class AppSettingsRepo:
    @staticmethod
    async def get_category(session: AsyncSession, category: str) -> dict[str, object] | None:
        row = await session.get(AppSetting, category)
        if row is None:
            return None
        return dict(row.settings or {})
