from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.admin_audit_log import AdminAuditLog


class AdminAuditRepo:
    @staticmethod
    async def create(session: AsyncSession, *, entry: AdminAuditLog) -> AdminAuditLog:
        session.add(entry)
        await session.flush()
        return entry
