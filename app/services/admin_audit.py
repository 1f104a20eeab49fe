from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import Capability, authorize
from app.db.models.admin_audit_log import AdminAuditLog
from app.db.models.profiles import Profile
from app.db.repo.admin_audit_repo import AdminAuditRepo
from app.db.repo.profiles_repo import ProfilesRepo

logger = structlog.get_logger(__name__)


class AdminAuditService:
    @staticmethod
    async def require_actor(
        session: AsyncSession,
        *,
        actor_user_id: UUID,
        capability: Capability,
    ) -> Profile:
        """Loads the acting profile and checks the capability before any write."""
        actor = await ProfilesRepo.get_by_id(session, actor_user_id)
        authorize(actor, capability)
        assert actor is not None
        return actor

    @staticmethod
    async def record(
        session: AsyncSession,
        *,
        actor_user_id: UUID,
        action: str,
        target_type: str,
        target_id: object,
        payload: dict[str, object] | None,
        now_utc: datetime,
    ) -> AdminAuditLog:
        entry = await AdminAuditRepo.create(
            session,
            entry=AdminAuditLog(
                actor_user_id=actor_user_id,
                action=action,
                target_type=target_type,
                target_id=str(target_id),
                payload=payload or {},
                created_at=now_utc,
            ),
        )
        logger.info(
            "admin_action_recorded",
            actor_user_id=str(actor_user_id),
            action=action,
            target_type=target_type,
            target_id=str(target_id),
        )
        return entry
