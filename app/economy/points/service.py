from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import Capability
from app.db.models.points_ledger import PointsLedgerEntry
from app.db.models.profiles import Profile
from app.db.repo.points_ledger_repo import PointsLedgerRepo
from app.db.repo.profiles_repo import ProfilesRepo
from app.economy.errors import InsufficientPointsError, NotFoundError, ValidationError
from app.economy.points.constants import (
    DIRECTION_CREDIT,
    DIRECTION_DEBIT,
    ENTRY_TYPE_ADMIN_ADJUSTMENT,
    ENTRY_TYPES,
    MAX_HISTORY_LIMIT,
    REWARD_ENTRY_TYPES,
)
from app.economy.points.types import PointsAdjustmentResult, PointsHistoryItem
from app.services.admin_audit import AdminAuditService

logger = structlog.get_logger(__name__)


class PointsLedgerService:
    """Every change of ``profiles.points`` goes through here.

    Callers pass a profile they already locked ``FOR UPDATE``; each mutation
    appends one ``points_ledger`` row carrying the resulting balance.
    """

    @staticmethod
    def _validate(amount: int, entry_type: str) -> None:
        if amount <= 0:
            raise ValidationError("Points amount must be positive.", amount=amount)
        if entry_type not in ENTRY_TYPES:
            raise ValidationError("Unknown points entry type.", entry_type=entry_type)

    @staticmethod
    async def _append(
        session: AsyncSession,
        *,
        profile: Profile,
        direction: str,
        amount: int,
        entry_type: str,
        source: str,
        idempotency_key: str,
        metadata: dict[str, object] | None,
        now_utc: datetime,
    ) -> PointsLedgerEntry:
        profile.updated_at = now_utc
        return await PointsLedgerRepo.create(
            session,
            entry=PointsLedgerEntry(
                user_id=profile.id,
                entry_type=entry_type,
                direction=direction,
                amount=amount,
                balance_after=profile.points,
                source=source,
                idempotency_key=idempotency_key,
                metadata_=metadata or {},
                created_at=now_utc,
            ),
        )

    @staticmethod
    async def credit(
        session: AsyncSession,
        *,
        profile: Profile,
        amount: int,
        entry_type: str,
        source: str,
        idempotency_key: str,
        now_utc: datetime,
        metadata: dict[str, object] | None = None,
    ) -> PointsLedgerEntry:
        PointsLedgerService._validate(amount, entry_type)
        profile.points += amount
        return await PointsLedgerService._append(
            session,
            profile=profile,
            direction=DIRECTION_CREDIT,
            amount=amount,
            entry_type=entry_type,
            source=source,
            idempotency_key=idempotency_key,
            metadata=metadata,
            now_utc=now_utc,
        )

    @staticmethod
    async def debit(
        session: AsyncSession,
        *,
        profile: Profile,
        amount: int,
        entry_type: str,
        source: str,
        idempotency_key: str,
        now_utc: datetime,
        metadata: dict[str, object] | None = None,
    ) -> PointsLedgerEntry:
        PointsLedgerService._validate(amount, entry_type)
        if profile.points < amount:
            raise InsufficientPointsError(balance=profile.points, required=amount)

        profile.points -= amount
        return await PointsLedgerService._append(
            session,
            profile=profile,
            direction=DIRECTION_DEBIT,
            amount=amount,
            entry_type=entry_type,
            source=source,
            idempotency_key=idempotency_key,
            metadata=metadata,
            now_utc=now_utc,
        )

    @staticmethod
    async def get_history(
        session: AsyncSession,
        *,
        user_id: UUID,
        entry_type: str | None = None,
        limit: int = 50,
    ) -> list[PointsHistoryItem]:
        if entry_type is not None and entry_type not in ENTRY_TYPES:
            raise ValidationError("Unknown points entry type.", entry_type=entry_type)

        entries = await PointsLedgerRepo.list_for_user(
            session,
            user_id=user_id,
            entry_types=(entry_type,) if entry_type is not None else REWARD_ENTRY_TYPES,
            limit=max(1, min(limit, MAX_HISTORY_LIMIT)),
        )
        return [
            PointsHistoryItem(
                entry_type=entry.entry_type,
                direction=entry.direction,
                amount=entry.amount,
                balance_after=entry.balance_after,
                source=entry.source,
                metadata=dict(entry.metadata_ or {}),
                created_at=entry.created_at,
            )
            for entry in entries
        ]

    @staticmethod
    async def adjust_points(
        session: AsyncSession,
        *,
        actor_user_id: UUID,
        user_id: UUID,
        delta: int,
        reason: str,
        now_utc: datetime,
    ) -> PointsAdjustmentResult:
        await AdminAuditService.require_actor(
            session,
            actor_user_id=actor_user_id,
            capability=Capability.ADJUST_POINTS,
        )
        clean_reason = (reason or "").strip()
        if delta == 0:
            raise ValidationError("Adjustment must change the balance.")
        if not clean_reason:
            raise ValidationError("Adjustment reason is required.")

        profile = await ProfilesRepo.get_by_id_for_update(session, user_id)
        if profile is None:
            raise NotFoundError("User not found.", user_id=str(user_id))

        metadata: dict[str, object] = {"reason": clean_reason, "actor_user_id": str(actor_user_id)}
        mutate = PointsLedgerService.credit if delta > 0 else PointsLedgerService.debit
        await mutate(
            session,
            profile=profile,
            amount=abs(delta),
            entry_type=ENTRY_TYPE_ADMIN_ADJUSTMENT,
            source="ADMIN",
            idempotency_key=f"admin_adjustment:{uuid4().hex}",
            now_utc=now_utc,
            metadata=metadata,
        )
        await AdminAuditService.record(
            session,
            actor_user_id=actor_user_id,
            action="points_adjusted",
            target_type="profile",
            target_id=user_id,
            payload={"delta": delta, "reason": clean_reason, "new_balance": profile.points},
            now_utc=now_utc,
        )
        logger.info(
            "points_adjusted",
            actor_user_id=str(actor_user_id),
            user_id=str(user_id),
            delta=delta,
            new_balance=profile.points,
        )
        return PointsAdjustmentResult(
            user_id=user_id,
            delta=delta,
            new_balance=profile.points,
            reason=clean_reason,
        )
