from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import Capability, Role
from app.core.config import get_settings
from app.db.models.ambassador_referrals import AmbassadorReferral
from app.db.models.ambassadors import Ambassador
from app.db.models.commission_events import CommissionEvent
from app.db.models.commission_tiers import CommissionTier
from app.db.repo.ambassadors_repo import AmbassadorsRepo
from app.db.repo.commission_repo import CommissionRepo
from app.db.repo.profiles_repo import ProfilesRepo
from app.economy.commission.rules import (
    compute_commission_amount,
    resolve_commission_rate,
    select_commission_tier,
    tier_snapshot,
    validate_tier_values,
)
from app.economy.commission.types import (
    CommissionResult,
    EnrollmentResult,
    ReferralResult,
    TierSnapshot,
)
from app.economy.countries import normalize_country_code
from app.economy.errors import AccountSuspendedError, NotEligibleError, NotFoundError, ValidationError
from app.services.admin_audit import AdminAuditService

logger = structlog.get_logger(__name__)


def _tier_payload(tier: CommissionTier) -> dict[str, object]:
    return {
        "name": tier.name,
        "min_referrals": tier.min_referrals,
        "global_rate": str(tier.global_rate),
        "country_rates": {key: str(value) for key, value in (tier.country_rates or {}).items()},
        "is_active": tier.is_active,
    }


def _threshold_clash(min_referrals: int) -> ValidationError:
    return ValidationError(
        "Another active tier already uses this referral threshold.",
        min_referrals=min_referrals,
    )


def configured_default_rate() -> Decimal:
    """Rate used when no active tier exists."""
    return Decimal(str(get_settings().default_commission_rate))


class CommissionService:
    @staticmethod
    async def load_active_tiers(session: AsyncSession) -> list[TierSnapshot]:
        return [tier_snapshot(tier) for tier in await CommissionRepo.list_tiers(session, active_only=True)]

    @staticmethod
    async def live_rate(
        session: AsyncSession,
        *,
        referral_count: int,
        country: str | None,
    ) -> Decimal:
        tiers = await CommissionService.load_active_tiers(session)
        return resolve_commission_rate(tiers, referral_count, country, default_rate=configured_default_rate())

    @staticmethod
    async def _ensure_no_threshold_clash(
        session: AsyncSession,
        *,
        min_referrals: int,
        is_active: bool,
        exclude_tier_id: UUID | None = None,
    ) -> None:
        if not is_active:
            return
        for tier in await CommissionRepo.list_tiers(session, active_only=True):
            if tier.id != exclude_tier_id and tier.min_referrals == min_referrals:
                raise _threshold_clash(min_referrals)

    @staticmethod
    async def enroll_ambassador(
        session: AsyncSession,
        *,
        user_id: UUID,
        country: str,
        now_utc: datetime,
    ) -> EnrollmentResult:
        clean_country = normalize_country_code(country)
        if clean_country is None:
            raise ValidationError("Country is required to join the ambassador program.")

        profile = await ProfilesRepo.get_by_id_for_update(session, user_id)
        if profile is None:
            raise NotFoundError("User not found.", user_id=str(user_id))
        if profile.is_suspended:
            raise AccountSuspendedError(user_id=str(user_id))

        ambassador = await AmbassadorsRepo.get_by_user_id_for_update(session, user_id)
        if ambassador is not None and ambassador.is_active:
            return EnrollmentResult(
                user_id=user_id,
                country=ambassador.country,
                commission_rate=ambassador.commission_rate,
                tier_name=None,
                reactivated=False,
                already_enrolled=True,
            )

        tiers = await CommissionService.load_active_tiers(session)
        referral_count = ambassador.total_referrals if ambassador is not None else 0
        rate = resolve_commission_rate(
            tiers,
            referral_count,
            clean_country,
            default_rate=configured_default_rate(),
        )
        tier = select_commission_tier(tiers, referral_count)

        reactivated = ambassador is not None
        if ambassador is None:
            ambassador = await AmbassadorsRepo.create(
                session,
                ambassador=Ambassador(
                    user_id=user_id,
                    country=clean_country,
                    commission_rate=rate,
                    total_referrals=0,
                    total_earnings=Decimal("0"),
                    total_payouts=Decimal("0"),
                    is_active=True,
                    created_at=now_utc,
                    updated_at=now_utc,
                ),
            )
        else:
            ambassador.country = clean_country
            ambassador.commission_rate = rate
            ambassador.is_active = True
            ambassador.updated_at = now_utc

        if profile.role == Role.USER.value:
            await ProfilesRepo.set_role(session, profile=profile, role=Role.AMBASSADOR.value, now_utc=now_utc)
        await session.flush()

        logger.info(
            "ambassador_enrolled",
            user_id=str(user_id),
            country=clean_country,
            commission_rate=str(rate),
            reactivated=reactivated,
        )
        return EnrollmentResult(
            user_id=user_id,
            country=clean_country,
            commission_rate=rate,
            tier_name=tier.name if tier is not None else None,
            reactivated=reactivated,
            already_enrolled=False,
        )

    @staticmethod
    async def record_referral(
        session: AsyncSession,
        *,
        ambassador_user_id: UUID,
        referred_user_id: UUID,
        now_utc: datetime,
    ) -> ReferralResult:
        if ambassador_user_id == referred_user_id:
            raise ValidationError("Ambassadors cannot refer themselves.")

        ambassador = await AmbassadorsRepo.get_by_user_id_for_update(session, ambassador_user_id)
        if ambassador is None:
            raise NotFoundError("Ambassador not found.", user_id=str(ambassador_user_id))

        existing = await AmbassadorsRepo.get_referral_by_referred_user(session, referred_user_id)
        if existing is not None:
            if existing.ambassador_user_id != ambassador_user_id:
                raise NotEligibleError(
                    "This user was already referred by another ambassador.",
                    referred_user_id=str(referred_user_id),
                )
            return ReferralResult(
                ambassador_user_id=ambassador_user_id,
                referred_user_id=referred_user_id,
                total_referrals=ambassador.total_referrals,
                commission_rate=ambassador.commission_rate,
                idempotent_replay=True,
            )
        if not ambassador.is_active:
            raise NotEligibleError("This ambassador is not active.", user_id=str(ambassador_user_id))

        referred = await ProfilesRepo.get_by_id(session, referred_user_id)
        if referred is None:
            raise NotFoundError("Referred user not found.", user_id=str(referred_user_id))

        try:
            await AmbassadorsRepo.create_referral(
                session,
                referral=AmbassadorReferral(
                    ambassador_user_id=ambassador_user_id,
                    referred_user_id=referred_user_id,
                    created_at=now_utc,
                ),
            )
        except IntegrityError:
            existing = await AmbassadorsRepo.get_referral_by_referred_user(session, referred_user_id)
            if existing is None:
                raise
            if existing.ambassador_user_id != ambassador_user_id:
                raise NotEligibleError(
                    "This user was already referred by another ambassador.",
                    referred_user_id=str(referred_user_id),
                ) from None
            return ReferralResult(
                ambassador_user_id=ambassador_user_id,
                referred_user_id=referred_user_id,
                total_referrals=ambassador.total_referrals,
                commission_rate=ambassador.commission_rate,
                idempotent_replay=True,
            )

        ambassador.total_referrals += 1
        ambassador.commission_rate = await CommissionService.live_rate(
            session,
            referral_count=ambassador.total_referrals,
            country=ambassador.country,
        )
        ambassador.updated_at = now_utc
        await session.flush()

        logger.info(
            "ambassador_referral_recorded",
            ambassador_user_id=str(ambassador_user_id),
            referred_user_id=str(referred_user_id),
            total_referrals=ambassador.total_referrals,
            commission_rate=str(ambassador.commission_rate),
        )
        return ReferralResult(
            ambassador_user_id=ambassador_user_id,
            referred_user_id=referred_user_id,
            total_referrals=ambassador.total_referrals,
            commission_rate=ambassador.commission_rate,
            idempotent_replay=False,
        )

    @staticmethod
    async def process_referral_commission(
        session: AsyncSession,
        *,
        ambassador_user_id: UUID,
        referred_user_id: UUID,
        revenue_amount: Decimal,
        idempotency_key: str,
        now_utc: datetime,
        country: str | None = None,
    ) -> CommissionResult:
        key = (idempotency_key or "").strip()
        if not key:
            raise ValidationError("A request key is required.")
        if not revenue_amount.is_finite() or revenue_amount < 0:
            raise ValidationError("Revenue must be a non-negative amount.", revenue_amount=str(revenue_amount))

        ambassador = await AmbassadorsRepo.get_by_user_id_for_update(session, ambassador_user_id)
        if ambassador is None:
            raise NotFoundError("Ambassador not found.", user_id=str(ambassador_user_id))

        existing = await CommissionRepo.get_event_by_idempotency_key(session, key)
        if existing is not None:
            return CommissionResult(
                ambassador_user_id=existing.ambassador_user_id,
                referred_user_id=existing.referred_user_id,
                country=existing.country,
                revenue_amount=existing.revenue_amount,
                commission_rate=existing.commission_rate,
                commission_amount=existing.commission_amount,
                total_earnings=ambassador.total_earnings,
                idempotent_replay=True,
                processed_at=existing.created_at,
            )
        if not ambassador.is_active:
            raise NotEligibleError("This ambassador is not active.", user_id=str(ambassador_user_id))

        effective_country = normalize_country_code(country) or ambassador.country
        rate = await CommissionService.live_rate(
            session,
            referral_count=ambassador.total_referrals,
            country=effective_country,
        )
        amount = compute_commission_amount(revenue_amount, rate)

        await CommissionRepo.create_event(
            session,
            event=CommissionEvent(
                ambassador_user_id=ambassador_user_id,
                referred_user_id=referred_user_id,
                country=effective_country,
                revenue_amount=revenue_amount,
                commission_rate=rate,
                commission_amount=amount,
                idempotency_key=key,
                created_at=now_utc,
            ),
        )
        ambassador.total_earnings = ambassador.total_earnings + amount
        ambassador.updated_at = now_utc
        await session.flush()

        logger.info(
            "ambassador_commission_processed",
            ambassador_user_id=str(ambassador_user_id),
            referred_user_id=str(referred_user_id),
            country=effective_country,
            commission_rate=str(rate),
            commission_amount=str(amount),
        )
        return CommissionResult(
            ambassador_user_id=ambassador_user_id,
            referred_user_id=referred_user_id,
            country=effective_country,
            revenue_amount=revenue_amount,
            commission_rate=rate,
            commission_amount=amount,
            total_earnings=ambassador.total_earnings,
            idempotent_replay=False,
            processed_at=now_utc,
        )

    @staticmethod
    async def deactivate_ambassador(
        session: AsyncSession,
        *,
        actor_user_id: UUID,
        user_id: UUID,
        now_utc: datetime,
    ) -> Ambassador:
        await AdminAuditService.require_actor(
            session,
            actor_user_id=actor_user_id,
            capability=Capability.MANAGE_AMBASSADORS,
        )
        ambassador = await AmbassadorsRepo.get_by_user_id_for_update(session, user_id)
        if ambassador is None:
            raise NotFoundError("Ambassador not found.", user_id=str(user_id))

        ambassador.is_active = False
        ambassador.updated_at = now_utc
        await session.flush()
        await AdminAuditService.record(
            session,
            actor_user_id=actor_user_id,
            action="ambassador_deactivated",
            target_type="ambassador",
            target_id=user_id,
            payload={"country": ambassador.country},
            now_utc=now_utc,
        )
        return ambassador

    @staticmethod
    async def list_tiers(session: AsyncSession, *, include_inactive: bool = True) -> list[CommissionTier]:
        return await CommissionRepo.list_tiers(session, active_only=not include_inactive)

    @staticmethod
    async def create_tier(
        session: AsyncSession,
        *,
        actor_user_id: UUID,
        name: str,
        min_referrals: int,
        global_rate: object,
        now_utc: datetime,
        country_rates: Mapping[str, object] | None = None,
        is_active: bool = True,
    ) -> CommissionTier:
        await AdminAuditService.require_actor(
            session,
            actor_user_id=actor_user_id,
            capability=Capability.MANAGE_COMMISSION_TIERS,
        )
        values = validate_tier_values(
            name=name,
            min_referrals=min_referrals,
            global_rate=global_rate,
            country_rates=country_rates,
            is_active=is_active,
        )
        await CommissionService._ensure_no_threshold_clash(
            session,
            min_referrals=values.min_referrals,
            is_active=values.is_active,
        )
        # The partial unique index catches a concurrent insert the check above could not see.
        try:
            tier = await CommissionRepo.create_tier(
                session,
                tier=CommissionTier(
                    id=uuid4(),
                    name=values.name,
                    min_referrals=values.min_referrals,
                    global_rate=values.global_rate,
                    country_rates={key: str(rate) for key, rate in values.country_rates.items()},
                    is_active=values.is_active,
                    created_at=now_utc,
                    updated_at=now_utc,
                ),
            )
        except IntegrityError:
            raise _threshold_clash(values.min_referrals) from None
        await AdminAuditService.record(
            session,
            actor_user_id=actor_user_id,
            action="commission_tier_created",
            target_type="commission_tier",
            target_id=tier.id,
            payload=_tier_payload(tier),
            now_utc=now_utc,
        )
        logger.info("commission_tier_created", actor_user_id=str(actor_user_id), tier_id=str(tier.id))
        return tier

    @staticmethod
    async def update_tier(
        session: AsyncSession,
        *,
        actor_user_id: UUID,
        tier_id: UUID,
        changes: Mapping[str, Any],
        now_utc: datetime,
    ) -> CommissionTier:
        await AdminAuditService.require_actor(
            session,
            actor_user_id=actor_user_id,
            capability=Capability.MANAGE_COMMISSION_TIERS,
        )
        tier = await CommissionRepo.get_tier_for_update(session, tier_id)
        if tier is None:
            raise NotFoundError("Commission tier not found.", tier_id=str(tier_id))

        previous = _tier_payload(tier)
        try:
            min_referrals = int(changes.get("min_referrals", tier.min_referrals))
        except (TypeError, ValueError) as exc:
            raise ValidationError("Minimum referrals must be a whole number.") from exc
        values = validate_tier_values(
            name=str(changes.get("name", tier.name)),
            min_referrals=min_referrals,
            global_rate=changes.get("global_rate", tier.global_rate),
            country_rates=changes.get("country_rates", tier.country_rates),
            is_active=bool(changes.get("is_active", tier.is_active)),
        )
        await CommissionService._ensure_no_threshold_clash(
            session,
            min_referrals=values.min_referrals,
            is_active=values.is_active,
            exclude_tier_id=tier.id,
        )

        tier.name = values.name
        tier.min_referrals = values.min_referrals
        tier.global_rate = values.global_rate
        tier.country_rates = {key: str(rate) for key, rate in values.country_rates.items()}
        tier.is_active = values.is_active
        tier.updated_at = now_utc
        try:
            await CommissionRepo.save_tier(session, tier=tier)
        except IntegrityError:
            raise _threshold_clash(values.min_referrals) from None

        await AdminAuditService.record(
            session,
            actor_user_id=actor_user_id,
            action="commission_tier_updated",
            target_type="commission_tier",
            target_id=tier.id,
            payload={"old": previous, "new": _tier_payload(tier)},
            now_utc=now_utc,
        )
        logger.info("commission_tier_updated", actor_user_id=str(actor_user_id), tier_id=str(tier.id))
        return tier

    @staticmethod
    async def delete_tier(
        session: AsyncSession,
        *,
        actor_user_id: UUID,
        tier_id: UUID,
        now_utc: datetime,
    ) -> None:
        await AdminAuditService.require_actor(
            session,
            actor_user_id=actor_user_id,
            capability=Capability.MANAGE_COMMISSION_TIERS,
        )
        tier = await CommissionRepo.get_tier_for_update(session, tier_id)
        if tier is None:
            raise NotFoundError("Commission tier not found.", tier_id=str(tier_id))

        payload = _tier_payload(tier)
        await CommissionRepo.delete_tier(session, tier=tier)
        await AdminAuditService.record(
            session,
            actor_user_id=actor_user_id,
            action="commission_tier_deleted",
            target_type="commission_tier",
            target_id=tier_id,
            payload=payload,
            now_utc=now_utc,
        )
        logger.info("commission_tier_deleted", actor_user_id=str(actor_user_id), tier_id=str(tier_id))
