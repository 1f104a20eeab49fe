from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import Capability
from app.db.models.profiles import Profile
from app.db.models.reward_claims import RewardClaim
from app.db.models.user_daily_rewards import UserDailyRewards
from app.db.repo.daily_rewards_repo import DailyRewardsRepo
from app.db.repo.profiles_repo import ProfilesRepo
from app.economy.errors import AccountSuspendedError, AlreadyClaimedError, NotFoundError
from app.economy.points.constants import ENTRY_TYPE_WATCH_AD
from app.economy.points.service import PointsLedgerService
from app.economy.rewards.config import RewardConfig
from app.economy.rewards.rules import consume_action, empty_snapshot, ensure_action_available, is_action_available
from app.economy.rewards.time import next_utc_midnight, utc_date
from app.economy.rewards.types import DailyRewardStatus, RewardAction, RewardCycleSnapshot, WatchAdResult
from app.services.admin_audit import AdminAuditService

logger = structlog.get_logger(__name__)


class RewardCycleService:
    @staticmethod
    def snapshot_from_model(state: UserDailyRewards | None) -> RewardCycleSnapshot:
        if state is None:
            return empty_snapshot()
        return RewardCycleSnapshot(
            last_spin_date=state.last_spin_date,
            last_trivia_date=state.last_trivia_date,
            last_watch_date=state.last_watch_date,
            last_trivia_correct_date=state.last_trivia_correct_date,
            trivia_streak=state.trivia_streak,
            spin_streak=state.spin_streak,
            total_spins=state.total_spins,
            total_trivia_completed=state.total_trivia_completed,
            total_ads_watched=state.total_ads_watched,
        )

    @staticmethod
    def _apply_snapshot_to_model(
        state: UserDailyRewards,
        snapshot: RewardCycleSnapshot,
        now_utc: datetime,
    ) -> None:
        state.last_spin_date = snapshot.last_spin_date
        state.last_trivia_date = snapshot.last_trivia_date
        state.last_watch_date = snapshot.last_watch_date
        state.last_trivia_correct_date = snapshot.last_trivia_correct_date
        state.trivia_streak = snapshot.trivia_streak
        state.spin_streak = snapshot.spin_streak
        state.total_spins = snapshot.total_spins
        state.total_trivia_completed = snapshot.total_trivia_completed
        state.total_ads_watched = snapshot.total_ads_watched
        state.updated_at = now_utc
        state.version += 1

    @staticmethod
    def build_status(user_id: UUID, snapshot: RewardCycleSnapshot, now_utc: datetime) -> DailyRewardStatus:
        today = utc_date(now_utc)
        return DailyRewardStatus(
            user_id=user_id,
            can_spin=is_action_available(snapshot, RewardAction.SPIN, today),
            can_play_trivia=is_action_available(snapshot, RewardAction.TRIVIA, today),
            can_watch_ad=is_action_available(snapshot, RewardAction.WATCH_AD, today),
            trivia_streak=snapshot.trivia_streak,
            spin_streak=snapshot.spin_streak,
            total_spins=snapshot.total_spins,
            total_trivia_completed=snapshot.total_trivia_completed,
            total_ads_watched=snapshot.total_ads_watched,
            last_spin_date=snapshot.last_spin_date,
            last_trivia_date=snapshot.last_trivia_date,
            last_watch_date=snapshot.last_watch_date,
            next_reset_at=next_utc_midnight(now_utc),
        )

    @staticmethod
    async def get_status(session: AsyncSession, *, user_id: UUID, now_utc: datetime) -> DailyRewardStatus:
        state = await DailyRewardsRepo.get_by_user_id(session, user_id)
        snapshot = RewardCycleService.snapshot_from_model(state)
        return RewardCycleService.build_status(user_id, snapshot, now_utc)

    @staticmethod
    async def lock_for_action(
        session: AsyncSession,
        *,
        user_id: UUID,
        action: RewardAction,
        now_utc: datetime,
    ) -> tuple[Profile, UserDailyRewards, RewardCycleSnapshot]:
        """Locks profile then reward state and fails unless ``action`` is still open today."""
        profile = await ProfilesRepo.get_by_id_for_update(session, user_id)
        if profile is None:
            raise NotFoundError("User not found.", user_id=str(user_id))
        if profile.is_suspended:
            raise AccountSuspendedError(user_id=str(user_id))

        state = await DailyRewardsRepo.get_or_create_for_update(session, user_id=user_id, now_utc=now_utc)
        snapshot = RewardCycleService.snapshot_from_model(state)
        ensure_action_available(snapshot, action, utc_date(now_utc))
        return profile, state, snapshot

    @staticmethod
    async def record_claim(
        session: AsyncSession,
        *,
        user_id: UUID,
        action: RewardAction,
        claim_date: date,
        points_awarded: int,
        now_utc: datetime,
    ) -> RewardClaim:
        try:
            return await DailyRewardsRepo.create_claim(
                session,
                user_id=user_id,
                action=action.value,
                claim_date=claim_date,
                points_awarded=points_awarded,
                now_utc=now_utc,
            )
        except IntegrityError as exc:
            raise AlreadyClaimedError(action=action.value, today=claim_date.isoformat()) from exc

    @staticmethod
    async def commit_snapshot(
        session: AsyncSession,
        *,
        state: UserDailyRewards,
        snapshot: RewardCycleSnapshot,
        now_utc: datetime,
    ) -> None:
        RewardCycleService._apply_snapshot_to_model(state, snapshot, now_utc)
        await session.flush()

    @staticmethod
    async def watch_ad(
        session: AsyncSession,
        *,
        user_id: UUID,
        now_utc: datetime,
        config: RewardConfig,
    ) -> WatchAdResult:
        profile, state, snapshot = await RewardCycleService.lock_for_action(
            session,
            user_id=user_id,
            action=RewardAction.WATCH_AD,
            now_utc=now_utc,
        )
        today = utc_date(now_utc)
        points = config.ad_watch_points
        claim = await RewardCycleService.record_claim(
            session,
            user_id=user_id,
            action=RewardAction.WATCH_AD,
            claim_date=today,
            points_awarded=points,
            now_utc=now_utc,
        )
        if points > 0:
            await PointsLedgerService.credit(
                session,
                profile=profile,
                amount=points,
                entry_type=ENTRY_TYPE_WATCH_AD,
                source="DAILY_REWARD",
                idempotency_key=f"watch_ad:{claim.id}",
                now_utc=now_utc,
                metadata={"ad_type": "rewarded_video"},
            )

        snapshot = consume_action(snapshot, RewardAction.WATCH_AD, today)
        await RewardCycleService.commit_snapshot(session, state=state, snapshot=snapshot, now_utc=now_utc)

        logger.info("ad_watch_rewarded", user_id=str(user_id), points=points, new_balance=profile.points)
        return WatchAdResult(
            points_earned=points,
            new_points_balance=profile.points,
            total_ads_watched=snapshot.total_ads_watched,
            message=f"You earned {points} points for watching the ad!",
        )

    @staticmethod
    async def reset_daily_rewards(
        session: AsyncSession,
        *,
        actor_user_id: UUID,
        user_id: UUID,
        now_utc: datetime,
    ) -> DailyRewardStatus:
        await AdminAuditService.require_actor(
            session,
            actor_user_id=actor_user_id,
            capability=Capability.RESET_DAILY_REWARDS,
        )
        profile = await ProfilesRepo.get_by_id_for_update(session, user_id)
        if profile is None:
            raise NotFoundError("User not found.", user_id=str(user_id))

        state = await DailyRewardsRepo.get_or_create_for_update(session, user_id=user_id, now_utc=now_utc)
        state = await DailyRewardsRepo.reset_for_day(
            session,
            state=state,
            claim_date=utc_date(now_utc),
            now_utc=now_utc,
        )
        await AdminAuditService.record(
            session,
            actor_user_id=actor_user_id,
            action="daily_rewards_reset",
            target_type="profile",
            target_id=user_id,
            payload={"claim_date": utc_date(now_utc).isoformat()},
            now_utc=now_utc,
        )
        return RewardCycleService.build_status(user_id, RewardCycleService.snapshot_from_model(state), now_utc)
