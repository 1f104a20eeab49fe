from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.reward_claims import RewardClaim
from app.db.models.trivia_issues import TriviaIssue
from app.db.models.user_daily_rewards import UserDailyRewards


class DailyRewardsRepo:
    @staticmethod
    async def get_by_user_id(session: AsyncSession, user_id: UUID) -> UserDailyRewards | None:
        return await session.get(UserDailyRewards, user_id)

    @staticmethod
    async def get_by_user_id_for_update(session: AsyncSession, user_id: UUID) -> UserDailyRewards | None:
        stmt = (
            select(UserDailyRewards)
            .where(UserDailyRewards.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_or_create_for_update(
        session: AsyncSession,
        *,
        user_id: UUID,
        now_utc: datetime,
    ) -> UserDailyRewards:
        state = await DailyRewardsRepo.get_by_user_id_for_update(session, user_id)
        if state is not None:
            return state

        try:
            async with session.begin_nested():
                state = UserDailyRewards(
                    user_id=user_id,
                    trivia_streak=0,
                    spin_streak=0,
                    total_spins=0,
                    total_trivia_completed=0,
                    total_ads_watched=0,
                    version=0,
                    updated_at=now_utc,
                )
                session.add(state)
                await session.flush()
        except IntegrityError:
            # A concurrent first request created the row; wait for its lock.
            state = await DailyRewardsRepo.get_by_user_id_for_update(session, user_id)
            if state is None:
                raise
        return state

    @staticmethod
    async def create_claim(
        session: AsyncSession,
        *,
        user_id: UUID,
        action: str,
        claim_date: date,
        points_awarded: int,
        now_utc: datetime,
    ) -> RewardClaim:
        claim = RewardClaim(
            user_id=user_id,
            action=action,
            claim_date=claim_date,
            points_awarded=points_awarded,
            created_at=now_utc,
        )
        async with session.begin_nested():
            session.add(claim)
            await session.flush()
        return claim

    @staticmethod
    async def reset_for_day(
        session: AsyncSession,
        *,
        state: UserDailyRewards,
        claim_date: date,
        now_utc: datetime,
    ) -> UserDailyRewards:
        await session.execute(
            delete(RewardClaim).where(
                RewardClaim.user_id == state.user_id,
                RewardClaim.claim_date == claim_date,
            )
        )
        await session.execute(
            delete(TriviaIssue).where(
                TriviaIssue.user_id == state.user_id,
                TriviaIssue.issue_date == claim_date,
            )
        )
        state.last_spin_date = None
        state.last_trivia_date = None
        state.last_watch_date = None
        state.updated_at = now_utc
        state.version += 1
        await session.flush()
        return state
