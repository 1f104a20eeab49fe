from __future__ import annotations

import random
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.economy.points.constants import ENTRY_TYPE_SPIN
from app.economy.points.service import PointsLedgerService
from app.economy.rewards.config import RewardConfig
from app.economy.rewards.rules import advance_spin_streak, consume_action, streak_bonus, streak_multiplier
from app.economy.rewards.service import RewardCycleService
from app.economy.rewards.time import utc_date
from app.economy.rewards.types import RewardAction
from app.economy.spin.rules import RandomSource, draw_prize
from app.economy.spin.types import SpinResult

logger = structlog.get_logger(__name__)

_system_random = random.SystemRandom()


class SpinService:
    @staticmethod
    async def spin(
        session: AsyncSession,
        *,
        user_id: UUID,
        now_utc: datetime,
        config: RewardConfig,
        rng: RandomSource | None = None,
    ) -> SpinResult:
        profile, state, snapshot = await RewardCycleService.lock_for_action(
            session,
            user_id=user_id,
            action=RewardAction.SPIN,
            now_utc=now_utc,
        )
        today = utc_date(now_utc)

        prize = draw_prize(config.spin_prizes, rng or _system_random)
        won = prize.is_win
        snapshot = advance_spin_streak(snapshot, won=won, today=today)
        multiplier = streak_multiplier(
            snapshot.spin_streak,
            increment=config.streak_increment,
            max_multiplier=config.max_streak_multiplier,
        )
        base_points = prize.points if won else 0
        bonus_points = streak_bonus(base_points, multiplier) if won else 0
        total_points = base_points + bonus_points
        message = prize.message
        if bonus_points > 0:
            message = f"You won {base_points} points + {bonus_points} streak bonus!"

        claim = await RewardCycleService.record_claim(
            session,
            user_id=user_id,
            action=RewardAction.SPIN,
            claim_date=today,
            points_awarded=total_points,
            now_utc=now_utc,
        )
        if total_points > 0:
            await PointsLedgerService.credit(
                session,
                profile=profile,
                amount=total_points,
                entry_type=ENTRY_TYPE_SPIN,
                source="DAILY_REWARD",
                idempotency_key=f"spin:{claim.id}",
                now_utc=now_utc,
                metadata={
                    "outcome": prize.outcome.value,
                    "base_points": base_points,
                    "bonus_points": bonus_points,
                    "streak": snapshot.spin_streak,
                    "streak_multiplier": str(multiplier),
                },
            )

        snapshot = consume_action(snapshot, RewardAction.SPIN, today)
        await RewardCycleService.commit_snapshot(session, state=state, snapshot=snapshot, now_utc=now_utc)

        logger.info(
            "spin_completed",
            user_id=str(user_id),
            outcome=prize.outcome.value,
            points=total_points,
            spin_streak=snapshot.spin_streak,
        )
        return SpinResult(
            success=won,
            outcome=prize.outcome,
            base_points=base_points,
            bonus_points=bonus_points,
            prize_points=total_points,
            message=message,
            spin_streak=snapshot.spin_streak,
            streak_multiplier=multiplier,
            new_points_balance=profile.points,
        )
