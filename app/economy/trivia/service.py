from __future__ import annotations

import random
from datetime import datetime
from uuid import UUID, uuid4

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.trivia_issues import TriviaIssue
from app.db.repo.daily_rewards_repo import DailyRewardsRepo
from app.db.repo.profiles_repo import ProfilesRepo
from app.db.repo.trivia_repo import TriviaRepo
from app.economy.countries import normalize_country_code
from app.economy.errors import (
    AccountSuspendedError,
    AlreadyClaimedError,
    AlreadySubmittedError,
    NoTriviaQuestionsError,
    NotFoundError,
    TriviaQuestionExpiredError,
)
from app.economy.points.constants import ENTRY_TYPE_TRIVIA
from app.economy.points.service import PointsLedgerService
from app.economy.rewards.config import RewardConfig
from app.economy.rewards.rules import (
    advance_trivia_streak,
    consume_action,
    ensure_action_available,
    streak_multiplier,
)
from app.economy.rewards.service import RewardCycleService
from app.economy.rewards.time import utc_date
from app.economy.rewards.types import RewardAction
from app.economy.spin.rules import RandomSource
from app.economy.trivia.rules import (
    base_points_for,
    grade_answer,
    snapshot_from_payload,
    snapshot_from_question,
    snapshot_to_payload,
    trivia_reward,
)
from app.economy.trivia.types import IssuedQuestion, TriviaResult

logger = structlog.get_logger(__name__)

ISSUE_STATUS_ISSUED = "ISSUED"
ISSUE_STATUS_ANSWERED = "ANSWERED"

_system_random = random.SystemRandom()


class TriviaService:
    @staticmethod
    def _as_issued_question(issue: TriviaIssue, *, idempotent_replay: bool) -> IssuedQuestion:
        snapshot = snapshot_from_payload(issue.question_snapshot)
        return IssuedQuestion(
            question_id=issue.question_id,
            question=snapshot.question,
            options=list(snapshot.options),
            difficulty=snapshot.difficulty,
            category=snapshot.category,
            issued_on=issue.issue_date,
            idempotent_replay=idempotent_replay,
        )

    @staticmethod
    async def _pick_question_id(
        session: AsyncSession,
        *,
        country: str | None,
        rng: RandomSource,
    ) -> UUID:
        pool: list[UUID] = []
        if country is not None:
            pool = await TriviaRepo.list_active_question_ids(session, country=country)
        if not pool:
            pool = await TriviaRepo.list_active_question_ids(session, country=None)
        if not pool:
            raise NoTriviaQuestionsError(country=country)
        return pool[rng.randrange(len(pool))]

    @staticmethod
    async def issue_question(
        session: AsyncSession,
        *,
        user_id: UUID,
        now_utc: datetime,
        country: str | None = None,
        rng: RandomSource | None = None,
    ) -> IssuedQuestion:
        """Hands out today's question without consuming the trivia action."""
        profile = await ProfilesRepo.get_by_id(session, user_id)
        if profile is None:
            raise NotFoundError("User not found.", user_id=str(user_id))
        if profile.is_suspended:
            raise AccountSuspendedError(user_id=str(user_id))

        today = utc_date(now_utc)
        state = await DailyRewardsRepo.get_by_user_id(session, user_id)
        ensure_action_available(RewardCycleService.snapshot_from_model(state), RewardAction.TRIVIA, today)

        existing = await TriviaRepo.get_issue_for_update(session, user_id=user_id, issue_date=today)
        if existing is not None:
            if existing.status != ISSUE_STATUS_ISSUED:
                raise AlreadyClaimedError(action=RewardAction.TRIVIA.value, today=today.isoformat())
            return TriviaService._as_issued_question(existing, idempotent_replay=True)

        scoped_country = normalize_country_code(country) if country is not None else profile.country
        question_id = await TriviaService._pick_question_id(
            session,
            country=scoped_country,
            rng=rng or _system_random,
        )
        question = await TriviaRepo.get_question(session, question_id)
        if question is None:
            raise NoTriviaQuestionsError(country=scoped_country)

        issue = TriviaIssue(
            id=uuid4(),
            user_id=user_id,
            question_id=question.id,
            issue_date=today,
            question_snapshot=snapshot_to_payload(snapshot_from_question(question)),
            status=ISSUE_STATUS_ISSUED,
            issued_at=now_utc,
        )
        try:
            issue = await TriviaRepo.create_issue(session, issue=issue)
        except IntegrityError:
            existing = await TriviaRepo.get_issue_for_update(session, user_id=user_id, issue_date=today)
            if existing is None:
                raise
            return TriviaService._as_issued_question(existing, idempotent_replay=True)

        logger.info(
            "trivia_question_issued",
            user_id=str(user_id),
            question_id=str(question.id),
            country=scoped_country,
        )
        return TriviaService._as_issued_question(issue, idempotent_replay=False)

    @staticmethod
    async def submit_answer(
        session: AsyncSession,
        *,
        user_id: UUID,
        question_id: UUID,
        selected_index: int,
        now_utc: datetime,
        config: RewardConfig,
    ) -> TriviaResult:
        today = utc_date(now_utc)
        profile = await ProfilesRepo.get_by_id_for_update(session, user_id)
        if profile is None:
            raise NotFoundError("User not found.", user_id=str(user_id))
        if profile.is_suspended:
            raise AccountSuspendedError(user_id=str(user_id))

        issue = await TriviaRepo.get_latest_issue_for_question_for_update(
            session,
            user_id=user_id,
            question_id=question_id,
        )
        if issue is None:
            raise NotFoundError("This question was not issued to you.", question_id=str(question_id))
        if issue.status == ISSUE_STATUS_ANSWERED:
            raise AlreadySubmittedError(question_id=str(question_id))
        if issue.issue_date != today:
            raise TriviaQuestionExpiredError(question_id=str(question_id), issued_on=issue.issue_date.isoformat())

        state = await DailyRewardsRepo.get_or_create_for_update(session, user_id=user_id, now_utc=now_utc)
        snapshot = RewardCycleService.snapshot_from_model(state)
        ensure_action_available(snapshot, RewardAction.TRIVIA, today)

        question = snapshot_from_payload(issue.question_snapshot)
        correct = grade_answer(question, selected_index)
        base_points = base_points_for(question, correct=correct, points_by_difficulty=config.trivia_points)

        snapshot = advance_trivia_streak(snapshot, correct=correct, today=today)
        multiplier = streak_multiplier(
            snapshot.trivia_streak,
            increment=config.streak_increment,
            max_multiplier=config.max_streak_multiplier,
        )
        bonus, total_points = trivia_reward(base_points, multiplier) if correct else (0, 0)

        claim = await RewardCycleService.record_claim(
            session,
            user_id=user_id,
            action=RewardAction.TRIVIA,
            claim_date=today,
            points_awarded=total_points,
            now_utc=now_utc,
        )
        if total_points > 0:
            await PointsLedgerService.credit(
                session,
                profile=profile,
                amount=total_points,
                entry_type=ENTRY_TYPE_TRIVIA,
                source="DAILY_REWARD",
                idempotency_key=f"trivia:{claim.id}",
                now_utc=now_utc,
                metadata={
                    "question_id": str(question_id),
                    "difficulty": question.difficulty,
                    "base_points": base_points,
                    "streak_bonus": bonus,
                    "streak_multiplier": str(multiplier),
                },
            )

        snapshot = consume_action(snapshot, RewardAction.TRIVIA, today)
        await RewardCycleService.commit_snapshot(session, state=state, snapshot=snapshot, now_utc=now_utc)

        issue.status = ISSUE_STATUS_ANSWERED
        issue.selected_answer = selected_index
        issue.is_correct = correct
        issue.points_earned = total_points
        issue.answered_at = now_utc
        await session.flush()

        logger.info(
            "trivia_answer_graded",
            user_id=str(user_id),
            question_id=str(question_id),
            correct=correct,
            points=total_points,
            trivia_streak=snapshot.trivia_streak,
        )
        if correct:
            message = f"Correct! You earned {total_points} points."
        else:
            message = "Not quite. Come back tomorrow for a new question."
        return TriviaResult(
            correct=correct,
            correct_answer=question.correct_answer,
            base_points=base_points,
            streak_bonus=bonus,
            points_earned=total_points,
            trivia_streak=snapshot.trivia_streak,
            streak_multiplier=multiplier,
            new_points_balance=profile.points,
            message=message,
        )
