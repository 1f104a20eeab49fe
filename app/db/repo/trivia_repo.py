from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.trivia_issues import TriviaIssue
from app.db.models.trivia_questions import TriviaQuestion


class TriviaRepo:
    @staticmethod
    async def list_active_question_ids(session: AsyncSession, *, country: str | None) -> list[UUID]:
        stmt = select(TriviaQuestion.id).where(TriviaQuestion.is_active.is_(True))
        if country is None:
            stmt = stmt.where(TriviaQuestion.country.is_(None))
        else:
            stmt = stmt.where(TriviaQuestion.country == country)
        result = await session.execute(stmt.order_by(TriviaQuestion.id))
        return list(result.scalars().all())

    @staticmethod
    async def get_question(session: AsyncSession, question_id: UUID) -> TriviaQuestion | None:
        return await session.get(TriviaQuestion, question_id)

    @staticmethod
    async def get_issue_for_update(
        session: AsyncSession,
        *,
        user_id: UUID,
        issue_date: date,
    ) -> TriviaIssue | None:
        stmt = (
            select(TriviaIssue)
            .where(TriviaIssue.user_id == user_id, TriviaIssue.issue_date == issue_date)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_latest_issue_for_question_for_update(
        session: AsyncSession,
        *,
        user_id: UUID,
        question_id: UUID,
    ) -> TriviaIssue | None:
        stmt = (
            select(TriviaIssue)
            .where(TriviaIssue.user_id == user_id, TriviaIssue.question_id == question_id)
            .order_by(TriviaIssue.issue_date.desc())
            .limit(1)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_issue(session: AsyncSession, *, issue: TriviaIssue) -> TriviaIssue:
        async with session.begin_nested():
            session.add(issue)
            await session.flush()
        return issue
