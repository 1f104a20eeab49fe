from __future__ import annotations

from datetime import date
from types import SimpleNamespace
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from app.db.repo.ambassadors_repo import AmbassadorsRepo
from app.db.repo.commission_repo import CommissionRepo
from app.db.repo.daily_rewards_repo import DailyRewardsRepo
from app.db.repo.payment_transactions_repo import PaymentTransactionsRepo
from app.db.repo.payout_requests_repo import PayoutRequestsRepo
from app.db.repo.profiles_repo import ProfilesRepo
from app.db.repo.redemptions_repo import RedemptionsRepo
from app.db.repo.store_repo import StoreItemsRepo
from app.db.repo.trivia_repo import TriviaRepo


class CapturingSession:
    """Records statements instead of running them."""

    def __init__(self) -> None:
        self.statements: list[object] = []

    async def execute(self, stmt):
        self.statements.append(stmt)
        return SimpleNamespace(scalar_one_or_none=lambda: None)


LOCKING_READS = {
    "profile": lambda session: ProfilesRepo.get_by_id_for_update(session, uuid4()),
    "store_item": lambda session: StoreItemsRepo.get_by_id_for_update(session, uuid4()),
    "daily_rewards": lambda session: DailyRewardsRepo.get_by_user_id_for_update(session, uuid4()),
    "ambassador": lambda session: AmbassadorsRepo.get_by_user_id_for_update(session, uuid4()),
    "commission_tier": lambda session: CommissionRepo.get_tier_for_update(session, uuid4()),
    "trivia_issue": lambda session: TriviaRepo.get_issue_for_update(
        session,
        user_id=uuid4(),
        issue_date=date(2026, 3, 10),
    ),
    "trivia_latest_issue": lambda session: TriviaRepo.get_latest_issue_for_question_for_update(
        session,
        user_id=uuid4(),
        question_id=uuid4(),
    ),
    "redemption": lambda session: RedemptionsRepo.get_by_id_for_update(session, uuid4()),
    "payment_transaction": lambda session: PaymentTransactionsRepo.get_by_id_for_update(session, uuid4()),
    "payout_request": lambda session: PayoutRequestsRepo.get_by_id_for_update(session, uuid4()),
}


@pytest.mark.asyncio
@pytest.mark.parametrize("name", sorted(LOCKING_READS))
async def test_locking_read_refreshes_rows_already_in_the_session(name: str) -> None:
    session = CapturingSession()

    assert await LOCKING_READS[name](session) is None

    [stmt] = session.statements
    assert stmt.get_execution_options().get("populate_existing") is True
    assert "FOR UPDATE" in str(stmt.compile(dialect=postgresql.dialect()))


@pytest.mark.asyncio
async def test_store_catalogue_filters_cost_in_sql_before_paging() -> None:
    captured: list[object] = []

    class _ListingSession:
        async def execute(self, stmt):
            captured.append(stmt)
            return SimpleNamespace(scalars=lambda: SimpleNamespace(all=lambda: []))

    await StoreItemsRepo.list_items(_ListingSession(), min_points_cost=50, max_points_cost=500, limit=1)

    sql = str(captured[0].compile(dialect=postgresql.dialect()))
    assert "reward_store_items.points_cost >= " in sql
    assert "reward_store_items.points_cost <= " in sql
    assert sql.index("points_cost >=") < sql.index("LIMIT")
