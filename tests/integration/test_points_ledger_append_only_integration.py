from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError

from app.db.models.points_ledger import PointsLedgerEntry
from app.db.models.profiles import Profile
from app.db.session import SessionLocal
from app.economy.points.service import PointsLedgerService
from tests.integration.rewards_fixtures import UTC, _create_profile


async def _credit_once(user_id) -> int:
    now_utc = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)
    async with SessionLocal.begin() as session:
        profile = await session.get(Profile, user_id, with_for_update=True)
        entry = await PointsLedgerService.credit(
            session,
            profile=profile,
            amount=25,
            entry_type="ADMIN_ADJUSTMENT",
            source="INTEGRATION",
            idempotency_key=f"append-only:{user_id}",
            now_utc=now_utc,
        )
        return entry.id


@pytest.mark.asyncio
async def test_points_ledger_blocks_update_and_delete() -> None:
    user_id = await _create_profile(points=0)
    entry_id = await _credit_once(user_id)

    with pytest.raises(DBAPIError):
        async with SessionLocal.begin() as session:
            await session.execute(
                text("UPDATE points_ledger SET amount = amount + 1 WHERE id = :entry_id"),
                {"entry_id": entry_id},
            )

    with pytest.raises(DBAPIError):
        async with SessionLocal.begin() as session:
            await session.execute(
                text("DELETE FROM points_ledger WHERE id = :entry_id"),
                {"entry_id": entry_id},
            )


@pytest.mark.asyncio
async def test_points_ledger_blocks_orm_mutations() -> None:
    user_id = await _create_profile(points=0)
    entry_id = await _credit_once(user_id)

    with pytest.raises(DBAPIError):
        async with SessionLocal.begin() as session:
            entry = await session.get(PointsLedgerEntry, entry_id)
            entry.amount = 999

    async with SessionLocal.begin() as session:
        entry = await session.get(PointsLedgerEntry, entry_id)
        profile = await session.get(Profile, user_id)

    assert entry.amount == 25
    assert entry.balance_after == 25
    assert profile.points == 25
