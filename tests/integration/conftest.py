from __future__ import annotations

import pytest
from sqlalchemy import text

from app.core.integration_db_safety import assert_safe_integration_db
from app.db.session import engine

TRUNCATE_TABLES = (
    "admin_audit_log",
    "payment_transactions",
    "payout_requests",
    "ambassador_commission_events",
    "ambassador_referrals",
    "ambassador_commission_tiers",
    "ambassadors",
    "redemption_status_events",
    "redeemed_items",
    "reward_store_items",
    "trivia_issues",
    "trivia_questions",
    "reward_claims",
    "user_daily_rewards",
    "points_ledger",
    "currency_exchange_rates",
    "country_metrics",
    "app_settings",
    "profiles",
)

TRUNCATE_SQL = f"TRUNCATE TABLE {', '.join(TRUNCATE_TABLES)} RESTART IDENTITY CASCADE"


@pytest.fixture(scope="session", autouse=True)
def guard_integration_db_target() -> None:
    try:
        assert_safe_integration_db(str(engine.url))
    except RuntimeError as exc:
        pytest.skip(str(exc))


@pytest.fixture(autouse=True)
async def cleanup_db() -> None:
    # Dispose pooled connections between tests to avoid cross-event-loop asyncpg reuse.
    await engine.dispose()

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:  # pragma: no cover - environment-dependent
        pytest.skip(f"Postgres is required for integration tests: {exc}")

    async with engine.begin() as conn:
        await conn.execute(text(TRUNCATE_SQL))

    yield

    await engine.dispose()
