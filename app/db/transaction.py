from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.session import SessionLocal
from app.economy.errors import StoreBusyError, StoreUnavailableError

logger = structlog.get_logger(__name__)

# lock_not_available, serialization_failure, deadlock_detected
RETRYABLE_SQLSTATES = frozenset({"55P03", "40001", "40P01"})


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    for attr in ("sqlstate", "pgcode"):
        value = getattr(orig, attr, None)
        if value:
            return str(value)
    cause = getattr(orig, "__cause__", None)
    value = getattr(cause, "sqlstate", None)
    return str(value) if value else None


def translate_store_error(exc: DBAPIError) -> StoreUnavailableError:
    sqlstate = _sqlstate(exc)
    if sqlstate in RETRYABLE_SQLSTATES:
        return StoreBusyError(f"store busy (sqlstate={sqlstate})")
    return StoreUnavailableError("store unavailable")


@asynccontextmanager
async def atomic(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncIterator[AsyncSession]:
    """Runs the block in one transaction, mapping driver failures to store errors.

    Business errors raised inside the block propagate unchanged after rollback.
    """
    factory = session_factory or SessionLocal
    try:
        async with factory.begin() as session:
            yield session
    except DBAPIError as exc:
        translated = translate_store_error(exc)
        logger.warning(
            "store_transaction_failed",
            error_code=translated.code,
            retryable=translated.retryable,
        )
        raise translated from exc
