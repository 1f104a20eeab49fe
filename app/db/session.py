from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import get_settings


def _connect_args(database_url: str, lock_timeout_ms: int) -> dict[str, object]:
    if not database_url.startswith("postgresql+asyncpg"):
        return {}
    # Row locks that cannot be taken within lock_timeout fail instead of queueing.
    return {"server_settings": {"lock_timeout": str(lock_timeout_ms)}}


_settings = get_settings()

engine = create_async_engine(
    _settings.database_url,
    pool_pre_ping=True,
    connect_args=_connect_args(_settings.database_url, _settings.db_lock_timeout_ms),
)

SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
