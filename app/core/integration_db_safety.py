from __future__ import annotations

import re
from dataclasses import dataclass

from sqlalchemy.engine import make_url

TEST_DB_NAME_RE = re.compile(r"test", re.IGNORECASE)
ALLOWED_LOCAL_HOSTS = {
    "localhost",
    "127.0.0.1",
    "::1",
    "postgres",
    "rewards_postgres",
}


@dataclass(frozen=True, slots=True)
class IntegrationDbSafetyResult:
    is_safe: bool
    reason: str
    database_name: str
    host: str


def _result(is_safe: bool, reason: str, *, database_name: str, host: str) -> IntegrationDbSafetyResult:
    return IntegrationDbSafetyResult(is_safe=is_safe, reason=reason, database_name=database_name, host=host)


def assess_integration_db_safety(database_url: str) -> IntegrationDbSafetyResult:
    parsed = make_url(database_url)
    db_name = (parsed.database or "").strip()
    host = (parsed.host or "").strip().lower()

    if parsed.get_backend_name() != "postgresql":
        return _result(
            False,
            "Integration tests need PostgreSQL row locks; other backends are refused.",
            database_name=db_name,
            host=host,
        )
    if not db_name:
        return _result(False, "Database name is empty.", database_name=db_name, host=host)
    if TEST_DB_NAME_RE.search(db_name) is None:
        return _result(
            False,
            "Database name must clearly indicate a test database (contain 'test').",
            database_name=db_name,
            host=host,
        )
    if host not in ALLOWED_LOCAL_HOSTS:
        return _result(
            False,
            "Host is not in allowed local integration-test hosts.",
            database_name=db_name,
            host=host,
        )
    return _result(True, "ok", database_name=db_name, host=host)


def assert_safe_integration_db(database_url: str) -> None:
    result = assess_integration_db_safety(database_url)
    if result.is_safe:
        return

    raise RuntimeError(
        "Refusing to run integration tests with destructive TRUNCATE.\n"
        f"Reason: {result.reason}\n"
        f"Resolved DB: name='{result.database_name}' host='{result.host}'\n"
        "Required: use a dedicated local PostgreSQL test DB, e.g. 'rewards_test'."
    )
