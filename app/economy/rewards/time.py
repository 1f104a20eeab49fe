from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone


def utc_date(now_utc: datetime) -> date:
    """Reward days roll over at UTC midnight."""
    return now_utc.astimezone(timezone.utc).date()


def next_utc_midnight(now_utc: datetime) -> datetime:
    return datetime.combine(utc_date(now_utc) + timedelta(days=1), time.min, tzinfo=timezone.utc)
