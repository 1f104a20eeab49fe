from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from uuid import UUID


class RewardAction(str, Enum):
    SPIN = "SPIN"
    TRIVIA = "TRIVIA"
    WATCH_AD = "WATCH_AD"


@dataclass(slots=True)
class RewardCycleSnapshot:
    last_spin_date: date | None
    last_trivia_date: date | None
    last_watch_date: date | None
    last_trivia_correct_date: date | None
    trivia_streak: int
    spin_streak: int
    total_spins: int
    total_trivia_completed: int
    total_ads_watched: int


@dataclass(slots=True)
class DailyRewardStatus:
    user_id: UUID
    can_spin: bool
    can_play_trivia: bool
    can_watch_ad: bool
    trivia_streak: int
    spin_streak: int
    total_spins: int
    total_trivia_completed: int
    total_ads_watched: int
    last_spin_date: date | None
    last_trivia_date: date | None
    last_watch_date: date | None
    next_reset_at: datetime


@dataclass(slots=True)
class WatchAdResult:
    points_earned: int
    new_points_balance: int
    total_ads_watched: int
    message: str
