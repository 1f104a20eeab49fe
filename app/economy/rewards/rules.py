from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from decimal import ROUND_FLOOR, Decimal

from app.economy.errors import AlreadyClaimedError
from app.economy.rewards.types import RewardAction, RewardCycleSnapshot

_LAST_DATE_FIELDS = {
    RewardAction.SPIN: "last_spin_date",
    RewardAction.TRIVIA: "last_trivia_date",
    RewardAction.WATCH_AD: "last_watch_date",
}


def empty_snapshot() -> RewardCycleSnapshot:
    return RewardCycleSnapshot(
        last_spin_date=None,
        last_trivia_date=None,
        last_watch_date=None,
        last_trivia_correct_date=None,
        trivia_streak=0,
        spin_streak=0,
        total_spins=0,
        total_trivia_completed=0,
        total_ads_watched=0,
    )


def last_action_date(snapshot: RewardCycleSnapshot, action: RewardAction) -> date | None:
    return getattr(snapshot, _LAST_DATE_FIELDS[action])


def is_action_available(snapshot: RewardCycleSnapshot, action: RewardAction, today: date) -> bool:
    last = last_action_date(snapshot, action)
    return last is None or last < today


def ensure_action_available(snapshot: RewardCycleSnapshot, action: RewardAction, today: date) -> None:
    if not is_action_available(snapshot, action, today):
        raise AlreadyClaimedError(action=action.value, today=today.isoformat())


def consume_action(snapshot: RewardCycleSnapshot, action: RewardAction, today: date) -> RewardCycleSnapshot:
    ensure_action_available(snapshot, action, today)
    if action == RewardAction.SPIN:
        return replace(snapshot, last_spin_date=today, total_spins=snapshot.total_spins + 1)
    if action == RewardAction.TRIVIA:
        return replace(
            snapshot,
            last_trivia_date=today,
            total_trivia_completed=snapshot.total_trivia_completed + 1,
        )
    return replace(snapshot, last_watch_date=today, total_ads_watched=snapshot.total_ads_watched + 1)


def advance_trivia_streak(snapshot: RewardCycleSnapshot, *, correct: bool, today: date) -> RewardCycleSnapshot:
    if not correct:
        return snapshot

    previous = snapshot.last_trivia_correct_date
    if previous == today:
        return snapshot
    if previous is not None and previous == today - timedelta(days=1):
        streak = snapshot.trivia_streak + 1
    else:
        streak = 1
    return replace(snapshot, trivia_streak=streak, last_trivia_correct_date=today)


def advance_spin_streak(snapshot: RewardCycleSnapshot, *, won: bool, today: date) -> RewardCycleSnapshot:
    """Consecutive winning days extend the streak; a try-again resets it."""
    if not won:
        return replace(snapshot, spin_streak=0)
    previous = snapshot.last_spin_date
    if previous is not None and previous == today - timedelta(days=1):
        return replace(snapshot, spin_streak=snapshot.spin_streak + 1)
    return replace(snapshot, spin_streak=1)


def streak_multiplier(streak: int, *, increment: Decimal, max_multiplier: Decimal) -> Decimal:
    return min(Decimal(1) + Decimal(max(streak, 0)) * increment, max_multiplier)


def streak_bonus(base_points: int, multiplier: Decimal) -> int:
    if base_points <= 0 or multiplier <= 1:
        return 0
    bonus = (Decimal(base_points) * (multiplier - Decimal(1))).to_integral_value(rounding=ROUND_FLOOR)
    return int(bonus)
