from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class SpinOutcome(str, Enum):
    TRY_AGAIN = "try_again"
    POINTS = "points"


@dataclass(frozen=True, slots=True)
class SpinPrize:
    points: int
    weight: int
    message: str
    outcome: SpinOutcome = SpinOutcome.POINTS

    @property
    def is_win(self) -> bool:
        return self.outcome == SpinOutcome.POINTS and self.points > 0


@dataclass(slots=True)
class SpinResult:
    success: bool
    outcome: SpinOutcome
    base_points: int
    bonus_points: int
    prize_points: int
    message: str
    spin_streak: int
    streak_multiplier: Decimal
    new_points_balance: int
