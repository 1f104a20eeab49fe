from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable, Mapping, Sequence
from fractions import Fraction
from itertools import accumulate
from typing import Any, Protocol

from app.economy.errors import ValidationError
from app.economy.spin.types import SpinOutcome, SpinPrize


class RandomSource(Protocol):
    def randrange(self, stop: int) -> int: ...


def validate_prize_table(prizes: Iterable[SpinPrize]) -> tuple[SpinPrize, ...]:
    table = tuple(prizes)
    if not table:
        raise ValidationError("Spin prize table cannot be empty.")
    for prize in table:
        if prize.weight < 0:
            raise ValidationError("Spin prize weights cannot be negative.", weight=prize.weight)
        if prize.points < 0:
            raise ValidationError("Spin prize points cannot be negative.", points=prize.points)
    if sum(prize.weight for prize in table) <= 0:
        raise ValidationError("Spin prize weights must add up to a positive total.")
    return table


def prize_table_from_settings(raw_prizes: Sequence[Mapping[str, Any]]) -> tuple[SpinPrize, ...]:
    """Parses the ``spin_prizes`` remote setting: ``[{points, weight, message}, ...]``."""
    prizes: list[SpinPrize] = []
    for raw in raw_prizes:
        try:
            points = int(raw.get("points", 0))
            weight = int(raw["weight"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError("Spin prizes need integer points and weight.") from exc
        outcome = SpinOutcome.POINTS if points > 0 else SpinOutcome.TRY_AGAIN
        message = str(raw.get("message") or (f"You won {points} points!" if points > 0 else "Try Again Tomorrow!"))
        prizes.append(SpinPrize(points=points, weight=weight, message=message, outcome=outcome))
    return validate_prize_table(prizes)


def prize_probabilities(prizes: Sequence[SpinPrize]) -> list[Fraction]:
    table = validate_prize_table(prizes)
    total = sum(prize.weight for prize in table)
    return [Fraction(prize.weight, total) for prize in table]


def draw_prize(prizes: Sequence[SpinPrize], rng: RandomSource) -> SpinPrize:
    """Draws one prize; each prize owns a band of ``weight`` consecutive rolls."""
    table = validate_prize_table(prizes)
    bounds = list(accumulate(prize.weight for prize in table))
    roll = rng.randrange(bounds[-1])
    return table[bisect_right(bounds, roll)]
