from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True, slots=True)
class QuestionSnapshot:
    question: str
    options: tuple[str, ...]
    correct_answer: int
    difficulty: str
    category: str


@dataclass(slots=True)
class IssuedQuestion:
    question_id: UUID
    question: str
    options: list[str]
    difficulty: str
    category: str
    issued_on: date
    idempotent_replay: bool


@dataclass(slots=True)
class TriviaResult:
    correct: bool
    correct_answer: int
    base_points: int
    streak_bonus: int
    points_earned: int
    trivia_streak: int
    streak_multiplier: Decimal
    new_points_balance: int
    message: str
