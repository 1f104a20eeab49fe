from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from app.economy.errors import ValidationError
from app.economy.rewards.rules import streak_bonus
from app.economy.trivia.types import QuestionSnapshot

DIFFICULTIES = ("easy", "medium", "hard")


def snapshot_from_question(question: Any) -> QuestionSnapshot:
    return QuestionSnapshot(
        question=str(question.question),
        options=tuple(str(option) for option in question.options),
        correct_answer=int(question.correct_answer),
        difficulty=str(question.difficulty),
        category=str(question.category or "general"),
    )


def snapshot_to_payload(snapshot: QuestionSnapshot) -> dict[str, object]:
    return {
        "question": snapshot.question,
        "options": list(snapshot.options),
        "correct_answer": snapshot.correct_answer,
        "difficulty": snapshot.difficulty,
        "category": snapshot.category,
    }


def snapshot_from_payload(payload: Mapping[str, Any]) -> QuestionSnapshot:
    return QuestionSnapshot(
        question=str(payload["question"]),
        options=tuple(str(option) for option in payload["options"]),
        correct_answer=int(payload["correct_answer"]),
        difficulty=str(payload["difficulty"]),
        category=str(payload.get("category") or "general"),
    )


def validate_selected_index(snapshot: QuestionSnapshot, selected_index: int) -> None:
    if isinstance(selected_index, bool) or not 0 <= selected_index < len(snapshot.options):
        raise ValidationError(
            "Selected answer is not one of the options.",
            selected_index=selected_index,
            option_count=len(snapshot.options),
        )


def grade_answer(snapshot: QuestionSnapshot, selected_index: int) -> bool:
    validate_selected_index(snapshot, selected_index)
    return selected_index == snapshot.correct_answer


def base_points_for(snapshot: QuestionSnapshot, *, correct: bool, points_by_difficulty: Mapping[str, int]) -> int:
    if not correct:
        return 0
    return int(points_by_difficulty.get(snapshot.difficulty, 0))


def trivia_reward(base_points: int, multiplier: Decimal) -> tuple[int, int]:
    """Returns ``(streak_bonus, total_points)`` for an already-graded answer."""
    bonus = streak_bonus(base_points, multiplier)
    return bonus, base_points + bonus
