from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.economy.errors import ValidationError
from app.economy.trivia.rules import (
    base_points_for,
    grade_answer,
    snapshot_from_payload,
    snapshot_from_question,
    snapshot_to_payload,
    trivia_reward,
)

POINTS = {"easy": 10, "medium": 20, "hard": 30}


def question(**overrides: object) -> SimpleNamespace:
    values: dict[str, object] = {
        "question": "Capital of Kenya?",
        "options": ["Nairobi", "Mombasa", "Kisumu", "Nakuru"],
        "correct_answer": 0,
        "difficulty": "medium",
        "category": "geography",
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_grade_answer_compares_against_issued_snapshot() -> None:
    snapshot = snapshot_from_payload(snapshot_to_payload(snapshot_from_question(question())))
    assert grade_answer(snapshot, 0) is True
    assert grade_answer(snapshot, 2) is False


@pytest.mark.parametrize("selected_index", [-1, 4, True])
def test_grade_answer_rejects_out_of_range_selection(selected_index: int) -> None:
    snapshot = snapshot_from_question(question())
    with pytest.raises(ValidationError):
        grade_answer(snapshot, selected_index)


@pytest.mark.parametrize(("difficulty", "points"), [("easy", 10), ("medium", 20), ("hard", 30)])
def test_base_points_follow_difficulty_when_correct(difficulty: str, points: int) -> None:
    snapshot = snapshot_from_question(question(difficulty=difficulty))
    assert base_points_for(snapshot, correct=True, points_by_difficulty=POINTS) == points
    assert base_points_for(snapshot, correct=False, points_by_difficulty=POINTS) == 0


def test_trivia_reward_adds_floored_streak_bonus() -> None:
    assert trivia_reward(30, Decimal("1.2")) == (6, 36)
    assert trivia_reward(0, Decimal("1.5")) == (0, 0)


def test_missing_category_defaults_to_general() -> None:
    snapshot = snapshot_from_question(question(category=None))
    assert snapshot.category == "general"
