from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class DailyRewardStatusResponse(BaseModel):
    user_id: UUID
    can_spin: bool
    can_play_trivia: bool
    can_watch_ad: bool
    trivia_streak: int = Field(ge=0)
    spin_streak: int = Field(ge=0)
    total_spins: int = Field(ge=0)
    total_trivia_completed: int = Field(ge=0)
    total_ads_watched: int = Field(ge=0)
    last_spin_date: date | None = None
    last_trivia_date: date | None = None
    last_watch_date: date | None = None
    next_reset_at: datetime


class SpinResponse(BaseModel):
    success: bool
    outcome: str
    base_points: int = Field(ge=0)
    bonus_points: int = Field(ge=0)
    prize_points: int = Field(ge=0)
    message: str
    spin_streak: int = Field(ge=0)
    streak_multiplier: Decimal
    new_points_balance: int = Field(ge=0)


class TriviaQuestionResponse(BaseModel):
    question_id: UUID
    question: str
    options: list[str]
    difficulty: str
    category: str
    issued_on: date
    idempotent_replay: bool


class TriviaAnswerRequest(BaseModel):
    question_id: UUID
    selected_index: int = Field(ge=0)


class TriviaAnswerResponse(BaseModel):
    correct: bool
    correct_answer: int
    base_points: int = Field(ge=0)
    streak_bonus: int = Field(ge=0)
    points_earned: int = Field(ge=0)
    trivia_streak: int = Field(ge=0)
    streak_multiplier: Decimal
    new_points_balance: int = Field(ge=0)
    message: str


class WatchAdResponse(BaseModel):
    points_earned: int = Field(ge=0)
    new_points_balance: int = Field(ge=0)
    total_ads_watched: int = Field(ge=0)
    message: str


class PointsHistoryItemResponse(BaseModel):
    entry_type: str
    direction: str
    amount: int
    balance_after: int
    source: str
    metadata: dict[str, object]
    created_at: datetime


class PointsHistoryResponse(BaseModel):
    items: list[PointsHistoryItemResponse]


class AdNetworkConfigResponse(BaseModel):
    enabled: bool
    client_id: str | None = None
    slots: dict[str, str | None]
    source: str
