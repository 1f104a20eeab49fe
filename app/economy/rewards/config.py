from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.runtime_config import resolve_setting
from app.db.repo.app_settings_repo import AppSettingsRepo
from app.economy.errors import ValidationError
from app.economy.spin.constants import DEFAULT_SPIN_PRIZES
from app.economy.spin.rules import prize_table_from_settings, validate_prize_table
from app.economy.spin.types import SpinPrize

logger = structlog.get_logger(__name__)

POINTS_SETTINGS_CATEGORY = "points"
SPIN_PRIZES_SETTINGS_CATEGORY = "spin_prizes"


@dataclass(frozen=True, slots=True)
class RewardConfig:
    spin_prizes: tuple[SpinPrize, ...] = DEFAULT_SPIN_PRIZES
    streak_increment: Decimal = Decimal("0.1")
    max_streak_multiplier: Decimal = Decimal("2.0")
    trivia_points: Mapping[str, int] = field(
        default_factory=lambda: {"easy": 10, "medium": 20, "hard": 30}
    )
    ad_watch_points: int = 15
    sources: Mapping[str, str] = field(default_factory=dict)

    def trivia_points_for(self, difficulty: str) -> int:
        return int(self.trivia_points.get(difficulty, 0))


def _as_decimal(value: Any, *, key: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError("Reward setting must be numeric.", setting=key) from exc


def _as_int(value: Any, *, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Reward setting must be an integer.", setting=key) from exc


def build_reward_config(
    points_settings: Mapping[str, Any] | None,
    spin_prizes_settings: Mapping[str, Any] | None,
    settings: Settings,
) -> RewardConfig:
    """Resolves every reward knob through remote settings, then environment defaults."""
    remote = points_settings or {}
    sources: dict[str, str] = {}

    def pick(remote_key: str, env_value: Any) -> Any:
        resolved = resolve_setting(remote.get(remote_key), env_value)
        sources[remote_key] = resolved.source
        return resolved.value

    increment = _as_decimal(pick("streakIncrement", settings.spin_streak_increment), key="streakIncrement")
    max_multiplier = _as_decimal(
        pick("maxStreakMultiplier", settings.max_streak_multiplier),
        key="maxStreakMultiplier",
    )
    trivia_points = {
        "easy": _as_int(pick("triviaEasyPoints", settings.trivia_easy_points), key="triviaEasyPoints"),
        "medium": _as_int(pick("triviaMediumPoints", settings.trivia_medium_points), key="triviaMediumPoints"),
        "hard": _as_int(pick("triviaHardPoints", settings.trivia_hard_points), key="triviaHardPoints"),
    }
    ad_watch_points = _as_int(pick("adWatchPoints", settings.ad_watch_points), key="adWatchPoints")

    raw_prizes = (spin_prizes_settings or {}).get("prizes")
    if raw_prizes:
        spin_prizes = prize_table_from_settings(raw_prizes)
        sources["spinPrizes"] = "remote"
    else:
        spin_prizes = validate_prize_table(DEFAULT_SPIN_PRIZES)
        sources["spinPrizes"] = "environment"

    if increment < 0 or max_multiplier < 1:
        raise ValidationError("Streak settings are out of range.")
    if ad_watch_points < 0 or any(points < 0 for points in trivia_points.values()):
        raise ValidationError("Reward points cannot be negative.")

    return RewardConfig(
        spin_prizes=spin_prizes,
        streak_increment=increment,
        max_streak_multiplier=max_multiplier,
        trivia_points=trivia_points,
        ad_watch_points=ad_watch_points,
        sources=sources,
    )


async def load_reward_config(session: AsyncSession, settings: Settings | None = None) -> RewardConfig:
    points_settings = await AppSettingsRepo.get_category(session, POINTS_SETTINGS_CATEGORY)
    spin_prizes_settings = await AppSettingsRepo.get_category(session, SPIN_PRIZES_SETTINGS_CATEGORY)
    config = build_reward_config(points_settings, spin_prizes_settings, settings or get_settings())
    logger.debug("reward_config_loaded", sources=dict(config.sources))
    return config
