from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.core.config import get_settings
from app.core.runtime_config import resolve_ad_network_config
from app.db.repo.app_settings_repo import AppSettingsRepo
from app.db.transaction import atomic
from app.economy.errors import RewardEconomyError, StoreUnavailableError
from app.economy.points.constants import MAX_HISTORY_LIMIT
from app.economy.points.service import PointsLedgerService
from app.economy.rewards.config import load_reward_config
from app.economy.rewards.service import RewardCycleService
from app.economy.spin.service import SpinService
from app.economy.trivia.service import TriviaService

from .deps import current_user_id
from .http_errors import to_http_exception
from .rewards_models import (
    AdNetworkConfigResponse,
    DailyRewardStatusResponse,
    PointsHistoryItemResponse,
    PointsHistoryResponse,
    SpinResponse,
    TriviaAnswerRequest,
    TriviaAnswerResponse,
    TriviaQuestionResponse,
    WatchAdResponse,
)

router = APIRouter(prefix="/rewards", tags=["rewards"])
INTEGRATIONS_SETTINGS_CATEGORY = "integrations"


@router.get("/status", response_model=DailyRewardStatusResponse)
async def get_reward_status(user_id: UUID = Depends(current_user_id)) -> DailyRewardStatusResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            result = await RewardCycleService.get_status(session, user_id=user_id, now_utc=now_utc)
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return DailyRewardStatusResponse(**asdict(result))


@router.post("/spin", response_model=SpinResponse)
async def spin_wheel(user_id: UUID = Depends(current_user_id)) -> SpinResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            config = await load_reward_config(session)
            result = await SpinService.spin(session, user_id=user_id, now_utc=now_utc, config=config)
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return SpinResponse(
        success=result.success,
        outcome=result.outcome.value,
        base_points=result.base_points,
        bonus_points=result.bonus_points,
        prize_points=result.prize_points,
        message=result.message,
        spin_streak=result.spin_streak,
        streak_multiplier=result.streak_multiplier,
        new_points_balance=result.new_points_balance,
    )


@router.get("/trivia/question", response_model=TriviaQuestionResponse)
async def get_trivia_question(
    user_id: UUID = Depends(current_user_id),
    country: str | None = Query(default=None, min_length=2, max_length=2),
) -> TriviaQuestionResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            result = await TriviaService.issue_question(
                session,
                user_id=user_id,
                now_utc=now_utc,
                country=country,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return TriviaQuestionResponse(**asdict(result))


@router.post("/trivia/answer", response_model=TriviaAnswerResponse)
async def answer_trivia_question(
    payload: TriviaAnswerRequest,
    user_id: UUID = Depends(current_user_id),
) -> TriviaAnswerResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            config = await load_reward_config(session)
            result = await TriviaService.submit_answer(
                session,
                user_id=user_id,
                question_id=payload.question_id,
                selected_index=payload.selected_index,
                now_utc=now_utc,
                config=config,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return TriviaAnswerResponse(**asdict(result))


@router.post("/watch-ad", response_model=WatchAdResponse)
async def watch_ad(user_id: UUID = Depends(current_user_id)) -> WatchAdResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            config = await load_reward_config(session)
            result = await RewardCycleService.watch_ad(session, user_id=user_id, now_utc=now_utc, config=config)
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return WatchAdResponse(**asdict(result))


@router.get("/history", response_model=PointsHistoryResponse)
async def get_points_history(
    user_id: UUID = Depends(current_user_id),
    entry_type: str | None = Query(default=None, min_length=1, max_length=32),
    limit: int = Query(default=50, ge=1, le=MAX_HISTORY_LIMIT),
) -> PointsHistoryResponse:
    try:
        async with atomic() as session:
            items = await PointsLedgerService.get_history(
                session,
                user_id=user_id,
                entry_type=entry_type,
                limit=limit,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return PointsHistoryResponse(items=[PointsHistoryItemResponse(**asdict(item)) for item in items])


@router.get("/ads/config", response_model=AdNetworkConfigResponse)
async def get_ad_network_config() -> AdNetworkConfigResponse:
    try:
        async with atomic() as session:
            remote = await AppSettingsRepo.get_category(session, INTEGRATIONS_SETTINGS_CATEGORY)
    except StoreUnavailableError as exc:
        raise to_http_exception(exc) from exc
    config = resolve_ad_network_config(remote, get_settings())
    return AdNetworkConfigResponse(
        enabled=config.enabled,
        client_id=config.client_id,
        slots=config.slots,
        source=config.source,
    )
