from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query

from app.db.transaction import atomic
from app.economy.errors import RewardEconomyError, StoreUnavailableError
from app.economy.store.constants import MAX_PAGE_SIZE
from app.economy.store.service import RedemptionStoreService

from .deps import current_user_id
from .http_errors import to_http_exception
from .store_models import (
    RedeemRequest,
    RedeemResponse,
    RedemptionListResponse,
    RedemptionResponse,
    StoreItemListResponse,
    StoreItemResponse,
)

router = APIRouter(prefix="/store", tags=["store"])
logger = structlog.get_logger(__name__)


@router.get("/items", response_model=StoreItemListResponse)
async def list_store_items(
    user_id: UUID = Depends(current_user_id),
    item_type: str | None = Query(default=None, min_length=1, max_length=32),
    min_points_cost: int | None = Query(default=None, ge=0),
    max_points_cost: int | None = Query(default=None, ge=0),
    in_stock_only: bool = Query(default=False),
    display_currency: str | None = Query(default=None, min_length=3, max_length=3),
    limit: int = Query(default=50, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
) -> StoreItemListResponse:
    try:
        async with atomic() as session:
            items = await RedemptionStoreService.list_items(
                session,
                user_id=user_id,
                display_currency=display_currency,
                item_type=item_type,
                min_points_cost=min_points_cost,
                max_points_cost=max_points_cost,
                in_stock_only=in_stock_only,
                limit=limit,
                offset=offset,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return StoreItemListResponse(items=[StoreItemResponse(**asdict(item)) for item in items])


@router.post("/redeem", response_model=RedeemResponse)
async def redeem_store_item(
    payload: RedeemRequest,
    user_id: UUID = Depends(current_user_id),
) -> RedeemResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            result = await RedemptionStoreService.redeem(
                session,
                user_id=user_id,
                item_id=payload.item_id,
                expected_points_cost=payload.expected_points_cost,
                idempotency_key=payload.idempotency_key,
                now_utc=now_utc,
                display_currency=payload.display_currency,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        logger.info(
            "store_redeem_rejected",
            user_id=str(user_id),
            item_id=str(payload.item_id),
            error_code=exc.code,
        )
        raise to_http_exception(exc) from exc
    return RedeemResponse(**asdict(result))


@router.get("/redemptions", response_model=RedemptionListResponse)
async def list_my_redemptions(
    user_id: UUID = Depends(current_user_id),
    status: str | None = Query(default=None, min_length=1, max_length=32),
    limit: int = Query(default=50, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
) -> RedemptionListResponse:
    try:
        async with atomic() as session:
            redemptions = await RedemptionStoreService.list_redemptions(
                session,
                user_id=user_id,
                status=status,
                limit=limit,
                offset=offset,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return RedemptionListResponse(
        redemptions=[RedemptionResponse(**asdict(redemption)) for redemption in redemptions]
    )
