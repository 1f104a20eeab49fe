from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

import structlog
from fastapi import APIRouter, Query, Request, Response, status

from app.core.config import get_settings  # noqa: F401
from app.db.models.commission_tiers import CommissionTier
from app.db.models.reward_store_items import RewardStoreItem
from app.db.transaction import atomic
from app.economy.commission.service import CommissionService
from app.economy.errors import RewardEconomyError, StoreUnavailableError
from app.economy.payouts.constants import MAX_PAGE_SIZE as PAYOUT_PAGE_SIZE
from app.economy.payouts.service import PayoutService
from app.economy.points.service import PointsLedgerService
from app.economy.rewards.service import RewardCycleService
from app.economy.store.service import RedemptionStoreService

from .deps import _assert_internal_access, actor_id_from_request
from .http_errors import to_http_exception
from .internal_admin_models import (
    AdminStoreItemResponse,
    AmbassadorEnrollRequest,
    AmbassadorEnrollResponse,
    AmbassadorStateResponse,
    CommissionProcessRequest,
    CommissionProcessResponse,
    CommissionTierCreateRequest,
    CommissionTierListResponse,
    CommissionTierResponse,
    CommissionTierUpdateRequest,
    PointsAdjustRequest,
    PointsAdjustResponse,
    RedemptionStatusEventResponse,
    RedemptionStatusHistoryResponse,
    RedemptionStatusUpdateRequest,
    RedemptionStatusUpdateResponse,
    ReferralRecordRequest,
    ReferralRecordResponse,
    StoreItemCreateRequest,
    StoreItemUpdateRequest,
)
from .payouts_models import (
    PayoutRequestListResponse,
    PayoutRequestResponse,
    PayoutStatusUpdateRequest,
    PayoutStatusUpdateResponse,
)
from .rewards_models import DailyRewardStatusResponse

router = APIRouter(prefix="/internal/admin", tags=["internal", "admin"])
logger = structlog.get_logger(__name__)


def _tier_as_response(tier: CommissionTier) -> CommissionTierResponse:
    return CommissionTierResponse(
        id=tier.id,
        name=tier.name,
        min_referrals=tier.min_referrals,
        global_rate=tier.global_rate,
        country_rates={key: Decimal(str(rate)) for key, rate in (tier.country_rates or {}).items()},
        is_active=tier.is_active,
        updated_at=tier.updated_at,
    )


def _item_as_response(item: RewardStoreItem) -> AdminStoreItemResponse:
    return AdminStoreItemResponse(
        id=item.id,
        name=item.name,
        description=item.description,
        item_type=item.item_type,
        points_cost=item.points_cost,
        currency=item.currency,
        stock_quantity=item.stock_quantity,
        is_active=item.is_active,
        updated_at=item.updated_at,
    )


@router.get("/commission-tiers", response_model=CommissionTierListResponse)
async def list_commission_tiers(
    request: Request,
    include_inactive: bool = Query(default=True),
) -> CommissionTierListResponse:
    _assert_internal_access(request)
    try:
        async with atomic() as session:
            tiers = await CommissionService.list_tiers(session, include_inactive=include_inactive)
            response = CommissionTierListResponse(tiers=[_tier_as_response(tier) for tier in tiers])
    except StoreUnavailableError as exc:
        raise to_http_exception(exc) from exc
    return response


@router.post(
    "/commission-tiers",
    response_model=CommissionTierResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_commission_tier(payload: CommissionTierCreateRequest, request: Request) -> CommissionTierResponse:
    _assert_internal_access(request)
    actor_user_id = actor_id_from_request(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            tier = await CommissionService.create_tier(
                session,
                actor_user_id=actor_user_id,
                name=payload.name,
                min_referrals=payload.min_referrals,
                global_rate=payload.global_rate,
                country_rates=payload.country_rates,
                is_active=payload.is_active,
                now_utc=now_utc,
            )
            response = _tier_as_response(tier)
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return response


@router.patch("/commission-tiers/{tier_id}", response_model=CommissionTierResponse)
async def update_commission_tier(
    tier_id: UUID,
    payload: CommissionTierUpdateRequest,
    request: Request,
) -> CommissionTierResponse:
    _assert_internal_access(request)
    actor_user_id = actor_id_from_request(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            tier = await CommissionService.update_tier(
                session,
                actor_user_id=actor_user_id,
                tier_id=tier_id,
                changes=payload.model_dump(exclude_none=True),
                now_utc=now_utc,
            )
            response = _tier_as_response(tier)
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return response


@router.delete("/commission-tiers/{tier_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_commission_tier(tier_id: UUID, request: Request) -> Response:
    _assert_internal_access(request)
    actor_user_id = actor_id_from_request(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            await CommissionService.delete_tier(
                session,
                actor_user_id=actor_user_id,
                tier_id=tier_id,
                now_utc=now_utc,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/store/items",
    response_model=AdminStoreItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_store_item(payload: StoreItemCreateRequest, request: Request) -> AdminStoreItemResponse:
    _assert_internal_access(request)
    actor_user_id = actor_id_from_request(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            item = await RedemptionStoreService.create_item(
                session,
                actor_user_id=actor_user_id,
                values=payload.model_dump(exclude_none=True),
                now_utc=now_utc,
            )
            response = _item_as_response(item)
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return response


@router.patch("/store/items/{item_id}", response_model=AdminStoreItemResponse)
async def update_store_item(
    item_id: UUID,
    payload: StoreItemUpdateRequest,
    request: Request,
) -> AdminStoreItemResponse:
    _assert_internal_access(request)
    actor_user_id = actor_id_from_request(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            item = await RedemptionStoreService.update_item(
                session,
                actor_user_id=actor_user_id,
                item_id=item_id,
                # An explicit null stock means unlimited.
                changes=payload.model_dump(exclude_unset=True),
                now_utc=now_utc,
            )
            response = _item_as_response(item)
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return response


@router.post("/redemptions/{redemption_id}/status", response_model=RedemptionStatusUpdateResponse)
async def update_redemption_status(
    redemption_id: UUID,
    payload: RedemptionStatusUpdateRequest,
    request: Request,
) -> RedemptionStatusUpdateResponse:
    _assert_internal_access(request)
    actor_user_id = actor_id_from_request(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            result = await RedemptionStoreService.update_redemption_status(
                session,
                actor_user_id=actor_user_id,
                redemption_id=redemption_id,
                status=payload.status,
                details=payload.details,
                now_utc=now_utc,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return RedemptionStatusUpdateResponse(
        redemption_id=result.redemption_id,
        from_status=result.from_status,
        to_status=result.to_status,
        refunded_points=result.refunded_points,
        restored_stock=result.restored_stock,
    )


@router.get("/redemptions/{redemption_id}/history", response_model=RedemptionStatusHistoryResponse)
async def get_redemption_status_history(redemption_id: UUID, request: Request) -> RedemptionStatusHistoryResponse:
    _assert_internal_access(request)
    actor_user_id = actor_id_from_request(request)
    try:
        async with atomic() as session:
            history = await RedemptionStoreService.list_status_history(
                session,
                actor_user_id=actor_user_id,
                redemption_id=redemption_id,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return RedemptionStatusHistoryResponse(
        redemption_id=redemption_id,
        events=[
            RedemptionStatusEventResponse(
                from_status=event.from_status,
                to_status=event.to_status,
                actor_user_id=event.actor_user_id,
                details=event.details,
                created_at=event.created_at,
            )
            for event in history
        ],
    )


@router.post("/ambassadors", response_model=AmbassadorEnrollResponse)
async def enroll_ambassador(payload: AmbassadorEnrollRequest, request: Request) -> AmbassadorEnrollResponse:
    _assert_internal_access(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            result = await CommissionService.enroll_ambassador(
                session,
                user_id=payload.user_id,
                country=payload.country,
                now_utc=now_utc,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return AmbassadorEnrollResponse(
        user_id=result.user_id,
        country=result.country,
        commission_rate=result.commission_rate,
        tier_name=result.tier_name,
        reactivated=result.reactivated,
        already_enrolled=result.already_enrolled,
    )


@router.post("/ambassadors/{ambassador_user_id}/referrals", response_model=ReferralRecordResponse)
async def record_referral(
    ambassador_user_id: UUID,
    payload: ReferralRecordRequest,
    request: Request,
) -> ReferralRecordResponse:
    _assert_internal_access(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            result = await CommissionService.record_referral(
                session,
                ambassador_user_id=ambassador_user_id,
                referred_user_id=payload.referred_user_id,
                now_utc=now_utc,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return ReferralRecordResponse(
        ambassador_user_id=result.ambassador_user_id,
        referred_user_id=result.referred_user_id,
        total_referrals=result.total_referrals,
        commission_rate=result.commission_rate,
        idempotent_replay=result.idempotent_replay,
    )


@router.post("/ambassadors/{ambassador_user_id}/commissions", response_model=CommissionProcessResponse)
async def process_referral_commission(
    ambassador_user_id: UUID,
    payload: CommissionProcessRequest,
    request: Request,
) -> CommissionProcessResponse:
    _assert_internal_access(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            result = await CommissionService.process_referral_commission(
                session,
                ambassador_user_id=ambassador_user_id,
                referred_user_id=payload.referred_user_id,
                revenue_amount=payload.revenue_amount,
                idempotency_key=payload.idempotency_key,
                country=payload.country,
                now_utc=now_utc,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return CommissionProcessResponse(
        ambassador_user_id=result.ambassador_user_id,
        referred_user_id=result.referred_user_id,
        country=result.country,
        revenue_amount=result.revenue_amount,
        commission_rate=result.commission_rate,
        commission_amount=result.commission_amount,
        total_earnings=result.total_earnings,
        idempotent_replay=result.idempotent_replay,
        processed_at=result.processed_at,
    )


@router.post("/ambassadors/{ambassador_user_id}/deactivate", response_model=AmbassadorStateResponse)
async def deactivate_ambassador(ambassador_user_id: UUID, request: Request) -> AmbassadorStateResponse:
    _assert_internal_access(request)
    actor_user_id = actor_id_from_request(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            ambassador = await CommissionService.deactivate_ambassador(
                session,
                actor_user_id=actor_user_id,
                user_id=ambassador_user_id,
                now_utc=now_utc,
            )
            response = AmbassadorStateResponse(
                user_id=ambassador.user_id,
                country=ambassador.country,
                is_active=ambassador.is_active,
                total_referrals=ambassador.total_referrals,
                total_earnings=ambassador.total_earnings,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return response


@router.post("/daily-rewards/{user_id}/reset", response_model=DailyRewardStatusResponse)
async def reset_daily_rewards(user_id: UUID, request: Request) -> DailyRewardStatusResponse:
    _assert_internal_access(request)
    actor_user_id = actor_id_from_request(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            result = await RewardCycleService.reset_daily_rewards(
                session,
                actor_user_id=actor_user_id,
                user_id=user_id,
                now_utc=now_utc,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    logger.info("daily_rewards_reset_via_admin", actor_user_id=str(actor_user_id), user_id=str(user_id))
    return DailyRewardStatusResponse(
        user_id=result.user_id,
        can_spin=result.can_spin,
        can_play_trivia=result.can_play_trivia,
        can_watch_ad=result.can_watch_ad,
        trivia_streak=result.trivia_streak,
        spin_streak=result.spin_streak,
        total_spins=result.total_spins,
        total_trivia_completed=result.total_trivia_completed,
        total_ads_watched=result.total_ads_watched,
        last_spin_date=result.last_spin_date,
        last_trivia_date=result.last_trivia_date,
        last_watch_date=result.last_watch_date,
        next_reset_at=result.next_reset_at,
    )


@router.post("/points/{user_id}/adjust", response_model=PointsAdjustResponse)
async def adjust_points(user_id: UUID, payload: PointsAdjustRequest, request: Request) -> PointsAdjustResponse:
    _assert_internal_access(request)
    actor_user_id = actor_id_from_request(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            result = await PointsLedgerService.adjust_points(
                session,
                actor_user_id=actor_user_id,
                user_id=user_id,
                delta=payload.delta,
                reason=payload.reason,
                now_utc=now_utc,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return PointsAdjustResponse(
        user_id=result.user_id,
        delta=result.delta,
        new_balance=result.new_balance,
        reason=result.reason,
    )


@router.get("/payouts", response_model=PayoutRequestListResponse)
async def list_payout_requests(
    request: Request,
    payout_status: str | None = Query(default=None, alias="status", min_length=1, max_length=16),
    user_id: UUID | None = Query(default=None),
    limit: int = Query(default=10, ge=1, le=PAYOUT_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
) -> PayoutRequestListResponse:
    _assert_internal_access(request)
    actor_user_id = actor_id_from_request(request)
    try:
        async with atomic() as session:
            requests, total = await PayoutService.list_payout_requests(
                session,
                actor_user_id=actor_user_id,
                user_id=user_id,
                status=payout_status,
                limit=limit,
                offset=offset,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return PayoutRequestListResponse(
        requests=[PayoutRequestResponse(**asdict(payout_request)) for payout_request in requests],
        total_count=total,
    )


@router.post("/payouts/{request_id}/status", response_model=PayoutStatusUpdateResponse)
async def update_payout_request_status(
    request_id: UUID,
    payload: PayoutStatusUpdateRequest,
    request: Request,
) -> PayoutStatusUpdateResponse:
    _assert_internal_access(request)
    actor_user_id = actor_id_from_request(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            result = await PayoutService.update_payout_request_status(
                session,
                actor_user_id=actor_user_id,
                request_id=request_id,
                status=payload.status,
                admin_notes=payload.admin_notes,
                transaction_id=payload.transaction_id,
                now_utc=now_utc,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return PayoutStatusUpdateResponse(**asdict(result))
