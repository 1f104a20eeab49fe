from __future__ import annotations

from dataclasses import asdict
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from app.db.transaction import atomic
from app.economy.ambassadors.service import AmbassadorDashboardService
from app.economy.errors import RewardEconomyError, StoreUnavailableError
from app.economy.payouts.constants import MAX_PAGE_SIZE
from app.economy.payouts.service import PayoutService

from .deps import current_user_id
from .http_errors import to_http_exception
from .payouts_models import (
    PayoutBalanceResponse,
    PayoutRequestCreate,
    PayoutRequestListResponse,
    PayoutRequestResponse,
)

router = APIRouter(prefix="/ambassadors", tags=["ambassadors"])


class CountryMetricResponse(BaseModel):
    metric_date: date
    ad_revenue: Decimal
    user_count: int = Field(ge=0)
    new_users: int = Field(ge=0)


class AmbassadorDashboardResponse(BaseModel):
    user_id: UUID
    country: str
    tier_name: str | None = None
    commission_rate: Decimal
    cached_commission_rate: Decimal
    next_tier_name: str | None = None
    next_tier_min_referrals: int | None = None
    referrals_to_next_tier: int | None = None
    total_referrals: int = Field(ge=0)
    total_earnings: Decimal
    monthly_country_revenue: Decimal
    monthly_earnings: Decimal
    rank: int = Field(ge=1)
    recent_metrics: list[CountryMetricResponse]


@router.get("/me/dashboard", response_model=AmbassadorDashboardResponse)
async def get_my_dashboard(user_id: UUID = Depends(current_user_id)) -> AmbassadorDashboardResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            dashboard = await AmbassadorDashboardService.get_dashboard(session, user_id=user_id, now_utc=now_utc)
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return AmbassadorDashboardResponse(**asdict(dashboard))


@router.get("/me/payouts/balance", response_model=PayoutBalanceResponse)
async def get_my_payable_balance(user_id: UUID = Depends(current_user_id)) -> PayoutBalanceResponse:
    try:
        async with atomic() as session:
            balance = await PayoutService.get_payable_balance(session, user_id=user_id)
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return PayoutBalanceResponse(**asdict(balance))


@router.post("/me/payouts", response_model=PayoutRequestResponse, status_code=status.HTTP_201_CREATED)
async def request_my_payout(
    payload: PayoutRequestCreate,
    user_id: UUID = Depends(current_user_id),
) -> PayoutRequestResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with atomic() as session:
            payout_request = await PayoutService.request_payout(
                session,
                user_id=user_id,
                amount=payload.amount,
                payout_method=payload.payout_method,
                payout_details=payload.payout_details,
                now_utc=now_utc,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return PayoutRequestResponse(**asdict(payout_request))


@router.get("/me/payouts", response_model=PayoutRequestListResponse)
async def list_my_payouts(
    user_id: UUID = Depends(current_user_id),
    payout_status: str | None = Query(default=None, alias="status", min_length=1, max_length=16),
    limit: int = Query(default=10, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
) -> PayoutRequestListResponse:
    try:
        async with atomic() as session:
            requests, total = await PayoutService.get_user_payout_requests(
                session,
                user_id=user_id,
                status=payout_status,
                limit=limit,
                offset=offset,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return PayoutRequestListResponse(
        requests=[PayoutRequestResponse(**asdict(request)) for request in requests],
        total_count=total,
    )
