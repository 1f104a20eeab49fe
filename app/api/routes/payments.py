from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

import httpx
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.core.config import get_settings
from app.economy.errors import RewardEconomyError, StoreUnavailableError
from app.economy.payments.gateways import build_gateway
from app.economy.payments.service import PaymentService
from app.economy.payments.types import PaymentGatewayName

from .deps import current_user_id
from .http_errors import to_http_exception

router = APIRouter(prefix="/payments", tags=["payments"])


class PaymentInitiateRequest(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    currency: str = Field(min_length=3, max_length=3)
    gateway: PaymentGatewayName
    purpose: str = Field(default="points_purchase", min_length=1, max_length=64)
    callback_url: str | None = Field(default=None, max_length=512)


class PaymentInitiateResponse(BaseModel):
    transaction_id: UUID
    gateway: str
    status: str
    amount: Decimal
    currency: str
    redirect_url: str
    reference: str


@router.post("/initiate", response_model=PaymentInitiateResponse)
async def initiate_payment(
    payload: PaymentInitiateRequest,
    user_id: UUID = Depends(current_user_id),
) -> PaymentInitiateResponse:
    settings = get_settings()
    now_utc = datetime.now(timezone.utc)
    try:
        async with httpx.AsyncClient(timeout=settings.payment_gateway_timeout_sec) as client:
            gateway = build_gateway(payload.gateway.value, settings=settings, client=client)
            result = await PaymentService.initiate_payment(
                user_id=user_id,
                amount=payload.amount,
                currency=payload.currency,
                purpose=payload.purpose,
                gateway=gateway,
                callback_url=payload.callback_url or settings.payment_callback_url,
                now_utc=now_utc,
            )
    except (RewardEconomyError, StoreUnavailableError) as exc:
        raise to_http_exception(exc) from exc
    return PaymentInitiateResponse(
        transaction_id=result.transaction_id,
        gateway=result.gateway,
        status=result.status,
        amount=result.amount,
        currency=result.currency,
        redirect_url=result.redirect_url,
        reference=result.reference,
    )
