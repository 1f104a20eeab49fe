from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class PayoutBalanceResponse(BaseModel):
    user_id: UUID
    total_earnings: Decimal
    total_payouts: Decimal
    reserved_payouts: Decimal
    payable_balance: Decimal


class PayoutRequestCreate(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    payout_method: str = Field(min_length=1, max_length=32)
    payout_details: dict[str, object] | None = None


class PayoutRequestResponse(BaseModel):
    id: UUID
    user_id: UUID
    amount: Decimal
    payout_method: str
    payout_details: dict[str, object]
    status: str
    admin_notes: str | None = None
    transaction_id: str | None = None
    requested_at: datetime
    processed_at: datetime | None = None
    updated_at: datetime


class PayoutRequestListResponse(BaseModel):
    requests: list[PayoutRequestResponse]
    total_count: int = Field(ge=0)


class PayoutStatusUpdateRequest(BaseModel):
    status: str = Field(min_length=1, max_length=16)
    admin_notes: str | None = Field(default=None, max_length=2000)
    transaction_id: str | None = Field(default=None, max_length=128)


class PayoutStatusUpdateResponse(BaseModel):
    request_id: UUID
    user_id: UUID
    from_status: str
    to_status: str
    amount: Decimal
    total_payouts: Decimal | None = None
