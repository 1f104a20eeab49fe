from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class CommissionTierCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=64)
    min_referrals: int = Field(ge=0)
    global_rate: Decimal = Field(ge=0, le=100)
    country_rates: dict[str, Decimal] = Field(default_factory=dict)
    is_active: bool = True


class CommissionTierUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=64)
    min_referrals: int | None = Field(default=None, ge=0)
    global_rate: Decimal | None = Field(default=None, ge=0, le=100)
    country_rates: dict[str, Decimal] | None = None
    is_active: bool | None = None


class CommissionTierResponse(BaseModel):
    id: UUID
    name: str
    min_referrals: int
    global_rate: Decimal
    country_rates: dict[str, Decimal]
    is_active: bool
    updated_at: datetime


class CommissionTierListResponse(BaseModel):
    tiers: list[CommissionTierResponse]


class StoreItemCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    description: str | None = Field(default=None, max_length=2000)
    item_type: str = Field(min_length=1, max_length=32)
    points_cost: int = Field(gt=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    stock_quantity: int | None = Field(default=None, ge=0)
    is_active: bool = True


class StoreItemUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=128)
    description: str | None = Field(default=None, max_length=2000)
    item_type: str | None = Field(default=None, min_length=1, max_length=32)
    points_cost: int | None = Field(default=None, gt=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    stock_quantity: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class AdminStoreItemResponse(BaseModel):
    id: UUID
    name: str
    description: str | None = None
    item_type: str
    points_cost: int
    currency: str
    stock_quantity: int | None = None
    is_active: bool
    updated_at: datetime


class RedemptionStatusUpdateRequest(BaseModel):
    status: str = Field(min_length=1, max_length=32)
    details: dict[str, object] | None = None


class RedemptionStatusUpdateResponse(BaseModel):
    redemption_id: UUID
    from_status: str
    to_status: str
    refunded_points: int = Field(ge=0)
    restored_stock: bool


class RedemptionStatusEventResponse(BaseModel):
    from_status: str | None
    to_status: str
    actor_user_id: UUID | None
    details: dict[str, object]
    created_at: datetime


class RedemptionStatusHistoryResponse(BaseModel):
    redemption_id: UUID
    events: list[RedemptionStatusEventResponse]


class AmbassadorEnrollRequest(BaseModel):
    user_id: UUID
    country: str = Field(min_length=2, max_length=2)


class AmbassadorEnrollResponse(BaseModel):
    user_id: UUID
    country: str
    commission_rate: Decimal
    tier_name: str | None = None
    reactivated: bool
    already_enrolled: bool


class ReferralRecordRequest(BaseModel):
    referred_user_id: UUID


class ReferralRecordResponse(BaseModel):
    ambassador_user_id: UUID
    referred_user_id: UUID
    total_referrals: int = Field(ge=0)
    commission_rate: Decimal
    idempotent_replay: bool


class CommissionProcessRequest(BaseModel):
    referred_user_id: UUID
    revenue_amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    idempotency_key: str = Field(min_length=1, max_length=96)
    country: str | None = Field(default=None, min_length=2, max_length=2)


class CommissionProcessResponse(BaseModel):
    ambassador_user_id: UUID
    referred_user_id: UUID
    country: str | None = None
    revenue_amount: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    total_earnings: Decimal
    idempotent_replay: bool
    processed_at: datetime


class AmbassadorStateResponse(BaseModel):
    user_id: UUID
    country: str
    is_active: bool
    total_referrals: int
    total_earnings: Decimal


class PointsAdjustRequest(BaseModel):
    delta: int
    reason: str = Field(min_length=1, max_length=256)


class PointsAdjustResponse(BaseModel):
    user_id: UUID
    delta: int
    new_balance: int = Field(ge=0)
    reason: str
