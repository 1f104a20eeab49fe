from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class StoreItemResponse(BaseModel):
    id: UUID
    name: str
    description: str | None = None
    item_type: str
    points_cost: int = Field(gt=0)
    currency: str
    original_points_cost: int = Field(gt=0)
    original_currency: str
    stock_quantity: int | None = None
    in_stock: bool


class StoreItemListResponse(BaseModel):
    items: list[StoreItemResponse]


class RedeemRequest(BaseModel):
    item_id: UUID
    expected_points_cost: int = Field(gt=0)
    idempotency_key: str = Field(min_length=1, max_length=96)
    display_currency: str | None = Field(default=None, min_length=3, max_length=3)


class RedeemResponse(BaseModel):
    redemption_id: UUID
    item_id: UUID
    item_name: str
    points_cost: int
    currency: str
    original_points_cost: int
    original_currency: str
    status: str
    new_points_balance: int = Field(ge=0)
    remaining_stock: int | None = None
    message: str
    idempotent_replay: bool
    redeemed_at: datetime


class RedemptionResponse(BaseModel):
    id: UUID
    item_id: UUID
    item_name: str
    points_cost: int
    currency: str
    original_points_cost: int
    original_currency: str
    status: str
    fulfillment_details: dict[str, object]
    redeemed_at: datetime
    updated_at: datetime


class RedemptionListResponse(BaseModel):
    redemptions: list[RedemptionResponse]
