from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class ItemSnapshot:
    id: UUID
    name: str
    item_type: str
    points_cost: int
    currency: str
    stock_quantity: int | None
    is_active: bool


@dataclass(frozen=True, slots=True)
class PriceQuote:
    points_cost: int
    currency: str
    original_points_cost: int
    original_currency: str
    converted: bool


@dataclass(slots=True)
class StoreItemView:
    id: UUID
    name: str
    description: str | None
    item_type: str
    points_cost: int
    currency: str
    original_points_cost: int
    original_currency: str
    stock_quantity: int | None
    in_stock: bool


@dataclass(slots=True)
class RedemptionResult:
    redemption_id: UUID
    item_id: UUID
    item_name: str
    points_cost: int
    currency: str
    original_points_cost: int
    original_currency: str
    status: str
    new_points_balance: int
    remaining_stock: int | None
    message: str
    idempotent_replay: bool
    redeemed_at: datetime


@dataclass(slots=True)
class RedemptionView:
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


@dataclass(slots=True)
class StatusChangeResult:
    redemption_id: UUID
    from_status: str
    to_status: str
    refunded_points: int
    restored_stock: bool


@dataclass(slots=True)
class StatusEventView:
    from_status: str | None
    to_status: str
    actor_user_id: UUID | None
    details: dict[str, object]
    created_at: datetime
