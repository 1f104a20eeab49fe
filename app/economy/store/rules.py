from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from app.economy.countries import normalize_currency_code
from app.economy.errors import (
    InsufficientPointsError,
    ItemInactiveError,
    OutOfStockError,
    StalePriceError,
    ValidationError,
)
from app.economy.store.constants import (
    ALLOWED_STATUS_TRANSITIONS,
    ITEM_TYPES,
    MAX_IDEMPOTENCY_KEY_LENGTH,
    REDEMPTION_STATUSES,
)
from app.economy.store.types import ItemSnapshot, PriceQuote


def item_snapshot(item: Any) -> ItemSnapshot:
    return ItemSnapshot(
        id=item.id,
        name=item.name,
        item_type=item.item_type,
        points_cost=int(item.points_cost),
        currency=item.currency,
        stock_quantity=item.stock_quantity,
        is_active=bool(item.is_active),
    )


def is_in_stock(item: ItemSnapshot) -> bool:
    return item.stock_quantity is None or item.stock_quantity > 0


def ensure_redeemable(item: ItemSnapshot) -> None:
    if not item.is_active:
        raise ItemInactiveError(item_id=str(item.id))
    if not is_in_stock(item):
        raise OutOfStockError(item_id=str(item.id))


def ensure_price_matches(quote: PriceQuote, expected_points_cost: int) -> None:
    if quote.points_cost != expected_points_cost:
        raise StalePriceError(
            current_points_cost=quote.points_cost,
            currency=quote.currency,
            expected_points_cost=expected_points_cost,
        )


def ensure_affordable(balance: int, quote: PriceQuote) -> None:
    if balance < quote.points_cost:
        raise InsufficientPointsError(balance=balance, required=quote.points_cost)


def validate_idempotency_key(idempotency_key: str) -> str:
    key = (idempotency_key or "").strip()
    if not key or len(key) > MAX_IDEMPOTENCY_KEY_LENGTH:
        raise ValidationError("A request key of 1 to 96 characters is required.")
    return key


def ensure_status_transition(from_status: str, to_status: str) -> None:
    if to_status not in REDEMPTION_STATUSES:
        raise ValidationError("Unknown redemption status.", status=to_status)
    if to_status not in ALLOWED_STATUS_TRANSITIONS.get(from_status, frozenset()):
        raise ValidationError(
            "This redemption cannot move to the requested status.",
            from_status=from_status,
            to_status=to_status,
        )


NON_NULLABLE_ITEM_FIELDS = ("name", "item_type", "points_cost", "currency", "is_active")


def validate_item_values(values: Mapping[str, Any], *, partial: bool = False) -> dict[str, Any]:
    """Checks item fields for create (all required) or update (``partial``)."""
    clean: dict[str, Any] = {}
    required = ("name", "item_type", "points_cost")
    if not partial:
        missing = [key for key in required if values.get(key) is None]
        if missing:
            raise ValidationError("Item fields are missing.", missing=missing)
    null_fields = [key for key in NON_NULLABLE_ITEM_FIELDS if key in values and values[key] is None]
    if null_fields:
        raise ValidationError("Item fields cannot be null.", fields=null_fields)

    if "name" in values:
        name = (values["name"] or "").strip()
        if not name:
            raise ValidationError("Item name is required.")
        clean["name"] = name
    if "description" in values:
        clean["description"] = values["description"]
    if "item_type" in values:
        if values["item_type"] not in ITEM_TYPES:
            raise ValidationError("Unknown item type.", item_type=values["item_type"])
        clean["item_type"] = values["item_type"]
    if "points_cost" in values:
        points_cost = values["points_cost"]
        if isinstance(points_cost, bool) or not isinstance(points_cost, int) or points_cost <= 0:
            raise ValidationError("Points cost must be a positive whole number.")
        clean["points_cost"] = points_cost
    if "currency" in values:
        currency = normalize_currency_code(values["currency"])
        if currency is None:
            raise ValidationError("Currency is required.")
        clean["currency"] = currency
    if "stock_quantity" in values:
        stock = values["stock_quantity"]
        if stock is not None and (isinstance(stock, bool) or not isinstance(stock, int) or stock < 0):
            raise ValidationError("Stock must be empty (unlimited) or a non-negative number.")
        clean["stock_quantity"] = stock
    if "is_active" in values:
        if not isinstance(values["is_active"], bool):
            raise ValidationError("Active flag must be true or false.")
        clean["is_active"] = values["is_active"]
    return clean
