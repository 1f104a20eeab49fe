from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from app.economy.errors import (
    InsufficientPointsError,
    ItemInactiveError,
    OutOfStockError,
    StalePriceError,
    ValidationError,
)
from app.economy.store.pricing import convert_points_cost, quote_item
from app.economy.store.rules import (
    ensure_affordable,
    ensure_price_matches,
    ensure_redeemable,
    ensure_status_transition,
    validate_idempotency_key,
    validate_item_values,
)
from app.economy.store.types import ItemSnapshot


def item(**overrides: object) -> ItemSnapshot:
    values: dict[str, object] = {
        "id": uuid4(),
        "name": "Amazon Gift Card",
        "item_type": "gift_card",
        "points_cost": 5000,
        "currency": "USD",
        "stock_quantity": None,
        "is_active": True,
    }
    values.update(overrides)
    return ItemSnapshot(**values)


def test_balance_one_short_is_insufficient() -> None:
    quote = quote_item(item(), display_currency="USD", rate=None)
    with pytest.raises(InsufficientPointsError) as exc_info:
        ensure_affordable(4999, quote)
    assert exc_info.value.context == {"balance": 4999, "required": 5000}


def test_exact_balance_is_affordable() -> None:
    quote = quote_item(item(), display_currency="USD", rate=None)
    ensure_affordable(5000, quote)
    assert 5000 - quote.points_cost == 0


def test_inactive_item_is_rejected_before_stock() -> None:
    with pytest.raises(ItemInactiveError):
        ensure_redeemable(item(is_active=False, stock_quantity=0))


def test_zero_stock_is_out_of_stock_and_null_stock_is_unlimited() -> None:
    with pytest.raises(OutOfStockError):
        ensure_redeemable(item(stock_quantity=0))
    ensure_redeemable(item(stock_quantity=None))
    ensure_redeemable(item(stock_quantity=1))


def test_stale_price_reports_current_cost() -> None:
    quote = quote_item(item(), display_currency="USD", rate=None)
    with pytest.raises(StalePriceError) as exc_info:
        ensure_price_matches(quote, 4500)
    assert isinstance(exc_info.value, ValidationError)
    assert exc_info.value.context["current_points_cost"] == 5000


def test_quote_converts_original_cost_server_side() -> None:
    quote = quote_item(item(points_cost=1000, currency="USD"), display_currency="NGN", rate=Decimal("1.5"))
    assert quote.points_cost == 1500
    assert quote.currency == "NGN"
    assert quote.original_points_cost == 1000
    assert quote.original_currency == "USD"
    assert quote.converted is True


def test_quote_without_rate_charges_original_cost() -> None:
    quote = quote_item(item(points_cost=1000, currency="EUR"), display_currency="NGN", rate=None)
    assert quote.points_cost == 1000
    assert quote.currency == "EUR"
    assert quote.converted is False


def test_conversion_rounds_half_up_with_minimum_of_one() -> None:
    assert convert_points_cost(5, Decimal("0.5")) == 3
    assert convert_points_cost(1, Decimal("0.01")) == 1
    assert convert_points_cost(999, Decimal("1.0005")) == 999


def test_idempotency_key_is_trimmed_and_bounded() -> None:
    assert validate_idempotency_key("  abc ") == "abc"
    with pytest.raises(ValidationError):
        validate_idempotency_key("   ")
    with pytest.raises(ValidationError):
        validate_idempotency_key("k" * 97)


def test_only_pending_redemptions_change_status() -> None:
    ensure_status_transition("pending_fulfillment", "fulfilled")
    ensure_status_transition("pending_fulfillment", "cancelled")
    with pytest.raises(ValidationError):
        ensure_status_transition("fulfilled", "cancelled")
    with pytest.raises(ValidationError):
        ensure_status_transition("pending_fulfillment", "shipped")


def test_validate_item_values_requires_core_fields_on_create() -> None:
    with pytest.raises(ValidationError):
        validate_item_values({"name": "Card"})

    clean = validate_item_values(
        {"name": " Card ", "item_type": "gift_card", "points_cost": 100, "currency": "usd", "stock_quantity": None}
    )
    assert clean == {
        "name": "Card",
        "item_type": "gift_card",
        "points_cost": 100,
        "currency": "USD",
        "stock_quantity": None,
    }


@pytest.mark.parametrize(
    "changes",
    [
        {"points_cost": 0},
        {"points_cost": -10},
        {"stock_quantity": -1},
        {"item_type": "voucher"},
        {"name": "  "},
    ],
)
def test_validate_item_values_rejects_bad_updates(changes: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        validate_item_values(changes, partial=True)


@pytest.mark.parametrize("field", ["is_active", "name", "item_type", "points_cost", "currency"])
def test_validate_item_values_rejects_explicit_null_for_required_columns(field: str) -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_item_values({field: None}, partial=True)

    assert exc_info.value.context["fields"] == [field]


def test_validate_item_values_keeps_boolean_active_flag() -> None:
    assert validate_item_values({"is_active": False}, partial=True) == {"is_active": False}

    with pytest.raises(ValidationError):
        validate_item_values({"is_active": "no"}, partial=True)
