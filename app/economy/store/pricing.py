from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from app.economy.store.types import ItemSnapshot, PriceQuote


def convert_points_cost(points_cost: int, rate: Decimal) -> int:
    """Converts a cost with half-up rounding; a positive cost never drops below 1."""
    converted = (Decimal(points_cost) * rate).to_integral_value(rounding=ROUND_HALF_UP)
    return max(1, int(converted))


def quote_item(item: ItemSnapshot, *, display_currency: str, rate: Decimal | None) -> PriceQuote:
    if display_currency == item.currency:
        return PriceQuote(
            points_cost=item.points_cost,
            currency=item.currency,
            original_points_cost=item.points_cost,
            original_currency=item.currency,
            converted=False,
        )
    if rate is None or rate <= 0:
        # No usable rate: charge the catalogue price in the item's own currency.
        return PriceQuote(
            points_cost=item.points_cost,
            currency=item.currency,
            original_points_cost=item.points_cost,
            original_currency=item.currency,
            converted=False,
        )
    return PriceQuote(
        points_cost=convert_points_cost(item.points_cost, rate),
        currency=display_currency,
        original_points_cost=item.points_cost,
        original_currency=item.currency,
        converted=True,
    )
