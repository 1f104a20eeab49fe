from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from app.economy.commission.constants import (
    DEFAULT_COMMISSION_RATE,
    MAX_COMMISSION_RATE,
    MIN_COMMISSION_RATE,
    MONEY_QUANTUM,
    RATE_QUANTUM,
)
from app.economy.commission.types import TierSnapshot, TierValues
from app.economy.countries import normalize_country_code
from app.economy.errors import ValidationError


def _to_decimal(value: object) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError("Rates must be numeric.", value=str(value)) from exc


def tier_snapshot(tier: Any) -> TierSnapshot:
    """Builds a pure snapshot from a ``CommissionTier`` row (or any lookalike)."""
    raw_country_rates = tier.country_rates or {}
    return TierSnapshot(
        id=getattr(tier, "id", None),
        name=str(tier.name),
        min_referrals=int(tier.min_referrals),
        global_rate=_to_decimal(tier.global_rate),
        country_rates={str(key): _to_decimal(rate) for key, rate in raw_country_rates.items()},
        is_active=bool(getattr(tier, "is_active", True)),
    )


def active_tiers_ascending(tiers: Iterable[TierSnapshot]) -> list[TierSnapshot]:
    return sorted((tier for tier in tiers if tier.is_active), key=lambda tier: tier.min_referrals)


def _effective_referral_count(referral_count: int | None) -> int:
    if referral_count is None or referral_count < 0:
        return 0
    return referral_count


def select_commission_tier(tiers: Iterable[TierSnapshot], referral_count: int | None) -> TierSnapshot | None:
    """Returns the highest active tier whose threshold is met.

    Below every threshold the lowest-threshold tier acts as the floor.
    """
    ordered = active_tiers_ascending(tiers)
    if not ordered:
        return None

    count = _effective_referral_count(referral_count)
    selected = ordered[0]
    for tier in ordered:
        if tier.min_referrals <= count:
            selected = tier
        else:
            break
    return selected


def next_commission_tier(tiers: Iterable[TierSnapshot], referral_count: int | None) -> TierSnapshot | None:
    count = _effective_referral_count(referral_count)
    for tier in active_tiers_ascending(tiers):
        if tier.min_referrals > count:
            return tier
    return None


def rate_for_country(tier: TierSnapshot, country: str | None) -> Decimal:
    if country is not None and country in tier.country_rates:
        return tier.country_rates[country]
    return tier.global_rate


def resolve_commission_rate(
    tiers: Iterable[TierSnapshot],
    referral_count: int | None,
    country: str | None,
    *,
    default_rate: Decimal = DEFAULT_COMMISSION_RATE,
) -> Decimal:
    tier = select_commission_tier(tiers, referral_count)
    if tier is None:
        return default_rate
    return rate_for_country(tier, country)


def compute_commission_amount(revenue: Decimal, rate: Decimal) -> Decimal:
    amount = revenue * rate / Decimal(100)
    return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def _validate_rate(value: object, *, field: str) -> Decimal:
    rate = _to_decimal(value)
    if not rate.is_finite() or rate < MIN_COMMISSION_RATE or rate > MAX_COMMISSION_RATE:
        raise ValidationError("Rates must be between 0 and 100.", field=field, value=str(value))
    return rate.quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)


def validate_tier_values(
    *,
    name: str,
    min_referrals: int,
    global_rate: object,
    country_rates: Mapping[str, object] | None = None,
    is_active: bool = True,
) -> TierValues:
    clean_name = (name or "").strip()
    if not clean_name:
        raise ValidationError("Tier name is required.")
    if min_referrals < 0:
        raise ValidationError("Minimum referrals cannot be negative.", min_referrals=min_referrals)

    clean_country_rates: dict[str, Decimal] = {}
    for raw_country, raw_rate in (country_rates or {}).items():
        country = normalize_country_code(raw_country)
        if country is None:
            raise ValidationError("Country rate keys cannot be blank.")
        if raw_country != country:
            raise ValidationError("Country rate keys must be upper-case ISO codes.", country=raw_country)
        clean_country_rates[country] = _validate_rate(raw_rate, field=f"country_rates.{country}")

    return TierValues(
        name=clean_name,
        min_referrals=min_referrals,
        global_rate=_validate_rate(global_rate, field="global_rate"),
        country_rates=clean_country_rates,
        is_active=is_active,
    )
