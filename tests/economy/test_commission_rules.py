from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.economy.commission.rules import (
    compute_commission_amount,
    next_commission_tier,
    resolve_commission_rate,
    select_commission_tier,
    tier_snapshot,
    validate_tier_values,
)
from app.economy.commission.types import TierSnapshot
from app.economy.errors import ValidationError


def tier(name: str, min_referrals: int, rate: str, country_rates=None, is_active: bool = True) -> TierSnapshot:
    return TierSnapshot(
        name=name,
        min_referrals=min_referrals,
        global_rate=Decimal(rate),
        country_rates={key: Decimal(value) for key, value in (country_rates or {}).items()},
        is_active=is_active,
    )


SCENARIO_TIERS = [
    tier("Starter", 0, "5"),
    tier("Growth", 10, "8", {"NG": "12"}),
]


def test_scenario_fifteen_referrals_in_nigeria_gets_country_override() -> None:
    assert resolve_commission_rate(SCENARIO_TIERS, 15, "NG") == Decimal("12")


def test_scenario_fifteen_referrals_in_us_gets_global_rate() -> None:
    assert resolve_commission_rate(SCENARIO_TIERS, 15, "US") == Decimal("8")


@pytest.mark.parametrize("country", ["NG", "US", None])
def test_scenario_three_referrals_anywhere_gets_floor_rate(country: str | None) -> None:
    assert resolve_commission_rate(SCENARIO_TIERS, 3, country) == Decimal("5")


def test_highest_qualifying_tier_wins_for_every_count() -> None:
    tiers = [tier("Gold", 100, "20"), tier("Bronze", 0, "10"), tier("Silver", 25, "15")]
    expected = {0: "10", 24: "10", 25: "15", 99: "15", 100: "20", 10_000: "20"}
    for count, rate in expected.items():
        assert resolve_commission_rate(tiers, count, None) == Decimal(rate)


def test_lowest_tier_is_floor_when_no_threshold_is_met() -> None:
    tiers = [tier("Entry", 5, "7"), tier("Next", 20, "9")]
    assert select_commission_tier(tiers, 0).name == "Entry"
    assert resolve_commission_rate(tiers, 2, None) == Decimal("7")


@pytest.mark.parametrize("count", [-5, None])
def test_negative_or_missing_count_is_treated_as_zero(count: int | None) -> None:
    assert resolve_commission_rate(SCENARIO_TIERS, count, "NG") == Decimal("5")


def test_inactive_tiers_are_ignored() -> None:
    tiers = [tier("Base", 0, "5"), tier("Retired", 10, "30", is_active=False)]
    assert resolve_commission_rate(tiers, 50, None) == Decimal("5")


def test_empty_tier_set_falls_back_to_default_rate() -> None:
    assert resolve_commission_rate([], 50, "US") == Decimal("10.00")
    assert resolve_commission_rate([], 50, "US", default_rate=Decimal("4")) == Decimal("4")


def test_country_match_is_case_sensitive() -> None:
    assert resolve_commission_rate(SCENARIO_TIERS, 15, "ng") == Decimal("8")


def test_next_tier_reports_the_following_threshold() -> None:
    assert next_commission_tier(SCENARIO_TIERS, 3).name == "Growth"
    assert next_commission_tier(SCENARIO_TIERS, 15) is None


def test_commission_amount_rounds_half_up_to_cents() -> None:
    assert compute_commission_amount(Decimal("100.00"), Decimal("12")) == Decimal("12.00")
    assert compute_commission_amount(Decimal("0.05"), Decimal("10")) == Decimal("0.01")
    assert compute_commission_amount(Decimal("33.33"), Decimal("7.5")) == Decimal("2.50")


def test_tier_snapshot_reads_stored_rates() -> None:
    row = SimpleNamespace(
        id=None,
        name="Gold",
        min_referrals=100,
        global_rate=Decimal("20.00"),
        country_rates={"US": "22.00"},
        is_active=True,
    )
    snapshot = tier_snapshot(row)
    assert snapshot.country_rates == {"US": Decimal("22.00")}
    assert snapshot.global_rate == Decimal("20.00")


def test_validate_tier_values_quantizes_rates() -> None:
    values = validate_tier_values(
        name="  Silver ",
        min_referrals=25,
        global_rate="15.005",
        country_rates={"US": 17},
    )
    assert values.name == "Silver"
    assert values.global_rate == Decimal("15.01")
    assert values.country_rates == {"US": Decimal("17.00")}


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": "", "min_referrals": 0, "global_rate": "5"},
        {"name": "Bad", "min_referrals": -1, "global_rate": "5"},
        {"name": "Bad", "min_referrals": 0, "global_rate": "101"},
        {"name": "Bad", "min_referrals": 0, "global_rate": "-1"},
        {"name": "Bad", "min_referrals": 0, "global_rate": "abc"},
        {"name": "Bad", "min_referrals": 0, "global_rate": "5", "country_rates": {"ng": "5"}},
        {"name": "Bad", "min_referrals": 0, "global_rate": "5", "country_rates": {"NGA": "5"}},
    ],
)
def test_validate_tier_values_rejects_bad_input(kwargs: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        validate_tier_values(**kwargs)
