from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from app.db.repo.daily_rewards_repo import DailyRewardsRepo
from app.db.repo.points_ledger_repo import PointsLedgerRepo
from app.db.repo.profiles_repo import ProfilesRepo
from app.economy.errors import AccountSuspendedError, AlreadyClaimedError, NotFoundError
from app.economy.rewards.config import RewardConfig
from app.economy.rewards.service import RewardCycleService
from app.economy.spin.service import SpinService
from app.economy.spin.types import SpinOutcome, SpinPrize
from tests.economy.service_fakes import DummySession, LedgerSpy, make_profile, make_reward_state

NOW_UTC = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
WIN_TABLE = (SpinPrize(points=50, weight=1, message="You won 50 points!"),)
LOSE_TABLE = (SpinPrize(points=0, weight=1, message="Try Again Tomorrow!", outcome=SpinOutcome.TRY_AGAIN),)


class FixedRoll:
    def randrange(self, stop: int) -> int:
        del stop
        return 0


def _install(monkeypatch, *, profile, state) -> tuple[LedgerSpy, list[dict[str, object]]]:
    claims: list[dict[str, object]] = []
    ledger = LedgerSpy()

    async def _fake_get_profile(session, user_id):
        del session
        return profile if profile is not None and profile.id == user_id else None

    async def _fake_get_state(session, *, user_id, now_utc):
        del session, user_id, now_utc
        return state

    async def _fake_create_claim(session, **kwargs):
        del session
        claims.append(kwargs)
        return SimpleNamespace(id=uuid4(), **kwargs)

    monkeypatch.setattr(ProfilesRepo, "get_by_id_for_update", _fake_get_profile)
    monkeypatch.setattr(DailyRewardsRepo, "get_or_create_for_update", _fake_get_state)
    monkeypatch.setattr(DailyRewardsRepo, "create_claim", _fake_create_claim)
    monkeypatch.setattr(PointsLedgerRepo, "create", ledger.create)
    return ledger, claims


@pytest.mark.asyncio
async def test_spin_win_credits_points_with_streak_bonus(monkeypatch) -> None:
    profile = make_profile(points=100)
    state = make_reward_state(profile.id)
    ledger, claims = _install(monkeypatch, profile=profile, state=state)
    session = DummySession()

    result = await SpinService.spin(
        session,
        user_id=profile.id,
        now_utc=NOW_UTC,
        config=RewardConfig(spin_prizes=WIN_TABLE),
        rng=FixedRoll(),
    )

    assert result.success is True
    assert result.outcome == SpinOutcome.POINTS
    assert result.base_points == 50
    assert result.bonus_points == 5
    assert result.prize_points == 55
    assert result.spin_streak == 1
    assert result.streak_multiplier == Decimal("1.1")
    assert result.new_points_balance == 155
    assert profile.points == 155
    assert [claim["action"] for claim in claims] == ["SPIN"]
    assert claims[0]["points_awarded"] == 55
    assert len(ledger.entries) == 1
    entry = ledger.entries[0]
    assert entry.entry_type == "SPIN"
    assert entry.direction == "CREDIT"
    assert entry.amount == 55
    assert entry.balance_after == 155
    assert entry.idempotency_key.startswith("spin:")
    assert state.last_spin_date == date(2026, 3, 10)
    assert state.total_spins == 1
    assert state.version == 1


@pytest.mark.asyncio
async def test_spin_streak_continues_from_yesterday(monkeypatch) -> None:
    profile = make_profile(points=0)
    state = make_reward_state(profile.id, last_spin_date=date(2026, 3, 9), spin_streak=2, total_spins=2)
    _install(monkeypatch, profile=profile, state=state)

    result = await SpinService.spin(
        DummySession(),
        user_id=profile.id,
        now_utc=NOW_UTC,
        config=RewardConfig(spin_prizes=WIN_TABLE),
        rng=FixedRoll(),
    )

    assert result.spin_streak == 3
    assert result.streak_multiplier == Decimal("1.3")
    assert result.bonus_points == 15
    assert result.prize_points == 65
    assert "streak bonus" in result.message
    assert state.total_spins == 3


@pytest.mark.asyncio
async def test_spin_try_again_consumes_spin_without_ledger_row(monkeypatch) -> None:
    profile = make_profile(points=40)
    state = make_reward_state(profile.id, last_spin_date=date(2026, 3, 9), spin_streak=4)
    ledger, claims = _install(monkeypatch, profile=profile, state=state)

    result = await SpinService.spin(
        DummySession(),
        user_id=profile.id,
        now_utc=NOW_UTC,
        config=RewardConfig(spin_prizes=LOSE_TABLE),
        rng=FixedRoll(),
    )

    assert result.success is False
    assert result.outcome == SpinOutcome.TRY_AGAIN
    assert result.prize_points == 0
    assert result.spin_streak == 0
    assert result.new_points_balance == 40
    assert ledger.entries == []
    assert claims[0]["points_awarded"] == 0
    assert state.last_spin_date == date(2026, 3, 10)


@pytest.mark.asyncio
async def test_spin_twice_same_day_is_rejected(monkeypatch) -> None:
    profile = make_profile(points=10)
    state = make_reward_state(profile.id, last_spin_date=date(2026, 3, 10))
    ledger, claims = _install(monkeypatch, profile=profile, state=state)

    with pytest.raises(AlreadyClaimedError):
        await SpinService.spin(
            DummySession(),
            user_id=profile.id,
            now_utc=NOW_UTC,
            config=RewardConfig(spin_prizes=WIN_TABLE),
            rng=FixedRoll(),
        )

    assert ledger.entries == []
    assert claims == []
    assert profile.points == 10


@pytest.mark.asyncio
async def test_spin_claim_conflict_maps_to_already_claimed(monkeypatch) -> None:
    profile = make_profile(points=10)
    state = make_reward_state(profile.id)
    ledger, _ = _install(monkeypatch, profile=profile, state=state)

    async def _fake_create_claim(session, **kwargs):
        del session, kwargs
        raise IntegrityError("INSERT", {}, Exception("duplicate key"))

    monkeypatch.setattr(DailyRewardsRepo, "create_claim", _fake_create_claim)

    with pytest.raises(AlreadyClaimedError):
        await SpinService.spin(
            DummySession(),
            user_id=profile.id,
            now_utc=NOW_UTC,
            config=RewardConfig(spin_prizes=WIN_TABLE),
            rng=FixedRoll(),
        )
    assert ledger.entries == []


@pytest.mark.asyncio
async def test_spin_rejects_unknown_and_suspended_users(monkeypatch) -> None:
    suspended = make_profile(is_suspended=True)
    _install(monkeypatch, profile=suspended, state=make_reward_state(suspended.id))
    config = RewardConfig(spin_prizes=WIN_TABLE)

    with pytest.raises(NotFoundError):
        await SpinService.spin(DummySession(), user_id=uuid4(), now_utc=NOW_UTC, config=config)
    with pytest.raises(AccountSuspendedError):
        await SpinService.spin(DummySession(), user_id=suspended.id, now_utc=NOW_UTC, config=config)


@pytest.mark.asyncio
async def test_watch_ad_credits_configured_points(monkeypatch) -> None:
    profile = make_profile(points=5)
    state = make_reward_state(profile.id, total_ads_watched=3)
    ledger, claims = _install(monkeypatch, profile=profile, state=state)

    result = await RewardCycleService.watch_ad(
        DummySession(),
        user_id=profile.id,
        now_utc=NOW_UTC,
        config=RewardConfig(ad_watch_points=15),
    )

    assert result.points_earned == 15
    assert result.new_points_balance == 20
    assert result.total_ads_watched == 4
    assert claims[0]["action"] == "WATCH_AD"
    assert ledger.entries[0].entry_type == "WATCH_AD"
    assert ledger.entries[0].idempotency_key.startswith("watch_ad:")
    assert state.last_watch_date == date(2026, 3, 10)


@pytest.mark.asyncio
async def test_watch_ad_is_independent_of_spin(monkeypatch) -> None:
    profile = make_profile(points=0)
    state = make_reward_state(profile.id, last_spin_date=date(2026, 3, 10), last_trivia_date=date(2026, 3, 10))
    _install(monkeypatch, profile=profile, state=state)

    result = await RewardCycleService.watch_ad(
        DummySession(),
        user_id=profile.id,
        now_utc=NOW_UTC,
        config=RewardConfig(),
    )

    assert result.points_earned == 15
    assert state.last_spin_date == date(2026, 3, 10)


@pytest.mark.asyncio
async def test_get_status_for_new_user_allows_every_action(monkeypatch) -> None:
    async def _fake_get_by_user_id(session, user_id):
        del session, user_id
        return None

    monkeypatch.setattr(DailyRewardsRepo, "get_by_user_id", _fake_get_by_user_id)
    user_id = uuid4()

    status = await RewardCycleService.get_status(object(), user_id=user_id, now_utc=NOW_UTC)

    assert status.user_id == user_id
    assert (status.can_spin, status.can_play_trivia, status.can_watch_ad) == (True, True, True)
    assert status.next_reset_at == datetime(2026, 3, 11, tzinfo=timezone.utc)
