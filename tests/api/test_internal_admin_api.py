from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.api.routes import internal_admin
from app.economy.commission.types import CommissionResult, EnrollmentResult
from app.economy.errors import NotEligibleError, UnauthorizedError
from app.economy.points.types import PointsAdjustmentResult
from app.economy.store.types import StatusChangeResult, StatusEventView
from app.main import app
from app.services.internal_auth import InternalAccessPolicy

NOW_UTC = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
ACTOR_ID = uuid4()
ADMIN_HEADERS = {"X-Internal-Token": "internal-secret", "X-Actor-Id": str(ACTOR_ID)}


@asynccontextmanager
async def _fake_atomic(session_factory=None):
    del session_factory
    yield object()


@pytest.fixture(autouse=True)
def _internal_access(monkeypatch) -> None:
    monkeypatch.setattr(
        internal_admin,
        "get_settings",
        lambda: SimpleNamespace(
            internal_api_token="internal-secret",
            internal_api_allowlist="127.0.0.1/32",
            internal_api_trusted_proxies="",
        ),
    )
    monkeypatch.setattr(InternalAccessPolicy, "client_ip", lambda self, request: "127.0.0.1")
    monkeypatch.setattr(internal_admin, "atomic", _fake_atomic)


def _tier(**overrides) -> SimpleNamespace:
    values = {
        "id": uuid4(),
        "name": "Diamond",
        "min_referrals": 500,
        "global_rate": Decimal("30.00"),
        "country_rates": {"NG": "35.00"},
        "is_active": True,
        "updated_at": NOW_UTC,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_create_commission_tier_passes_actor(monkeypatch) -> None:
    captured: dict[str, object] = {}
    tier = _tier()

    async def _fake_create_tier(session, **kwargs):
        del session
        captured.update(kwargs)
        return tier

    monkeypatch.setattr(internal_admin.CommissionService, "create_tier", _fake_create_tier)
    client = TestClient(app)

    response = client.post(
        "/internal/admin/commission-tiers",
        json={"name": "Diamond", "min_referrals": 500, "global_rate": "30", "country_rates": {"NG": "35"}},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 201
    assert captured["actor_user_id"] == ACTOR_ID
    assert captured["min_referrals"] == 500
    body = response.json()
    assert body["id"] == str(tier.id)
    assert Decimal(body["country_rates"]["NG"]) == Decimal("35.00")


def test_non_admin_actor_gets_403(monkeypatch) -> None:
    async def _fake_create_tier(session, **kwargs):
        del session, kwargs
        raise UnauthorizedError("Only administrators can perform this action.", capability="manage_commission_tiers")

    monkeypatch.setattr(internal_admin.CommissionService, "create_tier", _fake_create_tier)
    client = TestClient(app)

    response = client.post(
        "/internal/admin/commission-tiers",
        json={"name": "Diamond", "min_referrals": 500, "global_rate": "30"},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "E_UNAUTHORIZED"


def test_commission_rate_above_100_is_rejected_before_service(monkeypatch) -> None:
    called = False

    async def _fake_create_tier(session, **kwargs):
        nonlocal called
        called = True

    monkeypatch.setattr(internal_admin.CommissionService, "create_tier", _fake_create_tier)
    client = TestClient(app)

    response = client.post(
        "/internal/admin/commission-tiers",
        json={"name": "Too Much", "min_referrals": 1, "global_rate": "150"},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 422
    assert called is False


def test_update_tier_sends_only_provided_fields(monkeypatch) -> None:
    captured: dict[str, object] = {}
    tier = _tier(global_rate=Decimal("32.00"))

    async def _fake_update_tier(session, *, actor_user_id, tier_id, changes, now_utc):
        del session, now_utc
        captured.update(actor_user_id=actor_user_id, tier_id=tier_id, changes=changes)
        return tier

    monkeypatch.setattr(internal_admin.CommissionService, "update_tier", _fake_update_tier)
    client = TestClient(app)

    response = client.patch(
        f"/internal/admin/commission-tiers/{tier.id}",
        json={"global_rate": "32"},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 200
    assert captured["tier_id"] == tier.id
    assert captured["changes"] == {"global_rate": Decimal("32")}


def test_delete_tier_returns_204(monkeypatch) -> None:
    deleted: list[object] = []

    async def _fake_delete_tier(session, *, actor_user_id, tier_id, now_utc):
        del session, actor_user_id, now_utc
        deleted.append(tier_id)

    monkeypatch.setattr(internal_admin.CommissionService, "delete_tier", _fake_delete_tier)
    client = TestClient(app)
    tier_id = uuid4()

    response = client.delete(f"/internal/admin/commission-tiers/{tier_id}", headers=ADMIN_HEADERS)

    assert response.status_code == 204
    assert deleted == [tier_id]


def test_update_store_item_keeps_explicit_null_stock(monkeypatch) -> None:
    captured: dict[str, object] = {}
    item_id = uuid4()

    async def _fake_update_item(session, *, actor_user_id, item_id, changes, now_utc):
        del session, actor_user_id, now_utc
        captured["changes"] = changes
        return SimpleNamespace(
            id=item_id,
            name="$50 Gift Card",
            description=None,
            item_type="gift_card",
            points_cost=5000,
            currency="USD",
            stock_quantity=None,
            is_active=True,
            updated_at=NOW_UTC,
        )

    monkeypatch.setattr(internal_admin.RedemptionStoreService, "update_item", _fake_update_item)
    client = TestClient(app)

    response = client.patch(
        f"/internal/admin/store/items/{item_id}",
        json={"stock_quantity": None},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 200
    assert captured["changes"] == {"stock_quantity": None}
    assert response.json()["stock_quantity"] is None


def test_redemption_status_update(monkeypatch) -> None:
    redemption_id = uuid4()

    async def _fake_update_status(session, *, actor_user_id, redemption_id, status, now_utc, details):
        del session, actor_user_id, now_utc
        assert details == {"note": "supplier out of codes"}
        return StatusChangeResult(
            redemption_id=redemption_id,
            from_status="pending_fulfillment",
            to_status=status,
            refunded_points=5000,
            restored_stock=True,
        )

    monkeypatch.setattr(internal_admin.RedemptionStoreService, "update_redemption_status", _fake_update_status)
    client = TestClient(app)

    response = client.post(
        f"/internal/admin/redemptions/{redemption_id}/status",
        json={"status": "cancelled", "details": {"note": "supplier out of codes"}},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 200
    assert response.json()["refunded_points"] == 5000


def test_enroll_ambassador_without_actor(monkeypatch) -> None:
    user_id = uuid4()

    async def _fake_enroll(session, *, user_id, country, now_utc):
        del session, now_utc
        return EnrollmentResult(
            user_id=user_id,
            country=country.upper(),
            commission_rate=Decimal("5.00"),
            tier_name="Starter",
            reactivated=False,
            already_enrolled=False,
        )

    monkeypatch.setattr(internal_admin.CommissionService, "enroll_ambassador", _fake_enroll)
    client = TestClient(app)

    response = client.post(
        "/internal/admin/ambassadors",
        json={"user_id": str(user_id), "country": "ng"},
        headers={"X-Internal-Token": "internal-secret"},
    )

    assert response.status_code == 200
    assert response.json()["country"] == "NG"
    assert response.json()["tier_name"] == "Starter"


def test_process_commission_for_inactive_ambassador_is_409(monkeypatch) -> None:
    async def _fake_process(session, **kwargs):
        del session
        raise NotEligibleError("This ambassador is not active.", user_id=str(kwargs["ambassador_user_id"]))

    monkeypatch.setattr(internal_admin.CommissionService, "process_referral_commission", _fake_process)
    client = TestClient(app)

    response = client.post(
        f"/internal/admin/ambassadors/{uuid4()}/commissions",
        json={"referred_user_id": str(uuid4()), "revenue_amount": "100.00", "idempotency_key": "commission-1"},
        headers={"X-Internal-Token": "internal-secret"},
    )

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "E_NOT_ELIGIBLE"


def test_process_commission_returns_amount(monkeypatch) -> None:
    ambassador_id = uuid4()
    referred_id = uuid4()

    async def _fake_process(session, **kwargs):
        del session
        assert kwargs["revenue_amount"] == Decimal("1000.00")
        return CommissionResult(
            ambassador_user_id=ambassador_id,
            referred_user_id=referred_id,
            country="NG",
            revenue_amount=Decimal("1000.00"),
            commission_rate=Decimal("12.00"),
            commission_amount=Decimal("120.00"),
            total_earnings=Decimal("120.00"),
            idempotent_replay=False,
            processed_at=NOW_UTC,
        )

    monkeypatch.setattr(internal_admin.CommissionService, "process_referral_commission", _fake_process)
    client = TestClient(app)

    response = client.post(
        f"/internal/admin/ambassadors/{ambassador_id}/commissions",
        json={"referred_user_id": str(referred_id), "revenue_amount": "1000.00", "idempotency_key": "commission-2"},
        headers={"X-Internal-Token": "internal-secret"},
    )

    assert response.status_code == 200
    assert Decimal(response.json()["commission_amount"]) == Decimal("120.00")


def test_adjust_points(monkeypatch) -> None:
    user_id = uuid4()

    async def _fake_adjust(session, *, actor_user_id, user_id, delta, reason, now_utc):
        del session, now_utc
        assert actor_user_id == ACTOR_ID
        return PointsAdjustmentResult(user_id=user_id, delta=delta, new_balance=60, reason=reason)

    monkeypatch.setattr(internal_admin.PointsLedgerService, "adjust_points", _fake_adjust)
    client = TestClient(app)

    response = client.post(
        f"/internal/admin/points/{user_id}/adjust",
        json={"delta": -40, "reason": "duplicate reward"},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 200
    assert response.json() == {"user_id": str(user_id), "delta": -40, "new_balance": 60, "reason": "duplicate reward"}


def test_redemption_status_history(monkeypatch) -> None:
    redemption_id = uuid4()

    async def _fake_history(session, *, actor_user_id, redemption_id):
        del session
        assert actor_user_id == ACTOR_ID
        return [
            StatusEventView(
                from_status=None,
                to_status="pending_fulfillment",
                actor_user_id=None,
                details={},
                created_at=NOW_UTC,
            ),
            StatusEventView(
                from_status="pending_fulfillment",
                to_status="fulfilled",
                actor_user_id=ACTOR_ID,
                details={"code": "GC-1"},
                created_at=NOW_UTC,
            ),
        ]

    monkeypatch.setattr(internal_admin.RedemptionStoreService, "list_status_history", _fake_history)
    client = TestClient(app)

    response = client.get(f"/internal/admin/redemptions/{redemption_id}/history", headers=ADMIN_HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["redemption_id"] == str(redemption_id)
    assert [event["to_status"] for event in body["events"]] == ["pending_fulfillment", "fulfilled"]
    assert body["events"][1]["actor_user_id"] == str(ACTOR_ID)
