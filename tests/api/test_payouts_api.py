from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.api.routes import ambassadors, internal_admin
from app.economy.errors import InsufficientBalanceError, UnauthorizedError
from app.economy.payouts.types import PayoutBalance, PayoutRequestView, PayoutStatusChangeResult
from app.main import app
from app.services.internal_auth import InternalAccessPolicy

NOW_UTC = datetime(2026, 3, 10, 9, 30, tzinfo=timezone.utc)
USER_ID = uuid4()
ACTOR_ID = uuid4()
HEADERS = {"X-User-Id": str(USER_ID)}
ADMIN_HEADERS = {"X-Internal-Token": "internal-secret", "X-Actor-Id": str(ACTOR_ID)}


@asynccontextmanager
async def _fake_atomic(session_factory=None):
    del session_factory
    yield object()


@pytest.fixture(autouse=True)
def _no_database(monkeypatch) -> None:
    monkeypatch.setattr(ambassadors, "atomic", _fake_atomic)
    monkeypatch.setattr(internal_admin, "atomic", _fake_atomic)
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


def _view(**overrides) -> PayoutRequestView:
    values = {
        "id": uuid4(),
        "user_id": USER_ID,
        "amount": Decimal("25.50"),
        "payout_method": "paypal",
        "payout_details": {"paypal_email": "amaka@example.com"},
        "status": "pending",
        "admin_notes": None,
        "transaction_id": None,
        "requested_at": NOW_UTC,
        "processed_at": None,
        "updated_at": NOW_UTC,
    }
    values.update(overrides)
    return PayoutRequestView(**values)


def test_payable_balance(monkeypatch) -> None:
    async def _fake_balance(session, *, user_id):
        del session
        return PayoutBalance(
            user_id=user_id,
            total_earnings=Decimal("420.00"),
            total_payouts=Decimal("100.00"),
            reserved_payouts=Decimal("60.00"),
            payable_balance=Decimal("260.00"),
        )

    monkeypatch.setattr(ambassadors.PayoutService, "get_payable_balance", _fake_balance)
    client = TestClient(app)

    response = client.get("/ambassadors/me/payouts/balance", headers=HEADERS)

    assert response.status_code == 200
    assert Decimal(response.json()["payable_balance"]) == Decimal("260.00")


def test_request_payout_returns_201(monkeypatch) -> None:
    captured: dict[str, object] = {}

    async def _fake_request(session, **kwargs):
        del session
        captured.update(kwargs)
        return _view()

    monkeypatch.setattr(ambassadors.PayoutService, "request_payout", _fake_request)
    client = TestClient(app)

    response = client.post(
        "/ambassadors/me/payouts",
        json={"amount": "25.50", "payout_method": "paypal", "payout_details": {"paypal_email": "amaka@example.com"}},
        headers=HEADERS,
    )

    assert response.status_code == 201
    assert response.json()["status"] == "pending"
    assert captured["user_id"] == USER_ID
    assert captured["amount"] == Decimal("25.50")


def test_request_payout_over_balance_is_402(monkeypatch) -> None:
    async def _fake_request(session, **kwargs):
        del session, kwargs
        raise InsufficientBalanceError(
            "Insufficient balance. Your available balance is $10.00",
            requested="25.50",
            available="10.00",
        )

    monkeypatch.setattr(ambassadors.PayoutService, "request_payout", _fake_request)
    client = TestClient(app)

    response = client.post(
        "/ambassadors/me/payouts",
        json={"amount": "25.50", "payout_method": "paypal"},
        headers=HEADERS,
    )

    assert response.status_code == 402
    detail = response.json()["detail"]
    assert detail["code"] == "E_INSUFFICIENT_BALANCE"
    assert detail["context"]["available"] == "10.00"


def test_non_positive_payout_amount_is_rejected_before_service(monkeypatch) -> None:
    async def _fake_request(session, **kwargs):
        del session, kwargs
        raise AssertionError("service must not be called")

    monkeypatch.setattr(ambassadors.PayoutService, "request_payout", _fake_request)
    client = TestClient(app)

    response = client.post("/ambassadors/me/payouts", json={"amount": "0", "payout_method": "paypal"}, headers=HEADERS)

    assert response.status_code == 422


def test_list_my_payouts_passes_status_filter(monkeypatch) -> None:
    captured: dict[str, object] = {}

    async def _fake_list(session, **kwargs):
        del session
        captured.update(kwargs)
        return [_view(status="processed")], 3

    monkeypatch.setattr(ambassadors.PayoutService, "get_user_payout_requests", _fake_list)
    client = TestClient(app)

    response = client.get("/ambassadors/me/payouts?status=processed&limit=1", headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["total_count"] == 3
    assert captured["status"] == "processed"
    assert captured["limit"] == 1


def test_admin_processes_payout(monkeypatch) -> None:
    request_id = uuid4()

    async def _fake_update(session, *, actor_user_id, request_id, status, admin_notes, transaction_id, now_utc):
        del session, now_utc
        assert actor_user_id == ACTOR_ID
        assert transaction_id == "PP-123"
        assert admin_notes is None
        return PayoutStatusChangeResult(
            request_id=request_id,
            user_id=USER_ID,
            from_status="approved",
            to_status=status,
            amount=Decimal("60.00"),
            total_payouts=Decimal("75.00"),
        )

    monkeypatch.setattr(internal_admin.PayoutService, "update_payout_request_status", _fake_update)
    client = TestClient(app)

    response = client.post(
        f"/internal/admin/payouts/{request_id}/status",
        json={"status": "processed", "transaction_id": "PP-123"},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["to_status"] == "processed"
    assert Decimal(body["total_payouts"]) == Decimal("75.00")


def test_non_admin_cannot_list_payouts(monkeypatch) -> None:
    async def _fake_list(session, **kwargs):
        del session, kwargs
        raise UnauthorizedError("Only administrators can perform this action.", capability="manage_payouts")

    monkeypatch.setattr(internal_admin.PayoutService, "list_payout_requests", _fake_list)
    client = TestClient(app)

    response = client.get("/internal/admin/payouts", headers=ADMIN_HEADERS)

    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "E_UNAUTHORIZED"


def test_payout_admin_routes_require_internal_token(monkeypatch) -> None:
    client = TestClient(app)

    response = client.get("/internal/admin/payouts", headers={"X-Actor-Id": str(ACTOR_ID)})

    assert response.status_code == 403
