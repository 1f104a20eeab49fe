from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

from fastapi.testclient import TestClient

from app.api.routes import ambassadors, payments
from app.economy.ambassadors.types import AmbassadorDashboard, CountryMetricPoint
from app.economy.errors import NotFoundError, PaymentGatewayError
from app.economy.payments.types import PaymentInitiationResult
from app.main import app

USER_ID = uuid4()
HEADERS = {"X-User-Id": str(USER_ID)}


@asynccontextmanager
async def _fake_atomic(session_factory=None):
    del session_factory
    yield object()


def _payment_settings() -> SimpleNamespace:
    return SimpleNamespace(
        payment_gateway_timeout_sec=5.0,
        payment_callback_url="https://rewards.example.com/payments/return",
        paystack_secret_key="sk_paystack",
        paystack_base_url="https://paystack.test",
        stripe_secret_key="sk_stripe",
        stripe_base_url="https://stripe.test",
    )


def test_dashboard_returns_live_rate(monkeypatch) -> None:
    monkeypatch.setattr(ambassadors, "atomic", _fake_atomic)

    async def _fake_get_dashboard(session, *, user_id, now_utc):
        del session, now_utc
        return AmbassadorDashboard(
            user_id=user_id,
            country="NG",
            tier_name="Growth",
            commission_rate=Decimal("12.00"),
            cached_commission_rate=Decimal("5.00"),
            next_tier_name="Elite",
            next_tier_min_referrals=50,
            referrals_to_next_tier=35,
            total_referrals=15,
            total_earnings=Decimal("420.00"),
            monthly_country_revenue=Decimal("2500.00"),
            monthly_earnings=Decimal("300.00"),
            rank=3,
            recent_metrics=[
                CountryMetricPoint(
                    metric_date=date(2026, 3, 17),
                    ad_revenue=Decimal("80.00"),
                    user_count=900,
                    new_users=12,
                )
            ],
        )

    monkeypatch.setattr(ambassadors.AmbassadorDashboardService, "get_dashboard", _fake_get_dashboard)
    client = TestClient(app)

    response = client.get("/ambassadors/me/dashboard", headers=HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["user_id"] == str(USER_ID)
    assert Decimal(body["commission_rate"]) == Decimal("12.00")
    assert body["rank"] == 3
    assert body["recent_metrics"][0]["user_count"] == 900


def test_dashboard_for_non_ambassador_is_404(monkeypatch) -> None:
    monkeypatch.setattr(ambassadors, "atomic", _fake_atomic)

    async def _fake_get_dashboard(session, *, user_id, now_utc):
        del session, now_utc
        raise NotFoundError("You are not an active ambassador.", user_id=str(user_id))

    monkeypatch.setattr(ambassadors.AmbassadorDashboardService, "get_dashboard", _fake_get_dashboard)
    client = TestClient(app)

    response = client.get("/ambassadors/me/dashboard", headers=HEADERS)

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "E_NOT_FOUND"


def test_initiate_payment_uses_default_callback(monkeypatch) -> None:
    monkeypatch.setattr(payments, "get_settings", _payment_settings)
    captured: dict[str, object] = {}
    transaction_id = uuid4()

    async def _fake_initiate_payment(**kwargs):
        captured.update(kwargs)
        return PaymentInitiationResult(
            transaction_id=transaction_id,
            gateway=kwargs["gateway"].name,
            status="pending",
            amount=kwargs["amount"],
            currency="USD",
            redirect_url="https://checkout.stripe.com/c/cs_test_1",
            reference="cs_test_1",
        )

    monkeypatch.setattr(payments.PaymentService, "initiate_payment", _fake_initiate_payment)
    client = TestClient(app)

    response = client.post(
        "/payments/initiate",
        json={"amount": "25.00", "currency": "USD", "gateway": "stripe"},
        headers=HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["transaction_id"] == str(transaction_id)
    assert body["redirect_url"] == "https://checkout.stripe.com/c/cs_test_1"
    assert captured["user_id"] == USER_ID
    assert captured["callback_url"] == "https://rewards.example.com/payments/return"
    assert captured["purpose"] == "points_purchase"


def test_initiate_payment_gateway_failure_is_502(monkeypatch) -> None:
    monkeypatch.setattr(payments, "get_settings", _payment_settings)

    async def _fake_initiate_payment(**kwargs):
        raise PaymentGatewayError(gateway=kwargs["gateway"].name)

    monkeypatch.setattr(payments.PaymentService, "initiate_payment", _fake_initiate_payment)
    client = TestClient(app)

    response = client.post(
        "/payments/initiate",
        json={"amount": "25.00", "currency": "NGN", "gateway": "paystack"},
        headers=HEADERS,
    )

    assert response.status_code == 502
    assert response.json()["detail"]["code"] == "E_PAYMENT_GATEWAY"


def test_initiate_payment_rejects_unknown_gateway() -> None:
    client = TestClient(app)

    response = client.post(
        "/payments/initiate",
        json={"amount": "25.00", "currency": "USD", "gateway": "paypal"},
        headers=HEADERS,
    )

    assert response.status_code == 422
