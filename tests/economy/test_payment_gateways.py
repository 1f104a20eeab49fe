from __future__ import annotations

import json
from decimal import Decimal
from types import SimpleNamespace
from urllib.parse import parse_qs
from uuid import uuid4

import httpx
import pytest

from app.economy.errors import ValidationError
from app.economy.payments.gateways import (
    GatewayRequestError,
    PaystackGateway,
    StripeGateway,
    build_gateway,
    to_minor_units,
)
from app.economy.payments.types import CheckoutRequest


def _request(*, email: str | None = "ada@example.com", currency: str = "NGN") -> CheckoutRequest:
    return CheckoutRequest(
        transaction_id=uuid4(),
        amount=Decimal("1500.50"),
        currency=currency,
        email=email,
        description="points_purchase",
        callback_url="https://rewards.example.com/payments/return",
    )


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_to_minor_units_rounds_half_up() -> None:
    assert to_minor_units(Decimal("1500.50")) == 150050
    assert to_minor_units(Decimal("0.005")) == 1
    assert to_minor_units(Decimal("12")) == 1200


@pytest.mark.asyncio
async def test_paystack_initialize_returns_authorization_url() -> None:
    captured: dict[str, object] = {}
    request = _request()

    def _handler(http_request: httpx.Request) -> httpx.Response:
        captured["url"] = str(http_request.url)
        captured["auth"] = http_request.headers["Authorization"]
        captured["body"] = json.loads(http_request.content)
        return httpx.Response(
            200,
            json={
                "status": True,
                "data": {"authorization_url": "https://checkout.paystack.com/abc", "reference": "ref-1"},
            },
        )

    async with _client(_handler) as client:
        gateway = PaystackGateway(secret_key="sk_test", base_url="https://paystack.test/", client=client)
        checkout = await gateway.create_checkout(request)

    assert checkout.redirect_url == "https://checkout.paystack.com/abc"
    assert checkout.reference == "ref-1"
    assert captured["url"] == "https://paystack.test/transaction/initialize"
    assert captured["auth"] == "Bearer sk_test"
    body = captured["body"]
    assert body["amount"] == 150050
    assert body["currency"] == "NGN"
    assert body["reference"] == str(request.transaction_id)
    assert "payment_status=success" in body["callback_url"]


@pytest.mark.asyncio
async def test_paystack_requires_email() -> None:
    async with _client(lambda _: httpx.Response(500)) as client:
        gateway = PaystackGateway(secret_key="sk_test", base_url="https://paystack.test", client=client)
        with pytest.raises(ValidationError):
            await gateway.create_checkout(_request(email=None))


@pytest.mark.asyncio
async def test_paystack_error_status_raises_gateway_error() -> None:
    async with _client(lambda _: httpx.Response(401, json={"status": False, "message": "Invalid key"})) as client:
        gateway = PaystackGateway(secret_key="sk_bad", base_url="https://paystack.test", client=client)
        with pytest.raises(GatewayRequestError):
            await gateway.create_checkout(_request())


@pytest.mark.asyncio
async def test_paystack_without_secret_key_does_not_call_provider() -> None:
    calls: list[httpx.Request] = []

    def _handler(http_request: httpx.Request) -> httpx.Response:
        calls.append(http_request)
        return httpx.Response(200, json={})

    async with _client(_handler) as client:
        gateway = PaystackGateway(secret_key="", base_url="https://paystack.test", client=client)
        with pytest.raises(GatewayRequestError):
            await gateway.create_checkout(_request())
    assert calls == []


@pytest.mark.asyncio
async def test_stripe_checkout_session_form_encoding() -> None:
    captured: dict[str, object] = {}
    request = _request(currency="USD")

    def _handler(http_request: httpx.Request) -> httpx.Response:
        captured["url"] = str(http_request.url)
        captured["form"] = parse_qs(http_request.content.decode())
        return httpx.Response(200, json={"id": "cs_test_1", "url": "https://checkout.stripe.com/c/cs_test_1"})

    async with _client(_handler) as client:
        gateway = StripeGateway(secret_key="sk_test", base_url="https://stripe.test", client=client)
        checkout = await gateway.create_checkout(request)

    assert checkout.redirect_url == "https://checkout.stripe.com/c/cs_test_1"
    assert checkout.reference == "cs_test_1"
    assert captured["url"] == "https://stripe.test/v1/checkout/sessions"
    form = captured["form"]
    assert form["line_items[0][price_data][currency]"] == ["usd"]
    assert form["line_items[0][price_data][unit_amount]"] == ["150050"]
    assert form["client_reference_id"] == [str(request.transaction_id)]
    assert form["customer_email"] == ["ada@example.com"]
    assert "payment_status=cancelled" in form["cancel_url"][0]


@pytest.mark.asyncio
async def test_stripe_transport_error_raises_gateway_error() -> None:
    def _handler(http_request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=http_request)

    async with _client(_handler) as client:
        gateway = StripeGateway(secret_key="sk_test", base_url="https://stripe.test", client=client)
        with pytest.raises(GatewayRequestError):
            await gateway.create_checkout(_request(currency="USD"))


@pytest.mark.asyncio
async def test_build_gateway_selects_provider_by_name() -> None:
    settings = SimpleNamespace(
        paystack_secret_key="pk",
        paystack_base_url="https://paystack.test",
        stripe_secret_key="sk",
        stripe_base_url="https://stripe.test",
    )
    async with httpx.AsyncClient() as client:
        assert isinstance(build_gateway("paystack", settings=settings, client=client), PaystackGateway)
        assert isinstance(build_gateway("stripe", settings=settings, client=client), StripeGateway)
        with pytest.raises(ValidationError):
            build_gateway("paypal", settings=settings, client=client)
