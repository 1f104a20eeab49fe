from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Protocol

import httpx
import structlog

from app.core.config import Settings
from app.economy.errors import ValidationError
from app.economy.payments.types import CheckoutRequest, CheckoutSession, PaymentGatewayName

logger = structlog.get_logger(__name__)


class GatewayRequestError(Exception):
    """The provider rejected the request or could not be reached."""


class PaymentGateway(Protocol):
    name: str

    async def create_checkout(self, request: CheckoutRequest) -> CheckoutSession: ...


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).to_integral_value(rounding=ROUND_HALF_UP))


def _callback_url(base: str, request: CheckoutRequest, status: str) -> str:
    separator = "&" if "?" in base else "?"
    return f"{base}{separator}payment_status={status}&transaction_id={request.transaction_id}"


async def _post(client: httpx.AsyncClient, url: str, **kwargs: Any) -> dict[str, Any]:
    try:
        response = await client.post(url, **kwargs)
        response.raise_for_status()
        return response.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise GatewayRequestError(str(exc)) from exc


class PaystackGateway:
    name = PaymentGatewayName.PAYSTACK.value

    def __init__(self, *, secret_key: str, base_url: str, client: httpx.AsyncClient) -> None:
        self._secret_key = secret_key
        self._base_url = base_url.rstrip("/")
        self._client = client

    async def create_checkout(self, request: CheckoutRequest) -> CheckoutSession:
        if not self._secret_key:
            raise GatewayRequestError("paystack secret key is not configured")
        if not request.email:
            raise ValidationError("An email address is required for this payment method.")

        body = {
            "email": request.email,
            "amount": to_minor_units(request.amount),
            "currency": request.currency,
            "reference": str(request.transaction_id),
            "callback_url": _callback_url(request.callback_url, request, "success"),
            "metadata": {"transaction_id": str(request.transaction_id), "description": request.description},
        }
        payload = await _post(
            self._client,
            f"{self._base_url}/transaction/initialize",
            json=body,
            headers={"Authorization": f"Bearer {self._secret_key}"},
        )
        data = payload.get("data") or {}
        if payload.get("status") is not True or not data.get("authorization_url"):
            raise GatewayRequestError(str(payload.get("message") or "paystack did not return an authorization url"))
        return CheckoutSession(
            redirect_url=str(data["authorization_url"]),
            reference=str(data.get("reference") or request.transaction_id),
        )


class StripeGateway:
    name = PaymentGatewayName.STRIPE.value

    def __init__(self, *, secret_key: str, base_url: str, client: httpx.AsyncClient) -> None:
        self._secret_key = secret_key
        self._base_url = base_url.rstrip("/")
        self._client = client

    async def create_checkout(self, request: CheckoutRequest) -> CheckoutSession:
        if not self._secret_key:
            raise GatewayRequestError("stripe secret key is not configured")

        form = {
            "mode": "payment",
            "success_url": _callback_url(request.callback_url, request, "success"),
            "cancel_url": _callback_url(request.callback_url, request, "cancelled"),
            "client_reference_id": str(request.transaction_id),
            "line_items[0][quantity]": "1",
            "line_items[0][price_data][currency]": request.currency.lower(),
            "line_items[0][price_data][unit_amount]": str(to_minor_units(request.amount)),
            "line_items[0][price_data][product_data][name]": request.description,
            "metadata[transaction_id]": str(request.transaction_id),
        }
        if request.email:
            form["customer_email"] = request.email
        payload = await _post(
            self._client,
            f"{self._base_url}/v1/checkout/sessions",
            data=form,
            headers={"Authorization": f"Bearer {self._secret_key}"},
        )
        if not payload.get("url") or not payload.get("id"):
            raise GatewayRequestError("stripe did not return a checkout url")
        return CheckoutSession(redirect_url=str(payload["url"]), reference=str(payload["id"]))


def build_gateway(name: str, *, settings: Settings, client: httpx.AsyncClient) -> PaymentGateway:
    if name == PaymentGatewayName.PAYSTACK.value:
        return PaystackGateway(
            secret_key=settings.paystack_secret_key,
            base_url=settings.paystack_base_url,
            client=client,
        )
    if name == PaymentGatewayName.STRIPE.value:
        return StripeGateway(
            secret_key=settings.stripe_secret_key,
            base_url=settings.stripe_base_url,
            client=client,
        )
    raise ValidationError("Unknown payment gateway.", gateway=name)
