from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import UUID


class PaymentGatewayName(str, Enum):
    STRIPE = "stripe"
    PAYSTACK = "paystack"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class CheckoutRequest:
    transaction_id: UUID
    amount: Decimal
    currency: str
    email: str | None
    description: str
    callback_url: str


@dataclass(frozen=True, slots=True)
class CheckoutSession:
    redirect_url: str
    reference: str


@dataclass(slots=True)
class PaymentInitiationResult:
    transaction_id: UUID
    gateway: str
    status: str
    amount: Decimal
    currency: str
    redirect_url: str
    reference: str
