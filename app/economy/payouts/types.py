from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True, slots=True)
class PayoutMethodRule:
    name: str
    label: str
    min_amount: Decimal
    required_detail: str | None = None


@dataclass(slots=True)
class PayoutBalance:
    user_id: UUID
    total_earnings: Decimal
    total_payouts: Decimal
    reserved_payouts: Decimal
    payable_balance: Decimal


@dataclass(slots=True)
class PayoutRequestView:
    id: UUID
    user_id: UUID
    amount: Decimal
    payout_method: str
    payout_details: dict[str, object]
    status: str
    admin_notes: str | None
    transaction_id: str | None
    requested_at: datetime
    processed_at: datetime | None
    updated_at: datetime


@dataclass(slots=True)
class PayoutStatusChangeResult:
    request_id: UUID
    user_id: UUID
    from_status: str
    to_status: str
    amount: Decimal
    total_payouts: Decimal | None
