from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True, slots=True)
class TierSnapshot:
    name: str
    min_referrals: int
    global_rate: Decimal
    country_rates: Mapping[str, Decimal] = field(default_factory=dict)
    is_active: bool = True
    id: UUID | None = None


@dataclass(slots=True)
class TierValues:
    name: str
    min_referrals: int
    global_rate: Decimal
    country_rates: dict[str, Decimal]
    is_active: bool


@dataclass(slots=True)
class EnrollmentResult:
    user_id: UUID
    country: str
    commission_rate: Decimal
    tier_name: str | None
    reactivated: bool
    already_enrolled: bool


@dataclass(slots=True)
class ReferralResult:
    ambassador_user_id: UUID
    referred_user_id: UUID
    total_referrals: int
    commission_rate: Decimal
    idempotent_replay: bool


@dataclass(slots=True)
class CommissionResult:
    ambassador_user_id: UUID
    referred_user_id: UUID
    country: str | None
    revenue_amount: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    total_earnings: Decimal
    idempotent_replay: bool
    processed_at: datetime
