from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(slots=True)
class PointsHistoryItem:
    entry_type: str
    direction: str
    amount: int
    balance_after: int
    source: str
    metadata: dict[str, object]
    created_at: datetime


@dataclass(slots=True)
class PointsAdjustmentResult:
    user_id: UUID
    delta: int
    new_balance: int
    reason: str
