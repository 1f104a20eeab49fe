from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

from app.db.models.profiles import Profile
from app.db.models.reward_store_items import RewardStoreItem
from app.db.session import SessionLocal

UTC = timezone.utc


async def _create_profile(*, points: int = 0, role: str = "user", country: str | None = "US") -> UUID:
    now_utc = datetime.now(UTC)
    async with SessionLocal.begin() as session:
        profile = Profile(
            id=uuid4(),
            username=None,
            email=None,
            points=points,
            country=country,
            currency="USD",
            role=role,
            is_suspended=False,
            created_at=now_utc,
            updated_at=now_utc,
        )
        session.add(profile)
        await session.flush()
        return profile.id


async def _create_store_item(*, points_cost: int, stock_quantity: int | None) -> UUID:
    now_utc = datetime.now(UTC)
    async with SessionLocal.begin() as session:
        item = RewardStoreItem(
            id=uuid4(),
            name="$50 Gift Card",
            description=None,
            item_type="gift_card",
            points_cost=points_cost,
            currency="USD",
            stock_quantity=stock_quantity,
            is_active=True,
            created_at=now_utc,
            updated_at=now_utc,
        )
        session.add(item)
        await session.flush()
        return item.id
