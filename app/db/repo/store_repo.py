from __future__ import annotations

from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.reward_store_items import RewardStoreItem


class StoreItemsRepo:
    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, item_id: UUID) -> RewardStoreItem | None:
        stmt = (
            select(RewardStoreItem)
            .where(RewardStoreItem.id == item_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_items(
        session: AsyncSession,
        *,
        item_type: str | None = None,
        min_points_cost: int | None = None,
        max_points_cost: int | None = None,
        in_stock_only: bool = False,
        include_inactive: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> list[RewardStoreItem]:
        stmt = select(RewardStoreItem)
        if not include_inactive:
            stmt = stmt.where(RewardStoreItem.is_active.is_(True))
        if item_type is not None:
            stmt = stmt.where(RewardStoreItem.item_type == item_type)
        if min_points_cost is not None:
            stmt = stmt.where(RewardStoreItem.points_cost >= min_points_cost)
        if max_points_cost is not None:
            stmt = stmt.where(RewardStoreItem.points_cost <= max_points_cost)
        if in_stock_only:
            stmt = stmt.where(
                or_(
                    RewardStoreItem.stock_quantity.is_(None),
                    RewardStoreItem.stock_quantity > 0,
                )
            )
        stmt = stmt.order_by(RewardStoreItem.points_cost.asc(), RewardStoreItem.id.asc())
        result = await session.execute(stmt.limit(limit).offset(offset))
        return list(result.scalars().all())

    @staticmethod
    async def create(session: AsyncSession, *, item: RewardStoreItem) -> RewardStoreItem:
        session.add(item)
        await session.flush()
        return item
