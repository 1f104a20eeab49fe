from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.payment_transactions import PaymentTransaction


class PaymentTransactionsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, transaction: PaymentTransaction) -> PaymentTransaction:
        session.add(transaction)
        await session.flush()
        return transaction

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, transaction_id: UUID) -> PaymentTransaction | None:
        stmt = (
            select(PaymentTransaction)
            .where(PaymentTransaction.id == transaction_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()
