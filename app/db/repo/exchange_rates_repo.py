from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.exchange_rates import ExchangeRate


class ExchangeRatesRepo:
    @staticmethod
    async def get_rate(
        session: AsyncSession,
        *,
        from_currency: str,
        to_currency: str,
    ) -> Decimal | None:
        stmt = select(ExchangeRate.rate).where(
            ExchangeRate.from_currency == from_currency,
            ExchangeRate.to_currency == to_currency,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_rates_to(session: AsyncSession, *, to_currency: str) -> dict[str, Decimal]:
        stmt = select(ExchangeRate.from_currency, ExchangeRate.rate).where(
            ExchangeRate.to_currency == to_currency
        )
        result = await session.execute(stmt)
        return {from_currency: rate for from_currency, rate in result.all()}
