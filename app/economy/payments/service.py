from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.models.payment_transactions import PaymentTransaction
from app.db.repo.exchange_rates_repo import ExchangeRatesRepo
from app.db.repo.payment_transactions_repo import PaymentTransactionsRepo
from app.db.repo.profiles_repo import ProfilesRepo
from app.db.transaction import atomic
from app.economy.countries import normalize_currency_code
from app.economy.errors import AccountSuspendedError, NotFoundError, PaymentGatewayError, ValidationError
from app.economy.payments.gateways import GatewayRequestError, PaymentGateway
from app.economy.payments.types import (
    CheckoutRequest,
    CheckoutSession,
    PaymentGatewayName,
    PaymentInitiationResult,
    PaymentStatus,
)

logger = structlog.get_logger(__name__)

PAYSTACK_SETTLEMENT_CURRENCY = "NGN"
MONEY_QUANTUM = Decimal("0.01")


class PaymentService:
    @staticmethod
    async def create_pending(
        session: AsyncSession,
        *,
        user_id: UUID,
        amount: Decimal,
        currency: str,
        gateway_name: str,
        purpose: str,
        now_utc: datetime,
    ) -> tuple[PaymentTransaction, str | None]:
        clean_currency = normalize_currency_code(currency)
        if clean_currency is None:
            raise ValidationError("Currency is required.")
        if not amount.is_finite() or amount <= 0:
            raise ValidationError("Payment amount must be positive.", amount=str(amount))
        if gateway_name not in {gateway.value for gateway in PaymentGatewayName}:
            raise ValidationError("Unknown payment gateway.", gateway=gateway_name)

        profile = await ProfilesRepo.get_by_id(session, user_id)
        if profile is None:
            raise NotFoundError("User not found.", user_id=str(user_id))
        if profile.is_suspended:
            raise AccountSuspendedError(user_id=str(user_id))

        charge_amount = amount
        charge_currency = clean_currency
        if gateway_name == PaymentGatewayName.PAYSTACK.value and clean_currency != PAYSTACK_SETTLEMENT_CURRENCY:
            rate = await ExchangeRatesRepo.get_rate(
                session,
                from_currency=clean_currency,
                to_currency=PAYSTACK_SETTLEMENT_CURRENCY,
            )
            if rate is not None:
                charge_amount = amount * rate
                charge_currency = PAYSTACK_SETTLEMENT_CURRENCY

        transaction = await PaymentTransactionsRepo.create(
            session,
            transaction=PaymentTransaction(
                id=uuid4(),
                user_id=user_id,
                amount=charge_amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP),
                currency=charge_currency,
                gateway=gateway_name,
                status=PaymentStatus.PENDING.value,
                purpose=purpose,
                metadata_={"original_amount": str(amount), "original_currency": clean_currency},
                created_at=now_utc,
                updated_at=now_utc,
            ),
        )
        return transaction, profile.email

    @staticmethod
    async def attach_checkout(
        session: AsyncSession,
        *,
        transaction_id: UUID,
        checkout: CheckoutSession,
        now_utc: datetime,
    ) -> PaymentTransaction:
        transaction = await PaymentTransactionsRepo.get_by_id_for_update(session, transaction_id)
        if transaction is None:
            raise NotFoundError("Payment not found.", transaction_id=str(transaction_id))
        transaction.redirect_url = checkout.redirect_url
        transaction.external_reference = checkout.reference
        transaction.updated_at = now_utc
        await session.flush()
        return transaction

    @staticmethod
    async def mark_failed(
        session: AsyncSession,
        *,
        transaction_id: UUID,
        reason: str,
        now_utc: datetime,
    ) -> None:
        transaction = await PaymentTransactionsRepo.get_by_id_for_update(session, transaction_id)
        if transaction is None:
            return
        transaction.status = PaymentStatus.FAILED.value
        transaction.failure_reason = reason
        transaction.updated_at = now_utc
        await session.flush()

    @staticmethod
    async def initiate_payment(
        *,
        user_id: UUID,
        amount: Decimal,
        currency: str,
        purpose: str,
        gateway: PaymentGateway,
        callback_url: str,
        now_utc: datetime,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> PaymentInitiationResult:
        """Commits the pending row before the provider call, so a crash never loses the attempt."""
        async with atomic(session_factory) as session:
            transaction, email = await PaymentService.create_pending(
                session,
                user_id=user_id,
                amount=amount,
                currency=currency,
                gateway_name=gateway.name,
                purpose=purpose,
                now_utc=now_utc,
            )
            transaction_id = transaction.id
            charge_amount = transaction.amount
            charge_currency = transaction.currency

        request = CheckoutRequest(
            transaction_id=transaction_id,
            amount=charge_amount,
            currency=charge_currency,
            email=email,
            description=purpose,
            callback_url=callback_url,
        )
        try:
            checkout = await gateway.create_checkout(request)
        except (GatewayRequestError, ValidationError) as exc:
            logger.warning(
                "payment_gateway_failed",
                transaction_id=str(transaction_id),
                gateway=gateway.name,
                error_type=type(exc).__name__,
            )
            async with atomic(session_factory) as session:
                await PaymentService.mark_failed(
                    session,
                    transaction_id=transaction_id,
                    reason=str(exc),
                    now_utc=now_utc,
                )
            if isinstance(exc, ValidationError):
                raise
            raise PaymentGatewayError(transaction_id=str(transaction_id), gateway=gateway.name) from exc

        async with atomic(session_factory) as session:
            await PaymentService.attach_checkout(
                session,
                transaction_id=transaction_id,
                checkout=checkout,
                now_utc=now_utc,
            )

        logger.info(
            "payment_initiated",
            transaction_id=str(transaction_id),
            user_id=str(user_id),
            gateway=gateway.name,
            amount=str(charge_amount),
            currency=charge_currency,
        )
        return PaymentInitiationResult(
            transaction_id=transaction_id,
            gateway=gateway.name,
            status=PaymentStatus.PENDING.value,
            amount=charge_amount,
            currency=charge_currency,
            redirect_url=checkout.redirect_url,
            reference=checkout.reference,
        )
