from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import Capability
from app.db.models.ambassadors import Ambassador
from app.db.models.payout_requests import PayoutRequest
from app.db.repo.ambassadors_repo import AmbassadorsRepo
from app.db.repo.payout_requests_repo import PayoutRequestsRepo
from app.db.repo.profiles_repo import ProfilesRepo
from app.economy.errors import AccountSuspendedError, NotEligibleError, NotFoundError, ValidationError
from app.economy.payouts.constants import (
    MAX_PAGE_SIZE,
    PAYOUT_STATUSES,
    RESERVED_STATUSES,
    STATUS_PENDING,
    STATUS_PROCESSED,
)
from app.economy.payouts.rules import (
    build_payout_details,
    clean_admin_notes,
    clean_transaction_id,
    ensure_method_minimum,
    ensure_status_transition,
    ensure_within_balance,
    payable_balance,
    resolve_payout_method,
    to_money,
    validate_payout_amount,
)
from app.economy.payouts.types import PayoutBalance, PayoutRequestView, PayoutStatusChangeResult
from app.services.admin_audit import AdminAuditService

logger = structlog.get_logger(__name__)


def _as_view(payout_request: PayoutRequest) -> PayoutRequestView:
    return PayoutRequestView(
        id=payout_request.id,
        user_id=payout_request.user_id,
        amount=payout_request.amount,
        payout_method=payout_request.payout_method,
        payout_details=dict(payout_request.payout_details or {}),
        status=payout_request.status,
        admin_notes=payout_request.admin_notes,
        transaction_id=payout_request.transaction_id,
        requested_at=payout_request.requested_at,
        processed_at=payout_request.processed_at,
        updated_at=payout_request.updated_at,
    )


def _status_filter(status: str | None) -> str | None:
    if status is None:
        return None
    if status not in PAYOUT_STATUSES:
        raise ValidationError("Unknown payout status.", status=status)
    return status


class PayoutService:
    @staticmethod
    async def _balance_for(session: AsyncSession, ambassador: Ambassador) -> PayoutBalance:
        reserved = await PayoutRequestsRepo.sum_amount_for_user(
            session,
            user_id=ambassador.user_id,
            statuses=RESERVED_STATUSES,
        )
        total_earnings = to_money(ambassador.total_earnings)
        total_payouts = to_money(ambassador.total_payouts or 0)
        return PayoutBalance(
            user_id=ambassador.user_id,
            total_earnings=total_earnings,
            total_payouts=total_payouts,
            reserved_payouts=reserved,
            payable_balance=payable_balance(
                total_earnings=total_earnings,
                total_payouts=total_payouts,
                reserved_payouts=reserved,
            ),
        )

    @staticmethod
    async def get_payable_balance(session: AsyncSession, *, user_id: UUID) -> PayoutBalance:
        """Earnings minus paid-out and still-open requests; zero for non-ambassadors."""
        ambassador = await AmbassadorsRepo.get_by_user_id(session, user_id)
        if ambassador is None:
            zero = Decimal("0.00")
            return PayoutBalance(
                user_id=user_id,
                total_earnings=zero,
                total_payouts=zero,
                reserved_payouts=zero,
                payable_balance=zero,
            )
        return await PayoutService._balance_for(session, ambassador)

    @staticmethod
    async def request_payout(
        session: AsyncSession,
        *,
        user_id: UUID,
        amount: object,
        payout_method: str,
        now_utc: datetime,
        payout_details: Mapping[str, Any] | None = None,
    ) -> PayoutRequestView:
        clean_amount = validate_payout_amount(amount)
        method = resolve_payout_method(payout_method)

        # The ambassador row lock serializes concurrent requests against one balance.
        ambassador = await AmbassadorsRepo.get_by_user_id_for_update(session, user_id)
        if ambassador is None or not ambassador.is_active:
            raise NotEligibleError(
                "You must be an active ambassador to request payouts.",
                user_id=str(user_id),
            )
        profile = await ProfilesRepo.get_by_id(session, user_id)
        if profile is None:
            raise NotFoundError("User not found.", user_id=str(user_id))
        if profile.is_suspended:
            raise AccountSuspendedError(user_id=str(user_id))

        balance = await PayoutService._balance_for(session, ambassador)
        ensure_within_balance(clean_amount, balance.payable_balance)
        ensure_method_minimum(clean_amount, method)
        details = build_payout_details(
            method,
            payout_details,
            user_email=profile.email,
            user_country=profile.country or ambassador.country,
        )

        payout_request = await PayoutRequestsRepo.create(
            session,
            payout_request=PayoutRequest(
                id=uuid4(),
                user_id=user_id,
                amount=clean_amount,
                payout_method=method.name,
                payout_details=details,
                status=STATUS_PENDING,
                requested_at=now_utc,
                updated_at=now_utc,
            ),
        )
        logger.info(
            "payout_requested",
            user_id=str(user_id),
            payout_request_id=str(payout_request.id),
            amount=str(clean_amount),
            payout_method=method.name,
        )
        return _as_view(payout_request)

    @staticmethod
    async def get_user_payout_requests(
        session: AsyncSession,
        *,
        user_id: UUID,
        status: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[PayoutRequestView], int]:
        status = _status_filter(status)
        rows = await PayoutRequestsRepo.list_requests(
            session,
            user_id=user_id,
            status=status,
            limit=max(1, min(limit, MAX_PAGE_SIZE)),
            offset=max(0, offset),
        )
        total = await PayoutRequestsRepo.count_requests(session, user_id=user_id, status=status)
        return [_as_view(row) for row in rows], total

    @staticmethod
    async def list_payout_requests(
        session: AsyncSession,
        *,
        actor_user_id: UUID,
        user_id: UUID | None = None,
        status: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[PayoutRequestView], int]:
        await AdminAuditService.require_actor(
            session,
            actor_user_id=actor_user_id,
            capability=Capability.MANAGE_PAYOUTS,
        )
        status = _status_filter(status)
        rows = await PayoutRequestsRepo.list_requests(
            session,
            user_id=user_id,
            status=status,
            limit=max(1, min(limit, MAX_PAGE_SIZE)),
            offset=max(0, offset),
        )
        total = await PayoutRequestsRepo.count_requests(session, user_id=user_id, status=status)
        return [_as_view(row) for row in rows], total

    @staticmethod
    async def update_payout_request_status(
        session: AsyncSession,
        *,
        actor_user_id: UUID,
        request_id: UUID,
        status: str,
        now_utc: datetime,
        admin_notes: str | None = None,
        transaction_id: str | None = None,
    ) -> PayoutStatusChangeResult:
        await AdminAuditService.require_actor(
            session,
            actor_user_id=actor_user_id,
            capability=Capability.MANAGE_PAYOUTS,
        )
        notes = clean_admin_notes(admin_notes)
        clean_txn = clean_transaction_id(transaction_id)

        # Lock order: payout request, then ambassador.
        payout_request = await PayoutRequestsRepo.get_by_id_for_update(session, request_id)
        if payout_request is None:
            raise NotFoundError("Payout request not found.", request_id=str(request_id))
        from_status = payout_request.status
        ensure_status_transition(from_status, status)

        total_payouts: Decimal | None = None
        if status == STATUS_PROCESSED:
            ambassador = await AmbassadorsRepo.get_by_user_id_for_update(session, payout_request.user_id)
            if ambassador is None:
                raise NotFoundError("Ambassador not found.", user_id=str(payout_request.user_id))
            ambassador.total_payouts = to_money(ambassador.total_payouts or 0) + to_money(payout_request.amount)
            ambassador.updated_at = now_utc
            total_payouts = ambassador.total_payouts
            payout_request.processed_at = now_utc
            payout_request.processed_by = actor_user_id
            payout_request.transaction_id = clean_txn

        payout_request.status = status
        if notes is not None:
            payout_request.admin_notes = notes
        payout_request.updated_at = now_utc
        await session.flush()

        await AdminAuditService.record(
            session,
            actor_user_id=actor_user_id,
            action="payout_status_updated",
            target_type="payout_request",
            target_id=payout_request.id,
            payload={
                "from": from_status,
                "to": status,
                "amount": str(payout_request.amount),
                "transaction_id": clean_txn,
            },
            now_utc=now_utc,
        )
        logger.info(
            "payout_status_updated",
            actor_user_id=str(actor_user_id),
            payout_request_id=str(payout_request.id),
            from_status=from_status,
            to_status=status,
        )
        return PayoutStatusChangeResult(
            request_id=payout_request.id,
            user_id=payout_request.user_id,
            from_status=from_status,
            to_status=status,
            amount=to_money(payout_request.amount),
            total_payouts=total_payouts,
        )
