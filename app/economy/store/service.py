from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import Capability
from app.core.config import get_settings
from app.db.models.profiles import Profile
from app.db.models.redeemed_items import RedeemedItem
from app.db.models.redemption_status_events import RedemptionStatusEvent
from app.db.models.reward_store_items import RewardStoreItem
from app.db.repo.exchange_rates_repo import ExchangeRatesRepo
from app.db.repo.profiles_repo import ProfilesRepo
from app.db.repo.redemptions_repo import RedemptionsRepo
from app.db.repo.store_repo import StoreItemsRepo
from app.economy.countries import normalize_currency_code
from app.economy.errors import AccountSuspendedError, NotFoundError, ValidationError
from app.economy.points.constants import ENTRY_TYPE_REDEMPTION, ENTRY_TYPE_REDEMPTION_REFUND
from app.economy.points.service import PointsLedgerService
from app.economy.store.constants import (
    MAX_PAGE_SIZE,
    REDEMPTION_STATUSES,
    STATUS_CANCELLED,
    STATUS_PENDING_FULFILLMENT,
)
from app.economy.store.pricing import quote_item
from app.economy.store.rules import (
    ensure_affordable,
    ensure_price_matches,
    ensure_redeemable,
    ensure_status_transition,
    is_in_stock,
    item_snapshot,
    validate_idempotency_key,
    validate_item_values,
)
from app.economy.store.types import (
    RedemptionResult,
    RedemptionView,
    StatusChangeResult,
    StatusEventView,
    StoreItemView,
)
from app.services.admin_audit import AdminAuditService

logger = structlog.get_logger(__name__)


class RedemptionStoreService:
    @staticmethod
    def _display_currency(requested: str | None, profile: Profile | None) -> str:
        currency = normalize_currency_code(requested)
        if currency is not None:
            return currency
        if profile is not None and profile.currency:
            return profile.currency
        return get_settings().default_currency

    @staticmethod
    def _as_redemption_view(redemption: RedeemedItem) -> RedemptionView:
        return RedemptionView(
            id=redemption.id,
            item_id=redemption.item_id,
            item_name=redemption.item_name,
            points_cost=redemption.points_cost,
            currency=redemption.currency,
            original_points_cost=redemption.original_points_cost,
            original_currency=redemption.original_currency,
            status=redemption.status,
            fulfillment_details=dict(redemption.fulfillment_details or {}),
            redeemed_at=redemption.redeemed_at,
            updated_at=redemption.updated_at,
        )

    @staticmethod
    def _as_replay_result(redemption: RedeemedItem, *, balance: int) -> RedemptionResult:
        return RedemptionResult(
            redemption_id=redemption.id,
            item_id=redemption.item_id,
            item_name=redemption.item_name,
            points_cost=redemption.points_cost,
            currency=redemption.currency,
            original_points_cost=redemption.original_points_cost,
            original_currency=redemption.original_currency,
            status=redemption.status,
            new_points_balance=balance,
            remaining_stock=None,
            message=f"Successfully redeemed {redemption.item_name} for {redemption.points_cost} points!",
            idempotent_replay=True,
            redeemed_at=redemption.redeemed_at,
        )

    @staticmethod
    async def _append_status_event(
        session: AsyncSession,
        *,
        redemption_id: UUID,
        from_status: str | None,
        to_status: str,
        actor_user_id: UUID | None,
        details: dict[str, object] | None,
        now_utc: datetime,
    ) -> None:
        await RedemptionsRepo.create_status_event(
            session,
            event=RedemptionStatusEvent(
                redemption_id=redemption_id,
                from_status=from_status,
                to_status=to_status,
                actor_user_id=actor_user_id,
                details=details or {},
                created_at=now_utc,
            ),
        )

    @staticmethod
    async def list_items(
        session: AsyncSession,
        *,
        user_id: UUID | None = None,
        display_currency: str | None = None,
        item_type: str | None = None,
        min_points_cost: int | None = None,
        max_points_cost: int | None = None,
        in_stock_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[StoreItemView]:
        profile = await ProfilesRepo.get_by_id(session, user_id) if user_id is not None else None
        currency = RedemptionStoreService._display_currency(display_currency, profile)
        rates: dict[str, Decimal] = await ExchangeRatesRepo.get_rates_to(session, to_currency=currency)

        items = await StoreItemsRepo.list_items(
            session,
            item_type=item_type,
            min_points_cost=min_points_cost,
            max_points_cost=max_points_cost,
            in_stock_only=in_stock_only,
            limit=max(1, min(limit, MAX_PAGE_SIZE)),
            offset=max(0, offset),
        )
        views: list[StoreItemView] = []
        for item in items:
            snapshot = item_snapshot(item)
            quote = quote_item(snapshot, display_currency=currency, rate=rates.get(snapshot.currency))
            views.append(
                StoreItemView(
                    id=item.id,
                    name=item.name,
                    description=item.description,
                    item_type=item.item_type,
                    points_cost=quote.points_cost,
                    currency=quote.currency,
                    original_points_cost=quote.original_points_cost,
                    original_currency=quote.original_currency,
                    stock_quantity=item.stock_quantity,
                    in_stock=is_in_stock(snapshot),
                )
            )
        return views

    @staticmethod
    async def redeem(
        session: AsyncSession,
        *,
        user_id: UUID,
        item_id: UUID,
        expected_points_cost: int,
        idempotency_key: str,
        now_utc: datetime,
        display_currency: str | None = None,
    ) -> RedemptionResult:
        key = validate_idempotency_key(idempotency_key)
        if expected_points_cost < 0:
            raise ValidationError("Expected cost cannot be negative.")

        # Lock order: profile, then item.
        profile = await ProfilesRepo.get_by_id_for_update(session, user_id)
        if profile is None:
            raise NotFoundError("User not found.", user_id=str(user_id))
        if profile.is_suspended:
            raise AccountSuspendedError(user_id=str(user_id))

        existing = await RedemptionsRepo.get_by_idempotency_key(session, user_id=user_id, idempotency_key=key)
        if existing is not None:
            if existing.item_id != item_id:
                raise ValidationError("This request key was already used for another redemption.")
            logger.info(
                "redemption_idempotent_replay",
                user_id=str(user_id),
                redemption_id=str(existing.id),
            )
            return RedemptionStoreService._as_replay_result(existing, balance=profile.points)

        item = await StoreItemsRepo.get_by_id_for_update(session, item_id)
        if item is None:
            raise NotFoundError("Item not found.", item_id=str(item_id))
        snapshot = item_snapshot(item)
        ensure_redeemable(snapshot)

        currency = RedemptionStoreService._display_currency(display_currency, profile)
        rate = None
        if currency != snapshot.currency:
            rate = await ExchangeRatesRepo.get_rate(
                session,
                from_currency=snapshot.currency,
                to_currency=currency,
            )
        quote = quote_item(snapshot, display_currency=currency, rate=rate)
        ensure_price_matches(quote, expected_points_cost)
        ensure_affordable(profile.points, quote)

        redemption_id = uuid4()
        await PointsLedgerService.debit(
            session,
            profile=profile,
            amount=quote.points_cost,
            entry_type=ENTRY_TYPE_REDEMPTION,
            source="REWARD_STORE",
            idempotency_key=f"redemption:{redemption_id}",
            now_utc=now_utc,
            metadata={"item_id": str(item.id), "currency": quote.currency},
        )
        if item.stock_quantity is not None:
            item.stock_quantity -= 1
            item.updated_at = now_utc

        redemption = await RedemptionsRepo.create(
            session,
            redemption=RedeemedItem(
                id=redemption_id,
                user_id=user_id,
                item_id=item.id,
                item_name=item.name,
                points_cost=quote.points_cost,
                currency=quote.currency,
                original_points_cost=quote.original_points_cost,
                original_currency=quote.original_currency,
                status=STATUS_PENDING_FULFILLMENT,
                fulfillment_details={},
                idempotency_key=key,
                redeemed_at=now_utc,
                updated_at=now_utc,
            ),
        )
        await RedemptionStoreService._append_status_event(
            session,
            redemption_id=redemption.id,
            from_status=None,
            to_status=STATUS_PENDING_FULFILLMENT,
            actor_user_id=user_id,
            details=None,
            now_utc=now_utc,
        )

        logger.info(
            "redemption_completed",
            user_id=str(user_id),
            item_id=str(item.id),
            redemption_id=str(redemption.id),
            points_cost=quote.points_cost,
            currency=quote.currency,
            remaining_stock=item.stock_quantity,
        )
        return RedemptionResult(
            redemption_id=redemption.id,
            item_id=item.id,
            item_name=item.name,
            points_cost=quote.points_cost,
            currency=quote.currency,
            original_points_cost=quote.original_points_cost,
            original_currency=quote.original_currency,
            status=redemption.status,
            new_points_balance=profile.points,
            remaining_stock=item.stock_quantity,
            message=f"Successfully redeemed {item.name} for {quote.points_cost} points!",
            idempotent_replay=False,
            redeemed_at=now_utc,
        )

    @staticmethod
    async def list_redemptions(
        session: AsyncSession,
        *,
        user_id: UUID,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[RedemptionView]:
        if status is not None and status not in REDEMPTION_STATUSES:
            raise ValidationError("Unknown redemption status.", status=status)
        redemptions = await RedemptionsRepo.list_for_user(
            session,
            user_id=user_id,
            status=status,
            limit=max(1, min(limit, MAX_PAGE_SIZE)),
            offset=max(0, offset),
        )
        return [RedemptionStoreService._as_redemption_view(redemption) for redemption in redemptions]

    @staticmethod
    async def create_item(
        session: AsyncSession,
        *,
        actor_user_id: UUID,
        values: Mapping[str, Any],
        now_utc: datetime,
    ) -> RewardStoreItem:
        await AdminAuditService.require_actor(
            session,
            actor_user_id=actor_user_id,
            capability=Capability.MANAGE_STORE,
        )
        clean = validate_item_values(values)
        item = await StoreItemsRepo.create(
            session,
            item=RewardStoreItem(
                id=uuid4(),
                name=clean["name"],
                description=clean.get("description"),
                item_type=clean["item_type"],
                points_cost=clean["points_cost"],
                currency=clean.get("currency") or get_settings().default_currency,
                stock_quantity=clean.get("stock_quantity"),
                is_active=clean.get("is_active", True),
                created_at=now_utc,
                updated_at=now_utc,
            ),
        )
        await AdminAuditService.record(
            session,
            actor_user_id=actor_user_id,
            action="store_item_created",
            target_type="reward_store_item",
            target_id=item.id,
            payload={key: value for key, value in clean.items() if key != "description"},
            now_utc=now_utc,
        )
        return item

    @staticmethod
    async def update_item(
        session: AsyncSession,
        *,
        actor_user_id: UUID,
        item_id: UUID,
        changes: Mapping[str, Any],
        now_utc: datetime,
    ) -> RewardStoreItem:
        await AdminAuditService.require_actor(
            session,
            actor_user_id=actor_user_id,
            capability=Capability.MANAGE_STORE,
        )
        clean = validate_item_values(changes, partial=True)
        item = await StoreItemsRepo.get_by_id_for_update(session, item_id)
        if item is None:
            raise NotFoundError("Item not found.", item_id=str(item_id))

        previous = {key: getattr(item, key) for key in clean}
        for key, value in clean.items():
            setattr(item, key, value)
        item.updated_at = now_utc
        await session.flush()

        await AdminAuditService.record(
            session,
            actor_user_id=actor_user_id,
            action="store_item_updated",
            target_type="reward_store_item",
            target_id=item.id,
            payload={
                "old": {key: value for key, value in previous.items() if key != "description"},
                "new": {key: value for key, value in clean.items() if key != "description"},
            },
            now_utc=now_utc,
        )
        return item

    @staticmethod
    async def update_redemption_status(
        session: AsyncSession,
        *,
        actor_user_id: UUID,
        redemption_id: UUID,
        status: str,
        now_utc: datetime,
        details: dict[str, object] | None = None,
    ) -> StatusChangeResult:
        await AdminAuditService.require_actor(
            session,
            actor_user_id=actor_user_id,
            capability=Capability.FULFILL_REDEMPTIONS,
        )
        redemption = await RedemptionsRepo.get_by_id_for_update(session, redemption_id)
        if redemption is None:
            raise NotFoundError("Redemption not found.", redemption_id=str(redemption_id))
        from_status = redemption.status
        ensure_status_transition(from_status, status)

        refunded_points = 0
        restored_stock = False
        if status == STATUS_CANCELLED:
            profile = await ProfilesRepo.get_by_id_for_update(session, redemption.user_id)
            if profile is None:
                raise NotFoundError("User not found.", user_id=str(redemption.user_id))
            await PointsLedgerService.credit(
                session,
                profile=profile,
                amount=redemption.points_cost,
                entry_type=ENTRY_TYPE_REDEMPTION_REFUND,
                source="REWARD_STORE",
                idempotency_key=f"redemption_refund:{redemption.id}",
                now_utc=now_utc,
                metadata={"redemption_id": str(redemption.id)},
            )
            refunded_points = redemption.points_cost

            item = await StoreItemsRepo.get_by_id_for_update(session, redemption.item_id)
            if item is not None and item.stock_quantity is not None:
                item.stock_quantity += 1
                item.updated_at = now_utc
                restored_stock = True

        redemption.status = status
        if details:
            redemption.fulfillment_details = {**(redemption.fulfillment_details or {}), **details}
        redemption.updated_at = now_utc
        await session.flush()

        await RedemptionStoreService._append_status_event(
            session,
            redemption_id=redemption.id,
            from_status=from_status,
            to_status=status,
            actor_user_id=actor_user_id,
            details=details,
            now_utc=now_utc,
        )
        await AdminAuditService.record(
            session,
            actor_user_id=actor_user_id,
            action="redemption_status_updated",
            target_type="redeemed_item",
            target_id=redemption.id,
            payload={"from": from_status, "to": status, "refunded_points": refunded_points},
            now_utc=now_utc,
        )
        logger.info(
            "redemption_status_updated",
            actor_user_id=str(actor_user_id),
            redemption_id=str(redemption.id),
            from_status=from_status,
            to_status=status,
        )
        return StatusChangeResult(
            redemption_id=redemption.id,
            from_status=from_status,
            to_status=status,
            refunded_points=refunded_points,
            restored_stock=restored_stock,
        )

    @staticmethod
    async def list_status_history(
        session: AsyncSession,
        *,
        actor_user_id: UUID,
        redemption_id: UUID,
    ) -> list[StatusEventView]:
        """Returns every status move of one redemption, oldest first."""
        await AdminAuditService.require_actor(
            session,
            actor_user_id=actor_user_id,
            capability=Capability.FULFILL_REDEMPTIONS,
        )
        redemption = await RedemptionsRepo.get_by_id(session, redemption_id)
        if redemption is None:
            raise NotFoundError("Redemption not found.", redemption_id=str(redemption_id))
        events = await RedemptionsRepo.list_status_events(session, redemption.id)
        return [
            StatusEventView(
                from_status=event.from_status,
                to_status=event.to_status,
                actor_user_id=event.actor_user_id,
                details=dict(event.details or {}),
                created_at=event.created_at,
            )
            for event in events
        ]
