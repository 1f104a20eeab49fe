from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Integer, Numeric, Text, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class CommissionTier(Base):
    __tablename__ = "ambassador_commission_tiers"
    __table_args__ = (
        CheckConstraint("min_referrals >= 0", name="ck_commission_tiers_min_referrals_non_negative"),
        CheckConstraint(
            "global_rate >= 0 AND global_rate <= 100",
            name="ck_commission_tiers_global_rate_range",
        ),
        Index("idx_commission_tiers_min_referrals", "min_referrals"),
        Index(
            "uq_commission_tiers_active_min_referrals",
            "min_referrals",
            unique=True,
            postgresql_where=text("is_active"),
        ),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    min_referrals: Mapped[int] = mapped_column(Integer, nullable=False)
    global_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    country_rates: Mapped[dict[str, object]] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
