from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric, String, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Ambassador(Base):
    __tablename__ = "ambassadors"
    __table_args__ = (
        CheckConstraint("total_referrals >= 0", name="ck_ambassadors_total_referrals_non_negative"),
        CheckConstraint("total_earnings >= 0", name="ck_ambassadors_total_earnings_non_negative"),
        CheckConstraint("total_payouts >= 0", name="ck_ambassadors_total_payouts_non_negative"),
        CheckConstraint(
            "commission_rate >= 0 AND commission_rate <= 100",
            name="ck_ambassadors_commission_rate_range",
        ),
        Index("idx_ambassadors_country_active_earnings", "country", "is_active", "total_earnings"),
    )

    user_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), ForeignKey("profiles.id"), primary_key=True)
    country: Mapped[str] = mapped_column(String(2), nullable=False)
    # Display hint only; commission is always resolved from the live tier table.
    commission_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    total_referrals: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    total_earnings: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, server_default=text("0"))
    total_payouts: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, server_default=text("0"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
