from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class RewardClaim(Base):
    """Single-use marker: one row per user, action and UTC day."""

    __tablename__ = "reward_claims"
    __table_args__ = (
        UniqueConstraint("user_id", "action", "claim_date", name="uq_reward_claims_user_action_date"),
        CheckConstraint("action IN ('SPIN','TRIVIA','WATCH_AD')", name="ck_reward_claims_action"),
        CheckConstraint("points_awarded >= 0", name="ck_reward_claims_points_non_negative"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    action: Mapped[str] = mapped_column(String(16), nullable=False)
    claim_date: Mapped[date] = mapped_column(Date, nullable=False)
    points_awarded: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
