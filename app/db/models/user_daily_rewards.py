from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class UserDailyRewards(Base):
    __tablename__ = "user_daily_rewards"
    __table_args__ = (
        CheckConstraint("trivia_streak >= 0", name="ck_user_daily_rewards_trivia_streak_non_negative"),
        CheckConstraint("spin_streak >= 0", name="ck_user_daily_rewards_spin_streak_non_negative"),
    )

    user_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), ForeignKey("profiles.id"), primary_key=True)
    last_spin_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_trivia_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_watch_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_trivia_correct_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    trivia_streak: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    spin_streak: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    total_spins: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    total_trivia_completed: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    total_ads_watched: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
