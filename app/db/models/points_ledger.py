from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class PointsLedgerEntry(Base):
    __tablename__ = "points_ledger"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_points_ledger_amount_positive"),
        CheckConstraint("balance_after >= 0", name="ck_points_ledger_balance_non_negative"),
        CheckConstraint("direction IN ('CREDIT','DEBIT')", name="ck_points_ledger_direction"),
        CheckConstraint(
            "entry_type IN ('SPIN','TRIVIA','WATCH_AD','REDEMPTION','REDEMPTION_REFUND','ADMIN_ADJUSTMENT')",
            name="ck_points_ledger_entry_type",
        ),
        Index("idx_points_ledger_user_created", "user_id", "created_at"),
        Index("idx_points_ledger_type", "entry_type"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    entry_type: Mapped[str] = mapped_column(String(32), nullable=False)
    direction: Mapped[str] = mapped_column(String(8), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)
    source: Mapped[str] = mapped_column(String(32), nullable=False)
    idempotency_key: Mapped[str] = mapped_column(String(96), unique=True, nullable=False)
    metadata_: Mapped[dict[str, object]] = mapped_column(
        "metadata",
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
