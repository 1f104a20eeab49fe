"""payouts_and_scoped_redemption_keys

Revision ID: 7d3f1a8b2c64
Revises: 5b2e9c4d7a10
Create Date: 2026-10-17 10:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "7d3f1a8b2c64"
down_revision: str | None = "5b2e9c4d7a10"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_index(
        "uq_commission_tiers_active_min_referrals",
        "ambassador_commission_tiers",
        ["min_referrals"],
        unique=True,
        postgresql_where=sa.text("is_active"),
    )

    op.drop_constraint("uq_redeemed_items_idempotency_key", "redeemed_items", type_="unique")
    op.create_unique_constraint(
        "uq_redeemed_items_user_idempotency_key",
        "redeemed_items",
        ["user_id", "idempotency_key"],
    )

    op.add_column(
        "ambassadors",
        sa.Column("total_payouts", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
    )
    op.create_check_constraint(
        "ck_ambassadors_total_payouts_non_negative",
        "ambassadors",
        "total_payouts >= 0",
    )

    op.create_table(
        "payout_requests",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payout_method", sa.String(32), nullable=False),
        sa.Column(
            "payout_details",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("transaction_id", sa.String(128), nullable=True),
        sa.Column("processed_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_payout_requests_amount_positive"),
        sa.CheckConstraint(
            "status IN ('pending','approved','processed','rejected')",
            name="ck_payout_requests_status",
        ),
        sa.CheckConstraint(
            "payout_method IN ('paypal','bank_transfer','manual')",
            name="ck_payout_requests_method",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["ambassadors.user_id"]),
        sa.ForeignKeyConstraint(["processed_by"], ["profiles.id"]),
    )
    op.create_index("idx_payout_requests_user_requested", "payout_requests", ["user_id", "requested_at"])
    op.create_index("idx_payout_requests_status", "payout_requests", ["status"])


def downgrade() -> None:
    op.drop_table("payout_requests")
    op.drop_constraint("ck_ambassadors_total_payouts_non_negative", "ambassadors", type_="check")
    op.drop_column("ambassadors", "total_payouts")
    op.drop_constraint("uq_redeemed_items_user_idempotency_key", "redeemed_items", type_="unique")
    op.create_unique_constraint("uq_redeemed_items_idempotency_key", "redeemed_items", ["idempotency_key"])
    op.drop_index("uq_commission_tiers_active_min_referrals", table_name="ambassador_commission_tiers")
