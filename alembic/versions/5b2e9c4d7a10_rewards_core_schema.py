"""rewards_core_schema

Revision ID: 5b2e9c4d7a10
Revises:
Create Date: 2026-10-16 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5b2e9c4d7a10"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

DEFAULT_TIERS = (
    ("Bronze", 0, "10.00", '{"US": "12.00", "CA": "11.00", "GB": "11.00"}'),
    ("Silver", 25, "15.00", '{"US": "17.00", "CA": "16.00", "GB": "16.00"}'),
    ("Gold", 100, "20.00", '{"US": "22.00", "CA": "21.00", "GB": "21.00"}'),
    ("Platinum", 250, "25.00", '{"US": "27.00", "CA": "26.00", "GB": "26.00"}'),
)


def _jsonb_column(name: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.JSONB(astext_type=sa.Text()),
        nullable=False,
        server_default=sa.text("'{}'::jsonb"),
    )


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("username", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("country", sa.String(2), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default=sa.text("'USD'")),
        sa.Column("role", sa.String(16), nullable=False, server_default=sa.text("'user'")),
        sa.Column("is_suspended", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("points >= 0", name="ck_profiles_points_non_negative"),
        sa.CheckConstraint("role IN ('user','moderator','ambassador','admin')", name="ck_profiles_role"),
    )
    op.create_index("idx_profiles_country", "profiles", ["country"])
    op.create_index("idx_profiles_points", "profiles", ["points"])

    op.create_table(
        "ambassador_commission_tiers",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("min_referrals", sa.Integer(), nullable=False),
        sa.Column("global_rate", sa.Numeric(5, 2), nullable=False),
        _jsonb_column("country_rates"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("min_referrals >= 0", name="ck_commission_tiers_min_referrals_non_negative"),
        sa.CheckConstraint(
            "global_rate >= 0 AND global_rate <= 100",
            name="ck_commission_tiers_global_rate_range",
        ),
    )
    op.create_index("idx_commission_tiers_min_referrals", "ambassador_commission_tiers", ["min_referrals"])

    op.create_table(
        "ambassadors",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("country", sa.String(2), nullable=False),
        sa.Column("commission_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("total_referrals", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_earnings", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("total_referrals >= 0", name="ck_ambassadors_total_referrals_non_negative"),
        sa.CheckConstraint("total_earnings >= 0", name="ck_ambassadors_total_earnings_non_negative"),
        sa.CheckConstraint(
            "commission_rate >= 0 AND commission_rate <= 100",
            name="ck_ambassadors_commission_rate_range",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_index(
        "idx_ambassadors_country_active_earnings",
        "ambassadors",
        ["country", "is_active", "total_earnings"],
    )

    op.create_table(
        "ambassador_referrals",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("ambassador_user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("referred_user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["ambassador_user_id"], ["ambassadors.user_id"]),
        sa.ForeignKeyConstraint(["referred_user_id"], ["profiles.id"]),
        sa.UniqueConstraint("referred_user_id", name="uq_ambassador_referrals_referred_user"),
    )
    op.create_index(
        "idx_ambassador_referrals_ambassador_created",
        "ambassador_referrals",
        ["ambassador_user_id", "created_at"],
    )

    op.create_table(
        "ambassador_commission_events",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("ambassador_user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("referred_user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("country", sa.String(2), nullable=True),
        sa.Column("revenue_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("commission_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("commission_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("idempotency_key", sa.String(96), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["ambassador_user_id"], ["ambassadors.user_id"]),
        sa.UniqueConstraint("idempotency_key", name="uq_ambassador_commission_events_idempotency_key"),
    )
    op.create_index(
        "idx_commission_events_ambassador_created",
        "ambassador_commission_events",
        ["ambassador_user_id", "created_at"],
    )

    op.create_table(
        "country_metrics",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("country", sa.String(2), nullable=False),
        sa.Column("metric_date", sa.Date(), nullable=False),
        sa.Column("ad_revenue", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("user_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("new_users", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("country", "metric_date", name="uq_country_metrics_country_date"),
    )

    op.create_table(
        "user_daily_rewards",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("last_spin_date", sa.Date(), nullable=True),
        sa.Column("last_trivia_date", sa.Date(), nullable=True),
        sa.Column("last_watch_date", sa.Date(), nullable=True),
        sa.Column("last_trivia_correct_date", sa.Date(), nullable=True),
        sa.Column("trivia_streak", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("spin_streak", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_spins", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_trivia_completed", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_ads_watched", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("trivia_streak >= 0", name="ck_user_daily_rewards_trivia_streak_non_negative"),
        sa.CheckConstraint("spin_streak >= 0", name="ck_user_daily_rewards_spin_streak_non_negative"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("user_id"),
    )

    op.create_table(
        "reward_claims",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("action", sa.String(16), nullable=False),
        sa.Column("claim_date", sa.Date(), nullable=False),
        sa.Column("points_awarded", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("action IN ('SPIN','TRIVIA','WATCH_AD')", name="ck_reward_claims_action"),
        sa.CheckConstraint("points_awarded >= 0", name="ck_reward_claims_points_non_negative"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"]),
        sa.UniqueConstraint("user_id", "action", "claim_date", name="uq_reward_claims_user_action_date"),
    )

    op.create_table(
        "points_ledger",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("entry_type", sa.String(32), nullable=False),
        sa.Column("direction", sa.String(8), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("balance_after", sa.Integer(), nullable=False),
        sa.Column("source", sa.String(32), nullable=False),
        sa.Column("idempotency_key", sa.String(96), nullable=False),
        _jsonb_column("metadata"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_points_ledger_amount_positive"),
        sa.CheckConstraint("balance_after >= 0", name="ck_points_ledger_balance_non_negative"),
        sa.CheckConstraint("direction IN ('CREDIT','DEBIT')", name="ck_points_ledger_direction"),
        sa.CheckConstraint(
            "entry_type IN ('SPIN','TRIVIA','WATCH_AD','REDEMPTION','REDEMPTION_REFUND','ADMIN_ADJUSTMENT')",
            name="ck_points_ledger_entry_type",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"]),
        sa.UniqueConstraint("idempotency_key", name="uq_points_ledger_idempotency_key"),
    )
    op.create_index("idx_points_ledger_user_created", "points_ledger", ["user_id", "created_at"])
    op.create_index("idx_points_ledger_type", "points_ledger", ["entry_type"])
    op.execute(
        """
        CREATE OR REPLACE FUNCTION fn_points_ledger_append_only()
        RETURNS trigger
        LANGUAGE plpgsql
        AS $$
        BEGIN
            RAISE EXCEPTION 'points_ledger is append-only';
        END;
        $$;
        """
    )
    op.execute(
        """
        CREATE TRIGGER trg_points_ledger_append_only
        BEFORE UPDATE OR DELETE ON points_ledger
        FOR EACH ROW
        EXECUTE FUNCTION fn_points_ledger_append_only();
        """
    )

    op.create_table(
        "trivia_questions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("options", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("correct_answer", sa.Integer(), nullable=False),
        sa.Column("difficulty", sa.String(8), nullable=False),
        sa.Column("category", sa.String(64), nullable=False, server_default=sa.text("'general'")),
        sa.Column("country", sa.String(2), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("difficulty IN ('easy','medium','hard')", name="ck_trivia_questions_difficulty"),
        sa.CheckConstraint("correct_answer >= 0", name="ck_trivia_questions_correct_answer_non_negative"),
    )
    op.create_index("idx_trivia_questions_active_country", "trivia_questions", ["is_active", "country"])

    op.create_table(
        "trivia_issues",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("question_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("question_snapshot", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("selected_answer", sa.Integer(), nullable=True),
        sa.Column("is_correct", sa.Boolean(), nullable=True),
        sa.Column("points_earned", sa.Integer(), nullable=True),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("answered_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('ISSUED','ANSWERED')", name="ck_trivia_issues_status"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"]),
        sa.ForeignKeyConstraint(["question_id"], ["trivia_questions.id"]),
        sa.UniqueConstraint("user_id", "issue_date", name="uq_trivia_issues_user_date"),
    )

    op.create_table(
        "reward_store_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("item_type", sa.String(32), nullable=False),
        sa.Column("points_cost", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default=sa.text("'USD'")),
        sa.Column("stock_quantity", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("points_cost > 0", name="ck_reward_store_items_points_cost_positive"),
        sa.CheckConstraint(
            "stock_quantity IS NULL OR stock_quantity >= 0",
            name="ck_reward_store_items_stock_non_negative",
        ),
        sa.CheckConstraint(
            "item_type IN ('gift_card','subscription_code','paypal_payout','bank_transfer','physical_item')",
            name="ck_reward_store_items_item_type",
        ),
    )
    op.create_index("idx_reward_store_items_active_cost", "reward_store_items", ["is_active", "points_cost"])

    op.create_table(
        "redeemed_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("item_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("item_name", sa.Text(), nullable=False),
        sa.Column("points_cost", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("original_points_cost", sa.Integer(), nullable=False),
        sa.Column("original_currency", sa.String(3), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        _jsonb_column("fulfillment_details"),
        sa.Column("idempotency_key", sa.String(96), nullable=False),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("points_cost > 0", name="ck_redeemed_items_points_cost_positive"),
        sa.CheckConstraint(
            "status IN ('pending_fulfillment','fulfilled','cancelled')",
            name="ck_redeemed_items_status",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"]),
        sa.ForeignKeyConstraint(["item_id"], ["reward_store_items.id"]),
        sa.UniqueConstraint("idempotency_key", name="uq_redeemed_items_idempotency_key"),
    )
    op.create_index("idx_redeemed_items_user_redeemed_at", "redeemed_items", ["user_id", "redeemed_at"])
    op.create_index("idx_redeemed_items_status", "redeemed_items", ["status"])

    op.create_table(
        "redemption_status_events",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("redemption_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("from_status", sa.String(32), nullable=True),
        sa.Column("to_status", sa.String(32), nullable=False),
        sa.Column("actor_user_id", postgresql.UUID(as_uuid=True), nullable=True),
        _jsonb_column("details"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["redemption_id"], ["redeemed_items.id"]),
    )
    op.create_index(
        "idx_redemption_status_events_redemption_created",
        "redemption_status_events",
        ["redemption_id", "created_at"],
    )

    op.create_table(
        "currency_exchange_rates",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("from_currency", sa.String(3), nullable=False),
        sa.Column("to_currency", sa.String(3), nullable=False),
        sa.Column("rate", sa.Numeric(18, 6), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("rate > 0", name="ck_exchange_rates_rate_positive"),
        sa.UniqueConstraint("from_currency", "to_currency", name="uq_exchange_rates_pair"),
    )

    op.create_table(
        "app_settings",
        sa.Column("category", sa.String(64), primary_key=True),
        _jsonb_column("settings"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )

    op.create_table(
        "admin_audit_log",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("actor_user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("action", sa.String(64), nullable=False),
        sa.Column("target_type", sa.String(64), nullable=False),
        sa.Column("target_id", sa.String(64), nullable=False),
        _jsonb_column("payload"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_admin_audit_log_actor_created", "admin_audit_log", ["actor_user_id", "created_at"])
    op.create_index("idx_admin_audit_log_target", "admin_audit_log", ["target_type", "target_id"])

    op.create_table(
        "payment_transactions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("gateway", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("purpose", sa.String(64), nullable=False),
        sa.Column("external_reference", sa.String(128), nullable=True),
        sa.Column("redirect_url", sa.Text(), nullable=True),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        _jsonb_column("metadata"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_payment_transactions_amount_positive"),
        sa.CheckConstraint("status IN ('pending','completed','failed')", name="ck_payment_transactions_status"),
        sa.CheckConstraint("gateway IN ('stripe','paystack')", name="ck_payment_transactions_gateway"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"]),
    )
    op.create_index("idx_payment_transactions_user_created", "payment_transactions", ["user_id", "created_at"])

    for name, min_referrals, global_rate, country_rates in DEFAULT_TIERS:
        op.execute(
            sa.text(
                """
                INSERT INTO ambassador_commission_tiers
                    (id, name, min_referrals, global_rate, country_rates, is_active, created_at, updated_at)
                VALUES
                    (gen_random_uuid(), :name, :min_referrals, CAST(:global_rate AS numeric), CAST(:country_rates AS jsonb),
                     true, now(), now())
                """
            ).bindparams(
                name=name,
                min_referrals=min_referrals,
                global_rate=global_rate,
                country_rates=country_rates,
            )
        )


def downgrade() -> None:
    op.drop_table("payment_transactions")
    op.drop_table("admin_audit_log")
    op.drop_table("app_settings")
    op.drop_table("currency_exchange_rates")
    op.drop_table("redemption_status_events")
    op.drop_table("redeemed_items")
    op.drop_table("reward_store_items")
    op.drop_table("trivia_issues")
    op.drop_table("trivia_questions")
    op.execute("DROP TRIGGER IF EXISTS trg_points_ledger_append_only ON points_ledger;")
    op.execute("DROP FUNCTION IF EXISTS fn_points_ledger_append_only();")
    op.drop_table("points_ledger")
    op.drop_table("reward_claims")
    op.drop_table("user_daily_rewards")
    op.drop_table("country_metrics")
    op.drop_table("ambassador_commission_events")
    op.drop_table("ambassador_referrals")
    op.drop_table("ambassadors")
    op.drop_table("ambassador_commission_tiers")
    op.drop_table("profiles")
