"""Initial schema: users, sessions, dares, participation, votes, ledger.

Also seeds the default dare categories.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

DEFAULT_CATEGORIES = [
    ("Fitness", "Physical challenges and workouts"),
    ("Creative", "Art, music, writing and crafts"),
    ("Food", "Cooking and eating challenges"),
    ("Comedy", "Pranks, skits and funny moments"),
    ("Skills", "Learn or show off a skill"),
    ("Social", "Challenges involving friends or strangers"),
]


def upgrade() -> None:
    """Create all tables and seed categories."""
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("password_hash", sa.String(256), nullable=False),
        sa.Column("full_name", sa.String(128), nullable=True),
        sa.Column("phone_number", sa.String(32), nullable=True),
        sa.Column("profile_pic_url", sa.Text(), nullable=True),
        sa.Column("bio", sa.String(500), nullable=True),
        sa.Column("wallet_balance", sa.Numeric(12, 2), server_default="0", nullable=False),
        sa.Column("email_verified", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("role", sa.String(16), server_default="user", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sa.CheckConstraint("role IN ('user', 'admin')", name="ck_users_role"),
    )

    # --- user_sessions ---
    op.create_table(
        "user_sessions",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_user_sessions"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_user_sessions_user_id_users", ondelete="CASCADE"
        ),
        sa.UniqueConstraint("token_hash", name="uq_user_sessions_token_hash"),
    )
    op.create_index("ix_user_sessions_user_id", "user_sessions", ["user_id"])
    op.create_index("ix_user_sessions_expires_at", "user_sessions", ["expires_at"])

    # --- categories ---
    categories = op.create_table(
        "categories",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_categories"),
        sa.UniqueConstraint("name", name="uq_categories_name"),
    )

    # --- dares ---
    op.create_table(
        "dares",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("created_by_user_id", sa.BigInteger(), nullable=False),
        sa.Column("entry_fee", sa.Numeric(12, 2), nullable=False),
        sa.Column("category_id", sa.BigInteger(), nullable=True),
        sa.Column("prize_pool", sa.Numeric(12, 2), server_default="0", nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(16), server_default="open", nullable=False),
        sa.Column("submission_type", sa.String(16), server_default="video", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_dares"),
        sa.ForeignKeyConstraint(["created_by_user_id"], ["users.id"], name="fk_dares_created_by_user_id_users"),
        sa.ForeignKeyConstraint(
            ["category_id"], ["categories.id"], name="fk_dares_category_id_categories", ondelete="SET NULL"
        ),
        sa.CheckConstraint("entry_fee >= 0", name="ck_dares_entry_fee_non_negative"),
        sa.CheckConstraint("start_time < end_time", name="ck_dares_time_window"),
        sa.CheckConstraint("status IN ('open', 'closed', 'completed', 'cancelled')", name="ck_dares_status"),
        sa.CheckConstraint("submission_type IN ('video', 'image', 'text')", name="ck_dares_submission_type"),
    )
    op.create_index("ix_dares_created_by_user_id", "dares", ["created_by_user_id"])
    op.create_index("ix_dares_category_id", "dares", ["category_id"])
    op.create_index("ix_dares_status", "dares", ["status"])
    op.create_index("ix_dares_created_at", "dares", [sa.text("created_at DESC")])

    # --- dare_participants ---
    op.create_table(
        "dare_participants",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("dare_id", sa.BigInteger(), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("submission_url", sa.Text(), nullable=True),
        sa.Column("submission_caption", sa.Text(), nullable=True),
        sa.Column("votes_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_dare_participants"),
        sa.ForeignKeyConstraint(
            ["dare_id"], ["dares.id"], name="fk_dare_participants_dare_id_dares", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_dare_participants_user_id_users"),
        sa.UniqueConstraint("dare_id", "user_id", name="uq_dare_participants_dare_user"),
    )
    op.create_index("ix_dare_participants_dare_id", "dare_participants", ["dare_id"])
    op.create_index("ix_dare_participants_user_id", "dare_participants", ["user_id"])

    # --- votes ---
    op.create_table(
        "votes",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("dare_participant_id", sa.BigInteger(), nullable=False),
        sa.Column("voter_user_id", sa.BigInteger(), nullable=False),
        sa.Column("is_boosted_vote", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_votes"),
        sa.ForeignKeyConstraint(
            ["dare_participant_id"],
            ["dare_participants.id"],
            name="fk_votes_dare_participant_id_dare_participants",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(["voter_user_id"], ["users.id"], name="fk_votes_voter_user_id_users"),
        sa.UniqueConstraint("dare_participant_id", "voter_user_id", name="uq_votes_participant_voter"),
    )
    op.create_index("ix_votes_dare_participant_id", "votes", ["dare_participant_id"])

    # --- transactions ---
    op.create_table(
        "transactions",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("dare_id", sa.BigInteger(), nullable=True),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(16), server_default="completed", nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_transactions"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_transactions_user_id_users", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["dare_id"], ["dares.id"], name="fk_transactions_dare_id_dares", ondelete="SET NULL"
        ),
    )
    op.create_index("ix_transactions_user_id", "transactions", ["user_id"])

    # --- notifications ---
    op.create_table(
        "notifications",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("type", sa.String(32), server_default="system", nullable=False),
        sa.Column("is_read", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_notifications"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_notifications_user_id_users", ondelete="CASCADE"
        ),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    # --- seed data ---
    op.bulk_insert(
        categories,
        [{"name": name, "description": description} for name, description in DEFAULT_CATEGORIES],
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table("notifications")
    op.drop_table("transactions")
    op.drop_table("votes")
    op.drop_table("dare_participants")
    op.drop_table("dares")
    op.drop_table("categories")
    op.drop_table("user_sessions")
    op.drop_table("users")
