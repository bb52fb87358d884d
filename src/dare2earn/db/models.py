"""ORM models for the Dare2Earn schema.

The tables are created by the Alembic revision ``001_initial_schema``; the
models below mirror it column for column.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    false,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dare2earn.db.base import Base

# SQLite only auto-increments INTEGER PRIMARY KEY columns.
BigIntPK = BigInteger().with_variant(Integer, "sqlite")

Money = Numeric(12, 2)

DARE_STATUSES = ("open", "closed", "completed", "cancelled")
SUBMISSION_TYPES = ("video", "image", "text")
USER_ROLES = ("user", "admin")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Maps to the 'users' table."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('user', 'admin')", name="role"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    profile_pic_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    bio: Mapped[str | None] = mapped_column(String(500), nullable=True)
    wallet_balance: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"), server_default="0")
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="user", server_default="user")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    sessions: Mapped[list[UserSession]] = relationship(
        "UserSession", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class UserSession(Base):
    """Server-side record backing one issued bearer token."""

    __tablename__ = "user_sessions"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    user: Mapped[User] = relationship("User", back_populates="sessions")


# ---------------------------------------------------------------------------
# Dares
# ---------------------------------------------------------------------------


class Category(Base):
    """Taxonomy label for dares. Seeded by migration."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Dare(Base):
    """A challenge users pay to enter."""

    __tablename__ = "dares"
    __table_args__ = (
        CheckConstraint("entry_fee >= 0", name="entry_fee_non_negative"),
        CheckConstraint("start_time < end_time", name="time_window"),
        CheckConstraint("status IN ('open', 'closed', 'completed', 'cancelled')", name="status"),
        CheckConstraint("submission_type IN ('video', 'image', 'text')", name="submission_type"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    created_by_user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False, index=True
    )
    entry_fee: Mapped[Decimal] = mapped_column(Money, nullable=False)
    category_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    prize_pool: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"), server_default="0")
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="open", server_default="open", index=True)
    submission_type: Mapped[str] = mapped_column(
        String(16), nullable=False, default="video", server_default="video"
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    creator: Mapped[User] = relationship("User")
    category: Mapped[Category | None] = relationship("Category")
    participants: Mapped[list[DareParticipant]] = relationship(
        "DareParticipant", back_populates="dare", cascade="all, delete-orphan", passive_deletes=True
    )


class DareParticipant(Base):
    """A user's enrollment in a dare, holding their submission and vote tally."""

    __tablename__ = "dare_participants"
    __table_args__ = (
        UniqueConstraint("dare_id", "user_id", name="uq_dare_participants_dare_user"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    dare_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("dares.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False, index=True)
    submission_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    submission_caption: Mapped[str | None] = mapped_column(Text, nullable=True)
    votes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    dare: Mapped[Dare] = relationship("Dare", back_populates="participants")
    votes: Mapped[list[Vote]] = relationship(
        "Vote", back_populates="participant", cascade="all, delete-orphan", passive_deletes=True
    )


class Vote(Base):
    """One user's vote for one participant's submission."""

    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("dare_participant_id", "voter_user_id", name="uq_votes_participant_voter"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    dare_participant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("dare_participants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    voter_user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    is_boosted_vote: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    participant: Mapped[DareParticipant] = relationship("DareParticipant", back_populates="votes")


# ---------------------------------------------------------------------------
# Ledger and notifications (written by external jobs)
# ---------------------------------------------------------------------------


class Transaction(Base):
    """Monetary ledger entry."""

    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    dare_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("dares.id", ondelete="SET NULL"), nullable=True
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="completed", server_default="completed")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class Notification(Base):
    """User-facing alert."""

    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False, default="system", server_default="system")
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
