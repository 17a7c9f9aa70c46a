"""ORM models for users, profiles and the referral ledger.

Ids are UUID strings generated application-side so the schema runs unchanged
on PostgreSQL and SQLite. Referral events and claims are append-only; no code
path updates or deletes them.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from questline.db.base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Maps to the 'users' table."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    password: Mapped[str] = mapped_column(Text, nullable=False)  # argon2id hash
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    profile: Mapped[UserProfile | None] = relationship("UserProfile", back_populates="user", uselist=False)


class UserProfile(Base):
    """XP and quest counters. `level` is always derived from `xp` on write."""

    __tablename__ = "user_profiles"
    __table_args__ = (CheckConstraint("xp >= 0", name="ck_user_profiles_xp_non_negative"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False,
    )
    display_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    quests_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    social_profiles: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )

    user: Mapped[User] = relationship("User", back_populates="profile")


# ---------------------------------------------------------------------------
# Referrals
# ---------------------------------------------------------------------------


class ReferralEvent(Base):
    """One row per successful referral attribution."""

    __tablename__ = "referral_events"
    __table_args__ = (
        UniqueConstraint("referrer_user_id", "referred_user_id", name="uq_referral_events_pair"),
        Index("idx_referral_events_referrer", "referrer_user_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    referrer_user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    referred_user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class ReferralClaim(Base):
    """Reward payout ledger. `amount` is tTRUST x 100."""

    __tablename__ = "referral_claims"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_referral_claims_amount_positive"),
        Index("idx_referral_claims_user", "user_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    referral_count: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
