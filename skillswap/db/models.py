"""
SQLAlchemy ORM models for SkillSwap.

Tables:
- users: Accounts, profile, moderation flags and aggregate rating
- user_skills: Skills a user offers or wants, one row per entry
- swaps: Swap requests with skill snapshots, lifecycle timestamps and feedback
- platform_messages: Admin broadcast messages
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from skillswap.db.database import Base


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def generate_uuid() -> str:
    """Generate a UUID string."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (TIMESTAMP WITHOUT TIME ZONE)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def default_availability() -> dict:
    return {
        "weekdays": False,
        "weekends": False,
        "evenings": False,
        "custom_schedule": None,
    }


class UserDB(Base):
    """
    User accounts with profile and aggregate rating.
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(
        String(254), unique=True, nullable=False, index=True
    )
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    profile_photo: Mapped[Optional[str]] = mapped_column(
        String(512), nullable=True
    )
    availability: Mapped[Optional[dict]] = mapped_column(
        JSONType, nullable=True, default=default_availability
    )
    is_public: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    role: Mapped[str] = mapped_column(
        String(32), default="user", nullable=False
    )  # "admin" or "user"
    is_banned: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    ban_reason: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    banned_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    banned_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    rating_average: Mapped[float] = mapped_column(
        Float, default=0.0, nullable=False
    )
    rating_count: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    password_changed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        Index("ix_users_rating_average", "rating_average"),
    )

    def __repr__(self) -> str:
        return f"<User(email={self.email}, role={self.role})>"


class UserSkillDB(Base):
    """
    A single skill entry in a user's catalog.

    Entries have their own id so edits and deletions never depend on
    list position.
    """
    __tablename__ = "user_skills"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[str] = mapped_column(String(16), nullable=False)  # offered/wanted
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(
        String(500), nullable=True
    )
    level: Mapped[Optional[str]] = mapped_column(
        String(32), nullable=True
    )  # offered: Beginner/Intermediate/Advanced/Expert
    priority: Mapped[Optional[str]] = mapped_column(
        String(16), nullable=True
    )  # wanted: Low/Medium/High
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )

    __table_args__ = (
        Index("ix_user_skills_user_kind", "user_id", "kind"),
        Index("ix_user_skills_name", "name"),
    )


class SwapDB(Base):
    """
    A swap request between two users.

    Skills are stored as snapshots taken at request time. Feedback is
    write-once per side. ``version`` backs optimistic concurrency so two
    writers of the same row cannot both succeed.
    """
    __tablename__ = "swaps"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    requester_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False
    )
    recipient_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False
    )
    requested_skill_name: Mapped[str] = mapped_column(String(100), nullable=False)
    requested_skill_description: Mapped[Optional[str]] = mapped_column(
        String(500), nullable=True
    )
    offered_skill_name: Mapped[str] = mapped_column(String(100), nullable=False)
    offered_skill_description: Mapped[Optional[str]] = mapped_column(
        String(500), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(16), default="pending", nullable=False
    )  # pending/accepted/rejected/cancelled/completed
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    requester_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    requester_comment: Mapped[Optional[str]] = mapped_column(
        String(500), nullable=True
    )
    recipient_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    recipient_comment: Mapped[Optional[str]] = mapped_column(
        String(500), nullable=True
    )
    ratings_applied_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_swaps_requester_status", "requester_id", "status"),
        Index("ix_swaps_recipient_status", "recipient_id", "status"),
        Index("ix_swaps_status_created_at", "status", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Swap(id={self.id}, status={self.status})>"


class PlatformMessageDB(Base):
    """
    Platform-wide message broadcast by an admin.
    """
    __tablename__ = "platform_messages"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    message_type: Mapped[str] = mapped_column(
        String(16), default="info", nullable=False
    )  # info/warning/update
    sent_by: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False
    )
    recipient_count: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )

    __table_args__ = (
        Index("ix_platform_messages_created_at", "created_at"),
    )
