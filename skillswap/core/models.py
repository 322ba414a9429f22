"""
Core data models for the swap lifecycle.

Status enum, the transition table, and the serialized form of a swap
shared by the engine, the API layer and tests.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Mapping, Optional, TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from skillswap.db.models import SwapDB


MAX_SKILL_NAME_LENGTH = 100
MAX_SKILL_DESCRIPTION_LENGTH = 500
MAX_MESSAGE_LENGTH = 1000
MAX_COMMENT_LENGTH = 500
MIN_RATING = 1
MAX_RATING = 5


class SwapStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Allowed moves; rejected, cancelled and completed are terminal.
TRANSITIONS: dict[SwapStatus, frozenset[SwapStatus]] = {
    SwapStatus.PENDING: frozenset({
        SwapStatus.ACCEPTED,
        SwapStatus.REJECTED,
        SwapStatus.CANCELLED,
    }),
    SwapStatus.ACCEPTED: frozenset({SwapStatus.COMPLETED}),
    SwapStatus.REJECTED: frozenset(),
    SwapStatus.CANCELLED: frozenset(),
    SwapStatus.COMPLETED: frozenset(),
}

# Statuses that block a new request between the same two users
ACTIVE_STATUSES = (SwapStatus.PENDING, SwapStatus.ACCEPTED)


def can_transition(current: SwapStatus | str, target: SwapStatus | str) -> bool:
    """Return True if a swap may move from ``current`` to ``target``."""
    return SwapStatus(target) in TRANSITIONS[SwapStatus(current)]


class SkillRef(BaseModel):
    """Snapshot of a skill as named in a swap request."""
    name: str
    description: Optional[str] = None


class UserSummary(BaseModel):
    """The other party as shown next to a swap."""
    id: str
    name: str
    profile_photo: Optional[str] = None


class Feedback(BaseModel):
    requester_rating: Optional[int] = None
    requester_comment: Optional[str] = None
    recipient_rating: Optional[int] = None
    recipient_comment: Optional[str] = None


class SwapView(BaseModel):
    """Serialized swap, as returned by the API."""
    id: str
    requester_id: str
    recipient_id: str
    requested_skill: SkillRef
    offered_skill: SkillRef
    status: SwapStatus
    message: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    accepted_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    feedback: Feedback
    requester: Optional[UserSummary] = None
    recipient: Optional[UserSummary] = None

    @classmethod
    def from_record(
        cls,
        swap: "SwapDB",
        people: Optional[Mapping[str, UserSummary]] = None,
    ) -> "SwapView":
        people = people or {}
        return cls(
            id=swap.id,
            requester_id=swap.requester_id,
            recipient_id=swap.recipient_id,
            requester=people.get(swap.requester_id),
            recipient=people.get(swap.recipient_id),
            requested_skill=SkillRef(
                name=swap.requested_skill_name,
                description=swap.requested_skill_description,
            ),
            offered_skill=SkillRef(
                name=swap.offered_skill_name,
                description=swap.offered_skill_description,
            ),
            status=SwapStatus(swap.status),
            message=swap.message,
            created_at=swap.created_at,
            updated_at=swap.updated_at,
            accepted_at=swap.accepted_at,
            rejected_at=swap.rejected_at,
            cancelled_at=swap.cancelled_at,
            completed_at=swap.completed_at,
            feedback=Feedback(
                requester_rating=swap.requester_rating,
                requester_comment=swap.requester_comment,
                recipient_rating=swap.recipient_rating,
                recipient_comment=swap.recipient_comment,
            ),
        )


class RatingSummary(BaseModel):
    average: float = 0.0
    count: int = 0
