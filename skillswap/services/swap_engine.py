"""
Swap lifecycle engine.

Owns creation validation, the pending/accepted/rejected/cancelled/completed
state machine, write-once feedback and the one-time rating aggregation
that fires when both sides have rated.

Every operation checks all of its preconditions before touching any
record, so a raised error leaves nothing half-written.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from skillswap.core.errors import (
    AlreadySubmittedError,
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from skillswap.core.models import (
    MAX_COMMENT_LENGTH,
    MAX_MESSAGE_LENGTH,
    MAX_RATING,
    MAX_SKILL_DESCRIPTION_LENGTH,
    MAX_SKILL_NAME_LENGTH,
    MIN_RATING,
    SkillRef,
    SwapStatus,
    can_transition,
)
from skillswap.core.protocols import SwapRepository, UserDirectory
from skillswap.db.models import SwapDB, UserDB, generate_uuid, utcnow
from skillswap.services.ratings import apply_rating

logger = logging.getLogger(__name__)


def _clean_skill(skill: SkillRef, label: str) -> SkillRef:
    name = (skill.name or "").strip()
    if not name:
        raise ValidationError(f"{label} skill name is required")
    if len(name) > MAX_SKILL_NAME_LENGTH:
        raise ValidationError(
            f"{label} skill name must be at most {MAX_SKILL_NAME_LENGTH} characters"
        )
    description = skill.description.strip() if skill.description else None
    if description and len(description) > MAX_SKILL_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"{label} skill description must be at most "
            f"{MAX_SKILL_DESCRIPTION_LENGTH} characters"
        )
    return SkillRef(name=name, description=description or None)


def _clean_text(value: Optional[str], max_length: int, label: str) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{label} must be at most {max_length} characters")
    return value or None


def _has_skill(names: Sequence[str], wanted: str) -> bool:
    wanted = wanted.casefold()
    return any(name.strip().casefold() == wanted for name in names)


class SwapEngine:
    """State machine over swap records.

    Args:
        swaps: swap storage
        users: user directory (lookup, skill catalog, rating writes)
        clock: returns "now"; defaults to naive UTC
    """

    def __init__(
        self,
        swaps: SwapRepository,
        users: UserDirectory,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.swaps = swaps
        self.users = users
        self.clock = clock

    # ---------- Creation ----------

    async def create_swap_request(
        self,
        requester_id: str,
        recipient_id: str,
        requested_skill: SkillRef,
        offered_skill: SkillRef,
        message: Optional[str] = None,
    ) -> SwapDB:
        requested = _clean_skill(requested_skill, "Requested")
        offered = _clean_skill(offered_skill, "Offered")
        message = _clean_text(message, MAX_MESSAGE_LENGTH, "Message")

        if requester_id == recipient_id:
            raise ValidationError("You cannot send a swap request to yourself")

        # Both user rows stay locked until commit, so a concurrent request for
        # the same pair (either direction) waits and then sees this swap.
        locked = await self._lock_users(requester_id, recipient_id)
        requester = locked.get(requester_id)
        if requester is None:
            raise NotFoundError("Requester not found")

        recipient = locked.get(recipient_id)
        if recipient is None:
            raise NotFoundError("Recipient not found")
        if recipient.is_banned:
            raise ForbiddenError("Cannot send request to banned user")
        if not recipient.is_public:
            raise ForbiddenError("Cannot send request to private profile")

        if not _has_skill(await self.users.offered_skill_names(requester_id), offered.name):
            raise ValidationError("You must have the offered skill in your profile")
        if not _has_skill(await self.users.offered_skill_names(recipient_id), requested.name):
            raise ValidationError("Recipient does not have the requested skill")

        if await self.swaps.find_active_between(requester_id, recipient_id) is not None:
            raise ConflictError("There is already an active swap request between you two")

        now = self.clock()
        swap = SwapDB(
            id=generate_uuid(),
            requester_id=requester_id,
            recipient_id=recipient_id,
            requested_skill_name=requested.name,
            requested_skill_description=requested.description,
            offered_skill_name=offered.name,
            offered_skill_description=offered.description,
            status=SwapStatus.PENDING.value,
            message=message,
            created_at=now,
            updated_at=now,
        )
        swap = await self.swaps.add(swap)
        logger.info(
            "Swap %s created: %s offers %r to %s for %r",
            swap.id, requester_id, offered.name, recipient_id, requested.name,
        )
        return swap

    # ---------- Reads ----------

    async def get_swap(self, swap_id: str, caller_id: str) -> SwapDB:
        """Return a swap visible to one of its two participants."""
        swap = await self._load(swap_id)
        if caller_id not in (swap.requester_id, swap.recipient_id):
            raise ForbiddenError("Access denied")
        return swap

    async def list_swaps(
        self,
        user_id: str,
        status: Optional[SwapStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[Sequence[SwapDB], int]:
        if page < 1:
            raise ValidationError("Page must be at least 1")
        if limit < 1:
            raise ValidationError("Limit must be at least 1")
        return await self.swaps.list_for_user(
            user_id,
            status=status.value if status else None,
            offset=(page - 1) * limit,
            limit=limit,
        )

    # ---------- Transitions ----------

    async def accept(self, swap_id: str, caller_id: str) -> SwapDB:
        swap = await self._load(swap_id, for_update=True)
        if caller_id != swap.recipient_id:
            raise ForbiddenError("You can only accept requests sent to you")
        return await self._move(swap, SwapStatus.ACCEPTED, "Swap request is not pending")

    async def reject(self, swap_id: str, caller_id: str) -> SwapDB:
        swap = await self._load(swap_id, for_update=True)
        if caller_id != swap.recipient_id:
            raise ForbiddenError("You can only reject requests sent to you")
        return await self._move(swap, SwapStatus.REJECTED, "Swap request is not pending")

    async def cancel(self, swap_id: str, caller_id: str) -> SwapDB:
        swap = await self._load(swap_id, for_update=True)
        if caller_id != swap.requester_id:
            raise ForbiddenError("You can only cancel requests you sent")
        return await self._move(swap, SwapStatus.CANCELLED, "Can only cancel pending requests")

    async def complete(self, swap_id: str, caller_id: str) -> SwapDB:
        # Either party may complete; no counter-confirmation.
        swap = await self._load(swap_id, for_update=True)
        if caller_id not in (swap.requester_id, swap.recipient_id):
            raise ForbiddenError("You can only complete swaps you are part of")
        return await self._move(swap, SwapStatus.COMPLETED, "Can only complete accepted swaps")

    # ---------- Feedback ----------

    async def submit_feedback(
        self,
        swap_id: str,
        caller_id: str,
        rating: int,
        comment: Optional[str] = None,
    ) -> SwapDB:
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise ValidationError("Rating must be an integer between 1 and 5")
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError("Rating must be between 1 and 5")
        comment = _clean_text(comment, MAX_COMMENT_LENGTH, "Comment")

        swap = await self._load(swap_id, for_update=True)
        if caller_id not in (swap.requester_id, swap.recipient_id):
            raise ForbiddenError("You can only give feedback on swaps you are part of")
        if swap.status != SwapStatus.COMPLETED.value:
            raise InvalidStateError("Can only add feedback to completed swaps")

        is_requester = caller_id == swap.requester_id
        current = swap.requester_rating if is_requester else swap.recipient_rating
        if current is not None:
            raise AlreadySubmittedError("You have already provided feedback for this swap")

        other = swap.recipient_rating if is_requester else swap.requester_rating
        completes_pair = other is not None and swap.ratings_applied_at is None

        # Lock both users before writing anything so aggregation is all-or-nothing.
        participants: list[UserDB] = []
        if completes_pair:
            participants = await self._load_participants(swap)

        if is_requester:
            swap.requester_rating = rating
            swap.requester_comment = comment
        else:
            swap.recipient_rating = rating
            swap.recipient_comment = comment

        now = self.clock()
        swap.updated_at = now

        if completes_pair:
            self._aggregate(swap, participants)
            swap.ratings_applied_at = now

        await self.swaps.save(swap)
        for user in participants:
            await self.users.save(user)

        logger.info(
            "Feedback on swap %s from %s side: %d",
            swap.id, "requester" if is_requester else "recipient", rating,
        )
        return swap

    # ---------- Internals ----------

    async def _load(self, swap_id: str, for_update: bool = False) -> SwapDB:
        swap = await self.swaps.get(swap_id, for_update=for_update)
        if swap is None:
            raise NotFoundError("Swap request not found")
        return swap

    async def _move(self, swap: SwapDB, target: SwapStatus, reason: str) -> SwapDB:
        if not can_transition(swap.status, target):
            raise InvalidStateError(reason)

        previous = swap.status
        now = self.clock()
        swap.status = target.value
        swap.updated_at = now
        setattr(swap, f"{target.value}_at", now)
        await self.swaps.save(swap)

        logger.info("Swap %s: %s -> %s", swap.id, previous, target.value)
        return swap

    async def _lock_users(self, *user_ids: str) -> dict[str, UserDB]:
        # Fixed lock order (by id) so two operations sharing users cannot deadlock.
        users = {}
        for user_id in sorted(set(user_ids)):
            user = await self.users.get(user_id, for_update=True)
            if user is not None:
                users[user_id] = user
        return users

    async def _load_participants(self, swap: SwapDB) -> list[UserDB]:
        locked = await self._lock_users(swap.requester_id, swap.recipient_id)
        return list(locked.values())

    def _aggregate(self, swap: SwapDB, participants: list[UserDB]) -> None:
        by_id = {user.id: user for user in participants}
        requester = by_id.get(swap.requester_id)
        recipient = by_id.get(swap.recipient_id)
        if requester is None or recipient is None:
            logger.warning(
                "Swap %s: participant record missing, rating aggregation skipped", swap.id
            )
            participants.clear()
            return

        # The requester's score describes the recipient, and vice versa.
        apply_rating(recipient, swap.requester_rating)
        apply_rating(requester, swap.recipient_rating)
        logger.info(
            "Swap %s ratings applied: %s -> %.3f (%d), %s -> %.3f (%d)",
            swap.id,
            recipient.id, recipient.rating_average, recipient.rating_count,
            requester.id, requester.rating_average, requester.rating_count,
        )
