"""Response models and builders shared by several routers."""

from datetime import datetime
from typing import List, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.core.models import RatingSummary, SwapView, UserSummary
from skillswap.db.models import SwapDB, UserDB, UserSkillDB


class SkillEntry(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    level: Optional[str] = None
    priority: Optional[str] = None


class Availability(BaseModel):
    weekdays: bool = False
    weekends: bool = False
    evenings: bool = False
    custom_schedule: Optional[str] = None


class UserProfile(BaseModel):
    """Public profile. Email and moderation fields are left out."""
    id: str
    name: str
    location: Optional[str] = None
    profile_photo: Optional[str] = None
    is_public: bool
    role: str
    availability: Availability
    rating: RatingSummary
    skills_offered: List[SkillEntry] = []
    skills_wanted: List[SkillEntry] = []
    created_at: datetime


class PrivateUserProfile(UserProfile):
    """Profile as seen by its owner or an admin."""
    email: str
    is_banned: bool = False
    ban_reason: Optional[str] = None
    banned_at: Optional[datetime] = None


class Pagination(BaseModel):
    current: int
    total: int
    has_next: bool
    has_prev: bool


class SwapListResponse(BaseModel):
    swaps: List[SwapView]
    pagination: Pagination


def build_pagination(page: int, limit: int, returned: int, total: int) -> Pagination:
    offset = (page - 1) * limit
    return Pagination(
        current=page,
        total=(total + limit - 1) // limit,
        has_next=offset + returned < total,
        has_prev=page > 1,
    )


def skill_to_entry(skill: UserSkillDB) -> SkillEntry:
    return SkillEntry(
        id=skill.id,
        name=skill.name,
        description=skill.description,
        level=skill.level,
        priority=skill.priority,
    )


async def load_skills(
    db: AsyncSession, user_ids: Sequence[str]
) -> dict[str, list[UserSkillDB]]:
    """All skill entries for the given users, keyed by user id."""
    skills: dict[str, list[UserSkillDB]] = {uid: [] for uid in user_ids}
    if not user_ids:
        return skills
    result = await db.execute(
        select(UserSkillDB)
        .where(UserSkillDB.user_id.in_(list(user_ids)))
        .order_by(UserSkillDB.created_at)
    )
    for skill in result.scalars().all():
        skills[skill.user_id].append(skill)
    return skills


def build_profile(
    user: UserDB,
    skills: Sequence[UserSkillDB],
    private: bool = False,
) -> UserProfile:
    data = dict(
        id=user.id,
        name=user.name,
        location=user.location,
        profile_photo=user.profile_photo,
        is_public=user.is_public,
        role=user.role,
        availability=Availability(**(user.availability or {})),
        rating=RatingSummary(average=user.rating_average, count=user.rating_count),
        skills_offered=[skill_to_entry(s) for s in skills if s.kind == "offered"],
        skills_wanted=[skill_to_entry(s) for s in skills if s.kind == "wanted"],
        created_at=user.created_at,
    )
    if private:
        return PrivateUserProfile(
            **data,
            email=user.email,
            is_banned=user.is_banned,
            ban_reason=user.ban_reason,
            banned_at=user.banned_at,
        )
    return UserProfile(**data)


async def profile_for(db: AsyncSession, user: UserDB, private: bool = False) -> UserProfile:
    skills = await load_skills(db, [user.id])
    return build_profile(user, skills[user.id], private=private)


async def load_people(
    db: AsyncSession, swaps: Sequence[SwapDB]
) -> dict[str, UserSummary]:
    """Name and photo of every participant in ``swaps``, in one query."""
    user_ids = {s.requester_id for s in swaps} | {s.recipient_id for s in swaps}
    if not user_ids:
        return {}
    result = await db.execute(
        select(UserDB.id, UserDB.name, UserDB.profile_photo).where(UserDB.id.in_(list(user_ids)))
    )
    return {
        row.id: UserSummary(id=row.id, name=row.name, profile_photo=row.profile_photo)
        for row in result
    }


async def swap_view(db: AsyncSession, swap: SwapDB) -> SwapView:
    return SwapView.from_record(swap, await load_people(db, [swap]))


async def swap_list_response(
    db: AsyncSession, swaps: Sequence[SwapDB], page: int, limit: int, total: int
) -> SwapListResponse:
    people = await load_people(db, swaps)
    return SwapListResponse(
        swaps=[SwapView.from_record(s, people) for s in swaps],
        pagination=build_pagination(page, limit, len(swaps), total),
    )
