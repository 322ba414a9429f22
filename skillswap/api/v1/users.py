"""
User directory API endpoints.

Provides endpoints for:
- Browsing public users by skill and location
- Viewing a profile
- Managing the current user's offered/wanted skills
- Updating availability
"""

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.api.deps import get_current_user, get_optional_user
from skillswap.api.v1.schemas import (
    Availability,
    Pagination,
    SkillEntry,
    UserProfile,
    build_pagination,
    build_profile,
    load_skills,
    skill_to_entry,
)
from skillswap.config import settings
from skillswap.db.database import get_db
from skillswap.db.models import UserDB, UserSkillDB, utcnow

router = APIRouter(prefix="/users", tags=["users"])

SkillKind = Literal["offered", "wanted"]

_LEVELS = ("Beginner", "Intermediate", "Advanced", "Expert")
_PRIORITIES = ("Low", "Medium", "High")


# ---------- Schemas ----------

class SkillCreate(BaseModel):
    name: str = Field(..., max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    level: Optional[str] = None
    priority: Optional[str] = None


class SkillUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    level: Optional[str] = None
    priority: Optional[str] = None


class BrowseResponse(BaseModel):
    users: List[UserProfile]
    pagination: Pagination


def _clean_skill_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Skill name is required",
        )
    return name


def _check_level_priority(kind: str, level: Optional[str], priority: Optional[str]) -> None:
    if level is not None and (kind != "offered" or level not in _LEVELS):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Level applies to offered skills and must be one of {', '.join(_LEVELS)}",
        )
    if priority is not None and (kind != "wanted" or priority not in _PRIORITIES):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Priority applies to wanted skills and must be one of {', '.join(_PRIORITIES)}",
        )


async def _get_own_skill(
    db: AsyncSession, user: UserDB, kind: str, skill_id: str
) -> UserSkillDB:
    result = await db.execute(
        select(UserSkillDB).where(
            UserSkillDB.id == skill_id,
            UserSkillDB.user_id == user.id,
            UserSkillDB.kind == kind,
        )
    )
    skill = result.scalar_one_or_none()
    if not skill:
        raise HTTPException(status_code=404, detail="Skill not found")
    return skill


# ---------- Browse / profile ----------

@router.get("/browse", response_model=BrowseResponse)
async def browse_users(
    skill: Optional[str] = Query(None, description="Offered or wanted skill name contains"),
    location: Optional[str] = Query(None, description="Location contains"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db),
):
    """
    List public, non-banned users.

    Ordered by rating average (highest first), then newest.
    """
    conditions = [UserDB.is_public.is_(True), UserDB.is_banned.is_(False)]
    if skill:
        matching = select(UserSkillDB.user_id).where(
            UserSkillDB.name.ilike(f"%{skill.strip()}%")
        )
        conditions.append(UserDB.id.in_(matching))
    if location:
        conditions.append(UserDB.location.ilike(f"%{location.strip()}%"))

    total = (
        await db.execute(select(func.count(UserDB.id)).where(*conditions))
    ).scalar() or 0
    result = await db.execute(
        select(UserDB)
        .where(*conditions)
        .order_by(UserDB.rating_average.desc(), UserDB.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    users = result.scalars().all()
    skills = await load_skills(db, [u.id for u in users])

    return BrowseResponse(
        users=[build_profile(u, skills[u.id]) for u in users],
        pagination=build_pagination(page, limit, len(users), total),
    )


@router.get("/{user_id}", response_model=UserProfile)
async def get_user_profile(
    user_id: str,
    viewer: Optional[UserDB] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a user's public profile. Private profiles are visible to their owner only."""
    result = await db.execute(select(UserDB).where(UserDB.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if not user.is_public and (viewer is None or viewer.id != user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Profile is private",
        )
    skills = await load_skills(db, [user.id])
    return build_profile(user, skills[user.id])


# ---------- Skill catalog ----------

@router.post("/skills/{kind}", response_model=SkillEntry, status_code=201)
async def add_skill(
    kind: SkillKind,
    body: SkillCreate,
    user: UserDB = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Add an offered or wanted skill to the current user's catalog."""
    name = _clean_skill_name(body.name)
    _check_level_priority(kind, body.level, body.priority)

    skill = UserSkillDB(
        user_id=user.id,
        kind=kind,
        name=name,
        description=body.description.strip() if body.description else None,
        level=(body.level or "Intermediate") if kind == "offered" else None,
        priority=(body.priority or "Medium") if kind == "wanted" else None,
        created_at=utcnow(),
    )
    db.add(skill)
    await db.flush()
    return skill_to_entry(skill)


@router.put("/skills/{kind}/{skill_id}", response_model=SkillEntry)
async def update_skill(
    kind: SkillKind,
    skill_id: str,
    body: SkillUpdate,
    user: UserDB = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update one of the current user's skill entries."""
    skill = await _get_own_skill(db, user, kind, skill_id)
    _check_level_priority(kind, body.level, body.priority)

    if body.name is not None:
        skill.name = _clean_skill_name(body.name)
    if body.description is not None:
        skill.description = body.description.strip() or None
    if body.level is not None:
        skill.level = body.level
    if body.priority is not None:
        skill.priority = body.priority

    db.add(skill)
    await db.flush()
    return skill_to_entry(skill)


@router.delete("/skills/{kind}/{skill_id}", status_code=204)
async def delete_skill(
    kind: SkillKind,
    skill_id: str,
    user: UserDB = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Remove one of the current user's skill entries."""
    skill = await _get_own_skill(db, user, kind, skill_id)
    await db.delete(skill)
    await db.flush()


@router.put("/availability", response_model=Availability)
async def update_availability(
    body: Availability,
    user: UserDB = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Replace the current user's availability."""
    if body.custom_schedule is not None and len(body.custom_schedule) > 200:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Custom schedule must be at most 200 characters",
        )
    user.availability = body.model_dump()
    user.updated_at = utcnow()
    db.add(user)
    await db.flush()
    return Availability(**user.availability)
