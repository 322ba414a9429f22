"""
Admin API endpoints.

Moderation (ban/unban, removing skill entries), swap oversight and
platform-wide messages. Every route requires the admin role.
"""

import logging
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.api.deps import get_current_admin
from skillswap.api.v1.schemas import (
    Pagination,
    PrivateUserProfile,
    SwapListResponse,
    build_pagination,
    build_profile,
    load_skills,
    swap_list_response,
)
from skillswap.config import settings
from skillswap.core.models import SwapStatus
from skillswap.db.database import get_db
from skillswap.db.models import (
    PlatformMessageDB,
    SwapDB,
    UserDB,
    UserSkillDB,
    utcnow,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


# === Pydantic Schemas ===

class AdminUserListResponse(BaseModel):
    users: List[PrivateUserProfile]
    pagination: Pagination


class BanRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class SkillRejectRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class PlatformMessageCreate(BaseModel):
    title: str = Field(..., max_length=200)
    content: str
    type: Literal["info", "warning", "update"] = "info"


class PlatformMessageResponse(BaseModel):
    id: str
    title: str
    content: str
    type: str
    sent_by: str
    recipients: int
    created_at: datetime


def message_to_response(message: PlatformMessageDB) -> PlatformMessageResponse:
    return PlatformMessageResponse(
        id=message.id,
        title=message.title,
        content=message.content,
        type=message.message_type,
        sent_by=message.sent_by,
        recipients=message.recipient_count,
        created_at=message.created_at,
    )


async def _get_user_or_404(db: AsyncSession, user_id: str) -> UserDB:
    result = await db.execute(select(UserDB).where(UserDB.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# === Users ===

@router.get("/users", response_model=AdminUserListResponse)
async def list_users(
    search: Optional[str] = Query(None, description="Name or email contains"),
    status: Optional[Literal["active", "banned"]] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=settings.max_page_size),
    admin: UserDB = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """List all users, including private and banned ones."""
    conditions = []
    if search:
        term = f"%{search.strip()}%"
        conditions.append(or_(UserDB.name.ilike(term), UserDB.email.ilike(term)))
    if status == "banned":
        conditions.append(UserDB.is_banned.is_(True))
    elif status == "active":
        conditions.append(UserDB.is_banned.is_(False))

    total = (
        await db.execute(select(func.count(UserDB.id)).where(*conditions))
    ).scalar() or 0
    result = await db.execute(
        select(UserDB)
        .where(*conditions)
        .order_by(UserDB.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    users = result.scalars().all()
    skills = await load_skills(db, [u.id for u in users])
    return AdminUserListResponse(
        users=[build_profile(u, skills[u.id], private=True) for u in users],
        pagination=build_pagination(page, limit, len(users), total),
    )


@router.put("/users/{user_id}/ban", response_model=PrivateUserProfile)
async def ban_user(
    user_id: str,
    body: BanRequest,
    admin: UserDB = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Ban a user. Banned users cannot sign in or receive swap requests."""
    if user_id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot ban yourself",
        )
    user = await _get_user_or_404(db, user_id)

    user.is_banned = True
    user.ban_reason = body.reason
    user.banned_at = utcnow()
    user.banned_by = admin.id
    user.updated_at = utcnow()
    db.add(user)
    await db.flush()

    logger.info("User %s banned by %s", user.id, admin.id)
    skills = await load_skills(db, [user.id])
    return build_profile(user, skills[user.id], private=True)


@router.put("/users/{user_id}/unban", response_model=PrivateUserProfile)
async def unban_user(
    user_id: str,
    admin: UserDB = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Lift a ban."""
    user = await _get_user_or_404(db, user_id)

    user.is_banned = False
    user.ban_reason = None
    user.banned_at = None
    user.banned_by = None
    user.updated_at = utcnow()
    db.add(user)
    await db.flush()

    logger.info("User %s unbanned by %s", user.id, admin.id)
    skills = await load_skills(db, [user.id])
    return build_profile(user, skills[user.id], private=True)


# === Swaps ===

@router.get("/swaps", response_model=SwapListResponse)
async def list_all_swaps(
    status: Optional[SwapStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=settings.max_page_size),
    admin: UserDB = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """All swaps on the platform, newest first."""
    conditions = []
    if status:
        conditions.append(SwapDB.status == status.value)

    total = (
        await db.execute(select(func.count(SwapDB.id)).where(*conditions))
    ).scalar() or 0
    result = await db.execute(
        select(SwapDB)
        .where(*conditions)
        .order_by(SwapDB.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return await swap_list_response(db, result.scalars().all(), page, limit, total)


# === Content moderation ===

@router.put("/skills/{skill_id}/reject")
async def reject_skill(
    skill_id: str,
    body: SkillRejectRequest,
    admin: UserDB = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Remove an inappropriate skill entry from its owner's catalog.

    Swaps keep their own snapshot of the skill and are not affected.
    """
    result = await db.execute(select(UserSkillDB).where(UserSkillDB.id == skill_id))
    skill = result.scalar_one_or_none()
    if not skill:
        raise HTTPException(status_code=404, detail="Skill not found")

    await db.delete(skill)
    await db.flush()

    logger.info(
        "Skill %s (%r) of user %s rejected by %s: %s",
        skill.id, skill.name, skill.user_id, admin.id, body.reason,
    )
    return {
        "message": "Skill rejected successfully",
        "skill_id": skill_id,
        "reason": body.reason,
    }


# === Platform messages ===

@router.post("/messages", response_model=PlatformMessageResponse, status_code=201)
async def send_platform_message(
    body: PlatformMessageCreate,
    admin: UserDB = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Broadcast a message to every non-banned user."""
    title = body.title.strip()
    content = body.content.strip()
    if not title or not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Title and content are required",
        )

    recipients = (
        await db.execute(
            select(func.count(UserDB.id)).where(UserDB.is_banned.is_(False))
        )
    ).scalar() or 0

    message = PlatformMessageDB(
        title=title,
        content=content,
        message_type=body.type,
        sent_by=admin.id,
        recipient_count=recipients,
        created_at=utcnow(),
    )
    db.add(message)
    await db.flush()

    logger.info("Platform message %s sent by %s to %d users", message.id, admin.id, recipients)
    return message_to_response(message)
