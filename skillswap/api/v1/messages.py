"""Platform messages, as read by any signed-in user."""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.api.deps import get_current_user
from skillswap.api.v1.admin import PlatformMessageResponse, message_to_response
from skillswap.db.database import get_db
from skillswap.db.models import PlatformMessageDB, UserDB

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("", response_model=List[PlatformMessageResponse])
async def list_platform_messages(
    limit: int = Query(20, ge=1, le=100),
    user: UserDB = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Most recent platform messages first."""
    result = await db.execute(
        select(PlatformMessageDB)
        .order_by(PlatformMessageDB.created_at.desc())
        .limit(limit)
    )
    return [message_to_response(m) for m in result.scalars().all()]
