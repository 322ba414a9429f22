"""
Swap API endpoints.

Thin HTTP layer over SwapEngine: create, list, view, the four status
transitions and feedback. Every response names both participants.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, StrictInt
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.api.deps import get_current_user, get_swap_engine
from skillswap.api.v1.schemas import SwapListResponse, swap_list_response, swap_view
from skillswap.config import settings
from skillswap.core.models import SkillRef, SwapStatus, SwapView
from skillswap.db.database import get_db
from skillswap.db.models import UserDB
from skillswap.services.swap_engine import SwapEngine

router = APIRouter(prefix="/swaps", tags=["swaps"])


# === Pydantic Schemas ===
# Only types are checked here; bounds and lengths are enforced by the engine.

class SwapCreate(BaseModel):
    recipient_id: str
    requested_skill: SkillRef
    offered_skill: SkillRef
    message: Optional[str] = None


class FeedbackCreate(BaseModel):
    rating: StrictInt
    comment: Optional[str] = None


# === Endpoints ===

@router.post("", response_model=SwapView, status_code=201)
async def create_swap_request(
    body: SwapCreate,
    user: UserDB = Depends(get_current_user),
    engine: SwapEngine = Depends(get_swap_engine),
    db: AsyncSession = Depends(get_db),
):
    """
    Send a swap request.

    The requester must list the offered skill and the recipient must list
    the requested skill; only one pending/accepted swap may exist per pair.
    """
    swap = await engine.create_swap_request(
        requester_id=user.id,
        recipient_id=body.recipient_id,
        requested_skill=body.requested_skill,
        offered_skill=body.offered_skill,
        message=body.message,
    )
    return await swap_view(db, swap)


@router.get("/mine", response_model=SwapListResponse)
@router.get("/my-swaps", response_model=SwapListResponse, include_in_schema=False)
async def list_my_swaps(
    status: Optional[SwapStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    user: UserDB = Depends(get_current_user),
    engine: SwapEngine = Depends(get_swap_engine),
    db: AsyncSession = Depends(get_db),
):
    """Swaps the current user sent or received, newest first."""
    swaps, total = await engine.list_swaps(user.id, status=status, page=page, limit=limit)
    return await swap_list_response(db, swaps, page, limit, total)


@router.get("/{swap_id}", response_model=SwapView)
async def get_swap(
    swap_id: str,
    user: UserDB = Depends(get_current_user),
    engine: SwapEngine = Depends(get_swap_engine),
    db: AsyncSession = Depends(get_db),
):
    """Get a swap the current user takes part in."""
    return await swap_view(db, await engine.get_swap(swap_id, user.id))


@router.put("/{swap_id}/accept", response_model=SwapView)
async def accept_swap(
    swap_id: str,
    user: UserDB = Depends(get_current_user),
    engine: SwapEngine = Depends(get_swap_engine),
    db: AsyncSession = Depends(get_db),
):
    """Accept a pending request (recipient only)."""
    return await swap_view(db, await engine.accept(swap_id, user.id))


@router.put("/{swap_id}/reject", response_model=SwapView)
async def reject_swap(
    swap_id: str,
    user: UserDB = Depends(get_current_user),
    engine: SwapEngine = Depends(get_swap_engine),
    db: AsyncSession = Depends(get_db),
):
    """Reject a pending request (recipient only)."""
    return await swap_view(db, await engine.reject(swap_id, user.id))


@router.put("/{swap_id}/cancel", response_model=SwapView)
async def cancel_swap(
    swap_id: str,
    user: UserDB = Depends(get_current_user),
    engine: SwapEngine = Depends(get_swap_engine),
    db: AsyncSession = Depends(get_db),
):
    """Withdraw a pending request (requester only)."""
    return await swap_view(db, await engine.cancel(swap_id, user.id))


@router.put("/{swap_id}/complete", response_model=SwapView)
async def complete_swap(
    swap_id: str,
    user: UserDB = Depends(get_current_user),
    engine: SwapEngine = Depends(get_swap_engine),
    db: AsyncSession = Depends(get_db),
):
    """Mark an accepted swap as completed (either party)."""
    return await swap_view(db, await engine.complete(swap_id, user.id))


@router.post("/{swap_id}/feedback", response_model=SwapView)
async def submit_feedback(
    swap_id: str,
    body: FeedbackCreate,
    user: UserDB = Depends(get_current_user),
    engine: SwapEngine = Depends(get_swap_engine),
    db: AsyncSession = Depends(get_db),
):
    """Rate the other party of a completed swap. Once per side."""
    swap = await engine.submit_feedback(swap_id, user.id, body.rating, body.comment)
    return await swap_view(db, swap)
