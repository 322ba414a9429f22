"""SQLAlchemy-backed implementations of the engine's storage contracts."""

from typing import Optional, Sequence

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from skillswap.core.errors import ConcurrentModificationError
from skillswap.core.models import ACTIVE_STATUSES
from skillswap.db.models import SwapDB, UserDB, UserSkillDB


class SqlSwapRepository:
    """Swap storage scoped to one request's session/transaction."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, swap_id: str, *, for_update: bool = False) -> Optional[SwapDB]:
        query = select(SwapDB).where(SwapDB.id == swap_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_active_between(self, user_a: str, user_b: str) -> Optional[SwapDB]:
        result = await self.db.execute(
            select(SwapDB)
            .where(
                or_(
                    and_(SwapDB.requester_id == user_a, SwapDB.recipient_id == user_b),
                    and_(SwapDB.requester_id == user_b, SwapDB.recipient_id == user_a),
                ),
                SwapDB.status.in_([s.value for s in ACTIVE_STATUSES]),
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def add(self, swap: SwapDB) -> SwapDB:
        self.db.add(swap)
        await self.db.flush()
        return swap

    async def save(self, swap: SwapDB) -> None:
        self.db.add(swap)
        try:
            await self.db.flush()
        except StaleDataError as e:
            raise ConcurrentModificationError(
                "Swap was modified by another request, please retry"
            ) from e

    async def list_for_user(
        self,
        user_id: str,
        status: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[Sequence[SwapDB], int]:
        conditions = [or_(SwapDB.requester_id == user_id, SwapDB.recipient_id == user_id)]
        if status:
            conditions.append(SwapDB.status == status)

        total = (
            await self.db.execute(select(func.count(SwapDB.id)).where(*conditions))
        ).scalar() or 0
        result = await self.db.execute(
            select(SwapDB)
            .where(*conditions)
            .order_by(SwapDB.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return result.scalars().all(), total


class SqlUserDirectory:
    """User lookups and rating writes for the engine."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: str, *, for_update: bool = False) -> Optional[UserDB]:
        query = select(UserDB).where(UserDB.id == user_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def offered_skill_names(self, user_id: str) -> list[str]:
        result = await self.db.execute(
            select(UserSkillDB.name).where(
                UserSkillDB.user_id == user_id,
                UserSkillDB.kind == "offered",
            )
        )
        return [row[0] for row in result.fetchall()]

    async def save(self, user: UserDB) -> None:
        self.db.add(user)
        await self.db.flush()
