"""
Storage contracts the swap engine depends on.

The engine only talks to these Protocols; the SQLAlchemy implementations
live in skillswap.services.repositories and tests supply in-memory fakes.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, runtime_checkable

from skillswap.db.models import SwapDB, UserDB


@runtime_checkable
class SwapRepository(Protocol):

    async def get(self, swap_id: str, *, for_update: bool = False) -> Optional[SwapDB]:
        """Load a swap; ``for_update`` locks the row until the transaction ends."""
        ...

    async def find_active_between(self, user_a: str, user_b: str) -> Optional[SwapDB]:
        """Any pending or accepted swap between the pair, in either direction."""
        ...

    async def add(self, swap: SwapDB) -> SwapDB:
        ...

    async def save(self, swap: SwapDB) -> None:
        """Persist changes; raises ConcurrentModificationError on a lost race."""
        ...

    async def list_for_user(
        self,
        user_id: str,
        status: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[Sequence[SwapDB], int]:
        """Swaps where the user is either party, newest first, plus the total."""
        ...


@runtime_checkable
class UserDirectory(Protocol):

    async def get(self, user_id: str, *, for_update: bool = False) -> Optional[UserDB]:
        ...

    async def offered_skill_names(self, user_id: str) -> list[str]:
        ...

    async def save(self, user: UserDB) -> None:
        ...
