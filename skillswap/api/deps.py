"""FastAPI dependencies for authentication and the swap engine."""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.config import get_settings
from skillswap.db.database import get_db
from skillswap.db.models import UserDB
from skillswap.services.auth_service import user_for_token
from skillswap.services.repositories import SqlSwapRepository, SqlUserDirectory
from skillswap.services.swap_engine import SwapEngine

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> UserDB:
    """Validate JWT and return the current user."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return await user_for_token(
        db, credentials.credentials, get_settings().effective_jwt_secret, "access"
    )


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Optional[UserDB]:
    """Like get_current_user, but anonymous requests get None."""
    if not credentials:
        return None
    return await get_current_user(credentials, db)


async def get_current_admin(
    user: UserDB = Depends(get_current_user),
) -> UserDB:
    """Require the current user to have admin role."""
    if user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


async def get_swap_engine(db: AsyncSession = Depends(get_db)) -> SwapEngine:
    """Swap engine bound to the request's session."""
    return SwapEngine(SqlSwapRepository(db), SqlUserDirectory(db))
