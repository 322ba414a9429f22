"""Authentication and account API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.api.deps import get_current_user
from skillswap.api.v1.schemas import PrivateUserProfile, profile_for
from skillswap.config import get_settings
from skillswap.db.database import get_db
from skillswap.db.models import UserDB, utcnow
from skillswap.services.auth_service import (
    authenticate_user,
    change_password,
    clean_name,
    issue_tokens,
    register_user,
    user_for_token,
)

router = APIRouter(prefix="/auth", tags=["auth"])


# ---------- Schemas ----------

class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    location: Optional[str] = Field(None, max_length=100)


class LoginRequest(BaseModel):
    email: str
    password: str


class AuthResponse(BaseModel):
    access_token: str
    refresh_token: str
    user: PrivateUserProfile


class RefreshRequest(BaseModel):
    refresh_token: str


class RefreshResponse(BaseModel):
    access_token: str


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    location: Optional[str] = Field(None, max_length=100)
    profile_photo: Optional[str] = Field(None, max_length=512)
    is_public: Optional[bool] = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


async def _auth_response(db: AsyncSession, user: UserDB) -> AuthResponse:
    access_token, refresh_token = issue_tokens(user, get_settings())
    return AuthResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        user=await profile_for(db, user, private=True),
    )


# ---------- Public endpoints ----------

@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create an account and return JWT tokens."""
    user = await register_user(db, body.name, body.email, body.password, body.location)
    return await _auth_response(db, user)


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Authenticate and return JWT tokens."""
    user = await authenticate_user(db, body.email, body.password)
    return await _auth_response(db, user)


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_token(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    """Refresh an access token using a refresh token."""
    settings = get_settings()
    user = await user_for_token(
        db, body.refresh_token, settings.effective_jwt_secret, "refresh"
    )
    access_token, _ = issue_tokens(user, settings)
    return RefreshResponse(access_token=access_token)


# ---------- Protected endpoints ----------

@router.get("/me", response_model=PrivateUserProfile)
async def get_me(
    user: UserDB = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get current user info."""
    return await profile_for(db, user, private=True)


@router.put("/profile", response_model=PrivateUserProfile)
async def update_profile(
    body: ProfileUpdateRequest,
    user: UserDB = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update the current user's profile fields."""
    if body.name is not None:
        user.name = clean_name(body.name)
    if body.location is not None:
        user.location = body.location.strip() or None
    if body.profile_photo is not None:
        user.profile_photo = body.profile_photo or None
    if body.is_public is not None:
        user.is_public = body.is_public

    user.updated_at = utcnow()
    db.add(user)
    await db.flush()
    return await profile_for(db, user, private=True)


@router.post("/change-password")
async def change_user_password(
    body: ChangePasswordRequest,
    user: UserDB = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Change the current user's password. Existing tokens are invalidated."""
    await change_password(db, user, body.current_password, body.new_password)
    return {"message": "Password changed successfully"}
