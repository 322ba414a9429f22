"""
Account rules for SkillSwap.

Registration and sign-in by email, bcrypt password hashes, and HS256
access/refresh tokens. ``user_for_token`` is the single place a token is
turned back into a user; both the request dependencies and the refresh
endpoint go through it, so a banned account or a token older than the
last password change is refused the same way everywhere.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.config import Settings
from skillswap.core.errors import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    ValidationError,
)
from skillswap.db.models import UserDB, utcnow
from skillswap.services.repositories import SqlUserDirectory

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
MAX_NAME_LENGTH = 50
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# ---------- Password ----------

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


# ---------- Input rules ----------

def clean_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValidationError("Name is required")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Name must be at most {MAX_NAME_LENGTH} characters")
    return name


def clean_email(email: str) -> str:
    email = email.strip().lower()
    if not _EMAIL_PATTERN.match(email):
        raise ValidationError("Please enter a valid email")
    return email


def check_password_strength(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


# ---------- JWT ----------

def _encode(claims: dict, secret: str, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    return jwt.encode({**claims, "iat": now, "exp": now + lifetime}, secret, algorithm="HS256")


def create_access_token(
    user_id: str,
    role: str,
    secret: str,
    expire_hours: int = 24,
) -> str:
    """Short-lived token carrying the user's role."""
    return _encode(
        {"sub": user_id, "role": role, "type": "access"},
        secret,
        timedelta(hours=expire_hours),
    )


def create_refresh_token(
    user_id: str,
    secret: str,
    expire_days: int = 7,
) -> str:
    return _encode({"sub": user_id, "type": "refresh"}, secret, timedelta(days=expire_days))


def decode_token(token: str, secret: str) -> dict:
    """Decode and validate a JWT token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, secret, algorithms=["HS256"])


def issue_tokens(user: UserDB, settings: Settings) -> tuple[str, str]:
    """Access and refresh token pair for a signed-in user."""
    secret = settings.effective_jwt_secret
    return (
        create_access_token(user.id, user.role, secret, settings.jwt_access_token_expire_hours),
        create_refresh_token(user.id, secret, settings.jwt_refresh_token_expire_days),
    )


def issued_before_password_change(user: UserDB, payload: dict) -> bool:
    """True if the token was signed before the user's last password change."""
    if not user.password_changed_at or not payload.get("iat"):
        return False
    changed_ts = int(user.password_changed_at.replace(tzinfo=timezone.utc).timestamp())
    return payload["iat"] < changed_ts


async def user_for_token(
    db: AsyncSession, token: str, secret: str, token_type: str = "access"
) -> UserDB:
    """Resolve a bearer or refresh token to an active user.

    Raises:
        AuthenticationError: bad signature, expired, wrong token type,
            unknown user, or issued before the last password change
        ForbiddenError: the account is banned
    """
    try:
        payload = decode_token(token, secret)
    except jwt.PyJWTError:
        raise AuthenticationError("Invalid or expired token")

    if payload.get("type") != token_type:
        raise AuthenticationError("Invalid token type")

    user = await SqlUserDirectory(db).get(payload.get("sub", ""))
    if user is None:
        raise AuthenticationError("User not found")
    if user.is_banned:
        raise ForbiddenError("Account is banned")
    if issued_before_password_change(user, payload):
        raise AuthenticationError("Token invalidated by password change")
    return user


# ---------- Accounts ----------

async def get_user_by_email(db: AsyncSession, email: str) -> Optional[UserDB]:
    """Look up a user by email (case-insensitive)."""
    result = await db.execute(select(UserDB).where(UserDB.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def register_user(
    db: AsyncSession,
    name: str,
    email: str,
    password: str,
    location: Optional[str] = None,
) -> UserDB:
    name = clean_name(name)
    email = clean_email(email)
    check_password_strength(password)

    if await get_user_by_email(db, email):
        raise ConflictError("User already exists with this email")

    now = utcnow()
    user = UserDB(
        name=name,
        email=email,
        password_hash=hash_password(password),
        location=location.strip() if location else None,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    await db.flush()
    logger.info("Registered user %s", user.id)
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> UserDB:
    """Check credentials; banned accounts are refused even with the right password."""
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")
    if user.is_banned:
        raise ForbiddenError("Account is banned")
    return user


async def change_password(
    db: AsyncSession, user: UserDB, current_password: str, new_password: str
) -> None:
    """Replace the password. Tokens issued before now stop working."""
    check_password_strength(new_password)
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect")

    now = utcnow()
    user.password_hash = hash_password(new_password)
    user.password_changed_at = now
    user.updated_at = now
    db.add(user)
    await db.flush()
