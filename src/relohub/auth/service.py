"""
Authentication business logic.

Handles account creation, credential checks and profile edits.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select

from relohub.auth.password import (
    PasswordStrengthError,
    hash_password,
    validate_password_strength,
    verify_password,
)
from relohub.db.models import User
from relohub.errors import AuthError, ConflictError, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid email or password"


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Signup / signin
# ---------------------------------------------------------------------------


async def register_user(
    db: AsyncSession,
    *,
    first_name: str,
    email: str,
    password: str,
    last_name: str | None = None,
    role: str = "user",
) -> User:
    """
    Create a new account.

    Raises:
        ValidationError: If the password is too weak.
        ConflictError: If the email is already registered.
    """
    try:
        validate_password_strength(password)
    except PasswordStrengthError as e:
        raise ValidationError(str(e), fields={"password": str(e)}) from e

    if await get_user_by_email(db, email) is not None:
        msg = "User with this email already exists"
        raise ConflictError(msg)

    user = User(
        first_name=first_name,
        last_name=last_name or None,
        email=email.lower(),
        password_hash=hash_password(password),
        role=role,
        package="free",
    )
    db.add(user)
    await db.flush()
    logger.info("user_registered", user_id=user.id, role=role)
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
    """
    Check credentials.

    Unknown email and wrong password raise the same AuthError, and both paths
    run one argon2 verification.
    """
    user = await get_user_by_email(db, email)
    if not verify_password(password, user.password_hash if user else None) or user is None:
        logger.info("signin_failed", email_known=user is not None)
        raise AuthError(INVALID_CREDENTIALS)
    logger.info("signin_succeeded", user_id=user.id)
    return user


async def update_profile(
    db: AsyncSession,
    user: User,
    *,
    first_name: str,
    last_name: str | None,
    phone_number: str | None,
) -> User:
    user.first_name = first_name
    user.last_name = last_name.strip() if last_name else None
    if phone_number:
        user.phone_number = phone_number
    await db.commit()
    return user
