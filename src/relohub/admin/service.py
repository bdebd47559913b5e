"""Admin account management: plans, deletion and lookup."""

from __future__ import annotations

import logging
import math
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from relohub.auth.plans import PACKAGES, has_active_paid_plan, set_package
from relohub.db.models import Notification, User, UserProgress
from relohub.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

SEARCH_PAGE_SIZE = 10


async def _get_user(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if user is None:
        msg = "User not found"
        raise NotFoundError(msg)
    return user


async def update_user_package(db: AsyncSession, user_id: str, package: str) -> User:
    """Set a user's package and adjust the paid-user counter in one transaction."""
    if package not in PACKAGES:
        msg = "Invalid package type"
        raise ValidationError(msg, fields={"package": msg})
    user = await _get_user(db, user_id)
    await set_package(db, user, package)
    await db.commit()
    return user


async def delete_user(db: AsyncSession, user_id: str) -> None:
    """Delete an account. Accounts with an active paid plan are kept."""
    user = await _get_user(db, user_id)
    if has_active_paid_plan(user):
        msg = "Cannot delete user with active plan"
        raise ValidationError(msg)
    await db.execute(delete(Notification).where(Notification.user_id == user.id))
    await db.execute(delete(UserProgress).where(UserProgress.user_id == user.id))
    await db.delete(user)
    await db.commit()
    logger.info("User deleted: %s", user_id)


async def search_users(db: AsyncSession, email: str, page: int = 1) -> dict[str, Any]:
    """Case-insensitive partial email match over ``user``-role accounts, 10 per page."""
    page = max(1, page)
    email = email.strip().lower()
    if not email:
        return {"users": [], "total_count": 0, "page": 1, "total_pages": 0}

    pattern = "%" + email.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_") + "%"
    conditions = [User.role == "user", func.lower(User.email).like(pattern, escape="\\")]
    total = int((await db.execute(select(func.count()).select_from(User).where(*conditions))).scalar_one())
    rows = (await db.execute(
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc())
        .offset((page - 1) * SEARCH_PAGE_SIZE)
        .limit(SEARCH_PAGE_SIZE)
    )).scalars().all()
    return {
        "users": list(rows),
        "total_count": total,
        "page": page,
        "total_pages": math.ceil(total / SEARCH_PAGE_SIZE),
    }


async def list_recipients(db: AsyncSession) -> list[User]:
    """Every ``user``-role account, for targeting broadcasts."""
    result = await db.execute(
        select(User).where(User.role == "user").order_by(User.first_name, User.last_name)
    )
    return list(result.scalars().all())
