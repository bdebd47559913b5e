"""Paid-plan entitlement and the paid-user aggregate.

The paid-user counter lives in the ``stats`` singleton row and is adjusted
with an atomic UPDATE inside the caller's transaction, so it commits or
rolls back together with the plan change that caused it.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import case, func, select, update

from relohub.clock import as_utc, utcnow
from relohub.config import get_settings
from relohub.db.models import GLOBAL_STATS_ID, Stats, User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

PACKAGES = ("free", "basic", "plus")
PAID_PACKAGES = frozenset({"basic", "plus"})


def has_active_paid_plan(user: User, now: datetime | None = None) -> bool:
    """True when the user holds a paid package that has not yet expired."""
    if user.package not in PAID_PACKAGES:
        return False
    expires_at = as_utc(user.package_expires_at)
    return expires_at is not None and expires_at > (now or utcnow())


def is_entitled(user: User, now: datetime | None = None) -> bool:
    """Admins always have access to paid features."""
    return user.role == "admin" or has_active_paid_plan(user, now)


# ---------------------------------------------------------------------------
# Stats counter
# ---------------------------------------------------------------------------


async def _ensure_stats_row(db: AsyncSession) -> None:
    if await db.get(Stats, GLOBAL_STATS_ID) is None:
        db.add(Stats(id=GLOBAL_STATS_ID, paid_user_count=0))
        await db.flush()


async def adjust_paid_user_count(db: AsyncSession, delta: int) -> None:
    """Increment or decrement the counter, floored at zero. Caller commits."""
    if delta == 0:
        return
    await _ensure_stats_row(db)
    new_value = Stats.paid_user_count + delta
    await db.execute(
        update(Stats)
        .where(Stats.id == GLOBAL_STATS_ID)
        .values(
            paid_user_count=case((new_value < 0, 0), else_=new_value),
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )


async def get_paid_user_count(db: AsyncSession) -> int:
    await _ensure_stats_row(db)
    result = await db.execute(select(Stats.paid_user_count).where(Stats.id == GLOBAL_STATS_ID))
    return int(result.scalar_one())


async def recount_paid_users(db: AsyncSession) -> int:
    """Recompute the counter from the users table. Caller commits."""
    now = utcnow()
    result = await db.execute(
        select(func.count())
        .select_from(User)
        .where(
            User.package.in_(PAID_PACKAGES),
            User.package_expires_at.is_not(None),
            User.package_expires_at > now,
        )
    )
    count = int(result.scalar_one())
    await _ensure_stats_row(db)
    await db.execute(
        update(Stats)
        .where(Stats.id == GLOBAL_STATS_ID)
        .values(paid_user_count=count, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    logger.info("paid_users_recounted", count=count)
    return count


# ---------------------------------------------------------------------------
# Plan changes
# ---------------------------------------------------------------------------


async def set_package(db: AsyncSession, user: User, package: str, now: datetime | None = None) -> int:
    """
    Assign a package to a user and adjust the counter.

    Paid packages run for ``plan_duration_days`` from now; switching to free
    clears both dates. Returns the counter delta applied. Caller commits.
    """
    now = now or utcnow()
    was_paid = user.package in PAID_PACKAGES
    if package in PAID_PACKAGES:
        user.package = package
        user.package_activated_at = now
        user.package_expires_at = now + timedelta(days=get_settings().plan_duration_days)
    else:
        user.package = "free"
        user.package_activated_at = None
        user.package_expires_at = None

    delta = int(package in PAID_PACKAGES) - int(was_paid)
    await adjust_paid_user_count(db, delta)
    logger.info("package_set", user_id=user.id, package=user.package, delta=delta)
    return delta


async def expire_plan_if_due(db: AsyncSession, user: User, now: datetime | None = None) -> bool:
    """
    Downgrade a ``user``-role account whose paid plan has lapsed.

    Returns True when a downgrade happened. Commits on downgrade.
    """
    if user.role != "user" or user.package not in PAID_PACKAGES:
        return False
    expires_at = as_utc(user.package_expires_at)
    if expires_at is None or expires_at > (now or utcnow()):
        return False

    user.package = "free"
    user.package_activated_at = None
    user.package_expires_at = None
    await adjust_paid_user_count(db, -1)
    await db.commit()
    logger.info("plan_downgraded", user_id=user.id)
    return True
