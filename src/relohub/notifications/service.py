"""Notification creation, merging and the per-user feed.

Entity-change notifications go to every ``user``-role account (or a given
subset). Repeated changes to the same entity with the same action inside the
merge window amend the recipient's existing notification instead of adding a
new one. Read state is a single per-user timestamp: everything created after
``last_notification_read_at`` is unread, and fetching the feed advances it.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Any
from urllib.parse import urlsplit

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from relohub.clock import as_utc, utcnow
from relohub.config import Settings, get_settings
from relohub.db.models import Notification, User
from relohub.errors import NotFoundError, ValidationError
from relohub.notifications.messages import (
    EntityChange,
    NotificationContent,
    merge_changes,
    render_content,
    render_message,
    render_task_moved,
)

logger = logging.getLogger(__name__)

VALID_TYPES = {"info", "success", "warning", "error", "update"}
VALID_PRIORITIES = {"low", "medium", "high"}
TITLE_MAX = 100
MESSAGE_MAX = 500

_TAG_RE = re.compile(r"<[^>]*>")
_BLOCKED_SCHEMES = {"javascript", "data", "vbscript", "file"}


# ---------------------------------------------------------------------------
# Input cleaning
# ---------------------------------------------------------------------------


def clean_text(value: str, max_length: int) -> str:
    """Strip markup and null bytes, trim, and cap the length."""
    cleaned = _TAG_RE.sub("", value).replace("\x00", "").strip()
    return cleaned[:max_length]


def validate_action_url(url: str, public_base_url: str) -> str:
    """
    Accept relative paths, or absolute http(s) URLs on the app's own host
    (and subdomains), localhost or 127.0.0.1.

    Raises ValidationError otherwise.
    """
    url = url.strip()
    if url.startswith("/") and not url.startswith("//"):
        return url

    invalid = "Invalid or unauthorized action URL"
    parts = urlsplit(url)
    if parts.scheme.lower() in _BLOCKED_SCHEMES or parts.scheme.lower() not in {"http", "https"}:
        raise ValidationError(invalid, fields={"actionUrl": invalid})

    allowed = {"localhost", "127.0.0.1"}
    public_host = urlsplit(public_base_url).hostname
    if public_host:
        allowed.add(public_host.lower())

    host = (parts.hostname or "").lower()
    if not any(host == domain or host.endswith(f".{domain}") for domain in allowed):
        raise ValidationError(invalid, fields={"actionUrl": invalid})
    return url


# ---------------------------------------------------------------------------
# Recipients
# ---------------------------------------------------------------------------


async def eligible_recipients(db: AsyncSession, recipient_ids: Sequence[str] | None = None) -> list[str]:
    """Ids of ``user``-role accounts, optionally narrowed to recipient_ids."""
    stmt = select(User.id).where(User.role == "user")
    if recipient_ids is not None:
        if not recipient_ids:
            return []
        stmt = stmt.where(User.id.in_(list(recipient_ids)))
    result = await db.execute(stmt)
    return list(result.scalars().all())


def _new_notification(
    user_id: str,
    content: NotificationContent,
    now: datetime,
    ttl: timedelta,
    *,
    change: EntityChange | None = None,
    action_required: bool = False,
    action_url: str | None = None,
) -> Notification:
    return Notification(
        user_id=user_id,
        title=content.title[:TITLE_MAX],
        message=content.message[:MESSAGE_MAX],
        type=content.type,
        priority=content.priority,
        action_required=action_required,
        action_url=action_url,
        entity_type=change.entity_type if change else None,
        entity_id=change.entity_id if change else None,
        entity_action=change.action if change else None,
        changes=list(change.changes) if change else [],
        created_at=now,
        updated_at=now,
        expires_at=now + ttl,
    )


# ---------------------------------------------------------------------------
# Fan-out
# ---------------------------------------------------------------------------


async def notify_entity_change(
    db: AsyncSession,
    change: EntityChange,
    *,
    settings: Settings | None = None,
    recipient_ids: Sequence[str] | None = None,
    now: datetime | None = None,
) -> dict[str, int]:
    """
    Create or merge one notification per eligible recipient. Caller commits.

    Returns counts of created and merged notifications.
    """
    settings = settings or get_settings()
    now = now or utcnow()
    recipients = await eligible_recipients(db, recipient_ids)
    if not recipients:
        return {"created": 0, "merged": 0}

    window_start = now - timedelta(minutes=settings.notification_merge_window_minutes)
    result = await db.execute(
        select(Notification)
        .where(
            Notification.user_id.in_(recipients),
            Notification.entity_type == change.entity_type,
            Notification.entity_id == change.entity_id,
            Notification.entity_action == change.action,
            Notification.created_at >= window_start,
            Notification.expires_at > now,
        )
        .order_by(Notification.created_at.desc())
    )
    latest: dict[str, Notification] = {}
    for notification in result.scalars():
        latest.setdefault(notification.user_id, notification)

    ttl = timedelta(days=settings.notification_ttl_days)
    content = render_content(change)
    created = merged = 0
    for user_id in recipients:
        existing = latest.get(user_id)
        if existing is None:
            db.add(_new_notification(user_id, content, now, ttl, change=change))
            created += 1
            continue

        combined = merge_changes(existing.changes or [], change.changes)
        existing.changes = combined
        existing.message = render_message(
            change.entity_type, change.action, change.entity_name, combined,
        )[:MESSAGE_MAX]
        existing.updated_at = now
        merged += 1

    await db.flush()
    logger.info(
        "Notified %s %s %s: %d created, %d merged",
        change.entity_type,
        change.entity_id,
        change.action,
        created,
        merged,
    )
    return {"created": created, "merged": merged}


async def notify_task_moved(
    db: AsyncSession,
    task_title: str,
    old_category: str,
    new_category: str,
    *,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> int:
    """Low-priority notice that a task changed category. Caller commits."""
    settings = settings or get_settings()
    now = now or utcnow()
    ttl = timedelta(days=settings.notification_ttl_days)
    content = render_task_moved(task_title, old_category, new_category)
    recipients = await eligible_recipients(db)
    db.add_all([_new_notification(user_id, content, now, ttl) for user_id in recipients])
    await db.flush()
    return len(recipients)


async def broadcast(
    db: AsyncSession,
    *,
    title: str,
    message: str,
    type_: str = "info",
    priority: str = "medium",
    action_url: str | None = None,
    target_user_ids: Sequence[str] | None = None,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> list[User]:
    """
    Send an admin-authored notification. Admin accounts never receive it.

    Returns the recipients. Caller commits.
    """
    settings = settings or get_settings()
    now = now or utcnow()
    title = clean_text(title, TITLE_MAX)
    message = clean_text(message, MESSAGE_MAX)
    if not title or not message:
        msg = "Title and message are required"
        raise ValidationError(msg)
    if type_ not in VALID_TYPES:
        msg = "Invalid notification type"
        raise ValidationError(msg)
    if priority not in VALID_PRIORITIES:
        msg = "Invalid priority level"
        raise ValidationError(msg)
    if action_url:
        action_url = validate_action_url(action_url, settings.public_base_url)

    stmt = select(User).where(User.role == "user").order_by(User.first_name, User.last_name)
    if target_user_ids:
        stmt = stmt.where(User.id.in_(list(target_user_ids)))
    users = list((await db.execute(stmt)).scalars().all())
    if not users:
        msg = "No valid users found with provided IDs" if target_user_ids else "No users found to notify"
        raise NotFoundError(msg)

    ttl = timedelta(days=settings.notification_ttl_days)
    content = NotificationContent(title=title, message=message, type=type_, priority=priority)
    db.add_all([
        _new_notification(user.id, content, now, ttl, action_url=action_url or None)
        for user in users
    ])
    await db.flush()
    logger.info("Broadcast sent to %d user(s)", len(users))
    return users


async def create_notification(
    db: AsyncSession,
    user: User,
    *,
    title: str,
    message: str,
    type_: str = "info",
    priority: str = "medium",
    action_required: bool = False,
    action_url: str | None = None,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> Notification:
    """A notification a user posts to their own feed. Caller commits."""
    settings = settings or get_settings()
    now = now or utcnow()
    if action_url:
        action_url = validate_action_url(action_url, settings.public_base_url)
    notification = _new_notification(
        user.id,
        NotificationContent(
            title=clean_text(title, TITLE_MAX),
            message=clean_text(message, MESSAGE_MAX),
            type=type_,
            priority=priority,
        ),
        now,
        timedelta(days=settings.notification_ttl_days),
        action_required=action_required,
        action_url=action_url or None,
    )
    db.add(notification)
    await db.flush()
    return notification


# ---------------------------------------------------------------------------
# Feed
# ---------------------------------------------------------------------------


def _live(user_id: str, now: datetime) -> list[Any]:
    return [Notification.user_id == user_id, Notification.expires_at > now]


async def get_feed(
    db: AsyncSession,
    user: User,
    *,
    limit: int = 10,
    offset: int = 0,
    unread_only: bool = False,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Return a page of the user's live notifications, newest first, then mark
    everything read by advancing the user's read timestamp. Caller commits.
    """
    now = now or utcnow()
    last_read = as_utc(user.last_notification_read_at)

    conditions = _live(user.id, now)
    unread_conditions = [*conditions]
    if last_read is not None:
        unread_conditions.append(Notification.created_at > last_read)

    unread_count = int((await db.execute(
        select(func.count()).select_from(Notification).where(*unread_conditions)
    )).scalar_one())
    page_conditions = unread_conditions if unread_only else conditions
    total = int((await db.execute(
        select(func.count()).select_from(Notification).where(*page_conditions)
    )).scalar_one())
    rows = (await db.execute(
        select(Notification)
        .where(*page_conditions)
        .order_by(Notification.created_at.desc(), Notification.id)
        .offset(offset)
        .limit(limit)
    )).scalars().all()

    # (notification, is_read) as of before this fetch
    items = [
        (row, last_read is not None and (as_utc(row.created_at) or now) <= last_read)
        for row in rows
    ]
    user.last_notification_read_at = now
    await db.flush()
    return {
        "items": items,
        "unread_count": unread_count,
        "total": total,
        "limit": limit,
        "offset": offset,
        "has_more": offset + len(rows) < total,
    }


async def mark_all_read(db: AsyncSession, user: User, now: datetime | None = None) -> datetime:
    """Advance the read timestamp. Caller commits."""
    user.last_notification_read_at = now or utcnow()
    await db.flush()
    return user.last_notification_read_at


# ---------------------------------------------------------------------------
# Retention
# ---------------------------------------------------------------------------


async def purge_expired(db: AsyncSession, now: datetime | None = None) -> int:
    """Delete notifications past their expiry. Caller commits."""
    result = await db.execute(
        delete(Notification)
        .where(Notification.expires_at <= (now or utcnow()))
        .execution_options(synchronize_session=False)
    )
    return int(result.rowcount or 0)
