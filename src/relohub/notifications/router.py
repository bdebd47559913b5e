"""Notification feed endpoints: /api/dashboard/notifications."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from relohub.auth.dependencies import get_current_user
from relohub.database import get_session
from relohub.db.models import User
from relohub.notifications.schemas import NotificationCreate, NotificationOut
from relohub.notifications.service import create_notification, get_feed, mark_all_read
from relohub.schemas import ok

router = APIRouter(prefix="/api/dashboard/notifications", tags=["Notifications"])


@router.get("")
async def list_notifications(
    limit: int = Query(10, ge=1, le=50),
    offset: int = Query(0, ge=0),
    unread_only: bool = Query(False, alias="unreadOnly"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Fetch a page of the feed. Fetching marks everything read."""
    feed = await get_feed(db, user, limit=limit, offset=offset, unread_only=unread_only)
    await db.commit()
    return ok({
        "notifications": [
            NotificationOut.from_row(row, is_read=is_read).model_dump(mode="json", by_alias=True)
            for row, is_read in feed["items"]
        ],
        "unreadCount": feed["unread_count"],
        "total": feed["total"],
        "limit": feed["limit"],
        "offset": feed["offset"],
        "hasMore": feed["has_more"],
    })


@router.post("", status_code=201)
async def post_notification(
    body: NotificationCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    notification = await create_notification(
        db,
        user,
        title=body.title,
        message=body.message,
        type_=body.type,
        priority=body.priority,
        action_required=body.action_required,
        action_url=body.action_url,
    )
    await db.commit()
    return ok(NotificationOut.from_row(notification, is_read=False))


@router.patch("")
async def mark_notifications_read(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    read_at = await mark_all_read(db, user)
    await db.commit()
    return ok({"lastNotificationReadAt": read_at.isoformat()}, message="All notifications marked as read")
