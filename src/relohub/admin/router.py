"""Admin endpoints: /api/admin/*."""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from relohub.admin.service import delete_user, list_recipients, search_users, update_user_package
from relohub.auth.dependencies import get_current_admin
from relohub.auth.plans import get_paid_user_count, recount_paid_users
from relohub.auth.router import user_response
from relohub.database import get_session
from relohub.db.models import User
from relohub.notifications.schemas import BroadcastRequest
from relohub.notifications.service import broadcast
from relohub.schemas import CamelModel, ok

router = APIRouter(prefix="/api/admin", tags=["Admin"])


class PackageUpdate(CamelModel):
    package: Literal["free", "basic", "plus"]


def _dump_user(user: User) -> dict[str, Any]:
    return user_response(user).model_dump(mode="json", by_alias=True)


@router.patch("/users/{user_id}")
async def set_user_package(
    user_id: str,
    body: PackageUpdate,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    user = await update_user_package(db, user_id, body.package)
    return ok({"user": _dump_user(user), "paidUserCount": await get_paid_user_count(db)})


@router.delete("/users/{user_id}")
async def remove_user(
    user_id: str,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    await delete_user(db, user_id)
    return ok(None, message="User deleted successfully")


@router.get("/users/search")
async def find_users(
    email: str = Query(""),
    page: int = Query(1, ge=1),
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    result = await search_users(db, email, page)
    return ok({
        "users": [_dump_user(user) for user in result["users"]],
        "totalCount": result["total_count"],
        "page": result["page"],
        "totalPages": result["total_pages"],
        "hasNextPage": result["page"] < result["total_pages"],
        "hasPreviousPage": result["page"] > 1,
    })


@router.get("/paid-users")
async def paid_users(
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    count = await get_paid_user_count(db)
    await db.commit()
    return ok({"paidUserCount": count})


@router.post("/paid-users/recount")
async def recount(
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    count = await recount_paid_users(db)
    await db.commit()
    return ok({"paidUserCount": count})


@router.get("/notifications")
async def notification_recipients(
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    users = await list_recipients(db)
    return ok({
        "users": [
            {"id": u.id, "firstName": u.first_name, "lastName": u.last_name, "email": u.email, "package": u.package}
            for u in users
        ],
    })


@router.post("/notifications", status_code=201)
async def send_notification(
    body: BroadcastRequest,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    users = await broadcast(
        db,
        title=body.title,
        message=body.message,
        type_=body.type,
        priority=body.priority,
        action_url=body.action_url,
        target_user_ids=body.target_user_ids,
    )
    await db.commit()
    return ok(
        {
            "notificationsSent": len(users),
            "recipients": [
                {"id": u.id, "name": f"{u.first_name} {u.last_name or ''}".strip(), "email": u.email}
                for u in users
            ],
        },
        message=f"Notification sent to {len(users)} user(s)",
    )
