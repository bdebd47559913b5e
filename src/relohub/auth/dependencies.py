"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from relohub.auth.jwt import verify_token
from relohub.auth.plans import expire_plan_if_due, is_entitled
from relohub.auth.service import get_user_by_id
from relohub.config import get_settings
from relohub.database import get_session
from relohub.db.models import User
from relohub.errors import AuthError, PermissionDeniedError, PlanRequiredError


def _extract_token(request: Request) -> str | None:
    """Bearer header first, then the session cookie."""
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        token = header[7:].strip()
        if token:
            return token
    return request.cookies.get(get_settings().auth_cookie_name)


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Verify the session token and return the User.

    A lapsed paid plan is downgraded here, before any handler sees the user.
    """
    token = _extract_token(request)
    if token is None:
        msg = "Authentication required"
        raise AuthError(msg)
    try:
        payload = verify_token(token)
    except jwt.InvalidTokenError as e:
        raise AuthError(str(e) or "Invalid token") from e

    user = await get_user_by_id(db, payload["_id"])
    if user is None:
        msg = "User not found"
        raise AuthError(msg)
    await expire_plan_if_due(db, user)
    return user


async def get_current_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != "admin":
        msg = "Admin access required"
        raise PermissionDeniedError(msg)
    return user


async def get_entitled_user(user: User = Depends(get_current_user)) -> User:
    """Admins, or users holding an active paid plan."""
    if not is_entitled(user):
        raise PlanRequiredError()
    return user
