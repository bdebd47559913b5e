"""Authentication router: all /api/auth/* endpoints."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from relohub.auth.dependencies import get_current_user
from relohub.auth.jwt import create_access_token
from relohub.auth.plans import has_active_paid_plan
from relohub.auth.schemas import (
    AuthResponse,
    ProfileUpdateRequest,
    SigninRequest,
    SignupRequest,
    UserResponse,
)
from relohub.auth.service import authenticate_user, register_user, update_profile
from relohub.config import get_settings
from relohub.database import get_session
from relohub.db.models import User
from relohub.dependencies import get_rate_limiter
from relohub.ratelimit import RateLimiter
from relohub.schemas import ok

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def user_response(user: User) -> UserResponse:
    """Build a UserResponse from a User model."""
    return UserResponse(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        phone_number=user.phone_number,
        role=user.role,
        package=user.package,
        package_activated_at=user.package_activated_at,
        package_expires_at=user.package_expires_at,
        has_active_plan=has_active_paid_plan(user),
        created_at=user.created_at,
    )


def _issue_session(response: Response, user: User) -> AuthResponse:
    """Create the session token and set it as an http-only cookie."""
    settings = get_settings()
    token = create_access_token(user.id, user.role)
    response.set_cookie(
        settings.auth_cookie_name,
        token,
        max_age=settings.jwt_expire_days * 86400,
        httponly=True,
        secure=settings.environment == "production",
        samesite="lax",
        path="/",
    )
    return AuthResponse(token=token, user=user_response(user))


@router.post("/signup", status_code=201)
async def signup(
    body: SignupRequest,
    response: Response,
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    user = await register_user(
        db,
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        password=body.password,
    )
    await db.commit()
    return ok(_issue_session(response, user), message="User created successfully")


@router.post("/signin")
async def signin(
    body: SigninRequest,
    response: Response,
    db: AsyncSession = Depends(get_session),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> dict[str, Any]:
    """Rate-limited per email. Failure never reveals whether the email exists."""
    settings = get_settings()
    await limiter.enforce(
        f"signin:{body.email}",
        settings.auth_rate_limit_requests,
        settings.auth_rate_limit_window_seconds,
    )
    user = await authenticate_user(db, body.email, body.password)
    return ok(_issue_session(response, user), message="Sign in successful")


@router.post("/signout")
async def signout(response: Response) -> dict[str, Any]:
    response.delete_cookie(get_settings().auth_cookie_name, path="/")
    return ok(None, message="Signed out")


@router.get("/me")
async def me(user: User = Depends(get_current_user)) -> dict[str, Any]:
    return ok({"user": user_response(user).model_dump(mode="json", by_alias=True)}, isLoggedIn=True)


@router.put("/profile")
async def update_my_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    user = await update_profile(
        db,
        user,
        first_name=body.first_name,
        last_name=body.last_name,
        phone_number=body.phone_number,
    )
    return ok({"user": user_response(user).model_dump(mode="json", by_alias=True)}, message="Profile updated")
