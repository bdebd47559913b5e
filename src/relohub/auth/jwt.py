"""
HS256 JWT session tokens.

Payload carries the user id under ``_id`` and the role under ``role``. The
signing secret is validated when settings load.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any

import jwt

from relohub.clock import utcnow
from relohub.config import get_settings


def create_access_token(user_id: str, role: str) -> str:
    """
    Create a session token valid for ``jwt_expire_days``.

    Args:
        user_id: The user's database ID.
        role: ``user`` or ``admin``.

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    now = utcnow()
    payload: dict[str, Any] = {
        "_id": user_id,
        "role": role,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_expire_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict[str, Any]:
    """
    Verify and decode a session token.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or malformed.
    """
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "_id"]},
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if not isinstance(payload.get("_id"), str):
        msg = "Token subject is malformed"
        raise jwt.InvalidTokenError(msg)
    return payload
