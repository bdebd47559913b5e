"""Shared test fixtures."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path

# Settings validate the signing secret at load time, and relohub.main builds
# an app on import, so the environment must be ready before any relohub import.
os.environ.setdefault("RELOHUB_JWT_SECRET", "relohub-test-signing-secret-0123456789abcdef")
os.environ.setdefault("RELOHUB_LOG_FORMAT", "console")
os.environ.setdefault("RELOHUB_LOG_LEVEL", "WARNING")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from relohub.auth.jwt import create_access_token
from relohub.auth.plans import set_package
from relohub.auth.service import register_user
from relohub.config import Settings, get_settings
from relohub.content.schemas import CategoryCreate, TaskCreate
from relohub.content.service import ContentService
from relohub.database import close_db, get_engine, get_session_factory, init_db
from relohub.db import models  # noqa: F401
from relohub.db.base import Base
from relohub.db.models import Category, Task, User
from relohub.main import create_app

PASSWORD = "SecurePass1"


@pytest_asyncio.fixture
async def database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[Settings, None]:
    """A fresh SQLite database per test with all tables created."""
    monkeypatch.setenv("RELOHUB_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'relohub.db'}")
    get_settings.cache_clear()
    settings = get_settings()
    await init_db(settings.database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield settings

    await close_db()
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def db_session(database: Settings) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for setup and assertions."""
    async with get_session_factory()() as session:
        yield session


@pytest_asyncio.fixture
async def client(database: Settings) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client over a freshly built app (fresh rate limiter per test)."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

MakeUser = Callable[..., Awaitable[User]]


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> MakeUser:
    """Factory: create and commit an account, optionally on a paid package."""

    async def _make(
        email: str,
        *,
        first_name: str = "Test",
        role: str = "user",
        package: str = "free",
    ) -> User:
        user = await register_user(
            db_session,
            first_name=first_name,
            email=email,
            password=PASSWORD,
            role=role,
        )
        if package != "free":
            await set_package(db_session, user, package)
        await db_session.commit()
        return user

    return _make


def bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


@pytest_asyncio.fixture
async def admin(make_user: MakeUser) -> User:
    return await make_user("admin@example.com", first_name="Ada", role="admin")


@pytest_asyncio.fixture
async def free_user(make_user: MakeUser) -> User:
    return await make_user("free@example.com", first_name="Fred")


@pytest_asyncio.fixture
async def paid_user(make_user: MakeUser) -> User:
    return await make_user("paid@example.com", first_name="Paula", package="basic")


@pytest.fixture
def admin_headers(admin: User) -> dict[str, str]:
    return bearer(admin)


@pytest.fixture
def free_headers(free_user: User) -> dict[str, str]:
    return bearer(free_user)


@pytest.fixture
def paid_headers(paid_user: User) -> dict[str, str]:
    return bearer(paid_user)


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def make_category(db_session: AsyncSession) -> Callable[..., Awaitable[tuple[Category, list[Task]]]]:
    """Factory: create a category with ``tasks`` tasks through the content service."""

    async def _make(name: str, tasks: int = 1, **fields: object) -> tuple[Category, list[Task]]:
        service = ContentService(db_session)
        category = await service.create_category(CategoryCreate(display_name=name, **fields))
        created = [
            await service.create_task(
                TaskCreate(title=f"{name} task {i}", description=f"Do {name} task {i}", category_id=category.id),
            )
            for i in range(1, tasks + 1)
        ]
        return category, created

    return _make


@pytest.fixture
def headers_for() -> Callable[[User], dict[str, str]]:
    return bearer
