"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from relohub.admin.router import router as admin_router
from relohub.auth.router import router as auth_router
from relohub.config import get_settings
from relohub.content.router import categories_router, tasks_router
from relohub.content.seed import seed_default_content
from relohub.database import close_db, get_session_factory, init_db
from relohub.health.router import router as health_router
from relohub.maintenance import MaintenanceLoop
from relohub.middleware import setup_middleware
from relohub.notifications.router import router as notifications_router
from relohub.progress.router import router as progress_router
from relohub.ratelimit import MemoryRateLimitStore, RateLimiter, RedisRateLimitStore
from relohub.redis_client import close_redis, init_redis


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.rate_limit_backend == "redis":
        redis = await init_redis(settings.redis_url)
        app.state.rate_limiter = RateLimiter(RedisRateLimitStore(redis))

    if settings.seed_default_content:
        try:
            async with get_session_factory()() as db:
                await seed_default_content(db)
        except Exception:
            logging.getLogger(__name__).warning("Content seeding failed (tables may not exist yet)", exc_info=True)

    maintenance = MaintenanceLoop(
        get_session_factory(),
        app.state.rate_limiter,
        settings.maintenance_interval_seconds,
    )
    maintenance_task = asyncio.create_task(maintenance.start())

    yield

    maintenance.stop()
    maintenance_task.cancel()
    try:
        await maintenance_task
    except asyncio.CancelledError:
        pass

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Relocation Hub API",
        description="Relocation checklist backend: content curation, progress tracking and notifications",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.rate_limiter = RateLimiter(MemoryRateLimitStore())

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(categories_router)
    app.include_router(tasks_router)
    app.include_router(progress_router)
    app.include_router(notifications_router)
    app.include_router(admin_router)

    return app


app = create_app()
