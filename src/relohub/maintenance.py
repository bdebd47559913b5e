"""Background housekeeping: expired notifications and rate-limit entries."""

import asyncio

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from relohub.notifications.service import purge_expired
from relohub.ratelimit import RateLimiter

logger = structlog.get_logger()


async def run_maintenance_once(
    session_factory: async_sessionmaker[AsyncSession],
    limiter: RateLimiter | None = None,
) -> dict[str, int]:
    """One housekeeping pass. Returns how much was removed."""
    async with session_factory() as db:
        purged = await purge_expired(db)
        await db.commit()
    swept = limiter.sweep() if limiter is not None else 0
    if purged or swept:
        logger.info("maintenance_pass", notifications_purged=purged, rate_limit_keys_swept=swept)
    return {"notifications_purged": purged, "rate_limit_keys_swept": swept}


class MaintenanceLoop:
    """Runs ``run_maintenance_once`` every ``interval_seconds`` until stopped."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        limiter: RateLimiter | None,
        interval_seconds: float,
    ) -> None:
        self.session_factory = session_factory
        self.limiter = limiter
        self.interval_seconds = interval_seconds
        self._stop = asyncio.Event()

    async def start(self) -> None:
        logger.info("maintenance_loop_started", interval_seconds=self.interval_seconds)
        while not self._stop.is_set():
            try:
                await run_maintenance_once(self.session_factory, self.limiter)
            except Exception:
                logger.warning("maintenance_pass_failed", exc_info=True)
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval_seconds)
            except TimeoutError:
                continue
        logger.info("maintenance_loop_stopped")

    def stop(self) -> None:
        self._stop.set()
