"""Background reclamation of idle SSH sessions."""

import asyncio
from datetime import timedelta
from typing import Optional

import structlog

from .pool import ConnectionPool

logger = structlog.get_logger(__name__)


class IdleReaper:
    """Periodically closes pooled sessions that have been idle too long."""

    def __init__(
        self,
        pool: ConnectionPool,
        check_interval: timedelta = timedelta(minutes=10),
        idle_timeout: timedelta = timedelta(minutes=120),
    ):
        """Initialize the reaper.

        Args:
            pool: Pool whose sessions are reclaimed
            check_interval: Time between sweeps
            idle_timeout: Sessions unused for longer than this are closed
        """
        self.pool = pool
        self.check_interval = check_interval
        self.idle_timeout = idle_timeout
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._reap_loop())
        logger.info(
            "Idle reaper started",
            check_interval_seconds=int(self.check_interval.total_seconds()),
            idle_timeout_seconds=int(self.idle_timeout.total_seconds()),
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Idle reaper stopped")

    async def reap_once(self) -> int:
        closed = await self.pool.cleanup_idle_connections(self.idle_timeout)
        if closed:
            logger.info("Idle SSH connections closed", count=closed)
        return closed

    async def _reap_loop(self):
        interval = self.check_interval.total_seconds()

        while True:
            try:
                await asyncio.sleep(interval)
                await self.reap_once()
            except asyncio.CancelledError:
                logger.debug("Idle reaper loop cancelled")
                raise
            except Exception as e:
                logger.error("Error in idle reaper loop", error=str(e))
