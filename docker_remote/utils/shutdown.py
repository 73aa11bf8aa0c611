"""Graceful shutdown handling for the application."""

import asyncio
from typing import List, Callable, Awaitable

import structlog


logger = structlog.get_logger(__name__)


class GracefulShutdownHandler:
    """Runs registered async callbacks, newest first, each with a timeout."""

    def __init__(self, callback_timeout: float = 10.0):
        self._shutdown_callbacks: List[Callable[[], Awaitable[None]]] = []
        self._is_shutting_down = False
        self._shutdown_lock = asyncio.Lock()
        self.callback_timeout = callback_timeout

    @property
    def is_shutting_down(self) -> bool:
        return self._is_shutting_down

    def add_shutdown_callback(self, callback: Callable[[], Awaitable[None]]) -> None:
        """Add a callback to be executed during shutdown."""
        self._shutdown_callbacks.append(callback)

    async def shutdown(self) -> None:
        """Perform graceful shutdown."""
        async with self._shutdown_lock:
            if self._is_shutting_down:
                return

            self._is_shutting_down = True
            logger.info("Starting graceful shutdown")

            for callback in reversed(self._shutdown_callbacks):
                callback_name = getattr(callback, "__name__", str(callback))
                try:
                    await asyncio.wait_for(callback(), timeout=self.callback_timeout)
                except asyncio.TimeoutError:
                    logger.warning(
                        f"Shutdown callback {callback_name} timed out after "
                        f"{self.callback_timeout} seconds"
                    )
                except Exception as e:
                    logger.error(
                        f"Error in shutdown callback {callback_name}", error=str(e)
                    )

            logger.info("Graceful shutdown completed")


def setup_graceful_shutdown(pool, manager, reaper) -> GracefulShutdownHandler:
    """Register the application's shutdown steps.

    Callbacks run in reverse registration order: the reaper stops first,
    then in-flight deployments are cancelled, then every pooled SSH session
    is closed.
    """
    handler = GracefulShutdownHandler()

    async def close_connections() -> None:
        await pool.close_all()
        logger.info("SSH connections closed")

    async def close_manager() -> None:
        await manager.close()
        logger.info("Service lifecycle manager closed")

    async def stop_reaper() -> None:
        await reaper.stop()
        logger.info("Idle reaper stopped")

    handler.add_shutdown_callback(close_connections)
    handler.add_shutdown_callback(close_manager)
    handler.add_shutdown_callback(stop_reaper)

    logger.info("Graceful shutdown handling configured")
    return handler
