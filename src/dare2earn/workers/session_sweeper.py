"""Periodic removal of expired session rows.

Validation already ignores expired rows, so this only keeps the
``user_sessions`` table from growing without bound.
"""

import asyncio
from collections.abc import AsyncGenerator, Callable
from contextlib import aclosing

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from dare2earn.auth.sessions import sweep_expired

logger = structlog.get_logger()

SessionProvider = Callable[[], AsyncGenerator[AsyncSession, None]]


class SessionSweeper:
    """Background task that deletes expired sessions every ``interval_seconds``."""

    def __init__(self, session_provider: SessionProvider, interval_seconds: float = 3600) -> None:
        self.session_provider = session_provider
        self.interval_seconds = interval_seconds
        self._stopped = asyncio.Event()

    async def sweep_once(self) -> int:
        """Run one sweep in its own transaction. Returns rows deleted."""
        async with aclosing(self.session_provider()) as provider:
            async for db in provider:
                removed = await sweep_expired(db)
                await db.commit()
                if removed:
                    logger.info("expired_sessions_swept", count=removed)
                return removed
        return 0

    async def start(self) -> None:
        """Sweep until stop() is called. A failed sweep is logged and retried next interval."""
        logger.info("session_sweeper_started", interval_seconds=self.interval_seconds)
        while not self._stopped.is_set():
            try:
                await self.sweep_once()
            except Exception:
                logger.exception("session_sweep_failed")
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                continue

    async def stop(self) -> None:
        """Ask the loop to exit after the current sweep."""
        self._stopped.set()
        logger.info("session_sweeper_stopped")
