"""
In-process registry of live conversation threads.
Tracks when each thread was first seen so idle threads can be forgotten.
It never touches persisted checkpoints.
"""

import asyncio
import time
import uuid
from typing import Callable

from yc_advisor.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_RETENTION_SECONDS = 24 * 60 * 60
DEFAULT_SWEEP_INTERVAL_SECONDS = 60 * 60


def _new_thread_id() -> str:
    return str(uuid.uuid4())


class SessionRegistry:
    """
    Maps thread id -> timestamp of registration.

    Reusing a live thread does not refresh its timestamp, so a thread leaves
    the registry `retention_seconds` after it was registered.
    """

    def __init__(
        self,
        retention_seconds: float = DEFAULT_RETENTION_SECONDS,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] = _new_thread_id,
    ):
        """
        Args:
            retention_seconds: Age after which a thread is swept
            sweep_interval: Seconds between two background sweeps
            clock: Returns the current time in seconds
            id_factory: Produces new unique thread ids
        """
        self.retention_seconds = retention_seconds
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._id_factory = id_factory
        self._threads: dict[str, float] = {}
        self._lock = asyncio.Lock()
        self._sweep_task: asyncio.Task | None = None

    def __contains__(self, thread_id: str) -> bool:
        return thread_id in self._threads

    def __len__(self) -> int:
        return len(self._threads)

    async def resolve(self, existing_id: str | None = None) -> str:
        """
        Returns the thread id to use for a turn.

        A live `existing_id` is returned as is. An `existing_id` the registry
        does not know (new user, or swept) is registered and returned. Without
        an id a fresh one is minted and registered.
        """
        async with self._lock:
            if existing_id and existing_id in self._threads:
                return existing_id

            thread_id = existing_id or self._id_factory()
            self._threads[thread_id] = self._clock()

        logger.info("thread_registered", thread_id=thread_id, minted=not existing_id)
        return thread_id

    async def sweep(self) -> list[str]:
        """
        Removes every thread registered more than `retention_seconds` ago.

        Returns:
            The evicted thread ids
        """
        now = self._clock()
        async with self._lock:
            expired = [
                thread_id
                for thread_id, registered_at in self._threads.items()
                if now - registered_at > self.retention_seconds
            ]
            for thread_id in expired:
                del self._threads[thread_id]

        if expired:
            logger.info("threads_evicted", count=len(expired), remaining=len(self))
        return expired

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                await self.sweep()
            except Exception as e:
                logger.error("thread_sweep_failed", exc_info=True, error=str(e))

    def start(self) -> None:
        """Starts the periodic sweep on the running event loop."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._sweep_loop())
            logger.info("thread_sweep_started", interval=self.sweep_interval)

    async def stop(self) -> None:
        """Cancels the periodic sweep and waits for it to finish."""
        if self._sweep_task is None:
            return
        self._sweep_task.cancel()
        try:
            await self._sweep_task
        except asyncio.CancelledError:
            pass
        self._sweep_task = None
        logger.info("thread_sweep_stopped")
