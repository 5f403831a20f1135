# sync_coordinator.py
"""Debounced, single-flight scheduling of index rebuilds.

Writes anywhere in the system call ``schedule()``; bursts of writes collapse
into one rebuild once the debounce window has passed quietly. At most one
rebuild runs at a time and triggers that arrive while one is running are
dropped rather than queued.
"""

import asyncio
import logging
from typing import Optional, Set

from pm_assistant.core import SyncResult, settings
from pm_assistant.core.exceptions import SyncInProgressError
from .index_sync import IndexSyncEngine

logger = logging.getLogger(__name__)


class SyncCoordinator:
    """Owns the pending timer and the busy flag for index rebuilds"""

    def __init__(self, engine: IndexSyncEngine, debounce_seconds: Optional[float] = None):
        self._engine = engine
        self.debounce_seconds = (
            settings.SYNC_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        )
        self._timer: Optional[asyncio.TimerHandle] = None
        self._busy = False
        self._tasks: Set[asyncio.Task] = set()
        self._requests: Set[asyncio.TimerHandle] = set()
        self.last_result: Optional[SyncResult] = None
        self.last_error: Optional[str] = None

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def is_scheduled(self) -> bool:
        return self._timer is not None

    def schedule(self) -> None:
        """(Re)arm the debounce timer"""
        loop = asyncio.get_running_loop()
        if self._timer is not None:
            self._timer.cancel()
        logger.info(f"Change detected. Scheduling index sync in {self.debounce_seconds}s...")
        self._timer = loop.call_later(self.debounce_seconds, self._on_timer)

    def request_sync(self, delay: Optional[float] = None) -> None:
        """Start one rebuild after a short fixed delay, outside the debounce window"""
        loop = asyncio.get_running_loop()
        delay = settings.CREATE_SYNC_DELAY_SECONDS if delay is None else delay
        # Forget handles that have already fired
        self._requests = {handle for handle in self._requests if handle.when() > loop.time()}
        self._requests.add(loop.call_later(delay, self._spawn, "requested"))

    def _on_timer(self) -> None:
        self._timer = None
        self._spawn("scheduled")

    def _spawn(self, reason: str) -> None:
        task = asyncio.get_running_loop().create_task(self._run_in_background(reason))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_in_background(self, reason: str) -> None:
        try:
            result = await self.run_now()
        except SyncInProgressError:
            logger.info(f"Sync is already in progress. Skipping this {reason} sync.")
        except Exception as e:
            logger.exception(f"Background index sync failed: {str(e)}")
        else:
            logger.info(f"Background sync completed: {result.to_dict()}")

    async def run_now(self) -> SyncResult:
        """Rebuild immediately; raises SyncInProgressError if one is running"""
        # Check and set happen before the first await
        if self._busy:
            raise SyncInProgressError("An index sync is already in progress")
        self._busy = True
        try:
            result = await self._engine.rebuild()
            self.last_result = result
            self.last_error = None
            return result
        except Exception as e:
            self.last_error = str(e)
            raise
        finally:
            self._busy = False
            logger.info("Sync process finished.")

    async def shutdown(self) -> None:
        """Cancel the pending timer and wait for background rebuilds"""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        for handle in self._requests:
            handle.cancel()
        self._requests.clear()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
