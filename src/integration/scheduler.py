"""Fixed-delay background scheduler for the catalog sync.

The interval is measured from the end of one run to the start of the next,
so a slow catalog delays the following tick instead of overlapping it.
Runs are strictly serial: there is a single loop task and it awaits each
run before sleeping.

Failures never stop the loop.  ``run_once`` logs the exception, records it
in ``SyncStatus`` and returns; the next scheduled run retries from the same
checkpoint.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

logger = logging.getLogger("inventory.integration.scheduler")

DEFAULT_INTERVAL_MS = 5000


@dataclass
class SyncStatus:
    """Counters and last outcome of the scheduled job.

    Attributes:
        runs:        Completed runs, successful or not.
        failures:    Runs that raised.
        last_run_at: UTC timestamp when the last run finished.
        last_error:  Message of the last failure, cleared by a success.
        last_result: Return value of the last successful run.
    """

    runs: int = 0
    failures: int = 0
    last_run_at: datetime | None = None
    last_error: str | None = None
    last_result: Any = None


class SyncScheduler:
    """Run an async job repeatedly with a fixed delay between runs.

    Usage::

        scheduler = SyncScheduler(synchronizer.tick, interval_ms=5000)
        scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        job: Callable[[], Awaitable[Any]],
        interval_ms: int = DEFAULT_INTERVAL_MS,
    ) -> None:
        """Initialize the scheduler.

        Args:
            job:         Zero-argument coroutine function to run on every tick.
            interval_ms: Delay after each run before the next one starts.
        """
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self._job = job
        self._interval_s = interval_ms / 1000.0
        self._task: asyncio.Task | None = None
        self.status = SyncStatus()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the background loop on the running event loop."""
        if self.running:
            logger.debug("SyncScheduler already running")
            return
        logger.info("SyncScheduler: starting (fixed delay %.1fs)", self._interval_s)
        self._task = asyncio.create_task(self._loop(), name="catalog-sync")

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("SyncScheduler: stopped after %d runs", self.status.runs)

    async def run_once(self) -> bool:
        """Run the job once, routing any failure to the log.

        Returns:
            True if the job completed, False if it raised.
        """
        try:
            result = await self._job()
        except Exception as exc:
            self.status.failures += 1
            self.status.last_error = f"{type(exc).__name__}: {exc}"
            logger.exception("Scheduled catalog sync failed")
            return False
        else:
            self.status.last_error = None
            self.status.last_result = result
            return True
        finally:
            self.status.runs += 1
            self.status.last_run_at = datetime.now(timezone.utc)

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self._interval_s)
