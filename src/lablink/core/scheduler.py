"""Periodic identity directory refresh.

One refresh runs immediately at start and another every interval after that.
Each tick spawns its own refresh task, so a slow refresh never delays the
clock; overlapping refreshes are harmless because each one only publishes a
complete snapshot at the end.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from lablink.core.config import RefreshConfig
from lablink.core.directory import IdentityDirectory

LOGGER = logging.getLogger(__name__)


class RefreshScheduler:
    """Drives IdentityDirectory.refresh on a fixed interval."""

    def __init__(self, directory: IdentityDirectory, config: RefreshConfig) -> None:
        self._directory = directory
        self._interval = config.interval_seconds
        self._ticker: Optional[asyncio.Task] = None
        self._refreshes: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._ticker is not None and not self._ticker.done()

    def start(self) -> None:
        """Start ticking on the running event loop. A no-op if already running."""

        if self.running:
            return
        LOGGER.info("Refreshing identities every %s seconds", self._interval)
        self.trigger()
        self._ticker = asyncio.get_running_loop().create_task(self._tick(), name="refresh-scheduler")

    async def stop(self) -> None:
        """Stop the ticker and cancel any refresh still in flight."""

        tasks = list(self._refreshes)
        if self._ticker is not None:
            tasks.append(self._ticker)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._ticker = None
        self._refreshes.clear()

    async def wait_idle(self) -> None:
        """Wait for every refresh currently in flight to finish."""

        await asyncio.gather(*self._refreshes, return_exceptions=True)

    def trigger(self) -> asyncio.Task:
        """Spawn one refresh now, independent of the ticker."""

        task = asyncio.get_running_loop().create_task(self._directory.refresh())
        self._refreshes.add(task)
        task.add_done_callback(self._refreshes.discard)
        return task

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self.trigger()
