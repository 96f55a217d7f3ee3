"""Periodic dispatcher feeding queued URLs into the work channel."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from common.errors import StorageError
from frontier.models import FrontierState
from frontier.store import FrontierStore

logger = logging.getLogger(__name__)


class Dispatcher:
    """Each tick, fills spare worker capacity with the oldest queued URLs.

    ``pending`` holds URLs already pushed into the channel but not yet claimed
    by a worker; the dispatch loop removes them once the claim was attempted.
    Capacity is ``max_in_progress - count(Running) - len(pending)``, so no
    signal from workers is needed: the next tick sees the lower Running count.
    """

    def __init__(
        self,
        store: FrontierStore,
        channel: asyncio.Queue[Optional[str]],
        max_in_progress: int,
        interval: float = 1.0,
        pending: set[str] | None = None,
    ):
        self.store = store
        self.channel = channel
        self.max_in_progress = max_in_progress
        self.interval = interval
        self.pending = pending if pending is not None else set()

    async def tick(self) -> int:
        """Run one dispatch cycle. Returns the number of URLs pushed."""
        running = await self.store.count(FrontierState.RUNNING)
        capacity = self.max_in_progress - running - len(self.pending)
        if capacity <= 0:
            return 0

        candidates = await self.store.list_n(FrontierState.QUEUED, capacity + len(self.pending))

        dispatched = 0
        for url in candidates:
            if dispatched >= capacity:
                break
            if url in self.pending:
                continue
            self.pending.add(url)
            await self.channel.put(url)
            dispatched += 1

        if dispatched:
            logger.debug("Dispatched %d urls (running=%d, capacity=%d)", dispatched, running, capacity)
        return dispatched

    async def is_idle(self) -> bool:
        """True when nothing is queued, running or waiting in the channel."""
        if self.pending:
            return False
        # Both counts from one snapshot
        counts = await self.store.count_many((FrontierState.QUEUED, FrontierState.RUNNING))
        return counts[FrontierState.QUEUED] == 0 and counts[FrontierState.RUNNING] == 0

    async def run(self, stop: asyncio.Event, stop_when_idle: bool = False) -> None:
        """Tick until ``stop`` is set, then close the channel with a ``None`` sentinel."""
        try:
            while not stop.is_set():
                try:
                    await self.tick()
                    if stop_when_idle and await self.is_idle():
                        logger.info("Frontier drained, stopping")
                        stop.set()
                        break
                except StorageError as exc:
                    logger.error("Dispatch tick failed: %s", exc)

                try:
                    await asyncio.wait_for(stop.wait(), timeout=self.interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            await self.channel.put(None)
