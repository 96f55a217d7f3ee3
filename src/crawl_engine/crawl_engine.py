"""Crawl engine: startup recovery, seeding, dispatch loop and worker pool."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from common.errors import StorageError
from crawl_engine.config import CrawlConfig
from crawl_engine.dispatcher import Dispatcher
from crawl_engine.fetcher import Fetcher, HttpFetcher
from crawl_engine.helpers import parse_seeds
from crawl_engine.rate_limiter import RateLimiter
from crawl_engine.worker import CrawlStats, Worker
from extractors import Extractor, get_extractor
from frontier.models import FrontierState
from frontier.store import FrontierStore

logger = logging.getLogger(__name__)


class CrawlEngine:
    """Owns the frontier lifecycle for one crawl.

    ``run()`` recovers URLs orphaned in Running by a previous process, seeds
    an empty queue, then runs the dispatcher and drains its channel, spawning
    one worker task per URL. At most ``max_in_progress`` workers run at once.
    """

    def __init__(
        self,
        store: FrontierStore,
        fetcher: Fetcher,
        extractor: Extractor,
        max_in_progress: int = 20,
        request_delay: float = 0.05,
        dispatch_interval: float = 1.0,
        channel_size: int = 10,
        stop_when_idle: bool = False,
        rate_limiter: RateLimiter | None = None,
    ):
        self.store = store
        self.max_in_progress = max_in_progress
        self.dispatch_interval = dispatch_interval
        self.channel_size = channel_size
        self.stop_when_idle = stop_when_idle
        self.rate_limiter = rate_limiter or RateLimiter(request_delay)
        self.stats = CrawlStats()
        self.worker = Worker(store, fetcher, extractor, self.rate_limiter, self.stats)

        self._stop = asyncio.Event()
        self._pending: set[str] = set()
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    def from_config(
        cls,
        config: CrawlConfig,
        store: FrontierStore | None = None,
        fetcher: Fetcher | None = None,
    ) -> CrawlEngine:
        return cls(
            store=store or FrontierStore.for_crawl(config.name, config.data_dir),
            fetcher=fetcher or HttpFetcher(config.fetch_timeout, config.user_agent),
            extractor=get_extractor(config.extractor),
            max_in_progress=config.max_in_progress,
            request_delay=config.request_delay,
            dispatch_interval=config.dispatch_interval,
            channel_size=config.channel_size,
            stop_when_idle=config.stop_when_idle,
        )

    @property
    def active_workers(self) -> int:
        return len(self._tasks)

    def stop(self) -> None:
        """Stop dispatching; in-flight workers are allowed to finish."""
        if not self._stop.is_set():
            logger.info("Stop requested, waiting for %d workers", self.active_workers)
        self._stop.set()

    async def recover(self) -> int:
        """Return URLs orphaned in Running by an unclean shutdown to the queue."""
        logger.info(
            "Total (running, queued) before recovery: (%d, %d)",
            await self.store.count(FrontierState.RUNNING),
            await self.store.count(FrontierState.QUEUED),
        )
        recovered = await self.store.merge_running_into_queued()
        logger.info(
            "Total (running, queued) after recovery: (%d, %d)",
            await self.store.count(FrontierState.RUNNING),
            await self.store.count(FrontierState.QUEUED),
        )
        return recovered

    async def seed(self, seeds: Iterable[str]) -> int:
        """Enqueue ``seeds`` if, and only if, the persisted queue is empty."""
        if await self.store.count(FrontierState.QUEUED):
            return 0
        seeds = parse_seeds(seeds)
        for url in seeds:
            await self.store.enqueue(url)
        return len(seeds)

    async def run(self, seeds: Iterable[str] = ()) -> CrawlStats:
        await self.store.initialize()
        await self.recover()
        seeded = await self.seed(seeds)
        if seeded:
            logger.info("Seeded empty queue with %d urls", seeded)
        logger.info("Initial queue length: %d", await self.store.count(FrontierState.QUEUED))

        self.stats.extracted = await self.store.article_count()

        channel: asyncio.Queue[Optional[str]] = asyncio.Queue(maxsize=self.channel_size)
        slots = asyncio.Semaphore(self.max_in_progress)
        dispatcher = Dispatcher(
            self.store,
            channel,
            self.max_in_progress,
            interval=self.dispatch_interval,
            pending=self._pending,
        )
        dispatcher_task = asyncio.create_task(dispatcher.run(self._stop, self.stop_when_idle))

        drained = False
        try:
            await self._drain(channel, slots)
            drained = True
        finally:
            self._stop.set()
            if not drained:
                dispatcher_task.cancel()
            for result in await asyncio.gather(dispatcher_task, return_exceptions=True):
                if isinstance(result, Exception):
                    logger.error("Dispatcher failed: %s", result)
            if self._tasks:
                await asyncio.gather(*self._tasks, return_exceptions=True)

        logger.info(
            "Crawl stopped: %d extracted, %d visited, %d warned, %d requeued",
            self.stats.extracted,
            self.stats.visited,
            self.stats.warned,
            self.stats.requeued,
        )
        return self.stats

    async def _drain(self, channel: asyncio.Queue[Optional[str]], slots: asyncio.Semaphore) -> None:
        while True:
            url = await channel.get()
            if url is None:
                break

            if self._stop.is_set() or not await self._should_spawn(url):
                self._pending.discard(url)
                continue

            await slots.acquire()
            if self._stop.is_set():
                slots.release()
                self._pending.discard(url)
                continue

            task = asyncio.create_task(self._work(url, slots))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _should_spawn(self, url: str) -> bool:
        """Drop URLs that another cycle already took or finished."""
        try:
            if await self.store.exists(FrontierState.RUNNING, url) or await self.store.exists(
                FrontierState.VISITED, url
            ):
                await self.store.delete(FrontierState.QUEUED, url)
                return False
        except StorageError as exc:
            logger.error("Dropping %s from this dispatch: %s", url, exc)
            return False
        return True

    async def _work(self, url: str, slots: asyncio.Semaphore) -> None:
        try:
            try:
                claimed = await self.worker.claim(url)
            finally:
                self._pending.discard(url)
            if claimed:
                await self.worker.process(url)
        except StorageError as exc:
            logger.error("Could not claim %s: %s", url, exc)
        except Exception:
            logger.exception("Worker for %s crashed", url)
        finally:
            slots.release()
