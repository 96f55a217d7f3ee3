"""Per-URL crawl work: claim, fetch, extract, persist, discover."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from common.errors import ExtractionError, StorageError, TransportError
from crawl_engine.fetcher import Fetcher
from crawl_engine.rate_limiter import RateLimiter
from extractors import Extractor, LinksOnly, parse_page
from frontier.models import FrontierState
from frontier.store import FrontierStore

logger = logging.getLogger(__name__)

QUEUED = FrontierState.QUEUED
RUNNING = FrontierState.RUNNING
VISITED = FrontierState.VISITED
WARNED = FrontierState.WARNED


class Outcome(str, Enum):
    SKIPPED = "skipped"  # someone else claimed the URL first
    VISITED = "visited"  # link-only page
    EXTRACTED = "extracted"  # article archived
    WARNED = "warned"  # empty or unparseable document
    REQUEUED = "requeued"  # fetch or storage failure, back in the queue
    FAILED = "failed"  # could not even requeue; left for startup recovery


@dataclass
class CrawlStats:
    """Progress counters. Only mutated from the event loop, between awaits."""
    extracted: int = 0
    visited: int = 0
    warned: int = 0
    requeued: int = 0
    skipped: int = 0
    failed: int = 0

    def record(self, outcome: Outcome) -> int:
        """Count ``outcome`` and return the new total for it."""
        total = getattr(self, outcome.value) + 1
        setattr(self, outcome.value, total)
        return total


class Worker:
    def __init__(
        self,
        store: FrontierStore,
        fetcher: Fetcher,
        extractor: Extractor,
        rate_limiter: RateLimiter,
        stats: CrawlStats | None = None,
    ):
        self.store = store
        self.fetcher = fetcher
        self.extractor = extractor
        self.rate_limiter = rate_limiter
        self.stats = stats or CrawlStats()

    async def claim(self, url: str) -> bool:
        """Take ownership of ``url`` by moving it from Queued to Running."""
        claimed = await self.store.move(url, QUEUED, RUNNING)
        if not claimed:
            self.stats.record(Outcome.SKIPPED)
            logger.debug("Skip %s: no longer queued", url)
        return claimed

    async def process(self, url: str) -> Outcome:
        """Process a claimed URL. Never raises; failures put the URL back in the queue."""
        try:
            outcome = await self._process(url)
        except StorageError as exc:
            logger.error("Storage failure while processing %s: %s", url, exc)
            outcome = await self._requeue(url)
        except Exception:
            logger.exception("Unexpected failure while processing %s", url)
            outcome = await self._requeue(url)

        total = self.stats.record(outcome)
        if outcome is Outcome.EXTRACTED:
            logger.info("[%d] Insert Result %s", total, url)
        return outcome

    async def _process(self, url: str) -> Outcome:
        await self.rate_limiter.throttle()
        try:
            text = await self.fetcher.fetch(url)
        except TransportError as exc:
            logger.warning("%s; returning it to the queue", exc)
            return await self._requeue(url)

        try:
            page = parse_page(text)
        except ExtractionError as exc:
            logger.warning("Unparseable document %s: %s", url, exc)
            await self.store.move(url, RUNNING, WARNED)
            return Outcome.WARNED

        result = self.extractor.classify_and_extract(page)

        if isinstance(result, LinksOnly):
            await self.discover(result.links)
            await self.store.move(url, RUNNING, VISITED)
            return Outcome.VISITED

        if result.article.is_empty:
            # Not marked visited, so the URL can be rediscovered later
            logger.warning("Empty document extracted: %s", url)
            await self.store.move(url, RUNNING, WARNED)
            return Outcome.WARNED

        await self.store.put_article(url, result.article)
        await self.discover(result.links)
        await self.store.move(url, RUNNING, VISITED)
        return Outcome.EXTRACTED

    async def _requeue(self, url: str) -> Outcome:
        try:
            await self.store.move(url, RUNNING, QUEUED)
        except StorageError as exc:
            logger.error("Could not requeue %s, leaving it for startup recovery: %s", url, exc)
            return Outcome.FAILED
        return Outcome.REQUEUED

    async def discover(self, links: Iterable[str]) -> int:
        """Enqueue every link not already Visited, Running or Queued. Returns the number added."""
        added = 0
        for link in links:
            if await self.is_known(link):
                continue
            await self.store.enqueue(link)
            added += 1
        if added:
            logger.debug("Discovered %d new links", added)
        return added

    async def is_known(self, url: str) -> bool:
        for state in (VISITED, RUNNING, QUEUED):
            if await self.store.exists(state, url):
                return True
        return False
