"""Tests for crawl_engine.worker module."""

import asyncio
from unittest.mock import AsyncMock

from common.errors import StorageError, TransportError
from crawl_engine.rate_limiter import RateLimiter
from crawl_engine.worker import CrawlStats, Outcome, Worker
from extractors import DetikExtractor
from frontier.models import FrontierState
from frontier.store import FrontierStore

QUEUED = FrontierState.QUEUED
RUNNING = FrontierState.RUNNING
VISITED = FrontierState.VISITED
WARNED = FrontierState.WARNED

URL = "https://sport.detik.com/sepakbola/d-6448377"
EMPTY_ARTICLE_HTML = (
    '<html><head><meta name="dtk:contenttype" content="singlepagenews"></head>'
    '<body><a href="https://news.detik.com/berita/d-2">x</a></body></html>'
)


def snapshot(store, url):
    async def states():
        return {state: await store.exists(state, url) for state in FrontierState}

    return states()


def run_worker(tmp_path, fetcher, scenario):
    async def runner():
        async with FrontierStore("test", tmp_path / "test.db") as store:
            worker = Worker(store, fetcher, DetikExtractor(), RateLimiter(0))
            return await scenario(store, worker)

    return asyncio.run(runner())


def make_fetcher(text=None, error=None):
    fetcher = AsyncMock()
    if error is not None:
        fetcher.fetch.side_effect = error
    else:
        fetcher.fetch.return_value = text
    return fetcher


class TestClaim:
    def test_claim_moves_to_running(self, tmp_path) -> None:
        async def scenario(store, worker):
            await store.enqueue(URL)
            return await worker.claim(URL), await snapshot(store, URL)

        claimed, states = run_worker(tmp_path, make_fetcher(""), scenario)
        assert claimed is True
        assert states[RUNNING] and not states[QUEUED]

    def test_claim_of_unqueued_url_is_skipped(self, tmp_path) -> None:
        async def scenario(store, worker):
            return await worker.claim(URL), worker.stats.skipped

        assert run_worker(tmp_path, make_fetcher(""), scenario) == (False, 1)


class TestProcess:
    def test_article_is_archived_and_visited(self, tmp_path, article_html) -> None:
        async def scenario(store, worker):
            await store.enqueue(URL)
            await worker.claim(URL)
            outcome = await worker.process(URL)
            return (
                outcome,
                await snapshot(store, URL),
                await store.get_article(URL),
                await store.list_all(QUEUED),
                worker.stats,
            )

        outcome, states, article, queued, stats = run_worker(
            tmp_path, make_fetcher(article_html), scenario
        )
        assert outcome is Outcome.EXTRACTED
        assert states == {QUEUED: False, RUNNING: False, VISITED: True, WARNED: False}
        assert article.title == "Timnas Menang 2-0 atas Brunei"
        assert "https://news.detik.com/berita/d-6448001" in queued
        assert stats == CrawlStats(extracted=1)

    def test_links_only_page_is_visited_without_article(self, tmp_path, index_html) -> None:
        async def scenario(store, worker):
            await store.enqueue(URL)
            await worker.claim(URL)
            outcome = await worker.process(URL)
            return outcome, await snapshot(store, URL), await store.has_article(URL)

        outcome, states, has_article = run_worker(tmp_path, make_fetcher(index_html), scenario)
        assert outcome is Outcome.VISITED
        assert states[VISITED] and not states[RUNNING]
        assert has_article is False

    def test_empty_article_is_warned(self, tmp_path) -> None:
        async def scenario(store, worker):
            await store.enqueue(URL)
            await worker.claim(URL)
            outcome = await worker.process(URL)
            return (
                outcome,
                await snapshot(store, URL),
                await store.has_article(URL),
                await store.list_all(QUEUED),
            )

        outcome, states, has_article, queued = run_worker(
            tmp_path, make_fetcher(EMPTY_ARTICLE_HTML), scenario
        )
        assert outcome is Outcome.WARNED
        assert states == {QUEUED: False, RUNNING: False, VISITED: False, WARNED: True}
        assert has_article is False
        assert queued == []

    def test_unparseable_document_is_warned(self, tmp_path) -> None:
        async def scenario(store, worker):
            await store.enqueue(URL)
            await worker.claim(URL)
            return await worker.process(URL), await snapshot(store, URL)

        outcome, states = run_worker(tmp_path, make_fetcher(""), scenario)
        assert outcome is Outcome.WARNED
        assert states[WARNED]

    def test_transport_failure_requeues(self, tmp_path) -> None:
        fetcher = make_fetcher(error=TransportError(URL, "connection reset"))

        async def scenario(store, worker):
            await store.enqueue(URL)
            await worker.claim(URL)
            return await worker.process(URL), await snapshot(store, URL), worker.stats.requeued

        outcome, states, requeued = run_worker(tmp_path, fetcher, scenario)
        assert outcome is Outcome.REQUEUED
        assert states == {QUEUED: True, RUNNING: False, VISITED: False, WARNED: False}
        assert requeued == 1

    def test_unexpected_error_requeues(self, tmp_path) -> None:
        fetcher = make_fetcher(error=RuntimeError("boom"))

        async def scenario(store, worker):
            await store.enqueue(URL)
            await worker.claim(URL)
            return await worker.process(URL), await snapshot(store, URL)

        outcome, states = run_worker(tmp_path, fetcher, scenario)
        assert outcome is Outcome.REQUEUED
        assert states[QUEUED] and not states[RUNNING]

    def test_storage_failure_on_archive_requeues(self, tmp_path, article_html) -> None:
        async def scenario(store, worker):
            await store.enqueue(URL)
            await worker.claim(URL)
            store.put_article = AsyncMock(side_effect=StorageError("disk full"))
            return await worker.process(URL), await snapshot(store, URL)

        outcome, states = run_worker(tmp_path, make_fetcher(article_html), scenario)
        assert outcome is Outcome.REQUEUED
        assert states[QUEUED] and not states[VISITED]

    def test_process_throttles_before_fetch(self, tmp_path, index_html) -> None:
        limiter = AsyncMock()

        async def runner():
            async with FrontierStore("test", tmp_path / "test.db") as store:
                worker = Worker(store, make_fetcher(index_html), DetikExtractor(), limiter)
                await store.enqueue(URL)
                await worker.claim(URL)
                await worker.process(URL)

        asyncio.run(runner())
        limiter.throttle.assert_awaited_once()


class TestDiscover:
    def test_only_unknown_links_are_enqueued(self, tmp_path) -> None:
        async def scenario(store, worker):
            await store.insert(VISITED, "v")
            await store.insert(RUNNING, "r")
            await store.enqueue("q")
            await store.insert(WARNED, "w")
            added = await worker.discover(["v", "r", "q", "w", "new"])
            return added, await store.list_all(QUEUED)

        added, queued = run_worker(tmp_path, make_fetcher(""), scenario)
        assert added == 2
        assert queued == ["q", "w", "new"]
