"""Tests for prune_queued module."""

import asyncio

from frontier.models import Article, FrontierState
from frontier.store import FrontierStore
from prune_queued.prune_queued import prune_queued


class TestPruneQueued:
    def test_removes_visited_and_archived_urls(self, tmp_path) -> None:
        async def scenario():
            async with FrontierStore("test", tmp_path / "test.db") as store:
                for url in ("visited", "archived", "fresh", "warned"):
                    await store.enqueue(url)
                await store.insert(FrontierState.VISITED, "visited")
                await store.put_article("archived", Article(paragraphs=["x"]))
                await store.insert(FrontierState.WARNED, "warned")
                pruned = await prune_queued(store)
                return pruned, await store.list_all(FrontierState.QUEUED)

        pruned, queued = asyncio.run(scenario())
        assert pruned == 2
        assert queued == ["fresh", "warned"]

    def test_empty_queue(self, tmp_path) -> None:
        async def scenario():
            async with FrontierStore("test", tmp_path / "test.db") as store:
                return await prune_queued(store)

        assert asyncio.run(scenario()) == 0
