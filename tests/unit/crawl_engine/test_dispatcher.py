"""Tests for crawl_engine.dispatcher module."""

import asyncio
from unittest.mock import AsyncMock

from crawl_engine.dispatcher import Dispatcher
from frontier.models import FrontierState
from frontier.store import FrontierStore

QUEUED = FrontierState.QUEUED
RUNNING = FrontierState.RUNNING


def drain(channel: asyncio.Queue) -> list:
    items = []
    while not channel.empty():
        items.append(channel.get_nowait())
    return items


def run_dispatcher(tmp_path, scenario):
    async def runner():
        async with FrontierStore("test", tmp_path / "test.db") as store:
            return await scenario(store)

    return asyncio.run(runner())


class TestTick:
    def test_dispatches_oldest_up_to_capacity(self, tmp_path) -> None:
        async def scenario(store):
            for url in ("a", "b", "c", "d"):
                await store.enqueue(url)
            channel = asyncio.Queue()
            dispatcher = Dispatcher(store, channel, max_in_progress=3)
            return await dispatcher.tick(), drain(channel), dispatcher.pending

        dispatched, items, pending = run_dispatcher(tmp_path, scenario)
        assert dispatched == 3
        assert items == ["a", "b", "c"]
        assert pending == {"a", "b", "c"}

    def test_running_urls_reduce_capacity(self, tmp_path) -> None:
        async def scenario(store):
            await store.insert(RUNNING, "r")
            for url in ("a", "b"):
                await store.enqueue(url)
            channel = asyncio.Queue()
            dispatcher = Dispatcher(store, channel, max_in_progress=2)
            await dispatcher.tick()
            return drain(channel)

        assert run_dispatcher(tmp_path, scenario) == ["a"]

    def test_no_capacity_dispatches_nothing(self, tmp_path) -> None:
        async def scenario(store):
            await store.insert(RUNNING, "r1")
            await store.insert(RUNNING, "r2")
            await store.enqueue("a")
            channel = asyncio.Queue()
            dispatcher = Dispatcher(store, channel, max_in_progress=2)
            return await dispatcher.tick(), channel.qsize()

        assert run_dispatcher(tmp_path, scenario) == (0, 0)

    def test_pending_urls_are_not_dispatched_twice(self, tmp_path) -> None:
        async def scenario(store):
            for url in ("a", "b", "c"):
                await store.enqueue(url)
            channel = asyncio.Queue()
            dispatcher = Dispatcher(store, channel, max_in_progress=3, pending={"a"})
            await dispatcher.tick()
            return drain(channel), dispatcher.pending

        items, pending = run_dispatcher(tmp_path, scenario)
        assert items == ["b", "c"]
        assert pending == {"a", "b", "c"}

    def test_second_tick_respects_pending(self, tmp_path) -> None:
        async def scenario(store):
            for url in ("a", "b", "c"):
                await store.enqueue(url)
            channel = asyncio.Queue()
            dispatcher = Dispatcher(store, channel, max_in_progress=2)
            await dispatcher.tick()
            return await dispatcher.tick(), drain(channel)

        assert run_dispatcher(tmp_path, scenario) == (0, ["a", "b"])


class TestRun:
    def test_stops_when_idle_and_closes_channel(self, tmp_path) -> None:
        async def scenario(store):
            channel = asyncio.Queue()
            stop = asyncio.Event()
            dispatcher = Dispatcher(store, channel, max_in_progress=2, interval=0.01)
            await asyncio.wait_for(dispatcher.run(stop, stop_when_idle=True), timeout=5)
            return stop.is_set(), drain(channel)

        assert run_dispatcher(tmp_path, scenario) == (True, [None])

    def test_stop_event_ends_loop(self, tmp_path) -> None:
        async def scenario(store):
            await store.enqueue("a")
            channel = asyncio.Queue()
            stop = asyncio.Event()
            dispatcher = Dispatcher(store, channel, max_in_progress=2, interval=10)
            task = asyncio.create_task(dispatcher.run(stop))
            first = await channel.get()
            stop.set()
            await asyncio.wait_for(task, timeout=5)
            return first, drain(channel)

        assert run_dispatcher(tmp_path, scenario) == ("a", [None])

    def test_is_idle(self, tmp_path) -> None:
        async def scenario(store):
            dispatcher = Dispatcher(store, asyncio.Queue(), max_in_progress=2)
            empty = await dispatcher.is_idle()
            dispatcher.pending.add("a")
            with_pending = await dispatcher.is_idle()
            dispatcher.pending.clear()
            await store.insert(RUNNING, "r")
            with_running = await dispatcher.is_idle()
            return empty, with_pending, with_running

        assert run_dispatcher(tmp_path, scenario) == (True, False, False)

    def test_is_idle_reads_queued_and_running_together(self) -> None:
        store = AsyncMock()
        store.count_many.return_value = {QUEUED: 1, RUNNING: 0}
        dispatcher = Dispatcher(store, asyncio.Queue(), max_in_progress=2)

        assert asyncio.run(dispatcher.is_idle()) is False
        store.count_many.assert_awaited_once_with((QUEUED, RUNNING))
        store.count.assert_not_called()
