"""CLI for running the crawler."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import signal
import sys

from common.cli_helpers import non_negative_float, positive_int, setup_logging
from common.errors import StorageError
from crawl_engine.config import CrawlConfig, load_config
from crawl_engine.crawl_engine import CrawlEngine
from crawl_engine.helpers import read_seed_file
from crawl_engine.worker import CrawlStats
from frontier.store import FrontierStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Crawl news articles into a local archive.")
    parser.add_argument(
        "--config",
        default=None,
        help="Config name in configs/ or path to a YAML file (default: $CONFIG_ENV or prod).",
    )
    parser.add_argument("--name", default=None, help="Crawl name; selects the database and tables.")
    parser.add_argument("--data-dir", default=None)
    parser.add_argument(
        "--seed",
        action="append",
        default=[],
        help="Seed URL, used only when the queue is empty. Repeatable.",
    )
    parser.add_argument("--seed-file", default=None, help="File with one seed URL per line.")
    parser.add_argument("--max-in-progress", type=positive_int, default=None)
    parser.add_argument("--request-delay", type=non_negative_float, default=None)
    parser.add_argument(
        "--until-idle",
        action="store_true",
        help="Stop once nothing is queued or running.",
    )
    return parser


def apply_overrides(config: CrawlConfig, args: argparse.Namespace) -> CrawlConfig:
    overrides = {}
    if args.name is not None:
        overrides["name"] = args.name
    if args.data_dir is not None:
        overrides["data_dir"] = args.data_dir
    seeds = list(args.seed)
    if args.seed_file:
        seeds.extend(read_seed_file(args.seed_file))
    if seeds:
        overrides["seeds"] = seeds
    if args.max_in_progress is not None:
        overrides["max_in_progress"] = args.max_in_progress
    if args.request_delay is not None:
        overrides["request_delay"] = args.request_delay
    if args.until_idle:
        overrides["stop_when_idle"] = True
    return dataclasses.replace(config, **overrides) if overrides else config


async def run_crawl(config: CrawlConfig) -> CrawlStats:
    async with FrontierStore.for_crawl(config.name, config.data_dir) as store:
        engine = CrawlEngine.from_config(config, store=store)

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, engine.stop)
            except NotImplementedError:
                # Signal handlers are unavailable on this platform's event loop
                pass

        return await engine.run(config.seeds)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()

    try:
        config = apply_overrides(load_config(args.config), args)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    logger.info("Starting crawl %s (database %s)", config.name, config.db_path)
    try:
        stats = asyncio.run(run_crawl(config))
    except StorageError as exc:
        logger.error("Crawl aborted: %s", exc)
        return 1

    print(
        f"extracted={stats.extracted} visited={stats.visited} warned={stats.warned} "
        f"requeued={stats.requeued} skipped={stats.skipped} failed={stats.failed}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
