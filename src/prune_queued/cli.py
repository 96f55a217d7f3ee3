"""CLI for pruning already-crawled URLs from the queue."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from common.cli_helpers import setup_logging
from common.errors import StorageError
from crawl_engine.config import load_config
from frontier.store import FrontierStore
from prune_queued.prune_queued import prune_queued

logger = logging.getLogger(__name__)


async def run_prune(name: str, data_dir: str) -> int:
    async with FrontierStore.for_crawl(name, data_dir) as store:
        return await prune_queued(store)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Remove queued URLs that were already crawled.")
    parser.add_argument("--config", default=None)
    parser.add_argument("--name", default=None)
    parser.add_argument("--data-dir", default=None)
    args = parser.parse_args(argv)
    setup_logging()

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    name = args.name or config.name
    data_dir = args.data_dir or config.data_dir
    try:
        pruned = asyncio.run(run_prune(name, data_dir))
    except (StorageError, ValueError) as exc:
        logger.error("Prune failed: %s", exc)
        return 1

    print(pruned)
    return 0


if __name__ == "__main__":
    sys.exit(main())
