"""CLI for inspecting what the extractor sees on a single page."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from common.cli_helpers import setup_logging
from common.errors import ExtractionError, TransportError
from crawl_engine.config import DEFAULT_USER_AGENT
from crawl_engine.fetcher import HttpFetcher
from extract_page.extract_page import extract_page, format_result
from extractors import EXTRACTORS, get_extractor

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Fetch one page and print the extracted article.")
    parser.add_argument("url")
    parser.add_argument("--extractor", choices=sorted(EXTRACTORS), default="detik")
    parser.add_argument("--links", action="store_true", help="Also print discovered links.")
    parser.add_argument("--timeout", type=float, default=30.0)
    args = parser.parse_args(argv)
    setup_logging()

    fetcher = HttpFetcher(timeout=args.timeout, user_agent=DEFAULT_USER_AGENT)
    try:
        result = asyncio.run(extract_page(args.url, fetcher, get_extractor(args.extractor)))
    except (TransportError, ExtractionError) as exc:
        logger.error("%s", exc)
        return 1

    output = format_result(result, show_links=args.links)
    if output:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
