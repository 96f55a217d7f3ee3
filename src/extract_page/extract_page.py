"""Fetch and extract a single page without touching the frontier."""

from __future__ import annotations

import logging
from typing import Optional

from crawl_engine.fetcher import Fetcher
from extractors import DocumentAndLinks, ExtractionResult, Extractor, parse_page
from frontier.models import Article

logger = logging.getLogger(__name__)

LABEL_WIDTH = 16


def _line(label: str, value: Optional[object]) -> str:
    return f"{label:<{LABEL_WIDTH}}: {'None' if value is None else value}"


def format_article(article: Article) -> str:
    """Render an article as a human-readable block, one field per line."""
    lines = [
        _line("Title", article.title),
        _line("Author", article.author),
        _line("Published Date", article.published_date),
        _line("Description", article.description),
        _line("Thumbnail", article.thumbnail_url),
        _line("Keywords", ", ".join(article.keywords)),
        _line("Paragraphs", ""),
    ]
    for paragraph in article.paragraphs:
        lines.append("> " + paragraph.replace("\n", "\n  "))
    return "\n".join(lines)


async def extract_page(url: str, fetcher: Fetcher, extractor: Extractor) -> ExtractionResult:
    """Fetch ``url`` and run ``extractor`` on it.

    Raises:
        TransportError: If the page could not be fetched.
        ExtractionError: If the body could not be parsed.
    """
    text = await fetcher.fetch(url)
    result = extractor.classify_and_extract(parse_page(text))
    if isinstance(result, DocumentAndLinks):
        logger.info("%s is a content page with %d paragraphs", url, len(result.article.paragraphs))
    else:
        logger.info("%s is not a content page", url)
    return result


def format_result(result: ExtractionResult, show_links: bool = False) -> str:
    sections = []
    if isinstance(result, DocumentAndLinks):
        sections.append(format_article(result.article))
    if show_links:
        sections.append("\n".join(result.links))
    return "\n\n".join(section for section in sections if section)
