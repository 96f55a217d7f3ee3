"""Helper functions for the crawl engine and its CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable


def normalize_url(url: str) -> str:
    """Canonical frontier form of a URL: trimmed, trailing slashes stripped."""
    return url.strip().rstrip("/")


def parse_seeds(values: Iterable[str] | None) -> list[str]:
    """Normalize seed URLs, dropping blanks and duplicates while keeping order."""
    seeds: list[str] = []
    for value in values or []:
        url = normalize_url(value)
        if url and url not in seeds:
            seeds.append(url)
    return seeds


def read_seed_file(path: str | Path) -> list[str]:
    """Read one seed URL per line; blank lines and ``#`` comments are ignored."""
    lines = Path(path).read_text().splitlines()
    return parse_seeds(line for line in lines if not line.strip().startswith("#"))
