"""Data models for the crawl frontier."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class FrontierState(str, Enum):
    """Membership sets a URL moves through during a crawl."""

    QUEUED = "queued"
    RUNNING = "running"
    VISITED = "visited"
    WARNED = "warned"


@dataclass
class Article:
    """Structured article extracted from a content page."""
    title: Optional[str] = None
    author: Optional[str] = None
    published_date: Optional[datetime] = None
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    keywords: list[str] = field(default_factory=list)
    paragraphs: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not any(p.strip() for p in self.paragraphs)
