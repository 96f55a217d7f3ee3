"""Extractor contract and result types."""

from dataclasses import dataclass, field
from typing import Protocol, Union

from lxml.html import HtmlElement

from frontier.models import Article


@dataclass
class LinksOnly:
    """Page is out of scope for structured extraction but still yields links."""
    links: list[str] = field(default_factory=list)


@dataclass
class DocumentAndLinks:
    """Page was classified as content; ``article`` may still be empty."""
    article: Article
    links: list[str] = field(default_factory=list)


ExtractionResult = Union[LinksOnly, DocumentAndLinks]


class Extractor(Protocol):
    """Site-specific page classification and article extraction."""

    name: str

    def is_content_page(self, page: HtmlElement) -> bool:
        ...

    def extract_links(self, page: HtmlElement) -> list[str]:
        ...

    def classify_and_extract(self, page: HtmlElement) -> ExtractionResult:
        ...
