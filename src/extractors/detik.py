"""detik.com article extractor.

Content pages are recognised by ``<meta name="dtk:contenttype"
content="singlepagenews">``. Article fields come from the page's meta tags;
paragraphs come from the ``<p>`` elements of whichever article body layout
the sub-site uses (news, sport, inet, travel).
"""

import logging
import re
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse

from lxml.html import HtmlElement

from extractors.models import DocumentAndLinks, ExtractionResult, LinksOnly
from extractors.page import inner_html, meta_content
from frontier.models import Article

logger = logging.getLogger(__name__)

DOMAIN = "detik.com"
CONTENT_PAGE_TYPE = "singlepagenews"

# Publish dates are local Jakarta time without an offset
PUBLISH_DATE_FORMAT = "%Y/%m/%d %H:%M:%S %z"
PUBLISH_DATE_OFFSET = "+0700"

BODY_XPATHS = (
    '//div[@class="detail__body-text itp_bodycontent"]',
    '//div[@class="detail_text"]',
    '//div[@class="itp_bodycontent detail__body-text"]',
    '//div[@id="detikdetailtext"]',
)

_WHITESPACE_RE = re.compile(r"\s+")
_EMPHASIS_RE = re.compile(r"(<em>|</em>)")
_LINE_BREAK_RE = re.compile(r"<br>")
_ANCHOR_RE = re.compile(r"<a.*?>(?P<text>.*?)</a>")
_STRONG_RULE_RE = re.compile(r"<strong>-+</strong>")


def parse_publish_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.strptime(f"{value.strip()} {PUBLISH_DATE_OFFSET}", PUBLISH_DATE_FORMAT)
    except ValueError:
        logger.debug("Unparseable publish date: %s", value)
        return None


def parse_keywords(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [keyword.strip() for keyword in value.split(",") if keyword.strip()]


def clean_paragraph(raw: str) -> Optional[str]:
    """Turn the inner HTML of a body ``<p>`` into paragraph text.

    Returns None for empty paragraphs and for boilerplate (related-article
    teasers, embeds, syndication notices).
    """
    text = raw.strip().replace("\n", " ")

    if text.startswith("<strong>Lihat juga"):
        return None
    if text.startswith("<a") and text.endswith("</a>") and "embed" in text:
        return None

    text = _WHITESPACE_RE.sub(" ", text)
    text = _EMPHASIS_RE.sub("", text)
    text = _LINE_BREAK_RE.sub("\n", text)
    text = _ANCHOR_RE.sub(r"\g<text>", text)
    text = _STRONG_RULE_RE.sub(" ", text)
    text = text.lstrip("\n").strip()

    if text.startswith("<strong>Artikel ini telah naik"):
        return None
    return text or None


def _is_same_site(href: str) -> bool:
    try:
        host = urlparse(href).hostname
    except ValueError:
        return False
    if not host:
        return False
    return host == DOMAIN or host.endswith(f".{DOMAIN}")


class DetikExtractor:
    name = "detik"

    def is_content_page(self, page: HtmlElement) -> bool:
        return meta_content(page, "name", "dtk:contenttype") == CONTENT_PAGE_TYPE

    def extract_links(self, page: HtmlElement) -> list[str]:
        """Absolute https links to detik.com pages, trailing slashes stripped, sorted and unique."""
        links = set()
        for href in page.xpath("//a/@href"):
            href = href.strip()
            if not href or href.startswith("#"):
                continue
            if not href.startswith("https://") or DOMAIN not in href:
                continue
            if not _is_same_site(href):
                continue
            links.add(href.rstrip("/"))
        return sorted(links)

    def extract_paragraphs(self, page: HtmlElement) -> list[str]:
        paragraphs: list[str] = []
        for xpath in BODY_XPATHS:
            for body in page.xpath(xpath):
                for p in body.iter("p"):
                    if p.get("style") is not None:
                        continue
                    text = clean_paragraph(inner_html(p))
                    # Drop consecutive duplicates
                    if text and (not paragraphs or paragraphs[-1] != text):
                        paragraphs.append(text)
        return paragraphs

    def extract_article(self, page: HtmlElement) -> Article:
        return Article(
            title=meta_content(page, "property", "og:title"),
            author=meta_content(page, "name", "dtk:author"),
            published_date=parse_publish_date(meta_content(page, "name", "dtk:publishdate")),
            description=meta_content(page, "property", "og:description"),
            thumbnail_url=meta_content(page, "name", "thumbnailUrl"),
            keywords=parse_keywords(meta_content(page, "name", "dtk:keywords")),
            paragraphs=self.extract_paragraphs(page),
        )

    def classify_and_extract(self, page: HtmlElement) -> ExtractionResult:
        links = self.extract_links(page)
        if not self.is_content_page(page):
            return LinksOnly(links=links)
        return DocumentAndLinks(article=self.extract_article(page), links=links)
