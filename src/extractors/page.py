"""HTML parsing helpers shared by extractors."""

from typing import Optional

from lxml import etree
from lxml import html as lxml_html
from lxml.html import HtmlElement

from common.errors import ExtractionError


def parse_page(text: str) -> HtmlElement:
    """Parse raw page text into an lxml document.

    Raises:
        ExtractionError: If the text is empty or cannot be parsed as HTML.
    """
    if not text or not text.strip():
        raise ExtractionError("Document is empty")
    try:
        return lxml_html.document_fromstring(text)
    except (etree.ParserError, ValueError) as exc:
        raise ExtractionError(f"Unparseable document: {exc}") from exc


def meta_content(page: HtmlElement, attribute: str, value: str) -> Optional[str]:
    """Return the ``content`` of the first ``<meta {attribute}="{value}">`` tag."""
    for element in page.iter("meta"):
        if element.get(attribute) == value:
            return element.get("content")
    return None


def inner_html(element: HtmlElement) -> str:
    """Serialize the children of ``element`` (text and markup) without the element itself."""
    parts = [element.text or ""]
    for child in element:
        # tostring includes the child's tail text
        parts.append(etree.tostring(child, encoding="unicode", method="html"))
    return "".join(parts)
