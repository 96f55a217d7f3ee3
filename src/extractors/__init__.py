"""Extractor registry."""

from extractors.detik import DetikExtractor
from extractors.models import DocumentAndLinks, ExtractionResult, Extractor, LinksOnly
from extractors.page import parse_page

# Registry mapping extractor names to their classes
EXTRACTORS = {
    "detik": DetikExtractor,
}


def get_extractor(name: str) -> Extractor:
    """Instantiate the extractor registered under ``name``."""
    if name not in EXTRACTORS:
        raise ValueError(f"Unknown extractor: {name}. Valid extractors: {list(EXTRACTORS.keys())}")
    return EXTRACTORS[name]()


__all__ = [
    "EXTRACTORS",
    "DetikExtractor",
    "DocumentAndLinks",
    "ExtractionResult",
    "Extractor",
    "LinksOnly",
    "get_extractor",
    "parse_page",
]
