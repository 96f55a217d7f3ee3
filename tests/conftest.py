"""Shared fixtures for crawler tests."""

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def article_html() -> str:
    return (FIXTURES_DIR / "detik_article.html").read_text(encoding="utf-8")


@pytest.fixture
def index_html() -> str:
    return (FIXTURES_DIR / "detik_index.html").read_text(encoding="utf-8")
