"""Table layout for a crawl namespace.

Each crawl name owns five tables in its SQLite database: one per frontier
state (``{name}_queued``, ``{name}_running``, ``{name}_visited``,
``{name}_warned``) and the result archive ``{name}_results``.
"""

import re
from dataclasses import dataclass
from datetime import timezone

from sqlalchemy import Column, DateTime, MetaData, Table, Text
from sqlalchemy.types import TypeDecorator

from common.datetime import to_utc
from frontier.models import FrontierState

_NAME_RE = re.compile(r"^[A-Za-z0-9_]+$")


class UtcDateTime(TypeDecorator):
    """DATETIME column holding timezone-aware values.

    SQLite has no timezone support, so values are normalized to UTC on the
    way in and tagged as UTC on the way out.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return to_utc(value).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class FrontierTables:
    metadata: MetaData
    states: dict[FrontierState, Table]
    results: Table

    def __getitem__(self, state: FrontierState) -> Table:
        return self.states[state]


def validate_crawl_name(name: str) -> str:
    """Crawl names become table prefixes, so only letters, digits and underscores are allowed."""
    if not name or not _NAME_RE.match(name):
        raise ValueError(
            f"Invalid crawl name: {name!r}. Use only letters, numbers, and underscores."
        )
    return name


def _url_table(name: str, metadata: MetaData) -> Table:
    return Table(
        name,
        metadata,
        Column("id", Text, primary_key=True),
        Column("created_at", UtcDateTime),
    )


def build_tables(name: str) -> FrontierTables:
    """Declare the frontier and result tables for crawl ``name``."""
    validate_crawl_name(name)
    metadata = MetaData()

    states = {
        state: _url_table(f"{name}_{state.value}", metadata)
        for state in FrontierState
    }

    results = Table(
        f"{name}_results",
        metadata,
        Column("id", Text, primary_key=True),
        Column("created_at", UtcDateTime),
        Column("title", Text),
        Column("author", Text),
        Column("published_date", UtcDateTime),
        Column("description", Text),
        Column("thumbnail_url", Text),
        Column("keywords", Text),
        Column("paragraphs", Text),
    )

    return FrontierTables(metadata=metadata, states=states, results=results)
