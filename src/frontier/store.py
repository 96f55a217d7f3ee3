"""Durable frontier state backed by SQLite.

Every public method runs in its own short transaction. Inserts into the
frontier sets and the result archive are insert-or-ignore, so repeating a
write is always harmless. Any SQLAlchemy/driver failure surfaces as a
``StorageError`` with the original exception chained.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Iterable, Optional

from sqlalchemy import delete, event, func, literal_column, select
from sqlalchemy import insert as plain_insert
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from common.datetime import utc_now
from common.errors import StorageError
from frontier.models import Article, FrontierState
from frontier.schema import FrontierTables, build_tables

logger = logging.getLogger(__name__)

KEYWORD_SEPARATOR = "|"
PARAGRAPH_SEPARATOR = "\n"

# Seconds a connection waits on a locked database before giving up
BUSY_TIMEOUT = 30


def database_url(path: str | Path) -> str:
    return f"sqlite+aiosqlite:///{path}"


def _enable_wal(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def _split(value: Optional[str], separator: str) -> list[str]:
    if not value:
        return []
    return value.split(separator)


class FrontierStore:
    """Table-backed record of URL membership per frontier state plus the article archive."""

    def __init__(self, name: str, db_path: str | Path):
        self.name = name
        self.db_path = Path(db_path)
        self.tables: FrontierTables = build_tables(name)
        self._engine: AsyncEngine = create_async_engine(
            database_url(self.db_path),
            connect_args={"timeout": BUSY_TIMEOUT},
        )
        event.listen(self._engine.sync_engine, "connect", _enable_wal)

    @classmethod
    def for_crawl(cls, name: str, data_dir: str | Path) -> FrontierStore:
        """Store for crawl ``name`` at ``{data_dir}/{name}.db``."""
        return cls(name, Path(data_dir) / f"{name}.db")

    async def __aenter__(self) -> FrontierStore:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncConnection]:
        try:
            async with self._engine.begin() as conn:
                yield conn
        except SQLAlchemyError as exc:
            raise StorageError(f"{self.name}: {exc}") from exc

    async def initialize(self) -> None:
        """Create the database file and any missing tables."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._transaction() as conn:
            await conn.run_sync(self.tables.metadata.create_all, checkfirst=True)
        logger.debug("Frontier tables ready in %s", self.db_path)

    async def close(self) -> None:
        await self._engine.dispose()

    async def insert(self, state: FrontierState, url: str) -> None:
        """Add ``url`` to ``state`` with the current timestamp (no-op if present)."""
        table = self.tables[state]
        stmt = insert(table).values(id=url, created_at=utc_now()).on_conflict_do_nothing()
        async with self._transaction() as conn:
            await conn.execute(stmt)

    async def enqueue(self, url: str) -> None:
        await self.insert(FrontierState.QUEUED, url)

    async def exists(self, state: FrontierState, url: str) -> bool:
        table = self.tables[state]
        async with self._transaction() as conn:
            result = await conn.execute(select(table.c.id).where(table.c.id == url))
            return result.first() is not None

    async def count(self, state: FrontierState) -> int:
        table = self.tables[state]
        async with self._transaction() as conn:
            result = await conn.execute(select(func.count()).select_from(table))
            return result.scalar_one()

    async def count_many(self, states: Iterable[FrontierState]) -> dict[FrontierState, int]:
        """Sizes of several sets read in a single statement, so all counts share one snapshot."""
        states = list(states)
        stmt = select(
            *(select(func.count()).select_from(self.tables[state]).scalar_subquery() for state in states)
        )
        async with self._transaction() as conn:
            row = (await conn.execute(stmt)).one()
        return dict(zip(states, row))

    async def list_all(self, state: FrontierState) -> list[str]:
        """All members of ``state``, oldest first."""
        return await self._list(state, None)

    async def list_n(self, state: FrontierState, n: int) -> list[str]:
        """The ``n`` oldest members of ``state``."""
        if n <= 0:
            return []
        return await self._list(state, n)

    async def _list(self, state: FrontierState, limit: Optional[int]) -> list[str]:
        table = self.tables[state]
        # rowid breaks ties between rows stamped within the same microsecond
        stmt = select(table.c.id).order_by(table.c.created_at, literal_column("rowid"))
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self._transaction() as conn:
            result = await conn.execute(stmt)
            return list(result.scalars())

    async def delete(self, state: FrontierState, url: str) -> None:
        table = self.tables[state]
        async with self._transaction() as conn:
            await conn.execute(delete(table).where(table.c.id == url))

    async def move(self, url: str, from_state: FrontierState, to_state: FrontierState) -> bool:
        """Move ``url`` from one set to another in a single transaction.

        The URL is only inserted into ``to_state`` if it was actually removed
        from ``from_state``. Returns whether the move happened.
        """
        if from_state == to_state:
            raise ValueError(f"Cannot move {url} from {from_state.value} to itself")

        source = self.tables[from_state]
        target = self.tables[to_state]
        async with self._transaction() as conn:
            removed = await conn.execute(delete(source).where(source.c.id == url))
            if removed.rowcount == 0:
                return False
            await conn.execute(
                insert(target).values(id=url, created_at=utc_now()).on_conflict_do_nothing()
            )
        return True

    async def merge_running_into_queued(self) -> int:
        """Return every Running URL to Queued, keeping its timestamp.

        Used once at startup: whatever is still Running was orphaned by an
        unclean shutdown. Returns the number of URLs recovered.
        """
        queued = self.tables[FrontierState.QUEUED]
        running = self.tables[FrontierState.RUNNING]

        # INSERT OR IGNORE avoids SQLite's upsert-after-SELECT parsing ambiguity
        copy_stmt = plain_insert(queued).prefix_with("OR IGNORE").from_select(
            ["id", "created_at"],
            select(running.c.id, running.c.created_at).order_by(
                running.c.created_at, literal_column("rowid")
            ),
        )
        async with self._transaction() as conn:
            await conn.execute(copy_stmt)
            removed = await conn.execute(delete(running))
            return removed.rowcount

    async def put_article(self, url: str, article: Article) -> None:
        """Archive ``article`` for ``url``. The first write for a URL wins."""
        results = self.tables.results
        stmt = insert(results).values(
            id=url,
            created_at=utc_now(),
            title=article.title,
            author=article.author,
            published_date=article.published_date,
            description=article.description,
            thumbnail_url=article.thumbnail_url,
            keywords=KEYWORD_SEPARATOR.join(article.keywords),
            paragraphs=PARAGRAPH_SEPARATOR.join(article.paragraphs),
        ).on_conflict_do_nothing()
        async with self._transaction() as conn:
            await conn.execute(stmt)

    async def get_article(self, url: str) -> Optional[Article]:
        results = self.tables.results
        async with self._transaction() as conn:
            result = await conn.execute(select(results).where(results.c.id == url))
            row = result.mappings().first()

        if row is None:
            return None

        return Article(
            title=row["title"],
            author=row["author"],
            published_date=row["published_date"],
            description=row["description"],
            thumbnail_url=row["thumbnail_url"],
            keywords=_split(row["keywords"], KEYWORD_SEPARATOR),
            paragraphs=_split(row["paragraphs"], PARAGRAPH_SEPARATOR),
        )

    async def has_article(self, url: str) -> bool:
        results = self.tables.results
        async with self._transaction() as conn:
            result = await conn.execute(select(results.c.id).where(results.c.id == url))
            return result.first() is not None

    async def article_count(self) -> int:
        async with self._transaction() as conn:
            result = await conn.execute(select(func.count()).select_from(self.tables.results))
            return result.scalar_one()
