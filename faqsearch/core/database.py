"""
Relational FAQ store for the FAQ search service.

This module provides a repository over the two FAQ tables:
- Table definitions for the public and internal partitions
- Keyword (substring) search per partition
- Bulk fetch by identifiers and category browse
- Connection pooling through one long-lived SQLAlchemy engine

SQLAlchemy calls are blocking, so every operation runs in a worker thread;
that lets the public and internal queries of one request run concurrently.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Iterable, Sequence

from sqlalchemy import (
    Column,
    DateTime,
    Engine,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    insert,
    or_,
    select,
    text,
)
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from faqsearch.config.settings import DatabaseSettings
from faqsearch.core.models import FAQEntry, Partition
from faqsearch.utils.exceptions import (
    InvalidConfigurationError,
    MissingConfigurationError,
    StorageConnectionError,
    StorageQueryError,
)
from faqsearch.utils.logging import LoggerMixin, get_logger

logger = get_logger(__name__)

metadata = MetaData()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _faq_table(name: str) -> Table:
    return Table(
        name,
        metadata,
        Column("id", String(36), primary_key=True),
        Column("brand", String(100), nullable=False),
        Column("tag", String(100), nullable=True),
        Column("question", Text, nullable=False),
        Column("content", Text, nullable=False),
        Column("createdAt", DateTime, nullable=False, default=_utcnow),
        Column("updatedAt", DateTime, nullable=False, default=_utcnow),
    )


faq_table = _faq_table("FAQ")
faq_internal_table = _faq_table("FAQ_Internal")

_TABLES: dict[Partition, Table] = {
    Partition.PUBLIC: faq_table,
    Partition.INTERNAL: faq_internal_table,
}


def table_for(partition: Partition) -> Table:
    """Return the table backing a partition."""
    return _TABLES[Partition(partition)]


def search_terms(query: str) -> list[str]:
    """
    Split a query into LIKE search terms.

    The full (trimmed) query always comes first, followed by whitespace
    tokens longer than one character. Duplicates are dropped.
    """
    normalized = query.strip()
    if not normalized:
        return []
    terms = [normalized]
    for token in normalized.split():
        if len(token) > 1 and token not in terms:
            terms.append(token)
    return terms


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def create_engine_from_settings(settings: DatabaseSettings) -> Engine:
    """
    Create the pooled engine shared by all repository calls.

    Args:
        settings: Database configuration settings.

    Returns:
        SQLAlchemy Engine.

    Raises:
        MissingConfigurationError: If DATABASE_URL is not set.
    """
    if not settings.is_configured:
        raise MissingConfigurationError(
            "DATABASE_URL is not configured",
            details={"setting": "DATABASE_URL"},
        )

    url = settings.database_url.get_secret_value()
    kwargs: dict[str, Any] = {
        "echo": settings.database_echo,
        "pool_pre_ping": True,
    }
    if not url.startswith("sqlite"):
        kwargs["pool_size"] = settings.database_pool_size
        kwargs["pool_recycle"] = settings.database_pool_recycle

    logger.info("creating_database_engine", dialect=url.split(":", 1)[0])
    try:
        return create_engine(url, **kwargs)
    except ArgumentError as e:
        raise InvalidConfigurationError(
            "DATABASE_URL is not a valid database URL",
            details={"setting": "DATABASE_URL"},
            cause=e,
        ) from e


class FAQRepository(LoggerMixin):
    """
    Repository over the public and internal FAQ tables.

    One generic implementation serves both partitions; the partition only
    selects the table. The engine is injected and owns the connection pool;
    each operation checks a connection out and returns it on exit.

    Args:
        engine: SQLAlchemy engine (pooled, long-lived).

    Example:
        >>> repo = FAQRepository(create_engine_from_settings(settings.database))
        >>> rows = await repo.keyword_search(Partition.PUBLIC, "환불", limit=10)
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.logger.info("faq_repository_initialized", dialect=engine.dialect.name)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _fetch(self, statement: Any, operation: str) -> list[Any]:
        try:
            connection = self.engine.connect()
        except SQLAlchemyError as e:
            self.logger.error("database_connection_failed", operation=operation, error=str(e))
            raise StorageConnectionError(
                "Failed to connect to the FAQ database",
                details={"operation": operation},
                cause=e,
            ) from e

        try:
            with connection:
                return list(connection.execute(statement).mappings())
        except SQLAlchemyError as e:
            self.logger.error("database_query_failed", operation=operation, error=str(e))
            raise StorageQueryError(
                f"FAQ query failed: {operation}",
                details={"operation": operation},
                cause=e,
            ) from e

    @staticmethod
    def _to_entry(row: Any, partition: Partition) -> FAQEntry:
        return FAQEntry(
            id=str(row["id"]),
            partition=partition,
            brand=row["brand"],
            tag=row["tag"],
            question=row["question"],
            content=row["content"],
            created_at=row["createdAt"],
            updated_at=row["updatedAt"],
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _keyword_search_sync(
        self, partition: Partition, query: str, limit: int
    ) -> list[FAQEntry]:
        terms = search_terms(query)
        if not terms:
            return []

        table = table_for(partition)
        conditions = [
            column.ilike(_like_pattern(term), escape="\\")
            for term in terms
            for column in (table.c.question, table.c.content, table.c.tag)
        ]
        statement = (
            select(table)
            .where(or_(*conditions))
            .order_by(table.c.updatedAt.desc(), table.c.id)
            .limit(limit)
        )
        rows = self._fetch(statement, f"keyword_search:{partition.value}")
        return [self._to_entry(row, partition) for row in rows]

    async def keyword_search(
        self, partition: Partition, query: str, limit: int = 10
    ) -> list[FAQEntry]:
        """
        Find entries whose question, content or tag contain the query.

        Matches the full query and every whitespace token longer than one
        character, case-insensitively.

        Args:
            partition: Partition to search.
            query: Raw query text.
            limit: Maximum rows returned.

        Returns:
            Matching entries, most recently updated first.

        Raises:
            StorageConnectionError: If no connection could be acquired.
            StorageQueryError: If the query failed.
        """
        entries = await asyncio.to_thread(self._keyword_search_sync, partition, query, limit)
        self.logger.debug(
            "keyword_rows_fetched",
            partition=partition.value,
            count=len(entries),
        )
        return entries

    def _get_by_ids_sync(self, partition: Partition, ids: Sequence[str]) -> list[FAQEntry]:
        table = table_for(partition)
        statement = select(table).where(table.c.id.in_(list(ids)))
        rows = self._fetch(statement, f"get_by_ids:{partition.value}")
        return [self._to_entry(row, partition) for row in rows]

    async def get_by_ids(self, partition: Partition, ids: Sequence[str]) -> list[FAQEntry]:
        """Fetch entries of one partition by identifier (order not guaranteed)."""
        if not ids:
            return []
        return await asyncio.to_thread(self._get_by_ids_sync, partition, ids)

    def _get_by_tag_sync(self, tag: str, limit: int) -> list[FAQEntry]:
        table = table_for(Partition.PUBLIC)
        statement = (
            select(table)
            .where(table.c.tag == tag)
            .order_by(table.c.createdAt.desc(), table.c.id)
            .limit(limit)
        )
        rows = self._fetch(statement, "get_by_tag")
        return [self._to_entry(row, Partition.PUBLIC) for row in rows]

    async def get_by_tag(self, tag: str, limit: int = 20) -> list[FAQEntry]:
        """Public entries whose tag equals `tag`, newest first."""
        return await asyncio.to_thread(self._get_by_tag_sync, tag, limit)

    # ------------------------------------------------------------------
    # Schema and seeding
    # ------------------------------------------------------------------

    def create_tables(self) -> None:
        """Create both FAQ tables if they do not exist."""
        metadata.create_all(self.engine)
        self.logger.info("faq_tables_created")

    def add_entries(self, entries: Iterable[FAQEntry]) -> int:
        """
        Insert entries into their partition tables.

        Returns:
            Number of rows inserted.
        """
        grouped: dict[Partition, list[dict[str, Any]]] = {}
        now = _utcnow()
        for entry in entries:
            created_at = entry.created_at or now
            row: dict[str, Any] = {
                "id": entry.id,
                "brand": entry.brand,
                "tag": entry.tag,
                "question": entry.question,
                "content": entry.content,
                "createdAt": created_at,
                "updatedAt": entry.updated_at or created_at,
            }
            grouped.setdefault(entry.partition, []).append(row)

        inserted = 0
        with self.engine.begin() as connection:
            for partition, rows in grouped.items():
                connection.execute(insert(table_for(partition)), rows)
                inserted += len(rows)

        self.logger.info("faq_entries_added", count=inserted)
        return inserted

    async def health_check(self) -> bool:
        """
        Check database connectivity.

        Returns:
            True if healthy, False otherwise.
        """
        try:
            await asyncio.to_thread(self._fetch, text("SELECT 1"), "health_check")
            return True
        except (StorageConnectionError, StorageQueryError) as e:
            self.logger.error("database_health_check_failed", error=str(e))
            return False

    def close(self) -> None:
        """Dispose of the pooled connections."""
        self.engine.dispose()
        self.logger.info("faq_repository_closed")
