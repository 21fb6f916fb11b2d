"""
ChromaDB chunk store for the FAQ search service.

This module provides a manager class for the FAQ chunk collection including:
- Connection management and health checks
- Nearest-neighbour search over chunk embeddings, optionally public-only
- Whole-source chunk replacement (delete then reinsert)
"""

from __future__ import annotations

import asyncio
from typing import Sequence

import chromadb
from chromadb.api.models.Collection import Collection

from faqsearch.config.settings import ChromaSettings
from faqsearch.core.models import ContentChunk, Partition
from faqsearch.utils.exceptions import (
    VectorStoreConnectionError,
    VectorStoreRetrievalError,
    VectorStoreStorageError,
)
from faqsearch.utils.logging import LoggerMixin, get_logger

logger = get_logger(__name__)


class ChunkStore(LoggerMixin):
    """
    Manager class for the FAQ chunk collection.

    Each stored chunk carries `kind`, `source_id`, `brand`, `tag` and
    `chunk_idx` metadata so search results never need a join against the
    FAQ tables to know where they came from.

    Args:
        settings: ChromaDB configuration settings.
        client: Optional pre-built Chroma client (tests pass an in-memory one).
    """

    def __init__(
        self,
        settings: ChromaSettings,
        client: chromadb.ClientAPI | None = None,
    ) -> None:
        self.settings = settings
        self._client = client
        self._collection: Collection | None = None

        self.logger.info(
            "chunk_store_initialized",
            collection=settings.collection,
            host=settings.host,
            port=settings.port,
            in_memory=settings.in_memory,
        )

    @property
    def client(self) -> chromadb.ClientAPI:
        """
        Get or create ChromaDB client.

        Raises:
            VectorStoreConnectionError: If unable to connect to ChromaDB.
        """
        if self._client is None:
            self._client = self._create_client()
        return self._client

    @property
    def collection(self) -> Collection:
        """Get or create the chunk collection."""
        if self._collection is None:
            self._collection = self.client.get_or_create_collection(
                name=self.settings.collection,
                metadata={"hnsw:space": "cosine"},
            )
            self.logger.info(
                "collection_ready",
                collection=self.settings.collection,
                count=self._collection.count(),
            )
        return self._collection

    def _create_client(self) -> chromadb.ClientAPI:
        try:
            if self.settings.in_memory:
                self.logger.info("creating_in_memory_client")
                return chromadb.Client()

            self.logger.info(
                "creating_http_client",
                host=self.settings.host,
                port=self.settings.port,
            )
            client = chromadb.HttpClient(
                host=self.settings.host,
                port=self.settings.port,
            )
            client.heartbeat()
            self.logger.info("chromadb_connection_successful")
            return client

        except Exception as e:
            self.logger.error(
                "chromadb_connection_failed",
                error=str(e),
                host=self.settings.host,
                port=self.settings.port,
            )
            raise VectorStoreConnectionError(
                f"Failed to connect to ChromaDB at {self.settings.host}:{self.settings.port}",
                cause=e,
            ) from e

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _search_sync(
        self,
        embedding: Sequence[float],
        limit: int,
        include_internal: bool,
    ) -> list[ContentChunk]:
        collection = self.collection
        if collection.count() == 0:
            return []

        where = None if include_internal else {"kind": Partition.PUBLIC.value}
        results = collection.query(
            query_embeddings=[list(embedding)],
            n_results=limit,
            where=where,
            include=["metadatas", "documents", "distances"],
        )

        metadatas = (results.get("metadatas") or [[]])[0] or []
        documents = (results.get("documents") or [[]])[0] or []
        distances = (results.get("distances") or [[]])[0] or []

        chunks = []
        for i, meta in enumerate(metadatas):
            if not meta or "source_id" not in meta or "kind" not in meta:
                continue
            chunks.append(
                ContentChunk(
                    partition=Partition(meta["kind"]),
                    source_id=str(meta["source_id"]),
                    chunk_index=int(meta.get("chunk_idx", 0)),
                    content=documents[i] if i < len(documents) else "",
                    brand=meta.get("brand"),
                    tag=meta.get("tag"),
                    distance=distances[i] if i < len(distances) else None,
                )
            )
        return chunks

    async def search_chunks(
        self,
        embedding: Sequence[float],
        limit: int = 15,
        include_internal: bool = True,
    ) -> list[ContentChunk]:
        """
        Find the chunks nearest to a query embedding.

        Args:
            embedding: Query vector.
            limit: Number of chunks to return.
            include_internal: Also search the internal partition.

        Returns:
            Chunks ordered by ascending distance, `distance` populated.

        Raises:
            VectorStoreRetrievalError: If the search fails.
        """
        self.logger.debug(
            "searching_chunks",
            limit=limit,
            include_internal=include_internal,
        )
        try:
            chunks = await asyncio.to_thread(
                self._search_sync, embedding, limit, include_internal
            )
        except VectorStoreConnectionError:
            raise
        except Exception as e:
            self.logger.error("chunk_search_failed", error=str(e))
            raise VectorStoreRetrievalError("Chunk search failed", cause=e) from e

        self.logger.debug("chunk_search_completed", results_count=len(chunks))
        return chunks

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def replace_chunks(
        self,
        partition: Partition,
        source_id: str,
        chunks: Sequence[tuple[str, Sequence[float]]],
        brand: str | None = None,
        tag: str | None = None,
    ) -> list[ContentChunk]:
        """
        Replace every chunk of one source entry.

        All existing chunks of (partition, source_id) are deleted before the
        new ones are inserted with indices 0..n-1, so an edited entry never
        leaves stale chunks behind.

        Args:
            partition: Partition of the source entry.
            source_id: Source entry identifier.
            chunks: (text, embedding) pairs in order.
            brand: Source brand copied onto every chunk.
            tag: Source tag copied onto every chunk.

        Returns:
            The stored chunks.
        """
        partition = Partition(partition)
        stored = [
            ContentChunk(
                partition=partition,
                source_id=source_id,
                chunk_index=index,
                content=content,
                embedding=list(embedding),
                brand=brand,
                tag=tag,
            )
            for index, (content, embedding) in enumerate(chunks)
        ]

        try:
            self.collection.delete(
                where={
                    "$and": [
                        {"kind": partition.value},
                        {"source_id": source_id},
                    ]
                }
            )
            if stored:
                self.collection.add(
                    ids=[chunk.chunk_id for chunk in stored],
                    embeddings=[chunk.embedding for chunk in stored],
                    documents=[chunk.content for chunk in stored],
                    metadatas=[chunk.to_metadata() for chunk in stored],
                )
        except Exception as e:
            self.logger.error(
                "replace_chunks_failed",
                partition=partition.value,
                source_id=source_id,
                error=str(e),
            )
            raise VectorStoreStorageError(
                "Failed to replace chunks",
                details={"partition": partition.value, "source_id": source_id},
                cause=e,
            ) from e

        self.logger.info(
            "chunks_replaced",
            partition=partition.value,
            source_id=source_id,
            count=len(stored),
        )
        return stored

    def count(self) -> int:
        """Number of chunks in the collection."""
        return self.collection.count()

    async def health_check(self) -> bool:
        """
        Check ChromaDB connection health.

        Returns:
            True if healthy, False otherwise.
        """
        try:
            heartbeat = await asyncio.to_thread(self.client.heartbeat)
            return heartbeat is not None
        except Exception as e:
            self.logger.error("chunk_store_health_check_failed", error=str(e))
            return False


def get_chunk_store(settings: ChromaSettings | None = None) -> ChunkStore:
    """
    Convenience function to get a chunk store.

    Args:
        settings: Optional ChromaDB settings. If None, loads from environment.
    """
    if settings is None:
        from faqsearch.config.settings import get_settings

        settings = get_settings().chroma

    return ChunkStore(settings)
