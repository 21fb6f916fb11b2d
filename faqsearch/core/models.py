"""
Domain types shared by the storage adapters and the retrieval layer.

Public and internal FAQ entries are structurally identical; they differ only
in the partition they live in, so one entity type carries a Partition tag.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class Partition(str, Enum):
    """
    FAQ knowledge partition.

    Attributes:
        PUBLIC: Customer-facing entries.
        INTERNAL: Operator-only entries with richer detail.
    """
    PUBLIC = "public"
    INTERNAL = "internal"


SourceKey = tuple[Partition, str]


@dataclass(frozen=True)
class FAQEntry:
    """
    One FAQ entry from either partition.

    Attributes:
        id: Opaque identifier, unique within its partition.
        partition: Partition the entry belongs to.
        brand: Brand/tenant label.
        tag: Optional category tag.
        question: Question text.
        content: Answer content, may embed HTML.
        created_at: Creation timestamp.
        updated_at: Last update timestamp (public rows fall back to created_at).
    """
    id: str
    partition: Partition
    brand: str
    question: str
    content: str
    tag: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def source_key(self) -> SourceKey:
        """(partition, id) pair addressing this entry across the system."""
        return (self.partition, self.id)

    @property
    def is_internal(self) -> bool:
        return self.partition is Partition.INTERNAL


@dataclass
class ContentChunk:
    """
    Embedded fragment of one FAQ entry's question and answer text.

    Attributes:
        partition: Partition of the source entry.
        source_id: Identifier of the source entry.
        chunk_index: Zero-based position among the source's chunks.
        content: Chunk text.
        embedding: Pre-computed embedding vector.
        brand: Source brand, copied onto every chunk.
        tag: Source tag, copied onto every chunk.
        distance: Vector distance to the query, set by nearest-neighbour search.
    """
    partition: Partition
    source_id: str
    chunk_index: int
    content: str
    embedding: list[float] = field(default_factory=list)
    brand: Optional[str] = None
    tag: Optional[str] = None
    distance: Optional[float] = None

    @property
    def source_key(self) -> SourceKey:
        return (self.partition, self.source_id)

    @property
    def chunk_id(self) -> str:
        """Stable chunk identifier inside the chunk store."""
        return f"{self.partition.value}:{self.source_id}:{self.chunk_index}"

    def to_metadata(self) -> dict[str, Any]:
        """Metadata stored next to the chunk vector (None values dropped)."""
        metadata: dict[str, Any] = {
            "kind": self.partition.value,
            "source_id": self.source_id,
            "chunk_idx": self.chunk_index,
        }
        if self.brand is not None:
            metadata["brand"] = self.brand
        if self.tag is not None:
            metadata["tag"] = self.tag
        return metadata
