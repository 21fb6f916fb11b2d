"""
Pytest configuration and shared fixtures.

This module provides:
- Shared fixtures for all tests
- Hypothesis profile configuration
- In-memory storage (SQLite FAQ tables, ephemeral Chroma collection)
"""

import os
from collections.abc import Generator
from datetime import datetime
from typing import Sequence
from unittest.mock import patch
from uuid import uuid4

import chromadb
import pytest
from hypothesis import settings as hypothesis_settings, Verbosity
from langchain_core.embeddings import Embeddings
from sqlalchemy import Engine, create_engine
from sqlalchemy.pool import StaticPool

from faqsearch.config.settings import ChromaSettings, RetrievalSettings
from faqsearch.core.database import FAQRepository, metadata
from faqsearch.core.models import FAQEntry, Partition
from faqsearch.core.vectorstore import ChunkStore

# Configure Hypothesis profiles
hypothesis_settings.register_profile(
    "ci",
    max_examples=100,
    deadline=1000,
    verbosity=Verbosity.normal,
)
hypothesis_settings.register_profile(
    "dev",
    max_examples=20,
    deadline=None,
    verbosity=Verbosity.normal,
)
hypothesis_settings.register_profile(
    "debug",
    max_examples=10,
    deadline=None,
    verbosity=Verbosity.verbose,
)

# Load profile from environment or use dev
profile = os.environ.get("HYPOTHESIS_PROFILE", "dev")
hypothesis_settings.load_profile(profile)


class KeywordEmbeddings(Embeddings):
    """
    Deterministic embeddings for tests.

    Each vocabulary word is one dimension; a text embeds to the counts of the
    vocabulary words it contains. Texts sharing words end up close.
    """

    def __init__(self, vocabulary: Sequence[str]) -> None:
        self.vocabulary = list(vocabulary)

    def _embed(self, text: str) -> list[float]:
        vector = [float(text.count(word)) for word in self.vocabulary]
        if not any(vector):
            vector[-1] = 0.01
        return vector

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self._embed(text) for text in texts]

    def embed_query(self, text: str) -> list[float]:
        return self._embed(text)


VOCABULARY = ["환불", "배송", "구독", "결제", "refund", "delivery", "<none>"]


@pytest.fixture
def keyword_embeddings() -> KeywordEmbeddings:
    """Deterministic embeddings over a small vocabulary."""
    return KeywordEmbeddings(VOCABULARY)


@pytest.fixture
def retrieval_settings() -> RetrievalSettings:
    """Retrieval settings with default scoring constants."""
    return RetrievalSettings()


@pytest.fixture
def sample_entries() -> list[FAQEntry]:
    """Public and internal FAQ entries used across tests."""
    return [
        FAQEntry(
            id="pub-refund",
            partition=Partition.PUBLIC,
            brand="minihaksupji",
            tag="환불",
            question="환불 신청 방법이 궁금해요",
            content="마이페이지 > 주문내역에서 환불을 신청할 수 있습니다.",
            created_at=datetime(2024, 3, 1, 9, 0),
            updated_at=datetime(2024, 3, 1, 9, 0),
        ),
        FAQEntry(
            id="pub-delivery",
            partition=Partition.PUBLIC,
            brand="minihaksupji",
            tag="배송",
            question="교재 배송은 언제 되나요?",
            content="결제 후 2~3일 이내에 배송됩니다.",
            created_at=datetime(2024, 2, 1, 9, 0),
            updated_at=datetime(2024, 2, 1, 9, 0),
        ),
        FAQEntry(
            id="pub-subscription",
            partition=Partition.PUBLIC,
            brand="minihaksupji",
            tag="구독",
            question="구독을 해지하고 싶어요",
            content="구독 해지 시 남은 기간은 환불되지 않습니다.",
            created_at=datetime(2024, 1, 1, 9, 0),
            updated_at=datetime(2024, 1, 1, 9, 0),
        ),
        FAQEntry(
            id="int-refund",
            partition=Partition.INTERNAL,
            brand="minihaksupji",
            tag="환불",
            question="환불 처리 내부 기준",
            content="배송 후 7일 이내 미개봉 교재만 전액 환불합니다.",
            created_at=datetime(2024, 3, 2, 9, 0),
            updated_at=datetime(2024, 3, 5, 9, 0),
        ),
    ]


@pytest.fixture
def sqlite_engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine shared across threads, with FAQ tables."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def repository(sqlite_engine: Engine, sample_entries: list[FAQEntry]) -> FAQRepository:
    """FAQ repository seeded with the sample entries."""
    repo = FAQRepository(sqlite_engine)
    repo.add_entries(sample_entries)
    return repo


@pytest.fixture
def chroma_settings() -> ChromaSettings:
    """Settings for a fresh in-memory chunk collection."""
    return ChromaSettings(collection=f"test_{uuid4().hex}", in_memory=True)


@pytest.fixture
def chunk_store(chroma_settings: ChromaSettings) -> ChunkStore:
    """Chunk store over an ephemeral Chroma client and a unique collection."""
    return ChunkStore(chroma_settings, client=chromadb.EphemeralClient())


@pytest.fixture
def indexed_chunk_store(
    chunk_store: ChunkStore,
    sample_entries: list[FAQEntry],
    keyword_embeddings: KeywordEmbeddings,
) -> ChunkStore:
    """Chunk store holding one chunk per sample entry."""
    for entry in sample_entries:
        text = f"{entry.question}\n{entry.content}"
        chunk_store.replace_chunks(
            entry.partition,
            entry.id,
            [(text, keyword_embeddings.embed_query(text))],
            brand=entry.brand,
            tag=entry.tag,
        )
    return chunk_store


@pytest.fixture
def mock_env_vars() -> Generator[dict[str, str], None, None]:
    """Fixture to set environment variables for testing."""
    env_vars = {
        "ENVIRONMENT": "development",
        "DATABASE_URL": "sqlite://",
        "OPENAI_API_KEY": "sk-test-key",
        "CHROMA_HOST": "localhost",
        "CHROMA_PORT": "8000",
        "LOG_LEVEL": "DEBUG",
    }
    with patch.dict(os.environ, env_vars, clear=False):
        yield env_vars


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Reset the correlation id between tests."""
    from faqsearch.utils.logging import clear_correlation_id

    clear_correlation_id()
    yield
    clear_correlation_id()


# Markers for test categorization
def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "property: Property-based tests")
    config.addinivalue_line("markers", "slow: Slow tests")
