"""
Embeddings for the FAQ search service.

This module provides:
- A factory creating LangChain embedding models (OpenAI, HuggingFace, Ollama)
- QueryEmbedder, which turns one query into a vector or reports that no
  vector is available for this call
"""

import asyncio
from numbers import Real
from typing import Any, Sequence

from langchain_core.embeddings import Embeddings
from langchain_openai import OpenAIEmbeddings

from faqsearch.config.settings import EmbeddingSettings
from faqsearch.utils.logging import LoggerMixin, get_logger

logger = get_logger(__name__)


class EmbeddingsFactory(LoggerMixin):
    """Factory class for creating embedding model instances."""

    @staticmethod
    def create(settings: EmbeddingSettings, api_key: str | None = None) -> Embeddings:
        """
        Create an embeddings instance based on provider settings.

        Args:
            settings: Embedding configuration settings.
            api_key: Optional API key (required for OpenAI). Defaults to the
                key held in `settings`.

        Returns:
            A LangChain Embeddings instance.

        Raises:
            ValueError: If provider is not supported or required params are missing.
        """
        logger.info(
            "creating_embeddings",
            provider=settings.embedding_provider,
            model=settings.embedding_model,
        )

        if settings.embedding_provider == "openai":
            api_key = api_key or settings.openai_api_key.get_secret_value()
            if not api_key:
                raise ValueError("OpenAI API key is required for OpenAI embeddings")
            return EmbeddingsFactory.create_openai(
                api_key=api_key,
                model=settings.embedding_model,
            )
        elif settings.embedding_provider == "huggingface":
            return EmbeddingsFactory.create_huggingface(
                model_name=settings.huggingface_embedding_model,
            )
        elif settings.embedding_provider == "ollama":
            return EmbeddingsFactory.create_ollama(
                model=settings.embedding_model,
                base_url=settings.ollama_base_url,
            )
        else:
            raise ValueError(
                f"Unsupported embedding provider: {settings.embedding_provider}. "
                f"Supported providers: openai, huggingface, ollama"
            )

    @staticmethod
    def create_openai(
        api_key: str,
        model: str = "text-embedding-3-small",
        **kwargs: Any,
    ) -> OpenAIEmbeddings:
        """
        Create an OpenAI embeddings instance.

        Sends the raw query string (no client-side token splitting) and does
        not retry; a failed call means no vector for that request.

        Args:
            api_key: OpenAI API key.
            model: Embedding model name.
            **kwargs: Additional arguments passed to OpenAIEmbeddings.
        """
        logger.info("creating_openai_embeddings", model=model)

        kwargs.setdefault("max_retries", 0)
        kwargs.setdefault("check_embedding_ctx_length", False)
        return OpenAIEmbeddings(
            api_key=api_key,
            model=model,
            **kwargs,
        )

    @staticmethod
    def create_huggingface(
        model_name: str = "sentence-transformers/all-MiniLM-L6-v2",
        **kwargs: Any,
    ) -> Embeddings:
        """
        Create a HuggingFace embeddings instance.

        Args:
            model_name: HuggingFace model name.
            **kwargs: Additional arguments passed to HuggingFaceEmbeddings.
        """
        try:
            from langchain_huggingface import HuggingFaceEmbeddings
        except ImportError:
            raise ImportError(
                "langchain-huggingface is not installed. "
                "Install it with: pip install langchain-huggingface"
            )

        logger.info("creating_huggingface_embeddings", model_name=model_name)

        return HuggingFaceEmbeddings(
            model_name=model_name,
            **kwargs,
        )

    @staticmethod
    def create_ollama(
        model: str = "nomic-embed-text",
        base_url: str = "http://localhost:11434",
        **kwargs: Any,
    ) -> Embeddings:
        """
        Create an Ollama embeddings instance.

        Args:
            model: Ollama model name.
            base_url: Ollama server URL.
            **kwargs: Additional arguments passed to OllamaEmbeddings.
        """
        try:
            from langchain_ollama import OllamaEmbeddings
        except ImportError:
            raise ImportError(
                "langchain-ollama is not installed. "
                "Install it with: pip install langchain-ollama"
            )

        logger.info(
            "creating_ollama_embeddings",
            model=model,
            base_url=base_url,
        )

        return OllamaEmbeddings(
            model=model,
            base_url=base_url,
            **kwargs,
        )


class QueryEmbedder(LoggerMixin):
    """
    Best-effort query embedding.

    `embed()` never raises. It returns None when no model is configured,
    when the upstream call fails or times out, or when the response is not
    a vector of the expected size. Callers treat None as "no vector search
    for this call" and fall back to keyword search.

    Args:
        embeddings: LangChain embeddings model, or None when unavailable.
        max_input_chars: Characters of the query sent upstream.
        timeout_seconds: Deadline for the upstream call.
        dimensions: Expected vector size (None skips the check).
    """

    def __init__(
        self,
        embeddings: Embeddings | None,
        max_input_chars: int = 7500,
        timeout_seconds: float = 5.0,
        dimensions: int | None = None,
    ) -> None:
        self.embeddings = embeddings
        self.max_input_chars = max_input_chars
        self.timeout_seconds = timeout_seconds
        self.dimensions = dimensions

    @property
    def available(self) -> bool:
        return self.embeddings is not None

    def prepare(self, query: str) -> str:
        """Trim and truncate a query to the upstream input budget."""
        return query.strip()[: self.max_input_chars]

    def _validate(self, vector: Any) -> list[float] | None:
        if not isinstance(vector, Sequence) or isinstance(vector, (str, bytes)):
            return None
        if not vector:
            return None
        if not all(isinstance(v, Real) and not isinstance(v, bool) for v in vector):
            return None
        if self.dimensions is not None and len(vector) != self.dimensions:
            return None
        return [float(v) for v in vector]

    async def embed(self, query: str) -> list[float] | None:
        """
        Embed a query.

        Args:
            query: Raw query text.

        Returns:
            The query vector, or None if unavailable for this call.
        """
        text = self.prepare(query)
        if not text:
            return None

        if self.embeddings is None:
            self.logger.warning("embedding_skipped_no_model")
            return None

        try:
            raw = await asyncio.wait_for(
                self.embeddings.aembed_query(text),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            self.logger.warning(
                "embedding_timed_out",
                timeout_seconds=self.timeout_seconds,
            )
            return None
        except Exception as e:
            self.logger.warning(
                "embedding_failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            return None

        vector = self._validate(raw)
        if vector is None:
            self.logger.warning(
                "embedding_response_malformed",
                response_type=type(raw).__name__,
                expected_dimensions=self.dimensions,
            )
            return None

        self.logger.debug("query_embedded", dimensions=len(vector))
        return vector


def get_query_embedder(settings: EmbeddingSettings | None = None) -> QueryEmbedder:
    """
    Build a QueryEmbedder from settings.

    A missing OpenAI key is not an error: the embedder is created without a
    model and every call reports "unavailable".

    Args:
        settings: Optional embedding settings. If None, loads from environment.
    """
    if settings is None:
        from faqsearch.config.settings import get_settings

        settings = get_settings().embedding

    embeddings: Embeddings | None = None
    if settings.embedding_provider == "openai" and not settings.openai_api_key.get_secret_value():
        logger.warning("vector_search_disabled_missing_api_key")
    else:
        embeddings = EmbeddingsFactory.create(settings)

    return QueryEmbedder(
        embeddings,
        max_input_chars=settings.embedding_max_input_chars,
        timeout_seconds=settings.embedding_timeout_seconds,
        dimensions=settings.embedding_dimensions if settings.embedding_provider == "openai" else None,
    )
