"""
Custom exception hierarchy for the FAQ search service.

Only misconfiguration and input errors are meant to reach callers. Upstream
degradations (embedding service, chunk store, internal partition) are logged
and absorbed by the retrieval layer, so the classes below mostly describe
what the storage adapters raise before the ranker decides to fall back.
"""

from typing import Any, Dict, Optional


class FAQSearchException(Exception):
    """
    Base exception for all FAQ search errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context
        cause: Optional underlying exception that caused this error
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """Return string representation of the exception."""
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message

    def __repr__(self) -> str:
        """Return detailed string representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"cause={self.cause!r})"
        )


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(FAQSearchException):
    """
    Error in system configuration.

    Raised when configuration is invalid, missing, or inconsistent.
    """
    pass


class MissingConfigurationError(ConfigurationError):
    """
    Required configuration value is missing.

    A missing DATABASE_URL lands here: the service cannot work at all.
    """
    pass


class InvalidConfigurationError(ConfigurationError):
    """Configuration value is invalid."""
    pass


# =============================================================================
# Relational Storage Errors
# =============================================================================

class StorageError(FAQSearchException):
    """Error with the relational FAQ store."""
    pass


class StorageConnectionError(StorageError):
    """Unable to reach the relational FAQ store."""
    pass


class StorageQueryError(StorageError):
    """
    A query against the FAQ tables failed.

    Raised by the repository; the keyword matcher absorbs it for the
    internal partition.
    """
    pass


# =============================================================================
# Vector Store Errors
# =============================================================================

class VectorStoreError(FAQSearchException):
    """Error with chunk store operations."""
    pass


class VectorStoreConnectionError(VectorStoreError):
    """Unable to connect to ChromaDB."""
    pass


class VectorStoreRetrievalError(VectorStoreError):
    """Nearest-neighbour search over the chunk store failed."""
    pass


class VectorStoreStorageError(VectorStoreError):
    """Chunks could not be replaced in the chunk store."""
    pass


# =============================================================================
# Retrieval Errors
# =============================================================================

class RetrievalError(FAQSearchException):
    """Error during FAQ retrieval."""
    pass


class EmptyQueryError(RetrievalError):
    """The query was empty, whitespace only, or not a string."""
    pass


# =============================================================================
# API Errors
# =============================================================================

class APIError(FAQSearchException):
    """Error with REST API operations."""
    pass


class ValidationError(APIError):
    """
    Request validation error.

    Note: Pydantic also has ValidationError, use this for custom validations.
    """
    pass


# =============================================================================
# Utility Functions
# =============================================================================

def get_http_status_code(exception: Exception) -> int:
    """
    Map exception to appropriate HTTP status code.

    Args:
        exception: Exception instance

    Returns:
        HTTP status code (400-599)
    """
    # Most specific classes first; isinstance walks parents too.
    status_map = {
        ValidationError: 400,
        EmptyQueryError: 400,
        StorageConnectionError: 503,
        StorageError: 503,
        VectorStoreError: 503,
        MissingConfigurationError: 500,
        ConfigurationError: 500,
        RetrievalError: 500,
        APIError: 500,
        FAQSearchException: 500,
    }

    for exc_type, status_code in status_map.items():
        if isinstance(exception, exc_type):
            return status_code

    return 500


__all__ = [
    "FAQSearchException",
    # Configuration
    "ConfigurationError",
    "MissingConfigurationError",
    "InvalidConfigurationError",
    # Relational storage
    "StorageError",
    "StorageConnectionError",
    "StorageQueryError",
    # Vector store
    "VectorStoreError",
    "VectorStoreConnectionError",
    "VectorStoreRetrievalError",
    "VectorStoreStorageError",
    # Embeddings
    # Retrieval
    "RetrievalError",
    "EmptyQueryError",
    # API
    "APIError",
    "ValidationError",
    # Utilities
    "get_http_status_code",
]
