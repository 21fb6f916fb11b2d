"""
Configuration settings for the FAQ search service.

This module uses Pydantic Settings to manage configuration from environment
variables and .env files with validation and type safety.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational FAQ store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: SecretStr = Field(
        default=SecretStr(""),
        description="SQLAlchemy database URL for the FAQ tables",
    )
    database_pool_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Connection pool size",
    )
    database_pool_recycle: int = Field(
        default=1800,
        ge=-1,
        description="Seconds after which pooled connections are recycled",
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL statements",
    )

    @property
    def is_configured(self) -> bool:
        """Check whether a database URL was provided."""
        return bool(self.database_url.get_secret_value().strip())


class EmbeddingSettings(BaseSettings):
    """Embedding model configuration."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    embedding_provider: Literal["openai", "huggingface", "ollama"] = Field(
        default="openai",
        description="Embedding provider",
    )
    embedding_model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model name",
    )
    openai_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="OpenAI API key",
    )
    embedding_dimensions: int = Field(
        default=1536,
        ge=1,
        description="Dimensionality of stored chunk embeddings",
    )
    embedding_max_input_chars: int = Field(
        default=7500,
        ge=1,
        description="Query characters sent to the embedding service",
    )
    embedding_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="Deadline for one embedding call",
    )
    huggingface_embedding_model: str = Field(
        default="sentence-transformers/all-MiniLM-L6-v2",
        description="HuggingFace embedding model",
    )
    ollama_base_url: str = Field(
        default="http://localhost:11434",
        description="Ollama base URL for embeddings",
    )


class ChromaSettings(BaseSettings):
    """ChromaDB chunk store configuration."""

    model_config = SettingsConfigDict(env_prefix="CHROMA_")

    host: str = Field(
        default="localhost",
        description="ChromaDB host",
    )
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="ChromaDB port",
    )
    collection: str = Field(
        default="faq_chunks",
        description="ChromaDB collection holding FAQ chunks",
    )
    in_memory: bool = Field(
        default=False,
        description="Use in-memory ChromaDB",
    )

    @property
    def url(self) -> str:
        """Get ChromaDB URL."""
        return f"http://{self.host}:{self.port}"


class RetrievalSettings(BaseSettings):
    """
    Retrieval and scoring configuration.

    The scoring constants form one versioned policy. Scores are relative
    ranking weights and may exceed 1.0 for keyword hits.
    """

    model_config = SettingsConfigDict(env_prefix="")

    scoring_policy_version: str = Field(
        default="2",
        description="Identifier of the active scoring policy",
    )
    public_base_score: float = Field(
        default=0.6,
        ge=0.0,
        description="Base keyword score for public entries",
    )
    internal_base_score: float = Field(
        default=0.9,
        ge=0.0,
        description="Base keyword score for internal entries",
    )
    exact_question_bonus: float = Field(
        default=0.4,
        ge=0.0,
        description="Bonus when the full query appears in the question",
    )
    question_token_bonus: float = Field(
        default=0.2,
        ge=0.0,
        description="Bonus per query token found in the question",
    )
    content_token_bonus: float = Field(
        default=0.1,
        ge=0.0,
        description="Bonus per query token found in the answer content",
    )
    keyword_rows_per_partition: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Rows fetched per partition by keyword search",
    )
    vector_pool_multiplier: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Chunk pool size as a multiple of the requested limit",
    )
    vector_score_floor: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Lowest score a vector hit can receive",
    )
    vector_score_ceiling: float = Field(
        default=0.99,
        ge=0.0,
        le=1.0,
        description="Highest score a vector hit can receive",
    )
    vector_missing_distance_score: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Score used when a chunk carries no distance",
    )
    vector_search_enabled: bool = Field(
        default=True,
        description="Allow vector search at all",
    )
    default_limit: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Results returned to the chat tool layer",
    )
    direct_search_limit: int = Field(
        default=8,
        ge=1,
        le=50,
        description="Results returned by the help-center search endpoint",
    )
    category_limit: int = Field(
        default=20,
        ge=1,
        le=100,
        description="Results returned by category browse",
    )
    search_timeout_seconds: float = Field(
        default=8.0,
        gt=0.0,
        description="Deadline for the vector path of one retrieval call",
    )

    @model_validator(mode="after")
    def validate_vector_score_bounds(self) -> "RetrievalSettings":
        """Ensure the vector score floor is below the ceiling."""
        if self.vector_score_floor >= self.vector_score_ceiling:
            raise ValueError("vector_score_floor must be less than vector_score_ceiling")
        return self


class MCPSettings(BaseSettings):
    """MCP server configuration."""

    model_config = SettingsConfigDict(env_prefix="MCP_")

    server_port: int = Field(
        default=3000,
        ge=1,
        le=65535,
        description="MCP server port",
    )
    transport: Literal["stdio", "sse"] = Field(
        default="stdio",
        description="MCP transport type",
    )
    server_name: str = Field(
        default="faq-search",
        description="MCP server name",
    )


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="API server port",
    )
    host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    cors_enabled: bool = Field(
        default=True,
        alias="CORS_ENABLED",
        description="Enable CORS",
    )
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:8080",
        alias="CORS_ORIGINS",
        description="Allowed CORS origins (comma-separated)",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "console"] = Field(
        default="json",
        description="Log format",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(
        default="faq-search",
        description="Application name",
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    chroma: ChromaSettings = Field(default_factory=ChromaSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    mcp: MCPSettings = Field(default_factory=MCPSettings)
    api: APISettings = Field(default_factory=APISettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode="after")
    def validate_database_for_production(self) -> "Settings":
        """Ensure a database URL is provided in production."""
        if self.environment == "production" and not self.database.is_configured:
            raise ValueError("DATABASE_URL is required in production")
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_debug(self) -> bool:
        """Check if debug mode is enabled."""
        return self.logging.debug or self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached after first load. Call `get_settings.cache_clear()`
        to reload settings from environment.
    """
    return Settings()


def reload_settings() -> Settings:
    """
    Reload settings from environment.

    Returns:
        Settings: Fresh application settings instance.
    """
    get_settings.cache_clear()
    return get_settings()
