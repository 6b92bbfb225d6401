"""Application configuration using Pydantic Settings V2."""

from functools import cached_property
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from session_rag.core.settings import (
    AppConfig,
    DatabaseConfig,
    EmbeddingConfig,
    SearchConfig,
    SourcesConfig,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Flat fields are loaded directly from environment variables.
    Domain properties provide grouped access (e.g. settings.embedding.provider).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = Field(
        default="session-rag",
        description="Application name (program name in CLI usage)",
    )
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment (non-development logs render as JSON)",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum log level written to stderr",
    )

    # Database
    database_url: SecretStr = Field(
        default=SecretStr("postgresql://localhost:5432/session_rag"),
        description="PostgreSQL URL (postgresql://... or postgresql+asyncpg://...)",
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL statements",
    )

    # Embedding provider
    embedding_provider: Literal["ollama", "openai"] = Field(
        default="ollama",
        description="Embedding provider to use",
    )

    # Ollama
    ollama_base_url: str = Field(
        default="http://localhost:11434",
        description="Ollama server base URL",
    )
    ollama_embed_model: str = Field(
        default="nomic-embed-text",
        description="Ollama embedding model name",
    )

    # OpenAI
    openai_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="OpenAI API key",
    )
    openai_embed_model: str = Field(
        default="text-embedding-3-small",
        description="OpenAI embedding model name",
    )

    embedding_dimensions: int = Field(
        default=768,
        ge=1,
        le=16000,
        description="Embedding vector dimensions (nomic-embed-text: 768)",
    )
    embedding_concurrency: int = Field(
        default=5,
        ge=1,
        le=64,
        description="Maximum in-flight embedding requests",
    )
    embedding_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for embedding service health checks",
    )

    # Sources
    claude_sessions_path: Path = Field(
        default=Path("~/.claude/transcripts"),
        description="Directory scanned for .jsonl session transcripts",
    )

    # Search
    text_search_config: str = Field(
        default="english",
        description="PostgreSQL text search configuration for keyword matching",
    )
    search_default_limit: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Default number of search results",
    )
    search_context_chars: int = Field(
        default=500,
        ge=1,
        description="Characters of chunk content shown per search result",
    )

    # --- Domain properties ---

    @cached_property
    def app(self) -> AppConfig:
        """Application environment configuration."""
        return AppConfig(
            name=self.app_name,
            env=self.app_env,
            log_level=self.log_level,
        )

    @cached_property
    def database(self) -> DatabaseConfig:
        """Database connection configuration."""
        return DatabaseConfig(url=self.database_url, echo=self.database_echo)

    @cached_property
    def embedding(self) -> EmbeddingConfig:
        """Embedding provider configuration."""
        return EmbeddingConfig(
            provider=self.embedding_provider,
            ollama_base_url=self.ollama_base_url,
            ollama_model=self.ollama_embed_model,
            openai_api_key=self.openai_api_key,
            openai_model=self.openai_embed_model,
            dimensions=self.embedding_dimensions,
            concurrency=self.embedding_concurrency,
            timeout_seconds=self.embedding_timeout_seconds,
        )

    @cached_property
    def sources(self) -> SourcesConfig:
        """Transcript source configuration."""
        return SourcesConfig(sessions_path=self.claude_sessions_path)

    @cached_property
    def search(self) -> SearchConfig:
        """Search configuration."""
        return SearchConfig(
            text_search_config=self.text_search_config,
            default_limit=self.search_default_limit,
            context_chars=self.search_context_chars,
        )


# Global settings instance
settings = Settings()
