"""Domain-specific configuration models."""

from session_rag.core.settings.app_config import AppConfig
from session_rag.core.settings.database_config import DatabaseConfig
from session_rag.core.settings.embedding_config import EmbeddingConfig
from session_rag.core.settings.search_config import SearchConfig
from session_rag.core.settings.sources_config import SourcesConfig

__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "EmbeddingConfig",
    "SearchConfig",
    "SourcesConfig",
]
