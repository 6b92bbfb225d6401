"""Construction of collaborators shared by the commands."""

from langchain_core.embeddings import Embeddings
from langchain_ollama import OllamaEmbeddings
from langchain_openai import OpenAIEmbeddings

from session_rag.core.config import Settings
from session_rag.core.settings import EmbeddingConfig
from session_rag.services.embedding_service import EmbeddingService


def get_embeddings(config: EmbeddingConfig) -> Embeddings:
    """Get the embeddings model for the configured provider."""
    match config.provider:
        case "ollama":
            return OllamaEmbeddings(
                model=config.ollama_model,
                base_url=config.ollama_base_url,
            )
        case "openai":
            return OpenAIEmbeddings(
                model=config.openai_model,
                api_key=config.openai_api_key,
                dimensions=config.dimensions,
            )
        case _:
            raise ValueError(f"Unsupported embedding provider: {config.provider}")


def get_embedding_service(settings: Settings) -> EmbeddingService:
    """Build the embedding service from application settings."""
    return EmbeddingService(
        get_embeddings(settings.embedding),
        settings.embedding,
    )
