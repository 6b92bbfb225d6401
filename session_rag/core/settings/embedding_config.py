"""Embedding provider configuration."""

from typing import Literal

from pydantic import BaseModel, SecretStr


class EmbeddingConfig(BaseModel, frozen=True):
    """Embedding provider settings."""

    provider: Literal["ollama", "openai"]
    ollama_base_url: str
    ollama_model: str
    openai_api_key: SecretStr
    openai_model: str
    dimensions: int
    concurrency: int
    timeout_seconds: float

    @property
    def model(self) -> str:
        """Model name of the active provider."""
        if self.provider == "openai":
            return self.openai_model
        return self.ollama_model
