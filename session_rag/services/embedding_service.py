"""Embedding service: single and bounded-concurrency batch embedding."""

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import httpx
import structlog
from langchain_core.embeddings import Embeddings

from session_rag.core.exceptions import (
    EmbeddingError,
    EmbeddingServiceUnavailableError,
)
from session_rag.core.settings import EmbeddingConfig

logger = structlog.get_logger()

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class EmbeddingHealth:
    """Readiness of the embedding provider."""

    ready: bool
    message: str | None = None


class EmbeddingService:
    """Converts text to fixed-length vectors through a LangChain embeddings model."""

    def __init__(
        self,
        embeddings: Embeddings,
        config: EmbeddingConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._embeddings = embeddings
        self._config = config
        self._transport = transport

    @property
    def model(self) -> str:
        return self._config.model

    async def embed_one(self, text: str) -> list[float]:
        """Embed a single text.

        Raises:
            EmbeddingError: The provider failed or returned a vector of the
                wrong dimensionality.
        """
        try:
            vector = await self._embeddings.aembed_query(text)
        except Exception as exc:
            raise EmbeddingError(f"Embedding request failed: {exc}") from exc

        if len(vector) != self._config.dimensions:
            raise EmbeddingError(
                f"Expected {self._config.dimensions} dimensions, "
                f"got {len(vector)} from {self.model}"
            )
        return list(vector)

    async def embed_batch(
        self,
        texts: Sequence[str],
        on_progress: ProgressCallback | None = None,
        concurrency: int | None = None,
    ) -> list[list[float]]:
        """Embed ``texts`` preserving order, with at most ``concurrency`` in flight.

        Texts are processed in consecutive windows of ``concurrency`` items;
        a window must finish before the next one starts. The first failure
        cancels the rest of its window and is raised.
        """
        permits = concurrency if concurrency is not None else self._config.concurrency
        if permits < 1:
            raise ValueError("concurrency must be at least 1")

        total = len(texts)
        results: list[list[float]] = [[] for _ in range(total)]
        semaphore = asyncio.Semaphore(permits)
        completed = 0

        async def embed_slot(index: int) -> None:
            nonlocal completed
            async with semaphore:
                results[index] = await self.embed_one(texts[index])
            completed += 1
            if on_progress is not None:
                on_progress(completed, total)

        for start in range(0, total, permits):
            try:
                async with asyncio.TaskGroup() as group:
                    for index in range(start, min(start + permits, total)):
                        group.create_task(embed_slot(index))
            except ExceptionGroup as failures:
                raise failures.exceptions[0]

        return results

    async def check_health(self) -> EmbeddingHealth:
        """Report whether the provider is reachable and the model is available."""
        match self._config.provider:
            case "ollama":
                return await self._check_ollama()
            case "openai":
                if not self._config.openai_api_key.get_secret_value():
                    return EmbeddingHealth(
                        ready=False, message="OPENAI_API_KEY is not set"
                    )
                return EmbeddingHealth(ready=True)
            case _:
                return EmbeddingHealth(
                    ready=False,
                    message=f"Unsupported embedding provider: {self._config.provider}",
                )

    async def ensure_ready(self) -> None:
        """Fail fast when the provider is not ready.

        Raises:
            EmbeddingServiceUnavailableError: With the health diagnostic.
        """
        health = await self.check_health()
        if not health.ready:
            raise EmbeddingServiceUnavailableError(
                health.message or "Embedding service is not available"
            )
        logger.info("Embedding service ready", model=self.model)

    async def _check_ollama(self) -> EmbeddingHealth:
        base_url = self._config.ollama_base_url.rstrip("/")
        model = self._config.ollama_model
        try:
            async with httpx.AsyncClient(
                base_url=base_url,
                timeout=self._config.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get("/api/tags")
        except httpx.HTTPError:
            return EmbeddingHealth(
                ready=False,
                message=f"Cannot connect to Ollama at {base_url}. Is it running?",
            )

        if not response.is_success:
            return EmbeddingHealth(ready=False, message="Ollama not responding")

        try:
            payload = response.json()
        except ValueError:
            return EmbeddingHealth(ready=False, message="Ollama returned invalid JSON")

        models = payload.get("models") if isinstance(payload, dict) else None
        models = models or []
        names = [str(entry.get("name", "")) for entry in models if isinstance(entry, dict)]
        if not any(name == model or name.startswith(model) for name in names):
            return EmbeddingHealth(
                ready=False,
                message=f"Model {model} not found. Run: ollama pull {model}",
            )
        return EmbeddingHealth(ready=True)
