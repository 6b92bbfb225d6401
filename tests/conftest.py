"""Pytest configuration and fixtures."""

import json
from collections.abc import AsyncGenerator, Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.embeddings import Embeddings
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from session_rag.core.database import Base
from session_rag.core.settings import EmbeddingConfig
from session_rag.models.chunk import TranscriptChunk  # noqa: F401
from session_rag.models.session import TranscriptSession  # noqa: F401
from session_rag.services.embedding_service import EmbeddingService

DIMENSIONS = 768

# --- Test DB (SQLite in-memory) ---

test_engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
test_session_factory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


@pytest.fixture(autouse=True)
async def setup_db() -> AsyncGenerator[None, None]:
    """Create all tables before each test, drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database."""
    return test_session_factory


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a raw async session for repository tests."""
    async with test_session_factory() as session:
        yield session


# --- Embeddings ---


def fake_vector(text: str) -> list[float]:
    """Deterministic unit-ish vector derived from the text length."""
    vector = [0.0] * DIMENSIONS
    vector[len(text) % DIMENSIONS] = 1.0
    return vector


@pytest.fixture
def embedding_config() -> EmbeddingConfig:
    """Ollama embedding configuration pointing at a fake host."""
    return EmbeddingConfig(
        provider="ollama",
        ollama_base_url="http://ollama.test",
        ollama_model="nomic-embed-text",
        openai_api_key=SecretStr(""),
        openai_model="text-embedding-3-small",
        dimensions=DIMENSIONS,
        concurrency=5,
        timeout_seconds=5.0,
    )


@pytest.fixture
def mock_embeddings() -> MagicMock:
    """Create a mock LangChain embeddings model."""
    mock = MagicMock(spec=Embeddings)
    mock.aembed_query = AsyncMock(side_effect=fake_vector)
    return mock


@pytest.fixture
def embedding_service(
    mock_embeddings: MagicMock, embedding_config: EmbeddingConfig
) -> EmbeddingService:
    """EmbeddingService backed by the mock embeddings model."""
    return EmbeddingService(mock_embeddings, embedding_config)


# --- Transcript files ---


@pytest.fixture
def write_transcript(tmp_path: Path) -> Callable[..., Path]:
    """Write records (dicts, or raw strings for malformed lines) as a .jsonl file."""

    def _write(name: str, records: list[dict[str, Any] | str]) -> Path:
        path = tmp_path / f"{name}.jsonl"
        lines = [
            record if isinstance(record, str) else json.dumps(record)
            for record in records
        ]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
