"""Transcript chunk database model."""

import uuid
from datetime import datetime
from typing import Any

from pgvector.sqlalchemy import Vector
from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from session_rag.core.config import settings
from session_rag.core.database import Base

ROLES = ("user", "assistant", "tool", "system")

_TEXT_LIST = ARRAY(Text).with_variant(JSON(), "sqlite")


class TranscriptChunk(Base):
    """One retained, classified turn of a transcript session."""

    __tablename__ = "chunks"
    __table_args__ = (
        UniqueConstraint("session_id", "chunk_index", name="uq_chunks_session_index"),
        CheckConstraint(
            "role IN ('user', 'assistant', 'tool', 'system')",
            name="ck_chunks_role",
        ),
        Index(
            "ix_chunks_embedding_cosine",
            "embedding",
            postgresql_using="ivfflat",
            postgresql_with={"lists": 100},
            postgresql_ops={"embedding": "vector_cosine_ops"},
        ).ddl_if(dialect="postgresql"),
        Index(
            "ix_chunks_content_fts",
            text("to_tsvector('english', content)"),
            postgresql_using="gin",
        ).ddl_if(dialect="postgresql"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)
    role: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    embedding: Mapped[Any | None] = mapped_column(
        Vector(settings.embedding.dimensions), nullable=True
    )
    token_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    tools_used: Mapped[list[str]] = mapped_column(_TEXT_LIST, default=list)
    files_mentioned: Mapped[list[str]] = mapped_column(_TEXT_LIST, default=list)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    meta: Mapped[dict[str, Any]] = mapped_column(
        JSONB().with_variant(JSON(), "sqlite"), default=dict
    )
