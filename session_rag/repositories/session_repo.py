"""Session repository for transcript session and chunk database operations."""

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from session_rag.models.chunk import TranscriptChunk
from session_rag.models.session import TranscriptSession
from session_rag.services.ranking import RankingEngine


@dataclass(frozen=True)
class ChunkRecord:
    """Chunk row keyed by (session_uuid, chunk_index)."""

    session_uuid: uuid.UUID
    chunk_index: int
    role: str
    content: str
    embedding: list[float] | None = None
    token_count: int | None = None
    tools_used: list[str] = field(default_factory=list)
    files_mentioned: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SearchResult:
    """Immutable result object for ranked chunk queries."""

    session_uuid: uuid.UUID
    source_session_id: str
    project_name: str | None
    chunk_index: int
    role: str
    content: str
    similarity: float
    created_at: datetime | None


@dataclass(frozen=True)
class StoreCounts:
    """Row counts across the store."""

    session_count: int
    chunk_count: int
    embedded_chunk_count: int

    @property
    def embedded_ratio(self) -> float:
        """Fraction of chunks that carry an embedding."""
        if self.chunk_count == 0:
            return 0.0
        return self.embedded_chunk_count / self.chunk_count


@dataclass(frozen=True)
class SessionSummary:
    """Per-session aggregate row for listings."""

    session_id: str
    project_name: str | None
    created_at: datetime | None
    message_count: int
    total_tokens: int
    chunk_count: int
    embedded_count: int


class SessionRepository:
    """Encapsulates session and chunk database queries."""

    def __init__(
        self,
        session: AsyncSession,
        ranking: RankingEngine | None = None,
    ) -> None:
        self._session = session
        self._ranking = ranking or RankingEngine()

    def _insert(self, table: Any) -> Any:
        """Dialect insert construct supporting ON CONFLICT."""
        dialect = self._session.get_bind().dialect.name
        match dialect:
            case "postgresql":
                return postgresql.insert(table)
            case "sqlite":
                return sqlite.insert(table)
            case _:
                raise NotImplementedError(f"Upserts not supported on {dialect}")

    async def upsert_session(
        self,
        session_id: str,
        source_path: str,
        message_count: int,
        total_tokens: int,
        project_name: str | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        total_cost: float = 0.0,
        metadata: dict[str, Any] | None = None,
    ) -> uuid.UUID:
        """Insert or update a session by its ``session_id``; return its row id."""
        stmt = self._insert(TranscriptSession).values(
            id=uuid.uuid4(),
            session_id=session_id,
            source_path=source_path,
            project_name=project_name,
            created_at=created_at,
            updated_at=updated_at,
            message_count=message_count,
            total_tokens=total_tokens,
            total_cost=Decimal(str(total_cost)),
            meta=metadata or {},
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[TranscriptSession.session_id],
            set_={
                "source_path": stmt.excluded.source_path,
                "project_name": stmt.excluded.project_name,
                "updated_at": stmt.excluded.updated_at,
                "message_count": stmt.excluded.message_count,
                "total_tokens": stmt.excluded.total_tokens,
                "total_cost": stmt.excluded.total_cost,
                "meta": stmt.excluded.meta,
                "ingested_at": func.now(),
            },
        ).returning(TranscriptSession.id)

        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def insert_chunks(self, chunks: Sequence[ChunkRecord]) -> None:
        """Bulk upsert chunks keyed by (session, chunk_index)."""
        if not chunks:
            return

        stmt = self._insert(TranscriptChunk)
        stmt = stmt.on_conflict_do_update(
            index_elements=[TranscriptChunk.session_id, TranscriptChunk.chunk_index],
            set_={
                "role": stmt.excluded.role,
                "content": stmt.excluded.content,
                "embedding": stmt.excluded.embedding,
                "token_count": stmt.excluded.token_count,
                "tools_used": stmt.excluded.tools_used,
                "files_mentioned": stmt.excluded.files_mentioned,
                "created_at": stmt.excluded.created_at,
                "meta": stmt.excluded.meta,
            },
        )
        rows = [
            {
                "id": uuid.uuid4(),
                "session_id": chunk.session_uuid,
                "chunk_index": chunk.chunk_index,
                "role": chunk.role,
                "content": chunk.content,
                "embedding": chunk.embedding,
                "token_count": chunk.token_count,
                "tools_used": list(chunk.tools_used),
                "files_mentioned": list(chunk.files_mentioned),
                "created_at": chunk.created_at,
                "meta": dict(chunk.metadata),
            }
            for chunk in chunks
        ]
        await self._session.execute(stmt, rows)

    async def prune_chunks(self, session_uuid: uuid.UUID, keep: int) -> None:
        """Delete chunks of a session whose index is ``keep`` or higher."""
        await self._session.execute(
            delete(TranscriptChunk).where(
                TranscriptChunk.session_id == session_uuid,
                TranscriptChunk.chunk_index >= keep,
            )
        )

    async def find_session(self, session_id: str) -> TranscriptSession | None:
        """Find a session by its transcript-derived identifier."""
        result = await self._session.execute(
            select(TranscriptSession).where(TranscriptSession.session_id == session_id)
        )
        return result.scalar_one_or_none()

    async def find_chunks(self, session_uuid: uuid.UUID) -> list[TranscriptChunk]:
        """Retrieve all chunks of a session in conversation order."""
        result = await self._session.execute(
            select(TranscriptChunk)
            .where(TranscriptChunk.session_id == session_uuid)
            .order_by(TranscriptChunk.chunk_index.asc())
        )
        return list(result.scalars().all())

    async def delete_session(self, session_id: str) -> bool:
        """Delete a session and its chunks; ``False`` if it does not exist."""
        found = await self.find_session(session_id)
        if found is None:
            return False

        await self._session.execute(
            delete(TranscriptChunk).where(TranscriptChunk.session_id == found.id)
        )
        await self._session.execute(
            delete(TranscriptSession).where(TranscriptSession.id == found.id)
        )
        return True

    async def query_similar(
        self,
        query_vector: Sequence[float],
        limit: int,
        role: str | None = None,
    ) -> list[SearchResult]:
        """Chunks ordered by cosine similarity to ``query_vector``."""
        stmt = self._ranking.similarity_query(query_vector, limit, role)
        return await self._fetch_results(stmt)

    async def query_hybrid(
        self,
        query_vector: Sequence[float],
        query_text: str,
        limit: int,
        role: str | None = None,
    ) -> list[SearchResult]:
        """Lexically matching chunks ordered by the blended vector/keyword score."""
        stmt = self._ranking.hybrid_query(query_vector, query_text, limit, role)
        return await self._fetch_results(stmt)

    async def get_counts(self) -> StoreCounts:
        """Count sessions, chunks and embedded chunks."""
        stmt = select(
            select(func.count())
            .select_from(TranscriptSession)
            .scalar_subquery()
            .label("sessions"),
            select(func.count())
            .select_from(TranscriptChunk)
            .scalar_subquery()
            .label("chunks"),
            select(func.count())
            .select_from(TranscriptChunk)
            .where(TranscriptChunk.embedding.is_not(None))
            .scalar_subquery()
            .label("embedded"),
        )
        row = (await self._session.execute(stmt)).one()
        return StoreCounts(
            session_count=row.sessions,
            chunk_count=row.chunks,
            embedded_chunk_count=row.embedded,
        )

    async def list_session_summaries(self, limit: int) -> list[SessionSummary]:
        """Most recently ingested sessions with their chunk and embedding counts."""
        embedded_count = func.count(TranscriptChunk.id).filter(
            TranscriptChunk.embedding.is_not(None)
        )
        stmt = (
            select(
                TranscriptSession.session_id,
                TranscriptSession.project_name,
                TranscriptSession.created_at,
                TranscriptSession.message_count,
                TranscriptSession.total_tokens,
                func.count(TranscriptChunk.id).label("chunk_count"),
                embedded_count.label("embedded_count"),
            )
            .outerjoin(TranscriptChunk, TranscriptChunk.session_id == TranscriptSession.id)
            .group_by(TranscriptSession.id)
            .order_by(
                TranscriptSession.ingested_at.desc(),
                TranscriptSession.session_id.asc(),
            )
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [
            SessionSummary(
                session_id=row.session_id,
                project_name=row.project_name,
                created_at=row.created_at,
                message_count=row.message_count,
                total_tokens=row.total_tokens,
                chunk_count=row.chunk_count,
                embedded_count=row.embedded_count,
            )
            for row in result
        ]

    async def _fetch_results(self, stmt: Any) -> list[SearchResult]:
        result = await self._session.execute(stmt)
        return [
            SearchResult(
                session_uuid=row.session_id,
                source_session_id=row.source_session_id,
                project_name=row.project_name,
                chunk_index=row.chunk_index,
                role=row.role,
                content=row.content,
                similarity=float(row.similarity),
                created_at=row.created_at,
            )
            for row in result
        ]
