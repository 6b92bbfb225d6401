"""Ingest service: transcript files into sessions, chunks and embeddings."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from session_rag.core.database import session_scope
from session_rag.repositories.session_repo import ChunkRecord, SessionRepository
from session_rag.services.chunk_builder import ParsedSession
from session_rag.services.embedding_service import EmbeddingService
from session_rag.services.transcript_loader import parse_session_file

logger = structlog.get_logger()

FileProgressCallback = Callable[[int, int, Path], None]


@dataclass(frozen=True)
class IngestReport:
    """Outcome of one ingestion run."""

    processed: int
    skipped: int
    total_chunks: int


class IngestService:
    """Ingests transcript files one at a time.

    A file is either written completely (session row, all chunks, and
    embeddings when enabled) or skipped with nothing written.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        embedding_service: EmbeddingService | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._embedding_service = embedding_service

    async def ingest_files(
        self,
        paths: Sequence[Path],
        on_file_done: FileProgressCallback | None = None,
    ) -> IngestReport:
        """Ingest ``paths`` sequentially, isolating failures per file."""
        processed = 0
        skipped = 0
        total_chunks = 0

        for position, path in enumerate(paths, start=1):
            try:
                written = await self.ingest_file(path)
            except Exception:
                logger.exception("Failed to ingest session file", path=str(path))
                written = None

            if written is None:
                skipped += 1
            else:
                processed += 1
                total_chunks += written

            if on_file_done is not None:
                on_file_done(position, len(paths), path)

        logger.info(
            "Ingestion finished",
            processed=processed,
            skipped=skipped,
            total_chunks=total_chunks,
        )
        return IngestReport(
            processed=processed, skipped=skipped, total_chunks=total_chunks
        )

    async def ingest_file(self, path: Path) -> int | None:
        """Ingest one file; return its chunk count, or ``None`` if it has none."""
        parsed = parse_session_file(path)
        if parsed is None:
            logger.info("Skipping empty session file", path=str(path))
            return None
        return await self.store_session(parsed)

    async def store_session(self, parsed: ParsedSession) -> int:
        """Embed (when enabled) and write one parsed session in one transaction."""
        embeddings: Sequence[list[float] | None] = [None] * len(parsed.chunks)
        if self._embedding_service is not None:
            embeddings = await self._embedding_service.embed_batch(
                [chunk.content for chunk in parsed.chunks],
                on_progress=lambda done, total: logger.debug(
                    "Embedding progress",
                    session_id=parsed.session_id,
                    done=done,
                    total=total,
                ),
            )

        async with session_scope(self._session_factory) as db_session:
            repo = SessionRepository(db_session)
            session_uuid = await repo.upsert_session(
                session_id=parsed.session_id,
                source_path=parsed.source_path,
                project_name=parsed.project_name,
                created_at=parsed.created_at,
                updated_at=parsed.updated_at,
                message_count=parsed.message_count,
                total_tokens=parsed.total_tokens,
                total_cost=parsed.total_cost,
            )
            await repo.insert_chunks(
                [
                    ChunkRecord(
                        session_uuid=session_uuid,
                        chunk_index=chunk.index,
                        role=chunk.role,
                        content=chunk.content,
                        embedding=embedding,
                        token_count=chunk.estimated_tokens,
                        tools_used=chunk.tools_used,
                        files_mentioned=chunk.files_mentioned,
                        created_at=chunk.timestamp,
                    )
                    for chunk, embedding in zip(parsed.chunks, embeddings, strict=True)
                ]
            )
            await repo.prune_chunks(session_uuid, keep=len(parsed.chunks))

        logger.info(
            "Session ingested",
            session_id=parsed.session_id,
            project_name=parsed.project_name,
            chunks=len(parsed.chunks),
            embedded=self._embedding_service is not None,
        )
        return len(parsed.chunks)
