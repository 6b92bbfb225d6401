"""Ranking of stored chunks against a query vector.

Two models are supported:

* pure similarity: ``1 - cosine_distance``, ascending distance order, with an
  optional role filter;
* hybrid: ``0.7 * similarity + 0.3 * ts_rank``, restricted to chunks whose
  content matches the query under PostgreSQL full-text search, descending
  score order.

Chunks without an embedding never rank. Ties keep whatever order the scan
produces.
"""

import re
from collections.abc import Sequence

from sqlalchemy import ColumnElement, Select, func, literal_column, select

from session_rag.models.chunk import TranscriptChunk
from session_rag.models.session import TranscriptSession

VECTOR_WEIGHT = 0.7
LEXICAL_WEIGHT = 0.3

_TEXT_SEARCH_CONFIG_PATTERN = re.compile(r"^[a-z_]+$")


def similarity_from_distance(distance: float) -> float:
    """Cosine similarity reported to callers."""
    return 1.0 - distance


def hybrid_score(distance: float, lexical_rank: float | None) -> float:
    """Blend of vector similarity and lexical rank (missing rank counts as 0)."""
    return VECTOR_WEIGHT * similarity_from_distance(distance) + LEXICAL_WEIGHT * (
        lexical_rank or 0.0
    )


class RankingEngine:
    """Builds ranked chunk queries for the vector and hybrid search modes."""

    def __init__(self, text_search_config: str = "english") -> None:
        if not _TEXT_SEARCH_CONFIG_PATTERN.match(text_search_config):
            raise ValueError(f"Invalid text search config: {text_search_config!r}")
        self._regconfig = literal_column(f"'{text_search_config}'::regconfig")

    def similarity_query(
        self,
        query_vector: Sequence[float],
        limit: int,
        role: str | None = None,
    ) -> Select:
        """Nearest chunks by cosine distance."""
        distance = TranscriptChunk.embedding.cosine_distance(query_vector)
        stmt = self._base_query((1 - distance).label("similarity"))
        if role:
            stmt = stmt.where(TranscriptChunk.role == role)
        return stmt.order_by(distance).limit(limit)

    def hybrid_query(
        self,
        query_vector: Sequence[float],
        query_text: str,
        limit: int,
        role: str | None = None,
    ) -> Select:
        """Lexically matching chunks ordered by the blended score."""
        distance = TranscriptChunk.embedding.cosine_distance(query_vector)
        document = func.to_tsvector(self._regconfig, TranscriptChunk.content)
        tsquery = func.plainto_tsquery(self._regconfig, query_text)
        lexical_rank = func.coalesce(func.ts_rank(document, tsquery), 0)

        score = (
            VECTOR_WEIGHT * (1 - distance) + LEXICAL_WEIGHT * lexical_rank
        ).label("similarity")

        stmt = self._base_query(score).where(document.op("@@")(tsquery))
        if role:
            stmt = stmt.where(TranscriptChunk.role == role)
        return stmt.order_by(score.desc()).limit(limit)

    @staticmethod
    def _base_query(similarity: ColumnElement[float]) -> Select:
        return (
            select(
                TranscriptChunk.session_id,
                TranscriptSession.session_id.label("source_session_id"),
                TranscriptSession.project_name,
                TranscriptChunk.chunk_index,
                TranscriptChunk.role,
                TranscriptChunk.content,
                similarity,
                TranscriptChunk.created_at,
            )
            .join(TranscriptSession, TranscriptChunk.session_id == TranscriptSession.id)
            .where(TranscriptChunk.embedding.is_not(None))
        )
