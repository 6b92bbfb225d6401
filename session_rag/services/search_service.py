"""Search service: embed a query and rank stored chunks against it."""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from session_rag.core.database import session_scope
from session_rag.core.exceptions import InvalidSearchError
from session_rag.models.chunk import ROLES
from session_rag.repositories.session_repo import SearchResult, SessionRepository
from session_rag.services.embedding_service import EmbeddingService
from session_rag.services.ranking import RankingEngine

logger = structlog.get_logger()


class SearchService:
    """Semantic and hybrid (semantic + keyword) search over ingested chunks."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        embedding_service: EmbeddingService,
        ranking: RankingEngine | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._embedding_service = embedding_service
        self._ranking = ranking or RankingEngine()

    async def search(
        self,
        query: str,
        limit: int = 10,
        role: str | None = None,
        keyword: bool = False,
    ) -> list[SearchResult]:
        """Return up to ``limit`` chunks ranked against ``query``.

        With ``keyword`` set, only chunks that match the query under
        full-text search are returned, scored by the hybrid blend.

        Raises:
            InvalidSearchError: Blank query, non-positive limit or unknown role.
            EmbeddingError: The query could not be embedded.
        """
        self._validate(query, limit, role)

        query_vector = await self._embedding_service.embed_one(query)

        async with session_scope(self._session_factory) as db_session:
            repo = SessionRepository(db_session, self._ranking)
            if keyword:
                results = await repo.query_hybrid(query_vector, query, limit, role)
            else:
                results = await repo.query_similar(query_vector, limit, role)

        logger.info(
            "Search completed",
            mode="hybrid" if keyword else "semantic",
            role=role,
            results=len(results),
        )
        return results

    @staticmethod
    def _validate(query: str, limit: int, role: str | None) -> None:
        if not query.strip():
            raise InvalidSearchError("Query must not be empty")
        if limit < 1:
            raise InvalidSearchError("Limit must be at least 1")
        if role is not None and role not in ROLES:
            raise InvalidSearchError(
                f"Unknown role {role!r}; expected one of {', '.join(ROLES)}"
            )
