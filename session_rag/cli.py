"""Command-line interface for ingesting and searching session transcripts.

Usage:
    session-rag init-db
    session-rag ingest [--path DIR] [--file FILE] [--no-embed] [--limit N]
    session-rag search "query" [--limit N] [--role ROLE] [--keyword] [--context N]
    session-rag stats
    session-rag sessions [--limit N]
    session-rag delete SESSION_ID
"""

import argparse
import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path

import structlog

from session_rag.core.config import Settings, settings
from session_rag.core.database import (
    create_engine,
    create_schema,
    open_database,
    session_scope,
)
from session_rag.core.exceptions import AppException, SessionNotFoundError
from session_rag.core.logging_config import configure_logging
from session_rag.dependencies import get_embedding_service
from session_rag.models.chunk import ROLES
from session_rag.repositories.session_repo import SearchResult, SessionRepository
from session_rag.services.ingest_service import IngestService
from session_rag.services.ranking import RankingEngine
from session_rag.services.search_service import SearchService
from session_rag.services.transcript_loader import find_session_files

logger = structlog.get_logger()


def format_result(position: int, result: SearchResult, context_chars: int) -> str:
    """Render one search hit for the terminal."""
    lines = [
        "",
        f"─── Result {position} ({result.similarity * 100:.1f}% match) ───",
        f"Session: {result.source_session_id[:16]}...",
    ]
    if result.project_name:
        lines.append(f"Project: {result.project_name}")
    lines.append(f"Role: {result.role}")
    lines.append("")

    content = result.content
    if len(content) > context_chars:
        content = content[:context_chars] + "..."
    lines.append(content)
    return "\n".join(lines)


async def run_init_db(config: Settings) -> int:
    """Create the pgvector extension, tables and indexes."""
    engine = create_engine(config.database)
    try:
        await create_schema(engine)
    finally:
        await engine.dispose()
    print("Database schema is ready.")
    return 0


async def run_ingest(args: argparse.Namespace, config: Settings) -> int:
    """Ingest transcript files, optionally embedding their chunks."""
    embedding_service = None
    if args.embed:
        embedding_service = get_embedding_service(config)
        await embedding_service.ensure_ready()
        print(f"Embedding service ready ({embedding_service.model})")

    if args.file:
        files = [Path(args.file)]
    else:
        files = find_session_files(Path(args.path).expanduser())
    print(f"Found {len(files)} session files")

    if args.limit is not None:
        files = files[: args.limit]
        print(f"Processing {len(files)} (limited)")

    async with open_database(config.database) as session_factory:
        service = IngestService(session_factory, embedding_service)
        report = await service.ingest_files(
            files,
            on_file_done=lambda done, total, path: logger.info(
                "Processed session file", done=done, total=total, path=str(path)
            ),
        )

    print(f"Ingested {report.processed} sessions, {report.total_chunks} chunks")
    if report.skipped:
        print(f"Skipped {report.skipped} sessions (empty or failed)")
    return 0


async def run_search(args: argparse.Namespace, config: Settings) -> int:
    """Search ingested chunks by meaning, optionally blended with keywords."""
    embedding_service = get_embedding_service(config)
    await embedding_service.ensure_ready()

    print(f'Query: "{args.query}"')
    async with open_database(config.database) as session_factory:
        service = SearchService(
            session_factory,
            embedding_service,
            RankingEngine(config.search.text_search_config),
        )
        results = await service.search(
            args.query, limit=args.limit, role=args.role, keyword=args.keyword
        )

    print(f"Found {len(results)} results")
    for position, result in enumerate(results, start=1):
        print(format_result(position, result, args.context))
    return 0


async def run_stats(config: Settings) -> int:
    """Print session, chunk and embedding coverage counts."""
    async with open_database(config.database) as session_factory:
        async with session_scope(session_factory) as db_session:
            counts = await SessionRepository(db_session).get_counts()

    print(f"Sessions:  {counts.session_count}")
    print(f"Chunks:    {counts.chunk_count}")
    print(f"Embedded:  {counts.embedded_chunk_count}")
    print(f"Coverage:  {counts.embedded_ratio * 100:.1f}%")
    return 0


async def run_sessions(args: argparse.Namespace, config: Settings) -> int:
    """List recently ingested sessions."""
    async with open_database(config.database) as session_factory:
        async with session_scope(session_factory) as db_session:
            summaries = await SessionRepository(db_session).list_session_summaries(
                args.limit
            )

    for summary in summaries:
        started = summary.created_at.isoformat() if summary.created_at else "-"
        print(
            f"{summary.session_id}  project={summary.project_name or '-'}  "
            f"started={started}  chunks={summary.chunk_count}  "
            f"embedded={summary.embedded_count}  tokens~{summary.total_tokens}"
        )
    return 0


async def run_delete(args: argparse.Namespace, config: Settings) -> int:
    """Delete one session and its chunks."""
    async with open_database(config.database) as session_factory:
        async with session_scope(session_factory) as db_session:
            deleted = await SessionRepository(db_session).delete_session(
                args.session_id
            )
    if not deleted:
        raise SessionNotFoundError(args.session_id)
    print(f"Deleted session {args.session_id}")
    return 0


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return number


def build_parser(config: Settings) -> argparse.ArgumentParser:
    """Argument parser with one sub-command per operation."""
    parser = argparse.ArgumentParser(
        prog=config.app.name,
        description="Semantic search over coding-assistant session transcripts",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create the database schema")

    ingest = commands.add_parser("ingest", help="Ingest session transcripts")
    ingest.add_argument(
        "-p",
        "--path",
        default=str(config.sources.resolved_sessions_path),
        help="Path to the sessions directory",
    )
    ingest.add_argument("-f", "--file", help="Ingest a single file")
    ingest.add_argument(
        "--no-embed",
        dest="embed",
        action="store_false",
        help="Skip embedding generation",
    )
    ingest.add_argument(
        "--limit", type=_positive_int, help="Limit number of sessions to ingest"
    )

    search = commands.add_parser("search", help="Search sessions semantically")
    search.add_argument("query", help="Search text")
    search.add_argument(
        "-n",
        "--limit",
        type=_positive_int,
        default=config.search.default_limit,
        help="Number of results",
    )
    search.add_argument("-r", "--role", choices=ROLES, help="Filter by role")
    search.add_argument(
        "-k",
        "--keyword",
        action="store_true",
        help="Use hybrid search (keyword + semantic)",
    )
    search.add_argument(
        "--context",
        type=_positive_int,
        default=config.search.context_chars,
        help="Show N characters of context",
    )

    commands.add_parser("stats", help="Show database statistics")

    sessions = commands.add_parser("sessions", help="List ingested sessions")
    sessions.add_argument(
        "-n", "--limit", type=_positive_int, default=20, help="Number of sessions"
    )

    delete = commands.add_parser("delete", help="Delete a session and its chunks")
    delete.add_argument("session_id", help="Session identifier (file name stem)")

    return parser


async def dispatch(args: argparse.Namespace, config: Settings) -> int:
    """Run the selected sub-command."""
    match args.command:
        case "init-db":
            return await run_init_db(config)
        case "ingest":
            return await run_ingest(args, config)
        case "search":
            return await run_search(args, config)
        case "stats":
            return await run_stats(config)
        case "sessions":
            return await run_sessions(args, config)
        case "delete":
            return await run_delete(args, config)
        case _:
            raise ValueError(f"Unknown command: {args.command}")


def main(argv: Sequence[str] | None = None) -> int:
    configure_logging(settings.app)
    args = build_parser(settings).parse_args(argv)
    try:
        return asyncio.run(dispatch(args, settings))
    except AppException as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return exc.exit_code


if __name__ == "__main__":
    sys.exit(main())
