"""Locate and read transcript files from disk."""

from pathlib import Path

import structlog

from session_rag.services.chunk_builder import ParsedSession, build_session

logger = structlog.get_logger()

TRANSCRIPT_SUFFIX = ".jsonl"


def session_id_from_path(path: Path) -> str:
    """Session identifier: the file name without its ``.jsonl`` suffix."""
    return path.name.removesuffix(TRANSCRIPT_SUFFIX)


def find_session_files(base_path: Path) -> list[Path]:
    """Recursively collect ``.jsonl`` files under ``base_path`` in sorted order."""
    if not base_path.exists():
        logger.warning("Sessions path not found", path=str(base_path))
        return []
    if base_path.is_file():
        return [base_path] if base_path.name.endswith(TRANSCRIPT_SUFFIX) else []
    return sorted(
        path
        for path in base_path.rglob(f"*{TRANSCRIPT_SUFFIX}")
        if path.is_file()
    )


def parse_session_file(path: Path) -> ParsedSession | None:
    """Read one transcript and build its session; ``None`` if it has no chunks.

    Undecodable bytes become U+FFFD so a damaged line is dropped as malformed
    instead of failing the whole file.
    """
    with path.open(encoding="utf-8", errors="replace") as handle:
        return build_session(
            handle,
            session_id=session_id_from_path(path),
            source_path=str(path),
        )
