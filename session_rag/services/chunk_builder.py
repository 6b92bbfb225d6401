"""Turn the ordered records of one transcript into chunks and session aggregates."""

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from session_rag.schemas.transcript_schema import parse_record
from session_rag.services.message_classifier import Role, classify
from session_rag.services.reference_extractor import (
    extract_references,
    project_name_from_path,
)


@dataclass(frozen=True)
class ParsedChunk:
    """One retained turn, ready to be embedded and stored."""

    index: int
    role: Role
    content: str
    estimated_tokens: int
    timestamp: datetime | None = None
    tools_used: list[str] = field(default_factory=list)
    files_mentioned: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ParsedSession:
    """Chunks of one transcript plus its session-level aggregates."""

    session_id: str
    source_path: str
    chunks: list[ParsedChunk]
    project_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def message_count(self) -> int:
        return len(self.chunks)

    @property
    def total_tokens(self) -> int:
        return sum(chunk.estimated_tokens for chunk in self.chunks)

    @property
    def total_cost(self) -> float:
        # Transcripts carry no cost information.
        return 0.0


def estimate_tokens(text: str) -> int:
    """Rough token estimate: one token per four characters, rounded up."""
    return math.ceil(len(text) / 4)


def infer_project_name(chunks: Iterable[ParsedChunk]) -> str | None:
    """Project name from the first reference of the first chunk that has any.

    Only that first reference is tried per chunk; the first match wins.
    """
    for chunk in chunks:
        if chunk.files_mentioned:
            name = project_name_from_path(chunk.files_mentioned[0])
            if name:
                return name
    return None


def build_session(
    lines: Iterable[str],
    session_id: str,
    source_path: str,
) -> ParsedSession | None:
    """Build a session from raw transcript lines.

    Returns ``None`` when the transcript has no non-blank lines or no
    retained chunks.
    """
    chunks: list[ParsedChunk] = []
    first_timestamp: datetime | None = None
    last_timestamp: datetime | None = None
    seen_lines = 0

    for line in lines:
        if not line.strip():
            continue
        seen_lines += 1

        record = parse_record(line)
        if record is None:
            continue

        if record.timestamp is not None:
            if first_timestamp is None:
                first_timestamp = record.timestamp
            last_timestamp = record.timestamp

        message = classify(record)
        if not message.is_retained:
            continue

        chunks.append(
            ParsedChunk(
                index=len(chunks),
                role=message.role,
                content=message.text,
                estimated_tokens=estimate_tokens(message.text),
                timestamp=record.timestamp,
                tools_used=list(message.tools),
                files_mentioned=extract_references(message.text),
            )
        )

    if seen_lines == 0 or not chunks:
        return None

    return ParsedSession(
        session_id=session_id,
        source_path=source_path,
        chunks=chunks,
        project_name=infer_project_name(chunks),
        created_at=first_timestamp,
        updated_at=last_timestamp,
    )
