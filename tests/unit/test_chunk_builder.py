"""Unit tests for building chunks and session aggregates from transcripts."""

import json
import math
from datetime import UTC, datetime
from typing import Any

from session_rag.services.chunk_builder import (
    ParsedChunk,
    build_session,
    estimate_tokens,
    infer_project_name,
)


def _lines(*records: dict[str, Any] | str) -> list[str]:
    """Encode records as transcript lines; strings are passed through raw."""
    return [r if isinstance(r, str) else json.dumps(r) for r in records]


def _user(content: str, timestamp: str | None = None) -> dict[str, Any]:
    record: dict[str, Any] = {"type": "user", "content": content}
    if timestamp:
        record["timestamp"] = timestamp
    return record


def _chunk(index: int, files: list[str]) -> ParsedChunk:
    return ParsedChunk(
        index=index,
        role="user",
        content="placeholder content",
        estimated_tokens=5,
        files_mentioned=files,
    )


class TestEstimateTokens:
    """Character-based token estimate."""

    def test_rounds_up(self) -> None:
        assert estimate_tokens("abcde") == 2
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("") == 0


class TestBuildSession:
    """build_session filtering, indexing and aggregates."""

    def test_short_message_rejects_file(self) -> None:
        assert build_session(_lines(_user("short")), "ses_1", "/t/ses_1.jsonl") is None

    def test_single_substantive_message(self) -> None:
        content = "Please read config.ts for me"
        session = build_session(_lines(_user(content)), "ses_1", "/t/ses_1.jsonl")

        assert session is not None
        assert len(session.chunks) == 1
        chunk = session.chunks[0]
        assert chunk.index == 0
        assert chunk.role == "user"
        assert chunk.files_mentioned == []
        assert chunk.estimated_tokens == math.ceil(len(content) / 4)
        assert session.project_name is None

    def test_no_lines_rejects_file(self) -> None:
        assert build_session([], "ses_1", "/t/ses_1.jsonl") is None
        assert build_session(["", "   \n"], "ses_1", "/t/ses_1.jsonl") is None

    def test_only_malformed_lines_rejects_file(self) -> None:
        assert build_session(["{oops", "not json"], "ses_1", "/t/ses_1.jsonl") is None

    def test_indices_dense_after_filtering(self) -> None:
        session = build_session(
            _lines(
                _user("First real question here"),
                _user("ok"),
                "{malformed",
                {
                    "type": "tool_use",
                    "tool_name": "bash",
                    "tool_input": {"command": "pytest -q tests"},
                },
                {
                    "type": "tool_result",
                    "tool_name": "bash",
                    "tool_output": {"output": "3 passed in 0.1s"},
                },
                {"type": "summary", "content": "ignored entirely"},
                {"type": "assistant", "content": "All tests pass now."},
            ),
            "ses_1",
            "/t/ses_1.jsonl",
        )

        assert session is not None
        assert [c.index for c in session.chunks] == [0, 1, 2]
        assert [c.role for c in session.chunks] == ["user", "tool", "assistant"]
        assert all(len(c.content) >= 10 for c in session.chunks)

    def test_tool_result_records_tool_name(self) -> None:
        session = build_session(
            _lines(
                {
                    "type": "tool_result",
                    "tool_name": "read",
                    "tool_output": {"output": "Read /repo/app/src/main.py (20 lines)"},
                }
            ),
            "ses_1",
            "/t/ses_1.jsonl",
        )

        assert session is not None
        chunk = session.chunks[0]
        assert chunk.tools_used == ["read"]
        assert chunk.files_mentioned == ["/repo/app/src/main.py"]
        assert session.project_name == "repo"

    def test_timestamps_span_all_parsed_records(self) -> None:
        session = build_session(
            _lines(
                {
                    "type": "tool_use",
                    "tool_name": "bash",
                    "timestamp": "2026-01-05T09:00:00Z",
                },
                _user("What does this function do?", "2026-01-05T09:05:00Z"),
                {"type": "summary", "timestamp": "2026-01-05T09:30:00Z"},
            ),
            "ses_1",
            "/t/ses_1.jsonl",
        )

        assert session is not None
        assert session.created_at == datetime(2026, 1, 5, 9, 0, tzinfo=UTC)
        assert session.updated_at == datetime(2026, 1, 5, 9, 30, tzinfo=UTC)
        assert session.chunks[0].timestamp == datetime(2026, 1, 5, 9, 5, tzinfo=UTC)

    def test_unparseable_timestamp_keeps_chunk(self) -> None:
        session = build_session(
            _lines(_user("Please refactor the parser module", "yesterday")),
            "ses_1",
            "/t/ses_1.jsonl",
        )

        assert session is not None
        assert session.chunks[0].content == "Please refactor the parser module"
        assert session.chunks[0].timestamp is None
        assert session.created_at is None

    def test_aggregates(self) -> None:
        first = "Explain the retry policy please"
        second = "It retries three times with backoff."
        session = build_session(
            _lines(_user(first), {"type": "assistant", "content": second}),
            "ses_abc",
            "/t/ses_abc.jsonl",
        )

        assert session is not None
        assert session.session_id == "ses_abc"
        assert session.source_path == "/t/ses_abc.jsonl"
        assert session.message_count == 2
        assert session.total_tokens == estimate_tokens(first) + estimate_tokens(second)
        assert session.total_cost == 0


class TestInferProjectName:
    """First-hit project name inference."""

    def test_first_chunk_with_references_wins(self) -> None:
        chunks = [
            _chunk(0, []),
            _chunk(1, ["/home/alice/myapp/src/index.ts"]),
            _chunk(2, ["/home/alice/other/lib/x.rb"]),
        ]

        assert infer_project_name(chunks) == "myapp"

    def test_only_first_reference_of_a_chunk_is_tried(self) -> None:
        chunks = [_chunk(0, ["/tmp/notes.md", "/home/alice/myapp/src/index.ts"])]

        assert infer_project_name(chunks) is None

    def test_later_chunk_used_when_earlier_first_reference_misses(self) -> None:
        chunks = [
            _chunk(0, ["/tmp/notes.md"]),
            _chunk(1, ["/srv/api/app/main.py"]),
        ]

        assert infer_project_name(chunks) == "api"

    def test_no_references(self) -> None:
        assert infer_project_name([_chunk(0, [])]) is None
