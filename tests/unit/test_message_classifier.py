"""Unit tests for transcript record classification."""

import pytest

from session_rag.schemas.transcript_schema import (
    AssistantRecord,
    ToolOutput,
    ToolResultRecord,
    ToolUseRecord,
    UnknownRecord,
    UserRecord,
)
from session_rag.services.message_classifier import (
    MAX_TOOL_OUTPUT_CHARS,
    TRUNCATION_MARKER,
    classify,
    is_substantive,
    truncate_tool_output,
)


class TestConversationalRecords:
    """User and assistant content passes through verbatim."""

    def test_user_content_verbatim(self) -> None:
        message = classify(UserRecord(type="user", content="  How do I fix this?  "))

        assert message.role == "user"
        assert message.text == "  How do I fix this?  "
        assert message.tools == []
        assert message.is_retained is True

    def test_assistant_content_verbatim(self) -> None:
        message = classify(
            AssistantRecord(type="assistant", content="Let me look at the logs.")
        )

        assert message.role == "assistant"
        assert message.text == "Let me look at the logs."

    def test_short_user_content_not_retained(self) -> None:
        message = classify(UserRecord(type="user", content="short"))

        assert message.is_retained is False


class TestToolUse:
    """Tool invocations render a header but are never retained."""

    def test_prefers_description(self) -> None:
        record = ToolUseRecord(
            type="tool_use",
            tool_name="bash",
            tool_input={"description": "Run the tests", "command": "pytest"},
        )
        message = classify(record)

        assert message.role == "tool"
        assert message.text == "[Tool: bash] Run the tests"
        assert message.tools == ["bash"]

    def test_falls_back_to_command(self) -> None:
        record = ToolUseRecord(
            type="tool_use", tool_name="bash", tool_input={"command": "ls -la"}
        )

        assert classify(record).text == "[Tool: bash] ls -la"

    def test_empty_input_is_trimmed(self) -> None:
        record = ToolUseRecord(type="tool_use", tool_name="read", tool_input=None)

        assert classify(record).text == "[Tool: read]"

    def test_invocation_is_dropped(self) -> None:
        record = ToolUseRecord(
            type="tool_use",
            tool_name="bash",
            tool_input={"description": "A long enough description"},
        )
        message = classify(record)

        assert message.is_tool_invocation is True
        assert message.is_retained is False


class TestToolResult:
    """Tool results render the output under a header."""

    def test_output_rendered(self) -> None:
        record = ToolResultRecord(
            type="tool_result",
            tool_name="read",
            tool_output=ToolOutput(output="file contents here"),
        )
        message = classify(record)

        assert message.role == "tool"
        assert message.text == "[Tool Result: read]\nfile contents here"
        assert message.tools == ["read"]
        assert message.is_retained is True

    def test_falls_back_to_preview(self) -> None:
        record = ToolResultRecord(
            type="tool_result",
            tool_name="grep",
            tool_output=ToolOutput(output="", preview="3 matches"),
        )

        assert classify(record).text == "[Tool Result: grep]\n3 matches"

    def test_missing_output_leaves_header(self) -> None:
        record = ToolResultRecord(type="tool_result", tool_name="write")

        assert classify(record).text == "[Tool Result: write]"

    def test_long_output_truncated(self) -> None:
        record = ToolResultRecord(
            type="tool_result",
            tool_name="bash",
            tool_output=ToolOutput(output="x" * 2500),
        )
        message = classify(record)

        body = message.text.split("\n", 1)[1]
        assert body == "x" * MAX_TOOL_OUTPUT_CHARS + TRUNCATION_MARKER

    def test_output_at_limit_not_truncated(self) -> None:
        output = "y" * MAX_TOOL_OUTPUT_CHARS

        assert truncate_tool_output(output) == output


class TestUnknownRecord:
    """Records with an unrecognised tag become empty system messages."""

    def test_unknown_tag(self) -> None:
        message = classify(UnknownRecord(type="summary"))

        assert message.role == "system"
        assert message.text == ""
        assert message.is_retained is False


class TestLengthFilter:
    """Length filter boundaries."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("", False),
            ("123456789", False),
            ("1234567890", True),
            ("a longer sentence", True),
        ],
    )
    def test_is_substantive(self, text: str, expected: bool) -> None:
        assert is_substantive(text) is expected

    def test_filter_is_idempotent(self) -> None:
        retained = classify(
            UserRecord(type="user", content="Please read config.ts for me")
        )
        reclassified = classify(UserRecord(type="user", content=retained.text))

        assert reclassified.text == retained.text
        assert reclassified.is_retained is True
