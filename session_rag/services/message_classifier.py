"""Classify transcript records into chunk roles and display text."""

from dataclasses import dataclass, field
from typing import Literal

from session_rag.schemas.transcript_schema import (
    AssistantRecord,
    ToolResultRecord,
    ToolUseRecord,
    TranscriptRecord,
    UnknownRecord,
    UserRecord,
)

Role = Literal["user", "assistant", "tool", "system"]

MIN_CONTENT_LENGTH = 10
MAX_TOOL_OUTPUT_CHARS = 1000
TRUNCATION_MARKER = "..."


@dataclass(frozen=True)
class ClassifiedMessage:
    """Role, rendered text and invoked tools for one transcript record."""

    role: Role
    text: str
    tools: list[str] = field(default_factory=list)
    is_tool_invocation: bool = False

    @property
    def is_retained(self) -> bool:
        """Whether this message becomes a chunk."""
        return not self.is_tool_invocation and is_substantive(self.text)


def is_substantive(text: str) -> bool:
    """Length filter applied to every rendered message."""
    return bool(text) and len(text) >= MIN_CONTENT_LENGTH


def truncate_tool_output(output: str) -> str:
    """Cut tool output to ``MAX_TOOL_OUTPUT_CHARS`` plus a marker."""
    if len(output) > MAX_TOOL_OUTPUT_CHARS:
        return output[:MAX_TOOL_OUTPUT_CHARS] + TRUNCATION_MARKER
    return output


def _describe_tool_input(tool_input: dict | None) -> str:
    if not tool_input:
        return ""
    description = tool_input.get("description") or tool_input.get("command") or ""
    return str(description)


def classify(record: TranscriptRecord) -> ClassifiedMessage:
    """Map a parsed record to its role and rendered text."""
    match record:
        case UserRecord(content=content):
            return ClassifiedMessage(role="user", text=content)
        case AssistantRecord(content=content):
            return ClassifiedMessage(role="assistant", text=content)
        case ToolUseRecord(tool_name=name, tool_input=tool_input):
            text = f"[Tool: {name}] {_describe_tool_input(tool_input)}".strip()
            return ClassifiedMessage(
                role="tool", text=text, tools=[name], is_tool_invocation=True
            )
        case ToolResultRecord(tool_name=name, tool_output=tool_output):
            output = ""
            if tool_output is not None:
                output = tool_output.output or tool_output.preview or ""
            text = f"[Tool Result: {name}]\n{truncate_tool_output(output)}".strip()
            return ClassifiedMessage(role="tool", text=text, tools=[name])
        case UnknownRecord():
            return ClassifiedMessage(role="system", text="")
