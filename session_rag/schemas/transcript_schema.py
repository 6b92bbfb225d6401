"""Transcript record schemas (one JSON object per .jsonl line)."""

import json
from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    ValidatorFunctionWrapHandler,
    WrapValidator,
)


def _none_if_invalid(value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
    try:
        return handler(value)
    except ValidationError:
        return None


# An unparseable timestamp is dropped; the record itself is kept.
LenientDatetime = Annotated[datetime | None, WrapValidator(_none_if_invalid)]


class _RecordBase(BaseModel):
    """Fields shared by every transcript record."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    timestamp: LenientDatetime = None


class UserRecord(_RecordBase):
    """A message typed by the user."""

    type: Literal["user"]
    content: str = ""


class AssistantRecord(_RecordBase):
    """A message produced by the assistant."""

    type: Literal["assistant"]
    content: str = ""


class ToolUseRecord(_RecordBase):
    """A tool invocation issued by the assistant."""

    type: Literal["tool_use"]
    tool_name: str = ""
    tool_input: dict[str, Any] | None = None


class ToolOutput(BaseModel):
    """Output payload attached to a tool result."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    output: str | None = None
    preview: str | None = None
    truncated: bool | None = None


class ToolResultRecord(_RecordBase):
    """The outcome of a tool invocation."""

    type: Literal["tool_result"]
    tool_name: str = ""
    tool_input: dict[str, Any] | None = None
    tool_output: ToolOutput | None = None


class UnknownRecord(_RecordBase):
    """Any record whose tag is not one of the known kinds."""

    type: Any = None


KnownRecord = Annotated[
    UserRecord | AssistantRecord | ToolUseRecord | ToolResultRecord,
    Field(discriminator="type"),
]

TranscriptRecord = (
    UserRecord | AssistantRecord | ToolUseRecord | ToolResultRecord | UnknownRecord
)

KNOWN_RECORD_TYPES = frozenset({"user", "assistant", "tool_use", "tool_result"})

_known_record_adapter: TypeAdapter[KnownRecord] = TypeAdapter(KnownRecord)


def parse_record(line: str) -> TranscriptRecord | None:
    """Parse one transcript line, returning ``None`` for malformed input.

    A line is malformed when it is not JSON, is JSON but not an object, or
    carries a known tag with fields of the wrong shape. A bad timestamp alone
    does not make a line malformed.
    """
    try:
        payload = json.loads(line)
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None

    tag = payload.get("type")
    try:
        if isinstance(tag, str) and tag in KNOWN_RECORD_TYPES:
            return _known_record_adapter.validate_python(payload)
        return UnknownRecord.model_validate(payload)
    except ValidationError:
        return None
