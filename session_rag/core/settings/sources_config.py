"""Transcript source configuration."""

from pathlib import Path

from pydantic import BaseModel


class SourcesConfig(BaseModel, frozen=True):
    """Transcript source locations."""

    sessions_path: Path

    @property
    def resolved_sessions_path(self) -> Path:
        """Sessions directory with ``~`` expanded."""
        return self.sessions_path.expanduser()
