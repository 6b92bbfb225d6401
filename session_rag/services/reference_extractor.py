"""Extract file-path-like references from chunk text."""

import re
from collections.abc import Callable
from dataclasses import dataclass


def looks_like_url(candidate: str) -> bool:
    """URL fragments that the path patterns pick up."""
    return "http" in candidate or candidate.startswith(".com")


@dataclass(frozen=True)
class ReferencePattern:
    """One independent matcher; group 1 of ``pattern`` is the reference."""

    name: str
    pattern: re.Pattern[str]
    exclude: Callable[[str], bool] = looks_like_url


# Word characters are ASCII only: a path segment with non-ASCII letters is not
# a reference.
REFERENCE_PATTERNS: tuple[ReferencePattern, ...] = (
    ReferencePattern(
        "absolute", re.compile(r"(?:^|\s)(/[\w\-./]+\.\w+)", re.ASCII)
    ),
    ReferencePattern(
        "dot_relative", re.compile(r"(?:^|\s)(\./[\w\-./]+)", re.ASCII)
    ),
    ReferencePattern(
        "home_relative", re.compile(r"(?:^|\s)(~/[\w\-./]+)", re.ASCII)
    ),
    ReferencePattern("backtick", re.compile(r"`([^`]+\.\w{1,5})`", re.ASCII)),
    ReferencePattern("json_file_path", re.compile(r'"filePath":\s*"([^"]+)"')),
)

PROJECT_PATH_PATTERN = re.compile(r"/([^/]+)/(?:src|app|lib|node_modules)")


def extract_references(
    text: str,
    patterns: tuple[ReferencePattern, ...] = REFERENCE_PATTERNS,
) -> list[str]:
    """Return distinct references in first-seen order across all patterns."""
    found: dict[str, None] = {}
    for entry in patterns:
        for match in entry.pattern.finditer(text):
            candidate = match.group(1)
            if candidate and not entry.exclude(candidate):
                found.setdefault(candidate, None)
    return list(found)


def project_name_from_path(path: str) -> str | None:
    """Directory segment directly above a src/app/lib/node_modules segment."""
    match = PROJECT_PATH_PATTERN.search(path)
    return match.group(1) if match else None
