"""Search configuration."""

from pydantic import BaseModel


class SearchConfig(BaseModel, frozen=True):
    """Retrieval settings."""

    text_search_config: str
    default_limit: int
    context_chars: int
