"""Application exception classes."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, code: str, exit_code: int = 1) -> None:
        self.message = message
        self.code = code
        self.exit_code = exit_code
        super().__init__(message)


# --- Embedding ---


class EmbeddingError(AppException):
    """An embedding request failed or returned an unusable vector."""

    def __init__(self, message: str = "Embedding request failed") -> None:
        super().__init__(message=message, code="EMBEDDING_FAILED")


class EmbeddingServiceUnavailableError(AppException):
    """The embedding service is unreachable or the model is missing."""

    def __init__(self, message: str = "Embedding service is not available") -> None:
        super().__init__(message=message, code="EMBEDDING_UNAVAILABLE")


# --- Not Found ---


class SessionNotFoundError(AppException):
    """Session not found."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            message=f"Session not found: {session_id}",
            code="SESSION_NOT_FOUND",
        )


# --- Validation ---


class InvalidSearchError(AppException):
    """Search request parameters are invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="INVALID_SEARCH", exit_code=2)
