"""Error taxonomy shared by the collection, enrichment and reporting stages."""

from __future__ import annotations


class PlaylistAnalyzerError(Exception):
    """Base class for all analyzer failures."""


class ConfigurationError(PlaylistAnalyzerError):
    """Raised when run options are invalid; detected before any network call."""


class SourceError(PlaylistAnalyzerError):
    """Raised when a page or batch request cannot be completed."""


class TransientSourceError(SourceError):
    """Server-class failure that is expected to succeed on retry."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class FetchExhaustedError(SourceError):
    """Raised when a retryable call keeps failing after every allowed attempt."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"Gave up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error
