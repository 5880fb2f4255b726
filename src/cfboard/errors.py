from __future__ import annotations


class FetchError(Exception):
    """Base class for failures raised by a widget's data source."""


class ApiError(FetchError):
    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class RateLimitError(FetchError):
    """HTTP 429 from the API, optionally carrying the server's retry hint."""

    def __init__(self, endpoint: str, retry_after_seconds: float | None = None) -> None:
        hint = f"retry after {retry_after_seconds:g}s" if retry_after_seconds is not None else "no retry hint"
        super().__init__(f"Rate limited on {endpoint} ({hint})")
        self.endpoint = endpoint
        self.retry_after_seconds = retry_after_seconds
