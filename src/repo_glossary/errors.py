"""
Exceptions for repo-glossary.

Only repository listing failures (and the caller rate limit) escape the
pipeline. Per-file and per-batch failures are recorded and absorbed.
"""

from __future__ import annotations

from typing import Any


class GlossaryError(Exception):
    """Base exception for all repo-glossary errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class InvalidRepositoryError(GlossaryError, ValueError):
    """Raised when a repository identifier cannot be parsed."""

    def __init__(self, value: str):
        super().__init__(
            f"Invalid repository format: {value!r}. Use owner/repo or a GitHub URL",
            {"value": value},
        )


class RepositoryError(GlossaryError):
    """Errors raised by a repository file provider."""

    def __init__(
        self,
        message: str,
        owner: str = "",
        repo: str = "",
        path: str | None = None,
        status_code: int | None = None,
    ):
        details: dict[str, Any] = {"repository": f"{owner}/{repo}"}
        if path:
            details["path"] = path
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.owner = owner
        self.repo = repo
        self.path = path
        self.status_code = status_code


class RepositoryNotFoundError(RepositoryError):
    """Repository (or file) does not exist or is private."""


class RepositoryRateLimitedError(RepositoryError):
    """The repository host rejected the request because of rate limiting."""

    def __init__(self, message: str, *, retry_after: float | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after
        if retry_after is not None:
            self.details["retry_after"] = retry_after


class RepositoryAccessError(RepositoryError):
    """Any other failure talking to the repository host."""


class InferenceError(GlossaryError):
    """The inference endpoint returned a non-success response."""

    def __init__(self, message: str, status_code: int | None = None, provider: str = ""):
        details: dict[str, Any] = {}
        if status_code is not None:
            details["status_code"] = status_code
        if provider:
            details["provider"] = provider
        super().__init__(message, details)
        self.status_code = status_code


class ResponseParseError(GlossaryError):
    """The inference response body is not a JSON array of terms."""


class ImportRateLimitedError(GlossaryError):
    """A caller exceeded its allowance of pipeline runs."""

    def __init__(self, caller_id: str, retry_after: float):
        super().__init__(
            "Too many requests. Please try again later.",
            {"caller_id": caller_id, "retry_after": round(retry_after, 1)},
        )
        self.caller_id = caller_id
        self.retry_after = retry_after
