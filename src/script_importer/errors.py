"""
Exception types and error classification for script_importer.

Provides:
- ErrorCategory enum for classifying failures
- Typed exception hierarchy for the download pipeline
- HTTP status / exception classification utilities
"""

import asyncio
from enum import Enum
from typing import Optional

import aiohttp


class ErrorCategory(Enum):
    """
    Classification of error types.

    The importer never retries on its own; the category is surfaced so the
    debugging session that called it can decide what to tell the user.

    Categories:
        TRANSIENT: Temporary failures (packager restarting, timeouts, 5xx)
        PERMANENT: Failures that won't succeed on a repeat call
                   (404, missing staging directory, permission denied)
        UNKNOWN: Unclassified errors
    """

    TRANSIENT = "transient"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


class ImporterError(Exception):
    """
    Base exception for all script_importer errors.

    Attributes:
        message: Human-readable error description
        category: Error classification
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


class FetchError(ImporterError):
    """Bundle or source map request did not succeed."""

    def __init__(
        self,
        message: str,
        url: str,
        status_code: Optional[int] = None,
        category: Optional[ErrorCategory] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            cause=cause,
            context={"url": url, "http_status": status_code},
        )
        self.url = url
        self.status_code = status_code
        if category is not None:
            self.category = category
        elif status_code is not None:
            self.category = classify_http_status(status_code)
        elif cause is not None:
            self.category = classify_exception(cause)


class WriteError(ImporterError):
    """Staged file could not be written."""

    category = ErrorCategory.PERMANENT

    def __init__(self, message: str, path: str, cause: Optional[Exception] = None):
        super().__init__(message, cause=cause, context={"staged_path": path})
        self.path = path


class CleanupError(ImporterError):
    """
    Staged file could not be deleted at shutdown.

    Only ever logged by the cleanup registry; there is no caller left to
    receive it.
    """

    category = ErrorCategory.PERMANENT

    def __init__(self, message: str, path: str, cause: Optional[Exception] = None):
        super().__init__(message, cause=cause, context={"staged_path": path})
        self.path = path


class ConfigurationError(ImporterError):
    """Invalid configuration."""

    category = ErrorCategory.PERMANENT


def classify_http_status(status_code: int) -> ErrorCategory:
    """
    Classify HTTP status code into error category.

    Args:
        status_code: HTTP response status

    Returns:
        Appropriate ErrorCategory
    """
    if 200 <= status_code < 300:
        return ErrorCategory.UNKNOWN  # Not an error

    if status_code in (408, 429):
        return ErrorCategory.TRANSIENT

    if 400 <= status_code < 500:
        return ErrorCategory.PERMANENT

    if status_code >= 500:
        return ErrorCategory.TRANSIENT

    return ErrorCategory.UNKNOWN


def classify_exception(exc: BaseException) -> ErrorCategory:
    """
    Classify an exception into error category.

    Args:
        exc: Exception to classify

    Returns:
        Appropriate ErrorCategory
    """
    if isinstance(exc, ImporterError):
        return exc.category

    if isinstance(exc, aiohttp.ClientResponseError):
        return classify_http_status(exc.status)

    if isinstance(exc, (asyncio.TimeoutError, aiohttp.ClientConnectionError)):
        return ErrorCategory.TRANSIENT

    if isinstance(exc, (FileNotFoundError, NotADirectoryError, PermissionError)):
        return ErrorCategory.PERMANENT

    exc_str = str(exc).lower()
    if "timeout" in exc_str or "connection refused" in exc_str:
        return ErrorCategory.TRANSIENT

    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ImporterError",
    "FetchError",
    "WriteError",
    "CleanupError",
    "ConfigurationError",
    "classify_http_status",
    "classify_exception",
]
