"""Tests for error classification."""

import asyncio

import aiohttp
import pytest

from script_importer.errors import (
    CleanupError,
    ErrorCategory,
    FetchError,
    ImporterError,
    WriteError,
    classify_exception,
    classify_http_status,
)


@pytest.mark.parametrize(
    "status,expected",
    [
        (200, ErrorCategory.UNKNOWN),
        (400, ErrorCategory.PERMANENT),
        (404, ErrorCategory.PERMANENT),
        (408, ErrorCategory.TRANSIENT),
        (429, ErrorCategory.TRANSIENT),
        (500, ErrorCategory.TRANSIENT),
        (503, ErrorCategory.TRANSIENT),
    ],
)
def test_classify_http_status(status, expected):
    assert classify_http_status(status) == expected


class TestClassifyException:
    def test_importer_error_keeps_category(self):
        assert classify_exception(WriteError("boom", path="/x")) == ErrorCategory.PERMANENT

    def test_timeout_is_transient(self):
        assert classify_exception(asyncio.TimeoutError()) == ErrorCategory.TRANSIENT

    def test_connection_error_is_transient(self):
        exc = aiohttp.ClientConnectionError("refused")

        assert classify_exception(exc) == ErrorCategory.TRANSIENT

    def test_missing_directory_is_permanent(self):
        assert classify_exception(FileNotFoundError("nope")) == ErrorCategory.PERMANENT

    def test_unknown(self):
        assert classify_exception(RuntimeError("odd")) == ErrorCategory.UNKNOWN


class TestFetchError:
    def test_category_from_status(self):
        error = FetchError("HTTP error: 404", url="http://x/a.map", status_code=404)

        assert error.category == ErrorCategory.PERMANENT
        assert error.context == {"url": "http://x/a.map", "http_status": 404}

    def test_explicit_category_wins(self):
        error = FetchError(
            "Timeout", url="http://x/a.js", category=ErrorCategory.TRANSIENT
        )

        assert error.category == ErrorCategory.TRANSIENT

    def test_category_from_cause(self):
        error = FetchError("boom", url="http://x", cause=asyncio.TimeoutError())

        assert error.category == ErrorCategory.TRANSIENT

    def test_str_includes_cause(self):
        error = FetchError("Connection error", url="http://x", cause=OSError("refused"))

        assert str(error) == "Connection error | Caused by: refused"


def test_hierarchy():
    for cls in (FetchError, WriteError, CleanupError):
        assert issubclass(cls, ImporterError)
