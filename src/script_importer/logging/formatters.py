"""Log formatters for JSON and console output."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict
from urllib.parse import urlsplit, urlunsplit

from script_importer.logging.context import get_log_context


def strip_query(url: str) -> str:
    """Drop query string and fragment from a URL for logging."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter with context injection.

    Produces one JSON object per line for easy parsing with jq/grep.
    """

    # Fields to extract from LogRecord extras
    EXTRA_FIELDS = [
        "script_url",
        "source_map_url",
        "staged_path",
        "bytes_written",
        "content_length",
        "duration_ms",
        "http_status",
        "error_category",
        "error_message",
        "cleanup_total",
        "cleanup_failed",
    ]

    # Fields that contain URLs; packager query strings are noise in logs
    URL_FIELDS = ["script_url", "source_map_url"]

    def __init__(self, strip_url_queries: bool = False):
        super().__init__()
        self.strip_url_queries = strip_url_queries

    def _sanitize_value(self, key: str, value: Any) -> Any:
        if self.strip_url_queries and key in self.URL_FIELDS and isinstance(value, str):
            return strip_query(value)
        return value

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3]
            + "Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        # Inject context variables
        ctx = get_log_context()
        if ctx["session_id"]:
            log_entry["session_id"] = ctx["session_id"]
        if ctx["stage"]:
            log_entry["stage"] = ctx["stage"]

        # Add source location for DEBUG/ERROR
        if record.levelno in (logging.DEBUG, logging.ERROR, logging.CRITICAL):
            log_entry["file"] = f"{record.filename}:{record.lineno}"

        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = self._sanitize_value(field, value)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console formatter.

    Includes context when available.
    """

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_log_context()

        parts = [
            datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            record.levelname,
        ]

        if ctx["stage"]:
            parts.append(f"[{ctx['stage']}]")

        prefix = " - ".join(parts)

        session_id = ctx["session_id"]
        if session_id:
            return f"{prefix} - [{session_id[:8]}] {record.getMessage()}"

        return f"{prefix} - {record.getMessage()}"
