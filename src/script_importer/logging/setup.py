"""Logging setup and configuration."""

import io
import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from script_importer.config import LoggingConfig
from script_importer.logging.constants import (
    DEFAULT_BACKUP_COUNT,
    DEFAULT_CONSOLE_LEVEL,
    DEFAULT_FILE_LEVEL,
    DEFAULT_LOG_DIR,
    DEFAULT_MAX_BYTES,
    NOISY_LOGGERS,
)
from script_importer.logging.context import set_log_context
from script_importer.logging.formatters import ConsoleFormatter, JSONFormatter


def get_log_file_path(log_dir: Path, session_id: Optional[str] = None) -> Path:
    """
    Build log file path with a date subfolder.

    Structure: {log_dir}/{YYYY-MM-DD}/script_importer_{YYYYMMDD}[_{session}].log

    Args:
        log_dir: Base log directory
        session_id: Debugging session identifier, appended when given

    Returns:
        Full path to log file
    """
    date_folder = datetime.now().strftime("%Y-%m-%d")
    date_str = datetime.now().strftime("%Y%m%d")

    if session_id:
        filename = f"script_importer_{date_str}_{session_id}.log"
    else:
        filename = f"script_importer_{date_str}.log"

    return log_dir / date_folder / filename


def setup_logging(
    name: str = "script_importer",
    log_dir: Optional[Path] = None,
    json_format: bool = True,
    console_level: int = DEFAULT_CONSOLE_LEVEL,
    file_level: int = DEFAULT_FILE_LEVEL,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    suppress_noisy: bool = True,
    session_id: Optional[str] = None,
    strip_url_queries: bool = False,
) -> logging.Logger:
    """
    Configure logging with console and rotating file handlers.

    Log files are organized by date:
        logs/2025-01-15/script_importer_20250115.log

    Args:
        name: Logger name
        log_dir: Directory for log files (default: ./logs)
        json_format: Use JSON format for file logs (default: True)
        console_level: Console handler level (default: INFO)
        file_level: File handler level (default: DEBUG)
        max_bytes: Max size per log file before rotation
        backup_count: Number of backup files to keep
        suppress_noisy: Quiet down HTTP client loggers
        session_id: Debugging session identifier for context
        strip_url_queries: Drop query strings from URL fields in JSON logs

    Returns:
        Configured logger instance
    """
    log_dir = log_dir or DEFAULT_LOG_DIR

    if session_id:
        set_log_context(session_id=session_id)

    log_file = get_log_file_path(log_dir, session_id=session_id)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    if json_format:
        file_formatter: logging.Formatter = JSONFormatter(
            strip_url_queries=strip_url_queries
        )
    else:
        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
        )
    console_formatter = ConsoleFormatter()

    # File handler with rotation
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(file_formatter)

    # Console handler
    if sys.platform == "win32":
        safe_stdout = io.TextIOWrapper(
            sys.stdout.buffer, encoding="utf-8", errors="replace"
        )
        console_handler = logging.StreamHandler(safe_stdout)
    else:
        console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(console_formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter

    # Remove existing handlers to avoid duplicates on re-init
    root_logger.handlers.clear()
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    if suppress_noisy:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logger = logging.getLogger(name)
    logger.debug(f"Logging initialized: file={log_file}, json={json_format}")

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Use this instead of logging.getLogger() to ensure consistent naming.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def setup_logging_from_config(
    logging_config: LoggingConfig,
    session_id: Optional[str] = None,
) -> logging.Logger:
    """
    Configure logging from the logging section of ImporterConfig.

    Maps level onto the console handler; the file handler keeps DEBUG.

    Args:
        logging_config: config.logging of a validated ImporterConfig
        session_id: Debugging session identifier for context

    Returns:
        Configured logger instance
    """
    return setup_logging(
        log_dir=Path(logging_config.log_dir),
        json_format=logging_config.json_format,
        console_level=logging.getLevelName(logging_config.level.upper()),
        session_id=session_id,
        strip_url_queries=logging_config.strip_url_queries,
    )
