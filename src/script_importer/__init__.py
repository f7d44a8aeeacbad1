"""
Local staging of packager bundles and source maps for debugging.

    from script_importer import CleanupRegistry, ScriptImporter

    registry = CleanupRegistry()
    importer = ScriptImporter("/tmp/rn-debug", registry=registry)
    script = await importer.download(url)
    ...
    await registry.run_all()
"""

from script_importer.errors import (
    CleanupError,
    ConfigurationError,
    ErrorCategory,
    FetchError,
    ImporterError,
    WriteError,
)
from script_importer.importer import ScriptImporter
from script_importer.logging.setup import setup_logging_from_config
from script_importer.models import CleanupResult, DownloadedScript, StagedFile
from script_importer.sourcemap import SourceMapUtil
from script_importer.staging import CleanupRegistry, StagingWriter, staged_path_for
from script_importer.transport import HttpTransport

__all__ = [
    "ScriptImporter",
    "HttpTransport",
    "SourceMapUtil",
    "StagingWriter",
    "CleanupRegistry",
    "staged_path_for",
    "setup_logging_from_config",
    "DownloadedScript",
    "StagedFile",
    "CleanupResult",
    "ErrorCategory",
    "ImporterError",
    "FetchError",
    "WriteError",
    "CleanupError",
    "ConfigurationError",
]
