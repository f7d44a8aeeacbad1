"""
Data models for the script download pipeline.

DownloadedScript is what callers get back from ScriptImporter.download();
StagedFile and CleanupResult describe files on disk and their removal.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class DownloadedScript:
    """
    Result of a successful download.

    Attributes:
        contents: Bundle text as staged (marker rewritten if a map was found)
        filepath: Local path of the staged bundle as a pathlib.Path. Callers
            that need a plain string path use str() or os.fspath()
    """

    contents: str
    filepath: Path


@dataclass(frozen=True)
class StagedFile:
    """A file written under the staging directory."""

    path: Path
    content: str

    @property
    def bytes_written(self) -> int:
        return len(self.content.encode("utf-8"))


@dataclass(frozen=True)
class CleanupResult:
    """
    Outcome of deleting one registered path at shutdown.

    Attributes:
        path: Path that was registered for cleanup
        success: True if the file was deleted
        error_message: Failure description when success is False
    """

    path: Path
    success: bool
    error_message: Optional[str] = None

    @classmethod
    def deleted(cls, path: Path) -> "CleanupResult":
        return cls(path=path, success=True)

    @classmethod
    def failed(cls, path: Path, error_message: str) -> "CleanupResult":
        return cls(path=path, success=False, error_message=error_message)
