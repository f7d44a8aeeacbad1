"""
Staging writer and cleanup registry.

Fetched artifacts are written under a single staging directory supplied by
the host. Every successful write registers the path with a CleanupRegistry;
the host calls run_all() (or run_all_sync() from an atexit hook) during its
own shutdown to delete them again.

The staging directory must already exist. Nested directories mirroring the
remote URL path are only created when the writer is built with
ensure_directories=True.
"""

import asyncio
import atexit
import logging
import os
import threading
from pathlib import Path
from typing import List, Tuple, Union

from script_importer.errors import CleanupError, WriteError
from script_importer.logging.setup import get_logger
from script_importer.logging.utilities import log_exception, log_with_context
from script_importer.models import CleanupResult, StagedFile
from script_importer.sourcemap import path_component

logger = get_logger(__name__)

PathLike = Union[str, os.PathLike]


def staged_path_for(staging_dir: PathLike, url: str) -> Path:
    """
    Local path for a remote URL: staging_dir joined with the URL's path.

    Directory segments in the URL path are preserved; query string and
    fragment are ignored, so index.ios.bundle?platform=ios maps to
    {staging_dir}/index.ios.bundle.

    Raises:
        WriteError: If the URL path would resolve outside staging_dir
    """
    staging_root = Path(staging_dir)
    relative = path_component(url).lstrip("/")
    candidate = staging_root / relative

    root = os.path.normpath(os.path.abspath(staging_root))
    resolved = os.path.normpath(os.path.abspath(candidate))
    if resolved != root and not resolved.startswith(root.rstrip(os.sep) + os.sep):
        raise WriteError(
            f"Path of {url} escapes the staging directory",
            path=str(candidate),
        )

    return candidate


class CleanupRegistry:
    """
    Pending deletions for staged files.

    Append-only until run_all()/run_all_sync() drains it. Registering the
    same path twice yields two independent cleanup attempts.

    Usage:
        registry = CleanupRegistry()
        importer = ScriptImporter(staging_dir, registry=registry)
        ...
        results = await registry.run_all()  # during host shutdown
    """

    def __init__(self):
        self._paths: List[Path] = []
        self._lock = threading.Lock()
        self._exit_hook_installed = False

    def register(self, path: PathLike) -> None:
        """Schedule path for deletion at shutdown."""
        with self._lock:
            self._paths.append(Path(path))

    @property
    def pending(self) -> Tuple[Path, ...]:
        """Paths registered and not yet cleaned up."""
        with self._lock:
            return tuple(self._paths)

    def __len__(self) -> int:
        with self._lock:
            return len(self._paths)

    def run_all_sync(self) -> List[CleanupResult]:
        """
        Delete every registered path once and drain the registry.

        Never raises; failures are logged and returned as CleanupResult
        entries with success=False.
        """
        with self._lock:
            paths, self._paths = self._paths, []

        results = [self._delete(path) for path in paths]

        failed = sum(1 for r in results if not r.success)
        if results:
            log_with_context(
                logger,
                logging.WARNING if failed else logging.DEBUG,
                "Staged file cleanup finished",
                cleanup_total=len(results),
                cleanup_failed=failed,
            )
        return results

    async def run_all(self) -> List[CleanupResult]:
        """Async variant of run_all_sync(); deletions run off the event loop."""
        return await asyncio.to_thread(self.run_all_sync)

    def install_exit_hook(self) -> None:
        """
        Run cleanup from atexit, for hosts without their own shutdown sequence.

        Safe to call more than once; the hook is registered a single time.
        """
        with self._lock:
            if self._exit_hook_installed:
                return
            self._exit_hook_installed = True
        atexit.register(self.run_all_sync)

    def _delete(self, path: Path) -> CleanupResult:
        try:
            path.unlink()
        except OSError as e:
            error = CleanupError(
                f"Failed to clean temporary file: {path}", path=str(path), cause=e
            )
            log_exception(
                logger,
                error,
                "Staged file cleanup failed",
                level=logging.WARNING,
                include_traceback=False,
                staged_path=str(path),
            )
            return CleanupResult.failed(path, str(e))

        log_with_context(
            logger,
            logging.INFO,
            f"Successfully cleaned temporary file: {path}",
            staged_path=str(path),
        )
        return CleanupResult.deleted(path)


class StagingWriter:
    """
    Writes text files under the staging directory.

    Each successful persist() registers exactly one cleanup for the path.
    Failed writes register nothing.
    """

    def __init__(
        self,
        staging_dir: PathLike,
        registry: CleanupRegistry,
        ensure_directories: bool = False,
    ):
        self.staging_dir = Path(staging_dir)
        self.registry = registry
        self.ensure_directories = ensure_directories

    def path_for(self, url: str) -> Path:
        """Local path a remote URL is staged at."""
        return staged_path_for(self.staging_dir, url)

    async def persist(self, path: PathLike, content: str) -> StagedFile:
        """
        Write content to path, replacing any existing file.

        Args:
            path: Target path (normally from path_for())
            content: Full text to write

        Returns:
            StagedFile describing what was written

        Raises:
            WriteError: If the directory is missing or the write fails
        """
        target = Path(path)

        try:
            await asyncio.to_thread(self._write, target, content)
        except OSError as e:
            raise WriteError(
                f"File write error: {e}", path=str(target), cause=e
            ) from e

        self.registry.register(target)

        staged = StagedFile(path=target, content=content)
        log_with_context(
            logger,
            logging.DEBUG,
            "Staged file written",
            staged_path=str(target),
            bytes_written=staged.bytes_written,
        )
        return staged

    def _write(self, target: Path, content: str) -> None:
        # The staging directory itself is never created here
        if self.ensure_directories and self.staging_dir.is_dir():
            target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8", newline="") as f:
            f.write(content)
