"""
Script importer: download a bundle and its source map into a staging dir.

Orchestrates the pipeline a debugging session runs before executing a
packager bundle remotely:

    fetch bundle -> find sourceMappingURL -> [fetch map -> stage map
    -> rewrite bundle marker] -> stage bundle

Any fetch or write failure fails the whole download. Nothing is retried
and files already staged are left for the cleanup registry.
"""

import logging
import os
import time
from pathlib import PurePosixPath
from typing import Optional, Union

from script_importer.config import ImporterConfig
from script_importer.errors import ConfigurationError, ImporterError
from script_importer.logging.setup import get_logger
from script_importer.logging.utilities import log_exception, log_with_context
from script_importer.models import DownloadedScript
from script_importer.sourcemap import SourceMapUtil, path_component
from script_importer.staging import CleanupRegistry, StagingWriter
from script_importer.transport import HttpTransport

logger = get_logger(__name__)


class ScriptImporter:
    """
    Downloads packager bundles into a local staging directory.

    Usage:
        registry = CleanupRegistry()
        async with ScriptImporter(staging_dir, registry=registry) as importer:
            script = await importer.download(
                "http://localhost:8081/index.ios.bundle?platform=ios&dev=true"
            )
            # script.filepath == staging_dir / "index.ios.bundle"
        ...
        await registry.run_all()

    Concurrent downloads are independent. Two downloads that map to the
    same local path overwrite each other.
    """

    def __init__(
        self,
        staging_dir: Union[str, os.PathLike],
        transport: Optional[HttpTransport] = None,
        registry: Optional[CleanupRegistry] = None,
        writer: Optional[StagingWriter] = None,
        source_maps: Optional[SourceMapUtil] = None,
        ensure_directories: bool = False,
    ):
        """
        Initialize ScriptImporter.

        Args:
            staging_dir: Existing directory fetched files are written under
            transport: HTTP transport (default: HttpTransport owned by this importer)
            registry: Cleanup registry (default: a new one, see .registry)
            writer: Staging writer (default: built from staging_dir and registry)
            source_maps: Source map locator/rewriter
            ensure_directories: Create nested directories under staging_dir
        """
        self._owns_transport = transport is None
        self.transport = transport if transport is not None else HttpTransport()
        if registry is None:
            registry = writer.registry if writer is not None else CleanupRegistry()
        self.registry = registry
        self.writer = writer or StagingWriter(
            staging_dir, self.registry, ensure_directories=ensure_directories
        )
        self.staging_dir = self.writer.staging_dir
        self.source_maps = source_maps or SourceMapUtil()

    @classmethod
    def from_config(
        cls,
        config: ImporterConfig,
        registry: Optional[CleanupRegistry] = None,
    ) -> "ScriptImporter":
        """
        Build an importer from configuration.

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        errors = config.validate()
        if errors:
            raise ConfigurationError(
                "Invalid script importer configuration: " + "; ".join(errors)
            )

        if registry is None:
            registry = CleanupRegistry()
        if config.staging.install_exit_hook:
            registry.install_exit_hook()

        importer = cls(
            config.staging.directory,
            transport=HttpTransport(
                timeout_seconds=config.http.timeout_seconds,
                max_connections=config.http.max_connections,
            ),
            registry=registry,
            ensure_directories=config.staging.ensure_directories,
        )
        # Transport was built here, so the importer closes it
        importer._owns_transport = True
        return importer

    async def __aenter__(self) -> "ScriptImporter":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the transport if this importer created it."""
        if self._owns_transport:
            await self.transport.close()

    async def download(self, script_url: str) -> DownloadedScript:
        """
        Fetch a bundle (and its source map, if referenced) into the staging dir.

        Args:
            script_url: Bundle URL, e.g.
                http://localhost:8081/index.ios.bundle?platform=ios&dev=true

        Returns:
            DownloadedScript with the staged bundle text and its local path

        Raises:
            FetchError: If the bundle or source map request fails
            WriteError: If a staged file cannot be written
        """
        start = time.monotonic()

        try:
            script_body = await self.transport.fetch_text(script_url)
            script_path = self.writer.path_for(script_url)

            source_map_url = self.source_maps.get_source_map_url(
                script_url, script_body
            )
            if source_map_url:
                await self._write_source_map(source_map_url, script_url)
                script_body = self.source_maps.update_script_paths(
                    script_body, source_map_url
                )

            await self.writer.persist(script_path, script_body)

        except ImporterError as e:
            log_exception(
                logger,
                e,
                "Script download failed",
                level=logging.WARNING,
                include_traceback=False,
                script_url=script_url,
            )
            raise

        log_with_context(
            logger,
            logging.DEBUG,
            f"Script {script_url} downloaded to {script_path}",
            script_url=script_url,
            source_map_url=source_map_url,
            staged_path=str(script_path),
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )
        return DownloadedScript(contents=script_body, filepath=script_path)

    async def _write_source_map(self, source_map_url: str, script_url: str) -> None:
        """Fetch the source map and stage it with paths rewritten."""
        source_map_body = await self.transport.fetch_text(source_map_url)
        source_map_path = self.writer.path_for(source_map_url)
        script_file_name = PurePosixPath(path_component(script_url)).name

        rewritten = self.source_maps.update_source_map_file(
            source_map_body, script_file_name, self.staging_dir
        )
        await self.writer.persist(source_map_path, rewritten)

        log_with_context(
            logger,
            logging.DEBUG,
            "Source map staged",
            script_url=script_url,
            source_map_url=source_map_url,
            staged_path=str(source_map_path),
        )
