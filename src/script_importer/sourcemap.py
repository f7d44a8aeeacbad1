"""
Source map discovery and path rewriting.

Finds the sourceMappingURL marker a packager appends to a bundle, points
it at a locally staged map, and rewrites the map's own paths so a
debugger can resolve sources relative to the staging directory.
"""

import json
import logging
import os
import re
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urljoin, urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from script_importer.logging.setup import get_logger
from script_importer.logging.utilities import log_with_context

logger = get_logger(__name__)

# "//# sourceMappingURL=<url>" on its own line; "//@" is the legacy form
SOURCE_MAPPING_URL_PATTERN = re.compile(
    r"^(?P<prefix>[ \t]*//[#@][ \t]*sourceMappingURL=)(?P<url>[^\s'\"]+)[ \t\r]*$",
    re.MULTILINE,
)

FILE_SCHEME_PATTERN = re.compile(r"^file:/+", re.IGNORECASE)
WINDOWS_DRIVE_PATTERN = re.compile(r"^/?[a-zA-Z]:[\\/]")


class SourceMapDocument(BaseModel):
    """
    Source map v3 document.

    Only the fields rewritten here are declared; everything else
    (mappings, names, x_facebook_sources, ...) passes through untouched.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    version: Optional[int] = None
    file: Optional[str] = None
    source_root: Optional[str] = Field(default=None, alias="sourceRoot")
    sources: Optional[List[Optional[str]]] = None


def _last_marker(body: str) -> Optional["re.Match[str]"]:
    match = None
    for match in SOURCE_MAPPING_URL_PATTERN.finditer(body):
        pass
    return match


def path_component(url: str) -> str:
    """Return the decoded-as-is path component of url ('' if absent)."""
    return urlsplit(url).path


def file_name_of(url: str) -> str:
    """Base name of url's path component (index.ios.map for .../index.ios.map?x=1)."""
    return PurePosixPath(path_component(url)).name


class SourceMapUtil:
    """Locates source map references and rewrites paths for local staging."""

    def get_source_map_url(self, script_url: str, script_body: str) -> Optional[str]:
        """
        Find the source map URL referenced by a bundle.

        The last marker in the body wins. Relative and protocol-relative
        references are resolved against script_url. Inline (data:) maps
        have nothing to fetch and are reported as absent.

        Args:
            script_url: URL the bundle was fetched from
            script_body: Bundle text

        Returns:
            Absolute source map URL, or None if the bundle has no usable marker
        """
        match = _last_marker(script_body)
        if match is None:
            return None

        reference = match.group("url")
        if reference.lower().startswith("data:"):
            return None

        try:
            resolved = urljoin(script_url, reference)
        except ValueError:
            log_with_context(
                logger,
                logging.WARNING,
                "Ignoring malformed source map reference",
                script_url=script_url,
                source_map_url=reference,
            )
            return None

        if urlsplit(resolved).scheme not in ("http", "https"):
            return None

        return resolved

    def update_script_paths(self, script_body: str, source_map_url: str) -> str:
        """
        Point the bundle's marker at the staged map's file name.

        Applying this to a body whose marker already names the local file
        returns the body unchanged.

        Args:
            script_body: Bundle text
            source_map_url: Remote map URL the marker currently resolves to

        Returns:
            Bundle text with the last marker rewritten
        """
        match = _last_marker(script_body)
        if match is None:
            return script_body

        local_name = file_name_of(source_map_url)
        if not local_name:
            return script_body

        start, end = match.span("url")
        return script_body[:start] + local_name + script_body[end:]

    def update_source_map_file(
        self,
        source_map_body: str,
        script_file_relative_path: str,
        sources_root_path: Union[str, os.PathLike],
    ) -> str:
        """
        Rewrite a source map so it describes the staged bundle.

        - file is set to the staged bundle's name
        - sourceRoot is cleared
        - each entry in sources has any file:// scheme removed and, when
          absolute, is made relative to sources_root_path

        A body that is not a JSON object is returned unchanged.

        Args:
            source_map_body: Raw source map JSON
            script_file_relative_path: Staged bundle name (index.ios.bundle)
            sources_root_path: Staging directory

        Returns:
            Rewritten source map JSON
        """
        try:
            raw = json.loads(source_map_body)
            document = SourceMapDocument.model_validate(raw)
        except (ValueError, ValidationError) as e:
            log_with_context(
                logger,
                logging.WARNING,
                "Source map is not valid JSON, staging it unchanged",
                error_message=str(e)[:500],
            )
            return source_map_body

        if document.sources is not None:
            document.sources = [
                self.update_source_map_path(source, sources_root_path)
                for source in document.sources
            ]
        document.source_root = ""
        document.file = script_file_relative_path

        # Fields absent from the input stay absent; explicit nulls survive
        data: Dict[str, Any] = document.model_dump(by_alias=True, exclude_unset=True)
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False)

    def update_source_map_path(
        self,
        source_path: Optional[str],
        sources_root_path: Union[str, os.PathLike],
    ) -> Optional[str]:
        """Rewrite one sources entry relative to the staging directory."""
        if not source_path:
            return source_path

        path = source_path
        if FILE_SCHEME_PATTERN.match(path):
            path = FILE_SCHEME_PATTERN.sub("/", path)
            if WINDOWS_DRIVE_PATTERN.match(path):
                path = path.lstrip("/")
        elif urlsplit(path).scheme and not WINDOWS_DRIVE_PATTERN.match(path):
            # webpack://, http:// and friends are left alone
            return source_path

        if not os.path.isabs(path):
            return path.replace("\\", "/")

        try:
            relative = os.path.relpath(path, os.fspath(sources_root_path))
        except ValueError:
            # Different drives on Windows
            return path.replace("\\", "/")

        return relative.replace(os.sep, "/")
