"""Shared fixtures for script_importer tests."""

import json
from unittest.mock import AsyncMock

import pytest

from script_importer.staging import CleanupRegistry
from script_importer.transport import HttpTransport


@pytest.fixture
def staging_dir(tmp_path):
    """Existing staging directory."""
    directory = tmp_path / "staging"
    directory.mkdir()
    return directory


@pytest.fixture
def registry():
    return CleanupRegistry()


@pytest.fixture
def transport():
    """HttpTransport stand-in; set fetch_text.side_effect with make_fetch()."""
    mock_transport = AsyncMock(spec=HttpTransport)
    return mock_transport


@pytest.fixture
def source_map_body(staging_dir):
    """Packager-style source map with absolute and file:// sources."""
    return json.dumps(
        {
            "version": 3,
            "sources": [
                str(staging_dir / "src" / "App.js"),
                "file://" + str(staging_dir / "src" / "index.js"),
            ],
            "names": ["render"],
            "mappings": "AAAA;AACA",
        }
    )
