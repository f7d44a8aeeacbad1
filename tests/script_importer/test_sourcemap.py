"""Tests for SourceMapUtil marker discovery and path rewriting."""

import json
import os

import pytest

from script_importer.sourcemap import SourceMapUtil, file_name_of, path_component

BUNDLE_URL = "http://localhost:8081/index.ios.bundle?platform=ios&dev=true"
MAP_URL = "http://localhost:8081/index.ios.map?platform=ios&dev=true"


@pytest.fixture
def util():
    return SourceMapUtil()


class TestGetSourceMapUrl:
    """Locating the sourceMappingURL marker."""

    def test_absolute_reference(self, util):
        body = "var a = 1;\n//# sourceMappingURL=" + MAP_URL

        assert util.get_source_map_url(BUNDLE_URL, body) == MAP_URL

    def test_relative_reference_resolved_against_bundle(self, util):
        body = "var a = 1;\n//# sourceMappingURL=index.ios.map?platform=ios&dev=true\n"

        assert util.get_source_map_url(BUNDLE_URL, body) == MAP_URL

    def test_protocol_relative_reference(self, util):
        body = "var a = 1;\n//# sourceMappingURL=//localhost:8081/index.ios.map?platform=ios&dev=true"

        assert util.get_source_map_url(BUNDLE_URL, body) == MAP_URL

    def test_legacy_at_marker(self, util):
        body = "var a = 1;\n//@ sourceMappingURL=index.ios.map"

        assert util.get_source_map_url(BUNDLE_URL, body) == "http://localhost:8081/index.ios.map"

    def test_last_marker_wins(self, util):
        body = (
            "//# sourceMappingURL=vendor.map\n"
            "var a = 1;\n"
            "//# sourceMappingURL=index.ios.map\n"
        )

        assert util.get_source_map_url(BUNDLE_URL, body) == "http://localhost:8081/index.ios.map"

    def test_crlf_line_endings(self, util):
        body = "var a = 1;\r\n//# sourceMappingURL=index.ios.map\r\n"

        assert util.get_source_map_url(BUNDLE_URL, body) == "http://localhost:8081/index.ios.map"

    @pytest.mark.parametrize(
        "body",
        [
            "",
            "var a = 1;",
            "var s = 'sourceMappingURL=index.ios.map';",
            "//# sourceMappingURL=",
            "//# sourceMappingURL=data:application/json;base64,eyJ2ZXJzaW9uIjozfQ==",
        ],
    )
    def test_no_usable_marker(self, util, body):
        assert util.get_source_map_url(BUNDLE_URL, body) is None


class TestUpdateScriptPaths:
    """Pointing the bundle marker at the staged map."""

    def test_marker_rewritten_to_file_name(self, util):
        body = "var a = 1;\n//# sourceMappingURL=" + MAP_URL

        result = util.update_script_paths(body, MAP_URL)

        assert result == "var a = 1;\n//# sourceMappingURL=index.ios.map"

    def test_trailing_newline_preserved(self, util):
        body = "var a = 1;\n//# sourceMappingURL=" + MAP_URL + "\n"

        result = util.update_script_paths(body, MAP_URL)

        assert result.endswith("//# sourceMappingURL=index.ios.map\n")

    def test_already_local_marker_unchanged(self, util):
        body = "var a = 1;\n//# sourceMappingURL=index.ios.map"

        assert util.update_script_paths(body, MAP_URL) == body

    def test_rewrite_is_idempotent(self, util):
        body = "var a = 1;\n//# sourceMappingURL=" + MAP_URL

        once = util.update_script_paths(body, MAP_URL)

        assert util.update_script_paths(once, MAP_URL) == once

    def test_body_without_marker_unchanged(self, util):
        body = "var a = 1;"

        assert util.update_script_paths(body, MAP_URL) == body

    def test_only_last_marker_rewritten(self, util):
        body = "//# sourceMappingURL=vendor.map\nvar a;\n//# sourceMappingURL=" + MAP_URL

        result = util.update_script_paths(body, MAP_URL)

        assert result.startswith("//# sourceMappingURL=vendor.map\n")
        assert result.endswith("//# sourceMappingURL=index.ios.map")


class TestUpdateSourceMapFile:
    """Rewriting paths inside the source map."""

    def test_file_and_source_root(self, util, tmp_path):
        body = json.dumps(
            {"version": 3, "file": "remote.js", "sourceRoot": "/abs", "sources": [], "mappings": ""}
        )

        result = json.loads(util.update_source_map_file(body, "index.ios.bundle", tmp_path))

        assert result["file"] == "index.ios.bundle"
        assert result["sourceRoot"] == ""
        assert result["version"] == 3

    def test_absolute_sources_made_relative(self, util, tmp_path):
        body = json.dumps(
            {
                "version": 3,
                "sources": [
                    str(tmp_path / "src" / "App.js"),
                    "file://" + str(tmp_path / "src" / "index.js"),
                ],
                "mappings": "AAAA",
            }
        )

        result = json.loads(util.update_source_map_file(body, "index.ios.bundle", tmp_path))

        assert result["sources"] == ["src/App.js", "src/index.js"]

    def test_sources_outside_staging_dir(self, util, tmp_path):
        staging = tmp_path / "staging"
        source = tmp_path / "project" / "App.js"
        body = json.dumps({"version": 3, "sources": [str(source)], "mappings": ""})

        result = json.loads(util.update_source_map_file(body, "index.ios.bundle", staging))

        assert result["sources"] == ["../project/App.js"]

    def test_relative_and_scheme_sources_untouched(self, util, tmp_path):
        sources = ["../src/App.js", "webpack:///src/index.js", None]
        body = json.dumps({"version": 3, "sources": sources, "mappings": ""})

        result = json.loads(util.update_source_map_file(body, "index.ios.bundle", tmp_path))

        assert result["sources"] == sources

    def test_unknown_fields_preserved(self, util, tmp_path):
        body = json.dumps(
            {
                "version": 3,
                "sources": [],
                "names": ["a", "b"],
                "mappings": "AAAA;AACA",
                "x_facebook_sources": [[{"names": ["<global>"]}]],
            }
        )

        result = json.loads(util.update_source_map_file(body, "index.ios.bundle", tmp_path))

        assert result["names"] == ["a", "b"]
        assert result["mappings"] == "AAAA;AACA"
        assert result["x_facebook_sources"] == [[{"names": ["<global>"]}]]

    def test_null_fields_preserved(self, util, tmp_path):
        body = json.dumps(
            {
                "version": 3,
                "sources": ["src/App.js", None],
                "mappings": "AAAA",
                "x_google_ignoreList": None,
            }
        )

        result = json.loads(util.update_source_map_file(body, "index.ios.bundle", tmp_path))

        assert "x_google_ignoreList" in result
        assert result["x_google_ignoreList"] is None
        assert result["sources"] == ["src/App.js", None]
        assert result["file"] == "index.ios.bundle"
        assert result["sourceRoot"] == ""

    def test_absent_fields_not_added(self, util, tmp_path):
        body = json.dumps({"mappings": "AAAA"})

        result = json.loads(util.update_source_map_file(body, "index.ios.bundle", tmp_path))

        assert "version" not in result
        assert "sources" not in result
        assert result["mappings"] == "AAAA"

    @pytest.mark.parametrize(
        "body",
        ["not json at all", "[1, 2, 3]", '{"sources": "oops"}'],
    )
    def test_unparseable_map_returned_unchanged(self, util, tmp_path, body):
        assert util.update_source_map_file(body, "index.ios.bundle", tmp_path) == body


class TestUrlHelpers:
    def test_path_component_ignores_query(self):
        assert path_component(BUNDLE_URL) == "/index.ios.bundle"

    def test_file_name_of(self):
        assert file_name_of("http://localhost:8081/maps/index.ios.map?dev=true") == "index.ios.map"

    def test_path_component_without_path(self):
        assert path_component("http://localhost:8081") == ""


@pytest.mark.skipif(os.name == "nt", reason="POSIX path layout")
def test_update_source_map_path_root_itself(tmp_path):
    assert SourceMapUtil().update_source_map_path(str(tmp_path), tmp_path) == "."
