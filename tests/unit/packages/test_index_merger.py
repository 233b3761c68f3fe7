"""
Unit tests for the package index merger.
"""

import json
from pathlib import Path

import pytest

from sketchpilot.config.platform import Platform
from sketchpilot.packages.index_merger import PlatformIndexMerger, index_file_name


def index_document(name, version, boards, package="vendor", architecture="avr"):
    return {
        "packages": [
            {
                "name": package,
                "platforms": [
                    {
                        "name": name,
                        "architecture": architecture,
                        "version": version,
                        "boards": [{"name": board} for board in boards],
                    }
                ],
            }
        ]
    }


class TestPlatformIndexMerger:
    """Test suite for PlatformIndexMerger."""

    @pytest.fixture
    def merger(self):
        return PlatformIndexMerger()

    def test_versions_merge_boards_from_highest_only(self, merger):
        merger.add_index_document(index_document("AVR Boards", "1.8.2", ["Uno", "Old Board"]))
        merger.add_index_document(index_document("AVR Boards", "1.8.3", ["Uno", "Nano Every"]))

        assert len(merger.platforms) == 1
        plat = merger.get("vendor", "avr")
        assert plat.versions == ["1.8.2", "1.8.3"]
        assert plat.boards == [{"name": "Uno"}, {"name": "Nano Every"}]

    def test_older_version_read_later_keeps_highest_boards(self, merger):
        merger.add_index_document(index_document("AVR Boards", "1.8.3", ["Nano Every"]))
        merger.add_index_document(index_document("AVR Boards", "1.8.2", ["Old Board"]))

        plat = merger.get("vendor", "avr")
        assert plat.versions == ["1.8.2", "1.8.3"]
        assert plat.boards == [{"name": "Nano Every"}]

    def test_repeated_version_listed_once(self, merger):
        merger.add_index_document(index_document("AVR Boards", "1.8.3", ["Uno"]))
        merger.add_index_document(index_document("AVR Boards", "1.8.3", ["Uno", "Nano"]))

        plat = merger.get("vendor", "avr")
        assert plat.versions == ["1.8.3"]
        assert plat.boards == [{"name": "Uno"}, {"name": "Nano"}]

    def test_versions_sorted_semantically(self, merger):
        for version in ["1.8.10", "1.8.9", "1.6.23"]:
            merger.add_index_document(index_document("AVR", version, [version]))

        plat = merger.get("vendor", "avr")
        assert plat.versions == ["1.6.23", "1.8.9", "1.8.10"]
        assert plat.boards == [{"name": "1.8.10"}]
        assert plat.latest_version == "1.8.10"

    def test_name_follows_latest_document(self, merger):
        merger.add_index_document(index_document("Old Name", "2.0.0", []))
        merger.add_index_document(index_document("New Name", "1.0.0", []))
        assert merger.get("vendor", "avr").name == "New Name"

    def test_distinct_keys(self, merger):
        merger.add_index_document(index_document("AVR", "1.0.0", [], architecture="avr"))
        merger.add_index_document(index_document("SAMD", "1.0.0", [], architecture="samd"))
        assert [str(p) for p in merger.platforms] == ["vendor:avr", "vendor:samd"]

    def test_apply_installed_overwrites_existing(self, merger, tmp_path):
        merger.add_index_document(index_document("AVR", "1.8.3", ["Uno"]))
        merger.apply_installed(
            [Platform("vendor", "avr", version="1.8.2", root_board_path=tmp_path, default_platform=True)]
        )

        plat = merger.get("vendor", "avr")
        assert plat.installed_version == "1.8.2"
        assert plat.root_board_path == tmp_path
        assert plat.default_platform is True
        assert plat.boards == [{"name": "Uno"}]
        assert merger.installed_platforms == [plat]

    def test_apply_installed_synthesizes_record(self, merger, tmp_path):
        merger.apply_installed([Platform("custom", "esp", version="0.1.0", root_board_path=tmp_path)])

        plat = merger.get("custom", "esp")
        assert plat.installed_version == "0.1.0"
        assert plat.is_installed
        assert plat.versions == []

    def test_add_index_file_invalid_json_is_skipped(self, merger, tmp_path, caplog):
        path = tmp_path / "package_index.json"
        path.write_text("{broken")

        assert merger.add_index_file(path) == 0
        assert merger.platforms == []
        assert "Invalid json file" in caplog.text

    def test_add_index_file_missing_or_empty(self, merger, tmp_path):
        assert merger.add_index_file(tmp_path / "missing.json") == 0
        (tmp_path / "empty.json").write_text("  ")
        assert merger.add_index_file(tmp_path / "empty.json") == 0

    def test_add_index_files_with_additional_urls(self, merger, tmp_path):
        (tmp_path / "package_index.json").write_text(json.dumps(index_document("AVR", "1.8.3", ["Uno"])))
        (tmp_path / "package_esp32_index.json").write_text(
            json.dumps(index_document("ESP32", "2.0.0", ["ESP32 Dev"], package="esp32", architecture="esp32"))
        )

        merged = merger.add_index_files(
            tmp_path,
            ["https://example.com/releases/package_esp32_index.json", "https://example.com/missing.json"],
        )

        assert merged == 2
        assert merger.get("esp32", "esp32").boards == [{"name": "ESP32 Dev"}]
        assert len(merger.packages) == 2


class TestIndexFileName:
    """Test suite for index_file_name."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://example.com/boards/package_esp32_index.json", "package_esp32_index.json"),
            ("https://example.com/package_x_index.json?token=1", "package_x_index.json"),
            ("package_index.json", "package_index.json"),
            ("https://example.com/", None),
            ("", None),
        ],
    )
    def test_names(self, url, expected):
        assert index_file_name(url) == expected

    def test_used_as_path(self, tmp_path):
        assert Path(tmp_path / index_file_name("https://x.org/a/b.json")).name == "b.json"
