"""
Package index merging.

Package index documents (package_index.json and the documents of additional
board manager URLs) list every available version of every platform:

    {
        "packages": [{
            "name": "arduino",
            "platforms": [{
                "name": "Arduino AVR Boards",
                "architecture": "avr",
                "version": "1.8.3",
                "boards": [{"name": "Arduino Uno"}, ...]
            }]
        }]
    }

The merger folds all documents and all installed sources into one Platform
per (package, architecture).
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

from ..config.platform import Platform, PlatformKey
from ..config.version import version_key

logger = logging.getLogger(__name__)

MAIN_INDEX_FILE = "package_index.json"


class PackageIndexError(Exception):
    """Exception raised for unreadable package index documents."""

    pass


def index_file_name(url: str) -> Optional[str]:
    """
    Get the local file name of a package index URL.

    Example:
        "https://example.com/boards/package_esp32_index.json"
        -> "package_esp32_index.json"
    """
    if not url:
        return None
    path = urlparse(url).path or url
    name = path.rsplit("/", 1)[-1]
    return name or None


class PlatformIndexMerger:
    """
    Merges platform records from index documents and installed sources.

    Usage:
        merger = PlatformIndexMerger()
        merger.add_index_file(package_path / "package_index.json")
        merger.apply_installed(get_installed_platforms(...))
        platforms = merger.platforms
    """

    def __init__(self) -> None:
        self._platforms: Dict[PlatformKey, Platform] = {}
        self.packages: List[Dict[str, Any]] = []

    @property
    def platforms(self) -> List[Platform]:
        return list(self._platforms.values())

    def get(self, package_name: str, architecture: str) -> Optional[Platform]:
        return self._platforms.get((package_name, architecture))

    def add_index_document(self, document: Dict[str, Any]) -> int:
        """
        Merge one parsed index document.

        Every platform entry adds its version to the record's version list,
        which stays sorted ascending. The record's boards are taken from the
        highest version only; boards are never unioned across versions.

        Args:
            document: Parsed JSON index document

        Returns:
            Number of platform entries merged
        """
        packages = (document or {}).get("packages") or []
        self.packages.extend(packages)

        merged = 0
        for pkg in packages:
            for plat in pkg.get("platforms") or []:
                self._merge_index_entry(pkg.get("name", ""), plat)
                merged += 1
        return merged

    def _merge_index_entry(self, package_name: str, entry: Dict[str, Any]) -> None:
        key = (package_name, entry.get("architecture", ""))
        version = str(entry.get("version", ""))
        boards = list(entry.get("boards") or [])

        existing = self._platforms.get(key)
        if existing is None:
            self._platforms[key] = Platform(
                package_name=key[0],
                architecture=key[1],
                name=entry.get("name"),
                versions=[version],
                boards=boards,
            )
            return

        # The display name follows the document read last
        if entry.get("name") and existing.name != entry["name"]:
            existing.name = entry["name"]

        if version not in existing.versions:
            existing.versions.append(version)
            existing.versions.sort(key=version_key)
        if version == existing.versions[-1]:
            existing.boards = boards

    def add_index_file(self, path: Path) -> int:
        """
        Merge an index document from disk.

        Missing or empty files merge nothing. Invalid JSON is logged and
        skipped so that one broken document doesn't hide all others.

        Returns:
            Number of platform entries merged

        Raises:
            PackageIndexError: If the file exists but cannot be read
        """
        path = Path(path)
        if not path.is_file():
            return 0

        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise PackageIndexError(f"Failed to read {path}: {e}") from e

        if not content.strip():
            return 0

        try:
            document = json.loads(content)
        except ValueError:
            logger.error(
                f'Invalid json file "{path}". '
                + "Suggest to remove it manually and allow it to be re-downloaded."
            )
            return 0

        if not isinstance(document, dict):
            logger.error(f'Invalid package index "{path}": expected a JSON object')
            return 0

        merged = self.add_index_document(document)
        logger.debug(f"Merged {merged} platform entries from {path}")
        return merged

    def add_index_files(self, package_path: Path, additional_urls: Iterable[str] = ()) -> int:
        """Merge package_index.json and one document per additional URL."""
        total = 0
        for url in [MAIN_INDEX_FILE, *additional_urls]:
            name = index_file_name(url)
            if name:
                total += self.add_index_file(Path(package_path) / name)
        return total

    def apply_installed(self, installed: Iterable[Platform]) -> None:
        """
        Merge installed platforms.

        An existing record takes over the installed version, board path and
        default flag; otherwise the installed platform becomes a record of
        its own.
        """
        for plat in installed:
            existing = self._platforms.get(plat.key)
            if existing is not None:
                existing.installed_version = plat.version
                existing.root_board_path = plat.root_board_path
                existing.default_platform = plat.default_platform
            else:
                plat.installed_version = plat.version
                self._platforms[plat.key] = plat

    @property
    def installed_platforms(self) -> List[Platform]:
        return [plat for plat in self._platforms.values() if plat.root_board_path is not None]
