"""
sketchpilot.ini configuration parser.

This module reads the tool-level settings: which toolchain front-end to run,
where its packages live and how verbose the build output should be.

Example sketchpilot.ini:
    [toolchain]
    command_path = /opt/arduino-cli/arduino-cli
    use_arduino_cli = yes
    log_level = info
    package_path = ~/.arduino15
    sketchbook_path = ~/Arduino
    additional_urls =
        https://downloads.arduino.cc/packages/package_index_teensy.json
        https://espressif.github.io/arduino-esp32/package_esp32_index.json
"""

import configparser
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

SETTINGS_FILE_NAME = "sketchpilot.ini"
SECTION = "toolchain"

LOG_LEVEL_INFO = "info"
LOG_LEVEL_VERBOSE = "verbose"
LOG_LEVELS = {LOG_LEVEL_INFO, LOG_LEVEL_VERBOSE}


class ToolSettingsError(Exception):
    """Exception raised for sketchpilot.ini configuration errors."""

    pass


def default_package_path() -> Path:
    """Default location of the toolchain's package data (arduino15 folder)."""
    if sys.platform == "win32":
        return Path(os.environ.get("LOCALAPPDATA", Path.home())) / "Arduino15"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Arduino15"
    return Path.home() / ".arduino15"


def default_sketchbook_path() -> Path:
    if sys.platform == "win32" or sys.platform == "darwin":
        return Path.home() / "Documents" / "Arduino"
    return Path.home() / "Arduino"


@dataclass
class ToolSettings:
    """
    Tool-level settings.

    Attributes:
        command_path: Toolchain executable (arduino-cli or the legacy IDE binary)
        use_arduino_cli: True if command_path is arduino-cli
        log_level: "info" or "verbose"
        clear_output_on_build: Clear the output channel before each build
        package_path: Folder holding package_index*.json and packages/
        default_package_path: Folder holding the toolchain's bundled hardware
        sketchbook_path: User sketchbook (custom hardware lives in hardware/)
        additional_urls: Extra package index URLs
    """

    command_path: str = "arduino-cli"
    use_arduino_cli: bool = True
    log_level: str = LOG_LEVEL_INFO
    clear_output_on_build: bool = False
    package_path: Path = field(default_factory=default_package_path)
    default_package_path: Optional[Path] = None
    sketchbook_path: Path = field(default_factory=default_sketchbook_path)
    additional_urls: List[str] = field(default_factory=list)

    @property
    def verbose(self) -> bool:
        return self.log_level == LOG_LEVEL_VERBOSE

    @classmethod
    def from_file(cls, ini_path: Path) -> "ToolSettings":
        """
        Load settings from an INI file.

        Args:
            ini_path: Path to sketchpilot.ini

        Returns:
            ToolSettings with defaults for every missing key

        Raises:
            ToolSettingsError: If the file doesn't exist or cannot be parsed
        """
        if not ini_path.exists():
            raise ToolSettingsError(f"Configuration file not found: {ini_path}")

        config = configparser.ConfigParser(interpolation=configparser.ExtendedInterpolation())
        try:
            config.read(ini_path, encoding="utf-8")
        except configparser.Error as e:
            raise ToolSettingsError(f"Failed to parse {ini_path}: {e}") from e

        settings = cls()
        if SECTION not in config:
            return settings

        section = config[SECTION]
        try:
            settings.command_path = section.get("command_path", settings.command_path).strip()
            settings.use_arduino_cli = section.getboolean("use_arduino_cli", settings.use_arduino_cli)
            settings.clear_output_on_build = section.getboolean(
                "clear_output_on_build", settings.clear_output_on_build
            )
            log_level = section.get("log_level", settings.log_level).strip().lower()
            paths = {key: section.get(key) for key in ("package_path", "default_package_path", "sketchbook_path")}
            additional_urls = section.get("additional_urls", "")
        except (ValueError, configparser.Error) as e:
            raise ToolSettingsError(f"Invalid value in {ini_path}: {e}") from e

        if log_level not in LOG_LEVELS:
            raise ToolSettingsError(
                f"Invalid log_level '{log_level}' in {ini_path}. "
                + f"Expected one of: {', '.join(sorted(LOG_LEVELS))}"
            )
        settings.log_level = log_level

        for key, value in paths.items():
            if value and value.strip():
                setattr(settings, key, Path(value.strip()).expanduser())

        # Split on newlines and commas, strip whitespace, filter empty
        urls = []
        for line in additional_urls.split("\n"):
            for url in line.split(","):
                url = url.strip()
                if url:
                    urls.append(url)
        settings.additional_urls = urls

        return settings

    @classmethod
    def discover(cls, project_dir: Optional[Path] = None, ini_path: Optional[Path] = None) -> "ToolSettings":
        """
        Find and load settings.

        Lookup order: explicit ini_path, <project_dir>/sketchpilot.ini,
        ~/.sketchpilot/sketchpilot.ini, built-in defaults.
        """
        if ini_path is not None:
            return cls.from_file(Path(ini_path))

        candidates = []
        if project_dir is not None:
            candidates.append(Path(project_dir) / SETTINGS_FILE_NAME)
        candidates.append(Path.home() / ".sketchpilot" / SETTINGS_FILE_NAME)

        for candidate in candidates:
            if candidate.exists():
                return cls.from_file(candidate)
        return cls()
