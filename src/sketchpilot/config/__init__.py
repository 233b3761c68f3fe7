"""Configuration modules for sketchpilot."""

from .board import Board, BoardConfigResult, ConfigItem, Option, Programmer, board_equal
from .descriptor import (
    DescriptorError,
    parse_board_descriptor,
    parse_config_file,
    parse_programmer_descriptor,
)
from .platform import Platform
from .project_settings import ProjectSettings, ProjectSettingsError
from .tool_settings import ToolSettings, ToolSettingsError
from .version import sort_versions, version_compare

__all__ = [
    "Board",
    "BoardConfigResult",
    "ConfigItem",
    "Option",
    "Programmer",
    "board_equal",
    "DescriptorError",
    "parse_board_descriptor",
    "parse_config_file",
    "parse_programmer_descriptor",
    "Platform",
    "ProjectSettings",
    "ProjectSettingsError",
    "ToolSettings",
    "ToolSettingsError",
    "sort_versions",
    "version_compare",
]
