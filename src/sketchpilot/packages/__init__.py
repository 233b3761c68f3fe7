"""Package management for sketchpilot.

This module merges package index documents and installed hardware folders
into one platform set, and tracks the board and programmer selected for the
project.
"""

from .board_manager import BoardManager, ProgrammerManager
from .context import DuplicateBoardError, WorkspaceContext
from .index_merger import PackageIndexError, PlatformIndexMerger
from .installed import get_installed_platforms

__all__ = [
    "BoardManager",
    "ProgrammerManager",
    "DuplicateBoardError",
    "WorkspaceContext",
    "PackageIndexError",
    "PlatformIndexMerger",
    "get_installed_platforms",
]
