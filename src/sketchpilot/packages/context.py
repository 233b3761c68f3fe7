"""Workspace session context.

The context owns the platform, board and programmer registries of one
workspace session. Registries are rebuilt as a whole by ``load_packages``;
nothing patches them incrementally.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from ..config.board import Board, Programmer
from ..config.descriptor import load_boards, load_programmers
from ..config.platform import Platform
from ..config.tool_settings import ToolSettings
from .index_merger import PlatformIndexMerger
from .installed import get_installed_platforms

logger = logging.getLogger(__name__)


class DuplicateBoardError(Exception):
    """Raised when two different boards share one board key."""

    pass


class WorkspaceContext:
    """
    Registries for one workspace session.

    Example:
        context = WorkspaceContext(ToolSettings.discover(project_dir), project_dir)
        context.load_packages()
        board = context.boards["arduino:avr:uno"]
    """

    def __init__(self, settings: ToolSettings, project_dir: Optional[Path] = None):
        self.settings = settings
        self.project_dir = Path(project_dir).resolve() if project_dir is not None else None
        self.platforms: List[Platform] = []
        self.boards: Dict[str, Board] = {}
        self.programmers: Dict[str, Programmer] = {}
        self.packages: List[dict] = []

    @property
    def installed_platforms(self) -> List[Platform]:
        return [plat for plat in self.platforms if plat.root_board_path is not None]

    def load_packages(self) -> None:
        """
        Rebuild all registries from the index documents and installed sources.

        Raises:
            PackageIndexError: If an index file exists but cannot be read
            DuplicateBoardError: If two different boards share a key
        """
        merger = PlatformIndexMerger()
        merger.add_index_files(self.settings.package_path, self.settings.additional_urls)
        merger.apply_installed(
            get_installed_platforms(
                self.settings.default_package_path,
                self.settings.sketchbook_path,
                self.settings.package_path,
            )
        )

        boards: Dict[str, Board] = {}
        programmers: Dict[str, Programmer] = {}
        for plat in merger.installed_platforms:
            plat.installed_boards = load_boards(plat.root_board_path, plat)
            plat.installed_programmers = load_programmers(plat.root_board_path, plat)

            for board in plat.installed_boards.values():
                existing = boards.get(board.key)
                if existing is not None and existing is not board:
                    raise DuplicateBoardError(f"Board '{board.key}' is declared more than once")
                boards[board.key] = board

            for programmer in plat.installed_programmers.values():
                programmers[programmer.key] = programmer

        self.platforms = merger.platforms
        self.packages = merger.packages
        self.boards = boards
        self.programmers = programmers

        logger.info(
            f"Loaded {len(self.platforms)} platforms, {len(self.boards)} boards, "
            + f"{len(self.programmers)} programmers"
        )

    def list_boards(self) -> List[Board]:
        return list(self.boards.values())

    def get_platform(self, package_name: str, architecture: str) -> Optional[Platform]:
        for plat in self.platforms:
            if plat.package_name == package_name and plat.architecture == architecture:
                return plat
        return None
