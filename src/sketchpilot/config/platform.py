"""Platform records.

A platform is the (package, architecture) pairing that supplies boards and
programmers, e.g. ``arduino:avr``. Records are built by the package index
merger from several sources and carry both index data (available versions,
advertised boards) and installed data (installed version, board path).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

if TYPE_CHECKING:
    from .board import Board, Programmer


PlatformKey = Tuple[str, str]


@dataclass
class Platform:
    """A (package, architecture) platform.

    Attributes:
        package_name: Package vendor name (e.g., "arduino")
        architecture: Architecture name (e.g., "avr")
        version: Version reported by an installed source ("" for index records)
        name: Display name from the package index (e.g., "Arduino AVR Boards")
        installed_version: Installed version, None if not installed
        root_board_path: Folder holding boards.txt/programmers.txt when installed
        default_platform: True when bundled with the toolchain installation
        versions: Versions offered by index documents, ascending
        boards: Boards advertised by the highest indexed version
        installed_boards: Boards parsed from root_board_path/boards.txt
        installed_programmers: Programmers parsed from root_board_path/programmers.txt
    """

    package_name: str
    architecture: str
    version: str = ""
    name: Optional[str] = None
    installed_version: Optional[str] = None
    root_board_path: Optional[Path] = None
    default_platform: bool = False
    versions: List[str] = field(default_factory=list)
    boards: List[Dict[str, Any]] = field(default_factory=list)
    installed_boards: Dict[str, "Board"] = field(default_factory=dict, repr=False)
    installed_programmers: Dict[str, "Programmer"] = field(default_factory=dict, repr=False)

    @property
    def key(self) -> PlatformKey:
        """Merge key (package_name, architecture)."""
        return (self.package_name, self.architecture)

    @property
    def is_installed(self) -> bool:
        return self.installed_version is not None

    @property
    def latest_version(self) -> Optional[str]:
        return self.versions[-1] if self.versions else None

    def __str__(self) -> str:
        return f"{self.package_name}:{self.architecture}"
