"""Installed platform discovery.

Installed platforms come from three places, listed from lowest to highest
precedence:

1. Bundled platforms shipped with the toolchain installation
   (``<default_package_path>/package_index_bundled.json``)
2. Custom hardware in the user's sketchbook
   (``<sketchbook>/hardware/<package>/<arch>`` with boards.txt and platform.txt)
3. Manually installed packages
   (``<package_path>/packages/<package>/hardware/<arch>/<version>``)
"""

import json
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

from ..config.descriptor import BOARDS_FILE, parse_config_file
from ..config.platform import Platform, PlatformKey
from ..config.version import version_key

logger = logging.getLogger(__name__)

BUNDLED_INDEX_FILE = "package_index_bundled.json"
PLATFORM_FILE = "platform.txt"

# File manager droppings that are never packages or architectures
_JUNK_RE = re.compile(
    r"^(?:\.DS_Store|\.AppleDouble|\.LSOverride|\._.*|\.Spotlight-V100|\.Trashes"
    r"|__MACOSX|Thumbs\.db|ehthumbs\.db|[Dd]esktop\.ini|npm-debug\.log|.*~|\..*\.swp|@eaDir)$"
)


def is_junk(name: str) -> bool:
    return bool(_JUNK_RE.match(name))


def list_entries(directory: Path, directories_only: bool = True) -> List[str]:
    """
    List entry names of a directory, junk filtered, sorted.

    Returns:
        Entry names; empty if the directory doesn't exist
    """
    if not directory.is_dir():
        return []
    names = []
    for entry in directory.iterdir():
        if is_junk(entry.name):
            continue
        if directories_only and not entry.is_dir():
            continue
        names.append(entry.name)
    return sorted(names)


def get_default_platforms(default_package_path: Optional[Path]) -> List[Platform]:
    """
    Read the platforms bundled with the toolchain installation.

    Args:
        default_package_path: Hardware folder of the toolchain installation

    Returns:
        Platforms with default_platform set; empty when nothing is bundled
    """
    if default_package_path is None:
        return []

    bundled_path = Path(default_package_path) / BUNDLED_INDEX_FILE
    if not bundled_path.is_file():
        return []

    try:
        bundled = json.loads(bundled_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable bundled index {bundled_path}: {e}")
        return []

    platforms = []
    for pkg in (bundled or {}).get("packages", None) or []:
        for plat in pkg.get("platforms", None) or []:
            if not plat.get("version"):
                continue
            platforms.append(
                Platform(
                    package_name=pkg["name"],
                    architecture=plat["architecture"],
                    version=plat["version"],
                    root_board_path=Path(default_package_path) / pkg["name"] / plat["architecture"],
                    default_platform=True,
                )
            )
    return platforms


def get_custom_platforms(sketchbook_path: Optional[Path]) -> List[Platform]:
    """
    Scan ``<sketchbook>/hardware`` for custom platforms.

    A folder counts as a platform when it holds both boards.txt and
    platform.txt; the version comes from platform.txt.
    """
    if sketchbook_path is None:
        return []

    hardware = Path(sketchbook_path) / "hardware"
    platforms = []
    for package_name in list_entries(hardware):
        for architecture in list_entries(hardware / package_name):
            folder = hardware / package_name / architecture
            if not (folder / BOARDS_FILE).is_file() or not (folder / PLATFORM_FILE).is_file():
                continue
            configs = parse_config_file(folder / PLATFORM_FILE)
            platforms.append(
                Platform(
                    package_name=package_name,
                    architecture=architecture,
                    version=configs.get("version", ""),
                    root_board_path=folder,
                    default_platform=False,
                )
            )
    return platforms


def get_manually_installed_platforms(package_path: Optional[Path]) -> List[Platform]:
    """
    Scan ``<package_path>/packages`` for installed platform versions.

    When several versions of one architecture are present the highest one is
    used.
    """
    if package_path is None:
        return []

    root = Path(package_path) / "packages"
    platforms = []
    for package_name in list_entries(root):
        hardware = root / package_name / "hardware"
        for architecture in list_entries(hardware):
            versions = sorted(list_entries(hardware / architecture), key=version_key)
            if not versions:
                continue
            version = versions[-1]
            platforms.append(
                Platform(
                    package_name=package_name,
                    architecture=architecture,
                    version=version,
                    root_board_path=hardware / architecture / version,
                    default_platform=False,
                )
            )
    return platforms


def get_installed_platforms(
    default_package_path: Optional[Path],
    sketchbook_path: Optional[Path],
    package_path: Optional[Path],
) -> List[Platform]:
    """
    Collect installed platforms from all sources.

    Later sources override earlier ones for the same (package, architecture):
    manually installed over custom hardware over bundled.

    Returns:
        One Platform per key in first-seen order
    """
    installed: Dict[PlatformKey, Platform] = {}

    sources = (
        get_default_platforms(default_package_path),
        get_custom_platforms(sketchbook_path),
        get_manually_installed_platforms(package_path),
    )
    for source in sources:
        for plat in source:
            existing = installed.get(plat.key)
            if existing is None:
                installed[plat.key] = plat
            else:
                existing.default_platform = plat.default_platform
                existing.version = plat.version
                existing.root_board_path = plat.root_board_path

    return list(installed.values())
