"""
Board configuration model.

This module provides the Board entity parsed from boards.txt together with its
menu-based configuration items (clock speed, CPU variant, upload method...),
and the operations to serialize, load, update and reset that configuration.

Example boards.txt menu entries:
    menu.cpu=Processor
    nano.menu.cpu.atmega328=ATmega328P
    nano.menu.cpu.atmega328old=ATmega328P (Old Bootloader)

Usage:
    board = boards["nano"]
    board.build_config_string()     # "arduino:avr:nano:cpu=atmega328"
    board.update_config("cpu", "atmega328old")
    board.load_config("cpu=atmega328")
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .platform import Platform

BoardKey = Tuple[str, str, str]

_KEY_VALUE_RE = re.compile(r"(\S+)=(\S+)")


class BoardConfigResult(Enum):
    """Outcome of a configuration mutation."""

    SUCCESS = "success"
    SUCCESS_NO_CHANGE = "success_no_change"
    INVALID_FORMAT = "invalid_format"
    INVALID_CONFIG_ID = "invalid_config_id"
    INVALID_OPTION_ID = "invalid_option_id"

    @property
    def ok(self) -> bool:
        """True for SUCCESS and SUCCESS_NO_CHANGE."""
        return self in (BoardConfigResult.SUCCESS, BoardConfigResult.SUCCESS_NO_CHANGE)


@dataclass
class Option:
    """A selectable value of a configuration menu."""

    id: str
    display_name: str


@dataclass
class ConfigItem:
    """A per-board menu of mutually exclusive build options.

    The first option ever added is the default and becomes the initial
    selection, so an item is never without a valid selection.
    """

    id: str
    display_name: Optional[str]
    options: List[Option] = field(default_factory=list)
    selected_option: Optional[str] = None

    @property
    def default_option(self) -> str:
        return self.options[0].id

    def find_option(self, option_id: str) -> Optional[Option]:
        for option in self.options:
            if option.id == option_id:
                return option
        return None

    def add_option(self, option_id: str, display_name: str) -> None:
        if self.find_option(option_id) is None:
            self.options.append(Option(option_id, display_name))
        if self.selected_option is None:
            self.selected_option = option_id


class Board:
    """
    A hardware target declared in a platform's boards.txt.

    Attributes:
        board_id: Identifier inside boards.txt (e.g., "uno")
        name: Human-readable name from the ``<id>.name`` line
        platform: Owning platform (back-reference)
        config_items: Configuration menus in declaration order
    """

    def __init__(self, board_id: str, platform: Platform, name: Optional[str] = None):
        self.board_id = board_id
        self.platform = platform
        self.name = name if name is not None else board_id
        self.config_items: List[ConfigItem] = []

    @property
    def package_name(self) -> str:
        return self.platform.package_name

    @property
    def architecture(self) -> str:
        return self.platform.architecture

    @property
    def key(self) -> str:
        """Board key in the form ``package:architecture:board_id``."""
        return f"{self.package_name}:{self.architecture}:{self.board_id}"

    @property
    def identity(self) -> BoardKey:
        return (self.package_name, self.architecture, self.board_id)

    def find_config_item(self, config_id: str) -> Optional[ConfigItem]:
        for item in self.config_items:
            if item.id == config_id:
                return item
        return None

    def custom_config_string(self) -> Optional[str]:
        """
        Serialize the current selections.

        Returns:
            ``id=option`` pairs joined by commas in declaration order, or None
            when the board has no configuration menus
        """
        if not self.config_items:
            return None
        return ",".join(f"{item.id}={item.selected_option}" for item in self.config_items)

    def build_config_string(self) -> str:
        """
        Get the fully qualified board name passed to the toolchain.

        Returns:
            ``package:arch:board_id`` with ``:<custom config>`` appended when
            the board has configuration menus

        Example:
            "arduino:avr:uno"
            "arduino:avr:nano:cpu=atmega328"
        """
        custom = self.custom_config_string()
        if custom:
            return f"{self.key}:{custom}"
        return self.key

    def load_config(self, config_string: Optional[str]) -> BoardConfigResult:
        """
        Apply a configuration string such as ``cpu=atmega328,speed=16``.

        An empty or missing string resets all menus to their defaults.
        Segments are applied one after the other; a malformed or invalid
        segment stops the scan but leaves earlier segments applied.

        Args:
            config_string: Comma separated ``key=value`` pairs

        Returns:
            SUCCESS if anything changed, SUCCESS_NO_CHANGE if every segment
            matched the current selection, otherwise the first error found
        """
        if not config_string:
            self.reset_config()
            return BoardConfigResult.SUCCESS

        changed = False
        for section in config_string.split(","):
            match = _KEY_VALUE_RE.search(section)
            if not match:
                return BoardConfigResult.INVALID_FORMAT

            result = self.update_config(match.group(1), match.group(2))
            if result is BoardConfigResult.SUCCESS:
                changed = True
            elif result is not BoardConfigResult.SUCCESS_NO_CHANGE:
                return result

        return BoardConfigResult.SUCCESS if changed else BoardConfigResult.SUCCESS_NO_CHANGE

    def update_config(self, config_id: str, option_id: str) -> BoardConfigResult:
        """
        Select one option of one configuration menu.

        Args:
            config_id: Menu identifier (e.g., "cpu")
            option_id: Option identifier within the menu (e.g., "atmega328")

        Returns:
            INVALID_CONFIG_ID or INVALID_OPTION_ID without mutating anything,
            SUCCESS_NO_CHANGE if already selected, SUCCESS otherwise
        """
        item = self.find_config_item(config_id)
        if item is None:
            return BoardConfigResult.INVALID_CONFIG_ID

        if item.find_option(option_id) is None:
            return BoardConfigResult.INVALID_OPTION_ID

        if item.selected_option == option_id:
            return BoardConfigResult.SUCCESS_NO_CHANGE

        item.selected_option = option_id
        return BoardConfigResult.SUCCESS

    def reset_config(self) -> None:
        """Select the first option of every configuration menu."""
        for item in self.config_items:
            item.selected_option = item.default_option

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        return f"Board(key='{self.key}', name='{self.name}', config_items={len(self.config_items)})"


class Programmer:
    """An alternate upload tool declared in a platform's programmers.txt."""

    def __init__(self, programmer_id: str, platform: Platform, name: Optional[str] = None):
        self.programmer_id = programmer_id
        self.platform = platform
        self.name = name if name is not None else programmer_id

    @property
    def key(self) -> str:
        """Programmer key in the form ``package:programmer_id``."""
        return f"{self.platform.package_name}:{self.programmer_id}"

    def __repr__(self) -> str:
        return f"Programmer(key='{self.key}', name='{self.name}')"


def board_equal(a: Optional[Board], b: Optional[Board]) -> bool:
    """Two boards are equal if both are None or both have the same key."""
    if a is not None and b is not None:
        return a.key == b.key
    return a is None and b is None
