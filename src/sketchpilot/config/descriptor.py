"""
Hardware descriptor parsing (boards.txt, programmers.txt).

Parsing happens in two passes. ``tokenize_board_descriptor`` turns each
recognised line into a typed token:

    uno.name=Arduino Uno                    -> BoardName
    uno.build.mcu=atmega328p                -> BoardParam
    menu.cpu=Processor                      -> MenuLabel
    nano.menu.cpu.atmega328=ATmega328P      -> MenuOption

and ``build_boards`` assembles Board objects from the token stream.
Unrecognised lines are skipped; the parser never fails on content.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Union

from .board import Board, ConfigItem, Programmer
from .platform import Platform

_LINE_RE = re.compile(r"^([^.=]+)\.([^\s=]+)=(.+)$")
_MENU_OPTION_RE = re.compile(r"^menu\.([^.]+)\.([^.]+)(?:\.(\S+))?$")
_LINE_SPLIT_RE = re.compile(r"\r\n|\r|\n")

BOARDS_FILE = "boards.txt"
PROGRAMMERS_FILE = "programmers.txt"


class DescriptorError(Exception):
    """Exception raised when a descriptor file cannot be read."""

    pass


@dataclass(frozen=True)
class BoardName:
    board_id: str
    name: str


@dataclass(frozen=True)
class BoardParam:
    board_id: str
    key: str
    value: str


@dataclass(frozen=True)
class MenuLabel:
    menu_id: str
    label: str


@dataclass(frozen=True)
class MenuOption:
    board_id: str
    menu_id: str
    option_id: str
    display_name: str


Token = Union[BoardName, BoardParam, MenuLabel, MenuOption]


def split_lines(text: str) -> List[str]:
    return _LINE_SPLIT_RE.split(text)


def tokenize_board_descriptor(text: str) -> Iterator[Token]:
    """
    Tokenize boards.txt content.

    Args:
        text: Raw descriptor text

    Yields:
        One token per recognised line, in file order
    """
    for line in split_lines(text):
        if line.startswith("#"):
            continue

        match = _LINE_RE.match(line)
        if not match:
            continue

        head, key, value = match.group(1), match.group(2), match.group(3)

        if head == "menu":
            # menu.<menuId>=<label> (or menu.<menuId>.<label>=<value>)
            yield MenuLabel(menu_id=key.split(".", 1)[0], label=value.strip())
            continue

        if key == "name":
            yield BoardName(board_id=head, name=value.strip())
            continue

        option = _MENU_OPTION_RE.match(key)
        if option:
            yield MenuOption(
                board_id=head,
                menu_id=option.group(1),
                option_id=option.group(2),
                display_name=value,
            )
        else:
            yield BoardParam(board_id=head, key=key, value=value)


def build_boards(tokens: Iterable[Token], platform: Platform) -> Dict[str, Board]:
    """
    Assemble boards from a token stream.

    The first option seen for a menu becomes that menu's default selection.
    Menu labels may appear anywhere in the stream; they are applied once all
    tokens have been consumed.

    Args:
        tokens: Tokens from tokenize_board_descriptor
        platform: Platform owning the boards

    Returns:
        Mapping board_id -> Board in first-seen order
    """
    boards: Dict[str, Board] = {}
    labels: Dict[str, str] = {}

    for token in tokens:
        if isinstance(token, MenuLabel):
            labels[token.menu_id] = token.label
            continue

        board = boards.get(token.board_id)
        if board is None:
            board = Board(token.board_id, platform)
            boards[token.board_id] = board

        if isinstance(token, BoardName):
            board.name = token.name
        elif isinstance(token, MenuOption):
            item = board.find_config_item(token.menu_id)
            if item is None:
                item = ConfigItem(id=token.menu_id, display_name=None)
                board.config_items.append(item)
            item.add_option(token.option_id, token.display_name)
        # Other board parameters are not kept

    for board in boards.values():
        for item in board.config_items:
            item.display_name = labels.get(item.id)

    return boards


def parse_board_descriptor(text: str, platform: Platform) -> Dict[str, Board]:
    """Parse boards.txt content into boards owned by ``platform``."""
    return build_boards(tokenize_board_descriptor(text), platform)


def parse_programmer_descriptor(text: str, platform: Platform) -> Dict[str, Programmer]:
    """
    Parse programmers.txt content.

    Example programmers.txt entry:
        avrisp.name=AVR ISP
        avrisp.communication=serial

    Returns:
        Mapping programmer_id -> Programmer for every entry with a name
    """
    programmers: Dict[str, Programmer] = {}
    for line in split_lines(text):
        if line.startswith("#"):
            continue
        match = _LINE_RE.match(line)
        if match and match.group(2) == "name":
            programmer_id = match.group(1)
            programmers[programmer_id] = Programmer(programmer_id, platform, match.group(3).strip())
    return programmers


def _read_descriptor(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise DescriptorError(f"Failed to read {path}: {e}") from e


def load_boards(root_board_path: Path, platform: Platform) -> Dict[str, Board]:
    """Load boards.txt from a platform folder; empty if the file is absent."""
    path = Path(root_board_path) / BOARDS_FILE
    if not path.is_file():
        return {}
    return parse_board_descriptor(_read_descriptor(path), platform)


def load_programmers(root_board_path: Path, platform: Platform) -> Dict[str, Programmer]:
    """Load programmers.txt from a platform folder; empty if the file is absent."""
    path = Path(root_board_path) / PROGRAMMERS_FILE
    if not path.is_file():
        return {}
    return parse_programmer_descriptor(_read_descriptor(path), platform)


def parse_config_file(path: Path) -> Dict[str, str]:
    """
    Parse a flat ``key=value`` file such as platform.txt.

    Comment lines are skipped and both key and value are trimmed.
    A missing file yields an empty mapping.
    """
    result: Dict[str, str] = {}
    path = Path(path)
    if not path.is_file():
        return result

    for line in split_lines(_read_descriptor(path)):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        separator = line.find("=")
        if separator > 0:
            result[line[:separator].strip()] = line[separator + 1 :].strip()
    return result
