"""
Unit tests for the boards.txt / programmers.txt parser.
"""

import pytest

from sketchpilot.config.descriptor import (
    BoardName,
    BoardParam,
    MenuLabel,
    MenuOption,
    load_boards,
    load_programmers,
    parse_board_descriptor,
    parse_config_file,
    parse_programmer_descriptor,
    tokenize_board_descriptor,
)
from sketchpilot.config.platform import Platform


@pytest.fixture
def platform():
    return Platform(package_name="arduino", architecture="avr")


NANO_BOARDS_TXT = """
# Arduino Nano
menu.cpu=Processor

nano.name=Arduino Nano
nano.upload.tool=avrdude
nano.build.extra_flags=-DFOO=1 -DBAR

nano.menu.cpu.atmega328=ATmega328P
nano.menu.cpu.atmega328.upload.speed=115200
nano.menu.cpu.atmega328old=ATmega328P (Old Bootloader)
nano.menu.cpu.atmega328old.upload.speed=57600
nano.menu.cpu.atmega168=ATmega168

uno.name=Arduino Uno
uno.build.mcu=atmega328p
"""


class TestTokenizer:
    """Test suite for the first parser pass."""

    def test_token_kinds(self):
        tokens = list(
            tokenize_board_descriptor(
                "menu.cpu=Processor\n"
                "uno.name= Arduino Uno \n"
                "uno.build.mcu=atmega328p\n"
                "nano.menu.cpu.atmega328=ATmega328P\n"
            )
        )

        assert tokens == [
            MenuLabel(menu_id="cpu", label="Processor"),
            BoardName(board_id="uno", name="Arduino Uno"),
            BoardParam(board_id="uno", key="build.mcu", value="atmega328p"),
            MenuOption(board_id="nano", menu_id="cpu", option_id="atmega328", display_name="ATmega328P"),
        ]

    def test_comments_and_garbage_are_skipped(self):
        tokens = list(tokenize_board_descriptor("# uno.name=Commented\nnot a descriptor line\n\n=oops\n"))
        assert tokens == []

    def test_value_containing_equals_sign(self):
        tokens = list(tokenize_board_descriptor("nano.build.extra_flags=-DFOO=1\n"))
        assert tokens == [BoardParam(board_id="nano", key="build.extra_flags", value="-DFOO=1")]

    def test_menu_option_with_extra_key(self):
        tokens = list(tokenize_board_descriptor("nano.menu.cpu.atmega328.upload.speed=115200"))
        assert tokens == [
            MenuOption(board_id="nano", menu_id="cpu", option_id="atmega328", display_name="115200")
        ]


class TestBoardDescriptor:
    """Test suite for parse_board_descriptor."""

    def test_board_without_menus(self, platform):
        boards = parse_board_descriptor("uno.name=Arduino Uno\nuno.build.mcu=atmega328p", platform)

        assert list(boards) == ["uno"]
        uno = boards["uno"]
        assert uno.name == "Arduino Uno"
        assert uno.config_items == []
        assert uno.build_config_string() == "arduino:avr:uno"

    def test_menu_options_and_defaults(self, platform):
        boards = parse_board_descriptor(NANO_BOARDS_TXT, platform)

        assert list(boards) == ["nano", "uno"]
        nano = boards["nano"]
        assert len(nano.config_items) == 1

        cpu = nano.config_items[0]
        assert cpu.id == "cpu"
        assert cpu.display_name == "Processor"
        assert [o.id for o in cpu.options] == ["atmega328", "atmega328old", "atmega168"]
        assert cpu.options[1].display_name == "ATmega328P (Old Bootloader)"
        assert cpu.selected_option == "atmega328"
        assert nano.build_config_string() == "arduino:avr:nano:cpu=atmega328"

    def test_menu_labels_after_board_lines(self, platform):
        text = "nano.menu.speed.16=16 MHz\nnano.menu.speed.8=8 MHz\nmenu.speed=Clock"
        nano = parse_board_descriptor(text, platform)["nano"]
        assert nano.config_items[0].display_name == "Clock"

    def test_menu_without_label(self, platform):
        nano = parse_board_descriptor("nano.menu.speed.16=16 MHz", platform)["nano"]
        assert nano.config_items[0].display_name is None

    def test_board_without_name_line(self, platform):
        boards = parse_board_descriptor("mini.build.mcu=atmega328p", platform)
        assert boards["mini"].name == "mini"

    def test_config_items_keep_declaration_order(self, platform):
        text = "b.menu.speed.16=16\nb.menu.cpu.a=A\nb.menu.speed.8=8\nb.menu.cpu.b=B\n"
        board = parse_board_descriptor(text, platform)["b"]
        assert [item.id for item in board.config_items] == ["speed", "cpu"]
        assert board.custom_config_string() == "speed=16,cpu=a"

    @pytest.mark.parametrize("separator", ["\n", "\r\n", "\r"])
    def test_line_separators(self, platform, separator):
        text = separator.join(["uno.name=Arduino Uno", "uno.menu.cpu.a=A", "uno.menu.cpu.b=B"])
        uno = parse_board_descriptor(text, platform)["uno"]
        assert uno.name == "Arduino Uno"
        assert [o.id for o in uno.config_items[0].options] == ["a", "b"]

    def test_boards_reference_platform(self, platform):
        boards = parse_board_descriptor(NANO_BOARDS_TXT, platform)
        assert all(board.platform is platform for board in boards.values())


class TestProgrammerDescriptor:
    """Test suite for parse_programmer_descriptor."""

    def test_named_programmers(self, platform):
        text = "avrisp.name=AVR ISP\navrisp.communication=serial\n# usbasp.name=Hidden\nusbasp.name=USBasp\n"
        programmers = parse_programmer_descriptor(text, platform)

        assert list(programmers) == ["avrisp", "usbasp"]
        assert programmers["avrisp"].name == "AVR ISP"
        assert programmers["avrisp"].key == "arduino:avrisp"

    def test_programmer_without_name_is_ignored(self, platform):
        assert parse_programmer_descriptor("jtag.protocol=jtag", platform) == {}


class TestDescriptorFiles:
    """Test suite for file loading helpers."""

    def test_load_boards_and_programmers(self, tmp_path, platform):
        (tmp_path / "boards.txt").write_text(NANO_BOARDS_TXT)
        (tmp_path / "programmers.txt").write_text("avrisp.name=AVR ISP\n")

        assert list(load_boards(tmp_path, platform)) == ["nano", "uno"]
        assert list(load_programmers(tmp_path, platform)) == ["avrisp"]

    def test_missing_files(self, tmp_path, platform):
        assert load_boards(tmp_path, platform) == {}
        assert load_programmers(tmp_path, platform) == {}

    def test_parse_config_file(self, tmp_path):
        path = tmp_path / "platform.txt"
        path.write_text("# comment\nname=Custom AVR\nversion = 1.2.3\ncompiler.flags=-Os -DX=1\n\n")

        configs = parse_config_file(path)
        assert configs == {"name": "Custom AVR", "version": "1.2.3", "compiler.flags": "-Os -DX=1"}

    def test_parse_config_file_missing(self, tmp_path):
        assert parse_config_file(tmp_path / "platform.txt") == {}
