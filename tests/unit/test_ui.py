"""Unit tests for the console user interface."""

import asyncio
from pathlib import Path

from sketchpilot.config.project_settings import ProjectSettings
from sketchpilot.ui import ConsoleUserInterface, find_sketches


def test_find_sketches_skips_hidden_folders(tmp_path):
    (tmp_path / "blink.ino").write_text("")
    (tmp_path / "examples" / "fade").mkdir(parents=True)
    (tmp_path / "examples" / "fade" / "fade.ino").write_text("")
    (tmp_path / ".sketchpilot").mkdir()
    (tmp_path / ".sketchpilot" / "cached.ino").write_text("")

    assert find_sketches(tmp_path) == [Path("blink.ino"), Path("examples/fade/fade.ino")]


class TestConsoleUserInterface:
    """Tests for ConsoleUserInterface."""

    def test_resolve_single_sketch(self, tmp_path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "blink.ino").write_text("")
        settings = ProjectSettings()
        ui = ConsoleUserInterface(tmp_path, settings, interactive=False)

        assert asyncio.run(ui.resolve_sketch()) == "src/blink.ino"
        assert settings.sketch == "src/blink.ino"

    def test_resolve_ambiguous_sketch(self, tmp_path, capsys):
        (tmp_path / "a.ino").write_text("")
        (tmp_path / "b.ino").write_text("")
        settings = ProjectSettings()
        ui = ConsoleUserInterface(tmp_path, settings, interactive=False)

        assert asyncio.run(ui.resolve_sketch()) is None
        assert settings.sketch is None
        assert "More than one sketch found" in capsys.readouterr().out

    def test_resolve_without_sketch(self, tmp_path):
        ui = ConsoleUserInterface(tmp_path, ProjectSettings(), interactive=False)
        assert asyncio.run(ui.resolve_sketch()) is None

    def test_prompt_without_ports(self, tmp_path, capsys):
        ui = ConsoleUserInterface(tmp_path, ProjectSettings(), interactive=False, list_ports=lambda: [])

        assert asyncio.run(ui.prompt_serial_port()) is None
        assert "no serial ports were found" in capsys.readouterr().out

    def test_prompt_non_interactive_lists_ports(self, tmp_path, capsys):
        settings = ProjectSettings()
        ui = ConsoleUserInterface(
            tmp_path, settings, interactive=False, list_ports=lambda: ["/dev/ttyUSB0", "/dev/ttyACM0"]
        )

        assert asyncio.run(ui.prompt_serial_port()) is None
        assert settings.port is None
        assert "/dev/ttyUSB0, /dev/ttyACM0" in capsys.readouterr().out

    def test_prompt_interactive_by_number(self, tmp_path, monkeypatch):
        settings = ProjectSettings()
        ui = ConsoleUserInterface(tmp_path, settings, list_ports=lambda: ["COM3", "COM4"])
        ui.interactive = True
        monkeypatch.setattr("builtins.input", lambda prompt: "2\n")

        assert asyncio.run(ui.prompt_serial_port()) == "COM4"
        assert settings.port == "COM4"
