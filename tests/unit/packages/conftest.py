"""Shared fixtures: a package folder with one installed AVR platform."""

import json
from unittest.mock import Mock

import pytest

from sketchpilot.config.project_settings import ProjectSettings
from sketchpilot.config.tool_settings import ToolSettings
from sketchpilot.packages.context import WorkspaceContext

BOARDS_TXT = """
menu.cpu=Processor
uno.name=Arduino Uno
uno.build.mcu=atmega328p
nano.name=Arduino Nano
nano.menu.cpu.atmega328=ATmega328P
nano.menu.cpu.atmega328old=ATmega328P (Old Bootloader)
nano.menu.cpu.atmega168=ATmega168
"""

PROGRAMMERS_TXT = """
avrisp.name=AVR ISP
usbasp.name=USBasp
"""


@pytest.fixture
def tool_settings(tmp_path):
    package_path = tmp_path / "arduino15"
    avr = package_path / "packages" / "arduino" / "hardware" / "avr" / "1.8.6"
    avr.mkdir(parents=True)
    (avr / "boards.txt").write_text(BOARDS_TXT)
    (avr / "programmers.txt").write_text(PROGRAMMERS_TXT)
    (package_path / "package_index.json").write_text(
        json.dumps(
            {
                "packages": [
                    {
                        "name": "arduino",
                        "platforms": [
                            {
                                "name": "Arduino AVR Boards",
                                "architecture": "avr",
                                "version": "1.8.6",
                                "boards": [{"name": "Arduino Uno"}, {"name": "Arduino Nano"}],
                            },
                            {
                                "name": "Arduino SAMD Boards",
                                "architecture": "samd",
                                "version": "1.8.13",
                                "boards": [{"name": "Arduino Zero"}],
                            },
                        ],
                    }
                ]
            }
        )
    )
    return ToolSettings(
        package_path=package_path,
        default_package_path=None,
        sketchbook_path=tmp_path / "sketchbook",
    )


@pytest.fixture
def project_dir(tmp_path):
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def context(tool_settings, project_dir):
    ctx = WorkspaceContext(tool_settings, project_dir)
    ctx.load_packages()
    return ctx


@pytest.fixture
def settings():
    return ProjectSettings()


@pytest.fixture
def ui():
    return Mock()
