"""User interaction collaborators.

The orchestrator and the board manager never talk to the terminal
directly; they notify and ask through an IUserInterface.
"""

import asyncio
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, List, Optional

from .config.project_settings import ProjectSettings


class IUserInterface(ABC):
    """Notifications and prompts."""

    @abstractmethod
    def error(self, message: str) -> None:
        pass

    @abstractmethod
    def warning(self, message: str) -> None:
        pass

    @abstractmethod
    def info(self, message: str) -> None:
        pass

    @abstractmethod
    async def prompt_serial_port(self) -> Optional[str]:
        """Ask the user for a serial port.

        Returns:
            The chosen port, or None if the user gave up
        """
        pass

    @abstractmethod
    async def resolve_sketch(self) -> Optional[str]:
        """Find or ask for the sketch to build.

        Returns:
            Sketch path relative to the project root, or None
        """
        pass


def find_sketches(project_dir: Path) -> List[Path]:
    """Return all *.ino files under the project, ignoring hidden folders."""
    sketches = []
    for path in sorted(Path(project_dir).rglob("*.ino")):
        relative = path.relative_to(project_dir)
        if any(part.startswith(".") for part in relative.parts[:-1]):
            continue
        sketches.append(relative)
    return sketches


class ConsoleUserInterface(IUserInterface):
    """
    Terminal implementation.

    Messages use the same colours as the CLI's ErrorFormatter. Port prompts
    list the available ports and read the answer from stdin. A sketch is
    resolved automatically when the project holds exactly one *.ino file and
    is written back to the project settings.
    """

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    def __init__(
        self,
        project_dir: Path,
        settings: ProjectSettings,
        interactive: bool = True,
        list_ports: Optional[Callable[[], List[str]]] = None,
    ):
        self.project_dir = Path(project_dir)
        self.settings = settings
        self.interactive = interactive and sys.stdin.isatty()
        self._list_ports = list_ports

    def error(self, message: str) -> None:
        print(f"{self.RED}✗ {message}{self.RESET}")

    def warning(self, message: str) -> None:
        print(f"{self.YELLOW}⚠ {message}{self.RESET}")

    def info(self, message: str) -> None:
        print(message)

    def _available_ports(self) -> List[str]:
        if self._list_ports is not None:
            return self._list_ports()
        from serial.tools import list_ports

        return [port.device for port in list_ports.comports()]

    async def prompt_serial_port(self) -> Optional[str]:
        ports = self._available_ports()
        if not ports:
            self.warning("No serial port is selected and no serial ports were found.")
            return None
        if not self.interactive:
            self.warning("No serial port is selected. Available ports: " + ", ".join(ports))
            return None

        print("Select a serial port:")
        for i, port in enumerate(ports, 1):
            print(f"  {i}) {port}")
        loop = asyncio.get_running_loop()
        answer = (await loop.run_in_executor(None, input, "> ")).strip()

        port = None
        if answer.isdigit() and 1 <= int(answer) <= len(ports):
            port = ports[int(answer) - 1]
        elif answer in ports:
            port = answer
        if port is None:
            return None
        self.settings.port = port
        return port

    async def resolve_sketch(self) -> Optional[str]:
        sketches = find_sketches(self.project_dir)
        if len(sketches) != 1:
            if sketches:
                self.warning(
                    "More than one sketch found, set one with 'sketchpilot config --sketch': "
                    + ", ".join(str(s) for s in sketches)
                )
            return None
        sketch = sketches[0].as_posix()
        self.settings.sketch = sketch
        return sketch
