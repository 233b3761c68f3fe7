"""Build output channel and toolchain output classification.

The output channel is where the user sees build progress and toolchain
output. The classification helpers decide which toolchain lines reach it.
"""

import os
import re
import sys
from dataclasses import dataclass
from typing import List, Optional, TextIO

# Lines an output channel keeps for callers inspecting recent output
MAX_LINES = 5000

# Backend chatter that is hidden unless the log level is verbose
NOISE_FILTERS = [
    re.compile(r"^Picked\sup\sJAVA_TOOL_OPTIONS:\s+"),
    re.compile(r"^\d+\d+-\d+-\d+T\d+:\d+:\d+.\d+Z\s(?:INFO|WARN)\s"),
    re.compile(r"^(?:DEBUG|TRACE|INFO)\s+"),
    # 2022-04-09 22:48:46.204 Arduino[55373:2073803] Arg 25: '--pref'
    re.compile(r"^[\d\-.:\s]*Arduino\[[\d:]*\]"),
]

_SKETCH_USES_RE = re.compile(
    r"^Sketch uses (\d+) bytes(?: \((\d+)%\))? of program storage space\. Maximum is (\d+) bytes"
)
_GLOBALS_USE_RE = re.compile(
    r"^Global variables use (\d+) bytes(?: \((\d+)%\))? of dynamic memory"
    r"(?:, leaving (-?\d+) bytes for local variables)?\. Maximum is (\d+) bytes"
)
_LINE_BREAKS_RE = re.compile(r"(?:\r\n|\r|\n)+")


def is_noise(line: str) -> bool:
    return any(f.search(line) for f in NOISE_FILTERS)


def is_memory_usage_information(line: str) -> bool:
    """Check if the line is the toolchain's memory usage summary."""
    return line.startswith("Sketch uses ") or line.startswith("Global variables use ")


def normalize_windows_line(line: str) -> Optional[str]:
    """Trim a stderr line and normalize its line breaks.

    Returns:
        The normalized line ending with os.linesep, or None for blank lines
    """
    line = line.strip()
    if not line:
        return None
    return _LINE_BREAKS_RE.sub(os.linesep, line) + os.linesep


@dataclass
class MemoryUsage:
    """Firmware size information from the toolchain's summary lines."""

    program_bytes: Optional[int] = None
    max_program_bytes: Optional[int] = None
    data_bytes: Optional[int] = None
    max_data_bytes: Optional[int] = None

    @property
    def program_percent(self) -> Optional[float]:
        if self.program_bytes is not None and self.max_program_bytes:
            return (self.program_bytes / self.max_program_bytes) * 100
        return None

    @property
    def data_percent(self) -> Optional[float]:
        if self.data_bytes is not None and self.max_data_bytes:
            return (self.data_bytes / self.max_data_bytes) * 100
        return None

    def update(self, line: str) -> bool:
        """Record the numbers of a summary line.

        Returns:
            True if the line was a recognised summary line
        """
        match = _SKETCH_USES_RE.match(line)
        if match:
            self.program_bytes = int(match.group(1))
            self.max_program_bytes = int(match.group(3))
            return True
        match = _GLOBALS_USE_RE.match(line)
        if match:
            self.data_bytes = int(match.group(1))
            self.max_data_bytes = int(match.group(4))
            return True
        return False

    @property
    def empty(self) -> bool:
        return self.program_bytes is None and self.data_bytes is None


class OutputChannel:
    """
    Console output channel.

    Example:
        channel = OutputChannel()
        channel.start("Verifying sketch 'blink.ino'")
        channel.append("Sketch uses 924 bytes ...\\n")
        channel.end("Verifying sketch 'blink.ino'")
    """

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        color: Optional[bool] = None,
        max_lines: int = MAX_LINES,
    ):
        self.stream = stream if stream is not None else sys.stdout
        if color is None:
            color = hasattr(self.stream, "isatty") and self.stream.isatty()
        self.color = color
        self.max_lines = max_lines
        self.lines: List[str] = []

    def _paint(self, text: str, code: str) -> str:
        return f"{code}{text}{self.RESET}" if self.color else text

    def append(self, text: str) -> None:
        """Write raw toolchain output. Only the newest max_lines are kept."""
        self.lines.append(text)
        if len(self.lines) > self.max_lines:
            del self.lines[: len(self.lines) - self.max_lines]
        self.stream.write(text)
        self.stream.flush()

    def _line(self, text: str) -> None:
        if not text.endswith(("\n", "\r")):
            text += os.linesep
        self.append(text)

    def start(self, message: str) -> None:
        self._line(f"[Starting] {message}")

    def end(self, message: str) -> None:
        self._line(self._paint(f"[Done] {message.rstrip()}", self.GREEN))

    def info(self, message: str) -> None:
        self._line(f"[Info] {message}")

    def warning(self, message: str) -> None:
        self._line(self._paint(f"[Warning] {message}", self.YELLOW))

    def error(self, message: str) -> None:
        self._line(self._paint(f"[Error] {message.rstrip()}", self.RED))

    def clear(self) -> None:
        self.lines.clear()
