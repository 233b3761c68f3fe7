"""Compiler output parsers.

The orchestrator feeds every toolchain stdout line to a parser and calls
``conclude()`` once the build is over, whatever its outcome.
"""

import json
import logging
import re
import shlex
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

COMPILE_COMMANDS_FILE = "compile_commands.json"

_COMPILER_RE = re.compile(r"(?:^|[\s\"'/\\])[\w.+-]*(?:gcc|g\+\+)(?:\.exe)?[\"']?\s")
_SOURCE_SUFFIXES = (".c", ".cpp", ".cc", ".cxx", ".S", ".s", ".ino")


class ICompilerOutputParser(ABC):
    """Consumer of toolchain stdout lines."""

    @abstractmethod
    def callback(self, line: str) -> None:
        pass

    @abstractmethod
    def conclude(self) -> None:
        pass


class NullCompilerParser(ICompilerOutputParser):
    def callback(self, line: str) -> None:
        pass

    def conclude(self) -> None:
        pass


class CompileCommandsCollector(ICompilerOutputParser):
    """
    Collect compiler invocations into a compile_commands.json database.

    Only lines running gcc/g++ with ``-c`` are recorded; for each source
    file the last invocation wins.

    Example:
        collector = CompileCommandsCollector(project_dir / ".sketchpilot", project_dir)
        collector.callback('"avr-g++" -c -g -Os blink.ino.cpp -o blink.ino.cpp.o\\n')
        collector.conclude()  # writes .sketchpilot/compile_commands.json
    """

    def __init__(self, output_dir: Path, directory: Path):
        self.output_dir = Path(output_dir)
        self.directory = Path(directory)
        self.commands: Dict[str, Dict[str, object]] = {}

    @property
    def output_file(self) -> Path:
        return self.output_dir / COMPILE_COMMANDS_FILE

    def callback(self, line: str) -> None:
        line = line.strip()
        if not line or not _COMPILER_RE.search(f" {line} "):
            return
        try:
            arguments = shlex.split(line, posix=True)
        except ValueError:
            return
        if "-c" not in arguments:
            return

        source = self._find_source(arguments)
        if source is None:
            return
        self.commands[source] = {
            "directory": str(self.directory),
            "arguments": arguments,
            "file": source,
        }

    @staticmethod
    def _find_source(arguments: List[str]) -> Optional[str]:
        skip_next = False
        for arg in arguments[1:]:
            if skip_next:
                skip_next = False
                continue
            if arg == "-o":
                skip_next = True
                continue
            if not arg.startswith("-") and arg.endswith(_SOURCE_SUFFIXES):
                return arg
        return None

    def conclude(self) -> None:
        if not self.commands:
            return
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            with open(self.output_file, "w", encoding="utf-8") as f:
                json.dump(list(self.commands.values()), f, indent=2)
        except OSError as e:
            logger.warning(f"Failed to write {self.output_file}: {e}")
            return
        logger.debug(f"Wrote {len(self.commands)} compile commands to {self.output_file}")
