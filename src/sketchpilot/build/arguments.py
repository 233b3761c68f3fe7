"""Toolchain Argument Assembly.

This module turns a build request into the argument vector of the toolchain
front-end.

Design:
    - One front-end class per toolchain flavour (arduino-cli, legacy IDE)
    - Front-ends only know flag spelling; preconditions (port, programmer)
      are checked by the orchestrator before assembly
    - Build preferences keep their declaration order
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence

from .modes import BuildMode

CLI_ONLY_MESSAGE = "This command is only available when using the Arduino CLI"


class UnsupportedModeError(Exception):
    """Raised when the active front-end cannot run a build mode."""

    pass


class ToolchainFrontend(ABC):
    """Flag spelling of one toolchain front-end."""

    name = "toolchain"
    supports_cli_modes = False

    @abstractmethod
    def mode_args(
        self,
        mode: BuildMode,
        board: str,
        port: Optional[str],
        programmer: Optional[str],
    ) -> List[str]:
        """Get board and mode arguments.

        Args:
            mode: Build mode
            board: Fully qualified board name (build config string)
            port: Serial port or None
            programmer: Programmer key or None

        Returns:
            Arguments selecting board and action

        Raises:
            UnsupportedModeError: If the mode isn't available on this front-end
        """
        pass

    @abstractmethod
    def preference_args(self, key: str, value: str) -> List[str]:
        pass

    @abstractmethod
    def verbosity_args(self, verbose: bool) -> List[str]:
        pass

    @abstractmethod
    def build_path_args(self, build_dir: Path) -> List[str]:
        pass


class ArduinoCliFrontend(ToolchainFrontend):
    """arduino-cli (``arduino-cli compile -b <fqbn> ...``)."""

    name = "arduino-cli"
    supports_cli_modes = True

    def mode_args(self, mode, board, port, programmer):
        args = ["-b", board]
        if mode is BuildMode.UPLOAD:
            args += ["compile", "--upload"]
        elif mode is BuildMode.CLI_UPLOAD:
            args.append("upload")
        elif mode is BuildMode.UPLOAD_PROGRAMMER:
            args += ["compile", "--upload", "--programmer", programmer]
        elif mode is BuildMode.CLI_UPLOAD_PROGRAMMER:
            args += ["upload", "--programmer", programmer]
        else:
            args.insert(0, "compile")

        if port and mode.is_upload:
            args += ["--port", port]
        return args

    def preference_args(self, key, value):
        return ["--build-property", f"{key}={value}"]

    def verbosity_args(self, verbose):
        # Always verbose; the orchestrator filters the output
        return ["--verbose"]

    def build_path_args(self, build_dir):
        return ["--build-path", str(build_dir)]


class LegacyIdeFrontend(ToolchainFrontend):
    """Arduino IDE 1.x command line (``arduino --verify --board <fqbn> ...``)."""

    name = "arduino-ide"
    supports_cli_modes = False

    def mode_args(self, mode, board, port, programmer):
        if mode.requires_cli:
            raise UnsupportedModeError(CLI_ONLY_MESSAGE)

        args = ["--board", board]
        if mode is BuildMode.UPLOAD:
            args.append("--upload")
        elif mode is BuildMode.UPLOAD_PROGRAMMER:
            args += ["--upload", "--useprogrammer", "--pref", f"programmer={programmer}"]
        else:
            args.append("--verify")

        if port and mode.is_upload:
            args += ["--port", port]
        return args

    def preference_args(self, key, value):
        return ["--pref", f"{key}={value}"]

    def verbosity_args(self, verbose):
        args = ["--verbose-build"]
        if verbose:
            args.append("--verbose-upload")
        return args

    def build_path_args(self, build_dir):
        return ["--pref", f"build.path={build_dir}"]


def get_frontend(use_arduino_cli: bool) -> ToolchainFrontend:
    return ArduinoCliFrontend() if use_arduino_cli else LegacyIdeFrontend()


def assemble_arguments(
    frontend: ToolchainFrontend,
    mode: BuildMode,
    board: str,
    port: Optional[str] = None,
    programmer: Optional[str] = None,
    preferences: Optional[Sequence[Sequence[str]]] = None,
    verbose: bool = False,
    build_dir: Optional[Path] = None,
) -> List[str]:
    """Assemble all toolchain arguments except the trailing sketch path.

    Returns:
        Argument vector: board/mode flags, build preferences in declaration
        order, verbosity flags, then the build path flags if any

    Raises:
        UnsupportedModeError: If the mode isn't available on the front-end
    """
    args = frontend.mode_args(mode, board, port, programmer)
    for key, value in preferences or ():
        args += frontend.preference_args(key, value)
    args += frontend.verbosity_args(verbose)
    if build_dir is not None:
        args += frontend.build_path_args(build_dir)
    return args
