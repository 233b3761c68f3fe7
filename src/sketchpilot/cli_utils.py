"""CLI utility functions for sketchpilot.

This module provides common utilities used across CLI commands including:
- Logging setup
- Error handling and formatting
- Project path validation
- Session loading (settings, packages, managers)
"""

import logging
import sys
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from sketchpilot.config import ProjectSettings, ToolSettings
from sketchpilot.config.tool_settings import LOG_LEVEL_VERBOSE
from sketchpilot.packages import BoardManager, ProgrammerManager, WorkspaceContext
from sketchpilot.ui import ConsoleUserInterface

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None) -> logging.Logger:
    """Configure the sketchpilot logger.

    Args:
        verbose: Log DEBUG and up to the console instead of WARNING and up
        log_file: Optional rotating log file receiving everything from DEBUG up

    Returns:
        The package logger
    """
    logger = logging.getLogger("sketchpilot")
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            str(log_file),
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=3,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    return logger


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "File not found", "Upload failed")
            message: Error message details
        """
        print()
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}")
        print()
        print(message)
        print()

    @staticmethod
    def print_success(message: str) -> None:
        print()
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_warning(message: str) -> None:
        print()
        print(f"{ErrorFormatter.YELLOW}✗ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def handle_file_not_found(error: FileNotFoundError) -> None:
        ErrorFormatter.print_error("Error: File not found", str(error))
        print("Make sure you're in a sketch project directory.")
        sys.exit(1)

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        ErrorFormatter.print_warning("Interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.print_error("Unexpected error", message)

        if verbose:
            import traceback

            print("Traceback:")
            print(traceback.format_exc())

        sys.exit(1)


class PathValidator:
    """Validates project paths and directories."""

    @staticmethod
    def validate_project_dir(project_dir: Path) -> None:
        """Validate that project directory exists and is a directory.

        Raises:
            SystemExit: If path doesn't exist or isn't a directory
        """
        if not project_dir.exists():
            print(f"{ErrorFormatter.RED}✗ Error: Path does not exist: {project_dir}{ErrorFormatter.RESET}")
            sys.exit(2)
        if not project_dir.is_dir():
            print(f"{ErrorFormatter.RED}✗ Error: Path is not a directory: {project_dir}{ErrorFormatter.RESET}")
            sys.exit(2)


@dataclass
class Session:
    """Everything a command needs to work on one project."""

    project_dir: Path
    tool_settings: ToolSettings
    settings: ProjectSettings
    context: WorkspaceContext
    ui: ConsoleUserInterface
    board_manager: BoardManager
    programmer_manager: ProgrammerManager

    def close(self) -> None:
        """Detach the managers and persist changed project settings."""
        self.board_manager.detach()
        self.settings.save()


def load_session(project_dir: Path, verbose: bool = False, ini_path: Optional[Path] = None) -> Session:
    """Load settings and packages and attach the managers.

    Raises:
        ToolSettingsError: If sketchpilot.ini is malformed
        ProjectSettingsError: If the project file is malformed
        PackageIndexError: If an index file cannot be read
    """
    project_dir = project_dir.resolve()
    tool_settings = ToolSettings.discover(project_dir, ini_path)
    if verbose:
        tool_settings.log_level = LOG_LEVEL_VERBOSE

    settings = ProjectSettings.for_project(project_dir)
    settings.load()

    context = WorkspaceContext(tool_settings, project_dir)
    context.load_packages()

    ui = ConsoleUserInterface(project_dir, settings)
    board_manager = BoardManager(context, settings, ui)
    board_manager.attach()
    programmer_manager = ProgrammerManager(context, settings)

    return Session(
        project_dir=project_dir,
        tool_settings=tool_settings,
        settings=settings,
        context=context,
        ui=ui,
        board_manager=board_manager,
        programmer_manager=programmer_manager,
    )
