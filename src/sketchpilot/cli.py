"""
Command-line interface for sketchpilot.

This module provides the `sketchpilot` CLI tool for building and uploading
sketches with arduino-cli or the legacy Arduino IDE.
"""

import argparse
import asyncio
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from sketchpilot.build import BuildMode, BuildOrchestrator, OutputChannel
from sketchpilot.cli_utils import (
    ErrorFormatter,
    PathValidator,
    Session,
    load_session,
    setup_logging,
)
from sketchpilot.config.project_settings import PROJECT_DIR_NAME
from sketchpilot.deploy import DeviceWatcher, MonitorError, SerialMonitor

VERSION = "0.1.0"
LOG_FILE_NAME = "sketchpilot.log"


@dataclass
class BoardsArgs:
    """Arguments for the boards command."""

    project_dir: Path
    verbose: bool = False


@dataclass
class ConfigArgs:
    """Arguments for the config command."""

    project_dir: Path
    board: Optional[str] = None
    options: List[str] = field(default_factory=list)
    reset: bool = False
    sketch: Optional[str] = None
    port: Optional[str] = None
    programmer: Optional[str] = None
    output: Optional[str] = None
    verbose: bool = False


@dataclass
class BuildArgs:
    """Arguments for the verify and upload commands."""

    project_dir: Path
    mode: BuildMode = BuildMode.VERIFY
    port: Optional[str] = None
    output: Optional[Path] = None
    verbose: bool = False


@dataclass
class MonitorArgs:
    """Arguments for the monitor command."""

    project_dir: Path
    port: Optional[str] = None
    baud: int = 115200
    verbose: bool = False


def upload_mode(programmer: bool, cli: bool) -> BuildMode:
    if programmer:
        return BuildMode.CLI_UPLOAD_PROGRAMMER if cli else BuildMode.UPLOAD_PROGRAMMER
    return BuildMode.CLI_UPLOAD if cli else BuildMode.UPLOAD


def _open_session(project_dir: Path, verbose: bool) -> Session:
    setup_logging(verbose, project_dir / PROJECT_DIR_NAME / LOG_FILE_NAME)
    return load_session(project_dir, verbose=verbose)


def boards_command(args: BoardsArgs) -> None:
    """List installed boards.

    Examples:
        sketchpilot boards              # Boards of all installed platforms
        sketchpilot boards -v           # Include configuration options
    """
    try:
        session = _open_session(args.project_dir, args.verbose)
        current = session.board_manager.current_board
        boards = session.board_manager.list_boards()
        if not boards:
            ErrorFormatter.print_warning("No installed boards found.")
            sys.exit(0)

        for board in boards:
            marker = "*" if current is not None and board.key == current.key else " "
            print(f"{marker} {board.key:<40} {board.name or ''}")
            if args.verbose:
                for item in board.config_items:
                    options = ", ".join(option.id for option in item.options)
                    print(f"      {item.id}={item.selected_option}  ({options})")
        sys.exit(0)

    except FileNotFoundError as e:
        ErrorFormatter.handle_file_not_found(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def config_command(args: ConfigArgs) -> None:
    """Show or change the project configuration.

    Examples:
        sketchpilot config                          # Show the configuration
        sketchpilot config --board arduino:avr:nano
        sketchpilot config --set cpu=atmega328old
        sketchpilot config --reset                  # Board defaults
        sketchpilot config --sketch blink.ino --port /dev/ttyUSB0
    """
    try:
        session = _open_session(args.project_dir, args.verbose)
        settings = session.settings
        manager = session.board_manager

        if args.board:
            board = session.context.boards.get(args.board)
            if board is None:
                ErrorFormatter.print_error("Unknown board", f"No installed board '{args.board}'")
                sys.exit(1)
            manager.change_board_type(board)

        if args.reset and manager.current_board is not None:
            manager.current_board.reset_config()
            settings.configuration = manager.current_board.custom_config_string()

        for option in args.options:
            config_id, sep, option_id = option.partition("=")
            result = manager.update_config(config_id.strip(), option_id.strip()) if sep else None
            if result is None or not result.ok:
                reason = "invalid format" if result is None else result.name.lower()
                ErrorFormatter.print_error("Invalid configuration", f"'{option}': {reason}")
                sys.exit(1)

        for name in ("sketch", "port", "programmer", "output"):
            value = getattr(args, name)
            if value is not None:
                setattr(settings, name, value)

        session.close()

        board = manager.current_board
        print(f"Board:         {board.key if board else '<none>'}")
        if board is not None:
            print(f"Configuration: {board.custom_config_string() or ''}")
            print(f"FQBN:          {board.build_config_string()}")
        print(f"Sketch:        {settings.sketch or '<none>'}")
        print(f"Port:          {settings.port or '<none>'}")
        print(f"Programmer:    {session.programmer_manager.current_programmer or '<none>'}")
        print(f"Output:        {settings.output or '<none>'}")
        sys.exit(0)

    except FileNotFoundError as e:
        ErrorFormatter.handle_file_not_found(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def build_command(args: BuildArgs) -> None:
    """Verify or upload the sketch.

    Examples:
        sketchpilot verify                      # Compile the project's sketch
        sketchpilot verify -o build             # Reuse build output in ./build
        sketchpilot upload -p COM3              # Compile and upload
        sketchpilot upload --cli                # Upload without compiling
        sketchpilot upload --programmer         # Upload using a programmer
    """
    try:
        session = _open_session(args.project_dir, args.verbose)
        if args.port:
            session.settings.port = args.port

        watcher = None
        if args.mode.is_upload:
            watcher = DeviceWatcher()
            watcher.start()
        orchestrator = BuildOrchestrator(
            session.project_dir,
            session.settings,
            session.tool_settings,
            session.board_manager,
            session.programmer_manager,
            session.ui,
            channel=OutputChannel(),
            serial_monitor=SerialMonitor(),
            device_watcher=watcher,
        )
        try:
            ok = asyncio.run(orchestrator.build(args.mode, args.output))
        finally:
            if watcher is not None:
                watcher.stop()
        session.close()

        result = orchestrator.last_result
        if ok:
            ErrorFormatter.print_success(f"{args.mode.value} successful!")
            usage = result.memory_usage if result else None
            if usage is not None:
                print()
                print("Firmware Size:")
                if usage.program_percent is not None:
                    print(
                        f"  Program:  {usage.program_bytes:>6} bytes "
                        + f"({usage.program_percent:>5.1f}% of {usage.max_program_bytes} bytes)"
                    )
                if usage.data_percent is not None:
                    print(
                        f"  RAM:      {usage.data_bytes:>6} bytes "
                        + f"({usage.data_percent:>5.1f}% of {usage.max_data_bytes} bytes)"
                    )
            if result is not None:
                print()
                print(f"Build time: {result.build_time:.2f}s")
            sys.exit(0)
        else:
            ErrorFormatter.print_error(f"{args.mode.value} failed!", result.message if result else "")
            sys.exit(1)

    except FileNotFoundError as e:
        ErrorFormatter.handle_file_not_found(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


async def _monitor(port: str, baud: int) -> None:
    monitor = SerialMonitor(baud=baud)
    await monitor.open_session(port, baud)
    print(f"--- Serial Monitor on {port} at {baud} baud (Ctrl+C to exit) ---")
    try:
        while monitor.is_open:
            await asyncio.sleep(0.2)
    finally:
        await monitor.close_session(port)


def monitor_command(args: MonitorArgs) -> None:
    """Show serial output of the board.

    Examples:
        sketchpilot monitor                 # Port from the project settings
        sketchpilot monitor -p COM3 -b 9600
    """
    try:
        session = _open_session(args.project_dir, args.verbose)
        port = args.port or session.settings.port
        if not port:
            ErrorFormatter.print_error("No serial port", "Use --port or 'sketchpilot config --port'.")
            sys.exit(1)
        asyncio.run(_monitor(port, args.baud))
        sys.exit(0)

    except MonitorError as e:
        ErrorFormatter.print_error("Monitor failed!", str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        print()
        print("--- Monitor interrupted ---")
        sys.exit(0)
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sketchpilot",
        description="sketchpilot - drive arduino-cli for sketch projects",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"sketchpilot {VERSION}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    boards_parser = subparsers.add_parser("boards", help="List installed boards")
    _add_common(boards_parser)

    config_parser = subparsers.add_parser("config", help="Show or change the project configuration")
    _add_common(config_parser)
    config_parser.add_argument("--board", default=None, help="Board key (package:arch:board)")
    config_parser.add_argument(
        "--set",
        dest="options",
        action="append",
        default=[],
        metavar="ID=OPTION",
        help="Select a board option (repeatable)",
    )
    config_parser.add_argument("--reset", action="store_true", help="Reset board options to defaults")
    config_parser.add_argument("--sketch", default=None, help="Sketch file relative to the project")
    config_parser.add_argument("--port", default=None, help="Serial port")
    config_parser.add_argument("--programmer", default=None, help="Programmer key, id or name")
    config_parser.add_argument("--output", default=None, help="Build output folder")

    verify_parser = subparsers.add_parser("verify", help="Compile the sketch")
    _add_common(verify_parser)
    verify_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Build output folder when the project sets none",
    )

    upload_parser = subparsers.add_parser("upload", help="Compile and upload the sketch")
    _add_common(upload_parser)
    upload_parser.add_argument("-p", "--port", default=None, help="Serial port")
    upload_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Build output folder when the project sets none",
    )
    upload_parser.add_argument("--programmer", action="store_true", help="Upload using the programmer")
    upload_parser.add_argument("--cli", action="store_true", help="Upload only (arduino-cli upload)")

    monitor_parser = subparsers.add_parser("monitor", help="Show serial output of the board")
    _add_common(monitor_parser)
    monitor_parser.add_argument("-p", "--port", default=None, help="Serial port")
    monitor_parser.add_argument("-b", "--baud", default=115200, type=int, help="Baud rate (default: 115200)")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """sketchpilot - build and upload sketches."""
    parser = create_parser()
    parsed_args = parser.parse_args(argv)

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    PathValidator.validate_project_dir(parsed_args.project_dir)

    if parsed_args.command == "boards":
        boards_command(BoardsArgs(project_dir=parsed_args.project_dir, verbose=parsed_args.verbose))
    elif parsed_args.command == "config":
        config_command(
            ConfigArgs(
                project_dir=parsed_args.project_dir,
                board=parsed_args.board,
                options=parsed_args.options,
                reset=parsed_args.reset,
                sketch=parsed_args.sketch,
                port=parsed_args.port,
                programmer=parsed_args.programmer,
                output=parsed_args.output,
                verbose=parsed_args.verbose,
            )
        )
    elif parsed_args.command == "verify":
        build_command(
            BuildArgs(
                project_dir=parsed_args.project_dir,
                mode=BuildMode.VERIFY,
                output=parsed_args.output,
                verbose=parsed_args.verbose,
            )
        )
    elif parsed_args.command == "upload":
        build_command(
            BuildArgs(
                project_dir=parsed_args.project_dir,
                mode=upload_mode(parsed_args.programmer, parsed_args.cli),
                port=parsed_args.port,
                output=parsed_args.output,
                verbose=parsed_args.verbose,
            )
        )
    elif parsed_args.command == "monitor":
        monitor_command(
            MonitorArgs(
                project_dir=parsed_args.project_dir,
                port=parsed_args.port,
                baud=parsed_args.baud,
                verbose=parsed_args.verbose,
            )
        )


if __name__ == "__main__":
    main()
