"""
Build orchestration for sketchpilot projects.

This module turns a build request into one run of the external toolchain:
- Precondition checks (board, sketch, port, programmer)
- Argument assembly for the configured toolchain front-end
- Pre- and post-build hooks
- Serial monitor and device watcher hand-off around uploads
- Output classification of the toolchain's stdout and stderr
"""

import asyncio
import logging
import re
import sys
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional

from ..config.project_settings import PROJECT_DIR_NAME, ProjectSettings
from ..config.tool_settings import ToolSettings
from ..deploy.device_watch import IDeviceWatcher
from ..deploy.monitor import ISerialMonitor, MonitorError
from ..packages.board_manager import BoardManager, ProgrammerManager
from ..ui import IUserInterface
from .arguments import UnsupportedModeError, assemble_arguments, get_frontend
from .compiler_parser import CompileCommandsCollector, ICompilerOutputParser
from .hooks import run_hook
from .line_buffer import pump_stream
from .modes import BuildMode
from .output import (
    MemoryUsage,
    OutputChannel,
    is_memory_usage_information,
    is_noise,
    normalize_windows_line,
)

logger = logging.getLogger(__name__)

# ST-Link uploads don't go through a serial port
_STLINK_RE = re.compile(r"upload_method=[^=,]*st[^,]*link", re.IGNORECASE)

OUTPUT_PATH_WARNING = (
    "Output path is not specified. Unable to reuse previously compiled files. Build will be slower."
)


class BuildState(Enum):
    IDLE = "idle"
    BUILDING = "building"


@dataclass
class BuildResult:
    """Result of one build request."""

    success: bool
    mode: BuildMode
    message: str = ""
    exit_code: Optional[int] = None
    memory_usage: Optional[MemoryUsage] = None
    build_time: float = 0.0


class BuildOrchestratorError(Exception):
    """Exception raised for build orchestration errors."""

    pass


class BuildOrchestrator:
    """
    Runs builds one at a time.

    ``build()`` never raises: every failure ends as False, and the orchestrator
    is back to IDLE when it returns. A request arriving while another build is
    in flight is refused without side effects.

    Example usage:
        orchestrator = BuildOrchestrator(
            project_dir, project_settings, tool_settings,
            board_manager, programmer_manager, ui,
        )
        ok = asyncio.run(orchestrator.build(BuildMode.VERIFY))
    """

    def __init__(
        self,
        project_dir: Path,
        settings: ProjectSettings,
        tool_settings: ToolSettings,
        board_manager: Optional[BoardManager],
        programmer_manager: Optional[ProgrammerManager],
        ui: IUserInterface,
        channel: Optional[OutputChannel] = None,
        serial_monitor: Optional[ISerialMonitor] = None,
        device_watcher: Optional[IDeviceWatcher] = None,
        parser_factory: Optional[Callable[[], ICompilerOutputParser]] = None,
    ):
        self.project_dir = Path(project_dir).resolve()
        self.settings = settings
        self.tool_settings = tool_settings
        self.board_manager = board_manager
        self.programmer_manager = programmer_manager
        self.ui = ui
        self.channel = channel or OutputChannel()
        self.serial_monitor = serial_monitor
        self.device_watcher = device_watcher
        self.parser_factory = parser_factory or self._default_parser
        self.state = BuildState.IDLE
        self.last_result: Optional[BuildResult] = None

    def _default_parser(self) -> ICompilerOutputParser:
        return CompileCommandsCollector(self.project_dir / PROJECT_DIR_NAME, self.project_dir)

    @property
    def building(self) -> bool:
        return self.state is BuildState.BUILDING

    async def build(self, mode: BuildMode, build_dir: Optional[Path] = None) -> bool:
        """
        Run one build.

        Args:
            mode: What to do (verify, upload, ...)
            build_dir: Output folder used when the project has no output setting

        Returns:
            True if the toolchain ran and exited with 0
        """
        if self.board_manager is None or self.programmer_manager is None:
            return False
        if self.state is not BuildState.IDLE:
            logger.info(f"Build request '{mode.value}' refused: a build is already running")
            return False

        self.state = BuildState.BUILDING
        start_time = time.time()
        try:
            result = await self._build(mode, build_dir)
        except Exception as e:
            logger.exception(f"{mode.value} failed")
            result = BuildResult(success=False, mode=mode, message=str(e))
            if mode.interactive:
                self.ui.error(f"{mode.value} failed: {e}")
        finally:
            self.state = BuildState.IDLE

        result.build_time = time.time() - start_time
        self.last_result = result
        return result.success

    def _fail(self, mode: BuildMode, message: str, notify: bool = True) -> BuildResult:
        if notify and mode.interactive:
            self.ui.error(message)
        logger.info(f"{mode.value} aborted: {message}")
        return BuildResult(success=False, mode=mode, message=message)

    async def _build(self, mode: BuildMode, build_dir: Optional[Path]) -> BuildResult:
        board = self.board_manager.current_board
        if board is None:
            return self._fail(mode, "No board selected. Please select a board first.")
        board_descriptor = board.build_config_string()

        sketch = self.settings.sketch
        if not sketch:
            if not mode.interactive:
                return self._fail(mode, "No sketch file selected.", notify=False)
            sketch = await self.ui.resolve_sketch()
            if not sketch:
                return self._fail(mode, "No sketch file was found. Please specify the sketch in the project settings.")
        sketch_path = self.project_dir / sketch
        if not sketch_path.exists():
            return self._fail(mode, f"Cannot find the sketch file: {sketch_path}")

        port = self.settings.port
        programmer = None
        if mode in (BuildMode.UPLOAD, BuildMode.CLI_UPLOAD):
            if not port and not _STLINK_RE.search(self.settings.configuration or ""):
                await self.ui.prompt_serial_port()
                return self._fail(mode, "No serial port selected.", notify=False)
        elif mode.uses_programmer:
            programmer = self.programmer_manager.current_programmer
            if not programmer:
                return self._fail(mode, "Please select a programmer first.")
            if not port:
                await self.ui.prompt_serial_port()
                return self._fail(mode, "No serial port selected.", notify=False)

        output_dir = None
        output = self.settings.output or (str(build_dir) if build_dir is not None else None)
        if output:
            output_dir = Path(output)
            if not output_dir.is_absolute():
                output_dir = self.project_dir / output_dir
            output_dir.mkdir(parents=True, exist_ok=True)

        verbose = self.tool_settings.verbose
        frontend = get_frontend(self.tool_settings.use_arduino_cli)
        try:
            args = assemble_arguments(
                frontend,
                mode,
                board_descriptor,
                port=port,
                programmer=programmer,
                preferences=self.settings.build_preferences,
                verbose=verbose,
                build_dir=output_dir,
            )
        except UnsupportedModeError as e:
            return self._fail(mode, str(e))

        if self.tool_settings.clear_output_on_build:
            self.channel.clear()
        self.channel.start(f"{mode.value} sketch '{sketch}'")

        if output_dir is None:
            self.channel.warning(OUTPUT_PATH_WARNING)
            logger.warning(OUTPUT_PATH_WARNING)

        bundle = self._environment_bundle(mode, sketch, board_descriptor, port, output_dir)
        if not await run_hook("pre", self.settings.prebuild, bundle, self.project_dir, self.channel):
            return BuildResult(success=False, mode=mode, message="Pre-build command failed")

        parser = self.parser_factory()
        memory = MemoryUsage()
        reopen_monitor = False
        try:
            if mode.is_upload:
                if self.serial_monitor is not None and port:
                    reopen_monitor = await self.serial_monitor.close_session(port)
                if self.device_watcher is not None:
                    self.device_watcher.pause()

            command = [self.tool_settings.command_path] + args + [str(sketch_path)]
            if verbose:
                self.channel.info(" ".join(command))
            logger.debug(f"Running {command}")

            try:
                exit_code = await self._run_toolchain(command, parser, memory, verbose)
            except BuildOrchestratorError as e:
                self.channel.error(str(e))
                logger.error(str(e))
                return BuildResult(success=False, mode=mode, message=str(e))

            if exit_code != 0:
                message = f"Exit with code={exit_code}"
                self.channel.error(message)
                logger.warning(f"{mode.value} failed: {message}")
                return BuildResult(success=False, mode=mode, message=message, exit_code=exit_code)

            self.channel.end(f"{mode.value} sketch '{sketch}'")
            if not await run_hook("post", self.settings.postbuild, bundle, self.project_dir, self.channel):
                logger.warning("Post-build command failed")
            return BuildResult(
                success=True,
                mode=mode,
                message=f"{mode.value} sketch '{sketch}' done",
                exit_code=exit_code,
                memory_usage=None if memory.empty else memory,
            )
        finally:
            try:
                parser.conclude()
            finally:
                if mode.is_upload:
                    await self._restore_serial(reopen_monitor)

    async def _restore_serial(self, reopen_monitor: bool) -> None:
        """Resume device watching and reopen the monitor closed for an upload.

        Failures are logged only; the toolchain's exit code decides the result.
        """
        if self.device_watcher is not None:
            try:
                self.device_watcher.resume()
            except OSError as e:
                logger.warning(f"Failed to resume device watching: {e}")
        if reopen_monitor:
            try:
                await self.serial_monitor.open_session()
            except (MonitorError, OSError) as e:
                self.channel.warning(f"Failed to reopen the serial monitor: {e}")
                logger.warning(f"Failed to reopen the serial monitor: {e}")

    def _environment_bundle(
        self,
        mode: BuildMode,
        sketch: str,
        board_descriptor: str,
        port: Optional[str],
        output_dir: Optional[Path],
    ) -> Dict[str, str]:
        bundle = {
            "BUILD_MODE": mode.value,
            "SKETCH": sketch,
            "BOARD": board_descriptor,
            "WORKSPACE_DIR": str(self.project_dir),
            "LOG_LEVEL": self.tool_settings.log_level,
        }
        if port:
            bundle["SERIAL"] = port
        if output_dir is not None:
            bundle["BUILD_DIR"] = str(output_dir)
        return bundle

    async def _run_toolchain(
        self,
        command,
        parser: ICompilerOutputParser,
        memory: MemoryUsage,
        verbose: bool,
    ) -> int:
        """
        Spawn the toolchain and classify its output.

        Returns:
            Exit code of the toolchain

        Raises:
            BuildOrchestratorError: If the process cannot be started
        """

        def on_stdout(line: str) -> None:
            parser.callback(line)
            usage = is_memory_usage_information(line)
            if usage:
                memory.update(line)
            if verbose or usage:
                self.channel.append(line)

        def on_stderr(line: str) -> None:
            if sys.platform == "win32":
                line = normalize_windows_line(line)
                if line is None:
                    return
            if not verbose and is_noise(line):
                return
            self.channel.append(line)

        process = await self._spawn(command)
        await asyncio.gather(
            pump_stream(process.stdout, on_stdout),
            pump_stream(process.stderr, on_stderr),
        )
        return await process.wait()

    async def _spawn(self, command) -> asyncio.subprocess.Process:
        try:
            return await asyncio.create_subprocess_exec(
                *command,
                cwd=str(self.project_dir),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise BuildOrchestratorError(f"Failed to start {command[0]}: {e}") from e
