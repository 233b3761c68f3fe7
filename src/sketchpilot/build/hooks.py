"""Pre- and post-build hook commands.

A hook is a single shell command string from the project settings. On POSIX
it runs through ``bash -c`` (full bash syntax), on Windows through the
default shell. The hook inherits the process environment plus the build
environment bundle.
"""

import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Dict, Mapping, Optional

from .line_buffer import pump_stream
from .output import OutputChannel

logger = logging.getLogger(__name__)

ENV_PREFIX = "SKETCHPILOT_"


def hook_environment(bundle: Mapping[str, str]) -> Dict[str, str]:
    """Merge the build environment bundle into a copy of os.environ.

    Args:
        bundle: Build variables without prefix (BUILD_MODE, SKETCH, ...)

    Returns:
        Full environment for the hook process
    """
    env = os.environ.copy()
    for key, value in bundle.items():
        env[f"{ENV_PREFIX}{key}"] = str(value)
    return env


async def run_hook(
    what: str,
    command: Optional[str],
    bundle: Mapping[str, str],
    cwd: Path,
    channel: OutputChannel,
) -> bool:
    """Run a pre- or post-build command.

    Args:
        what: "pre" or "post", used in messages
        command: Shell command line, None or empty to do nothing
        bundle: Build environment bundle
        cwd: Working directory (project root)
        channel: Output channel receiving the hook's output

    Returns:
        True if there was nothing to run or the command exited with 0
    """
    if not command:
        return True

    channel.info(f'Running {what}-build command: "{command}"')
    env = hook_environment(bundle)

    try:
        if sys.platform == "win32":
            process = await asyncio.create_subprocess_shell(
                command,
                cwd=str(cwd),
                env=env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        else:
            process = await asyncio.create_subprocess_exec(
                "bash",
                "-c",
                command,
                cwd=str(cwd),
                env=env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
    except OSError as e:
        channel.error(f"Running {what}-build command failed: {os.linesep}{e}")
        logger.error(f"{what}-build command could not be started: {e}")
        return False

    await asyncio.gather(
        pump_stream(process.stdout, channel.append),
        pump_stream(process.stderr, channel.append),
    )
    code = await process.wait()

    if code != 0:
        channel.error(f"Running {what}-build command failed: {os.linesep}Exit code = {code}")
        logger.warning(f"{what}-build command exited with code {code}")
        return False
    return True
