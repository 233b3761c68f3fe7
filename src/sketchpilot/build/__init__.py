"""
Build system components for sketchpilot.

This module provides the build pipeline around the external toolchain:
- Build modes and toolchain argument assembly
- Pre- and post-build hooks
- Line buffering and classification of toolchain output
- Build orchestration
"""

from .arguments import (
    ArduinoCliFrontend,
    LegacyIdeFrontend,
    ToolchainFrontend,
    UnsupportedModeError,
    assemble_arguments,
    get_frontend,
)
from .compiler_parser import CompileCommandsCollector, ICompilerOutputParser, NullCompilerParser
from .line_buffer import LineBufferer
from .modes import BuildMode
from .orchestrator import BuildOrchestrator, BuildOrchestratorError, BuildResult, BuildState
from .output import MemoryUsage, OutputChannel

__all__ = [
    "ArduinoCliFrontend",
    "LegacyIdeFrontend",
    "ToolchainFrontend",
    "UnsupportedModeError",
    "assemble_arguments",
    "get_frontend",
    "CompileCommandsCollector",
    "ICompilerOutputParser",
    "NullCompilerParser",
    "LineBufferer",
    "BuildMode",
    "BuildOrchestrator",
    "BuildOrchestratorError",
    "BuildResult",
    "BuildState",
    "MemoryUsage",
    "OutputChannel",
]
