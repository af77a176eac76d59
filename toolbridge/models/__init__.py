"""
Data models for the Development Tools Bridge.
"""

from .tool import CapabilityKind, ToolCategory, InstallMethod, MissingTool
from .installation import InstallOutcome, InstallResult
from .toolchain import (
    ToolchainInstallation,
    BuildEngineInfo,
    LanguageServiceInfo,
    DebuggerInfo,
    ProjectInfo,
    CommandResult,
    BuildResult,
)

__all__ = [
    "CapabilityKind",
    "ToolCategory",
    "InstallMethod",
    "MissingTool",
    "InstallOutcome",
    "InstallResult",
    "ToolchainInstallation",
    "BuildEngineInfo",
    "LanguageServiceInfo",
    "DebuggerInfo",
    "ProjectInfo",
    "CommandResult",
    "BuildResult"
]
