"""
Toolchain, project and process models reported by the platform service.
"""

from typing import List, Literal
from pydantic import BaseModel, Field


class ToolchainInstallation(BaseModel):
    """An installed toolchain (IDE or SDK bundle) that can host providers."""
    version: str = Field(..., description="Toolchain version")
    display_name: str = Field(..., description="Human-readable name")
    installation_path: str = Field(..., description="Root directory of the installation")
    product_path: str = Field(..., description="Main executable of the installation")
    is_prerelease: bool = Field(default=False)

    @property
    def version_key(self) -> tuple:
        """Numeric sort key so 17.10 sorts after 17.9."""
        parts = []
        for piece in self.version.split("."):
            digits = "".join(ch for ch in piece if ch.isdigit())
            parts.append(int(digits) if digits else 0)
        return tuple(parts)


class BuildEngineInfo(BaseModel):
    """Location of a build engine executable."""
    path: str
    version: str = "unknown"
    leading_args: List[str] = Field(
        default_factory=list,
        description="Arguments placed before the build arguments (e.g. ['msbuild'] for a dotnet driver)"
    )


class LanguageServiceInfo(BaseModel):
    """Location of a language server shipped with a toolchain."""
    path: str
    version: str = "unknown"
    supported_frameworks: List[str] = Field(default_factory=list)


class DebuggerInfo(BaseModel):
    """Location and flavour of a debugger runtime."""
    path: str
    type: Literal["mono", "vsdbg", "dotnet", "other"]
    version: str = "unknown"


class ProjectInfo(BaseModel):
    """The handful of fields read from a project manifest."""
    path: str
    target_framework: str = "net48"
    output_type: str = "Library"
    references: List[str] = Field(default_factory=list)


class CommandResult(BaseModel):
    """Captured output of an external command."""
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class BuildResult(BaseModel):
    """Outcome of a build, clean or restore run."""
    success: bool
    output: str = ""
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
