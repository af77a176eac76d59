"""
Missing-tool data models.
"""

from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, model_validator


class CapabilityKind(str, Enum):
    """Category of interchangeable tool implementations."""
    LANGUAGE = "language"
    BUILD = "build"
    DEBUG = "debug"


class ToolCategory(str, Enum):
    """What a missing tool contributes to the workflow."""
    LANGUAGE = "language"
    BUILD = "build"
    DEBUG = "debug"
    RUNTIME = "runtime"


class InstallMethod(str, Enum):
    """Remediation strategy for a missing tool."""
    AUTOMATIC = "automatic"
    GUIDED = "guided"
    MANUAL = "manual"


class MissingTool(BaseModel):
    """A capability or dependency detected as absent, with its remediation data."""
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "omnisharp-standalone",
                "name": "OmniSharp Language Server (Standalone)",
                "description": "Command-line OmniSharp for manual setup (fallback option)",
                "required": False,
                "category": "language",
                "install_method": "automatic",
                "install_command": "/usr/local/bin/dotnet",
                "install_args": ["tool", "install", "-g", "omnisharp"]
            }
        }
    )

    id: str = Field(..., description="Stable tool identifier")
    name: str = Field(..., description="Display name")
    description: str = Field(..., description="Why the tool matters")
    required: bool = Field(default=False, description="Absence blocks core functionality")
    category: ToolCategory = Field(..., description="Capability area the tool serves")
    install_method: InstallMethod = Field(..., description="Remediation strategy")

    # automatic
    install_command: Optional[str] = Field(None, description="Executable for automatic installs")
    install_args: List[str] = Field(default_factory=list, description="Argument vector for the install command")

    # guided / manual
    extension_id: Optional[str] = Field(None, description="Marketplace identifier for guided installs")
    download_url: Optional[str] = Field(None, description="Download page for manual installs")
    instructions: List[str] = Field(default_factory=list, description="Step-by-step instructions")

    @model_validator(mode="after")
    def validate_method_data(self) -> "MissingTool":
        """Ensure each install method carries the data it needs."""
        if self.install_method == InstallMethod.AUTOMATIC:
            if not self.install_command or not self.install_args:
                raise ValueError("Automatic installs need an install command and arguments")
        elif self.install_method == InstallMethod.GUIDED:
            if not self.extension_id and not self.instructions:
                raise ValueError("Guided installs need an extension id or instructions")
        elif not self.download_url and not self.instructions:
            raise ValueError("Manual installs need a download URL or instructions")
        return self

    @property
    def command_line(self) -> str:
        """Human-readable command for automatic installs."""
        return " ".join([self.install_command or ""] + list(self.install_args)).strip()
