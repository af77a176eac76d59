"""
Configuration settings for the Development Tools Bridge.
"""

from typing import List, Optional
from pathlib import Path
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderConfig(BaseModel):
    """Provider priority lists, most preferred first."""
    language_priority: List[str] = Field(default_factory=lambda: ["roslyn", "omnisharp"])
    build_priority: List[str] = Field(default_factory=lambda: ["msbuild"])
    debug_priority: List[str] = Field(default_factory=lambda: ["mono"])


class ToolPathsConfig(BaseModel):
    """User overrides for tool locations."""
    custom_msbuild_path: Optional[Path] = Field(None, description="MSBuild executable to use instead of discovery")
    custom_omnisharp_path: Optional[Path] = Field(None, description="OmniSharp executable to use instead of discovery")
    preferred_toolchain_version: str = Field(
        default="latest",
        description="Toolchain version or display-name fragment; 'latest' picks the newest"
    )


class InstallerConfig(BaseModel):
    """Installation assistant behaviour."""
    command_timeout_seconds: Optional[float] = Field(
        default=600.0,
        description="Kill install and probe commands after this many seconds (None waits forever)"
    )
    offer_restart: bool = Field(default=True, description="Offer a language server restart after installs")
    assume_yes: bool = Field(default=False, description="Answer every prompt with its first option")

    @field_validator("command_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v):
        if v is not None and v <= 0:
            raise ValueError("command_timeout_seconds must be positive")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
        description="Log format"
    )
    file_path: Optional[Path] = Field(default=Path("logs/toolbridge.log"))
    max_file_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(default=5, description="Number of log backups to keep")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v):
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown logging level: {v}")
        return level


class Settings(BaseSettings):
    """Main application settings (environment variables prefixed TOOLBRIDGE_)."""
    model_config = SettingsConfigDict(
        env_prefix="TOOLBRIDGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore"
    )

    providers: ProviderConfig = Field(default_factory=ProviderConfig)
    tool_paths: ToolPathsConfig = Field(default_factory=ToolPathsConfig)
    installer: InstallerConfig = Field(default_factory=InstallerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Operational settings
    mock_platform: bool = Field(default=False, description="Use the mock platform service")
