"""
Mock platform service for demo runs without any toolchain installed.
"""

import asyncio
import logging
from typing import List, Optional

from .base import PlatformService, LanguageServerProbe, PlatformName
from .local import parse_project_metadata
from ..models.toolchain import (
    ToolchainInstallation,
    BuildEngineInfo,
    LanguageServiceInfo,
    DebuggerInfo,
    ProjectInfo,
    CommandResult,
)

SAMPLE_PROJECT = """<?xml version="1.0" encoding="utf-8"?>
<Project ToolsVersion="15.0" xmlns="http://schemas.microsoft.com/developer/msbuild/2003">
  <PropertyGroup>
    <TargetFrameworkVersion>v4.8</TargetFrameworkVersion>
    <OutputType>Exe</OutputType>
  </PropertyGroup>
  <ItemGroup>
    <Reference Include="System" />
    <Reference Include="System.Core" />
    <Reference Include="Microsoft.CSharp" />
  </ItemGroup>
</Project>"""


class _MockLanguageServerProbe(LanguageServerProbe):
    async def find_language_server(self) -> Optional[str]:
        return None


class MockPlatformService(PlatformService):
    """Mock platform with two fake Visual Studio installations and a mono debugger."""

    def __init__(self, platform: PlatformName = "mac", delay: float = 0.0):
        self.logger = logging.getLogger(__name__)
        self.logger.info("Using mock platform service")
        self.platform = platform
        self.delay = delay
        self.language_server_probe = _MockLanguageServerProbe()
        self.installations = [
            ToolchainInstallation(
                version="17.8.3",
                display_name="Visual Studio Professional 2022",
                installation_path="/mock/vs2022/professional",
                product_path="/mock/vs2022/professional/Common7/IDE/devenv.exe"
            ),
            ToolchainInstallation(
                version="16.11.34",
                display_name="Visual Studio Professional 2019",
                installation_path="/mock/vs2019/professional",
                product_path="/mock/vs2019/professional/Common7/IDE/devenv.exe"
            ),
        ]
        self.existing_files = {
            "/mock/vs2022/professional/MSBuild/Current/Bin/MSBuild.exe",
            "/mock/mono/bin/mono",
            "/usr/local/share/dotnet/dotnet",
        }

    async def _pause(self) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)

    def current_platform(self) -> PlatformName:
        return self.platform

    async def find_toolchains(self) -> List[ToolchainInstallation]:
        await self._pause()
        return list(self.installations)

    async def probe_build_engine(self, root: str) -> Optional[BuildEngineInfo]:
        await self._pause()
        if "vs2022" in root:
            return BuildEngineInfo(path=f"{root}/MSBuild/Current/Bin/MSBuild.exe", version="17.8.3")
        if "vs2019" in root:
            return BuildEngineInfo(path=f"{root}/MSBuild/16.0/Bin/MSBuild.exe", version="16.11.34")
        return None

    async def probe_language_service(self, root: str) -> Optional[LanguageServiceInfo]:
        await self._pause()
        return None

    async def probe_debugger(self) -> Optional[DebuggerInfo]:
        await self._pause()
        return DebuggerInfo(path="/mock/mono/bin/mono", type="mono", version="6.12.0")

    async def read_project_metadata(self, path: str) -> Optional[ProjectInfo]:
        await self._pause()
        if not path.endswith(".csproj"):
            return None
        return parse_project_metadata(path, SAMPLE_PROJECT)

    async def execute_command(self,
                              command: str,
                              args: List[str],
                              cwd: Optional[str] = None) -> CommandResult:
        await self._pause()
        self.logger.info(f"[mock] {command} {' '.join(args)}")
        if command.endswith("MSBuild.exe"):
            if "-version" in args:
                return CommandResult(stdout="17.8.3.51904")
            return CommandResult(stdout="Build succeeded.\n    0 Warning(s)\n    0 Error(s)")
        if command.endswith("dotnet"):
            if args == ["--version"]:
                return CommandResult(stdout="8.0.100")
            if args[:2] == ["tool", "list"]:
                return CommandResult(stdout="Package Id      Version      Commands\n")
            if args[:2] == ["tool", "install"]:
                return CommandResult(stdout=f"Tool '{args[-1]}' was successfully installed.")
        return CommandResult(stderr="Mock command not implemented", exit_code=1)

    async def file_exists(self, path: str) -> bool:
        await self._pause()
        return path in self.existing_files

    async def directory_exists(self, path: str) -> bool:
        await self._pause()
        return any(inst.installation_path == path for inst in self.installations)

    async def read_file(self, path: str) -> str:
        await self._pause()
        if path.endswith(".csproj"):
            return SAMPLE_PROJECT
        raise FileNotFoundError(f"Mock file not found: {path}")
