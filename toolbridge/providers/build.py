"""
MSBuild build provider.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional

from .base import BuildProvider
from ..errors import ProviderUnavailable
from ..models.toolchain import BuildEngineInfo, BuildResult, ProjectInfo, ToolchainInstallation
from ..platform.base import PlatformService


class MSBuildProvider(BuildProvider):
    """Runs build, clean and restore through MSBuild."""

    name = "msbuild"
    display_name = "MSBuild"

    def __init__(self,
                 platform: PlatformService,
                 custom_path: Optional[str] = None,
                 logger: Optional[logging.Logger] = None):
        self.platform = platform
        self.custom_path = custom_path
        self.logger = logger or logging.getLogger(__name__)
        self.engine: Optional[BuildEngineInfo] = None
        self.toolchain: Optional[ToolchainInstallation] = None

    async def is_available(self) -> bool:
        try:
            if self.custom_path and await self.platform.file_exists(self.custom_path):
                try:
                    result = await self.platform.execute_command(self.custom_path, ["-version"])
                    match = re.search(r"(\d+\.\d+\.\d+)", result.stdout)
                    self.engine = BuildEngineInfo(
                        path=self.custom_path,
                        version=match.group(1) if match else "unknown"
                    )
                    return True
                except OSError as e:
                    self.logger.warning(f"Custom MSBuild path unusable ({e}), falling back to toolchains")

            installations = await self.platform.find_toolchains()
            if not installations:
                return False

            latest = max(installations, key=lambda inst: inst.version_key)
            engine = await self.platform.probe_build_engine(latest.installation_path)
            if not engine:
                return False

            self.toolchain = latest
            self.engine = engine
            return True
        except Exception as e:
            self.logger.warning(f"Failed to check MSBuild availability: {e}")
            return False

    async def build(self,
                    project_path: str,
                    configuration: str = "Debug",
                    platform: str = "Any CPU") -> BuildResult:
        return await self._run(
            "Build", project_path,
            [f"/p:Configuration={configuration}", f"/p:Platform={platform}"]
        )

    async def clean(self, project_path: str) -> BuildResult:
        return await self._run("Clean", project_path, ["/t:Clean"])

    async def restore(self, project_path: str) -> BuildResult:
        return await self._run("Restore", project_path, ["/t:Restore"])

    async def project_info(self, project_path: str) -> Optional[ProjectInfo]:
        return await self.platform.read_project_metadata(project_path)

    async def _run(self, operation: str, project_path: str, extra_args: List[str]) -> BuildResult:
        if not self.engine:
            raise ProviderUnavailable(self.name, "call is_available() first")

        args = list(self.engine.leading_args) + [project_path] + extra_args + ["/v:minimal", "/nologo"]
        try:
            result = await self.platform.execute_command(
                self.engine.path,
                args,
                str(Path(project_path).parent)
            )
        except Exception as e:
            self.logger.error(f"{operation} failed to start: {e}")
            return BuildResult(success=False, errors=[f"{operation} failed: {e}"])

        combined = result.stderr + result.stdout
        errors = parse_errors(combined)
        if not result.ok and not errors and result.stderr.strip():
            errors = [result.stderr.strip()]

        return BuildResult(
            success=result.ok,
            output=result.stdout,
            errors=errors,
            warnings=parse_warnings(combined)
        )


def parse_errors(output: str) -> List[str]:
    """Collect MSBuild error lines (``file(line,col): error CS1234: message``)."""
    return [
        line.strip()
        for line in output.splitlines()
        if ": error " in line or "build failed" in line.lower()
    ]


def parse_warnings(output: str) -> List[str]:
    return [line.strip() for line in output.splitlines() if ": warning " in line]
