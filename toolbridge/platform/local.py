"""
Platform service backed by the local machine.
"""

import asyncio
import json
import logging
import os
import re
import shutil
import sys
from pathlib import Path
from typing import Dict, List, Optional

from .base import PlatformService, LanguageServerProbe, ExtensionProbe, PlatformName
from ..errors import ProbeFailed
from ..models.toolchain import (
    ToolchainInstallation,
    BuildEngineInfo,
    LanguageServiceInfo,
    DebuggerInfo,
    ProjectInfo,
    CommandResult,
)

MONO_PATHS = [
    "/usr/local/bin/mono",
    "/opt/homebrew/bin/mono",
    "/usr/bin/mono",
    "/Library/Frameworks/Mono.framework/Versions/Current/Commands/mono",
]

DOTNET_PATHS = [
    "/usr/local/share/dotnet/dotnet",
    "/usr/bin/dotnet",
    "/usr/local/bin/dotnet",
    "/opt/homebrew/bin/dotnet",
]

ROSLYN_RELATIVE_PATH = (
    "Common7/IDE/CommonExtensions/Microsoft/ManagedLanguages/VBCSharp/"
    "LanguageServer/Microsoft.CodeAnalysis.LanguageServer.exe"
)

FRAMEWORK_MONIKERS = [
    "net20", "net35", "net40", "net45", "net451", "net452",
    "net46", "net461", "net462", "net47", "net471", "net472", "net48"
]


class OmniSharpLocator(LanguageServerProbe):
    """Finds a standalone OmniSharp install (global dotnet tool or package manager)."""

    def __init__(self, platform: PlatformService):
        self.platform = platform

    def _candidates(self) -> List[str]:
        exe = "omnisharp.exe" if self.platform.current_platform() == "windows" else "omnisharp"
        candidates = [str(Path.home() / ".dotnet" / "tools" / exe)]
        on_path = shutil.which("omnisharp")
        if on_path:
            candidates.append(on_path)
        candidates.extend(["/usr/local/bin/omnisharp", "/opt/homebrew/bin/omnisharp"])
        return candidates

    async def find_language_server(self) -> Optional[str]:
        for candidate in self._candidates():
            if await self.platform.file_exists(candidate):
                return candidate
        return None


class EditorExtensionProbe(ExtensionProbe):
    """Looks for installed editor extensions in the usual extension directories."""

    def __init__(self, extension_dirs: Optional[List[Path]] = None):
        if extension_dirs is None:
            home = Path.home()
            extension_dirs = [
                home / ".vscode" / "extensions",
                home / ".vscode-oss" / "extensions",
                home / ".vscode-server" / "extensions",
            ]
        self.extension_dirs = extension_dirs

    async def is_extension_installed(self, extension_id: str) -> bool:
        prefix = f"{extension_id.lower()}-"
        for directory in self.extension_dirs:
            if not directory.is_dir():
                continue
            for entry in directory.iterdir():
                if entry.is_dir() and entry.name.lower().startswith(prefix):
                    return True
        return False


class LocalPlatformService(PlatformService):
    """Probes the machine this process runs on."""

    def __init__(self,
                 command_timeout: Optional[float] = None,
                 extension_probe: Optional[ExtensionProbe] = None):
        """
        Initialize the platform service.

        Args:
            command_timeout: Seconds before a command is killed (None waits forever)
            extension_probe: Override for editor extension detection
        """
        self.logger = logging.getLogger(__name__)
        self.command_timeout = command_timeout
        self.language_server_probe = OmniSharpLocator(self)
        self.extension_probe = extension_probe or EditorExtensionProbe()

    def current_platform(self) -> PlatformName:
        if sys.platform.startswith("win"):
            return "windows"
        if sys.platform == "darwin":
            return "mac"
        return "linux"

    async def execute_command(self,
                              command: str,
                              args: List[str],
                              cwd: Optional[str] = None) -> CommandResult:
        self.logger.debug(f"Executing: {command} {' '.join(args)}")
        process = await asyncio.create_subprocess_exec(
            command, *args,
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self.command_timeout
            )
        except asyncio.TimeoutError:
            self._kill(process)
            return CommandResult(
                stdout="",
                stderr=f"Command timed out after {self.command_timeout} seconds",
                exit_code=124
            )
        except asyncio.CancelledError:
            self._kill(process)
            raise

        return CommandResult(
            stdout=stdout.decode(errors="replace") if stdout else "",
            stderr=stderr.decode(errors="replace") if stderr else "",
            exit_code=process.returncode if process.returncode is not None else 1
        )

    def _kill(self, process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass

    async def file_exists(self, path: str) -> bool:
        return Path(path).is_file()

    async def directory_exists(self, path: str) -> bool:
        return Path(path).is_dir()

    async def read_file(self, path: str) -> str:
        return Path(path).read_text(encoding="utf-8", errors="replace")

    async def find_toolchains(self) -> List[ToolchainInstallation]:
        if self.current_platform() == "windows":
            return await self._find_visual_studio()
        return await self._find_dotnet_sdks()

    async def _find_visual_studio(self) -> List[ToolchainInstallation]:
        program_files = os.environ.get("ProgramFiles(x86)", r"C:\Program Files (x86)")
        vswhere = str(Path(program_files) / "Microsoft Visual Studio" / "Installer" / "vswhere.exe")
        if not await self.file_exists(vswhere):
            self.logger.info("vswhere.exe not found; no Visual Studio installations")
            return []

        result = await self.execute_command(
            vswhere, ["-all", "-prerelease", "-format", "json", "-utf8"]
        )
        if not result.ok:
            raise ProbeFailed("vswhere", result.stderr.strip() or f"exit code {result.exit_code}")

        try:
            entries = json.loads(result.stdout or "[]")
        except json.JSONDecodeError as e:
            raise ProbeFailed("vswhere", f"invalid JSON output: {e}")

        return [
            ToolchainInstallation(
                version=entry.get("installationVersion", "0"),
                display_name=entry.get("displayName", "Visual Studio"),
                installation_path=entry.get("installationPath", ""),
                product_path=entry.get("productPath", ""),
                is_prerelease=bool(entry.get("isPrerelease", False))
            )
            for entry in entries
        ]

    async def _find_dotnet_sdks(self) -> List[ToolchainInstallation]:
        installations: List[ToolchainInstallation] = []
        dotnet = await self._find_dotnet()
        if dotnet:
            result = await self.execute_command(dotnet, ["--list-sdks"])
            latest_by_major: Dict[str, tuple] = {}
            for line in result.stdout.splitlines():
                match = re.match(r"\s*(\d+)\.(\S+)\s+\[(.+)\]", line)
                if not match:
                    continue
                major = match.group(1)
                version = f"{major}.{match.group(2)}"
                current = latest_by_major.get(major)
                if current is None or _version_tuple(version) > _version_tuple(current[0]):
                    latest_by_major[major] = (version, match.group(3))

            for major, (version, sdk_root) in sorted(latest_by_major.items()):
                installations.append(ToolchainInstallation(
                    version=f"{major}.0.0",
                    display_name=f".NET {major} SDK",
                    installation_path=str(Path(sdk_root) / version),
                    product_path=dotnet
                ))

        if not installations:
            mono = await self._find_mono()
            if mono:
                installations.append(ToolchainInstallation(
                    version="1.0.0",
                    display_name="Mono (.NET Framework)",
                    installation_path=str(Path(mono).parent.parent),
                    product_path=mono
                ))
        return installations

    async def probe_build_engine(self, root: str) -> Optional[BuildEngineInfo]:
        if self.current_platform() == "windows":
            for relative in ("MSBuild/Current/Bin/MSBuild.exe", "MSBuild/15.0/Bin/MSBuild.exe"):
                candidate = str(Path(root) / relative)
                if await self.file_exists(candidate):
                    result = await self.execute_command(candidate, ["-version", "-nologo"])
                    lines = result.stdout.strip().splitlines()
                    version = lines[-1].strip() if result.ok and lines else "unknown"
                    return BuildEngineInfo(path=candidate, version=version)
            return None

        dotnet = await self._find_dotnet()
        if dotnet:
            result = await self.execute_command(dotnet, ["--version"])
            version = result.stdout.strip() if result.ok else "unknown"
            return BuildEngineInfo(path=dotnet, version=version, leading_args=["msbuild"])

        mono = await self._find_mono()
        if mono:
            msbuild = str(Path(mono).parent / "msbuild")
            if await self.file_exists(msbuild):
                return BuildEngineInfo(path=msbuild, version="Mono MSBuild")
        return None

    async def probe_language_service(self, root: str) -> Optional[LanguageServiceInfo]:
        # The bundled Roslyn server only ships with Visual Studio on Windows
        if self.current_platform() != "windows":
            return None
        candidate = str(Path(root) / ROSLYN_RELATIVE_PATH)
        if not await self.file_exists(candidate):
            return None
        return LanguageServiceInfo(
            path=candidate,
            version="unknown",
            supported_frameworks=list(FRAMEWORK_MONIKERS)
        )

    async def probe_debugger(self) -> Optional[DebuggerInfo]:
        mono = await self._find_mono()
        if mono:
            try:
                result = await self.execute_command(mono, ["--version"])
            except OSError as e:
                self.logger.warning(f"Could not query mono version: {e}")
                return DebuggerInfo(path=mono, type="mono")
            match = re.search(r"Mono JIT compiler version (\S+)", result.stdout)
            return DebuggerInfo(path=mono, type="mono", version=match.group(1) if match else "unknown")

        dotnet = await self._find_dotnet()
        if dotnet:
            return DebuggerInfo(path=dotnet, type="dotnet", version="built-in")
        return None

    async def read_project_metadata(self, path: str) -> Optional[ProjectInfo]:
        try:
            content = await self.read_file(path)
        except OSError as e:
            self.logger.warning(f"Could not read project file {path}: {e}")
            return None
        return parse_project_metadata(path, content)

    async def _find_mono(self) -> Optional[str]:
        for candidate in MONO_PATHS:
            if await self.file_exists(candidate):
                return candidate
        return shutil.which("mono")

    async def _find_dotnet(self) -> Optional[str]:
        if self.current_platform() == "windows":
            candidates = [
                str(Path(os.environ.get(var, "")) / "dotnet" / "dotnet.exe")
                for var in ("ProgramFiles", "ProgramFiles(x86)")
                if os.environ.get(var)
            ]
        else:
            candidates = DOTNET_PATHS
        for candidate in candidates:
            if await self.file_exists(candidate):
                return candidate
        return shutil.which("dotnet")


def parse_project_metadata(path: str, content: str) -> ProjectInfo:
    """Extract target framework, output type and references from a project file."""
    framework = re.search(
        r"<TargetFramework(?:Version)?>\s*([^<]+?)\s*</TargetFramework(?:Version)?>",
        content, re.IGNORECASE
    )
    output_type = re.search(r"<OutputType>\s*([^<]+?)\s*</OutputType>", content, re.IGNORECASE)
    references = re.findall(r'<Reference\s+Include="([^"]+)"', content, re.IGNORECASE)
    references += re.findall(r'<PackageReference\s+Include="([^"]+)"', content, re.IGNORECASE)

    return ProjectInfo(
        path=path,
        target_framework=framework.group(1) if framework else "net48",
        output_type=output_type.group(1) if output_type else "Library",
        references=references
    )


def _version_tuple(version: str) -> tuple:
    return tuple(int(part) if part.isdigit() else 0 for part in re.split(r"[.\-]", version))
