"""
Missing-tool classification.
"""

import logging
import os
from pathlib import Path
from typing import Awaitable, List, Optional, TypeVar

from . import catalog
from ..errors import ProbeFailed
from ..models.tool import CapabilityKind, MissingTool
from ..platform.base import PlatformService
from ..platform.local import DOTNET_PATHS, MONO_PATHS
from ..providers.registry import ProviderRegistry

T = TypeVar("T")

_UNSET = object()


class MissingToolClassifier:
    """
    Produces the ordered list of absent tools for the current environment.

    Checks run in a fixed order so the output is stable for an unchanged
    environment:

    1. base runtime (.NET SDK) - the only required tool
    2. language support, skipped entirely when a language provider is active
    3. editor extensions, then the standalone server as an automatic fallback
    4. mono, on non-Windows platforms only
    """

    def __init__(self,
                 platform: PlatformService,
                 registry: ProviderRegistry,
                 logger: Optional[logging.Logger] = None):
        self.platform = platform
        self.registry = registry
        self.logger = logger or logging.getLogger(__name__)
        self._runtime_path = _UNSET

    async def scan(self) -> List[MissingTool]:
        self._runtime_path = _UNSET
        missing: List[MissingTool] = []
        platform = self.platform.current_platform()

        dotnet_path = await self.find_base_runtime()
        if not dotnet_path:
            missing.append(catalog.dotnet_sdk())

        active_language = self.registry.active(CapabilityKind.LANGUAGE)
        if active_language is not None:
            self.logger.info(
                f"Language provider '{active_language.name}' is active, skipping language checks"
            )
        elif not await self._extension_installed():
            missing.extend(catalog.language_extensions())
            # Last resort needs the SDK to run `dotnet tool install`
            if dotnet_path and not await self._standalone_server_installed(dotnet_path):
                missing.append(catalog.omnisharp_standalone(dotnet_path))

        if platform != "windows" and not await self._find_mono():
            missing.append(catalog.mono(platform))

        self.logger.info(f"Found {len(missing)} missing tools: {[tool.id for tool in missing]}")
        return missing

    async def find_base_runtime(self) -> Optional[str]:
        """Locate the dotnet CLI; cached for the duration of one scan."""
        if self._runtime_path is not _UNSET:
            return self._runtime_path

        self._runtime_path = await self._locate_dotnet()
        return self._runtime_path

    async def _locate_dotnet(self) -> Optional[str]:
        windows = self.platform.current_platform() == "windows"
        if windows:
            candidates = [
                str(Path(os.environ[var]) / "dotnet" / "dotnet.exe")
                for var in ("ProgramFiles", "ProgramFiles(x86)")
                if os.environ.get(var)
            ]
        else:
            candidates = DOTNET_PATHS

        for candidate in candidates:
            if await self._probe("file_exists", self.platform.file_exists(candidate), False):
                self.logger.info(f"Found dotnet CLI at: {candidate}")
                return candidate

        self.logger.debug("Checking for dotnet CLI in PATH...")
        version = await self._probe(
            "dotnet --version", self.platform.execute_command("dotnet", ["--version"]), None
        )
        if version is None or not version.ok:
            self.logger.info("dotnet CLI not found in common paths or PATH")
            return None

        locator = "where" if windows else "which"
        located = await self._probe(locator, self.platform.execute_command(locator, ["dotnet"]), None)
        if located is not None and located.ok and located.stdout.strip():
            # `where` may print several matches
            path = located.stdout.strip().splitlines()[0].strip()
            if await self._probe("file_exists", self.platform.file_exists(path), False):
                self.logger.info(f"Found dotnet CLI via {locator}: {path}")
                return path

        self.logger.info(f"dotnet is on PATH but {locator} could not resolve it")
        return "dotnet"

    async def _extension_installed(self) -> bool:
        probe = self.platform.extension_probe
        if probe is None:
            return False
        for extension_id in catalog.PREFERRED_EXTENSIONS:
            if await self._probe("extension", probe.is_extension_installed(extension_id), False):
                self.logger.info(f"Language extension '{extension_id}' is installed")
                return True
        return False

    async def _standalone_server_installed(self, dotnet_path: str) -> bool:
        probe = self.platform.language_server_probe
        if probe is not None:
            return bool(await self._probe("language server", probe.find_language_server(), None))

        result = await self._probe(
            "dotnet tool list",
            self.platform.execute_command(dotnet_path, ["tool", "list", "-g"]),
            None
        )
        return result is not None and "omnisharp" in result.stdout.lower()

    async def _find_mono(self) -> Optional[str]:
        for candidate in MONO_PATHS:
            if await self._probe("file_exists", self.platform.file_exists(candidate), False):
                return candidate
        return None

    async def _probe(self, name: str, call: Awaitable[T], default: T) -> T:
        """Await a platform call, treating a raised error as a negative answer."""
        try:
            return await call
        except Exception as e:
            self.logger.warning(str(ProbeFailed(name, str(e))))
            return default
