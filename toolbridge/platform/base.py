"""
Platform service contract.

Everything the core knows about the operating system comes through this
interface. Every method is a suspension point.
"""

from abc import ABC, abstractmethod
from typing import List, Literal, Optional

from ..models.toolchain import (
    ToolchainInstallation,
    BuildEngineInfo,
    LanguageServiceInfo,
    DebuggerInfo,
    ProjectInfo,
    CommandResult,
)

PlatformName = Literal["windows", "mac", "linux"]


class LanguageServerProbe(ABC):
    """Optional capability: locate a standalone language server."""

    @abstractmethod
    async def find_language_server(self) -> Optional[str]:
        """Return the server executable path, or None when not installed."""


class ExtensionProbe(ABC):
    """Optional capability: report whether an editor extension is installed."""

    @abstractmethod
    async def is_extension_installed(self, extension_id: str) -> bool:
        ...


class PlatformService(ABC):
    """OS, filesystem and process probing used by providers and the installer.

    ``language_server_probe`` and ``extension_probe`` are optional extra
    capabilities. Implementations that cannot offer them leave them as None;
    callers check the attribute instead of probing for methods.
    """

    language_server_probe: Optional[LanguageServerProbe] = None
    extension_probe: Optional[ExtensionProbe] = None

    @abstractmethod
    async def find_toolchains(self) -> List[ToolchainInstallation]:
        ...

    @abstractmethod
    async def probe_build_engine(self, root: str) -> Optional[BuildEngineInfo]:
        ...

    @abstractmethod
    async def probe_language_service(self, root: str) -> Optional[LanguageServiceInfo]:
        ...

    @abstractmethod
    async def probe_debugger(self) -> Optional[DebuggerInfo]:
        ...

    @abstractmethod
    async def read_project_metadata(self, path: str) -> Optional[ProjectInfo]:
        ...

    @abstractmethod
    async def execute_command(self,
                              command: str,
                              args: List[str],
                              cwd: Optional[str] = None) -> CommandResult:
        """
        Run a command to completion.

        A non-zero exit is reported through ``CommandResult.exit_code``.
        Spawn failures (missing binary) raise.
        """

    @abstractmethod
    async def file_exists(self, path: str) -> bool:
        ...

    @abstractmethod
    async def directory_exists(self, path: str) -> bool:
        ...

    @abstractmethod
    async def read_file(self, path: str) -> str:
        ...

    @abstractmethod
    def current_platform(self) -> PlatformName:
        ...
