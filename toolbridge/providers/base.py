"""
Provider contracts for the three capability kinds.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models.toolchain import BuildResult, DebuggerInfo, ProjectInfo


class Provider(ABC):
    """One named implementation of a capability kind.

    ``activate`` and ``deactivate`` are lifecycle hooks the registry calls
    when the provider enters or leaves the active slot. Stateless providers
    keep the no-op defaults.
    """

    name: str = ""
    display_name: str = ""

    @abstractmethod
    async def is_available(self) -> bool:
        """Probe whether the provider can serve its capability right now."""

    async def activate(self) -> None:
        return None

    async def deactivate(self) -> None:
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class LanguageProvider(Provider):
    """Language-analysis service backed by an external server process."""

    supported_frameworks: List[str] = []

    @abstractmethod
    async def activate(self) -> None:
        ...

    @abstractmethod
    async def deactivate(self) -> None:
        ...

    @abstractmethod
    async def restart(self) -> None:
        ...


class BuildProvider(Provider):
    """Build engine wrapper."""

    @abstractmethod
    async def build(self,
                    project_path: str,
                    configuration: str = "Debug",
                    platform: str = "Any CPU") -> BuildResult:
        ...

    @abstractmethod
    async def clean(self, project_path: str) -> BuildResult:
        ...

    @abstractmethod
    async def restore(self, project_path: str) -> BuildResult:
        ...

    @abstractmethod
    async def project_info(self, project_path: str) -> Optional[ProjectInfo]:
        ...


class DebugProvider(Provider):
    """Debugger runtime wrapper."""

    @abstractmethod
    async def debugger_info(self) -> Optional[DebuggerInfo]:
        ...

    @abstractmethod
    async def create_debug_configuration(self, project_path: str) -> Dict[str, Any]:
        ...

    @abstractmethod
    def supports_framework(self, framework: str) -> bool:
        ...
