"""
Mono debugger provider.
"""

import logging
import re
from pathlib import PurePath
from typing import Any, Dict, Optional

from .base import DebugProvider
from ..errors import ProviderUnavailable
from ..models.toolchain import DebuggerInfo
from ..platform.base import PlatformService
from ..platform.local import FRAMEWORK_MONIKERS

ATTACH_PORT = 55555


class MonoDebugProvider(DebugProvider):
    """Debug configurations for the Mono soft debugger."""

    name = "mono"
    display_name = "Mono Debugger"

    def __init__(self, platform: PlatformService, logger: Optional[logging.Logger] = None):
        self.platform = platform
        self.logger = logger or logging.getLogger(__name__)
        self.info: Optional[DebuggerInfo] = None

    async def is_available(self) -> bool:
        try:
            info = await self.platform.probe_debugger()
        except Exception as e:
            self.logger.warning(f"Failed to probe for the mono debugger: {e}")
            return False
        if info and info.type == "mono":
            self.info = info
            return True
        return False

    async def debugger_info(self) -> Optional[DebuggerInfo]:
        if not self.info and not await self.is_available():
            return None
        return self.info

    async def create_debug_configuration(self, project_path: str) -> Dict[str, Any]:
        """
        Build a launch configuration for executables, attach otherwise.

        Raises:
            ProviderUnavailable: if the project metadata cannot be read
        """
        project = await self.platform.read_project_metadata(project_path)
        if not project:
            raise ProviderUnavailable(self.name, f"could not load project information for {project_path}")

        project_name = re.sub(r"\.csproj$", "", PurePath(project_path.replace("\\", "/")).name) or "Program"

        if project.output_type.lower() == "exe":
            return {
                "name": f"Debug {project_name}",
                "type": "mono",
                "request": "launch",
                "program": "${workspaceFolder}/bin/Debug/" + project_name + ".exe",
                "args": [],
                "cwd": "${workspaceFolder}",
                "stopAtEntry": False,
                "console": "internalConsole"
            }

        return {
            "name": f"Attach to {project_name}",
            "type": "mono",
            "request": "attach",
            "address": "localhost",
            "port": ATTACH_PORT
        }

    def supports_framework(self, framework: str) -> bool:
        return framework.lower() in FRAMEWORK_MONIKERS
