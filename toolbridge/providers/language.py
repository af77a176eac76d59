"""
Language server providers (Roslyn and OmniSharp).

Both launch the server as a child process speaking LSP over stdio and
supervise it until deactivation.
"""

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .base import LanguageProvider
from ..errors import ActivationFailed, ProviderUnavailable
from ..models.toolchain import LanguageServiceInfo, ToolchainInstallation
from ..platform.base import PlatformService
from ..platform.local import FRAMEWORK_MONIKERS


class LanguageServerProcess:
    """A supervised language server child process."""

    def __init__(self,
                 name: str,
                 command: str,
                 args: List[str],
                 env: Optional[Dict[str, str]] = None,
                 startup_grace: float = 0.5,
                 stop_timeout: float = 5.0):
        self.logger = logging.getLogger(__name__)
        self.name = name
        self.command = command
        self.args = args
        self.env = env
        self.startup_grace = startup_grace
        self.stop_timeout = stop_timeout
        self.process: Optional[asyncio.subprocess.Process] = None
        self._drain_task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self.process is not None and self.process.returncode is None

    @property
    def transport(self) -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        """
        stdout/stdin pair for the host's LSP client.

        Until a client takes the transport, server output is drained into the
        debug log so a full pipe cannot stall the server.
        """
        if not self.running:
            raise ProviderUnavailable(self.name, "server is not running")
        self._stop_draining()
        return self.process.stdout, self.process.stdin

    async def start(self) -> None:
        """Spawn the server and make sure it survives the startup grace period."""
        self.logger.info(f"Starting {self.name}: {self.command} {' '.join(self.args)}")
        try:
            self.process = await asyncio.create_subprocess_exec(
                self.command, *self.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
                env=self.env
            )
        except OSError as e:
            raise ActivationFailed(self.name, str(e))

        try:
            await asyncio.wait_for(self.process.wait(), timeout=self.startup_grace)
        except asyncio.TimeoutError:
            self.logger.info(f"{self.name} started (pid {self.process.pid})")
            self._drain_task = asyncio.ensure_future(self._drain(self.process.stdout))
            return

        exit_code = self.process.returncode
        self.process = None
        raise ActivationFailed(self.name, f"server exited during startup with code {exit_code}")

    async def stop(self) -> None:
        """Terminate the server, killing it if it ignores the request."""
        self._stop_draining()
        if not self.running:
            self.process = None
            return

        self.logger.info(f"Stopping {self.name} (pid {self.process.pid})")
        self.process.terminate()
        try:
            await asyncio.wait_for(self.process.wait(), timeout=self.stop_timeout)
        except asyncio.TimeoutError:
            self.logger.warning(f"{self.name} did not stop after {self.stop_timeout}s, killing")
            self.process.kill()
            await self.process.wait()
        finally:
            self.process = None

    async def _drain(self, stream: asyncio.StreamReader) -> None:
        while True:
            chunk = await stream.read(65536)
            if not chunk:
                return
            self.logger.debug(f"{self.name}: {chunk.decode(errors='replace').rstrip()}")

    def _stop_draining(self) -> None:
        if self._drain_task is not None:
            self._drain_task.cancel()
            self._drain_task = None


class LanguageServerProvider(LanguageProvider):
    """Shared lifecycle for providers that run a language server process."""

    supported_frameworks = list(FRAMEWORK_MONIKERS)

    def __init__(self,
                 platform: PlatformService,
                 startup_grace: float = 0.5,
                 logger: Optional[logging.Logger] = None):
        self.platform = platform
        self.startup_grace = startup_grace
        self.logger = logger or logging.getLogger(__name__)
        self.server: Optional[LanguageServerProcess] = None

    def server_command(self) -> Tuple[str, List[str], Optional[Dict[str, str]]]:
        """Return (executable, arguments, environment) for the server."""
        raise NotImplementedError

    @property
    def running(self) -> bool:
        return self.server is not None and self.server.running

    async def activate(self) -> None:
        if self.server is not None:
            await self.deactivate()

        command, args, env = self.server_command()
        server = LanguageServerProcess(
            self.display_name, command, args, env,
            startup_grace=self.startup_grace
        )
        await server.start()
        self.server = server
        self.logger.info(f"{self.display_name} started successfully")

    async def deactivate(self) -> None:
        if self.server is not None:
            server, self.server = self.server, None
            await server.stop()
            self.logger.info(f"{self.display_name} stopped")

    async def restart(self) -> None:
        self.logger.info(f"Restarting {self.display_name}...")
        await self.deactivate()
        await self.activate()


class RoslynProvider(LanguageServerProvider):
    """Roslyn language server bundled with a Visual Studio installation."""

    name = "roslyn"
    display_name = "Roslyn Language Server"

    def __init__(self,
                 platform: PlatformService,
                 preferred_version: str = "latest",
                 log_directory: Optional[Path] = None,
                 startup_grace: float = 0.5,
                 logger: Optional[logging.Logger] = None):
        super().__init__(platform, startup_grace=startup_grace, logger=logger)
        self.preferred_version = preferred_version
        self.log_directory = log_directory or Path(tempfile.gettempdir()) / "toolbridge" / "logs"
        self.toolchain: Optional[ToolchainInstallation] = None
        self.service_info: Optional[LanguageServiceInfo] = None

    async def is_available(self) -> bool:
        try:
            installations = await self.platform.find_toolchains()
            if not installations:
                self.logger.info("No toolchain installations found")
                return False

            preferred = self.select_preferred_installation(installations)
            service_info = await self.platform.probe_language_service(preferred.installation_path)
            if not service_info:
                self.logger.info(f"Roslyn not found in {preferred.display_name}")
                return False

            self.toolchain = preferred
            self.service_info = service_info
            return True
        except Exception as e:
            self.logger.warning(f"Failed to check Roslyn availability: {e}")
            return False

    def select_preferred_installation(self,
                                      installations: List[ToolchainInstallation]) -> ToolchainInstallation:
        """Pick the installation matching ``preferred_version`` (``latest`` = newest)."""
        if self.preferred_version == "latest":
            return max(installations, key=lambda inst: inst.version_key)

        wanted = self.preferred_version.lower()
        for inst in installations:
            if wanted in inst.display_name.lower() or inst.version.startswith(self.preferred_version):
                return inst
        return installations[0]

    def server_command(self) -> Tuple[str, List[str], Optional[Dict[str, str]]]:
        if not self.service_info:
            raise ProviderUnavailable(self.name, "call is_available() first")

        self.log_directory.mkdir(parents=True, exist_ok=True)
        args = [
            "--logLevel", "Information",
            "--extensionLogDirectory", str(self.log_directory)
        ]
        env = dict(os.environ)
        # Keep the server on the .NET Framework runtime
        env["DOTNET_ROLL_FORWARD"] = "Disable"
        env["DOTNET_FRAMEWORK_VERSION"] = "4.8"
        return self.service_info.path, args, env


OMNISHARP_COMMON_PATHS = [
    "/usr/local/bin/omnisharp",
    "/opt/homebrew/bin/omnisharp",
    "/usr/bin/omnisharp",
]


class OmniSharpProvider(LanguageServerProvider):
    """Standalone OmniSharp language server."""

    name = "omnisharp"
    display_name = "OmniSharp Language Server"

    def __init__(self,
                 platform: PlatformService,
                 custom_path: Optional[str] = None,
                 startup_grace: float = 0.5,
                 logger: Optional[logging.Logger] = None):
        super().__init__(platform, startup_grace=startup_grace, logger=logger)
        self.custom_path = custom_path
        self.server_path: Optional[str] = None

    async def is_available(self) -> bool:
        try:
            if self.custom_path and await self.platform.file_exists(self.custom_path):
                self.server_path = self.custom_path
                self.logger.info(f"Using custom OmniSharp path: {self.custom_path}")
                return True

            probe = self.platform.language_server_probe
            if probe is not None:
                found = await probe.find_language_server()
                if found:
                    self.server_path = found
                    self.logger.info(f"Found OmniSharp at: {found}")
                    return True

            for candidate in OMNISHARP_COMMON_PATHS:
                if await self.platform.file_exists(candidate):
                    self.server_path = candidate
                    self.logger.info(f"Found OmniSharp at: {candidate}")
                    return True

            self.logger.info(
                "OmniSharp not found. Install it as a global .NET tool: dotnet tool install -g omnisharp"
            )
            return False
        except Exception as e:
            self.logger.warning(f"Failed to check OmniSharp availability: {e}")
            return False

    def server_command(self) -> Tuple[str, List[str], Optional[Dict[str, str]]]:
        if not self.server_path:
            raise ProviderUnavailable(self.name, "call is_available() first")
        return self.server_path, ["--languageserver", "--hostPID", str(os.getpid())], None
