"""
Installation orchestrator - turns missing tools into installs or user guidance.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from ..errors import InstallCancelled, InstallCommandFailed
from ..integrations.notifier import CancellationToken, Notifier, PickItem
from ..models.installation import InstallOutcome, InstallResult
from ..models.tool import CapabilityKind, InstallMethod, MissingTool
from ..models.toolchain import CommandResult
from ..platform.base import PlatformService
from ..providers.registry import ProviderRegistry

INSTALL_REQUIRED = "Install Required Tools"
VIEW_INSTRUCTIONS = "View Instructions"
SKIP = "Skip"
VIEW_OTHER_OPTIONAL = "View Other Optional Tools"
SKIP_ALL_OPTIONAL = "Skip All Optional"
RESTART_LANGUAGE_SERVER = "Restart Language Server"
VIEW_OUTPUT = "View Output"
VIEW_LOGS = "View Logs"
MANUAL_INSTRUCTIONS = "Manual Instructions"
COPY_INSTRUCTIONS = "Copy Instructions"
OPEN_DOWNLOAD_PAGE = "Open Download Page"


class InstallationOrchestrator:
    """Drives remediation of missing tools without ever raising into the host."""

    def __init__(self,
                 platform: PlatformService,
                 notifier: Notifier,
                 registry: ProviderRegistry,
                 offer_restart: bool = True,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the orchestrator.

        Args:
            platform: Runs automatic install commands
            notifier: User-interaction surfaces
            registry: Restarted on request after a successful install
            offer_restart: Offer a language server restart after installs
            logger: Log sink (doubles as the output channel)
        """
        self.platform = platform
        self.notifier = notifier
        self.registry = registry
        self.offer_restart = offer_restart
        self.logger = logger or logging.getLogger(__name__)

    async def prompt_for_remediation(self, tools: List[MissingTool]) -> List[InstallResult]:
        """
        Ask the user what to do about missing tools.

        Required tools always get an explicit install / instructions / skip
        choice. Optional tools get a lighter prompt offering the first one,
        with an escape hatch to the rest.

        Returns:
            Results of every install attempted during the prompt
        """
        results: List[InstallResult] = []
        if not tools:
            await self._ask(self.notifier.show_information, "All .NET tools are properly configured!")
            return results

        required = [tool for tool in tools if tool.required]
        optional = [tool for tool in tools if not tool.required]

        if required:
            names = ", ".join(tool.name for tool in required)
            action = await self._ask(
                self.notifier.show_warning,
                f"Missing required tools: {names}",
                INSTALL_REQUIRED, VIEW_INSTRUCTIONS, SKIP
            )
            if action == INSTALL_REQUIRED:
                results.extend(await self.install_many(required))
            elif action == VIEW_INSTRUCTIONS:
                await self.show_installation_instructions(required)

        if optional:
            tool = optional[0]
            install_action = f"Install {tool.name}"
            if len(optional) == 1:
                action = await self._ask(
                    self.notifier.show_information,
                    f"The optional tool '{tool.name}' ({tool.description}) can improve your experience.",
                    install_action, VIEW_INSTRUCTIONS, SKIP
                )
            else:
                others = len(optional) - 1
                action = await self._ask(
                    self.notifier.show_information,
                    f"The optional tool '{tool.name}' ({tool.description}) is available. "
                    f"There {'is' if others == 1 else 'are'} {others} other optional tool(s) available too.",
                    install_action, VIEW_OTHER_OPTIONAL, VIEW_INSTRUCTIONS, SKIP_ALL_OPTIONAL
                )

            if action == install_action:
                results.extend(await self.install_many([tool]))
            elif action == VIEW_OTHER_OPTIONAL:
                results.extend(await self.selective_install(optional))
            elif action == VIEW_INSTRUCTIONS:
                await self.show_installation_instructions([tool])

        return results

    async def install_one(self,
                          tool: MissingTool,
                          token: Optional[CancellationToken] = None) -> InstallResult:
        """Remediate one tool according to its install method."""
        result = InstallResult(tool_id=tool.id, tool_name=tool.name)
        try:
            if tool.install_method == InstallMethod.AUTOMATIC:
                return await self._install_automatic(tool, result, token or CancellationToken())
            if tool.install_method == InstallMethod.GUIDED:
                return await self._install_guided(tool, result)

            await self.show_manual_instructions(tool)
            return result.complete(InstallOutcome.DECLINED_OR_CANCELLED)
        except Exception as e:
            self.logger.error(f"Unexpected error installing {tool.name}: {e}", exc_info=True)
            await self._report_failure(tool, f"Installation of {tool.name} failed: {e}")
            return result.complete(InstallOutcome.FAILED, str(e))

    async def install_many(self, tools: List[MissingTool]) -> List[InstallResult]:
        """Install tools one after another; a failure does not stop the rest."""
        results: List[InstallResult] = []
        for tool in tools:
            results.append(await self.install_one(tool))

        installed = sum(1 for r in results if r.succeeded)
        failed = sum(1 for r in results if r.failed)
        self.logger.info(
            f"Install pass complete: {installed} installed, {failed} failed, "
            f"{len(results) - installed - failed} declined or cancelled"
        )
        return results

    async def selective_install(self, tools: List[MissingTool]) -> List[InstallResult]:
        """Let the user pick a subset of tools, then install exactly those."""
        items = [
            PickItem(
                label=tool.name,
                description=tool.description,
                detail=f"Installation: {tool.install_method.value}",
                value=tool
            )
            for tool in tools
        ]
        try:
            picked = await self.notifier.pick_many(items, "Select tools to install")
        except Exception as e:
            self.logger.error(f"Tool picker failed: {e}")
            action = await self._ask(self.notifier.show_error, "Could not show the tool picker.", VIEW_LOGS)
            if action == VIEW_LOGS:
                await self._show_output()
            return []

        if not picked:
            return []
        return await self.install_many([item.value for item in picked])

    async def show_installation_instructions(self, tools: List[MissingTool]) -> None:
        self.logger.info("=== Installation Instructions ===")
        for tool in tools:
            self.logger.info(f"{tool.name} ({'Required' if tool.required else 'Optional'}):")
            self.logger.info(f"Description: {tool.description}")
            for instruction in tool.instructions:
                self.logger.info(f"  - {instruction}")
            if tool.download_url:
                self.logger.info(f"  Download: {tool.download_url}")
            if tool.install_method == InstallMethod.AUTOMATIC:
                self.logger.info(f"  Command: {tool.command_line}")
        await self._show_output()

    async def show_manual_instructions(self, tool: MissingTool) -> None:
        """Make a tool's instructions available: copy them, open the download page, or view output."""
        instructions = list(tool.instructions) or [f"Please install {tool.name} manually"]

        self.logger.info(f"Manual installation instructions for {tool.name}:")
        for instruction in instructions:
            self.logger.info(f"  - {instruction}")

        actions = [COPY_INSTRUCTIONS]
        if tool.download_url:
            actions.append(OPEN_DOWNLOAD_PAGE)
        actions.append(VIEW_OUTPUT)

        action = await self._ask(
            self.notifier.show_information,
            f"Manual installation required for {tool.name}",
            *actions
        )
        if action == COPY_INSTRUCTIONS:
            copied = await self._external(
                tool, "copy the instructions",
                lambda: self.notifier.write_clipboard("\n".join(instructions))
            )
            if copied:
                await self._ask(self.notifier.show_information, "Instructions copied to clipboard")
        elif action == OPEN_DOWNLOAD_PAGE and tool.download_url:
            await self._external(
                tool, "open the download page",
                lambda: self.notifier.open_external(tool.download_url)
            )
        elif action == VIEW_OUTPUT:
            await self._show_output()

    async def _install_automatic(self,
                                 tool: MissingTool,
                                 result: InstallResult,
                                 token: CancellationToken) -> InstallResult:
        self.logger.info(f"Installing {tool.name}...")
        self.logger.info(f"Command: {tool.command_line}")

        try:
            command_result = await self.notifier.with_progress(
                f"Installing {tool.name}",
                lambda progress_token: self._execute_cancellable(tool, progress_token),
                token,
                cancellable=True
            )
            if not command_result.ok:
                raise InstallCommandFailed(command_result.exit_code, command_result.stderr)
        except InstallCancelled:
            self.logger.info(f"{tool.name} installation cancelled by user")
            await self._ask(self.notifier.show_information, f"Installation of {tool.name} was cancelled")
            return result.complete(InstallOutcome.DECLINED_OR_CANCELLED)
        except InstallCommandFailed as e:
            result.exit_code = e.exit_code
            self.logger.error(f"Failed to install {tool.name} (exit code {e.exit_code})")
            self.logger.error(f"Error: {e.stderr}")
            action = await self._ask(
                self.notifier.show_error,
                f"Failed to install {tool.name}. Check output for details.",
                VIEW_OUTPUT, MANUAL_INSTRUCTIONS
            )
            if action == VIEW_OUTPUT:
                await self._show_output()
            elif action == MANUAL_INSTRUCTIONS:
                await self.show_manual_instructions(tool)
            return result.complete(InstallOutcome.FAILED, e.stderr.strip() or str(e))
        except Exception as e:
            # Spawn failures (binary missing) end up here
            self.logger.error(f"Error installing {tool.name}: {e}")
            await self._report_failure(tool, f"Installation of {tool.name} failed: {e}")
            return result.complete(InstallOutcome.FAILED, str(e))

        result.exit_code = command_result.exit_code
        self.logger.info(f"{tool.name} installed successfully")
        if command_result.stdout:
            self.logger.info(command_result.stdout)
        await self._offer_restart(tool)
        return result.complete(InstallOutcome.INSTALLED)

    async def _execute_cancellable(self, tool: MissingTool, token: CancellationToken) -> CommandResult:
        """Run the install command, giving up as soon as ``token`` fires."""
        if token.is_cancelled:
            raise InstallCancelled(tool.id)

        command_task = asyncio.ensure_future(
            self.platform.execute_command(tool.install_command, list(tool.install_args))
        )
        cancel_task = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({command_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel_task.cancel()
            if token.is_cancelled or not command_task.done():
                command_task.cancel()

        if token.is_cancelled:
            if command_task.done() and not command_task.cancelled():
                command_task.exception()
            raise InstallCancelled(tool.id)
        return command_task.result()

    async def _install_guided(self, tool: MissingTool, result: InstallResult) -> InstallResult:
        self.logger.info(f"Starting guided installation for {tool.name}")

        if not tool.extension_id:
            # Instruction-only guided installs follow the manual flow
            await self.show_manual_instructions(tool)
            return result.complete(InstallOutcome.DECLINED_OR_CANCELLED)

        self.logger.info(f"Opening extension marketplace for {tool.extension_id}")
        try:
            await self.notifier.show_in_marketplace(tool.extension_id)
        except Exception as e:
            self.logger.error(f"Failed to open extension marketplace for {tool.extension_id}: {e}")
            await self._report_failure(
                tool,
                f"Could not open '{tool.name}' in the marketplace. "
                f"Please search for it manually: {tool.extension_id}"
            )
            return result.complete(InstallOutcome.FAILED, str(e))

        await self._ask(
            self.notifier.show_information,
            f"Showing '{tool.name}' in the extensions view. Please click 'Install'."
        )
        return result.complete(InstallOutcome.DECLINED_OR_CANCELLED)

    async def _offer_restart(self, tool: MissingTool) -> None:
        if not self.offer_restart:
            await self._ask(self.notifier.show_information, f"{tool.name} installed successfully!")
            return

        action = await self._ask(
            self.notifier.show_information,
            f"{tool.name} installed successfully! Restart language server to use it.",
            RESTART_LANGUAGE_SERVER
        )
        if action != RESTART_LANGUAGE_SERVER:
            return
        if await self.registry.restart_active():
            return

        # Nothing was running; the new tool may make a language provider available now
        if self.registry.active(CapabilityKind.LANGUAGE) is None:
            name = await self.registry.activate_first(CapabilityKind.LANGUAGE)
            if name:
                self.logger.info(f"Activated language provider '{name}' after installing {tool.name}")
                return
        await self._ask(
            self.notifier.show_information,
            f"No language server could be started after installing {tool.name}. Check output for details."
        )

    async def _external(self,
                        tool: MissingTool,
                        what: str,
                        call: Callable[[], Awaitable[None]]) -> bool:
        try:
            await call()
            return True
        except Exception as e:
            self.logger.error(f"Could not {what} for {tool.name}: {e}")
            await self._report_failure(tool, f"Could not {what} for {tool.name}.", prompt_manual=False)
            return False

    async def _report_failure(self, tool: MissingTool, message: str, prompt_manual: bool = True) -> None:
        """
        Show an error offering logs and manual instructions.

        With ``prompt_manual`` off the instructions go straight to the output
        instead of reopening the manual prompt whose external call just failed.
        """
        action = await self._ask(self.notifier.show_error, message, VIEW_LOGS, MANUAL_INSTRUCTIONS)
        if action == VIEW_LOGS:
            await self._show_output()
        elif action == MANUAL_INSTRUCTIONS:
            if prompt_manual:
                await self.show_manual_instructions(tool)
            else:
                await self.show_installation_instructions([tool])

    async def _show_output(self) -> None:
        try:
            await self.notifier.show_output()
        except Exception as e:
            self.logger.error(f"Could not show output: {e}")

    async def _ask(self, surface: Callable[..., Awaitable[Optional[str]]],
                   message: str, *actions: str) -> Optional[str]:
        try:
            return await surface(message, *actions)
        except Exception as e:
            self.logger.error(f"Notification failed ({message!r}): {e}")
            return None
