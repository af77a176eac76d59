"""Shared fakes for the toolbridge test suite."""

import asyncio
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import pytest

from toolbridge.integrations.notifier import CancellationToken, Notifier, PickItem
from toolbridge.models import (
    BuildEngineInfo,
    CommandResult,
    DebuggerInfo,
    LanguageServiceInfo,
    ProjectInfo,
    ToolchainInstallation,
)
from toolbridge.platform.base import ExtensionProbe, LanguageServerProbe, PlatformService
from toolbridge.providers.base import Provider


class FakeExtensionProbe(ExtensionProbe):
    def __init__(self, installed: Iterable[str] = ()):
        self.installed = set(installed)
        self.checked: List[str] = []

    async def is_extension_installed(self, extension_id: str) -> bool:
        self.checked.append(extension_id)
        return extension_id in self.installed


class FakeLanguageServerProbe(LanguageServerProbe):
    def __init__(self, path: Optional[str] = None):
        self.path = path

    async def find_language_server(self) -> Optional[str]:
        return self.path


class FakePlatformService(PlatformService):
    """
    In-memory platform service.

    ``commands`` maps ``(command, (args...))`` to a ``CommandResult``, an
    exception instance to raise, or a zero-argument coroutine function.
    Unknown commands exit with 127.
    """

    def __init__(self,
                 platform: str = "linux",
                 files: Iterable[str] = (),
                 commands: Optional[Dict[Tuple[str, Tuple[str, ...]], Any]] = None,
                 toolchains: Optional[List[ToolchainInstallation]] = None,
                 engines: Optional[Dict[str, BuildEngineInfo]] = None,
                 language_services: Optional[Dict[str, LanguageServiceInfo]] = None,
                 debugger: Optional[DebuggerInfo] = None,
                 projects: Optional[Dict[str, ProjectInfo]] = None,
                 language_server_probe: Optional[LanguageServerProbe] = None,
                 extension_probe: Optional[ExtensionProbe] = None):
        self.platform = platform
        self.files = set(files)
        self.commands = dict(commands or {})
        self.toolchains = list(toolchains or [])
        self.engines = dict(engines or {})
        self.language_services = dict(language_services or {})
        self.debugger = debugger
        self.projects = dict(projects or {})
        self.language_server_probe = language_server_probe
        self.extension_probe = extension_probe
        self.calls: List[Tuple[str, List[str], Optional[str]]] = []

    def current_platform(self):
        return self.platform

    async def find_toolchains(self) -> List[ToolchainInstallation]:
        return list(self.toolchains)

    async def probe_build_engine(self, root: str) -> Optional[BuildEngineInfo]:
        return self.engines.get(root)

    async def probe_language_service(self, root: str) -> Optional[LanguageServiceInfo]:
        return self.language_services.get(root)

    async def probe_debugger(self) -> Optional[DebuggerInfo]:
        return self.debugger

    async def read_project_metadata(self, path: str) -> Optional[ProjectInfo]:
        return self.projects.get(path)

    async def execute_command(self,
                              command: str,
                              args: List[str],
                              cwd: Optional[str] = None) -> CommandResult:
        self.calls.append((command, list(args), cwd))
        response = self.commands.get((command, tuple(args)))
        if response is None:
            return CommandResult(stderr=f"{command}: command not found", exit_code=127)
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            return await response()
        return response

    async def file_exists(self, path: str) -> bool:
        return path in self.files

    async def directory_exists(self, path: str) -> bool:
        return any(f.startswith(path.rstrip("/") + "/") for f in self.files)

    async def read_file(self, path: str) -> str:
        raise FileNotFoundError(path)


class RecordingNotifier(Notifier):
    """
    Notifier that records every call.

    For each prompt it answers with the first label in ``choices`` that the
    prompt offers, or dismisses it (None). Methods named in ``failing`` raise.
    """

    def __init__(self,
                 choices: Iterable[str] = (),
                 pick: Optional[Callable[[List[PickItem]], List[PickItem]]] = None,
                 cancel_after: Optional[float] = None,
                 failing: Iterable[str] = ()):
        self.choices = list(choices)
        self.pick = pick
        self.cancel_after = cancel_after
        self.failing = set(failing)
        self.calls: List[Tuple[str, str, Tuple[str, ...]]] = []
        self.clipboard: List[str] = []
        self.opened: List[str] = []
        self.marketplace: List[str] = []
        self.progress_titles: List[str] = []
        self.output_shown = 0

    def _check(self, method: str) -> None:
        if method in self.failing:
            raise RuntimeError(f"{method} unavailable")

    async def _respond(self, surface: str, message: str, actions: Tuple[str, ...]) -> Optional[str]:
        self.calls.append((surface, message, actions))
        self._check(surface)
        for choice in self.choices:
            if choice in actions:
                return choice
        return None

    def messages(self, surface: Optional[str] = None) -> List[str]:
        return [message for name, message, _ in self.calls if surface is None or name == surface]

    async def show_information(self, message: str, *actions: str) -> Optional[str]:
        return await self._respond("show_information", message, actions)

    async def show_warning(self, message: str, *actions: str) -> Optional[str]:
        return await self._respond("show_warning", message, actions)

    async def show_error(self, message: str, *actions: str) -> Optional[str]:
        return await self._respond("show_error", message, actions)

    async def pick_many(self, items: List[PickItem], placeholder: str) -> List[PickItem]:
        self.calls.append(("pick_many", placeholder, tuple(item.label for item in items)))
        self._check("pick_many")
        return self.pick(items) if self.pick else []

    async def with_progress(self, title, work, token: CancellationToken, cancellable: bool = True):
        self.progress_titles.append(title)
        self._check("with_progress")
        handle = None
        if self.cancel_after is not None:
            handle = asyncio.get_running_loop().call_later(self.cancel_after, token.cancel)
        try:
            return await work(token)
        finally:
            if handle is not None:
                handle.cancel()

    async def write_clipboard(self, text: str) -> None:
        self._check("write_clipboard")
        self.clipboard.append(text)

    async def open_external(self, url: str) -> None:
        self._check("open_external")
        self.opened.append(url)

    async def show_in_marketplace(self, identifier: str) -> None:
        self._check("show_in_marketplace")
        self.marketplace.append(identifier)

    async def show_output(self) -> None:
        self._check("show_output")
        self.output_shown += 1


class FakeProvider(Provider):
    """Provider with scripted availability and lifecycle call counters."""

    def __init__(self,
                 name: str,
                 available: bool = True,
                 probe_error: Optional[Exception] = None,
                 activate_error: Optional[Exception] = None,
                 deactivate_error: Optional[Exception] = None,
                 restart_error: Optional[Exception] = None,
                 events: Optional[List[Tuple[str, str]]] = None):
        self.name = name
        self.display_name = f"Fake {name}"
        self.available = available
        self.probe_error = probe_error
        self.activate_error = activate_error
        self.deactivate_error = deactivate_error
        self.restart_error = restart_error
        self.events = events if events is not None else []
        self.availability_checks = 0
        self.activations = 0
        self.deactivations = 0
        self.restarts = 0

    async def is_available(self) -> bool:
        self.availability_checks += 1
        self.events.append(("is_available", self.name))
        if self.probe_error:
            raise self.probe_error
        return self.available

    async def activate(self) -> None:
        self.activations += 1
        self.events.append(("activate", self.name))
        if self.activate_error:
            raise self.activate_error

    async def deactivate(self) -> None:
        self.deactivations += 1
        self.events.append(("deactivate", self.name))
        if self.deactivate_error:
            raise self.deactivate_error

    async def restart(self) -> None:
        self.restarts += 1
        self.events.append(("restart", self.name))
        if self.restart_error:
            raise self.restart_error


@pytest.fixture
def events() -> List[Tuple[str, str]]:
    return []


@pytest.fixture
def make_provider(events):
    """Factory for fake providers sharing one event log."""
    def _make(name: str, **kwargs) -> FakeProvider:
        kwargs.setdefault("events", events)
        return FakeProvider(name, **kwargs)
    return _make


@pytest.fixture
def make_platform():
    def _make(**kwargs) -> FakePlatformService:
        return FakePlatformService(**kwargs)
    return _make


@pytest.fixture
def make_notifier():
    def _make(**kwargs) -> RecordingNotifier:
        return RecordingNotifier(**kwargs)
    return _make


@pytest.fixture
def make_extension_probe():
    def _make(installed: Iterable[str] = ()) -> FakeExtensionProbe:
        return FakeExtensionProbe(installed)
    return _make


@pytest.fixture
def make_language_server_probe():
    def _make(path: Optional[str] = None) -> FakeLanguageServerProbe:
        return FakeLanguageServerProbe(path)
    return _make
