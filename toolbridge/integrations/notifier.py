"""
User-interaction surfaces consumed by the installation orchestrator.
"""

import asyncio
import logging
import signal
import webbrowser
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class CancellationToken:
    """Cancellation signal shared between a progress surface and the work it wraps."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


class PickItem(BaseModel):
    """One entry of a multi-select picker."""
    label: str
    description: str = ""
    detail: str = ""
    value: Any = Field(None, description="Payload returned to the caller when picked")


class Notifier(ABC):
    """Messages, pickers, progress and external resources for the user.

    Message methods return the chosen action label, or None when dismissed.
    """

    @abstractmethod
    async def show_information(self, message: str, *actions: str) -> Optional[str]:
        ...

    @abstractmethod
    async def show_warning(self, message: str, *actions: str) -> Optional[str]:
        ...

    @abstractmethod
    async def show_error(self, message: str, *actions: str) -> Optional[str]:
        ...

    @abstractmethod
    async def pick_many(self, items: List[PickItem], placeholder: str) -> List[PickItem]:
        ...

    @abstractmethod
    async def with_progress(self,
                            title: str,
                            work: Callable[[CancellationToken], Awaitable[T]],
                            token: CancellationToken,
                            cancellable: bool = True) -> T:
        """Run ``work`` behind a progress surface; a user cancel triggers ``token``."""

    @abstractmethod
    async def write_clipboard(self, text: str) -> None:
        ...

    @abstractmethod
    async def open_external(self, url: str) -> None:
        ...

    @abstractmethod
    async def show_in_marketplace(self, identifier: str) -> None:
        ...

    @abstractmethod
    async def show_output(self) -> None:
        ...


class ConsoleNotifier(Notifier):
    """Terminal notifier: numbered prompts on stdin, Ctrl-C cancels progress."""

    def __init__(self, assume_yes: bool = False, log_file: Optional[Path] = None):
        """
        Initialize the console notifier.

        Args:
            assume_yes: Pick the first action of every prompt without asking
            log_file: Log file shown by "View Output"
        """
        self.logger = logging.getLogger(__name__)
        self.assume_yes = assume_yes
        self.log_file = log_file

    async def _ask(self, prefix: str, message: str, actions: tuple) -> Optional[str]:
        print(f"{prefix} {message}")
        if not actions:
            return None
        for idx, action in enumerate(actions, start=1):
            print(f"  [{idx}] {action}")
        if self.assume_yes:
            print(f"  -> {actions[0]}")
            return actions[0]

        try:
            answer = await asyncio.to_thread(input, "Choose an option (Enter to dismiss): ")
        except EOFError:
            return None
        answer = answer.strip()
        if answer.isdigit() and 1 <= int(answer) <= len(actions):
            return actions[int(answer) - 1]
        return None

    async def show_information(self, message: str, *actions: str) -> Optional[str]:
        return await self._ask("[info]", message, actions)

    async def show_warning(self, message: str, *actions: str) -> Optional[str]:
        return await self._ask("[warning]", message, actions)

    async def show_error(self, message: str, *actions: str) -> Optional[str]:
        return await self._ask("[error]", message, actions)

    async def pick_many(self, items: List[PickItem], placeholder: str) -> List[PickItem]:
        print(placeholder)
        for idx, item in enumerate(items, start=1):
            print(f"  [{idx}] {item.label} - {item.description} ({item.detail})")
        if self.assume_yes:
            return list(items)

        try:
            answer = await asyncio.to_thread(input, "Numbers separated by commas (Enter for none): ")
        except EOFError:
            return []

        picked = []
        for part in answer.split(","):
            part = part.strip()
            if part.isdigit() and 1 <= int(part) <= len(items):
                item = items[int(part) - 1]
                if item not in picked:
                    picked.append(item)
        return picked

    async def with_progress(self,
                            title: str,
                            work: Callable[[CancellationToken], Awaitable[T]],
                            token: CancellationToken,
                            cancellable: bool = True) -> T:
        print(f"{title}..." + (" (Ctrl-C to cancel)" if cancellable else ""))
        loop = asyncio.get_running_loop()
        handler_installed = False
        previous_handler = signal.getsignal(signal.SIGINT)
        if cancellable:
            try:
                loop.add_signal_handler(signal.SIGINT, token.cancel)
                handler_installed = True
            except (NotImplementedError, RuntimeError):
                self.logger.debug("Signal handlers unavailable; progress cannot be cancelled from the keyboard")
        try:
            return await work(token)
        finally:
            if handler_installed:
                loop.remove_signal_handler(signal.SIGINT)
                # remove_signal_handler reinstates the default handler, not the previous one
                if previous_handler is not None:
                    signal.signal(signal.SIGINT, previous_handler)

    async def write_clipboard(self, text: str) -> None:
        # No system clipboard in a plain terminal; print the text for copying
        print("----- copy below -----")
        print(text)
        print("----------------------")

    async def open_external(self, url: str) -> None:
        opened = await asyncio.to_thread(webbrowser.open, url)
        if not opened:
            print(f"Open this URL in your browser: {url}")

    async def show_in_marketplace(self, identifier: str) -> None:
        print(f"Install the extension '{identifier}' from your editor's extension marketplace")
        print(f"  e.g. code --install-extension {identifier}")

    async def show_output(self) -> None:
        if self.log_file and self.log_file.exists():
            lines = self.log_file.read_text(errors="replace").splitlines()
            print("\n".join(lines[-40:]))
        else:
            print("No log output available")
