"""
Integration modules for the host's user-interaction surfaces.
"""

from .notifier import Notifier, ConsoleNotifier, CancellationToken, PickItem

__all__ = ["Notifier", "ConsoleNotifier", "CancellationToken", "PickItem"]
