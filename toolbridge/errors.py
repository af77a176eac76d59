"""
Error taxonomy for provider management and tool installation.

None of these escape the registry, classifier or orchestrator: they are
raised at the seam where a failure is detected and converted into a
boolean or an ``InstallResult`` by the component that owns the operation.
"""

from typing import Optional


class ToolBridgeError(Exception):
    """Base exception for all toolbridge errors."""


class ProviderNotRegistered(ToolBridgeError):
    """No provider with the requested name exists for the capability kind."""

    def __init__(self, kind: str, name: str):
        super().__init__(f"No {kind} provider registered under '{name}'")
        self.kind = kind
        self.name = name


class ProviderUnavailable(ToolBridgeError):
    """The provider reported itself unavailable or was used before probing."""

    def __init__(self, name: str, detail: Optional[str] = None):
        message = f"Provider '{name}' is not available"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.name = name


class ActivationFailed(ToolBridgeError):
    """The provider was available but could not be started."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"Failed to activate provider '{name}': {reason}")
        self.name = name
        self.reason = reason


class InstallCommandFailed(ToolBridgeError):
    """An automatic install command exited with a non-zero status."""

    def __init__(self, exit_code: int, stderr: str):
        super().__init__(f"Install command exited with code {exit_code}")
        self.exit_code = exit_code
        self.stderr = stderr


class InstallCancelled(ToolBridgeError):
    """The user cancelled an install while it was running."""

    def __init__(self, tool_id: str):
        super().__init__(f"Installation of '{tool_id}' cancelled by user")
        self.tool_id = tool_id


class ProbeFailed(ToolBridgeError):
    """A platform probe raised instead of returning a negative result."""

    def __init__(self, probe: str, reason: str):
        super().__init__(f"Probe '{probe}' failed: {reason}")
        self.probe = probe
        self.reason = reason
