"""
Platform services: the only place the core touches the operating system.
"""

from typing import Optional

from .base import PlatformService, LanguageServerProbe, ExtensionProbe, PlatformName
from .local import LocalPlatformService, OmniSharpLocator, EditorExtensionProbe
from .mock import MockPlatformService


def create_platform_service(force_mock: bool = False,
                            command_timeout: Optional[float] = None) -> PlatformService:
    """Create the platform service for this machine (or the mock one)."""
    if force_mock:
        return MockPlatformService()
    return LocalPlatformService(command_timeout=command_timeout)


__all__ = [
    "PlatformService",
    "LanguageServerProbe",
    "ExtensionProbe",
    "PlatformName",
    "LocalPlatformService",
    "OmniSharpLocator",
    "EditorExtensionProbe",
    "MockPlatformService",
    "create_platform_service"
]
