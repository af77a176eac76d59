"""
Capability providers and the registry that coordinates them.
"""

from .base import Provider, LanguageProvider, BuildProvider, DebugProvider
from .language import RoslynProvider, OmniSharpProvider, LanguageServerProcess
from .build import MSBuildProvider
from .debug import MonoDebugProvider
from .registry import ProviderRegistry, DEFAULT_PRIORITIES

__all__ = [
    "Provider",
    "LanguageProvider",
    "BuildProvider",
    "DebugProvider",
    "RoslynProvider",
    "OmniSharpProvider",
    "LanguageServerProcess",
    "MSBuildProvider",
    "MonoDebugProvider",
    "ProviderRegistry",
    "DEFAULT_PRIORITIES"
]
