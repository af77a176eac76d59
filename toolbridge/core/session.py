"""
Per-session wiring of registry, classifier and orchestrator.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .classifier import MissingToolClassifier
from .orchestrator import InstallationOrchestrator
from ..integrations.notifier import Notifier
from ..models.tool import CapabilityKind
from ..platform.base import PlatformService
from ..providers import (
    MSBuildProvider,
    MonoDebugProvider,
    OmniSharpProvider,
    ProviderRegistry,
    RoslynProvider,
)


@dataclass
class ToolBridgeSession:
    """Everything one host session needs; pass it around explicitly."""
    platform: PlatformService
    notifier: Notifier
    registry: ProviderRegistry
    classifier: MissingToolClassifier
    orchestrator: InstallationOrchestrator

    async def close(self) -> None:
        await self.registry.deactivate_all()


def create_session(settings,
                   platform: PlatformService,
                   notifier: Notifier,
                   logger: Optional[logging.Logger] = None) -> ToolBridgeSession:
    """
    Build a session and register the known providers.

    Args:
        settings: Application settings (``config.settings.Settings``)
        platform: Platform service for this machine
        notifier: User-interaction surfaces
        logger: Optional shared log sink
    """
    paths = settings.tool_paths
    registry = ProviderRegistry(
        priorities={
            CapabilityKind.LANGUAGE: settings.providers.language_priority,
            CapabilityKind.BUILD: settings.providers.build_priority,
            CapabilityKind.DEBUG: settings.providers.debug_priority,
        },
        logger=logger
    )

    log_directory = Path(settings.logging.file_path).parent if settings.logging.file_path else None
    registry.register(CapabilityKind.LANGUAGE, RoslynProvider(
        platform,
        preferred_version=paths.preferred_toolchain_version,
        log_directory=log_directory,
        logger=logger
    ))
    registry.register(CapabilityKind.LANGUAGE, OmniSharpProvider(
        platform,
        custom_path=str(paths.custom_omnisharp_path) if paths.custom_omnisharp_path else None,
        logger=logger
    ))
    registry.register(CapabilityKind.BUILD, MSBuildProvider(
        platform,
        custom_path=str(paths.custom_msbuild_path) if paths.custom_msbuild_path else None,
        logger=logger
    ))
    registry.register(CapabilityKind.DEBUG, MonoDebugProvider(platform, logger=logger))

    classifier = MissingToolClassifier(platform, registry, logger=logger)
    orchestrator = InstallationOrchestrator(
        platform,
        notifier,
        registry,
        offer_restart=settings.installer.offer_restart,
        logger=logger
    )
    return ToolBridgeSession(
        platform=platform,
        notifier=notifier,
        registry=registry,
        classifier=classifier,
        orchestrator=orchestrator
    )
