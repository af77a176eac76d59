"""
Provider registry: which implementation currently serves each capability kind.
"""

import logging
from typing import Dict, List, Optional

from .base import Provider
from ..errors import ActivationFailed, ProbeFailed, ProviderNotRegistered, ProviderUnavailable
from ..models.tool import CapabilityKind

DEFAULT_PRIORITIES: Dict[CapabilityKind, List[str]] = {
    CapabilityKind.LANGUAGE: ["roslyn", "omnisharp"],
    CapabilityKind.BUILD: ["msbuild"],
    CapabilityKind.DEBUG: ["mono"],
}


class ProviderRegistry:
    """
    Owns the providers of every capability kind and the single active slot per kind.

    Transitions per kind::

        Empty -> Active(P)           activate(P) succeeds
        Active(P) -> Active(P)       activate(P) again, no side effects
        Active(P) -> Active(Q)       activate(Q) succeeds, P deactivated first
        Active(P) -> Empty           activate(Q) fails, or deactivate()

    A failed switch does not restore the previous provider.

    Callers must not run activate/deactivate concurrently for the same kind.
    """

    def __init__(self,
                 priorities: Optional[Dict[CapabilityKind, List[str]]] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the registry.

        Args:
            priorities: Provider names per kind, most preferred first
            logger: Log sink for registry events
        """
        self.logger = logger or logging.getLogger(__name__)
        self.priorities = {kind: list(names) for kind, names in DEFAULT_PRIORITIES.items()}
        if priorities:
            for kind, names in priorities.items():
                self.priorities[CapabilityKind(kind)] = list(names)

        self._providers: Dict[CapabilityKind, Dict[str, Provider]] = {kind: {} for kind in CapabilityKind}
        self._active: Dict[CapabilityKind, Optional[Provider]] = {kind: None for kind in CapabilityKind}

    def register(self, kind: CapabilityKind, provider: Provider) -> None:
        """Add a provider under its name. Re-registering a name replaces the old entry."""
        kind = CapabilityKind(kind)
        if provider.name in self._providers[kind]:
            self.logger.debug(f"Replacing {kind.value} provider '{provider.name}'")
        self._providers[kind][provider.name] = provider
        self.logger.info(f"Registered {kind.value} provider: {provider.display_name}")

    def get(self, kind: CapabilityKind, name: str) -> Optional[Provider]:
        return self._providers[CapabilityKind(kind)].get(name)

    def names(self, kind: CapabilityKind) -> List[str]:
        return list(self._providers[CapabilityKind(kind)].keys())

    def active(self, kind: CapabilityKind) -> Optional[Provider]:
        return self._active[CapabilityKind(kind)]

    def status(self) -> Dict[CapabilityKind, Optional[str]]:
        """Active provider name per kind (None when empty). Does not probe."""
        return {
            kind: provider.name if provider else None
            for kind, provider in self._active.items()
        }

    async def activate(self, kind: CapabilityKind, name: str) -> bool:
        """
        Make ``name`` the active provider for ``kind``.

        Returns:
            True if the provider is active afterwards
        """
        kind = CapabilityKind(kind)
        try:
            provider = self._lookup(kind, name)
        except ProviderNotRegistered as e:
            self.logger.warning(str(e))
            return False

        if self._active[kind] is provider:
            self.logger.info(f"{kind.value.capitalize()} provider '{name}' is already active")
            return True

        holder = self._kind_holding(provider)
        if holder is not None:
            self.logger.warning(
                f"Provider '{name}' is already active for {holder.value}; refusing to activate it for {kind.value}"
            )
            return False

        if self._active[kind] is not None:
            await self.deactivate(kind)

        try:
            available = await provider.is_available()
        except Exception as e:
            self.logger.warning(str(ProbeFailed(f"{name}.is_available", str(e))))
            available = False

        if not available:
            self.logger.info(str(ProviderUnavailable(name)))
            return False

        try:
            await provider.activate()
        except Exception as e:
            reason = e.reason if isinstance(e, ActivationFailed) else str(e)
            self.logger.error(str(ActivationFailed(name, reason)))
            return False

        self._active[kind] = provider
        self.logger.info(f"Activated {kind.value} provider: {provider.display_name}")
        return True

    async def deactivate(self, kind: CapabilityKind) -> None:
        """Deactivate the active provider; the slot is cleared even if that fails."""
        kind = CapabilityKind(kind)
        provider = self._active[kind]
        if provider is None:
            return

        try:
            await provider.deactivate()
            self.logger.info(f"Deactivated {kind.value} provider: {provider.display_name}")
        except Exception as e:
            self.logger.error(f"Error while deactivating {kind.value} provider '{provider.name}': {e}")
        finally:
            self._active[kind] = None

    async def deactivate_all(self) -> None:
        self.logger.info("Deactivating all providers...")
        for kind in CapabilityKind:
            await self.deactivate(kind)

    async def auto_activate(self) -> Dict[CapabilityKind, Optional[str]]:
        """Activate the first available provider of each kind in priority order."""
        self.logger.info("Auto-activating providers...")
        for kind in CapabilityKind:
            await self.activate_first(kind)
        return self.status()

    async def activate_first(self, kind: CapabilityKind) -> Optional[str]:
        """Activate the first available provider of one kind; returns its name."""
        kind = CapabilityKind(kind)
        for name in self.priorities.get(kind, []):
            if await self.activate(kind, name):
                return name
        self.logger.info(f"No {kind.value} provider available")
        return None

    async def restart_active(self) -> bool:
        """Restart the active language provider. Build and debug providers have no restart."""
        provider = self._active[CapabilityKind.LANGUAGE]
        if provider is None:
            self.logger.info("No active language provider to restart")
            return False

        self.logger.info("Restarting active providers...")
        try:
            await provider.restart()
        except Exception as e:
            self.logger.error(f"Failed to restart language provider '{provider.name}': {e}")
            return False

        self.logger.info(f"Restarted language provider: {provider.display_name}")
        return True

    def _lookup(self, kind: CapabilityKind, name: str) -> Provider:
        provider = self._providers[kind].get(name)
        if provider is None:
            raise ProviderNotRegistered(kind.value, name)
        return provider

    def _kind_holding(self, provider: Provider) -> Optional[CapabilityKind]:
        for kind, active in self._active.items():
            if active is provider:
                return kind
        return None
