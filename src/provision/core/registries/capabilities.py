"""Scoped capability registry.

Maps a capability name (``http``, ``db``, ``platform``) to the name of the
Context that provides it, one provider per capability per scope.

Example usage:
    registry.register("http", "web1", scope="default")
    registry.resolve("http")                    # "web1"
    registry.unregister("web1")                 # dependents now unresolved
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Set, Tuple

from provision.core.exceptions import (
    AmbiguousCapabilityError,
    DuplicateProviderError,
    RegistryLockedError,
    UnresolvedCapabilityError,
)

logger = logging.getLogger(__name__)

DEFAULT_SCOPE = "default"


class CapabilityRegistry:
    """Capability -> provider mapping with a reverse index per provider."""

    def __init__(self) -> None:
        self._providers: Dict[str, Dict[str, str]] = {}
        self._by_provider: Dict[str, Set[Tuple[str, str]]] = {}
        self._lock_depth = 0
        self._mutex = threading.RLock()

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------
    @property
    def is_locked(self) -> bool:
        return self._lock_depth > 0

    @contextmanager
    def locked(self) -> Iterator["CapabilityRegistry"]:
        """Make the registry read-only for the duration of the block."""
        with self._mutex:
            self._lock_depth += 1
        try:
            yield self
        finally:
            with self._mutex:
                self._lock_depth -= 1

    def _ensure_mutable(self, operation: str) -> None:
        if self.is_locked:
            raise RegistryLockedError(
                f"Cannot {operation} while a verification run holds the registry",
                context={"operation": operation},
            )

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def register(self, capability: str, provider: str, scope: str = DEFAULT_SCOPE) -> None:
        """Register ``provider`` for ``capability`` in ``scope``.

        Re-registering the same provider is a no-op.

        Raises:
            DuplicateProviderError: A different provider already holds the
                capability in this scope.
            RegistryLockedError: During a verification run.
        """
        with self._mutex:
            self._ensure_mutable("register a provider")
            current = self._providers.get(scope, {}).get(capability)
            if current is not None and current != provider:
                raise DuplicateProviderError(
                    f"Capability {capability!r} in scope {scope!r} is already provided by {current!r}; "
                    f"refusing to register {provider!r}",
                    context={"capability": capability, "scope": scope, "provider": current, "rejected": provider},
                )
            self._providers.setdefault(scope, {})[capability] = provider
            self._by_provider.setdefault(provider, set()).add((scope, capability))
            logger.debug("registered %s as %s provider (scope %s)", provider, capability, scope)

    def unregister(self, provider: str) -> List[str]:
        """Remove every capability ``provider`` supplies and return them.

        Contexts depending on those capabilities are left alone; they fail
        resolution on their next lookup.
        """
        with self._mutex:
            self._ensure_mutable("unregister a provider")
            removed: List[str] = []
            for scope, capability in sorted(self._by_provider.pop(provider, set())):
                scoped = self._providers.get(scope, {})
                if scoped.get(capability) == provider:
                    del scoped[capability]
                    removed.append(capability)
                if not scoped:
                    self._providers.pop(scope, None)
            if removed:
                logger.debug("unregistered %s (%s)", provider, ", ".join(removed))
            return removed

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def candidates(self, capability: str, scope: Optional[str] = None) -> List[str]:
        if scope is not None:
            provider = self._providers.get(scope, {}).get(capability)
            return [provider] if provider else []
        found: List[str] = []
        for scoped in self._providers.values():
            provider = scoped.get(capability)
            if provider and provider not in found:
                found.append(provider)
        return found

    def resolve(self, capability: str, scope: Optional[str] = None) -> str:
        """Return the single provider of ``capability``.

        Without ``scope`` every scope is searched.

        Raises:
            UnresolvedCapabilityError: No provider.
            AmbiguousCapabilityError: More than one provider.
        """
        found = self.candidates(capability, scope)
        where = f" in scope {scope!r}" if scope is not None else ""
        if not found:
            raise UnresolvedCapabilityError(
                f"No provider for capability {capability!r}{where}",
                capability=capability,
                context={"scope": scope},
            )
        if len(found) > 1:
            raise AmbiguousCapabilityError(
                f"Capability {capability!r} has several providers ({', '.join(sorted(found))}); "
                "select one explicitly",
                capability=capability,
                context={"candidates": sorted(found)},
            )
        return found[0]

    def provides(self, provider: str, capability: str) -> bool:
        return any(cap == capability for _, cap in self._by_provider.get(provider, set()))

    def capabilities_of(self, provider: str) -> List[str]:
        return sorted({cap for _, cap in self._by_provider.get(provider, set())})

    def snapshot(self) -> Dict[str, Dict[str, str]]:
        return {scope: dict(caps) for scope, caps in self._providers.items()}


__all__ = ["CapabilityRegistry", "DEFAULT_SCOPE"]
