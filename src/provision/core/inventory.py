"""Inventory: the set of known Contexts plus their capability registrations."""
from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional

from provision.core.context import Context
from provision.core.exceptions import (
    ContextNotFoundError,
    DuplicateContextError,
    DuplicateProviderError,
    UnresolvedCapabilityError,
)
from provision.core.registries import CapabilityRegistry

logger = logging.getLogger(__name__)


class Inventory:
    """Owns Context instances and keeps the capability registry in step."""

    def __init__(self, registry: Optional[CapabilityRegistry] = None) -> None:
        self.registry = registry or CapabilityRegistry()
        self._contexts: Dict[str, Context] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._contexts

    def __iter__(self) -> Iterator[Context]:
        return iter(list(self._contexts.values()))

    def __len__(self) -> int:
        return len(self._contexts)

    def names(self) -> List[str]:
        return list(self._contexts)

    def get(self, name: str) -> Context:
        try:
            return self._contexts[name]
        except KeyError:
            raise ContextNotFoundError(f"Context {name!r} not found", context={"name": name}) from None

    def add(self, context: Context) -> Context:
        """Add ``context`` and register the capabilities it provides.

        Raises:
            DuplicateContextError: The name is taken by another Context.
            DuplicateProviderError: A capability already has another provider
                in the Context's scope; nothing is registered in that case.
            RegistryLockedError: During a verification run.
        """
        existing = self._contexts.get(context.name)
        if existing is not None and existing is not context:
            raise DuplicateContextError(
                f"Context {context.name!r} already exists", context={"name": context.name}
            )
        try:
            for capability in context.provided_capabilities():
                self.registry.register(capability, context.name, scope=context.scope)
        except DuplicateProviderError:
            self.registry.unregister(context.name)
            raise
        self._contexts[context.name] = context
        logger.debug("inventory: added %s %s", context.type_tag, context.name)
        return context

    def replace(self, context: Context) -> Context:
        """Add ``context``, replacing any Context of the same name.

        The previous Context and its registrations are restored when the new
        one cannot be registered.
        """
        previous = self._contexts.get(context.name)
        if previous is not None:
            self.remove(context.name)
        try:
            return self.add(context)
        except DuplicateProviderError:
            if previous is not None:
                self.add(previous)
            raise

    def remove(self, name: str) -> Context:
        """Forget ``name`` and its capabilities. Dependents are left as-is."""
        context = self.get(name)
        self.registry.unregister(name)
        del self._contexts[name]
        logger.debug("inventory: removed %s", name)
        return context

    def resolve_provider(self, context: Context, capability: str) -> Context:
        """Return the provider of ``capability`` for ``context``.

        An explicit selector wins. Otherwise the Context's own scope is
        searched, then every scope.

        Raises:
            UnresolvedCapabilityError: No usable provider.
            AmbiguousCapabilityError: Several providers and no selection.
        """
        selected = context.selected_provider(capability)
        if selected:
            if selected not in self._contexts:
                raise UnresolvedCapabilityError(
                    f"{context.name}: {capability} provider {selected!r} does not exist",
                    capability=capability,
                    context={"context": context.name, "selected": selected},
                )
            if not self.registry.provides(selected, capability):
                raise UnresolvedCapabilityError(
                    f"{context.name}: {selected!r} does not provide {capability!r}",
                    capability=capability,
                    context={"context": context.name, "selected": selected},
                )
            return self._contexts[selected]

        if self.registry.candidates(capability, context.scope):
            name = self.registry.resolve(capability, context.scope)
        else:
            name = self.registry.resolve(capability)
        return self.get(name)

    def dependents_of(self, name: str) -> List[str]:
        """Names of Contexts whose requirements currently resolve to ``name``."""
        dependents: List[str] = []
        for context in self._contexts.values():
            if context.name == name:
                continue
            for capability in context.required_capabilities():
                try:
                    provider = self.resolve_provider(context, capability)
                except UnresolvedCapabilityError:
                    continue
                if provider.name == name:
                    dependents.append(context.name)
                    break
        return dependents


__all__ = ["Inventory"]
