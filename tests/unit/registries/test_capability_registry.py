from __future__ import annotations

import pytest

from provision.core.exceptions import (
    AmbiguousCapabilityError,
    DuplicateProviderError,
    RegistryLockedError,
    UnresolvedCapabilityError,
)
from provision.core.registries import CapabilityRegistry


def test_resolve_without_provider_is_unresolved() -> None:
    registry = CapabilityRegistry()
    with pytest.raises(UnresolvedCapabilityError) as excinfo:
        registry.resolve("http")
    assert excinfo.value.kind == "UnresolvedCapability"


def test_second_provider_in_same_scope_is_rejected() -> None:
    registry = CapabilityRegistry()
    registry.register("http", "web1")
    with pytest.raises(DuplicateProviderError):
        registry.register("http", "web2")
    assert registry.resolve("http") == "web1"


def test_reregistering_same_provider_is_a_noop() -> None:
    registry = CapabilityRegistry()
    registry.register("http", "web1")
    registry.register("http", "web1")
    assert registry.candidates("http") == ["web1"]


def test_providers_in_several_scopes_are_ambiguous_without_scope() -> None:
    registry = CapabilityRegistry()
    registry.register("db", "db1", scope="prod")
    registry.register("db", "db2", scope="staging")
    assert registry.resolve("db", "staging") == "db2"
    with pytest.raises(AmbiguousCapabilityError) as excinfo:
        registry.resolve("db")
    assert excinfo.value.context["candidates"] == ["db1", "db2"]


def test_unregister_removes_every_capability() -> None:
    registry = CapabilityRegistry()
    registry.register("http", "web1")
    registry.register("db", "web1")
    assert registry.unregister("web1") == ["db", "http"]
    assert registry.snapshot() == {}
    with pytest.raises(UnresolvedCapabilityError):
        registry.resolve("http")


def test_registry_is_read_only_while_locked() -> None:
    registry = CapabilityRegistry()
    with registry.locked():
        assert registry.is_locked
        with pytest.raises(RegistryLockedError):
            registry.register("http", "web1")
    registry.register("http", "web1")
    assert registry.provides("web1", "http")
    assert registry.capabilities_of("web1") == ["http"]
