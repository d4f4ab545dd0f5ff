from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from provision.core.context import ServerContext
from provision.core.exceptions import ContextNotFoundError, PersistenceError
from provision.core.pipeline import VerificationPipeline
from provision.core.state import ContextState
from provision.core.store import ContextStore

from helpers.builders import platform, server, site


@pytest.fixture
def store(isolated_project_env: Path) -> ContextStore:
    return ContextStore(isolated_project_env)


def test_save_and_read_round_trip(store: ContextStore, isolated_project_env: Path) -> None:
    path = store.save(server(http_port="8080"))

    assert path == isolated_project_env / ".provision" / "contexts" / "web1.yml"
    record = store.read_record("web1")
    assert record["type"] == "server"
    assert record["state"] == "unconfigured"
    assert record["options"]["http_port"] == "8080"
    assert record["fingerprint"] is None
    assert store.list_names() == ["web1"]


def test_missing_record(store: ContextStore) -> None:
    assert store.read_record("nope") is None
    with pytest.raises(ContextNotFoundError):
        store.load_context("nope")
    with pytest.raises(ContextNotFoundError):
        store.remove("nope")


def test_remove_deletes_only_that_record(store: ContextStore) -> None:
    store.save(server())
    store.save(site())
    store.remove("web1")
    assert store.list_names() == ["site1"]


def test_interrupted_verification_loads_as_failed(store: ContextStore) -> None:
    context = server()
    context.state = ContextState.VERIFYING
    store.save(context)

    loaded = store.load_context("web1")

    assert isinstance(loaded, ServerContext)
    assert loaded.state is ContextState.FAILED
    assert loaded.failure.kind == "Interrupted"


def test_invalid_record_is_a_persistence_error(store: ContextStore) -> None:
    store.contexts_dir.mkdir(parents=True)
    store.record_path("web1").write_text(
        yaml.safe_dump({"name": "web1", "type": "server", "options": {}, "state": "bogus"}),
        encoding="utf-8",
    )
    with pytest.raises(PersistenceError, match="Invalid context record"):
        store.read_record("web1")


def test_unparseable_record_is_a_persistence_error(store: ContextStore) -> None:
    store.contexts_dir.mkdir(parents=True)
    store.record_path("web1").write_text("name: [unclosed\n", encoding="utf-8")
    with pytest.raises(PersistenceError):
        store.read_record("web1")


def test_load_inventory_registers_capabilities(store: ContextStore, tmp_path: Path) -> None:
    store.save(server())
    store.save(platform(root=tmp_path / "platform1"))

    inventory = store.load_inventory()

    assert sorted(inventory.names()) == ["platform1", "web1"]
    assert inventory.registry.resolve("http") == "web1"


def test_run_results_are_persisted(store: ContextStore, runtime, tmp_path: Path) -> None:
    root = tmp_path / "platform1"
    root.mkdir()
    store.save(server(config_path=str(tmp_path / "config" / "web1")))
    store.save(platform(root=root))
    inventory = store.load_inventory()

    pipeline = VerificationPipeline(inventory, runtime, store)
    report = pipeline.verify()

    assert report.ok
    reloaded = store.load_inventory()
    platform1 = reloaded.get("platform1")
    assert platform1.state is ContextState.VERIFIED
    assert platform1.verified_fingerprint == pipeline.fingerprint(inventory.get("platform1"))
    record = store.read_record("platform1")
    assert record["last_report"]["status"] == "verified"
    assert store.last_report()["order"] == ["web1", "platform1"]


def test_dry_run_writes_nothing(store: ContextStore, runtime, tmp_path: Path) -> None:
    store.save(server(config_path=str(tmp_path / "config" / "web1")))
    inventory = store.load_inventory()

    VerificationPipeline(inventory, runtime, store).verify(dry_run=True)

    assert store.read_record("web1")["state"] == "unconfigured"
    assert store.last_report() is None
