from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from provision.core.context import Context
from provision.core.exceptions import DependencyCycleError
from provision.core.inventory import Inventory
from provision.core.pipeline import PLANNED, VerificationPipeline
from provision.core.state import ContextState
from provision.core.tasks import CallableAction, Task, TaskStatus

from helpers.builders import hosting_inventory, server
from helpers.builders import platform as platform_context

RAN: List[str] = []


class _Node(Context):
    def verify(self, runtime, deps):
        action = CallableAction(self.name, lambda rt: RAN.append(self.name))
        return [Task(f"{self.name}.run", f"Run {self.name}", action)]


class Alpha(_Node):
    provides = ("alpha",)
    requires = ("beta",)


class Beta(_Node):
    provides = ("beta",)
    requires = ("alpha",)


@pytest.fixture(autouse=True)
def _clear_ran():
    RAN.clear()


def test_full_chain_verifies_providers_first(tmp_path: Path, runtime, fake_runner) -> None:
    inventory = hosting_inventory(tmp_path)
    report = VerificationPipeline(inventory, runtime).verify(["site1", "platform1", "web1"])

    assert report.order == ["web1", "platform1", "site1"]
    assert report.ok
    assert [c.status for c in report.contexts] == ["verified"] * 3
    assert fake_runner.verbs == ["clone"]
    vhost = tmp_path / "config" / "web1" / "vhost.d" / "example.com.conf"
    assert "server_name   example.com;" in vhost.read_text(encoding="utf-8")
    assert (tmp_path / "platforms" / "platform1" / "sites" / "example.com").is_dir()


def test_clone_failure_fails_platform_and_skips_check(tmp_path: Path, runtime, fake_runner) -> None:
    fake_runner.fail("clone", output="fatal: repository not found")
    inventory = hosting_inventory(tmp_path, with_site=False)

    report = VerificationPipeline(inventory, runtime).verify(["platform1"], with_dependencies=True)

    platform = report.get("platform1")
    assert platform.status == "failed"
    assert platform.error_kind == "SourceFetchFailed"
    assert platform.failed_task == "platform.git"
    statuses = {t.id: t.result.status for t in platform.tasks}
    assert statuses == {"platform.git": TaskStatus.FAILURE, "platform.found": TaskStatus.SKIPPED}
    assert platform.tasks[0].result.exit_code == 128
    assert "repository not found" in platform.tasks[0].result.output
    assert report.exit_code() == 1


def test_dependent_of_failed_provider_runs_nothing(tmp_path: Path, runtime, fake_runner) -> None:
    fake_runner.fail("clone")
    inventory = hosting_inventory(tmp_path)

    report = VerificationPipeline(inventory, runtime).verify()

    assert report.get("web1").status == "verified"
    site = report.get("site1")
    assert site.status == "failed"
    assert site.error_kind == "DependencyFailed"
    assert site.tasks == []
    assert not (tmp_path / "config" / "web1" / "vhost.d" / "example.com.conf").exists()


def test_reverify_is_idempotent_and_incremental(tmp_path: Path, runtime, fake_runner) -> None:
    inventory = hosting_inventory(tmp_path, with_site=False)
    pipeline = VerificationPipeline(inventory, runtime)
    assert pipeline.verify().ok

    report = pipeline.verify(["platform1"], incremental=True)

    platform = report.get("platform1")
    assert platform.status == "verified"
    assert platform.incremental
    assert [t.id for t in platform.tasks] == ["platform.found"]
    assert fake_runner.verbs == ["clone"]


def test_changed_options_disable_incremental(tmp_path: Path, runtime, fake_runner) -> None:
    inventory = hosting_inventory(tmp_path, with_site=False)
    pipeline = VerificationPipeline(inventory, runtime)
    assert pipeline.verify().ok

    inventory.get("web1").options["http_port"] = 8080
    report = pipeline.verify(["web1"], incremental=True)

    web1 = report.get("web1")
    assert not web1.incremental
    assert [t.id for t in web1.tasks] == ["server.config", "server.found"]


def test_changed_provider_disables_incremental_for_dependents(tmp_path: Path, runtime) -> None:
    inventory = hosting_inventory(tmp_path)
    pipeline = VerificationPipeline(inventory, runtime)
    assert pipeline.verify().ok

    inventory.get("web1").options["http_port"] = 8080
    report = pipeline.verify(["site1"], incremental=True)

    site = report.get("site1")
    assert site.status == "verified"
    assert not site.incremental
    assert [t.id for t in site.tasks] == ["site.dir", "site.vhost", "site.found"]
    vhost = tmp_path / "config" / "web1" / "vhost.d" / "example.com.conf"
    assert "listen        8080;" in vhost.read_text(encoding="utf-8")


def test_cycle_aborts_before_any_task(runtime) -> None:
    inventory = Inventory()
    inventory.add(Alpha("a1"))
    inventory.add(Beta("b1"))

    with pytest.raises(DependencyCycleError) as excinfo:
        VerificationPipeline(inventory, runtime).verify()

    assert set(excinfo.value.cycle) == {"a1", "b1"}
    assert RAN == []


def test_cycle_through_provider_outside_run_is_detected(runtime) -> None:
    inventory = Inventory()
    inventory.add(Alpha("a1"))
    inventory.add(Beta("b1"))

    with pytest.raises(DependencyCycleError) as excinfo:
        VerificationPipeline(inventory, runtime).verify(["a1"])

    assert set(excinfo.value.cycle) == {"a1", "b1"}
    assert RAN == []
    assert inventory.get("a1").state is not ContextState.VERIFIED


def test_dry_run_plans_without_side_effects(tmp_path: Path, runtime, fake_runner) -> None:
    inventory = hosting_inventory(tmp_path)

    report = VerificationPipeline(inventory, runtime).verify(dry_run=True)

    assert report.ok
    assert [c.status for c in report.contexts] == [PLANNED] * 3
    assert [t.id for t in report.get("platform1").tasks] == ["platform.git", "platform.found"]
    assert all(t.result.status is TaskStatus.PENDING for t in report.get("site1").tasks)
    assert fake_runner.calls == []
    assert not (tmp_path / "platforms").exists()
    assert inventory.get("platform1").state is ContextState.CONFIGURED


def test_with_dependencies_pulls_in_providers(tmp_path: Path, runtime) -> None:
    inventory = hosting_inventory(tmp_path)

    report = VerificationPipeline(inventory, runtime).verify(["site1"], with_dependencies=True)

    assert report.order == ["web1", "platform1", "site1"]
    assert report.ok


def test_out_of_run_provider_with_errors_blocks_dependent(tmp_path: Path, runtime, fake_runner) -> None:
    inventory = Inventory()
    inventory.add(server(http_port="eighty", config_path=str(tmp_path / "config" / "web1")))
    inventory.add(platform_context(root=tmp_path / "platforms" / "platform1"))

    report = VerificationPipeline(inventory, runtime).verify(["platform1"])

    assert report.get("platform1").error_kind == "DependencyFailed"
    assert fake_runner.calls == []
    # Out-of-run providers keep their state.
    assert inventory.get("web1").state is ContextState.UNCONFIGURED


def test_unverified_provider_outside_run_blocks_dependent(tmp_path: Path, runtime, fake_runner) -> None:
    inventory = hosting_inventory(tmp_path, with_site=False)
    pipeline = VerificationPipeline(inventory, runtime)

    report = pipeline.verify(["platform1"])

    platform = report.get("platform1")
    assert platform.status == "failed"
    assert platform.error_kind == "DependencyFailed"
    assert "web1 is unconfigured" in platform.message
    assert fake_runner.calls == []

    assert pipeline.verify(["platform1"], with_dependencies=True).ok
    assert fake_runner.verbs == ["clone"]


def test_configuration_errors_do_not_stop_other_contexts(tmp_path: Path, runtime) -> None:
    inventory = hosting_inventory(tmp_path, with_site=False)
    inventory.add(server("web2", scope="staging", http_port="0", config_path=str(tmp_path / "w2")))

    report = VerificationPipeline(inventory, runtime).verify()

    assert report.get("web2").status == "failed"
    assert report.get("web2").error_kind == "ValidationError"
    assert report.get("web1").status == "verified"
    assert report.get("platform1").status == "verified"


def test_timeout_is_reported_with_partial_output(tmp_path: Path, runtime, fake_runner) -> None:
    fake_runner.time_out("clone")
    inventory = hosting_inventory(tmp_path, with_site=False)

    report = VerificationPipeline(inventory, runtime).verify()

    platform = report.get("platform1")
    assert platform.error_kind == "Timeout"
    assert platform.tasks[0].result.output == "partial output"
    assert fake_runner.timeout_types == ["git_operations"]


def test_cancellation_fails_remaining_contexts(tmp_path: Path, runtime, fake_runner) -> None:
    runtime.cancel.cancel("operator abort")
    inventory = hosting_inventory(tmp_path, with_site=False)

    report = VerificationPipeline(inventory, runtime).verify()

    assert report.get("web1").error_kind == "Cancelled"
    assert report.get("platform1").error_kind == "DependencyFailed"
    assert fake_runner.calls == []
