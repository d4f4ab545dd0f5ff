from __future__ import annotations

import pytest

from provision.core.exceptions import DependencyCycleError
from provision.core.pipeline import find_cycle, topological_order


def test_providers_come_first_regardless_of_input_order() -> None:
    deps = {"site1": ["platform1", "web1"], "platform1": ["web1"]}
    assert topological_order(["site1", "platform1", "web1"], deps) == ["web1", "platform1", "site1"]
    assert topological_order(["web1", "platform1", "site1"], deps) == ["web1", "platform1", "site1"]


def test_independent_nodes_keep_input_order() -> None:
    assert topological_order(["b", "a", "c"], {}) == ["b", "a", "c"]


def test_providers_outside_the_run_are_ignored() -> None:
    assert topological_order(["platform1"], {"platform1": ["web1"]}) == ["platform1"]


def test_cycle_is_reported_with_its_members() -> None:
    with pytest.raises(DependencyCycleError) as excinfo:
        topological_order(["a", "b", "c"], {"a": ["b"], "b": ["a"], "c": []})
    assert excinfo.value.cycle[0] == excinfo.value.cycle[-1]
    assert set(excinfo.value.cycle) == {"a", "b"}
    assert excinfo.value.context["cycle"] == excinfo.value.cycle


def test_self_dependency_is_a_cycle() -> None:
    with pytest.raises(DependencyCycleError):
        topological_order(["a"], {"a": ["a"]})


def test_find_cycle_returns_empty_for_dag() -> None:
    assert find_cycle(["a", "b"], {"a": ["b"]}) == []
