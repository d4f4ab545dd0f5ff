from __future__ import annotations

import pytest

from provision.core.exceptions import StateTransitionError
from provision.core.state import ContextState, LifecycleMachine, default_lifecycle


def test_initial_state_is_unconfigured() -> None:
    assert default_lifecycle().initial_state is ContextState.UNCONFIGURED


@pytest.mark.parametrize(
    "current,target",
    [
        ("unconfigured", "configured"),
        ("configured", "verifying"),
        ("verifying", "verified"),
        ("verifying", "failed"),
        ("failed", "configured"),
        ("verified", "configured"),
    ],
)
def test_declared_transitions_are_allowed(current: str, target: str) -> None:
    assert default_lifecycle().validate(current, target) is True


def test_undeclared_transition_suggests_a_path() -> None:
    with pytest.raises(StateTransitionError) as excinfo:
        default_lifecycle().validate(ContextState.UNCONFIGURED, ContextState.VERIFIED)
    message = str(excinfo.value)
    assert "Suggested path: unconfigured -> configured -> verifying -> verified" in message


def test_same_state_is_always_allowed() -> None:
    assert default_lifecycle().validate("failed", "failed")


def test_unknown_states_in_spec_are_rejected() -> None:
    with pytest.raises(ValueError):
        LifecycleMachine("broken", {"states": {"limbo": {}}})


def test_terminal_states() -> None:
    assert ContextState.VERIFIED.is_terminal
    assert ContextState.FAILED.is_terminal
    assert not ContextState.CONFIGURED.is_terminal
