"""Context lifecycle state machine."""
from __future__ import annotations

from functools import lru_cache

from provision.data import read_yaml

from .engine import ContextState, LifecycleMachine, StateTransitionError


@lru_cache(maxsize=1)
def default_lifecycle() -> LifecycleMachine:
    """The bundled Context lifecycle (``provision.data/lifecycle.yaml``)."""
    return LifecycleMachine("context", read_yaml("", "lifecycle.yaml"))


__all__ = [
    "ContextState",
    "LifecycleMachine",
    "StateTransitionError",
    "default_lifecycle",
]
