from __future__ import annotations

from collections import deque
from collections.abc import Mapping
from enum import Enum
from typing import Any

from ..exceptions import StateTransitionError


class ContextState(str, Enum):
    """Lifecycle states of a Context."""

    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"
    VERIFYING = "verifying"
    VERIFIED = "verified"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ContextState.VERIFIED, ContextState.FAILED)


def _flatten_transitions(states: Mapping[str, Any]) -> dict[str, list[str]]:
    """Return a simple from->to adjacency map from rich state definitions."""
    trans: dict[str, list[str]] = {}
    for state_name, info in (states or {}).items():
        allowed = []
        for t in (info or {}).get("allowed_transitions", []) or []:
            to_state = t.get("to")
            if to_state:
                allowed.append(str(to_state))
        trans[str(state_name)] = allowed
    return trans


class LifecycleMachine:
    """Declarative state machine validating Context state changes."""

    def __init__(self, name: str, spec: Mapping[str, Any]):
        self.name = name
        self.spec = spec or {}
        states = self.spec.get("states") or {}
        if not isinstance(states, Mapping):
            raise ValueError(f"State machine '{name}' requires a mapping of states")
        self.states: Mapping[str, Any] = states
        unknown = [s for s in states if s not in {c.value for c in ContextState}]
        if unknown:
            raise ValueError(f"State machine '{name}' declares unknown states: {', '.join(unknown)}")

    @property
    def initial_state(self) -> ContextState:
        for name, info in self.states.items():
            if (info or {}).get("initial"):
                return ContextState(name)
        return ContextState.UNCONFIGURED

    def allowed_targets(self, current: str) -> list[str]:
        return self.transitions_map().get(str(current), [])

    def transitions_map(self) -> dict[str, list[str]]:
        return _flatten_transitions(self.states)

    def _shortest_path(self, start: str, goal: str) -> list[str] | None:
        """Return the shortest state path from start to goal (inclusive), or None."""
        if start == goal:
            return [start]

        graph = self.transitions_map()
        queue: deque[str] = deque([start])
        prev: dict[str, str | None] = {start: None}

        while queue:
            current = queue.popleft()
            for nxt in graph.get(current, []):
                if nxt in prev:
                    continue
                prev[nxt] = current
                if nxt == goal:
                    path: list[str] = [goal]
                    cur: str | None = current
                    while cur is not None:
                        path.append(cur)
                        cur = prev.get(cur)
                    return list(reversed(path))
                queue.append(nxt)

        return None

    def _format_invalid_transition_message(self, current: str, target: str) -> str:
        allowed = self.allowed_targets(current)
        allowed_part = f" Allowed next: {', '.join(allowed)}." if allowed else ""

        path = self._shortest_path(current, target)
        path_part = f" Suggested path: {' -> '.join(path)}." if path and len(path) > 1 else ""

        return f"Invalid transition {current!r} -> {target!r}: not allowed.{allowed_part}{path_part}"

    def validate(self, current: ContextState | str, target: ContextState | str) -> bool:
        """Return True when ``current -> target`` is allowed.

        Same-state transitions are always allowed.

        Raises:
            StateTransitionError: If the transition is not declared.
        """
        cur = ContextState(current).value
        tgt = ContextState(target).value
        if cur == tgt:
            return True
        if tgt not in self.allowed_targets(cur):
            raise StateTransitionError(
                self._format_invalid_transition_message(cur, tgt),
                context={"machine": self.name, "from": cur, "to": tgt},
            )
        return True


__all__ = ["ContextState", "LifecycleMachine", "StateTransitionError"]
