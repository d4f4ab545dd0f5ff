"""Dependency ordering of Contexts (Kahn's algorithm, input order breaks ties)."""
from __future__ import annotations

import heapq
from typing import Dict, Iterable, List, Mapping, Sequence, Set

from provision.core.exceptions import DependencyCycleError


def topological_order(names: Sequence[str], providers: Mapping[str, Iterable[str]]) -> List[str]:
    """Order ``names`` so every provider comes before its dependents.

    ``providers`` maps a name to the names it depends on; names outside
    ``names`` are ignored. Among nodes that are ready at the same time the
    one listed first in ``names`` goes first, so the result is stable.

    Raises:
        DependencyCycleError: No valid order exists.
    """
    index = {name: i for i, name in enumerate(names)}
    indegree: Dict[str, int] = {name: 0 for name in names}
    dependents: Dict[str, List[str]] = {name: [] for name in names}
    for name in names:
        for provider in set(providers.get(name, ())):
            if provider in index and provider != name:
                indegree[name] += 1
                dependents[provider].append(name)
            elif provider == name:
                raise DependencyCycleError(f"{name} depends on itself", cycle=[name, name])

    ready = [(index[n], n) for n in names if indegree[n] == 0]
    heapq.heapify(ready)
    order: List[str] = []
    while ready:
        _, name = heapq.heappop(ready)
        order.append(name)
        for dependent in dependents[name]:
            indegree[dependent] -= 1
            if indegree[dependent] == 0:
                heapq.heappush(ready, (index[dependent], dependent))

    if len(order) != len(names):
        remaining = [n for n in names if n not in set(order)]
        cycle = find_cycle(remaining, providers)
        raise DependencyCycleError(
            "Dependency cycle: " + " -> ".join(cycle),
            cycle=cycle,
        )
    return order


def find_cycle(names: Sequence[str], providers: Mapping[str, Iterable[str]]) -> List[str]:
    """Return one cycle among ``names`` as ``[a, b, ..., a]`` (empty if none)."""
    allowed: Set[str] = set(names)
    visiting: List[str] = []
    done: Set[str] = set()

    def visit(node: str) -> List[str]:
        if node in visiting:
            return visiting[visiting.index(node):] + [node]
        if node in done:
            return []
        visiting.append(node)
        for provider in providers.get(node, ()):
            if provider in allowed:
                found = visit(provider)
                if found:
                    return found
        visiting.pop()
        done.add(node)
        return []

    for name in names:
        cycle = visit(name)
        if cycle:
            return cycle
    return []


__all__ = ["find_cycle", "topological_order"]
