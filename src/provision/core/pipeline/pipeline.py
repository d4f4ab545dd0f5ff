"""Verification pipeline.

One run:

1. configure and resolve every targeted Context (errors collected, never
   fail-fast), and read out-of-run providers without touching their state;
2. check the whole provider graph, out-of-run providers included, for a
   cycle (``DependencyCycleError`` aborts the run before any Task executes),
   then order the targets so providers come first;
3. per Context, in order: skip when configuration or resolution failed or a
   provider is not Verified; otherwise plan, then (unless dry-run) execute
   the Tasks fail-fast and settle on Verified or Failed.

A failing Context never stops unrelated Contexts.
"""
from __future__ import annotations

import hashlib
import logging
from contextlib import nullcontext
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Sequence, Set, Union

from provision.core.context import Context, Dependencies
from provision.core.exceptions import (
    DependencyCycleError,
    DependencyFailedError,
    ProvisionError,
    TaskFailureError,
    UnresolvedCapabilityError,
    ValidationError,
)
from provision.core.inventory import Inventory
from provision.core.state import ContextState
from provision.core.tasks import Runtime, Task, TaskRunner, TaskStatus
from provision.core.utils.time import utc_timestamp

from .ordering import find_cycle, topological_order
from .report import ContextReport, VerificationReport

if TYPE_CHECKING:
    from provision.core.store import ContextStore

logger = logging.getLogger(__name__)

Target = Union[str, Context]


class VerificationPipeline:
    def __init__(
        self,
        inventory: Inventory,
        runtime: Runtime,
        store: Optional["ContextStore"] = None,
        *,
        task_runner: Optional[TaskRunner] = None,
    ) -> None:
        self.inventory = inventory
        self.runtime = runtime
        self.store = store
        self.task_runner = task_runner or TaskRunner()
        self._prepared: Set[str] = set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def verify(
        self,
        targets: Optional[Iterable[Target]] = None,
        *,
        dry_run: Optional[bool] = None,
        with_dependencies: bool = False,
        incremental: bool = False,
    ) -> VerificationReport:
        """Verify ``targets`` (names or Contexts; all Contexts when None).

        Raises:
            DependencyCycleError: No valid order exists; no Task has run.
            ContextNotFoundError: A target name is unknown.
        """
        dry_run = self.runtime.dry_run if dry_run is None else dry_run
        contexts = self._select(targets)
        lock = self.store.lock() if self.store is not None else nullcontext()
        with lock, self.inventory.registry.locked():
            return self._run(contexts, dry_run=dry_run, with_dependencies=with_dependencies, incremental=incremental)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------
    def _select(self, targets: Optional[Iterable[Target]]) -> List[Context]:
        if targets is None:
            return list(self.inventory)
        selected: List[Context] = []
        for target in targets:
            context = target if isinstance(target, Context) else self.inventory.get(target)
            if context.name not in self.inventory:
                self.inventory.add(context)
            if context not in selected:
                selected.append(context)
        return selected

    def _run(
        self,
        contexts: List[Context],
        *,
        dry_run: bool,
        with_dependencies: bool,
        incremental: bool,
    ) -> VerificationReport:
        report = VerificationReport(dry_run=dry_run, started_at=utc_timestamp())
        if with_dependencies:
            contexts = self._with_providers(contexts)
        in_run: Dict[str, Context] = {c.name: c for c in contexts}
        self._prepared = set(in_run)
        logger.info(
            "Verification run started: %s%s",
            ", ".join(in_run) or "(nothing)",
            " [dry-run]" if dry_run else "",
        )

        previous = {c.name: (c.state, c.verified_fingerprint) for c in contexts}
        for context in contexts:
            context.configure(self.runtime)
            context.resolve_dependencies(self.inventory)
        for context in contexts:
            for provider in context.providers.values():
                if provider not in in_run:
                    self._prepare_provider(provider)

        graph = self._provider_graph(contexts)
        cycle = find_cycle(list(graph), graph)
        if cycle:
            raise DependencyCycleError("Dependency cycle: " + " -> ".join(cycle), cycle=cycle)

        edges = {c.name: list(c.providers.values()) for c in contexts}
        order = topological_order([c.name for c in contexts], edges)
        report.order = order
        logger.info("Verification order: %s", " -> ".join(order))

        for name in order:
            context = in_run[name]
            unchanged = incremental and previous[name] == (ContextState.VERIFIED, self.fingerprint(context))
            report.contexts.append(self._verify_one(context, in_run, dry_run=dry_run, incremental=unchanged))

        report.finished_at = utc_timestamp()
        logger.info(
            "Verification run finished: %s",
            ", ".join(f"{c.name}={c.status}" for c in report.contexts) or "(nothing)",
        )
        if self.store is not None and not dry_run:
            self.store.save_report(report)
        return report

    def _with_providers(self, contexts: Sequence[Context]) -> List[Context]:
        result = list(contexts)
        queue = list(contexts)
        while queue:
            context = queue.pop(0)
            for capability in context.required_capabilities():
                try:
                    provider = self.inventory.resolve_provider(context, capability)
                except UnresolvedCapabilityError:
                    # Reported when the dependent is resolved.
                    continue
                if provider not in result:
                    result.append(provider)
                    queue.append(provider)
        return result

    def prepare(self, name: str) -> Context:
        """Configure ``name`` and its providers outside a run; states are kept."""
        self._prepared = set()
        self._prepare_provider(name)
        return self.inventory.get(name)

    def _prepare_provider(self, name: str) -> None:
        """Refresh values of a provider outside the run (state is untouched)."""
        if name in self._prepared:
            return
        self._prepared.add(name)
        provider = self.inventory.get(name)
        provider.configure(self.runtime, transition=False)
        provider.resolve_dependencies(self.inventory, transition=False)
        for upstream in provider.providers.values():
            self._prepare_provider(upstream)

    def _provider_graph(self, contexts: Sequence[Context]) -> Dict[str, List[str]]:
        """Provider edges reachable from ``contexts``, out-of-run providers included."""
        graph: Dict[str, List[str]] = {}
        queue = [c.name for c in contexts]
        while queue:
            name = queue.pop(0)
            if name in graph:
                continue
            graph[name] = list(self.inventory.get(name).providers.values())
            queue.extend(graph[name])
        return graph

    def fingerprint(self, context: Context) -> str:
        """Fingerprint of the values of ``context`` and of all its providers.

        A change in a provider (e.g. the web server port) invalidates the
        incremental state of every Context built on it.
        """
        parts = [context.fingerprint()]
        for capability, name in sorted(context.providers.items()):
            parts.append(f"{capability}={self.fingerprint(self.inventory.get(name))}")
        return hashlib.sha256("\n".join(parts).encode("utf-8")).hexdigest()

    def dependencies(self, context: Context) -> Dependencies:
        providers = {cap: self.inventory.get(name) for cap, name in context.providers.items()}
        return Dependencies(providers, resolver=self.dependencies)

    def _blocking_error(
        self, context: Context, in_run: Dict[str, Context], *, dry_run: bool
    ) -> Optional[ProvisionError]:
        for capability, name in context.providers.items():
            provider = self.inventory.get(name)
            if name in in_run:
                ready = provider.state is ContextState.VERIFIED or (
                    dry_run and provider.state is ContextState.CONFIGURED
                )
                if not ready:
                    return DependencyFailedError(
                        f"{capability} provider {name} is {provider.state.value}",
                        context={"context": context.name, "provider": name, "capability": capability},
                    )
            elif provider.errors:
                return DependencyFailedError(
                    f"{capability} provider {name} has configuration errors",
                    context={"context": context.name, "provider": name, "capability": capability},
                )
            elif provider.state is not ContextState.VERIFIED:
                return DependencyFailedError(
                    f"{capability} provider {name} is {provider.state.value} and not part of this run",
                    context={"context": context.name, "provider": name, "capability": capability},
                )
        return None

    def _verify_one(
        self,
        context: Context,
        in_run: Dict[str, Context],
        *,
        dry_run: bool,
        incremental: bool,
    ) -> ContextReport:
        if context.errors:
            logger.warning("%s not verified: %s", context.name, context.failure.message if context.failure else "")
            return self._finish(context, [], dry_run=dry_run)

        blocked = self._blocking_error(context, in_run, dry_run=dry_run)
        if blocked is not None:
            context.fail(blocked)
            logger.warning("%s not verified: %s", context.name, blocked)
            return self._finish(context, [], dry_run=dry_run)

        deps = self.dependencies(context)
        use_checks = incremental
        try:
            tasks = (context.check_tasks if use_checks else context.verify)(self.runtime, deps)
        except ProvisionError as exc:
            context.fail(exc)
            return self._finish(context, [], dry_run=dry_run)
        except ValueError as exc:
            context.fail(ValidationError(f"Cannot plan {context.name}: {exc}"))
            return self._finish(context, [], dry_run=dry_run)
        except Exception as exc:  # noqa: BLE001 - planner faults fail this Context only
            logger.exception("Planning %s failed", context.name)
            context.fail(TaskFailureError(f"Cannot plan {context.name}: {type(exc).__name__}: {exc}"))
            return self._finish(context, [], dry_run=dry_run)

        logger.info(
            "%s plan: %s",
            context.name,
            "; ".join(f"{t.id}: {t.describe()}" for t in tasks) or "(empty)",
        )
        if dry_run:
            return self._finish(context, tasks, dry_run=True, incremental=use_checks)

        self._execute(context, tasks)
        return self._finish(context, tasks, dry_run=False, incremental=use_checks)

    def _execute(self, context: Context, tasks: List[Task]) -> None:
        context.transition(ContextState.VERIFYING)
        for position, task in enumerate(tasks):
            result = self.task_runner.run(task, self.runtime)
            if result.ok:
                continue
            for skipped in tasks[position + 1:]:
                skipped.result.status = TaskStatus.SKIPPED
                skipped.result.message = f"not run: {task.id} failed"
            context.fail_task(task)
            return
        context.verified_fingerprint = self.fingerprint(context)
        context.transition(ContextState.VERIFIED)

    def _finish(
        self,
        context: Context,
        tasks: List[Task],
        *,
        dry_run: bool,
        incremental: bool = False,
    ) -> ContextReport:
        report = ContextReport.from_context(context, tasks, dry_run=dry_run, incremental=incremental)
        if self.store is not None and not dry_run:
            self.store.record_result(context, report)
        return report


def verify_contexts(
    inventory: Inventory,
    targets: Optional[Iterable[Target]] = None,
    *,
    runtime: Optional[Runtime] = None,
    **kwargs: Any,
) -> VerificationReport:
    """Convenience wrapper: one pipeline, one run."""
    pipeline = VerificationPipeline(inventory, runtime or Runtime())
    return pipeline.verify(targets, **kwargs)


__all__ = ["VerificationPipeline", "verify_contexts"]
