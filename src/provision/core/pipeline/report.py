"""Verification reports."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from provision.core.context import Context
from provision.core.exceptions import ProvisionError
from provision.core.state import ContextState
from provision.core.tasks import Task

PLANNED = "planned"


@dataclass
class ContextReport:
    name: str
    type: str
    state: ContextState
    status: str
    error_kind: Optional[str] = None
    message: str = ""
    failed_task: Optional[str] = None
    errors: List[Dict[str, Any]] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)
    providers: Dict[str, str] = field(default_factory=dict)
    incremental: bool = False

    @classmethod
    def from_context(
        cls,
        context: Context,
        tasks: List[Task],
        *,
        dry_run: bool = False,
        incremental: bool = False,
    ) -> "ContextReport":
        failure = context.failure
        if context.state is ContextState.FAILED:
            status = ContextState.FAILED.value
        elif dry_run:
            status = PLANNED
        else:
            status = context.state.value
        return cls(
            name=context.name,
            type=context.type_tag,
            state=context.state,
            status=status,
            error_kind=failure.kind if failure else None,
            message=failure.message if failure else "",
            failed_task=failure.task_id if failure else None,
            errors=[_error_dict(e) for e in context.errors],
            tasks=list(tasks),
            providers=dict(context.providers),
            incremental=incremental,
        )

    @property
    def ok(self) -> bool:
        return self.status in (ContextState.VERIFIED.value, PLANNED)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "state": self.state.value,
            "status": self.status,
            "providers": dict(self.providers),
            "tasks": [t.to_dict() for t in self.tasks],
        }
        if self.incremental:
            data["incremental"] = True
        if self.error_kind:
            data["error"] = self.error_kind
            data["message"] = self.message
        if self.failed_task:
            data["failed_task"] = self.failed_task
        if self.errors:
            data["errors"] = list(self.errors)
        return data


def _error_dict(error: ProvisionError) -> Dict[str, Any]:
    payload = error.to_json_error()
    payload.pop("errors", None)
    return payload


@dataclass
class VerificationReport:
    contexts: List[ContextReport] = field(default_factory=list)
    order: List[str] = field(default_factory=list)
    dry_run: bool = False
    started_at: str = ""
    finished_at: str = ""

    @property
    def ok(self) -> bool:
        return all(c.ok for c in self.contexts)

    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def get(self, name: str) -> ContextReport:
        for report in self.contexts:
            if report.name == name:
                return report
        raise KeyError(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "dry_run": self.dry_run,
            "order": list(self.order),
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "contexts": [c.to_dict() for c in self.contexts],
        }


__all__ = ["ContextReport", "PLANNED", "VerificationReport"]
