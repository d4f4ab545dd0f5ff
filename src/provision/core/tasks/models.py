"""Task and result types.

A Task is one named unit of remediation work. Its action is an inspectable
command object (see ``actions``) so a plan can be printed without running it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from .actions import Action


class TaskStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    # Planned but not executed (dry-run, or a previous Task failed).
    SKIPPED = "skipped"


@dataclass
class TaskResult:
    status: TaskStatus = TaskStatus.PENDING
    message: str = ""
    exit_code: Optional[int] = None
    error_kind: Optional[str] = None
    output: Optional[str] = None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status is TaskStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "status": self.status.value,
            "message": self.message,
        }
        if self.exit_code is not None:
            data["exit_code"] = self.exit_code
        if self.error_kind:
            data["error"] = self.error_kind
        if self.output:
            data["output"] = self.output
        if self.duration:
            data["duration"] = round(self.duration, 3)
        return data


@dataclass
class Task:
    """A planned remediation step.

    ``id`` is unique within the owning Context's plan (e.g. ``platform.git``).
    """

    id: str
    description: str
    action: "Action"
    start_message: str = ""
    success_message: str = ""
    failure_message: str = ""
    result: TaskResult = field(default_factory=TaskResult)

    def describe(self) -> str:
        return self.action.describe()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "action": self.action.kind.value,
            "plan": self.describe(),
            **self.result.to_dict(),
        }


__all__ = ["Task", "TaskResult", "TaskStatus"]
