"""Tasks: planned remediation steps, their actions and the Task boundary."""
from __future__ import annotations

from .actions import (
    Action,
    ActionKind,
    ActionOutcome,
    CallableAction,
    EnsureDirectory,
    GitClone,
    MakeBuild,
    PathExists,
    RunCommand,
    WriteFile,
)
from .models import Task, TaskResult, TaskStatus
from .runner import TaskRunner
from .runtime import CancellationToken, CommandRunner, Runtime

__all__ = [
    "Action",
    "ActionKind",
    "ActionOutcome",
    "CallableAction",
    "CancellationToken",
    "CommandRunner",
    "EnsureDirectory",
    "GitClone",
    "MakeBuild",
    "PathExists",
    "RunCommand",
    "Runtime",
    "Task",
    "TaskResult",
    "TaskRunner",
    "TaskStatus",
    "WriteFile",
]
