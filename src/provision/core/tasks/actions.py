"""Inspectable Task actions.

Each action is a small command object: ``kind`` plus parameters, a
``describe()`` usable for dry-run output, and ``run(runtime)``. Actions check
their target condition first and skip the side effect when it already holds.
Failures are raised as ``TaskFailureError`` subclasses; the Task boundary
turns them into structured results.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Tuple

from provision.core.build import make_build
from provision.core.exceptions import TaskFailureError
from provision.core.git import clone
from provision.core.utils.io import ensure_directory, read_text, write_text
from provision.core.utils.subprocess import combined_output

from .runtime import Runtime, format_argv

logger = logging.getLogger(__name__)


class ActionKind(str, Enum):
    EXISTS = "exists"
    ENSURE_DIRECTORY = "ensure_directory"
    GIT_CLONE = "git_clone"
    MAKE_BUILD = "make_build"
    WRITE_FILE = "write_file"
    COMMAND = "command"
    CALLABLE = "callable"


@dataclass(frozen=True)
class ActionOutcome:
    ok: bool
    message: str = ""
    exit_code: Optional[int] = None
    output: Optional[str] = None
    error_kind: Optional[str] = None


def _has_files(path: Path) -> bool:
    if not path.exists():
        return False
    if not path.is_dir():
        return True
    return any(path.iterdir())


class Action(ABC):
    kind: ActionKind

    @abstractmethod
    def describe(self) -> str:
        """One-line, human readable description of what ``run`` would do."""

    @abstractmethod
    def run(self, runtime: Runtime) -> ActionOutcome:
        ...


@dataclass(frozen=True)
class PathExists(Action):
    """Authoritative existence check for a path."""

    path: Path
    label: str = "Path"
    kind: ActionKind = field(default=ActionKind.EXISTS, init=False)

    def describe(self) -> str:
        return f"check that {self.path} exists"

    def run(self, runtime: Runtime) -> ActionOutcome:
        if self.path.exists():
            return ActionOutcome(True, f"{self.label} {self.path} found", exit_code=0)
        raise TaskFailureError(
            f"{self.label} {self.path} does not exist",
            exit_code=1,
            context={"path": str(self.path)},
        )


@dataclass(frozen=True)
class EnsureDirectory(Action):
    path: Path
    kind: ActionKind = field(default=ActionKind.ENSURE_DIRECTORY, init=False)

    def describe(self) -> str:
        return f"create directory {self.path} if missing"

    def run(self, runtime: Runtime) -> ActionOutcome:
        if self.path.is_dir():
            return ActionOutcome(True, f"Directory {self.path} already exists")
        if self.path.exists():
            raise TaskFailureError(
                f"{self.path} exists but is not a directory",
                context={"path": str(self.path)},
            )
        ensure_directory(self.path)
        return ActionOutcome(True, f"Created directory {self.path}")


@dataclass(frozen=True)
class GitClone(Action):
    url: str
    target: Path
    kind: ActionKind = field(default=ActionKind.GIT_CLONE, init=False)

    def describe(self) -> str:
        return f"git clone {self.url} into {self.target}"

    def run(self, runtime: Runtime) -> ActionOutcome:
        # The root may have been populated since planning.
        if _has_files(self.target):
            return ActionOutcome(True, f"{self.target} already contains files, clone skipped")
        output = clone(runtime.runner, self.url, self.target, cwd=runtime.cwd)
        return ActionOutcome(True, f"Cloned {self.url} to {self.target}", exit_code=0, output=output or None)


@dataclass(frozen=True)
class MakeBuild(Action):
    manifest: str
    target: Path
    argv: Tuple[str, ...]
    kind: ActionKind = field(default=ActionKind.MAKE_BUILD, init=False)

    def describe(self) -> str:
        return format_argv(self.argv)

    def run(self, runtime: Runtime) -> ActionOutcome:
        if _has_files(self.target):
            return ActionOutcome(True, f"{self.target} already contains files, build skipped")
        output = make_build(runtime.runner, self.argv, self.target, cwd=runtime.cwd)
        return ActionOutcome(True, f"Built {self.target} from {self.manifest}", exit_code=0, output=output or None)


@dataclass(frozen=True)
class WriteFile(Action):
    """Write rendered text, touching the file only when content differs."""

    path: Path
    content: str
    kind: ActionKind = field(default=ActionKind.WRITE_FILE, init=False)

    def describe(self) -> str:
        return f"write {self.path} ({len(self.content)} bytes)"

    def run(self, runtime: Runtime) -> ActionOutcome:
        if self.path.is_file() and read_text(self.path) == self.content:
            return ActionOutcome(True, f"{self.path} is up to date")
        write_text(self.path, self.content)
        return ActionOutcome(True, f"Wrote {self.path}")


@dataclass(frozen=True)
class RunCommand(Action):
    argv: Tuple[str, ...]
    timeout_type: Optional[str] = None
    kind: ActionKind = field(default=ActionKind.COMMAND, init=False)

    def describe(self) -> str:
        return format_argv(self.argv)

    def run(self, runtime: Runtime) -> ActionOutcome:
        result = runtime.runner.run(list(self.argv), cwd=runtime.cwd, timeout_type=self.timeout_type)
        output = combined_output(result)
        if result.returncode != 0:
            raise TaskFailureError(
                f"{self.describe()} exited with {result.returncode}",
                exit_code=result.returncode,
                output=output,
                context={"argv": list(self.argv)},
            )
        return ActionOutcome(True, f"{self.describe()} succeeded", exit_code=0, output=output or None)


@dataclass(frozen=True)
class CallableAction(Action):
    """Opaque ad hoc step; inspectable only by its label.

    ``func(runtime)`` returns a message (or None) on success and raises on
    failure.
    """

    label: str
    func: Callable[[Runtime], Any] = field(compare=False)
    kind: ActionKind = field(default=ActionKind.CALLABLE, init=False)

    def describe(self) -> str:
        return self.label

    def run(self, runtime: Runtime) -> ActionOutcome:
        message = self.func(runtime)
        return ActionOutcome(True, str(message) if message else f"{self.label} done")


__all__ = [
    "Action",
    "ActionKind",
    "ActionOutcome",
    "CallableAction",
    "EnsureDirectory",
    "GitClone",
    "MakeBuild",
    "PathExists",
    "RunCommand",
    "WriteFile",
]
