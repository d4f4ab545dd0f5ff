"""Execution runtime passed explicitly to validators, planners and actions."""
from __future__ import annotations

import logging
import subprocess
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Sequence, Tuple

from provision.core.exceptions import TaskCancelledError, TaskFailureError, TaskTimeoutError
from provision.core.utils.subprocess import (
    combined_output,
    flatten_cmd,
    infer_timeout_type,
    run_with_timeout,
)

if TYPE_CHECKING:
    from provision.core.emit import VhostRenderer

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUTS: Dict[str, float] = {
    "git_operations": 600.0,
    "build_operations": 1800.0,
    "remote_check": 30.0,
    "default": 120.0,
}


class CancellationToken:
    """Caller-supplied cancellation signal, checked at safe checkpoints."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason: str = ""

    def cancel(self, reason: str = "cancelled by caller") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, checkpoint: str) -> None:
        if self.cancelled:
            raise TaskCancelledError(
                f"Cancelled before {checkpoint}: {self.reason}",
                context={"checkpoint": checkpoint},
            )


class CommandRunner:
    """Runs external commands with a bounded wait per timeout bucket."""

    def __init__(self, timeouts: Optional[Mapping[str, float]] = None) -> None:
        self.timeouts: Dict[str, float] = dict(DEFAULT_TIMEOUTS)
        self.timeouts.update(timeouts or {})

    def timeout_for(self, cmd: Any, timeout_type: Optional[str] = None) -> float:
        bucket = timeout_type or infer_timeout_type(cmd)
        return float(self.timeouts.get(bucket, self.timeouts["default"]))

    def run(
        self,
        cmd: Any,
        *,
        cwd: Optional[Path] = None,
        timeout_type: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> subprocess.CompletedProcess:
        """Run ``cmd`` and return the completed process (any exit code).

        Raises:
            TaskTimeoutError: When the bounded wait expires.
            TaskFailureError: When the executable cannot be started.
        """
        argv = flatten_cmd(cmd)
        timeout = self.timeout_for(argv, timeout_type)
        try:
            return run_with_timeout(argv, timeout=timeout, cwd=cwd, env=env)
        except subprocess.TimeoutExpired as exc:
            raise TaskTimeoutError(
                f"{' '.join(argv)} did not finish within {timeout:g}s",
                output=combined_output(exc),
                context={"argv": argv, "timeout": timeout},
            ) from exc
        except OSError as exc:
            raise TaskFailureError(
                f"Unable to run {argv[0]}: {exc}",
                exit_code=127,
                context={"argv": argv},
            ) from exc


@dataclass
class Runtime:
    """Everything a planner or action needs from its environment.

    Nothing in the engine reaches for globals; the pipeline and CLI build one
    Runtime per run and pass it down.
    """

    runner: CommandRunner = field(default_factory=CommandRunner)
    cwd: Path = field(default_factory=Path.cwd)
    dry_run: bool = False
    check_remotes: bool = True
    cancel: CancellationToken = field(default_factory=CancellationToken)
    build_command: str = "drush"
    working_copy_flags: Tuple[str, ...] = ("--working-copy", "--no-gitinfofile", "--no-gitprojectinfo")
    config_root: Optional[Path] = None
    renderer: Optional["VhostRenderer"] = None

    def get_renderer(self) -> "VhostRenderer":
        if self.renderer is None:
            from provision.core.emit import VhostRenderer

            self.renderer = VhostRenderer()
        return self.renderer

    @classmethod
    def from_config(
        cls,
        repo_root: Path,
        *,
        dry_run: bool = False,
        check_remotes: Optional[bool] = None,
        runner: Optional[CommandRunner] = None,
        cancel: Optional[CancellationToken] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> "Runtime":
        from provision.core.config.domains import BuildConfig, PathsConfig, PipelineConfig, TimeoutsConfig

        timeouts = TimeoutsConfig(repo_root, config=config)
        build = BuildConfig(repo_root, config=config)
        paths = PathsConfig(repo_root, config=config)
        pipeline = PipelineConfig(repo_root, config=config)
        return cls(
            runner=runner or CommandRunner(timeouts.get_all_settings()),
            cwd=Path(repo_root),
            dry_run=dry_run,
            check_remotes=pipeline.check_remotes if check_remotes is None else check_remotes,
            cancel=cancel or CancellationToken(),
            build_command=build.command,
            working_copy_flags=tuple(build.working_copy_flags),
            config_root=paths.config_root,
        )


def format_argv(argv: Sequence[str]) -> str:
    return " ".join(str(a) for a in argv)


__all__ = [
    "CancellationToken",
    "CommandRunner",
    "Runtime",
    "DEFAULT_TIMEOUTS",
    "format_argv",
]
