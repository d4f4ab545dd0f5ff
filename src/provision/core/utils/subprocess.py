"""Subprocess helpers with bounded waits.

- No shell=True (commands are argv lists or shlex-split strings)
- Every call has a timeout; on expiry the whole process group is terminated
- Output is always captured so failures can be reported with the raw tool output
"""

from __future__ import annotations

import logging
import os
import shlex
import signal
import subprocess
from pathlib import Path
from time import perf_counter
from typing import Any, List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


def flatten_cmd(cmd: Any) -> List[str]:
    if isinstance(cmd, (list, tuple)):
        return [str(p) for p in cmd]
    return shlex.split(str(cmd))


def infer_timeout_type(cmd: Any) -> str:
    """Map a command onto a configured timeout bucket."""
    parts = flatten_cmd(cmd)
    if not parts:
        return "default"

    first = Path(parts[0]).name.lower()
    if first == "git":
        return "git_operations"
    if first in {"drush", "make", "composer"} or "make" in (p.lower() for p in parts[1:2]):
        return "build_operations"
    return "default"


def _popen_process_group_kwargs() -> dict[str, Any]:
    if os.name == "posix":
        return {"start_new_session": True}
    if os.name == "nt":
        creationflags = getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", None)
        if isinstance(creationflags, int):
            return {"creationflags": creationflags}
    return {}


def _terminate_process_group(proc: subprocess.Popen[Any]) -> None:
    if proc.poll() is not None:
        return
    if os.name == "posix":
        try:
            os.killpg(proc.pid, signal.SIGTERM)
        except OSError:
            proc.terminate()
        try:
            proc.wait(timeout=0.2)
        except subprocess.TimeoutExpired:
            pass
        if proc.poll() is None:
            try:
                os.killpg(proc.pid, signal.SIGKILL)
            except OSError:
                proc.kill()
        try:
            proc.wait(timeout=0.2)
        except subprocess.TimeoutExpired:
            pass
        return

    proc.kill()
    try:
        proc.wait(timeout=0.2)
    except subprocess.TimeoutExpired:
        pass


def run_with_timeout(
    cmd: Any,
    *,
    timeout: float,
    cwd: Path | str | None = None,
    env: Optional[Mapping[str, str]] = None,
    input: Optional[str] = None,
    check: bool = False,
) -> subprocess.CompletedProcess:
    """Run ``cmd`` capturing output, killing its process group after ``timeout``.

    Raises:
        subprocess.TimeoutExpired: When the command exceeds ``timeout``.
        subprocess.CalledProcessError: When ``check`` is set and the exit code is non-zero.
        FileNotFoundError: When the executable does not exist.
    """
    argv = flatten_cmd(cmd)
    if not argv:
        raise ValueError("command is empty after parsing")

    start = perf_counter()
    logger.debug("subprocess.start argv=%s cwd=%s timeout=%s", argv, cwd, timeout)
    proc = subprocess.Popen(  # noqa: S603
        argv,
        cwd=str(cwd) if cwd is not None else None,
        env=dict(env) if env is not None else None,
        stdin=subprocess.PIPE if input is not None else None,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        **_popen_process_group_kwargs(),
    )
    try:
        stdout, stderr = proc.communicate(input=input, timeout=timeout)
    except subprocess.TimeoutExpired as exc:
        _terminate_process_group(proc)
        try:
            stdout, stderr = proc.communicate(timeout=0.2)
        except (subprocess.TimeoutExpired, ValueError, OSError):
            stdout = getattr(exc, "output", None)
            stderr = getattr(exc, "stderr", None)
        logger.debug("subprocess.timeout argv=%s after=%.2fs", argv, perf_counter() - start)
        raise subprocess.TimeoutExpired(argv, timeout, output=stdout, stderr=stderr) from None

    completed = subprocess.CompletedProcess(
        argv,
        proc.returncode if proc.returncode is not None else 0,
        stdout=stdout,
        stderr=stderr,
    )
    logger.debug(
        "subprocess.end argv=%s rc=%s duration=%.2fs",
        argv,
        completed.returncode,
        perf_counter() - start,
    )
    if check and completed.returncode != 0:
        raise subprocess.CalledProcessError(completed.returncode, argv, output=stdout, stderr=stderr)
    return completed


def combined_output(result: subprocess.CompletedProcess | subprocess.TimeoutExpired) -> str:
    """Join stdout and stderr of a finished (or timed out) command."""
    parts: Sequence[Any] = (
        getattr(result, "stdout", None) or getattr(result, "output", None),
        getattr(result, "stderr", None),
    )
    out: List[str] = []
    for part in parts:
        if not part:
            continue
        if isinstance(part, bytes):
            part = part.decode("utf-8", errors="replace")
        out.append(str(part).rstrip())
    return "\n".join(p for p in out if p)


__all__ = [
    "flatten_cmd",
    "infer_timeout_type",
    "run_with_timeout",
    "combined_output",
]
