"""File locking used to give one pipeline run exclusive access to a state dir."""
from __future__ import annotations

import fcntl
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, TextIO

from .core import ensure_directory

_THREAD_MUTEXES: dict[str, threading.Lock] = {}

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_POLL_INTERVAL_SECONDS = 0.05


class LockTimeoutError(TimeoutError):
    """Raised when an OS file lock cannot be acquired within timeout."""


def _thread_mutex(path: Path) -> threading.Lock:
    key = str(path.resolve())
    lock = _THREAD_MUTEXES.get(key)
    if lock is None:
        lock = _THREAD_MUTEXES.setdefault(key, threading.Lock())
    return lock


def _validate_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive (got {value})")


@contextmanager
def acquire_file_lock(
    file_path: Path | str,
    timeout: Optional[float] = None,
    *,
    poll_interval: Optional[float] = None,
) -> Iterator[TextIO]:
    """Acquire an exclusive lock on the ``<file_path>.lock`` sidecar.

    Uses ``fcntl.flock`` with ``LOCK_EX | LOCK_NB`` in a retry loop, guarded by
    a per-path thread mutex so threads of one process also exclude each other.

    Raises:
        LockTimeoutError: When the lock is not obtained within ``timeout``.
    """
    effective_timeout = DEFAULT_TIMEOUT_SECONDS if timeout is None else float(timeout)
    effective_poll = DEFAULT_POLL_INTERVAL_SECONDS if poll_interval is None else float(poll_interval)
    _validate_positive("timeout", effective_timeout)
    _validate_positive("poll_interval", effective_poll)

    start = time.monotonic()
    target = Path(file_path)
    lock_target = target.with_suffix(target.suffix + ".lock")
    ensure_directory(lock_target.parent)

    mutex = _thread_mutex(lock_target)
    if not mutex.acquire(timeout=effective_timeout):
        raise LockTimeoutError(f"Could not acquire lock on {target} within {effective_timeout}s")

    fh = open(lock_target, "a+", encoding="utf-8")
    acquired = False
    try:
        while True:
            try:
                fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                acquired = True
                break
            except OSError:
                if (time.monotonic() - start) >= effective_timeout:
                    raise LockTimeoutError(
                        f"Could not acquire lock on {target} within {effective_timeout}s"
                    )
                time.sleep(effective_poll)

        yield fh
    finally:
        try:
            if acquired:
                fcntl.flock(fh.fileno(), fcntl.LOCK_UN)
        finally:
            fh.close()
            mutex.release()


__all__ = ["acquire_file_lock", "LockTimeoutError"]
