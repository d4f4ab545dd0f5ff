"""Atomic text writes and directory helpers.

Everything the pipeline writes (virtual host files, Context records,
reports) goes through ``atomic_write`` so a crash never leaves a half
written file behind.
"""
from __future__ import annotations

import fcntl
import os
import tempfile
from contextlib import nullcontext
from pathlib import Path
from typing import Any, Callable, ContextManager, Optional, TextIO, Union

PathLike = Union[str, Path]


def ensure_directory(path: PathLike) -> Path:
    """Create ``path`` (and parents) unless it already is a directory."""
    path = Path(path)
    if path.exists() and not path.is_dir():
        raise NotADirectoryError(f"Path exists but is not a directory: {path}")
    path.mkdir(parents=True, exist_ok=True)
    return path


def atomic_write(
    path: PathLike,
    write_fn: Callable[[TextIO], None],
    *,
    lock_cm: Optional[ContextManager[Any]] = None,
    encoding: str = "utf-8",
) -> None:
    """Write through a sibling temp file, fsync it, then rename over ``path``."""
    path = Path(path)
    ensure_directory(path.parent)
    tmp_name: Optional[str] = None
    try:
        with lock_cm or nullcontext():
            with tempfile.NamedTemporaryFile(
                "w", encoding=encoding, dir=path.parent, prefix=f".{path.name}.", delete=False
            ) as handle:
                tmp_name = handle.name
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
                write_fn(handle)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
    finally:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)


def read_text(path: PathLike) -> str:
    return Path(path).read_text(encoding="utf-8")


def write_text(path: PathLike, content: str) -> None:
    atomic_write(path, lambda handle: handle.write(content))


__all__ = ["PathLike", "ensure_directory", "atomic_write", "read_text", "write_text"]
