"""Process-wide logging setup for the CLI.

The library modules only call ``logging.getLogger(__name__)``; handlers are
installed here, once per process, by the command-line entry point.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from provision.core.utils.io import ensure_directory

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_FILE_HANDLER: Optional[logging.Handler] = None
_STDERR_HANDLER: Optional[logging.Handler] = None


def _level(name: str) -> int:
    value = logging.getLevelName(str(name).upper())
    return value if isinstance(value, int) else logging.INFO


def _drop(root: logging.Logger, handler: Optional[logging.Handler]) -> None:
    if handler is not None:
        root.removeHandler(handler)
        handler.close()


def configure_logging(log_path: Path, level: str = "INFO", *, verbose: bool = False) -> None:
    """Send log records to ``log_path``; with ``verbose`` mirror them to stderr.

    Existing stdout/stderr handlers are removed so ``--json`` output on stdout
    stays machine readable. Calling again with another path swaps the file.
    """
    global _FILE_HANDLER, _STDERR_HANDLER

    resolved = Path(log_path).resolve()
    ensure_directory(resolved.parent)
    root = logging.getLogger()

    for handler in list(root.handlers):
        # FileHandler is a StreamHandler too; only the console ones go.
        if isinstance(handler, logging.StreamHandler) and getattr(handler, "stream", None) in (
            sys.stdout,
            sys.stderr,
        ):
            root.removeHandler(handler)

    current = getattr(_FILE_HANDLER, "baseFilename", None)
    if current != str(resolved):
        _drop(root, _FILE_HANDLER)
        _FILE_HANDLER = logging.FileHandler(resolved, encoding="utf-8")
        _FILE_HANDLER.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(_FILE_HANDLER)
    _FILE_HANDLER.setLevel(_level(level))

    _drop(root, _STDERR_HANDLER)
    _STDERR_HANDLER = None
    if verbose:
        _STDERR_HANDLER = logging.StreamHandler(sys.stderr)
        _STDERR_HANDLER.setLevel(logging.DEBUG)
        _STDERR_HANDLER.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        root.addHandler(_STDERR_HANDLER)

    root.setLevel(logging.DEBUG if verbose else _level(level))


def reset_logging() -> None:
    """Remove the handlers installed by ``configure_logging`` (used by tests)."""
    global _FILE_HANDLER, _STDERR_HANDLER
    root = logging.getLogger()
    _drop(root, _FILE_HANDLER)
    _drop(root, _STDERR_HANDLER)
    _FILE_HANDLER = None
    _STDERR_HANDLER = None


__all__ = ["LOG_FORMAT", "configure_logging", "reset_logging"]
