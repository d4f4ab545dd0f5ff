"""Shared CLI utility functions.

This module provides common utilities used across CLI commands to reduce
duplication and ensure consistent behavior.
"""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from provision.core.audit import configure_logging
from provision.core.config.domains import LoggingConfig
from provision.core.utils.paths import resolve_project_root


def get_repo_root(args: argparse.Namespace) -> Path:
    """Get project root from args or auto-detect."""
    if getattr(args, "repo_root", None):
        return Path(args.repo_root).resolve()
    return resolve_project_root()


def setup_logging(args: argparse.Namespace, repo_root: Path) -> None:
    """Route log records to the configured log file (and stderr with --verbose)."""
    cfg = LoggingConfig(repo_root)
    configure_logging(cfg.path, cfg.level, verbose=bool(getattr(args, "verbose", False)))


def parse_options(pairs: Optional[Iterable[str]]) -> Dict[str, Any]:
    """Parse ``key=value`` pairs; an empty value unsets the option.

    Raises:
        ValueError: A pair has no ``=`` or an empty key.
    """
    options: Dict[str, Any] = {}
    for pair in pairs or ():
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Expected key=value, got {pair!r}")
        options[key] = value
    return options


__all__ = ["get_repo_root", "setup_logging", "parse_options"]
