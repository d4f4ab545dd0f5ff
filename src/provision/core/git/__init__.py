"""Source-control collaborator (git)."""
from __future__ import annotations

from .operations import clone, clone_command, is_remote_reachable, ls_remote_command

__all__ = ["clone", "clone_command", "is_remote_reachable", "ls_remote_command"]
