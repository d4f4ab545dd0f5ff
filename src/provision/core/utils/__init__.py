"""Shared helpers for the provision core (I/O, paths, subprocess, merging)."""
from __future__ import annotations

from .merge import deep_merge
from .time import utc_timestamp

__all__ = ["deep_merge", "utc_timestamp"]
