"""Persistence of Context records and run reports."""
from __future__ import annotations

from .context_store import ContextStore

__all__ = ["ContextStore"]
