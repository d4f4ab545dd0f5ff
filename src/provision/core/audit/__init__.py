"""Logging setup."""
from __future__ import annotations

from .stdlib_logging import configure_logging, reset_logging

__all__ = ["configure_logging", "reset_logging"]
