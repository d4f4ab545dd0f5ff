"""Domain-specific configuration for log output."""
from __future__ import annotations

from functools import cached_property
from pathlib import Path

from ..base import BaseDomainConfig


class LoggingConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "logging"

    @cached_property
    def level(self) -> str:
        return str(self.section.get("level") or "INFO").upper()

    @cached_property
    def path(self) -> Path:
        raw = Path(str(self.section.get("path") or ".provision/logs/provision.log"))
        return raw if raw.is_absolute() else self.repo_root / raw


__all__ = ["LoggingConfig"]
