"""Domain-specific configuration for state and output locations.

Relative paths are resolved against the repository root.
"""
from __future__ import annotations

from functools import cached_property
from pathlib import Path

from ..base import BaseDomainConfig


class PathsConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "paths"

    def _resolve(self, raw: str) -> Path:
        p = Path(raw).expanduser()
        return p if p.is_absolute() else self.repo_root / p

    @cached_property
    def state_dir(self) -> Path:
        return self._resolve(str(self.section.get("state_dir") or ".provision"))

    @cached_property
    def contexts_dir(self) -> Path:
        return self.state_dir / str(self.section.get("contexts_dir") or "contexts")

    @cached_property
    def reports_dir(self) -> Path:
        return self.state_dir / str(self.section.get("reports_dir") or "reports")

    @cached_property
    def config_root(self) -> Path:
        """Parent directory for server config directories without an explicit ``config_path``."""
        return self._resolve(str(self.section.get("config_root") or ".provision/config-output"))


__all__ = ["PathsConfig"]
