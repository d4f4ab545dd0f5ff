"""Domain-specific configuration for the build-tool collaborator."""
from __future__ import annotations

from functools import cached_property
from typing import List

from ..base import BaseDomainConfig


class BuildConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "build"

    @cached_property
    def command(self) -> str:
        return str(self.section.get("command") or "drush")

    @cached_property
    def working_copy_flags(self) -> List[str]:
        flags = self.section.get("working_copy_flags") or []
        return [str(f) for f in flags]


__all__ = ["BuildConfig"]
