"""Domain-specific configuration for verification runs."""
from __future__ import annotations

from functools import cached_property

from ..base import BaseDomainConfig


class PipelineConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "pipeline"

    @cached_property
    def incremental(self) -> bool:
        return bool(self.section.get("incremental", False))

    @cached_property
    def with_dependencies(self) -> bool:
        return bool(self.section.get("with_dependencies", False))

    @cached_property
    def check_remotes(self) -> bool:
        return bool(self.section.get("check_remotes", True))


__all__ = ["PipelineConfig"]
