"""Domain-specific configuration for external command timeouts."""
from __future__ import annotations

from functools import cached_property
from typing import Dict

from ..base import BaseDomainConfig

_REQUIRED_TIMEOUT_KEYS = (
    "git_operations_seconds",
    "build_operations_seconds",
    "remote_check_seconds",
    "default_seconds",
)


class TimeoutsConfig(BaseDomainConfig):
    """Typed access to the ``timeouts`` section."""

    def _config_section(self) -> str:
        return "timeouts"

    def _validate_required_keys(self) -> None:
        if not self.section:
            raise RuntimeError("timeouts section missing from configuration")
        for key in _REQUIRED_TIMEOUT_KEYS:
            if key not in self.section:
                raise RuntimeError(f"timeouts.{key} missing from configuration")

    @cached_property
    def git_operations_seconds(self) -> float:
        self._validate_required_keys()
        return float(self.section["git_operations_seconds"])

    @cached_property
    def build_operations_seconds(self) -> float:
        self._validate_required_keys()
        return float(self.section["build_operations_seconds"])

    @cached_property
    def remote_check_seconds(self) -> float:
        self._validate_required_keys()
        return float(self.section["remote_check_seconds"])

    @cached_property
    def default_seconds(self) -> float:
        self._validate_required_keys()
        return float(self.section["default_seconds"])

    def get_all_settings(self) -> Dict[str, float]:
        """Map timeout bucket name (without ``_seconds``) to seconds."""
        self._validate_required_keys()
        return {key[: -len("_seconds")]: float(self.section[key]) for key in _REQUIRED_TIMEOUT_KEYS}


__all__ = ["TimeoutsConfig"]
