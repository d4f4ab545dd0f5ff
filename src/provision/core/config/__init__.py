"""Layered YAML configuration with typed per-section accessors."""
from __future__ import annotations

from .base import BaseDomainConfig
from .cache import clear_config_cache, get_cached_config
from .manager import ConfigManager

__all__ = ["ConfigManager", "BaseDomainConfig", "get_cached_config", "clear_config_cache"]
