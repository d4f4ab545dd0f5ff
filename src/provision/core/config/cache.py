"""Centralized configuration caching.

Domain configs share one merged configuration per repository root. The cache
key includes ``PROVISION_*`` environment variables and project config file
mtimes so long-running processes and tests never see stale values.
"""
from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any, Dict, Optional

from provision.core.utils.io import iter_yaml_files
from provision.core.utils.paths import get_project_config_dir, resolve_project_root

_config_cache: Dict[str, Dict[str, Any]] = {}


def _cache_key(repo_root: Path) -> str:
    env_items = sorted((k, v) for k, v in os.environ.items() if k.startswith("PROVISION_"))
    files = []
    for p in iter_yaml_files(get_project_config_dir(repo_root) / "config"):
        st = p.stat()
        files.append((p.name, st.st_mtime_ns, st.st_size))
    fp = hashlib.sha256(repr((env_items, files)).encode("utf-8")).hexdigest()[:16]
    return f"{repo_root}:{fp}"


def get_cached_config(repo_root: Optional[Path] = None, *, validate: bool = True) -> Dict[str, Any]:
    """Return the merged configuration for ``repo_root`` (loaded once per fingerprint)."""
    from .manager import ConfigManager

    root = Path(repo_root).expanduser().resolve() if repo_root is not None else resolve_project_root()
    key = _cache_key(root)
    cached = _config_cache.get(key)
    if cached is None:
        cached = ConfigManager(root).load_config(validate=validate)
        _config_cache[key] = cached
    return cached


def clear_config_cache() -> None:
    _config_cache.clear()


__all__ = ["get_cached_config", "clear_config_cache"]
