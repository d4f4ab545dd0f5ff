"""
Configuration management (YAML layers + environment overrides).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import jsonschema
import yaml

from provision.core.exceptions import ConfigurationError
from provision.core.utils.io import iter_yaml_files, read_yaml
from provision.core.utils.merge import deep_merge as _deep_merge
from provision.core.utils.paths import get_project_config_dir, resolve_project_root
from provision.data import get_data_path

logger = logging.getLogger(__name__)

ENV_PREFIX = "PROVISION_"
# Not configuration keys: consumed by path resolution.
_RESERVED_ENV_KEYS = {"PROVISION_PROJECT_ROOT"}


class ConfigManager:
    """Load, merge, and validate configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: PROVISION_<section>__<key>
    2. Project config: <repo_root>/.provision/config/*.yaml (alphabetical order)
    3. Bundled defaults: provision.data/config/*.yaml (alphabetical order)
    """

    def __init__(self, repo_root: Optional[Path] = None) -> None:
        self.repo_root = Path(repo_root) if repo_root is not None else resolve_project_root()
        self.core_config_dir = get_data_path("config")
        self.project_config_dir = get_project_config_dir(self.repo_root) / "config"
        self.schemas_dir = get_data_path("schemas")

    def deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        return _deep_merge(base, override)

    def load_yaml(self, path: Path) -> Dict[str, Any]:
        # Configuration must never silently ignore invalid YAML.
        data = read_yaml(path, default={}, raise_on_error=True)
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")
        return data

    def _load_directory(self, directory: Path, cfg: Dict[str, Any]) -> Dict[str, Any]:
        for path in iter_yaml_files(directory):
            try:
                cfg = self.deep_merge(cfg, self.load_yaml(path))
            except yaml.YAMLError as exc:
                raise ConfigurationError(
                    f"Invalid YAML in {path}: {exc}", context={"path": str(path)}
                ) from exc
        return cfg

    # ---------- environment overrides ----------

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except ValueError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _iter_env_overrides(self) -> Iterator[Tuple[List[str], Any]]:
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX) or key in _RESERVED_ENV_KEYS:
                continue
            raw = key[len(ENV_PREFIX) :]
            segs = [s.lower() for s in raw.split("__")]
            if not segs or any(s == "" for s in segs):
                logger.warning("Ignoring malformed configuration override %s", key)
                continue
            yield segs, self._coerce_type(os.environ[key])

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> None:
        for path, value in self._iter_env_overrides():
            cur: Dict[str, Any] = cfg
            for part in path[:-1]:
                nxt = cur.get(part)
                if not isinstance(nxt, dict):
                    nxt = {}
                    cur[part] = nxt
                cur = nxt
            cur[path[-1]] = value

    # ---------- loading ----------

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """Return the merged configuration.

        Raises:
            ConfigurationError: When a file is invalid YAML or, with ``validate``,
                when the merged mapping violates ``config.schema.yaml``. Every
                schema violation is listed.
        """
        cfg: Dict[str, Any] = {}
        cfg = self._load_directory(self.core_config_dir, cfg)
        cfg = self._load_directory(self.project_config_dir, cfg)
        self.apply_env_overrides(cfg)

        if validate:
            self.validate_schema(cfg, "config.schema.yaml")
        return cfg

    def get_all(self) -> Dict[str, Any]:
        """Full merged configuration (not validated)."""
        return self.load_config(validate=False)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-notation key, e.g. ``timeouts.default_seconds``."""
        current: Any = self.load_config(validate=False)
        for part in key.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def validate_schema(self, payload: Dict[str, Any], schema_name: str) -> None:
        schema = read_yaml(self.schemas_dir / schema_name, default={}, raise_on_error=True)
        validator = jsonschema.Draft202012Validator(schema)
        errors = sorted(validator.iter_errors(payload), key=lambda e: list(e.path))
        if not errors:
            return
        messages = []
        for err in errors:
            where = ".".join(str(p) for p in err.path) or "<root>"
            messages.append(f"{where}: {err.message}")
        raise ConfigurationError(
            f"Configuration failed validation against {schema_name}: " + "; ".join(messages),
            errors=messages,
            context={"schema": schema_name},
        )


__all__ = ["ConfigManager", "ENV_PREFIX"]
