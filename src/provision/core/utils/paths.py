"""Project root and state directory resolution.

Resolution priority for the project root:
1. ``PROVISION_PROJECT_ROOT`` environment variable
2. Nearest ancestor of the current directory that contains ``.provision/``
3. The current directory
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

PROJECT_ROOT_ENV = "PROVISION_PROJECT_ROOT"
STATE_DIR_NAME = ".provision"


class ProvisionPathError(RuntimeError):
    """Raised when the project root cannot be resolved."""


def resolve_project_root(start: Optional[Path] = None) -> Path:
    """Resolve the project root.

    Raises:
        ProvisionPathError: If the environment override points at a missing
            path or at the state directory itself.
    """
    env_root = os.environ.get(PROJECT_ROOT_ENV)
    if env_root:
        env_path = Path(env_root).expanduser().resolve()
        if not env_path.exists():
            raise ProvisionPathError(f"{PROJECT_ROOT_ENV} points at missing path: {env_path}")
        if env_path.name == STATE_DIR_NAME:
            raise ProvisionPathError(
                f"{PROJECT_ROOT_ENV} points to the {STATE_DIR_NAME} directory: {env_path}. "
                "It must point to the project root."
            )
        return env_path

    cwd = (start or Path.cwd()).resolve()
    for candidate in (cwd, *cwd.parents):
        if candidate.name == STATE_DIR_NAME:
            continue
        if (candidate / STATE_DIR_NAME).is_dir():
            return candidate
    return cwd


def get_project_config_dir(repo_root: Path) -> Path:
    """Return ``<repo_root>/.provision`` (not created)."""
    return Path(repo_root) / STATE_DIR_NAME


__all__ = [
    "PROJECT_ROOT_ENV",
    "STATE_DIR_NAME",
    "ProvisionPathError",
    "resolve_project_root",
    "get_project_config_dir",
]
