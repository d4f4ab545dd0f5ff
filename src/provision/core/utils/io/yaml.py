"""YAML I/O utilities with atomic writes and advisory locks."""
from __future__ import annotations

import fcntl
from pathlib import Path
from typing import Any, Iterator

import yaml

from .core import atomic_write


def _str_representer(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    """Represent multiline strings with literal block style."""
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


yaml.add_representer(str, _str_representer, Dumper=yaml.SafeDumper)


def read_yaml(path: Path, default: Any = None, raise_on_error: bool = False) -> Any:
    """Read YAML with error handling.

    Returns default if file is missing or invalid, unless raise_on_error is True.

    Examples:
        >>> config = read_yaml(Path("config.yaml"), default={})
        >>> assert isinstance(config, dict)
    """
    path = Path(path)
    if not path.exists():
        if raise_on_error:
            raise FileNotFoundError(f"File not found: {path}")
        return default

    try:
        with open(path, "r", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_SH)
            data = yaml.safe_load(f)
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        return data if data is not None else default
    except (OSError, yaml.YAMLError):
        if raise_on_error:
            raise
        return default


def write_yaml(path: Path, data: Any) -> None:
    """Atomically write YAML data to ``path`` with sorted keys."""

    def _writer(f) -> None:
        yaml.safe_dump(
            data,
            f,
            default_flow_style=False,
            sort_keys=True,
            allow_unicode=True,
        )

    atomic_write(Path(path), _writer)


def parse_yaml_string(content: str, default: Any = None) -> Any:
    try:
        data = yaml.safe_load(content)
        return data if data is not None else default
    except yaml.YAMLError:
        return default


def iter_yaml_files(directory: Path) -> Iterator[Path]:
    """Yield ``*.yaml``/``*.yml`` files in ``directory`` in alphabetical order.

    When both ``name.yaml`` and ``name.yml`` exist, ``.yaml`` wins.
    """
    directory = Path(directory)
    if not directory.is_dir():
        return
    chosen: dict[str, Path] = {}
    for p in sorted(directory.iterdir()):
        if not p.is_file() or p.suffix not in (".yaml", ".yml"):
            continue
        if p.stem in chosen and chosen[p.stem].suffix == ".yaml":
            continue
        chosen[p.stem] = p
    for stem in sorted(chosen):
        yield chosen[stem]


__all__ = ["read_yaml", "write_yaml", "parse_yaml_string", "iter_yaml_files"]
