"""JSON I/O utilities with atomic writes."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from .core import atomic_write

DEFAULT_JSON_CONFIG: Dict[str, Any] = {
    "indent": 2,
    "sort_keys": True,
    "ensure_ascii": False,
}

_MISSING = object()


def read_json(file_path: Path | str, *, default: Any = _MISSING) -> Any:
    """Read JSON from ``file_path``.

    Raises:
        FileNotFoundError: If the file does not exist and no default is provided
    """
    path = Path(file_path)
    if not path.exists():
        if default is not _MISSING:
            return default
        raise FileNotFoundError(f"File not found: {path}")
    return json.loads(path.read_text(encoding="utf-8"))


def write_json(file_path: Path | str, data: Any) -> None:
    """Atomically write ``data`` as JSON."""

    def _writer(f) -> None:
        json.dump(data, f, default=str, **DEFAULT_JSON_CONFIG)
        f.write("\n")

    atomic_write(Path(file_path), _writer)


__all__ = ["read_json", "write_json"]
