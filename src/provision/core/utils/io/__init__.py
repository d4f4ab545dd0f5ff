"""File I/O primitives: atomic writes, advisory locks, YAML and JSON."""
from __future__ import annotations

from .core import atomic_write, ensure_directory, read_text, write_text
from .json import read_json, write_json
from .locking import LockTimeoutError, acquire_file_lock
from .yaml import iter_yaml_files, parse_yaml_string, read_yaml, write_yaml

__all__ = [
    "atomic_write",
    "ensure_directory",
    "read_text",
    "write_text",
    "read_json",
    "write_json",
    "read_yaml",
    "write_yaml",
    "parse_yaml_string",
    "iter_yaml_files",
    "acquire_file_lock",
    "LockTimeoutError",
]
