"""Persisted Context records.

One YAML file per Context under ``<state_dir>/contexts/<name>.yml`` holding the
raw options, the lifecycle state and the Property fingerprints used by
incremental verification. The last run report is kept as JSON in
``<state_dir>/reports/last.json``.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

import yaml

from provision.core.config import ConfigManager
from provision.core.config.domains import PathsConfig
from provision.core.context import Context, Failure
from provision.core.exceptions import ConfigurationError, ContextNotFoundError, PersistenceError
from provision.core.inventory import Inventory
from provision.core.registries import create_context
from provision.core.state import ContextState
from provision.core.utils.io import acquire_file_lock, read_json, read_yaml, write_json, write_yaml
from provision.core.utils.time import utc_timestamp

if TYPE_CHECKING:
    from provision.core.pipeline.report import ContextReport, VerificationReport

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".yml"
RECORD_SCHEMA = "context.schema.yaml"


def _plain(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    return str(value)


class ContextStore:
    def __init__(self, repo_root: Path, *, config: Optional[Dict[str, Any]] = None) -> None:
        self.repo_root = Path(repo_root)
        paths = PathsConfig(self.repo_root, config=config)
        self.state_dir = paths.state_dir
        self.contexts_dir = paths.contexts_dir
        self.reports_dir = paths.reports_dir
        self._cfg = ConfigManager(self.repo_root)

    # ------------------------------------------------------------------
    # Paths and locking
    # ------------------------------------------------------------------
    def record_path(self, name: str) -> Path:
        return self.contexts_dir / f"{name}{RECORD_SUFFIX}"

    @property
    def report_path(self) -> Path:
        return self.reports_dir / "last.json"

    @contextmanager
    def lock(self, timeout: Optional[float] = None) -> Iterator[None]:
        """Exclusive access to the state directory for one run."""
        with acquire_file_lock(self.state_dir / "run", timeout=timeout):
            yield

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    def _validate(self, record: Dict[str, Any], path: Path) -> None:
        try:
            self._cfg.validate_schema(record, RECORD_SCHEMA)
        except ConfigurationError as exc:
            raise PersistenceError(
                f"Invalid context record {path}: {exc}",
                context={"path": str(path), "errors": exc.errors},
            ) from exc

    def read_record(self, name: str) -> Optional[Dict[str, Any]]:
        path = self.record_path(name)
        if not path.exists():
            return None
        try:
            record = read_yaml(path, raise_on_error=True)
        except (OSError, yaml.YAMLError) as exc:
            raise PersistenceError(f"Cannot read {path}: {exc}", context={"path": str(path)}) from exc
        if not isinstance(record, dict):
            raise PersistenceError(f"Context record {path} is not a mapping", context={"path": str(path)})
        self._validate(record, path)
        return record

    def list_names(self) -> List[str]:
        if not self.contexts_dir.is_dir():
            return []
        return sorted(p.name[: -len(RECORD_SUFFIX)] for p in self.contexts_dir.glob(f"*{RECORD_SUFFIX}"))

    def exists(self, name: str) -> bool:
        return self.record_path(name).exists()

    def save(self, context: Context, *, last_report: Optional[Dict[str, Any]] = None) -> Path:
        """Write ``context``'s record, keeping the last report unless replaced."""
        path = self.record_path(context.name)
        previous = self.read_record(context.name) or {}
        record: Dict[str, Any] = {
            "name": context.name,
            "type": context.type_tag,
            "options": _plain(context.options),
            "state": context.state.value,
            "fingerprint": context.fingerprint() if context.bag.values() else None,
            "verified_fingerprint": context.verified_fingerprint,
            "last_report": last_report if last_report is not None else previous.get("last_report"),
            "updated_at": utc_timestamp(),
        }
        self._validate(record, path)
        write_yaml(path, record)
        logger.debug("saved context record %s", path)
        return path

    def record_result(self, context: Context, report: "ContextReport") -> Path:
        return self.save(context, last_report=report.to_dict())

    def remove(self, name: str) -> None:
        path = self.record_path(name)
        if not path.exists():
            raise ContextNotFoundError(f"Context {name!r} not found", context={"name": name})
        path.unlink()
        logger.debug("removed context record %s", path)

    def load_context(self, name: str) -> Context:
        record = self.read_record(name)
        if record is None:
            raise ContextNotFoundError(f"Context {name!r} not found", context={"name": name})
        return self._from_record(record)

    def _from_record(self, record: Dict[str, Any]) -> Context:
        context = create_context(record["name"], record["type"], record.get("options") or {})
        state = ContextState(record["state"])
        if state is ContextState.VERIFYING:
            # A run died mid-way; the record cannot be trusted as verified.
            state = ContextState.FAILED
            context.failure = Failure("Interrupted", "previous verification did not finish")
        context.state = state
        context.verified_fingerprint = record.get("verified_fingerprint")
        return context

    def load_inventory(self) -> Inventory:
        """Rebuild an Inventory from every persisted record."""
        inventory = Inventory()
        for name in self.list_names():
            inventory.add(self._from_record(self.read_record(name) or {}))
        return inventory

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------
    def save_report(self, report: "VerificationReport") -> Path:
        write_json(self.report_path, report.to_dict())
        return self.report_path

    def last_report(self) -> Optional[Dict[str, Any]]:
        return read_json(self.report_path, default=None)


__all__ = ["ContextStore", "RECORD_SUFFIX"]
