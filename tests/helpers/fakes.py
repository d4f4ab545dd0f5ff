"""Command runner double: no subprocess, no network, no real git."""
from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from provision.core.exceptions import TaskTimeoutError
from provision.core.tasks import CommandRunner
from provision.core.utils.subprocess import flatten_cmd


def verb_of(argv: List[str]) -> str:
    """``git clone ...`` -> ``clone``; ``drush make ...`` -> ``make``; else argv[0]."""
    if len(argv) > 1 and Path(argv[0]).name in {"git", "drush"}:
        return argv[1]
    return Path(argv[0]).name if argv else ""


class FakeRunner(CommandRunner):
    """Records every argv. Successful clones and builds create their target.

    ``results`` maps a verb to ``(returncode, output)``; ``timeouts`` lists
    verbs that raise ``TaskTimeoutError``. Unlisted verbs succeed silently.
    """

    def __init__(
        self,
        results: Optional[Mapping[str, Tuple[int, str]]] = None,
        timeouts: Tuple[str, ...] = (),
    ) -> None:
        super().__init__()
        self.results: Dict[str, Tuple[int, str]] = dict(results or {})
        self.timeout_verbs = set(timeouts)
        self.calls: List[List[str]] = []
        self.timeout_types: List[Optional[str]] = []

    def fail(self, verb: str, returncode: int = 128, output: str = "fatal: simulated failure") -> None:
        self.results[verb] = (returncode, output)

    def time_out(self, verb: str) -> None:
        self.timeout_verbs.add(verb)

    @property
    def verbs(self) -> List[str]:
        return [verb_of(argv) for argv in self.calls]

    def run(
        self,
        cmd: Any,
        *,
        cwd: Optional[Path] = None,
        timeout_type: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> subprocess.CompletedProcess:
        argv = flatten_cmd(cmd)
        self.calls.append(argv)
        self.timeout_types.append(timeout_type)
        verb = verb_of(argv)
        if verb in self.timeout_verbs:
            raise TaskTimeoutError(
                f"{' '.join(argv)} did not finish within {self.timeout_for(argv, timeout_type):g}s",
                output="partial output",
                context={"argv": argv},
            )
        returncode, output = self.results.get(verb, (0, ""))
        if returncode == 0:
            if verb == "clone":
                self._populate(Path(argv[-1]))
            elif verb == "make":
                self._populate(Path(argv[3]))
        return subprocess.CompletedProcess(argv, returncode, stdout=output, stderr="")

    @staticmethod
    def _populate(target: Path) -> None:
        target.mkdir(parents=True, exist_ok=True)
        (target / "index.php").write_text("<?php\n", encoding="utf-8")
