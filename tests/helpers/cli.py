"""In-process CLI invocation."""
from __future__ import annotations

import json
from typing import Any, Tuple

from provision.cli._dispatcher import main


def run_cli(capsys, *argv: str) -> Tuple[int, str, str]:
    """Run ``provision <argv>`` and return ``(exit_code, stdout, stderr)``."""
    code = main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out, captured.err


def run_cli_json(capsys, *argv: str) -> Tuple[int, Any]:
    code, out, err = run_cli(capsys, *argv, "--json")
    return code, json.loads(out or err)
