"""Git invocations used by platform verification.

Commands are argv lists handed to the runtime's ``CommandRunner``; nothing
here touches ``subprocess`` directly, so tests can substitute a fake runner.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from provision.core.exceptions import SourceFetchFailedError
from provision.core.utils.subprocess import combined_output

if TYPE_CHECKING:
    from provision.core.tasks.runtime import CommandRunner

logger = logging.getLogger(__name__)


def clone_command(url: str, target: Path) -> List[str]:
    # "--" keeps a hostile URL from being parsed as an option.
    return ["git", "clone", "--", str(url), str(target)]


def ls_remote_command(url: str) -> List[str]:
    return ["git", "ls-remote", "--exit-code", "--", str(url)]


def clone(runner: "CommandRunner", url: str, target: Path, *, cwd: Optional[Path] = None) -> str:
    """Clone ``url`` into ``target`` and return the tool output.

    Raises:
        SourceFetchFailedError: On a non-zero exit, with the raw output kept.
    """
    argv = clone_command(url, target)
    result = runner.run(argv, cwd=cwd, timeout_type="git_operations")
    output = combined_output(result)
    if result.returncode != 0:
        logger.debug("git clone failed (rc=%s): %s", result.returncode, output)
        raise SourceFetchFailedError(
            f"Unable to clone {url} to {target}",
            exit_code=result.returncode,
            output=output,
            context={"url": url, "target": str(target)},
        )
    return output


def is_remote_reachable(runner: "CommandRunner", url: str) -> bool:
    """Return True when ``git ls-remote`` succeeds for ``url``.

    ``--exit-code`` makes an empty repository count as unreachable.
    """
    result = runner.run(ls_remote_command(url), timeout_type="remote_check")
    if result.returncode != 0:
        logger.debug("git ls-remote %s failed: %s", url, combined_output(result))
    return result.returncode == 0
