"""Platform builds from a make manifest."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Sequence

from provision.core.exceptions import BuildFailedError
from provision.core.utils.subprocess import combined_output

if TYPE_CHECKING:
    from provision.core.tasks.runtime import CommandRunner

logger = logging.getLogger(__name__)


def make_command(
    build_command: str,
    manifest: str,
    target: Path,
    *,
    working_copy: bool = False,
    working_copy_flags: Sequence[str] = (),
) -> List[str]:
    argv = [build_command, "make", str(manifest), str(target)]
    if working_copy:
        argv.extend(working_copy_flags)
    return argv


def make_build(
    runner: "CommandRunner", argv: Sequence[str], target: Path, *, cwd: Optional[Path] = None
) -> str:
    """Run a prepared build command.

    Raises:
        BuildFailedError: On a non-zero exit, with the raw output kept.
    """
    result = runner.run(list(argv), cwd=cwd, timeout_type="build_operations")
    output = combined_output(result)
    if result.returncode != 0:
        logger.debug("build failed (rc=%s): %s", result.returncode, output)
        raise BuildFailedError(
            f"Unable to build platform at {target}",
            exit_code=result.returncode,
            output=output,
            context={"argv": list(argv), "target": str(target)},
        )
    return output
