"""Platform Context: an application code base served by an ``http`` provider."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from provision.core.build import make_command
from provision.core.properties import Property, PropertyBag
from provision.core.properties import validators as v
from provision.core.registries import register_context_type
from provision.core.tasks import GitClone, MakeBuild, PathExists, Task

from .base import Context, Dependencies

if TYPE_CHECKING:
    from provision.core.exceptions import ValidationError
    from provision.core.tasks import Runtime

logger = logging.getLogger(__name__)


def _cwd(bag: PropertyBag, runtime: Optional["Runtime"]) -> str:
    return str(runtime.cwd if runtime is not None else Path.cwd())


@register_context_type("platform")
class PlatformContext(Context):
    properties = (
        Property(
            "root",
            "platform: path to the source code for this platform. May be relative; may differ from document root.",
            default_factory=_cwd,
            required=True,
            validator=v.absolute_path,
        ),
        Property(
            "makefile",
            "platform: build manifest to build the platform from. May be a path or URL.",
            validator=v.readable_manifest,
        ),
        Property(
            "make_working_copy",
            "platform: build the platform with the working-copy options of the build tool.",
            default=False,
            validator=v.boolean,
        ),
        Property("git_url", "platform: git repository remote URL.", validator=v.git_remote),
        Property(
            "document_root",
            "platform: relative path to the document root inside the source code. Blank when it is the root.",
            validator=v.relative_path,
        ),
        Property("web_server", "platform: server context providing http.", validator=v.identifier),
    )
    provides = ("platform",)
    requires = ("http",)
    capability_selectors = {"http": "web_server"}

    def post_configure(self, runtime: Optional["Runtime"]) -> List["ValidationError"]:
        root = Path(self.bag.get("root"))
        docroot = self.bag.peek("document_root")
        self.bag.store("document_root", str(root / docroot) if docroot else str(root))
        return []

    @property
    def root(self) -> Path:
        return Path(self.get("root"))

    @property
    def document_root(self) -> Path:
        return Path(self.get("document_root"))

    def _found_task(self) -> Task:
        return Task(
            "platform.found",
            "Check root path for files",
            PathExists(self.root, label="Platform root"),
            start_message="Checking root path for files...",
        )

    def verify(self, runtime: "Runtime", deps: Dependencies) -> List[Task]:
        logger.info("Platform %s root: %s", self.name, self.root)
        tasks: List[Task] = []
        git_url = self.get("git_url")
        makefile = self.get("makefile")
        # Source control wins when both a repository and a manifest are set.
        if not self.root.exists():
            if git_url:
                tasks.append(
                    Task(
                        "platform.git",
                        f"Clone {git_url}",
                        GitClone(git_url, self.root),
                        start_message="Cloning git repository...",
                        failure_message="Unable to clone platform source",
                    )
                )
            elif makefile:
                argv = make_command(
                    runtime.build_command,
                    makefile,
                    self.root,
                    working_copy=bool(self.get("make_working_copy")),
                    working_copy_flags=runtime.working_copy_flags,
                )
                tasks.append(
                    Task(
                        "platform.make",
                        f"Build platform from {makefile}",
                        MakeBuild(makefile, self.root, tuple(argv)),
                        start_message="Building platform from makefile...",
                        failure_message="Unable to build platform",
                    )
                )
        tasks.append(self._found_task())
        return tasks

    def check_tasks(self, runtime: "Runtime", deps: Dependencies) -> List[Task]:
        return [self._found_task()]


__all__ = ["PlatformContext"]
