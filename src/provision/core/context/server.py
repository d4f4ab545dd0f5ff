"""Server Context: hosts the web (``http``) and database (``db``) services."""
from __future__ import annotations

import shlex
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Tuple

from provision.core.properties import Property, PropertyBag
from provision.core.properties import validators as v
from provision.core.registries import register_context_type
from provision.core.tasks import EnsureDirectory, PathExists, RunCommand, Task

from .base import Context, Dependencies

if TYPE_CHECKING:
    from provision.core.tasks import Runtime

DEFAULT_CONFIG_ROOT = Path(".provision") / "config-output"


def _default_config_path(bag: PropertyBag, runtime: Optional["Runtime"]) -> str:
    if runtime is not None and runtime.config_root is not None:
        root = Path(runtime.config_root)
    else:
        base = runtime.cwd if runtime is not None else Path.cwd()
        root = Path(base) / DEFAULT_CONFIG_ROOT
    return str(root / bag.owner)


@register_context_type("server")
class ServerContext(Context):
    properties = (
        Property("remote_host", "server: host name or IP address of the server.", default="localhost", validator=v.hostname),
        Property("script_user", "server: system account that runs provisioning scripts.", default="aegir", validator=v.identifier),
        Property(
            "config_path",
            "server: directory where generated configuration is written.",
            default_factory=_default_config_path,
            required=True,
            validator=v.absolute_path,
        ),
        Property("http_service", "server: web service type.", validator=v.choice("nginx")),
        Property("http_port", "server: port the web service listens on.", default=80, validator=v.port),
        Property(
            "http_check_command",
            "server: command that validates the web service configuration (e.g. 'nginx -t').",
            validator=v.single_line,
        ),
        Property("db_service", "server: database service type.", validator=v.choice("mysql", "pgsql")),
        Property("db_host", "server: database host name.", default="localhost", validator=v.hostname),
        Property("db_port", "server: database port.", default=3306, validator=v.port),
    )

    def provided_capabilities(self) -> Tuple[str, ...]:
        caps: List[str] = []
        if self.option_value("http_service"):
            caps.append("http")
        if self.option_value("db_service"):
            caps.append("db")
        return tuple(caps)

    @property
    def config_path(self) -> Path:
        return Path(self.get("config_path"))

    @property
    def vhost_dir(self) -> Path:
        return self.config_path / "vhost.d"

    def _found_task(self) -> Task:
        return Task(
            "server.found",
            f"Check configuration path of {self.name}",
            PathExists(self.config_path, label="Configuration path"),
            start_message="Checking server configuration path...",
        )

    def verify(self, runtime: "Runtime", deps: Dependencies) -> List[Task]:
        tasks = [
            Task(
                "server.config",
                f"Ensure configuration directories of {self.name}",
                EnsureDirectory(self.vhost_dir),
                start_message="Creating server configuration directories...",
                failure_message=f"Unable to create {self.vhost_dir}",
            )
        ]
        check = self.get("http_check_command")
        if check:
            tasks.append(
                Task(
                    "server.http_check",
                    f"Check {self.get('http_service') or 'web'} service configuration",
                    RunCommand(tuple(shlex.split(check))),
                    start_message="Checking web service configuration...",
                    failure_message="Web service configuration check failed",
                )
            )
        tasks.append(self._found_task())
        return tasks

    def check_tasks(self, runtime: "Runtime", deps: Dependencies) -> List[Task]:
        return [self._found_task()]


__all__ = ["ServerContext"]
