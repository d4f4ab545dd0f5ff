"""Site Context: one hosted site on a platform, backed by a ``db`` provider."""
from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from provision.core.properties import Property, PropertyBag
from provision.core.properties import validators as v
from provision.core.registries import register_context_type
from provision.core.tasks import EnsureDirectory, PathExists, Task, WriteFile

from .base import Context, Dependencies

if TYPE_CHECKING:
    from provision.core.tasks import Runtime

    from .platform import PlatformContext
    from .server import ServerContext


def _default_db_name(bag: PropertyBag, runtime: Optional["Runtime"]) -> Optional[str]:
    uri = bag.peek("uri")
    if not uri:
        return None
    name = re.sub(r"^www\.", "", str(uri))
    name = re.sub(r"[^A-Za-z0-9_]", "", name)
    return name[:16] or None


def _default_db_user(bag: PropertyBag, runtime: Optional["Runtime"]) -> Optional[str]:
    return bag.peek("db_name") or _default_db_name(bag, runtime)


@register_context_type("site")
class SiteContext(Context):
    properties = (
        Property("uri", "site: example.com URI, no http:// or trailing /", required=True, validator=v.hostname),
        Property("platform", "site: the platform context this site runs on.", required=True, validator=v.identifier),
        Property("db_server", "site: the server context providing the database.", validator=v.identifier),
        Property("aliases", "site: additional host names served by this site.", validator=v.hostname_list),
        Property("redirection", "site: redirect all aliases to the main URI.", default=False, validator=v.boolean),
        Property("subdir", "site: serve the site from this sub-directory of the URI.", validator=v.relative_path),
        Property("language", "site: install language.", default="en", validator=v.identifier),
        Property("profile", "site: install profile.", default="standard", validator=v.identifier),
        Property("db_name", "site: database name.", default_factory=_default_db_name, validator=v.identifier),
        Property("db_user", "site: database user.", default_factory=_default_db_user, validator=v.identifier),
        Property("db_password", "site: database password.", validator=v.single_line),
    )
    requires = ("platform", "db")
    capability_selectors = {"platform": "platform", "db": "db_server"}

    @property
    def uri(self) -> str:
        return str(self.get("uri"))

    def site_dir(self, platform: "PlatformContext") -> Path:
        return platform.document_root / "sites" / self.uri

    def vhost_path(self, web_server: "ServerContext") -> Path:
        subdir = self.get("subdir")
        if subdir:
            return web_server.vhost_dir / f"{self.uri}.d" / (subdir.replace("/", "_") + ".conf")
        return web_server.vhost_dir / f"{self.uri}.conf"

    def _collaborators(self, deps: Dependencies) -> tuple["PlatformContext", "ServerContext", "ServerContext"]:
        platform = deps["platform"]
        web_server = deps.of(platform)["http"]
        return platform, web_server, deps["db"]  # type: ignore[return-value]

    def verify(self, runtime: "Runtime", deps: Dependencies) -> List[Task]:
        platform, web_server, db_server = self._collaborators(deps)
        vhost = self.vhost_path(web_server)
        content = runtime.get_renderer().render_site(self, platform, web_server, db_server)
        return [
            Task(
                "site.dir",
                f"Ensure site directory for {self.uri}",
                EnsureDirectory(self.site_dir(platform)),
                start_message="Creating site directory...",
            ),
            Task(
                "site.vhost",
                f"Write virtual host for {self.uri}",
                WriteFile(vhost, content),
                start_message="Writing virtual host configuration...",
                failure_message=f"Unable to write {vhost}",
            ),
            self._found_task(vhost),
        ]

    def _found_task(self, vhost: Path) -> Task:
        return Task(
            "site.found",
            f"Check virtual host for {self.uri}",
            PathExists(vhost, label="Virtual host"),
            start_message="Checking virtual host configuration...",
        )

    def check_tasks(self, runtime: "Runtime", deps: Dependencies) -> List[Task]:
        platform, web_server, _ = self._collaborators(deps)
        return [
            Task(
                "site.dir_found",
                f"Check site directory for {self.uri}",
                PathExists(self.site_dir(platform), label="Site directory"),
            ),
            self._found_task(self.vhost_path(web_server)),
        ]


__all__ = ["SiteContext"]
