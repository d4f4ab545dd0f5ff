"""Virtual host generation from verified Context state."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from provision.core.exceptions import DependencyFailedError, ValidationError
from provision.core.state import ContextState
from provision.data import get_data_path

from .filters import FILTERS

if TYPE_CHECKING:
    from provision.core.context import Dependencies, PlatformContext, ServerContext, SiteContext

logger = logging.getLogger(__name__)


class VhostRenderer:
    """Renders ``templates/<http_service>/{vhost,subdir}.conf.j2``."""

    def __init__(self, template_dir: Optional[Path] = None) -> None:
        self.template_dir = Path(template_dir) if template_dir is not None else get_data_path("templates")
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            undefined=StrictUndefined,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.env.filters.update(FILTERS)

    def site_variables(
        self,
        site: "SiteContext",
        platform: "PlatformContext",
        web_server: "ServerContext",
        db_server: "ServerContext",
    ) -> Dict[str, Any]:
        return {
            "uri": site.get("uri"),
            "aliases": list(site.get("aliases") or []),
            "redirection": bool(site.get("redirection")),
            "subdir": site.get("subdir"),
            "document_root": str(platform.document_root),
            "http_port": web_server.get("http_port"),
            "vhost_dir": str(web_server.vhost_dir),
            "db_type": db_server.get("db_service"),
            "db_host": db_server.get("db_host"),
            "db_port": db_server.get("db_port"),
            "db_name": site.get("db_name"),
            "db_user": site.get("db_user"),
            "db_passwd": site.get("db_password"),
        }

    def render_site(
        self,
        site: "SiteContext",
        platform: "PlatformContext",
        web_server: "ServerContext",
        db_server: "ServerContext",
    ) -> str:
        """Render the vhost text.

        Raises:
            ValidationError: A value cannot be written safely into the config.
        """
        service = web_server.get("http_service") or "nginx"
        name = "subdir.conf.j2" if site.get("subdir") else "vhost.conf.j2"
        template = self.env.get_template(f"{service}/{name}")
        logger.debug("rendering %s/%s for %s", service, name, site.name)
        try:
            return template.render(**self.site_variables(site, platform, web_server, db_server))
        except ValidationError:
            raise
        except ValueError as exc:
            raise ValidationError(
                f"Cannot render vhost for {site.name}: {exc}", context={"context": site.name}
            ) from exc

    def render_for_site(self, site: "SiteContext", deps: "Dependencies") -> str:
        """Render outside a verification run; every provider must be Verified.

        Raises:
            DependencyFailedError: A provider is not Verified.
            ValidationError: A value cannot be written safely into the config.
        """
        platform = deps["platform"]
        web_server = deps.of(platform)["http"]
        db_server = deps["db"]
        for provider in (platform, web_server, db_server):
            if provider.state is not ContextState.VERIFIED:
                raise DependencyFailedError(
                    f"{provider.name} is {provider.state.value}, not verified",
                    context={"context": site.name, "provider": provider.name},
                )
        return self.render_site(site, platform, web_server, db_server)  # type: ignore[arg-type]


__all__ = ["VhostRenderer"]
