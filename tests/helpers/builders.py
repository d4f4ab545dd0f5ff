"""Factories for the usual server -> platform -> site chain."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from provision.core.context import PlatformContext, ServerContext, SiteContext
from provision.core.inventory import Inventory


def server(name: str = "web1", **options: Any) -> ServerContext:
    opts: Dict[str, Any] = {"http_service": "nginx", "db_service": "mysql"}
    opts.update(options)
    return ServerContext(name, opts)


def platform(name: str = "platform1", *, root: Path, **options: Any) -> PlatformContext:
    opts: Dict[str, Any] = {"root": str(root), "git_url": "https://git.example.com/app.git"}
    opts.update(options)
    return PlatformContext(name, opts)


def site(name: str = "site1", **options: Any) -> SiteContext:
    opts: Dict[str, Any] = {"uri": "example.com", "platform": "platform1"}
    opts.update(options)
    return SiteContext(name, opts)


def hosting_inventory(tmp_path: Path, *, with_site: bool = True, platform_options: Optional[dict] = None) -> Inventory:
    inventory = Inventory()
    inventory.add(server(config_path=str(tmp_path / "config" / "web1")))
    inventory.add(platform(root=tmp_path / "platforms" / "platform1", **(platform_options or {})))
    if with_site:
        inventory.add(site())
    return inventory
