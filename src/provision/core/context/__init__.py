"""Context variants. Importing this package registers the built-in types."""
from __future__ import annotations

from .base import BASE_PROPERTIES, Context, Dependencies, Failure
from .platform import PlatformContext
from .server import ServerContext
from .site import SiteContext

__all__ = [
    "BASE_PROPERTIES",
    "Context",
    "Dependencies",
    "Failure",
    "PlatformContext",
    "ServerContext",
    "SiteContext",
]
