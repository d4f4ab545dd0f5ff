"""Config emission: web server configuration rendered from Context state."""
from __future__ import annotations

from .filters import nginx_path, nginx_token, nginx_value, urlencode
from .vhost import VhostRenderer

__all__ = ["VhostRenderer", "nginx_path", "nginx_token", "nginx_value", "urlencode"]
