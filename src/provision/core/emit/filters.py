"""Escaping filters for generated nginx configuration.

Property values come from user-supplied configuration and are untrusted.
Every value interpolated into a template must pass through one of these.
"""
from __future__ import annotations

import re
from typing import Any
from urllib.parse import quote_plus

_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_BARE_RE = re.compile(r"^[A-Za-z0-9._:/*@+=,%-]+$")
_TOKEN_RE = re.compile(r"^[A-Za-z0-9._*/-]+$")


def _as_text(value: Any) -> str:
    if value is None:
        raise ValueError("cannot render an unset value")
    if isinstance(value, bool):
        return "on" if value else "off"
    text = str(value)
    if _CONTROL_RE.search(text):
        raise ValueError(f"control character in configuration value {text!r}")
    return text


def nginx_value(value: Any) -> str:
    """One directive argument; quoted when it is not a bare word.

    ``$`` is rejected outright: nginx expands variables inside quotes too and
    has no escape for it.
    """
    text = _as_text(value)
    if "$" in text:
        raise ValueError(f"'$' is not allowed in configuration value {text!r}")
    if text and _BARE_RE.match(text):
        return text
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def nginx_token(value: Any) -> str:
    """A host name or path segment embedded in a larger string; never quoted."""
    text = _as_text(value)
    if not _TOKEN_RE.match(text):
        raise ValueError(f"unsafe characters in {text!r}")
    return text


def nginx_path(value: Any) -> str:
    text = _as_text(value)
    if not text.startswith("/"):
        raise ValueError(f"expected an absolute path, got {text!r}")
    return nginx_value(text)


def urlencode(value: Any) -> str:
    """Form-encode a ``fastcgi_param`` value (unset values become empty)."""
    if value is None:
        return ""
    return quote_plus(_as_text(value), safe="")


FILTERS = {
    "nginx_value": nginx_value,
    "nginx_token": nginx_token,
    "nginx_path": nginx_path,
    "urlencode": urlencode,
}

__all__ = ["FILTERS", "nginx_path", "nginx_token", "nginx_value", "urlencode"]
