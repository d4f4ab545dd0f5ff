"""Stock Property validators.

Every validator has the signature ``validator(value, runtime)`` and returns
the normalised value or raises ``ValueError``. ``runtime`` may be None for
purely local checks; checks that reach the network use
``runtime.runner`` and are skipped when ``runtime.check_remotes`` is off.
"""
from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, List, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from provision.core.exceptions import TaskFailureError
from provision.core.git import is_remote_reachable

if TYPE_CHECKING:
    from provision.core.tasks.runtime import Runtime

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "on", "y"}
_FALSE = {"0", "false", "no", "off", "n"}
_LABEL_RE = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")
_IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,127}$")
_REMOTE_SCHEMES = {"http", "https", "ftp"}


def _base_dir(runtime: Optional["Runtime"]) -> Path:
    return Path(runtime.cwd) if runtime is not None else Path.cwd()


def _remote_timeout(runtime: "Runtime") -> float:
    return runtime.runner.timeout_for(None, "remote_check")


def absolute_path(value: Any, runtime: Optional["Runtime"] = None) -> Path:
    """Relative paths are joined to the runtime working directory."""
    text = str(value).strip()
    if "\x00" in text:
        raise ValueError("path contains a NUL byte")
    path = Path(text).expanduser()
    if not path.is_absolute():
        path = _base_dir(runtime) / path
    return Path(os.path.normpath(str(path)))


def relative_path(value: Any, runtime: Optional["Runtime"] = None) -> str:
    """A relative path segment that cannot escape its parent."""
    text = str(value).strip().strip("/")
    parts = [p for p in text.split("/") if p not in ("", ".")]
    if not parts:
        raise ValueError("empty path")
    if any(p == ".." for p in parts):
        raise ValueError(f"{value!r} must not contain '..'")
    return "/".join(parts)


def boolean(value: Any, runtime: Optional["Runtime"] = None) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        raise ValueError(f"{value!r} is not a boolean")
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"{value!r} is not a boolean")


def port(value: Any, runtime: Optional["Runtime"] = None) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{value!r} is not a port number")
    try:
        number = int(str(value).strip())
    except ValueError:
        raise ValueError(f"{value!r} is not a port number") from None
    if not 1 <= number <= 65535:
        raise ValueError(f"port {number} is out of range 1-65535")
    return number


def hostname(value: Any, runtime: Optional["Runtime"] = None) -> str:
    """RFC 1123 host name; a leading ``*.`` wildcard label is allowed."""
    text = str(value).strip().lower().rstrip(".")
    if not text or len(text) > 253:
        raise ValueError(f"{value!r} is not a valid host name")
    labels = text.split(".")
    if labels[0] == "*" and len(labels) > 1:
        labels = labels[1:]
    for label in labels:
        if not _LABEL_RE.match(label):
            raise ValueError(f"{value!r} is not a valid host name")
    return text


def hostname_list(value: Any, runtime: Optional["Runtime"] = None) -> List[str]:
    """Comma/whitespace separated string or a list of host names."""
    if isinstance(value, str):
        items = [v for v in re.split(r"[,\s]+", value) if v]
    elif isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    else:
        raise ValueError(f"{value!r} is not a list of host names")
    result: List[str] = []
    for item in items:
        name = hostname(item, runtime)
        if name not in result:
            result.append(name)
    return result


def choice(*options: str) -> Callable[[Any, Optional["Runtime"]], str]:
    allowed = tuple(options)

    def _validate(value: Any, runtime: Optional["Runtime"] = None) -> str:
        text = str(value).strip()
        if text not in allowed:
            raise ValueError(f"{value!r} is not one of: {', '.join(allowed)}")
        return text

    return _validate


def identifier(value: Any, runtime: Optional["Runtime"] = None) -> str:
    """Context, user and database names."""
    text = str(value).strip()
    if not _IDENTIFIER_RE.match(text):
        raise ValueError(
            f"{value!r} is not a valid name (letters, digits, '_', '.', '-'; must start alphanumeric)"
        )
    return text


def single_line(value: Any, runtime: Optional["Runtime"] = None) -> str:
    """Free text on a single line."""
    result = str(value)
    if any(ch in result for ch in "\r\n\x00"):
        raise ValueError("value must be a single line")
    return result


def is_remote(value: str) -> bool:
    return urlparse(str(value)).scheme.lower() in _REMOTE_SCHEMES


def _url_readable(url: str, *, timeout_seconds: float) -> bool:
    req = Request(url, method="GET")
    try:
        with urlopen(req, timeout=timeout_seconds) as resp:  # noqa: S310 - scheme checked by is_remote
            resp.read(1)
            return True
    except HTTPError as exc:
        logger.debug("GET %s returned HTTP %s", url, exc.code)
        return False
    except (URLError, OSError) as exc:
        logger.debug("GET %s failed: %s", url, exc)
        return False


def readable_manifest(value: Any, runtime: Optional["Runtime"] = None) -> str:
    """Build manifest: a readable local file or a fetchable URL."""
    raw = str(value).strip()
    if is_remote(raw):
        if runtime is not None and runtime.check_remotes:
            if not _url_readable(raw, timeout_seconds=_remote_timeout(runtime)):
                raise ValueError(f"Could not read makefile {raw}")
        return raw
    path = absolute_path(raw, runtime)
    if not path.is_file() or not os.access(path, os.R_OK):
        raise ValueError(f"Could not read makefile {path}")
    return str(path)


def git_remote(value: Any, runtime: Optional["Runtime"] = None) -> str:
    """Source repository URL, checked with ``git ls-remote`` when allowed."""
    url = str(value).strip()
    if url.startswith("-"):
        raise ValueError(f"{url!r} is not a repository URL")
    if any(ch.isspace() for ch in url):
        raise ValueError(f"{url!r} must not contain whitespace")
    if runtime is not None and runtime.check_remotes:
        try:
            reachable = is_remote_reachable(runtime.runner, url)
        except TaskFailureError as exc:
            raise ValueError(f"Unable to connect to git remote {url}: {exc}") from exc
        if not reachable:
            raise ValueError(f"Unable to connect to git remote {url}")
    return url


__all__ = [
    "absolute_path",
    "boolean",
    "choice",
    "git_remote",
    "hostname",
    "hostname_list",
    "identifier",
    "is_remote",
    "port",
    "readable_manifest",
    "relative_path",
    "single_line",
]
