from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_timestamp() -> str:
    """Return the current UTC time as an ISO 8601 string (seconds precision)."""
    return utc_now().replace(microsecond=0).isoformat()


__all__ = ["utc_now", "utc_timestamp"]
