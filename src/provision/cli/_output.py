"""Unified CLI output formatting utilities.

Commands print their result on stdout (text or JSON) and diagnostics on
stderr, so ``--json`` output can always be piped.
"""
from __future__ import annotations

import json
import sys
from typing import Any, Dict, Optional

from provision.core.exceptions import ProvisionError


class OutputFormatter:
    """Unified output formatter for CLI commands."""

    def __init__(self, json_mode: bool = False, indent: int = 2):
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON; otherwise output text
            indent: JSON indentation level
        """
        self.json_mode = json_mode
        self.indent = indent

    def success(
        self,
        data: Dict[str, Any],
        message: str,
        *,
        status: str = "success",
    ) -> None:
        """Output success result.

        Args:
            data: Result data dictionary
            message: Human-readable success message (used in text mode)
            status: Status string for JSON output
        """
        if self.json_mode:
            output = {"status": status, **data}
            print(json.dumps(output, indent=self.indent, default=str))
        else:
            print(message)

    def error(
        self,
        error: Exception,
        message: Optional[str] = None,
        *,
        error_code: Optional[str] = None,
    ) -> None:
        """Output error result on stderr.

        ``ProvisionError`` instances contribute their ``kind`` as the JSON
        error code and their ``context`` mapping.
        """
        msg = message or str(error)
        if self.json_mode:
            output: Dict[str, Any] = {"error": error_code or _error_code(error), "message": msg}
            if isinstance(error, ProvisionError):
                payload = error.to_json_error()
                if payload.get("context"):
                    output["context"] = payload["context"]
                if payload.get("errors"):
                    output["errors"] = payload["errors"]
            print(json.dumps(output, indent=self.indent, default=str), file=sys.stderr)
        else:
            print(f"Error: {msg}", file=sys.stderr)

    def json_output(self, data: Any) -> None:
        """Output raw JSON data."""
        print(json.dumps(data, indent=self.indent, default=str))

    def text(self, message: str) -> None:
        """Output plain text message."""
        print(message)

    def detail(self, message: str) -> None:
        """Diagnostic line on stderr (text mode only)."""
        if not self.json_mode:
            print(message, file=sys.stderr)


def _error_code(error: Exception) -> str:
    if isinstance(error, ProvisionError):
        return error.kind
    return "error"


def format_json(data: Any, indent: int = 2) -> str:
    return json.dumps(data, indent=indent, default=str)


def print_error(message: str) -> None:
    """Print error message to stderr."""
    print(f"Error: {message}", file=sys.stderr)


__all__ = [
    "OutputFormatter",
    "format_json",
    "print_error",
]
