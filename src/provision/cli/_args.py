"""Common CLI argument registration utilities.

This module provides reusable argument registration functions to reduce
duplication across CLI commands.
"""
from __future__ import annotations

import argparse


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    """Add --json flag for JSON output mode."""
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_repo_root_flag(parser: argparse.ArgumentParser) -> None:
    """Add --repo-root flag for project root override."""
    parser.add_argument(
        "--repo-root",
        type=str,
        help="Override project root path",
    )


def add_context_name_arg(
    parser: argparse.ArgumentParser,
    help_text: str = "Context name",
) -> None:
    """Add the positional Context name argument."""
    parser.add_argument("name", help=help_text)


def add_force_flag(parser: argparse.ArgumentParser) -> None:
    """Add --force flag."""
    parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Force operation without confirmation",
    )


def add_dry_run_flag(parser: argparse.ArgumentParser) -> None:
    """Add --dry-run flag."""
    parser.add_argument(
        "--dry-run",
        "-n",
        action="store_true",
        help="Plan and report Tasks without executing them",
    )


def add_verbose_flag(parser: argparse.ArgumentParser) -> None:
    """Add --verbose flag (mirrors DEBUG logging to stderr)."""
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )


def add_offline_flag(parser: argparse.ArgumentParser) -> None:
    """Add --offline flag (skip remote reachability checks)."""
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Do not contact git remotes or makefile URLs while validating",
    )


def add_standard_flags(parser: argparse.ArgumentParser) -> None:
    """Add standard flags that most commands use.

    Adds: --json, --repo-root, --verbose
    """
    add_json_flag(parser)
    add_repo_root_flag(parser)
    add_verbose_flag(parser)


__all__ = [
    "add_json_flag",
    "add_repo_root_flag",
    "add_context_name_arg",
    "add_force_flag",
    "add_dry_run_flag",
    "add_verbose_flag",
    "add_offline_flag",
    "add_standard_flags",
]
