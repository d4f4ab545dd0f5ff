"""
Provision CLI package.

Provides the command-line interface with auto-discovery of commands
from subfolders (context/, config/) and root commands (commands/).

Framework utilities for building CLI commands:
- _output: Output formatting (JSON/text modes)
- _args: Common argument registration helpers
- _utils: Shared CLI utilities
"""
from ._output import OutputFormatter, format_json, print_error
from ._args import (
    add_json_flag,
    add_repo_root_flag,
    add_context_name_arg,
    add_force_flag,
    add_dry_run_flag,
    add_verbose_flag,
    add_offline_flag,
    add_standard_flags,
)
from ._utils import get_repo_root, parse_options, setup_logging

__all__ = [
    # Output formatting
    "OutputFormatter",
    "format_json",
    "print_error",
    # Argument helpers
    "add_json_flag",
    "add_repo_root_flag",
    "add_context_name_arg",
    "add_force_flag",
    "add_dry_run_flag",
    "add_verbose_flag",
    "add_offline_flag",
    "add_standard_flags",
    # Utilities
    "get_repo_root",
    "parse_options",
    "setup_logging",
]
