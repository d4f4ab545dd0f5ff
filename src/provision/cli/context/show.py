"""
Provision context show command.

SUMMARY: Show a saved Context record and its last report
"""

from __future__ import annotations

import argparse
import sys

import yaml

from provision.cli import (
    OutputFormatter,
    add_context_name_arg,
    add_standard_flags,
    get_repo_root,
    setup_logging,
)
from provision.core.exceptions import ContextNotFoundError, ProvisionError
from provision.core.store import ContextStore

SUMMARY = "Show a saved Context record and its last report"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_context_name_arg(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        repo_root = get_repo_root(args)
        setup_logging(args, repo_root)
        record = ContextStore(repo_root).read_record(args.name)
        if record is None:
            raise ContextNotFoundError(f"Context {args.name!r} not found", context={"name": args.name})
    except ProvisionError as exc:
        formatter.error(exc)
        return 1

    if formatter.json_mode:
        formatter.json_output(record)
    else:
        formatter.text(yaml.safe_dump(record, default_flow_style=False, sort_keys=False, allow_unicode=True).rstrip())
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
