"""
Provision context list command.

SUMMARY: List saved Contexts with their type and state
"""

from __future__ import annotations

import argparse
import sys

from provision.cli import OutputFormatter, add_standard_flags, get_repo_root, setup_logging
from provision.core.exceptions import ProvisionError
from provision.core.store import ContextStore

SUMMARY = "List saved Contexts with their type and state"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--type", "-t", dest="context_type", help="Only list Contexts of this type")
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        repo_root = get_repo_root(args)
        setup_logging(args, repo_root)
        inventory = ContextStore(repo_root).load_inventory()
    except ProvisionError as exc:
        formatter.error(exc)
        return 1

    rows = [
        {"name": c.name, "type": c.type_tag, "state": c.state.value, "scope": c.scope}
        for c in inventory
        if not args.context_type or c.type_tag == args.context_type
    ]
    if formatter.json_mode:
        formatter.json_output({"contexts": rows})
        return 0
    if not rows:
        formatter.text("No contexts")
        return 0
    width = max(len(r["name"]) for r in rows)
    for row in rows:
        formatter.text(f"{row['name']:<{width}}  {row['type']:<8}  {row['state']}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
