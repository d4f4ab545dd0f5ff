"""
Provision context remove command.

SUMMARY: Delete a saved Context record

Removal never cascades. Contexts that depend on the removed one are listed
and the command refuses to proceed unless ``--force`` is given; those
dependents fail capability resolution on their next verification.
"""

from __future__ import annotations

import argparse
import sys

from provision.cli import (
    OutputFormatter,
    add_context_name_arg,
    add_force_flag,
    add_standard_flags,
    get_repo_root,
    setup_logging,
)
from provision.core.exceptions import ProvisionError
from provision.core.store import ContextStore

SUMMARY = "Delete a saved Context record"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_context_name_arg(parser)
    add_force_flag(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        repo_root = get_repo_root(args)
        setup_logging(args, repo_root)
        store = ContextStore(repo_root)
        inventory = store.load_inventory()
        inventory.get(args.name)
        dependents = inventory.dependents_of(args.name)
        if dependents and not args.force:
            formatter.error(
                ValueError(f"{args.name} is required by {', '.join(dependents)} (use --force to remove anyway)"),
                error_code="has_dependents",
            )
            return 1
        with store.lock():
            store.remove(args.name)
    except ProvisionError as exc:
        formatter.error(exc)
        return 1

    formatter.success(
        {"name": args.name, "dependents": dependents},
        f"Removed {args.name}" + (f" (dependents left unresolved: {', '.join(dependents)})" if dependents else ""),
    )
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
