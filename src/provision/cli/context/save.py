"""
Provision context save command.

SUMMARY: Create or update a Context record

Options given with ``--option key=value`` are merged into the existing record
(an empty value unsets the option). The Context is validated before it is
written; every configuration error is reported and nothing is saved when any
option is rejected. Unresolved capabilities are only warnings: providers may
be saved later.
"""

from __future__ import annotations

import argparse
import sys

from provision.cli import (
    OutputFormatter,
    add_context_name_arg,
    add_offline_flag,
    add_standard_flags,
    get_repo_root,
    parse_options,
    setup_logging,
)
from provision.core.exceptions import ProvisionError
from provision.core.registries import create_context, list_context_types
from provision.core.store import ContextStore
from provision.core.tasks import Runtime

SUMMARY = "Create or update a Context record"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_context_name_arg(parser)
    parser.add_argument(
        "--type",
        "-t",
        dest="context_type",
        choices=list_context_types(),
        help="Context type (required for a new Context)",
    )
    parser.add_argument(
        "--option",
        "-o",
        dest="options",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Set an option (repeatable; empty value unsets)",
    )
    parser.add_argument(
        "--replace",
        action="store_true",
        help="Discard previously saved options instead of merging",
    )
    add_offline_flag(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        updates = parse_options(args.options)
    except ValueError as exc:
        formatter.error(exc, error_code="usage")
        return 2

    try:
        repo_root = get_repo_root(args)
        setup_logging(args, repo_root)
        store = ContextStore(repo_root)
        inventory = store.load_inventory()
        previous = inventory.get(args.name) if args.name in inventory else None

        type_tag = args.context_type or (previous.type_tag if previous is not None else None)
        if type_tag is None:
            formatter.error(ValueError(f"--type is required for new Context {args.name!r}"), error_code="usage")
            return 2
        if previous is not None and previous.type_tag != type_tag:
            formatter.error(
                ValueError(f"{args.name} is a {previous.type_tag} Context; remove it before changing its type"),
                error_code="usage",
            )
            return 2

        options = {} if previous is None or args.replace else dict(previous.options)
        for key, value in updates.items():
            if value == "":
                options.pop(key, None)
            else:
                options[key] = value

        context = create_context(args.name, type_tag, options)
        runtime = Runtime.from_config(repo_root, check_remotes=False if args.offline else None)
        inventory.replace(context)
        errors = context.configure(runtime)
        if errors:
            raise context.configuration_error()
        warnings = context.resolve_dependencies(inventory, transition=False)

        if previous is not None and previous.options == context.options:
            # Unchanged: keep the verification state of the stored record.
            context.state = previous.state
            context.failure = previous.failure
            context.verified_fingerprint = previous.verified_fingerprint
        with store.lock():
            path = store.save(context)
    except ProvisionError as exc:
        formatter.error(exc)
        return 1

    for warning in warnings:
        formatter.detail(f"Warning: {warning}")
    formatter.success(
        {
            "name": context.name,
            "type": context.type_tag,
            "state": context.state.value,
            "options": context.options,
            "providers": context.providers,
            "warnings": [str(w) for w in warnings],
            "path": str(path),
        },
        f"Saved {context.type_tag} {context.name} ({context.state.value}) to {path}",
    )
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
