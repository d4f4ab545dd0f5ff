"""
Provision render command.

SUMMARY: Print the web-server vhost of a verified site
"""

from __future__ import annotations

import argparse
import sys

from provision.cli import (
    OutputFormatter,
    add_context_name_arg,
    add_standard_flags,
    get_repo_root,
    setup_logging,
)
from provision.core.context import SiteContext
from provision.core.exceptions import ProvisionError
from provision.core.pipeline import VerificationPipeline
from provision.core.store import ContextStore
from provision.core.tasks import Runtime

SUMMARY = "Print the web-server vhost of a verified site"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_context_name_arg(parser, "Site Context name")
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        repo_root = get_repo_root(args)
        setup_logging(args, repo_root)
        inventory = ContextStore(repo_root).load_inventory()
        runtime = Runtime.from_config(repo_root, check_remotes=False)
        pipeline = VerificationPipeline(inventory, runtime)
        site = pipeline.prepare(args.name)
        if not isinstance(site, SiteContext):
            formatter.error(ValueError(f"{args.name} is a {site.type_tag} Context, not a site"), error_code="usage")
            return 2
        if site.errors:
            raise site.configuration_error()
        deps = pipeline.dependencies(site)
        text = runtime.get_renderer().render_for_site(site, deps)
        vhost_path = site.vhost_path(deps.of(deps["platform"])["http"])
    except ProvisionError as exc:
        formatter.error(exc)
        return 1

    if formatter.json_mode:
        formatter.json_output({"site": site.name, "vhost_path": str(vhost_path), "config": text})
    else:
        sys.stdout.write(text)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
