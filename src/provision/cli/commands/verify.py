"""
Provision verify command.

SUMMARY: Verify one or more Contexts (or all of them)

Loads every persisted Context, resolves capability dependencies, orders the
targets so providers come first and runs each Context's Tasks. The exit code
is 0 only when every targeted Context ends Verified (or, with --dry-run, was
planned without errors).
"""

from __future__ import annotations

import argparse
import sys

from provision.cli import (
    OutputFormatter,
    add_dry_run_flag,
    add_offline_flag,
    add_standard_flags,
    get_repo_root,
    setup_logging,
)
from provision.core.config.domains import PipelineConfig
from provision.core.exceptions import DependencyCycleError, ProvisionError
from provision.core.pipeline import VerificationPipeline
from provision.core.pipeline.report import ContextReport, VerificationReport
from provision.core.store import ContextStore
from provision.core.tasks import Runtime

SUMMARY = "Verify one or more Contexts (or all of them)"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    parser.add_argument("names", nargs="*", metavar="NAME", help="Contexts to verify")
    parser.add_argument("--all", action="store_true", help="Verify every known Context")
    parser.add_argument(
        "--with-deps",
        action="store_true",
        default=None,
        help="Also verify the providers the targets depend on",
    )
    parser.add_argument(
        "--incremental",
        action="store_true",
        default=None,
        help="Only re-run final checks for Contexts unchanged since their last verification",
    )
    add_dry_run_flag(parser)
    add_offline_flag(parser)
    add_standard_flags(parser)


def _print_context(formatter: OutputFormatter, ctx: ContextReport) -> None:
    line = f"{ctx.name} ({ctx.type}): {ctx.status}"
    if ctx.incremental:
        line += " [incremental]"
    formatter.detail(line)
    for task in ctx.tasks:
        result = task.result
        detail = f" - {result.message}" if result.message else ""
        formatter.detail(f"  [{result.status.value}] {task.id}: {task.describe()}{detail}")
    if ctx.error_kind:
        where = f" in {ctx.failed_task}" if ctx.failed_task else ""
        formatter.detail(f"  {ctx.error_kind}{where}: {ctx.message}")
    if len(ctx.errors) > 1:
        for error in ctx.errors:
            formatter.detail(f"  - {error.get('message')}")


def _summary(report: VerificationReport) -> str:
    failed = [c.name for c in report.contexts if not c.ok]
    word = "planned" if report.dry_run else "verified"
    if not report.contexts:
        return "Nothing to verify"
    if not failed:
        return f"{len(report.contexts)} context(s) {word}"
    return f"{len(failed)} of {len(report.contexts)} context(s) failed: {', '.join(failed)}"


def main(args: argparse.Namespace) -> int:
    """Verify Contexts - delegates to VerificationPipeline."""
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    if args.names and args.all:
        formatter.error(ValueError("Give Context names or --all, not both"), error_code="usage")
        return 2
    if not args.names and not args.all:
        formatter.error(ValueError("Nothing to verify: give Context names or --all"), error_code="usage")
        return 2

    try:
        repo_root = get_repo_root(args)
        setup_logging(args, repo_root)
        pipeline_cfg = PipelineConfig(repo_root)
        store = ContextStore(repo_root)
        inventory = store.load_inventory()
        runtime = Runtime.from_config(
            repo_root,
            dry_run=args.dry_run,
            check_remotes=False if args.offline else None,
        )
        pipeline = VerificationPipeline(inventory, runtime, store)
        report = pipeline.verify(
            None if args.all else args.names,
            with_dependencies=pipeline_cfg.with_dependencies if args.with_deps is None else args.with_deps,
            incremental=pipeline_cfg.incremental if args.incremental is None else args.incremental,
        )
    except DependencyCycleError as exc:
        formatter.error(exc, f"Dependency cycle, nothing was run: {' -> '.join(exc.cycle)}")
        return 1
    except ProvisionError as exc:
        formatter.error(exc)
        return 1

    if formatter.json_mode:
        formatter.json_output(report.to_dict())
    else:
        for ctx in report.contexts:
            _print_context(formatter, ctx)
        formatter.text(_summary(report))
    return report.exit_code()


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
