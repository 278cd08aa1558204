"""Clean command: prune the package cache and remove orphans."""

from typing import Annotated

import typer

from synsyu.cli.types import (
    DryRunOption,
    JsonOption,
    QuietOption,
    build_config,
    exit_on_error,
    open_audit,
)
from synsyu.core.maintenance import clean_system
from synsyu.utils.formatting import console, print_info, print_success


def clean(
    ctx: typer.Context,
    keep: Annotated[
        int | None,
        typer.Option("--keep", "-k", min=0, help="Cached versions to keep per package."),
    ] = None,
    orphans: Annotated[
        bool | None,
        typer.Option("--orphans/--no-orphans", help="Also remove orphaned dependencies."),
    ] = None,
    dry_run: DryRunOption = False,
    quiet: QuietOption = False,
    json_output: JsonOption = False,
) -> None:
    """Prune the package cache.

    Uses paccache (keeping the newest versions of each package) and falls
    back to pacman -Sc. Defaults come from the [clean] config table.

    Examples:
        synsyu clean
        synsyu clean --keep 1 --orphans
        synsyu clean --dry-run
    """
    config = build_config(
        ctx,
        clean_keep_versions=keep,
        clean_remove_orphans=orphans,
        dry_run=dry_run or None,
        quiet=quiet,
        json_output=json_output,
    )
    audit = open_audit(ctx, config)

    with exit_on_error(audit):
        report = clean_system(config, audit)

    if config.json_output:
        console.print_json(data=report.to_dict())
    elif not config.quiet:
        if report.cache_method is not None:
            verb = "Would prune" if report.dry_run else "Pruned"
            print_success(f"{verb} package cache via {report.cache_method}")
        if report.orphans_removed:
            print_success(f"Removed {len(report.orphans)} orphaned package(s)")
        elif report.orphans and report.dry_run:
            print_info(f"Would remove orphans: {' '.join(report.orphans)}")

    if report.failures:
        raise typer.Exit(code=1)
