"""Targeted update command.

Updates only the named packages. Names missing from the manifest are
warned about; packages without a pending update are skipped.
"""

from typing import Annotated

import typer

from synsyu.cli.display import print_run_summary
from synsyu.cli.types import (
    BatchOption,
    ConfirmOption,
    DryRunOption,
    ExcludeOption,
    HelperOption,
    IncludeOption,
    JsonOption,
    MinFreeOption,
    NoAurOption,
    NoRepoOption,
    OfflineOption,
    QuietOption,
    build_config,
    exit_on_error,
    open_audit,
    run_flags,
)
from synsyu.core.errors import ExitCode
from synsyu.core.runner import run_updates
from synsyu.utils.formatting import print_error


def update(
    ctx: typer.Context,
    names: Annotated[
        list[str] | None,
        typer.Argument(help="Packages to update.", show_default=False),
    ] = None,
    dry_run: DryRunOption = False,
    batch: BatchOption = None,
    include: IncludeOption = None,
    exclude: ExcludeOption = None,
    helper: HelperOption = None,
    min_free_gb: MinFreeOption = None,
    quiet: QuietOption = False,
    json_output: JsonOption = False,
    no_aur: NoAurOption = False,
    no_repo: NoRepoOption = False,
    confirm: ConfirmOption = None,
    offline: OfflineOption = False,
    rebuild: Annotated[
        bool,
        typer.Option(
            "--rebuild/--no-rebuild",
            help="Refresh the manifest before updating (skipped when offline).",
        ),
    ] = True,
) -> None:
    """Update specific packages.

    The manifest is rebuilt first so the targeted versions are current;
    pass --no-rebuild to use the existing one. Repository packages among
    NAMES are still batched; AUR packages go through the helper one at a
    time.

    Examples:
        synsyu update linux linux-headers
        synsyu update paru-bin --dry-run
    """
    if not names:
        print_error("update requires at least one package name.")
        raise typer.Exit(code=int(ExitCode.MISSING_ARGUMENT))

    overrides = run_flags(
        dry_run=dry_run,
        batch=batch,
        include=include,
        exclude=exclude,
        helper=helper,
        min_free_gb=min_free_gb,
        quiet=quiet,
        json_output=json_output,
        no_aur=no_aur,
        no_repo=no_repo,
        confirm=confirm,
        offline=offline,
        rebuild=rebuild,
    )
    overrides["rebuild"] = rebuild
    config = build_config(ctx, **overrides)
    audit = open_audit(ctx, config)

    with exit_on_error(audit):
        summary = run_updates(config, audit, command="update", names=names)

    print_run_summary(summary, config)
    if summary.failures:
        raise typer.Exit(code=int(summary.exit_code))
