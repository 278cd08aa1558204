"""Application-layer update commands: apps, flatpak and fwupd.

These run the whole-source updaters directly and do not need a manifest.
"""

import typer

from synsyu.cli.display import print_run_summary
from synsyu.cli.types import (
    ConfirmOption,
    DryRunOption,
    FlatpakOption,
    FwupdOption,
    JsonOption,
    OfflineOption,
    QuietOption,
    build_config,
    exit_on_error,
    open_audit,
)
from synsyu.core.executor import APPLICATION_SOURCES
from synsyu.core.runner import run_applications


def _run(
    ctx: typer.Context,
    command: str,
    sources: list[str],
    *,
    dry_run: bool,
    quiet: bool,
    json_output: bool,
    confirm: bool | None,
    offline: bool,
) -> None:
    config = build_config(
        ctx,
        dry_run=True if dry_run else None,
        quiet=quiet,
        json_output=json_output,
        noconfirm=None if confirm is None else not confirm,
        offline=True if offline else None,
    )
    audit = open_audit(ctx, config)
    audit.info("APPS", f"{command} command triggered")

    with exit_on_error(audit):
        summary = run_applications(config, audit, sources, command=command)

    print_run_summary(summary, config)
    if summary.failures:
        raise typer.Exit(code=int(summary.exit_code))


app = typer.Typer(
    help="Apply Flatpak and firmware updates.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def apps(
    ctx: typer.Context,
    dry_run: DryRunOption = False,
    quiet: QuietOption = False,
    json_output: JsonOption = False,
    confirm: ConfirmOption = None,
    offline: OfflineOption = False,
    with_flatpak: FlatpakOption = None,
    with_fwupd: FwupdOption = None,
) -> None:
    """Apply Flatpak and firmware updates.

    Both sources run unless excluded with --no-flatpak or --no-fwupd.
    """
    if ctx.invoked_subcommand is not None:
        return

    excluded = {
        name
        for name, flag in (("flatpak", with_flatpak), ("fwupd", with_fwupd))
        if flag is False
    }
    sources = [name for name in APPLICATION_SOURCES if name not in excluded]
    _run(
        ctx,
        "apps",
        sources,
        dry_run=dry_run,
        quiet=quiet,
        json_output=json_output,
        confirm=confirm,
        offline=offline,
    )


flatpak_app = typer.Typer(
    help="Apply Flatpak application updates.",
    invoke_without_command=True,
)


@flatpak_app.callback(invoke_without_command=True)
def flatpak(
    ctx: typer.Context,
    dry_run: DryRunOption = False,
    quiet: QuietOption = False,
    json_output: JsonOption = False,
    confirm: ConfirmOption = None,
    offline: OfflineOption = False,
) -> None:
    """Apply Flatpak application updates."""
    if ctx.invoked_subcommand is not None:
        return
    _run(
        ctx,
        "flatpak",
        ["flatpak"],
        dry_run=dry_run,
        quiet=quiet,
        json_output=json_output,
        confirm=confirm,
        offline=offline,
    )


fwupd_app = typer.Typer(
    help="Apply firmware updates via fwupdmgr.",
    invoke_without_command=True,
)


@fwupd_app.callback(invoke_without_command=True)
def fwupd(
    ctx: typer.Context,
    dry_run: DryRunOption = False,
    quiet: QuietOption = False,
    json_output: JsonOption = False,
    confirm: ConfirmOption = None,
    offline: OfflineOption = False,
) -> None:
    """Apply firmware updates via fwupdmgr."""
    if ctx.invoked_subcommand is not None:
        return
    _run(
        ctx,
        "fwupd",
        ["fwupd"],
        dry_run=dry_run,
        quiet=quiet,
        json_output=json_output,
        confirm=confirm,
        offline=offline,
    )
