"""Run commands: sync, aur and repo.

All three stream the manifest's pending updates through the same pipeline;
they differ only in which package sources they touch:

- ``sync``: repository and AUR packages, then enabled application updates.
- ``aur``: AUR packages only, through the selected helper.
- ``repo``: repository packages only, batched through pacman.
"""

import logging

import typer

from synsyu.cli.display import print_run_summary
from synsyu.cli.types import (
    BatchOption,
    ConfirmOption,
    DryRunOption,
    ExcludeOption,
    FlatpakOption,
    FwupdOption,
    HelperOption,
    IncludeOption,
    JsonOption,
    MinFreeOption,
    NoAurOption,
    NoRepoOption,
    OfflineOption,
    QuietOption,
    RebuildOption,
    build_config,
    exit_on_error,
    open_audit,
    run_flags,
)
from synsyu.core.runner import run_updates

logger = logging.getLogger(__name__)


def _make_run_app(command: str, help_text: str) -> typer.Typer:
    """Build the Typer app for one run command.

    Args:
        command: "sync", "aur" or "repo".
        help_text: Help shown for the command.

    Returns:
        Typer app with a single invoke-without-command callback.
    """
    sub = typer.Typer(help=help_text, invoke_without_command=True)

    @sub.callback(invoke_without_command=True)
    def run(
        ctx: typer.Context,
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
        rebuild: RebuildOption = False,
        with_flatpak: FlatpakOption = None,
        with_fwupd: FwupdOption = None,
    ) -> None:
        if ctx.invoked_subcommand is not None:
            return

        overrides = run_flags(
            dry_run=dry_run,
            batch=batch,
            include=include,
            exclude=exclude,
            helper=helper,
            min_free_gb=min_free_gb,
            quiet=quiet,
            json_output=json_output,
            no_aur=no_aur or command == "repo",
            no_repo=no_repo or command == "aur",
            confirm=confirm,
            offline=offline,
            rebuild=rebuild,
        )
        config = build_config(
            ctx, **overrides, with_flatpak=with_flatpak, with_fwupd=with_fwupd
        )
        audit = open_audit(ctx, config)
        logger.debug("Starting %s with batch size %d", command, config.batch_size)

        with exit_on_error(audit):
            summary = run_updates(
                config, audit, command=command, applications=command == "sync"
            )

        print_run_summary(summary, config)
        if summary.failures:
            raise typer.Exit(code=int(summary.exit_code))

    return sub


app = _make_run_app(
    "sync",
    "Update repository and AUR packages from the manifest, then enabled applications.",
)
aur_app = _make_run_app("aur", "Update AUR packages only, through the selected helper.")
repo_app = _make_run_app("repo", "Update repository packages only, batched through pacman.")
