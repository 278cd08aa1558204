"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from pathlib import Path
from typing import Annotated

import typer

from synsyu import __version__
from synsyu.cli.commands import apps, check, clean, export, helpers, inspect, log, sync, update

# Create main Typer app
app = typer.Typer(
    name="synsyu",
    help="Manifest-driven update orchestration for Arch-based systems.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"synsyu version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            envvar="SYNSYU_CONFIG_PATH",
            help="Path to the config file.",
        ),
    ] = None,
    manifest: Annotated[
        Path | None,
        typer.Option(
            "--manifest",
            help="Path to the manifest file.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Echo every audit log line to the terminal.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results as JSON.",
        ),
    ] = False,
) -> None:
    """synsyu - Apply manifest-driven system updates.

    Reads the manifest produced by the resolver and applies the pending
    updates through pacman, an AUR helper, Flatpak and fwupd.
    """
    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["manifest"] = manifest
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["json"] = json_output


# Register commands
app.add_typer(sync.app, name="sync")
app.add_typer(sync.aur_app, name="aur")
app.add_typer(sync.repo_app, name="repo")
app.command("update")(update.update)
app.add_typer(apps.app, name="apps")
app.add_typer(apps.flatpak_app, name="flatpak")
app.add_typer(apps.fwupd_app, name="fwupd")
app.add_typer(check.app, name="check")
app.command("inspect")(inspect.inspect)
app.command("export")(export.export)
app.command("clean")(clean.clean)
app.add_typer(helpers.app, name="helpers")
app.add_typer(log.app, name="log")
