"""Helpers command for listing and choosing the AUR helper.

This module provides the `synsyu helpers` command. It shows which known
helpers are installed and which one a run would use, and can persist a
default choice in the config file.
"""

from typing import Annotated

import typer
from rich.table import Table

from synsyu.cli.types import JsonOption, build_config, exit_on_error
from synsyu.core.config import save_helper_default
from synsyu.core.helpers import HELPER_CANDIDATES, detect_helpers, select_helper
from synsyu.utils.formatting import console, print_success, print_warning

app = typer.Typer(
    name="helpers",
    help="List detected AUR helpers and the current selection.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def helpers(
    ctx: typer.Context,
    set_default: Annotated[
        str | None,
        typer.Option(
            "--set",
            help="Persist NAME as the default helper in the config file.",
            metavar="NAME",
        ),
    ] = None,
    json_output: JsonOption = False,
) -> None:
    """List detected AUR helpers.

    Examples:
        synsyu helpers              # Show detected helpers
        synsyu helpers --set paru   # Make paru the default
    """
    if ctx.invoked_subcommand is not None:
        return

    if set_default is not None:
        if set_default not in HELPER_CANDIDATES:
            print_warning(f"'{set_default}' is not a known AUR helper; saving anyway.")
        obj = ctx.obj or {}
        with exit_on_error():
            path = save_helper_default(set_default, obj.get("config"))
        print_success(f"Default helper set to {set_default} in {path}")
        return

    config = build_config(ctx, json_output=json_output)
    detected = detect_helpers()
    selected = select_helper(detected, config.helper_priority, config.helper)

    if config.json_output:
        console.print_json(
            data={
                "detected": list(detected),
                "priority": list(config.helper_priority),
                "default": config.helper,
                "selected": selected,
            }
        )
        return

    table = Table(title="AUR Helpers", border_style="border", header_style="bold_header")
    table.add_column("Helper", style="package.name")
    table.add_column("Installed")
    table.add_column("Selected")
    for name in HELPER_CANDIDATES:
        table.add_row(
            name,
            "[success]yes[/success]" if name in detected else "[muted]no[/muted]",
            "[success]*[/success]" if name == selected else "",
        )
    console.print(table)

    if selected is None:
        print_warning("No AUR helper detected; AUR updates are disabled.")
    elif selected not in detected:
        print_warning(f"Configured helper {selected} is not installed.")
