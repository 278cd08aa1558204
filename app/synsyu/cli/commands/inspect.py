"""Inspect command: show one manifest entry in detail."""

from typing import Annotated

import typer

from synsyu.cli.display import create_entry_table
from synsyu.cli.types import JsonOption, build_config, exit_on_error
from synsyu.core.manifest import entry_detail, load_manifest
from synsyu.utils.formatting import console, print_error


def inspect(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Package name to inspect.")],
    json_output: JsonOption = False,
) -> None:
    """Show the manifest entry for a single package.

    Examples:
        synsyu inspect linux
        synsyu inspect paru-bin --json
    """
    config = build_config(ctx, json_output=json_output)

    with exit_on_error():
        manifest = load_manifest(config.manifest_path)

    entry = entry_detail(manifest, name)
    if entry is None:
        print_error(f"Package '{name}' not found in manifest.")
        raise typer.Exit(code=1)

    if config.json_output:
        data = entry.model_dump(mode="json")
        data["name"] = name
        data["footprint_bytes"] = entry.footprint_bytes
        console.print_json(data=data)
        return

    console.print(create_entry_table(name, entry))
