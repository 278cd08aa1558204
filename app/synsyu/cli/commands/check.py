"""Check command for previewing pending updates.

This module provides the `synsyu check` command, a read-only view of the
manifest: counts per source and the updates a run would attempt.
"""

from typing import Annotated, Any

import typer

from synsyu.cli.display import create_manifest_summary_table, create_pending_table
from synsyu.cli.types import (
    ExcludeOption,
    IncludeOption,
    JsonOption,
    build_config,
    exit_on_error,
)
from synsyu.core.filters import matches
from synsyu.core.manifest import all_entries, load_manifest, summarize_manifest
from synsyu.utils.formatting import console, print_info, print_success

app = typer.Typer(
    name="check",
    help="Show pending updates from the manifest.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def check(
    ctx: typer.Context,
    include: IncludeOption = None,
    exclude: ExcludeOption = None,
    show_all: Annotated[
        bool,
        typer.Option(
            "--all",
            "-a",
            help="List every package, not only pending updates.",
        ),
    ] = False,
    json_output: JsonOption = False,
) -> None:
    """Show pending updates without changing anything.

    Reads the manifest and lists the packages a run would update, after
    include and exclude filters are applied.

    Examples:
        synsyu check                   # Pending updates
        synsyu check --all --json      # Every package as JSON
        synsyu check --include '^linux'
    """
    if ctx.invoked_subcommand is not None:
        return

    config = build_config(
        ctx, include=include or (), exclude=exclude or (), json_output=json_output
    )

    with exit_on_error():
        manifest = load_manifest(config.manifest_path)

    summary = summarize_manifest(manifest)
    records = [
        r
        for r in all_entries(manifest)
        if (show_all or r.update_available) and matches(r.name, config.include, config.exclude)
    ]
    pending = [r for r in records if r.update_available]

    if config.json_output:
        data: dict[str, Any] = {
            "manifest": str(config.manifest_path),
            "generated_at": manifest.metadata.generated_at,
            "summary": summary,
            "pending": len(pending),
            "packages": [
                {
                    "name": r.name,
                    "source": r.source.value,
                    "installed_version": manifest.packages[r.name].installed_version,
                    "target_version": r.target_version,
                    "update_available": r.update_available,
                    "footprint_bytes": manifest.packages[r.name].footprint_bytes,
                }
                for r in records
            ],
        }
        console.print_json(data=data)
        return

    console.print(create_manifest_summary_table(manifest, summary))

    if not records:
        print_success("System is up to date.")
        return

    title = "Packages" if show_all else "Pending Updates"
    console.print(create_pending_table(manifest, (r.name for r in records), title=title))
    if pending and not config.quiet:
        print_info(f"{len(pending)} update(s) pending. Run 'synsyu sync' to apply.")
