"""Export command: list explicitly installed packages.

Writes the repository and AUR package lists as JSON (default) or as a
plain sectioned list, to stdout or to a file.
"""

from pathlib import Path
from typing import Annotated

import typer

from synsyu.cli.types import exit_on_error
from synsyu.core.maintenance import ExportFormat, collect_export, render_export
from synsyu.utils.formatting import print_error, print_success


def export(
    ctx: typer.Context,
    fmt: Annotated[
        ExportFormat,
        typer.Option("--format", "-f", help="Output format.", case_sensitive=False),
    ] = ExportFormat.JSON,
    plain: Annotated[bool, typer.Option("--plain", help="Shortcut for --format plain.")] = False,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write to this file instead of stdout."),
    ] = None,
    repo_only: Annotated[
        bool, typer.Option("--repo-only", help="Only repository packages.")
    ] = False,
    aur_only: Annotated[bool, typer.Option("--aur-only", help="Only AUR packages.")] = False,
) -> None:
    """Export explicitly installed packages.

    Examples:
        synsyu export > packages.json
        synsyu export --plain --aur-only
        synsyu export -o ~/backup/packages.json
    """
    obj = ctx.obj or {}
    if plain:
        fmt = ExportFormat.PLAIN

    with exit_on_error():
        data = collect_export(include_repo=not aur_only, include_aur=not repo_only)
    text = render_export(data, fmt)

    if output is None:
        typer.echo(text, nl=False)
        return

    try:
        output.write_text(text, encoding="utf-8")
    except OSError as e:
        print_error(f"Cannot write {output}: {e}")
        raise typer.Exit(code=1) from e
    if not obj.get("quiet"):
        print_success(f"Wrote export to {output}")
