"""Log command for browsing and verifying session logs.

This module provides the `synsyu log` command. Each run writes one
session log plus a sha256 sidecar; `log verify` recomputes the digest.
"""

from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from synsyu.cli.types import JsonOption, build_config
from synsyu.core.audit import DigestStatus, list_logs, verify_digest
from synsyu.utils.formatting import console, format_bytes, print_error, print_info, print_success

app = typer.Typer(
    name="log",
    help="List and verify session logs.",
    invoke_without_command=True,
)

_STATUS_STYLE = {
    DigestStatus.OK: "[success]ok[/success]",
    DigestStatus.MISMATCH: "[error]mismatch[/error]",
    DigestStatus.MISSING: "[warning]missing[/warning]",
}


@app.callback(invoke_without_command=True)
def log(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of logs to show.",
        ),
    ] = 10,
    json_output: JsonOption = False,
) -> None:
    """Show recent session logs.

    Examples:
        synsyu log              # Show last 10 logs
        synsyu log -n 30        # Show last 30 logs
        synsyu log verify       # Verify the newest log
    """
    if ctx.invoked_subcommand is not None:
        return

    config = build_config(ctx, json_output=json_output)
    logs = list_logs(config.log_dir)[:limit]

    if config.json_output:
        console.print_json(
            data=[
                {
                    "path": str(path),
                    "size_bytes": path.stat().st_size,
                    "digest": verify_digest(path).value,
                }
                for path in logs
            ]
        )
        return

    if not logs:
        print_info(f"No session logs in {config.log_dir}")
        return

    table = Table(title="Session Logs", border_style="border", header_style="bold_header")
    table.add_column("Log", style="package.name")
    table.add_column("Modified", style="muted")
    table.add_column("Size", justify="right", style="package.size")
    table.add_column("Digest")
    for path in logs:
        stat = path.stat()
        table.add_row(
            path.name,
            datetime.fromtimestamp(stat.st_mtime).strftime("%Y-%m-%d %H:%M:%S"),
            format_bytes(stat.st_size),
            _STATUS_STYLE[verify_digest(path)],
        )
    console.print(table)


@app.command("verify")
def verify(
    ctx: typer.Context,
    path: Annotated[
        Path | None,
        typer.Argument(help="Log file to verify. Defaults to the newest log."),
    ] = None,
) -> None:
    """Recompute a session log's digest and compare it with its sidecar."""
    if path is None:
        config = build_config(ctx)
        logs = list_logs(config.log_dir)
        if not logs:
            print_error(f"No session logs in {config.log_dir}")
            raise typer.Exit(code=1)
        path = logs[0]

    status = verify_digest(path)
    if status is DigestStatus.OK:
        print_success(f"{path.name}: digest ok")
        return
    if status is DigestStatus.MISSING:
        print_error(f"{path.name}: log or digest file missing")
    else:
        print_error(f"{path.name}: digest mismatch")
    raise typer.Exit(code=1)
