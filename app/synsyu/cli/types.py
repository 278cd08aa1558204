"""Shared option types and helpers for CLI commands.

This module provides the Annotated option aliases and the config/audit/error
plumbing used by every run command, so the command modules only describe
what differs between them.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Annotated, Any

import typer

from synsyu.core.audit import AuditLog
from synsyu.core.config import RunConfig, resolve_config
from synsyu.core.errors import (
    ExitCode,
    ManifestMissingError,
    SnapshotFailedError,
    SynsyuError,
)
from synsyu.utils.formatting import print_error, print_info

DryRunOption = Annotated[
    bool,
    typer.Option("--dry-run", "-n", help="Show what would be updated without changing anything."),
]
BatchOption = Annotated[
    int | None,
    typer.Option("--batch", help="Repo packages per pacman invocation."),
]
IncludeOption = Annotated[
    list[str] | None,
    typer.Option("--include", help="Only update packages matching this regex (repeatable)."),
]
ExcludeOption = Annotated[
    list[str] | None,
    typer.Option("--exclude", help="Skip packages matching this regex (repeatable)."),
]
HelperOption = Annotated[
    str | None,
    typer.Option("--helper", help="Force a specific AUR helper."),
]
MinFreeOption = Annotated[
    float | None,
    typer.Option("--min-free-gb", help="Free space to keep after updates, in GiB."),
]
QuietOption = Annotated[
    bool,
    typer.Option("--quiet", "-q", help="Suppress non-essential output."),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output the run summary as JSON."),
]
NoAurOption = Annotated[
    bool,
    typer.Option("--no-aur", help="Skip AUR packages."),
]
NoRepoOption = Annotated[
    bool,
    typer.Option("--no-repo", help="Skip repository packages."),
]
ConfirmOption = Annotated[
    bool | None,
    typer.Option("--confirm/--noconfirm", help="Let package managers prompt for confirmation."),
]
OfflineOption = Annotated[
    bool,
    typer.Option("--offline", help="Skip all networked and mutating operations."),
]
RebuildOption = Annotated[
    bool,
    typer.Option("--rebuild", help="Rebuild the manifest before updating."),
]
FlatpakOption = Annotated[
    bool | None,
    typer.Option("--with-flatpak/--no-flatpak", help="Include or skip Flatpak updates."),
]
FwupdOption = Annotated[
    bool | None,
    typer.Option("--with-fwupd/--no-fwupd", help="Include or skip firmware updates."),
]


def _flag(value: bool) -> bool | None:
    """Map an unset CLI flag to None so lower config layers still apply."""
    return True if value else None


def build_config(ctx: typer.Context, **overrides: Any) -> RunConfig:
    """Resolve the run configuration from global options and command flags.

    Args:
        ctx: Typer context holding the global options.
        **overrides: Command-level settings; None means "not given".

    Returns:
        Resolved RunConfig.

    Raises:
        typer.Exit: If the configuration is invalid.
    """
    obj: dict[str, Any] = ctx.obj or {}

    command_quiet = bool(overrides.pop("quiet", False))
    command_json = bool(overrides.pop("json_output", False))
    quiet = bool(obj.get("quiet")) or command_quiet
    json_output = bool(obj.get("json")) or command_json
    settings: dict[str, Any] = {
        "manifest_path": obj.get("manifest"),
        "verbose": _flag(bool(obj.get("verbose"))),
        "quiet": _flag(quiet),
        "json_output": _flag(json_output),
        **overrides,
    }

    try:
        return resolve_config(obj.get("config"), settings)
    except SynsyuError as e:
        print_error(str(e))
        raise typer.Exit(code=int(e.exit_code)) from e


def run_flags(
    *,
    dry_run: bool,
    batch: int | None,
    include: list[str] | None,
    exclude: list[str] | None,
    helper: str | None,
    min_free_gb: float | None,
    quiet: bool,
    json_output: bool,
    no_aur: bool,
    no_repo: bool,
    confirm: bool | None,
    offline: bool,
    rebuild: bool,
) -> dict[str, Any]:
    """Translate run-command flags into config overrides.

    Raises:
        typer.Exit: If --no-aur and --no-repo are combined.
    """
    if no_aur and no_repo:
        print_error("--no-aur and --no-repo cannot be combined; nothing would be updated.")
        raise typer.Exit(code=int(ExitCode.CONFLICTING_FLAGS))

    return {
        "dry_run": _flag(dry_run),
        "batch_size": batch,
        "include": include or (),
        "exclude": exclude or (),
        "helper": helper,
        "min_free_gb": min_free_gb,
        "quiet": quiet,
        "json_output": json_output,
        "include_aur": False if no_aur else None,
        "include_repo": False if no_repo else None,
        "noconfirm": None if confirm is None else not confirm,
        "offline": _flag(offline),
        "rebuild": _flag(rebuild),
    }


def open_audit(ctx: typer.Context, config: RunConfig) -> AuditLog:
    """Open the session audit log and seal it when the command exits."""
    audit = AuditLog.open(
        config.log_dir,
        config.log_level,
        verbose=config.verbose,
        retention_days=config.retention_days,
        retention_bytes=config.retention_bytes,
    )
    ctx.call_on_close(audit.finalize)
    return audit


@contextmanager
def exit_on_error(audit: AuditLog | None = None) -> Iterator[None]:
    """Translate orchestrator errors into an error message and exit code.

    Args:
        audit: Session audit log to record the error in and seal.

    Raises:
        typer.Exit: With the error's exit code.
    """
    try:
        yield
    except SynsyuError as e:
        if audit is not None:
            code = "SNAPSHOT" if isinstance(e, SnapshotFailedError) else "ABORT"
            audit.error(code, str(e))
            audit.finalize()
        print_error(str(e))
        if isinstance(e, ManifestMissingError):
            print_info("Run with --rebuild, or generate it with the resolver (synsyu_core).")
        raise typer.Exit(code=int(e.exit_code)) from e

