"""Shared Rich display functions for run summaries and manifest views.

Provides reusable table builders and summary printers used across the
run commands (sync, aur, repo, update, apps) and the read-only commands
(check, inspect).
"""

from collections.abc import Iterable

from rich.table import Table

from synsyu.core.config import RunConfig
from synsyu.core.runner import RunSummary
from synsyu.models.manifest import Manifest, ManifestEntry
from synsyu.utils.formatting import (
    console,
    create_package_table,
    format_bytes,
    format_source,
    print_info,
    print_success,
)


def print_run_summary(summary: RunSummary, config: RunConfig) -> None:
    """Print the outcome of a run command.

    JSON mode prints the summary document only. Quiet mode prints nothing.

    Args:
        summary: Result of the run.
        config: Run configuration (for quiet/json flags).
    """
    if config.json_output:
        console.print_json(data=summary.to_dict())
        return
    if config.quiet:
        return

    if summary.offline:
        print_info(f"Offline mode active: skipping {summary.command}.")
        return

    counts = summary.counts
    console.print()
    if summary.failures:
        console.print(
            f"-> Processed: [success]{counts.processed}[/success] "
            f"(failed [error]{counts.failed}[/error], skipped {counts.skipped})"
        )
    else:
        print_success(
            f"-> Processed: {counts.processed} (failed 0, skipped {counts.skipped})"
        )
    if summary.dry_run:
        print_info("-> Dry-run completed; no changes applied.")
    if summary.log_path is not None:
        console.print(f"[muted]-> Log stored at: {summary.log_path}[/muted]")


def create_manifest_summary_table(manifest: Manifest, summary: dict[str, int]) -> Table:
    """Create a table of manifest counters.

    Args:
        manifest: Loaded manifest.
        summary: Output of ``summarize_manifest``.

    Returns:
        Two-column Rich table.
    """
    table = Table(
        title="Manifest",
        show_header=False,
        border_style="border",
    )
    table.add_column("Key", style="muted")
    table.add_column("Value", style="text")

    meta = manifest.metadata
    if meta.generated_at:
        table.add_row("Generated", meta.generated_at)
    for key, value in summary.items():
        table.add_row(key.replace("_", " ").capitalize(), str(value))
    if meta.required_space_total:
        table.add_row("Space required", format_bytes(meta.required_space_total))
    if meta.available_space_bytes:
        table.add_row("Space available", format_bytes(meta.available_space_bytes))
    return table


def create_pending_table(
    manifest: Manifest, names: Iterable[str], title: str = "Pending Updates"
) -> Table:
    """Create a package table for the given manifest entries.

    Entries without a pending update are dimmed.
    """
    table = create_package_table(title)
    for name in names:
        entry = manifest.packages[name]
        table.add_row(
            name if entry.update_available else f"[muted]{name}[/]",
            format_source(entry.source),
            entry.installed_version or "-",
            entry.target_version or "-",
            format_bytes(entry.footprint_bytes),
        )
    return table


def create_entry_table(name: str, entry: ManifestEntry) -> Table:
    """Create a detail table for one manifest entry."""
    table = Table(title=name, show_header=False, border_style="border")
    table.add_column("Field", style="muted")
    table.add_column("Value", style="text")

    table.add_row("Source", format_source(entry.source))
    table.add_row("Installed", entry.installed_version or "-")
    table.add_row("Target", entry.target_version or "-")
    table.add_row(
        "Update",
        "[success]available[/success]" if entry.update_available else "[muted]up to date[/muted]",
    )
    table.add_row("Download", format_bytes(entry.download_bytes))
    table.add_row("Build", format_bytes(entry.build_bytes))
    table.add_row("Install", format_bytes(entry.install_bytes))
    table.add_row("Transient", format_bytes(entry.transient_bytes))
    table.add_row("Footprint", f"[package.size]{format_bytes(entry.footprint_bytes)}[/]")
    return table
