"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from synsyu.core.theme import get_theme

if TYPE_CHECKING:
    from synsyu.models.manifest import PackageSource


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def format_bytes(size: int) -> str:
    """Format a byte count with binary units (e.g. ``1.5 GiB``)."""
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if abs(value) < 1024:
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TiB"


def format_source(source: PackageSource) -> str:
    """Format a package source label with its theme style."""
    style = f"source.{source.value}"
    return f"[{style}]{source.label}[/]"


def create_package_table(title: str = "Pending Updates") -> Table:
    """Create a pre-configured table for displaying manifest packages.

    Args:
        title: Table title.

    Returns:
        Rich Table with Package, Source, Installed, Target and Size columns.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    table.add_column("Package", style="package.name", no_wrap=True)
    table.add_column("Source", width=8)
    table.add_column("Installed", style="version.old")
    table.add_column("Target", style="version.new")
    table.add_column("Size", style="package.size", justify="right")
    return table


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
