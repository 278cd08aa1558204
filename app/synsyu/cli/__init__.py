"""CLI package for synsyu.

This package contains the Typer application and all subcommands.
"""

from synsyu.cli.main import app

__all__ = ["app"]
