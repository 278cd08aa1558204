"""CLI commands for synsyu.

This package contains all subcommand implementations.
"""

from synsyu.cli.commands import apps, check, clean, export, helpers, inspect, log, sync, update

__all__ = [
    "apps",
    "check",
    "clean",
    "export",
    "helpers",
    "inspect",
    "log",
    "sync",
    "update",
]
