"""Utility modules for synsyu.

This module exports commonly used utility functions.
"""

from synsyu.utils.formatting import (
    console,
    err_console,
    format_bytes,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from synsyu.utils.shell import CommandResult, command_exists, run_command, run_interactive

__all__ = [
    "CommandResult",
    "command_exists",
    "console",
    "err_console",
    "format_bytes",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "run_command",
    "run_interactive",
]
