"""Application-layer update operators.

Flatpak and fwupd update everything they manage in one call, so these
operators ignore the package list.
"""

from synsyu.operators.base import UpdateOperator
from synsyu.utils.shell import command_exists


class FlatpakOperator(UpdateOperator):
    """Operator for Flatpak applications and runtimes."""

    @property
    def name(self) -> str:
        """Return "flatpak"."""
        return "flatpak"

    def is_available(self) -> bool:
        """Check if flatpak CLI is available."""
        return command_exists("flatpak")

    def build_command(self, packages: list[str]) -> list[str]:
        # -y: non-interactive
        args = ["flatpak", "update"]
        if self.noconfirm:
            args.append("-y")
        return args


class FwupdOperator(UpdateOperator):
    """Operator for firmware updates through fwupdmgr."""

    @property
    def name(self) -> str:
        """Return "fwupd"."""
        return "fwupd"

    def is_available(self) -> bool:
        """Check if fwupdmgr is available."""
        return command_exists("fwupdmgr")

    def build_command(self, packages: list[str]) -> list[str]:
        args = ["fwupdmgr", "update"]
        if self.noconfirm:
            args.append("-y")
        return args
