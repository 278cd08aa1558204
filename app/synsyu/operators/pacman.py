"""Pacman operator for repository packages.

Repository updates are batched: one ``sudo pacman -S`` call per batch.
The same operator also answers the local-database queries behind
``synsyu export`` and runs the cache and orphan cleanup of ``synsyu clean``.
"""

import logging

from synsyu.core.errors import ManagerInvocationFailedError
from synsyu.operators.base import UpdateOperator
from synsyu.utils.shell import command_exists, run_command, run_interactive

logger = logging.getLogger(__name__)


class PacmanOperator(UpdateOperator):
    """Operator for official repository packages."""

    @property
    def name(self) -> str:
        """Return "pacman"."""
        return "pacman"

    def is_available(self) -> bool:
        """Check if pacman is available."""
        return command_exists("pacman")

    def build_command(self, packages: list[str]) -> list[str]:
        # pacman needs root to install; sudo prompts on the terminal
        args = ["sudo", "pacman", "-S"]
        if self.noconfirm:
            args.append("--noconfirm")
        return [*args, *packages]

    def update(self, packages: list[str]) -> None:
        """Update one batch of repository packages.

        A failure covers the whole batch; no package is retried on its own.

        Args:
            packages: Batch of package names.

        Raises:
            ManagerInvocationFailedError: If pacman exits non-zero.
        """
        if not packages:
            return
        logger.info("Running pacman for %d package(s)", len(packages))
        status = run_interactive(self.build_command(packages))
        if status != 0:
            raise ManagerInvocationFailedError(self.name, packages, status, batched=True)

    def _query(self, flags: str) -> list[str]:
        # pacman -Q exits 1 with empty stderr when nothing matches
        result = run_command(["pacman", flags])
        if not result.success and result.stderr.strip():
            logger.warning("pacman %s failed: %s", flags, result.stderr.strip())
            raise ManagerInvocationFailedError(self.name, [], result.returncode)
        return result.lines

    def explicit_packages(self, *, foreign: bool = False) -> list[str]:
        """Explicitly installed packages.

        Args:
            foreign: If True, list packages not found in any sync database
                (AUR and locally built); otherwise repository packages.

        Returns:
            Package names as pacman lists them.

        Raises:
            ManagerInvocationFailedError: If the query itself fails.
        """
        return self._query("-Qqem" if foreign else "-Qqen")

    def orphans(self) -> list[str]:
        """Dependencies no installed package requires any more."""
        return self._query("-Qqtd")

    def remove(self, packages: list[str]) -> None:
        """Remove packages together with their unneeded dependencies.

        Raises:
            ManagerInvocationFailedError: If pacman exits non-zero.
        """
        if not packages:
            return
        args = ["sudo", "pacman", "-Rns"]
        if self.noconfirm:
            args.append("--noconfirm")
        status = run_interactive([*args, *packages])
        if status != 0:
            raise ManagerInvocationFailedError(self.name, packages, status, batched=True)

    def clean_cache(self) -> None:
        """Drop cached packages that are no longer installed (``pacman -Sc``).

        Raises:
            ManagerInvocationFailedError: If pacman exits non-zero.
        """
        status = run_interactive(["sudo", "pacman", "-Sc", "--noconfirm"])
        if status != 0:
            raise ManagerInvocationFailedError(self.name, [], status)
