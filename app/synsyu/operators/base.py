"""Abstract base class for update operators.

This module defines the UpdateOperator interface that every external
package manager wrapper must implement.
"""

from abc import ABC, abstractmethod

from synsyu.core.errors import ManagerInvocationFailedError
from synsyu.utils.shell import run_interactive


class UpdateOperator(ABC):
    """Abstract base class for all update operators.

    Operators wrap one external program (pacman, an AUR helper, flatpak,
    fwupdmgr). They run it on the user's terminal and turn a non-zero exit
    into :class:`ManagerInvocationFailedError`.

    Attributes:
        noconfirm: If True, pass the manager's non-interactive flag.

    Example:
        >>> operator = PacmanOperator(noconfirm=True)
        >>> if operator.is_available():
        ...     operator.update(["linux", "mesa"])
    """

    def __init__(self, noconfirm: bool = True) -> None:
        """Initialize the operator.

        Args:
            noconfirm: If True, run the manager without prompting.
        """
        self._noconfirm = noconfirm

    @property
    def noconfirm(self) -> bool:
        """Check if the operator runs without prompting."""
        return self._noconfirm

    @property
    @abstractmethod
    def name(self) -> str:
        """Program name used in logs and failure reasons."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the program is installed.

        Returns:
            True if the program can be used, False otherwise.
        """

    @abstractmethod
    def build_command(self, packages: list[str]) -> list[str]:
        """Build the argv that updates ``packages``.

        Args:
            packages: Package names; may be empty for whole-source updaters.

        Returns:
            Command and arguments.
        """

    def update(self, packages: list[str]) -> None:
        """Run the update and wait for it to finish.

        Args:
            packages: Package names to update.

        Raises:
            ManagerInvocationFailedError: If the program exits non-zero.
            FileNotFoundError: If the program is not installed.
        """
        status = run_interactive(self.build_command(packages))
        if status != 0:
            raise ManagerInvocationFailedError(
                self.name, packages, status, batched=len(packages) > 1
            )
