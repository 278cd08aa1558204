"""AUR helper operator.

Helpers build packages from source, so each package gets its own call and
its own failure record.
"""

from synsyu.operators.base import UpdateOperator
from synsyu.utils.shell import command_exists


class HelperOperator(UpdateOperator):
    """Operator for AUR packages through a helper such as paru or yay.

    The helper runs as the invoking user and escalates on its own. The
    executor calls :meth:`update` with exactly one package at a time.
    """

    def __init__(self, helper: str, noconfirm: bool = True) -> None:
        """Initialize the operator.

        Args:
            helper: Helper program name.
            noconfirm: If True, pass --noconfirm.
        """
        super().__init__(noconfirm=noconfirm)
        self._helper = helper

    @property
    def name(self) -> str:
        """Return the helper program name."""
        return self._helper

    def is_available(self) -> bool:
        """Check if the helper is on PATH."""
        return command_exists(self._helper)

    def build_command(self, packages: list[str]) -> list[str]:
        args = [self._helper, "-S"]
        if self.noconfirm:
            args.append("--noconfirm")
        return [*args, *packages]
