"""AUR helper detection and selection."""

from collections.abc import Callable, Sequence

from synsyu.utils.shell import command_exists

# Known helpers, in detection order
HELPER_CANDIDATES: tuple[str, ...] = (
    "paru",
    "yay",
    "trizen",
    "pikaur",
    "aura",
    "pacaur",
    "pamac",
    "aurman",
    "pakku",
)


def detect_helpers(exists: Callable[[str], bool] = command_exists) -> tuple[str, ...]:
    """Find the candidate helpers installed on this system.

    Args:
        exists: Predicate telling whether a program is on PATH.

    Returns:
        Installed helpers in candidate order.
    """
    return tuple(name for name in HELPER_CANDIDATES if exists(name))


def select_helper(
    detected: Sequence[str],
    priority: Sequence[str] = (),
    forced: str | None = None,
) -> str | None:
    """Pick the helper to use for this run.

    A forced helper is returned as-is, detected or not. Otherwise the first
    entry of ``priority`` that was detected wins, then the first detected
    helper.

    Args:
        detected: Output of :func:`detect_helpers`.
        priority: Preferred helpers, most preferred first.
        forced: Explicit override from the command line or config.

    Returns:
        Helper program name, or None if none is usable.
    """
    if forced:
        return forced
    for name in priority:
        if name in detected:
            return name
    return detected[0] if detected else None
