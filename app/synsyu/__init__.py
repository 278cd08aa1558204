"""synsyu - Update orchestration for Arch-based systems.

Applies the updates recorded in a resolver-built manifest through pacman,
an AUR helper, Flatpak and fwupd, guarded by disk and snapshot checks and
recorded in an append-only audit log.
"""

__version__ = "0.14.0"
