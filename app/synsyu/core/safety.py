"""Disk-space gating and snapshot hooks.

The gate runs one aggregate space check before anything is touched, a
per-package check right before each package is handed to its manager, and
the user's pre/post snapshot commands around execution.
"""

import logging
import shutil
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from synsyu.core.audit import AuditLog
from synsyu.core.config import RunConfig, SpaceMode
from synsyu.core.errors import (
    DiskInsufficientError,
    DiskInsufficientItemError,
    SnapshotFailedError,
)
from synsyu.utils.formatting import format_bytes
from synsyu.utils.shell import run_interactive

logger = logging.getLogger(__name__)


class SnapshotPhase(str, Enum):
    """When a snapshot hook runs relative to execution."""

    PRE = "pre"
    POST = "post"


class GatePhase(Enum):
    """Progress of the gate through one run."""

    IDLE = "idle"
    PRECHECK_PASSED = "precheck_passed"
    PRECHECK_FAILED = "precheck_failed"
    PRE_SNAPSHOT_RAN = "pre_snapshot_ran"
    EXECUTING = "executing"
    POST_SNAPSHOT_RAN = "post_snapshot_ran"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class SpaceReport:
    """Result of the aggregate disk check.

    Attributes:
        path: Directory whose filesystem was measured.
        required_bytes: Sum of footprints plus the free-space margin.
        available_bytes: Free bytes on the filesystem.
    """

    path: Path
    required_bytes: int
    available_bytes: int

    @property
    def sufficient(self) -> bool:
        """Whether the requirement fits in the free space."""
        return self.required_bytes <= self.available_bytes

    def to_dict(self) -> dict[str, object]:
        return {
            "path": str(self.path),
            "required_bytes": self.required_bytes,
            "available_bytes": self.available_bytes,
            "sufficient": self.sufficient,
        }


def nearest_existing(path: Path) -> Path:
    """Walk up from ``path`` to the first directory that exists."""
    current = path.expanduser()
    while not current.exists() and current != current.parent:
        current = current.parent
    return current


def free_space(path: Path) -> int:
    """Free bytes on the filesystem holding ``path`` or its nearest ancestor."""
    return shutil.disk_usage(nearest_existing(path)).free


class SafetyGate:
    """Disk-space and snapshot preconditions for one run.

    Attributes:
        phase: Current GatePhase.
        report: Aggregate check result, once :meth:`precheck` has run.
    """

    def __init__(self, config: RunConfig, audit: AuditLog) -> None:
        self._config = config
        self._audit = audit
        self.phase = GatePhase.IDLE
        self.report: SpaceReport | None = None

    def precheck(self, footprints: Iterable[int]) -> SpaceReport | None:
        """Check that every planned update fits on disk at once.

        Args:
            footprints: Byte footprint of each package this run will execute.

        Returns:
            The SpaceReport, or None when disk checks are disabled.

        Raises:
            DiskInsufficientError: If space is short in enforce mode outside
                a dry-run. Raised before any manager is invoked.
        """
        config = self._config
        if not config.disk_check:
            self._audit.info("DISK", "Disk check disabled by configuration")
            self.phase = GatePhase.PRECHECK_PASSED
            return None

        required = sum(footprints) + config.min_free_bytes
        available = free_space(config.space_path)
        self.report = SpaceReport(config.space_path, required, available)

        if self.report.sufficient:
            self._audit.info(
                "DISK",
                f"Disk check passed on {config.space_path}: need {format_bytes(required)}, "
                f"have {format_bytes(available)}",
            )
            self.phase = GatePhase.PRECHECK_PASSED
            return self.report

        self.phase = GatePhase.PRECHECK_FAILED
        message = (
            f"Insufficient disk space on {config.space_path}: need {format_bytes(required)}, "
            f"have {format_bytes(available)}"
        )
        if config.dry_run:
            self._audit.warn("DISK", f"{message} (dry-run, continuing)")
        elif config.space_mode is SpaceMode.ENFORCE:
            self._audit.error("DISK", message)
            raise DiskInsufficientError(message, required, available)
        else:
            self._audit.warn("DISK", f"{message} (warn mode, continuing)")
        return self.report

    def check_item(self, package: str, footprint_bytes: int) -> None:
        """Check that one package still fits before it is executed.

        Args:
            package: Package name.
            footprint_bytes: Bytes the package update needs.

        Raises:
            DiskInsufficientItemError: If footprint plus margin exceeds free space.
        """
        if not self._config.disk_check:
            return
        required = footprint_bytes + self._config.disk_margin_bytes
        available = free_space(self._config.space_path)
        if required > available:
            self._audit.error(
                "DISK",
                f"{package} needs {format_bytes(required)} but only "
                f"{format_bytes(available)} is free",
            )
            raise DiskInsufficientItemError(package, required, available)
        self._audit.debug("DISK", f"{package} fits: {format_bytes(required)} needed")

    def run_snapshot(self, phase: SnapshotPhase) -> bool:
        """Run the configured snapshot command for a phase.

        Skipped when snapshots are disabled, no command is set, or the pre
        phase runs in a dry-run.

        Args:
            phase: PRE or POST.

        Returns:
            True if a command ran and succeeded.

        Raises:
            SnapshotFailedError: If the command failed and success is required.
        """
        config = self._config
        if phase is SnapshotPhase.PRE:
            self.phase = GatePhase.PRE_SNAPSHOT_RAN
            command = config.snapshot_pre
        else:
            self.phase = GatePhase.POST_SNAPSHOT_RAN
            command = config.snapshot_post

        if not config.snapshots_enabled or not command:
            return False
        if config.dry_run and phase is SnapshotPhase.PRE:
            self._audit.info("SNAPSHOT", f"Dry-run mode: skipping snapshot command ({command})")
            return False

        self._audit.info("SNAPSHOT", f"Executing {phase.value} snapshot command")
        try:
            status = run_interactive(["bash", "-c", command])
        except OSError as e:
            logger.warning("Snapshot command could not start: %s", e)
            status = 127

        if status == 0:
            return True

        self._audit.error(
            "SNAPSHOT", f"Snapshot command for phase {phase.value} failed (exit {status})"
        )
        if config.snapshot_require_success:
            raise SnapshotFailedError(phase.value, status)
        return False

    def begin_execution(self) -> None:
        self.phase = GatePhase.EXECUTING

    def finish(self) -> None:
        self.phase = GatePhase.DONE
