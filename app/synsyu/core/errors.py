"""Error taxonomy and process exit codes.

Every failure class the orchestrator distinguishes is a subclass of
:class:`SynsyuError` carrying the exit code the CLI reports when the error
aborts a command. Per-package failures (disk, invocation, missing helper)
are caught by the executor and recorded instead of propagating.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit statuses, grouped by failure class.

    Attributes:
        OK: Command completed; no package failed.
        PACKAGE_FAILURES: The run completed but at least one update failed.
        USAGE: Unknown command or flag (Click's own usage error status).
        CONFIG_INVALID: Configuration file or resolved settings invalid.
        PREREQUISITE: A required external program is missing.
        CONFLICTING_FLAGS: Mutually exclusive flags were combined.
        MISSING_ARGUMENT: A command was invoked without a required argument.
        HELPER_UNAVAILABLE: No usable AUR helper for a helper-only command.
        MANIFEST_MISSING: Manifest file does not exist.
        MANIFEST_INVALID: Manifest file cannot be parsed or validated.
        MANIFEST_REBUILD_FAILED: The external resolver failed.
        DISK_INSUFFICIENT: Aggregate disk check failed in enforce mode.
        SNAPSHOT_FATAL: A snapshot hook failed with require_success set.
    """

    OK = 0
    PACKAGE_FAILURES = 1
    USAGE = 2
    CONFIG_INVALID = 100
    PREREQUISITE = 101
    CONFLICTING_FLAGS = 103
    MISSING_ARGUMENT = 110
    HELPER_UNAVAILABLE = 111
    MANIFEST_MISSING = 130
    MANIFEST_INVALID = 131
    MANIFEST_REBUILD_FAILED = 132
    DISK_INSUFFICIENT = 140
    SNAPSHOT_FATAL = 164


class SynsyuError(Exception):
    """Base exception for orchestrator errors."""

    exit_code: ExitCode = ExitCode.CONFIG_INVALID


class ConfigInvalidError(SynsyuError):
    """Raised when configuration cannot be loaded or validated."""

    exit_code = ExitCode.CONFIG_INVALID


class PrerequisiteError(SynsyuError):
    """Raised when an external program the command needs is not installed."""

    exit_code = ExitCode.PREREQUISITE


class ManifestError(SynsyuError):
    """Base exception for manifest-related errors."""

    exit_code = ExitCode.MANIFEST_INVALID


class ManifestMissingError(ManifestError):
    """Raised when the manifest file is not found."""

    exit_code = ExitCode.MANIFEST_MISSING


class ManifestInvalidError(ManifestError):
    """Raised when the manifest cannot be parsed as the expected structure."""

    exit_code = ExitCode.MANIFEST_INVALID


class ManifestRebuildError(ManifestError):
    """Raised when the external resolver fails to rebuild the manifest."""

    exit_code = ExitCode.MANIFEST_REBUILD_FAILED


class HelperUnavailableError(SynsyuError):
    """Raised when an AUR helper cannot be used."""

    exit_code = ExitCode.HELPER_UNAVAILABLE


class DiskInsufficientError(SynsyuError):
    """Raised when the aggregate disk check fails in enforce mode."""

    exit_code = ExitCode.DISK_INSUFFICIENT

    def __init__(self, message: str, required_bytes: int, available_bytes: int) -> None:
        super().__init__(message)
        self.required_bytes = required_bytes
        self.available_bytes = available_bytes


class DiskInsufficientItemError(SynsyuError):
    """Raised when a single package no longer fits in free space."""

    exit_code = ExitCode.DISK_INSUFFICIENT

    def __init__(self, package: str, required_bytes: int, available_bytes: int) -> None:
        super().__init__(
            f"{package} needs {required_bytes} bytes but only {available_bytes} are free"
        )
        self.package = package
        self.required_bytes = required_bytes
        self.available_bytes = available_bytes


class ManagerInvocationFailedError(SynsyuError):
    """Raised when pacman, a helper or an application updater exits non-zero.

    Attributes:
        manager: Program that was invoked (e.g. "pacman", "paru").
        packages: Packages covered by the invocation.
        status: Exit status of the invocation.
        batched: True when the invocation covered a whole batch.
    """

    exit_code = ExitCode.PACKAGE_FAILURES

    def __init__(
        self,
        manager: str,
        packages: list[str],
        status: int,
        *,
        batched: bool = False,
    ) -> None:
        super().__init__(f"{manager} exited {status} for {', '.join(packages) or '(all)'}")
        self.manager = manager
        self.packages = packages
        self.status = status
        self.batched = batched

    @property
    def reason(self) -> str:
        """Failure reason recorded in the ledger for each covered package."""
        if self.batched:
            return f"{self.manager} batch failed (exit {self.status})"
        return f"{self.manager} exited {self.status}"


class SnapshotFailedError(SynsyuError):
    """Raised when a required snapshot hook fails."""

    exit_code = ExitCode.SNAPSHOT_FATAL

    def __init__(self, phase: str, status: int) -> None:
        super().__init__(f"Snapshot command for phase {phase} failed (exit {status})")
        self.phase = phase
        self.status = status
