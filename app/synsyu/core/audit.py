"""Append-only session audit log.

Each run writes one ``<YYYY-mm-dd_HH-MM-SS>.log`` file of lines shaped
``<utc-ts> [<LEVEL>] [<CODE>] <message>``. On finalize a sha256sum-style
``<log>.hash`` sidecar seals the file. Old sessions are pruned by age and
total size before a new one starts.
"""

import hashlib
import logging
import time
from datetime import UTC, datetime
from enum import Enum, IntEnum
from pathlib import Path

from synsyu.core.paths import ensure_log_dir, get_fallback_log_dir
from synsyu.utils.formatting import err_console, print_warning

logger = logging.getLogger(__name__)

LOG_SUFFIX = ".log"
DIGEST_SUFFIX = ".hash"
_CHUNK_SIZE = 8192


class LogLevel(IntEnum):
    """Audit severity; an event is persisted when its level <= threshold."""

    ERROR = 0
    WARN = 1
    INFO = 2
    DEBUG = 3


_LEVEL_NAMES: dict[str, LogLevel | None] = {
    "error": LogLevel.ERROR,
    "warn": LogLevel.WARN,
    "warning": LogLevel.WARN,
    "info": LogLevel.INFO,
    "debug": LogLevel.DEBUG,
    "none": None,
    "off": None,
}


def parse_log_level(value: str) -> LogLevel | None:
    """Parse a configured level name.

    Args:
        value: One of error, warn/warning, info, debug, none/off.

    Returns:
        The LogLevel threshold, or None when file logging is disabled.

    Raises:
        ValueError: If the name is not recognised.
    """
    key = value.strip().lower()
    if key not in _LEVEL_NAMES:
        msg = f"invalid log level '{value}' (expected error, warn, info, debug or none)"
        raise ValueError(msg)
    return _LEVEL_NAMES[key]


def session_stamp(now: datetime | None = None) -> str:
    """Session file stem, derived once per process."""
    return (now or datetime.now()).strftime("%Y-%m-%d_%H-%M-%S")


def file_digest(path: Path) -> str:
    """Compute the SHA-256 hex digest of a file, reading in chunks."""
    sha = hashlib.sha256()
    with open(path, "rb") as f:
        while chunk := f.read(_CHUNK_SIZE):
            sha.update(chunk)
    return sha.hexdigest()


def digest_path(log_path: Path) -> Path:
    """Sidecar path holding the digest of ``log_path``."""
    return log_path.with_name(log_path.name + DIGEST_SUFFIX)


class DigestStatus(str, Enum):
    """Outcome of :func:`verify_digest`."""

    OK = "ok"
    MISMATCH = "mismatch"
    MISSING = "missing"


def verify_digest(log_path: Path) -> DigestStatus:
    """Recompute a log's digest and compare it with its sidecar.

    Args:
        log_path: Session log file.

    Returns:
        DigestStatus.MISSING if the log or sidecar is absent, otherwise
        OK or MISMATCH.
    """
    sidecar = digest_path(log_path)
    if not log_path.is_file() or not sidecar.is_file():
        return DigestStatus.MISSING
    recorded = sidecar.read_text(encoding="utf-8").split()
    if not recorded:
        return DigestStatus.MISMATCH
    return DigestStatus.OK if recorded[0] == file_digest(log_path) else DigestStatus.MISMATCH


def list_logs(directory: Path) -> list[Path]:
    """List session logs in a directory, newest first."""
    if not directory.is_dir():
        return []
    logs = [p for p in directory.glob(f"*{LOG_SUFFIX}") if p.is_file()]
    return sorted(logs, key=lambda p: p.stat().st_mtime, reverse=True)


def _remove_log(path: Path) -> None:
    path.unlink(missing_ok=True)
    digest_path(path).unlink(missing_ok=True)


def _stored_size(path: Path) -> int:
    """Bytes a log occupies together with its digest sidecar."""
    sidecar = digest_path(path)
    return path.stat().st_size + (sidecar.stat().st_size if sidecar.exists() else 0)


def prune_logs(
    directory: Path,
    retention_days: int = 0,
    retention_bytes: int = 0,
    now: float | None = None,
) -> list[Path]:
    """Delete old session logs.

    First every log older than ``retention_days`` is removed, then the oldest
    remaining logs are removed until their total size is within
    ``retention_bytes``, sidecars included. Each bound is disabled when 0.
    Digest sidecars are removed together with their log.

    Args:
        directory: Log directory.
        retention_days: Maximum age in days.
        retention_bytes: Maximum total size of all logs.
        now: Reference time as a UNIX timestamp. Defaults to the current time.

    Returns:
        Logs that were removed, oldest first.
    """
    if not directory.is_dir():
        return []

    now = time.time() if now is None else now
    logs = sorted(list_logs(directory), key=lambda p: p.stat().st_mtime)
    removed: list[Path] = []

    if retention_days > 0:
        cutoff = now - retention_days * 86400
        for path in list(logs):
            if path.stat().st_mtime < cutoff:
                _remove_log(path)
                logs.remove(path)
                removed.append(path)

    if retention_bytes > 0:
        sizes = {p: _stored_size(p) for p in logs}
        total = sum(sizes.values())
        while logs and total > retention_bytes:
            oldest = logs.pop(0)
            total -= sizes[oldest]
            _remove_log(oldest)
            removed.append(oldest)

    for path in removed:
        logger.debug("Pruned session log %s", path)
    return removed


class AuditLog:
    """Level-filtered, append-only session log.

    The log never raises on I/O problems: if no directory is writable, or a
    write fails mid-run, file logging is switched off and the run continues
    with console echo only.

    Attributes:
        path: Session log file, or None when file logging is off.
        threshold: Highest level persisted, or None when disabled.
        verbose: Echo every event to the console, not just WARN/ERROR.
    """

    def __init__(
        self,
        path: Path | None,
        threshold: LogLevel | None = LogLevel.INFO,
        *,
        verbose: bool = False,
    ) -> None:
        self.path = path
        self.threshold = threshold
        self.verbose = verbose
        self._finalized = False

    @classmethod
    def open(
        cls,
        directory: Path | None,
        threshold: LogLevel | None = LogLevel.INFO,
        *,
        verbose: bool = False,
        retention_days: int = 0,
        retention_bytes: int = 0,
        stamp: str | None = None,
    ) -> "AuditLog":
        """Prune old sessions and start a new session file.

        Tries ``directory``, then the temp-dir fallback. If neither can be
        created, or the threshold is None, file logging is off.

        Args:
            directory: Preferred log directory.
            threshold: Level threshold; None disables file logging.
            verbose: Echo all events.
            retention_days: Passed to :func:`prune_logs`.
            retention_bytes: Passed to :func:`prune_logs`.
            stamp: Session file stem. Defaults to :func:`session_stamp`.

        Returns:
            A ready AuditLog.
        """
        if threshold is None:
            return cls(None, None, verbose=verbose)

        name = f"{stamp or session_stamp()}{LOG_SUFFIX}"
        for candidate in (directory, get_fallback_log_dir()):
            if candidate is None:
                continue
            try:
                log_dir = ensure_log_dir(candidate)
                prune_logs(log_dir, retention_days, retention_bytes)
                path = log_dir / name
                path.touch()
            except (RuntimeError, OSError) as e:
                logger.debug("Log directory %s unusable: %s", candidate, e)
                continue
            return cls(path, threshold, verbose=verbose)

        print_warning("No writable log directory; file logging disabled.")
        return cls(None, threshold, verbose=verbose)

    @property
    def enabled(self) -> bool:
        """Whether events are being written to a file."""
        return self.path is not None

    def emit(self, level: LogLevel, code: str, message: str) -> None:
        """Record one event.

        Args:
            level: Event severity.
            code: Short event code (e.g. "BATCH", "SNAPSHOT").
            message: Free text; newlines are flattened.
        """
        message = " ".join(message.splitlines())
        timestamp = datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")

        if self.path is not None and self.threshold is not None and level <= self.threshold:
            line = f"{timestamp} [{level.name}] [{code}] {message}\n"
            try:
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(line)
            except OSError as e:
                logger.warning("Audit log write failed: %s", e)
                print_warning(f"Cannot write log {self.path}: {e}. File logging disabled.")
                self.path = None

        if level <= LogLevel.WARN or self.verbose:
            err_console.print(
                f"{timestamp} [{level.name}] {message}", markup=False, highlight=False
            )

    def error(self, code: str, message: str) -> None:
        self.emit(LogLevel.ERROR, code, message)

    def warn(self, code: str, message: str) -> None:
        self.emit(LogLevel.WARN, code, message)

    def info(self, code: str, message: str) -> None:
        self.emit(LogLevel.INFO, code, message)

    def debug(self, code: str, message: str) -> None:
        self.emit(LogLevel.DEBUG, code, message)

    def finalize(self) -> Path | None:
        """Seal the session by writing its digest sidecar.

        Safe to call more than once; only the first call does anything.
        Nothing is written for an empty or missing log.

        Returns:
            The sidecar path, or None if no digest was written.
        """
        if self._finalized:
            return None
        self._finalized = True

        if self.path is None or not self.path.is_file() or self.path.stat().st_size == 0:
            return None

        sidecar = digest_path(self.path)
        try:
            sidecar.write_text(f"{file_digest(self.path)}  {self.path.name}\n", encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to write log digest %s: %s", sidecar, e)
            print_warning(f"Cannot write log digest {sidecar}: {e}")
            return None
        return sidecar
