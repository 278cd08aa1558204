"""Housekeeping around update runs.

- :func:`find_pacnew_files` lists configuration merges pacman left in /etc
  after an upgrade.
- :func:`collect_export` and :func:`render_export` produce the explicit
  package lists written by ``synsyu export``.
- :func:`clean_system` prunes the package cache and optionally removes
  orphaned dependencies.
"""

from __future__ import annotations

import json
import logging
import os
import socket
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from synsyu.core.errors import ManagerInvocationFailedError, PrerequisiteError
from synsyu.operators.pacman import PacmanOperator
from synsyu.utils.shell import command_exists, run_interactive

if TYPE_CHECKING:
    from synsyu.core.audit import AuditLog
    from synsyu.core.config import RunConfig

logger = logging.getLogger(__name__)

PACNEW_SUFFIXES = (".pacnew", ".pacsave")
ETC_DIR = Path("/etc")


def find_pacnew_files(root: Path = ETC_DIR) -> list[Path]:
    """Find unmerged ``.pacnew`` and ``.pacsave`` files below ``root``.

    Directories that cannot be read are skipped.

    Returns:
        Matching paths, sorted.
    """
    found: list[Path] = []
    for dirpath, _dirnames, filenames in os.walk(root):
        found.extend(Path(dirpath) / name for name in filenames if name.endswith(PACNEW_SUFFIXES))
    return sorted(found)


def report_pacnew(audit: AuditLog, files: list[Path]) -> None:
    if not files:
        audit.debug("PACNEW", "No .pacnew or .pacsave files found")
        return
    audit.warn("PACNEW", f"{len(files)} configuration file(s) need merging (see pacdiff)")
    for path in files:
        audit.info("PACNEW", str(path))


class ExportFormat(str, Enum):
    """Output formats of ``synsyu export``."""

    JSON = "json"
    PLAIN = "plain"


@dataclass
class PackageExport:
    """Explicitly installed packages grouped by origin.

    Attributes:
        generated_at: UTC timestamp of the query.
        host: Host name the lists were taken on.
        sections: "repo" and/or "aur" package lists, in that order.
    """

    generated_at: str
    host: str
    sections: dict[str, list[str]] = field(default_factory=dict)


def collect_export(
    pacman: PacmanOperator | None = None,
    *,
    include_repo: bool = True,
    include_aur: bool = True,
    now: datetime | None = None,
) -> PackageExport:
    """Query pacman for explicitly installed packages.

    Asking for neither source exports both.

    Args:
        pacman: Operator to query. Defaults to a new PacmanOperator.
        include_repo: Include packages from the sync databases.
        include_aur: Include foreign (AUR or locally built) packages.
        now: Timestamp to record. Defaults to the current time.

    Returns:
        PackageExport with the requested sections.

    Raises:
        PrerequisiteError: If pacman is not installed.
        ManagerInvocationFailedError: If a pacman query fails.
    """
    pacman = pacman or PacmanOperator()
    if not pacman.is_available():
        raise PrerequisiteError("pacman not found in PATH")
    if not include_repo and not include_aur:
        include_repo = include_aur = True

    stamp = (now or datetime.now(UTC)).strftime("%Y-%m-%dT%H:%M:%SZ")
    export = PackageExport(generated_at=stamp, host=socket.gethostname())
    if include_repo:
        export.sections["repo"] = pacman.explicit_packages()
    if include_aur:
        export.sections["aur"] = pacman.explicit_packages(foreign=True)
    logger.debug("Exported %s", {k: len(v) for k, v in export.sections.items()})
    return export


def render_export(export: PackageExport, fmt: ExportFormat = ExportFormat.JSON) -> str:
    """Render an export as JSON or as a plain sectioned list.

    JSON always carries both ``repo`` and ``aur`` keys; a section that was
    not requested is an empty list. The plain form lists only requested
    sections, one package per line under a ``[repo]``/``[aur]`` header.
    """
    if fmt is ExportFormat.JSON:
        document = {
            "generated_at": export.generated_at,
            "host": export.host,
            "repo": export.sections.get("repo", []),
            "aur": export.sections.get("aur", []),
        }
        return json.dumps(document, indent=2) + "\n"

    lines = ["# synsyu package export", f"# Generated at: {export.generated_at}"]
    for name, packages in export.sections.items():
        lines.extend(["", f"[{name}]", *packages])
    return "\n".join(lines) + "\n"


@dataclass
class CleanReport:
    """Outcome of ``synsyu clean``.

    Attributes:
        cache_method: "paccache" or "pacman -Sc"; None if pruning failed.
        keep_versions: Versions per package paccache was told to keep.
        orphans: Orphaned packages found (empty when not checked).
        orphans_removed: True if the orphans were removed.
        failures: Steps that failed ("cache", "orphans").
        dry_run: Nothing was changed.
    """

    keep_versions: int
    dry_run: bool = False
    cache_method: str | None = None
    orphans: list[str] = field(default_factory=list)
    orphans_removed: bool = False
    failures: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _prune_with_paccache(config: RunConfig, audit: AuditLog) -> bool:
    if not command_exists("paccache"):
        audit.warn("CLEAN", "paccache not available; using pacman -Sc")
        return False

    args = ["sudo", "paccache", "-rk", str(config.clean_keep_versions)]
    if config.dry_run:
        audit.info("CLEAN", f"Would run {' '.join(args)}")
        return True
    status = run_interactive(args)
    if status != 0:
        audit.warn("CLEAN", f"paccache exited {status}; falling back to pacman -Sc")
        return False
    return True


def clean_system(
    config: RunConfig,
    audit: AuditLog,
    pacman: PacmanOperator | None = None,
) -> CleanReport:
    """Prune the package cache and, if configured, remove orphans.

    ``paccache -rk N`` is preferred; ``pacman -Sc`` is the fallback when
    paccache is missing or fails. Failures of either step are recorded in
    the report and logged; they never raise.

    Args:
        config: Run configuration (keep count, orphan removal, dry-run).
        audit: Session audit log.
        pacman: Operator to use. Defaults to one honouring ``noconfirm``.

    Returns:
        CleanReport describing what was done.

    Raises:
        PrerequisiteError: If pacman is not installed.
    """
    pacman = pacman or PacmanOperator(noconfirm=config.noconfirm)
    if not pacman.is_available():
        raise PrerequisiteError("pacman not found in PATH")

    report = CleanReport(keep_versions=config.clean_keep_versions, dry_run=config.dry_run)
    audit.info("CLEAN", "Pruning package cache")

    if _prune_with_paccache(config, audit):
        report.cache_method = "paccache"
    elif config.dry_run:
        audit.info("CLEAN", "Would run sudo pacman -Sc --noconfirm")
        report.cache_method = "pacman -Sc"
    else:
        try:
            pacman.clean_cache()
            report.cache_method = "pacman -Sc"
        except ManagerInvocationFailedError as e:
            audit.warn("CLEAN", f"Failed to prune pacman cache: {e}")
            report.failures.append("cache")

    if not config.clean_remove_orphans:
        return report

    try:
        report.orphans = pacman.orphans()
    except ManagerInvocationFailedError as e:
        audit.warn("CLEAN", f"Could not list orphaned packages: {e}")
        report.failures.append("orphans")
        return report

    if not report.orphans:
        audit.info("CLEAN", "No orphaned packages detected")
    elif config.dry_run:
        audit.info("CLEAN", f"Would remove orphans: {' '.join(report.orphans)}")
    else:
        try:
            pacman.remove(report.orphans)
            report.orphans_removed = True
            audit.info("CLEAN", f"Removed {len(report.orphans)} orphaned package(s)")
        except ManagerInvocationFailedError as e:
            audit.warn("CLEAN", f"Failed to remove orphaned packages: {e}")
            report.failures.append("orphans")
    return report
