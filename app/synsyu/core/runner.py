"""Update run pipeline.

Ties the components of one run together: manifest, helper selection,
filtering, safety gate, batch executor, application updates, snapshots and
the failure summary. The CLI commands only build a RunConfig, open the audit
log and render the returned :class:`RunSummary`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from synsyu.core.errors import ExitCode, HelperUnavailableError, ManifestError
from synsyu.core.executor import (
    APPLICATION_SOURCES,
    BatchExecutor,
    OrchestratorState,
    RunCounts,
)
from synsyu.core.filters import matches
from synsyu.core.helpers import detect_helpers, select_helper
from synsyu.core.maintenance import find_pacnew_files, report_pacnew
from synsyu.core.manifest import (
    UpdateCandidate,
    load_manifest,
    rebuild_manifest,
    updatable_entries,
)
from synsyu.core.safety import SafetyGate, SnapshotPhase, SpaceReport
from synsyu.utils.shell import command_exists

if TYPE_CHECKING:
    from pathlib import Path

    from synsyu.core.audit import AuditLog
    from synsyu.core.config import RunConfig
    from synsyu.core.ledger import FailureRecord
    from synsyu.models.manifest import Manifest

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Outcome of one run command.

    Attributes:
        command: Command label ("sync", "aur", "repo", "update", "apps", ...).
        dry_run: Whether nothing was executed.
        offline: Whether the run was skipped for offline mode.
        counts: matched / processed / failed / skipped.
        failures: Ledger records, in the order they happened.
        helper: AUR helper used, if any.
        space: Aggregate disk check result, if one ran.
        log_path: Session log file, if file logging was on.
        pacnew: Unmerged .pacnew/.pacsave files found after the run.
    """

    command: str
    dry_run: bool = False
    offline: bool = False
    counts: RunCounts = field(default_factory=RunCounts)
    failures: list[FailureRecord] = field(default_factory=list)
    helper: str | None = None
    space: SpaceReport | None = None
    log_path: Path | None = None
    pacnew: list[Path] = field(default_factory=list)

    @property
    def exit_code(self) -> ExitCode:
        """PACKAGE_FAILURES if anything failed, else OK."""
        return ExitCode.PACKAGE_FAILURES if self.failures else ExitCode.OK

    def to_dict(self) -> dict[str, Any]:
        return {
            "command": self.command,
            "dry_run": self.dry_run,
            "offline": self.offline,
            **self.counts.to_dict(),
            "helper": self.helper,
            "space": self.space.to_dict() if self.space else None,
            "failures": [f.to_dict() for f in self.failures],
            "log_path": str(self.log_path) if self.log_path else None,
            "pacnew": [str(p) for p in self.pacnew],
            "exit_code": int(self.exit_code),
        }


def prepare_manifest(config: RunConfig, audit: AuditLog) -> Manifest:
    """Rebuild the manifest if asked (or missing), then load it.

    Args:
        config: Run configuration.
        audit: Session audit log.

    Returns:
        The loaded manifest.

    Raises:
        ManifestMissingError: If the manifest is absent and cannot be rebuilt.
        ManifestInvalidError: If the manifest cannot be parsed.
        ManifestRebuildError: If the resolver fails.
        PrerequisiteError: If a rebuild was requested but the resolver is missing.
    """
    path = config.manifest_path
    wants_rebuild = config.rebuild or (not path.exists() and command_exists(config.resolver))

    if wants_rebuild and config.offline:
        audit.info("OFFLINE", "Offline mode: manifest rebuild skipped")
    elif wants_rebuild:
        audit.info("MANIFEST", f"Rebuilding manifest via {config.resolver}")
        rebuild_manifest(
            path,
            config.resolver,
            include_repo=config.include_repo,
            include_aur=config.include_aur,
        )

    manifest = load_manifest(path)
    audit.info(
        "MANIFEST",
        f"Loaded {len(manifest.packages)} package(s), {manifest.update_count} update(s) pending",
    )
    return manifest


def resolve_helper(config: RunConfig, audit: AuditLog) -> str | None:
    """Detect helpers and pick the one for this run.

    Args:
        config: Run configuration.
        audit: Session audit log.

    Returns:
        Selected helper name, or None when AUR updates are off for this run.
    """
    if not config.include_aur:
        return None

    detected = detect_helpers()
    audit.debug("HELPER", f"Detected helpers: {', '.join(detected) or 'none'}")
    helper = select_helper(detected, config.helper_priority, config.helper)

    if config.helper and config.helper not in detected:
        audit.warn("HELPER", f"Forced helper {config.helper} was not found on PATH")
    if helper is None:
        audit.warn("HELPER", "No AUR helper detected; AUR updates disabled")
    else:
        audit.info("HELPER", f"Using AUR helper {helper}")
    return helper


def select_candidates(
    manifest: Manifest,
    config: RunConfig,
    audit: AuditLog,
    names: Sequence[str] | None = None,
) -> list[UpdateCandidate]:
    """Build the filtered candidate list for a run.

    Args:
        manifest: Loaded manifest.
        config: Run configuration with compiled include/exclude patterns.
        audit: Session audit log.
        names: Explicit package names for a targeted update. Names missing
            from the manifest are warned about; up-to-date ones are skipped.

    Returns:
        Candidates that passed the filters, in manifest (or argument) order.
    """
    source: Iterable[UpdateCandidate]
    if names:
        targeted: list[UpdateCandidate] = []
        for name in dict.fromkeys(names):
            entry = manifest.packages.get(name)
            if entry is None:
                audit.warn("UPDATE", f"{name} not found in manifest")
                continue
            if not entry.update_available:
                audit.info("UPDATE", f"{name} is already up to date; skipping")
                continue
            targeted.append(
                UpdateCandidate(name, entry.source, entry.target_version, entry.footprint_bytes)
            )
        source = targeted
    else:
        source = updatable_entries(manifest)

    return [c for c in source if matches(c.name, config.include, config.exclude)]


def run_updates(
    config: RunConfig,
    audit: AuditLog,
    *,
    command: str = "sync",
    names: Sequence[str] | None = None,
    applications: bool = False,
) -> RunSummary:
    """Run a package update pass.

    Order: manifest, helper, filters, aggregate disk check, pre-snapshot,
    package execution, application updates, .pacnew check, post-snapshot,
    failure summary.

    Args:
        config: Run configuration.
        audit: Session audit log.
        command: Label recorded in the log and summary.
        names: Explicit package names (targeted update), or None for all.
        applications: Also run application updaters enabled for this run.

    Returns:
        RunSummary of the pass.

    Raises:
        DiskInsufficientError: Aggregate check failed in enforce mode.
        SnapshotFailedError: A snapshot hook failed with require_success set.
        HelperUnavailableError: An AUR-only run found no usable helper.
        ManifestError: The manifest could not be rebuilt or loaded.
    """
    summary = RunSummary(command=command, dry_run=config.dry_run, log_path=audit.path)

    manifest = prepare_manifest(config, audit)
    if config.offline:
        audit.info("OFFLINE", f"Offline mode: skipping {command} (no package managers invoked)")
        summary.offline = True
        return summary

    audit.info("SYNC", f"Commencing {command} run")
    helper = resolve_helper(config, audit)
    if helper is None and config.include_aur and not config.include_repo:
        raise HelperUnavailableError("AUR-only run requested but no AUR helper is available")
    state = OrchestratorState(config, audit, helper=helper)
    gate = SafetyGate(config, audit)
    executor = BatchExecutor(state, gate)

    candidates = select_candidates(manifest, config, audit, names)
    audit.info("FILTER", f"{len(candidates)} candidate(s) after filters")

    footprints = [c.footprint_bytes for c in candidates if executor.will_execute(c)]
    summary.space = gate.precheck(footprints)
    gate.run_snapshot(SnapshotPhase.PRE)

    executor.run(candidates)
    if applications:
        sources = [
            name
            for name in APPLICATION_SOURCES
            if config.application_enabled(name, _manifest_flag(manifest, name))
        ]
        executor.run_applications(sources, manifest)

    if not config.dry_run:
        if config.check_pacnew:
            summary.pacnew = find_pacnew_files()
            report_pacnew(audit, summary.pacnew)
        gate.run_snapshot(SnapshotPhase.POST)
    gate.finish()

    return _finish(summary, state)


def run_applications(
    config: RunConfig,
    audit: AuditLog,
    sources: Sequence[str],
    *,
    command: str = "apps",
) -> RunSummary:
    """Run application updaters only; no manifest is required.

    Args:
        config: Run configuration.
        audit: Session audit log.
        sources: Application sources to update.
        command: Label recorded in the log and summary.

    Returns:
        RunSummary of the pass.
    """
    summary = RunSummary(command=command, dry_run=config.dry_run, log_path=audit.path)
    if config.offline:
        audit.info("OFFLINE", f"Offline mode: skipping {', '.join(sources)} updates")
        summary.offline = True
        return summary

    manifest: Manifest | None = None
    if config.manifest_path.exists():
        try:
            manifest = load_manifest(config.manifest_path)
        except ManifestError as e:
            audit.debug("MANIFEST", f"Manifest unavailable for pending counts: {e}")

    state = OrchestratorState(config, audit)
    executor = BatchExecutor(state, SafetyGate(config, audit))
    executor.run_applications(sources, manifest)
    return _finish(summary, state)


def _manifest_flag(manifest: Manifest, name: str) -> bool | None:
    block = manifest.application(name)
    return block.enabled if block is not None else None


def _finish(summary: RunSummary, state: OrchestratorState) -> RunSummary:
    counts = state.counts
    state.audit.info(
        "SUMMARY",
        f"Updates processed={counts.processed} failed={counts.failed} skipped={counts.skipped}",
    )
    state.ledger.summarize(state.audit, quiet=state.config.quiet or state.config.json_output)
    summary.counts = counts
    summary.failures = list(state.ledger.records)
    summary.helper = state.helper
    summary.log_path = state.audit.path
    return summary
