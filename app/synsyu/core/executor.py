"""Batched execution of package updates.

Repository packages are queued and handed to pacman in batches; AUR
packages go through the selected helper one at a time. Local and unknown
packages are skipped. Every failure lands in the run's ledger and the run
carries on with the next package.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING

from synsyu.core.errors import DiskInsufficientItemError, ManagerInvocationFailedError
from synsyu.core.ledger import FailureLedger
from synsyu.models.manifest import PackageSource
from synsyu.operators.apps import FlatpakOperator, FwupdOperator
from synsyu.operators.helper import HelperOperator
from synsyu.operators.pacman import PacmanOperator
from synsyu.utils.formatting import console, format_source

if TYPE_CHECKING:
    from synsyu.core.audit import AuditLog
    from synsyu.core.config import RunConfig
    from synsyu.core.manifest import UpdateCandidate
    from synsyu.core.safety import SafetyGate
    from synsyu.models.manifest import Manifest
    from synsyu.operators.base import UpdateOperator

logger = logging.getLogger(__name__)

APPLICATION_SOURCES: tuple[str, ...] = ("flatpak", "fwupd")

DISK_FAILURE_REASON = "disk check failed (see logs)"


class BatchQueue:
    """Bounded, ordered queue of repository package names.

    The owner drains the queue as soon as :meth:`push` reports it full, so
    a drained batch never holds more than ``capacity`` names.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            msg = f"batch capacity must be at least 1, got {capacity}"
            raise ValueError(msg)
        self.capacity = capacity
        self._items: list[str] = []

    def __len__(self) -> int:
        return len(self._items)

    @property
    def full(self) -> bool:
        return len(self._items) >= self.capacity

    def push(self, name: str) -> bool:
        """Append a name; return True when the queue is now full."""
        self._items.append(name)
        return self.full

    def drain(self) -> list[str]:
        """Return all queued names and clear the queue."""
        items, self._items = self._items, []
        return items


@dataclass
class RunCounts:
    """Per-run counters.

    Attributes:
        matched: Candidates that passed the filters.
        processed: Packages (or application sources) updated successfully.
        failed: Packages recorded in the failure ledger.
        skipped: Candidates deliberately not executed.
    """

    matched: int = 0
    processed: int = 0
    failed: int = 0
    skipped: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class OrchestratorState:
    """Everything one run mutates, passed explicitly between components."""

    config: RunConfig
    audit: AuditLog
    helper: str | None = None
    ledger: FailureLedger = field(default_factory=FailureLedger)
    counts: RunCounts = field(default_factory=RunCounts)
    queue: BatchQueue = field(init=False)

    def __post_init__(self) -> None:
        self.queue = BatchQueue(self.config.batch_size)

    def record_failure(self, package: str, reason: str) -> None:
        self.ledger.record(package, reason)
        self.counts.failed += 1


class BatchExecutor:
    """Streams filtered candidates to the right update operator.

    Args:
        state: Run state holding config, audit log, ledger and queue.
        gate: Safety gate used for per-package disk checks.
        pacman: Operator for repository batches. Defaults to PacmanOperator.
        helper: Operator for AUR packages. Defaults to a HelperOperator for
            ``state.helper``, or None when no helper was selected.
        applications: Operators for application sources, keyed by name.
    """

    def __init__(
        self,
        state: OrchestratorState,
        gate: SafetyGate,
        *,
        pacman: UpdateOperator | None = None,
        helper: UpdateOperator | None = None,
        applications: Mapping[str, UpdateOperator] | None = None,
    ) -> None:
        noconfirm = state.config.noconfirm
        self._state = state
        self._gate = gate
        self._pacman = pacman or PacmanOperator(noconfirm=noconfirm)
        if helper is None and state.helper:
            helper = HelperOperator(state.helper, noconfirm=noconfirm)
        self._helper = helper
        self._applications: Mapping[str, UpdateOperator] = applications or {
            "flatpak": FlatpakOperator(noconfirm=noconfirm),
            "fwupd": FwupdOperator(noconfirm=noconfirm),
        }

    def will_execute(self, candidate: UpdateCandidate) -> bool:
        """Whether a candidate would be handed to an operator in this run."""
        config = self._state.config
        if candidate.source is PackageSource.REPO:
            return config.include_repo
        if candidate.source is PackageSource.AUR:
            return config.include_aur and self._helper is not None
        return False

    def run(self, candidates: Iterable[UpdateCandidate]) -> RunCounts:
        """Process every candidate, then flush the last partial batch.

        Args:
            candidates: Filtered update candidates, in manifest order.

        Returns:
            The run's counters.
        """
        self._gate.begin_execution()
        for candidate in candidates:
            self._state.counts.matched += 1
            self._process(candidate)
        self._flush()
        return self._state.counts

    def _process(self, candidate: UpdateCandidate) -> None:
        state = self._state
        config = state.config
        audit = state.audit
        name = candidate.name

        if candidate.source is PackageSource.LOCAL:
            audit.info("SKIP", f"Package {name} managed locally")
            state.counts.skipped += 1
            return
        if candidate.source is PackageSource.UNKNOWN:
            audit.warn("SKIP", f"Unknown source for {name}")
            state.counts.skipped += 1
            return
        if candidate.source is PackageSource.REPO and not config.include_repo:
            audit.info("SKIP", f"Repo updates disabled; skipping {name}")
            state.counts.skipped += 1
            return
        if candidate.source is PackageSource.AUR and (
            not config.include_aur or self._helper is None
        ):
            audit.info("SKIP", f"AUR updates disabled; skipping {name}")
            state.counts.skipped += 1
            return

        if config.dry_run:
            self._announce(candidate)
            return

        try:
            self._gate.check_item(name, candidate.footprint_bytes)
        except DiskInsufficientItemError:
            state.record_failure(name, DISK_FAILURE_REASON)
            return

        if candidate.source is PackageSource.REPO:
            if state.queue.push(name):
                self._flush()
        elif self._helper is not None:
            self._update_single(name, self._helper)

    def _announce(self, candidate: UpdateCandidate) -> None:
        config = self._state.config
        self._state.audit.info(
            "DRYRUN", f"Would update {candidate.name} via {candidate.source.label}"
        )
        if config.quiet or config.json_output:
            return
        target = candidate.target_version or "?"
        console.print(
            f"  {self._state.counts.matched:>3}. [package.name]{candidate.name}[/] via "
            f"{format_source(candidate.source)} -> [version.new]{target}[/] [muted](dry-run)[/]"
        )

    def _flush(self) -> None:
        state = self._state
        batch = state.queue.drain()
        if not batch:
            return

        state.audit.info("BATCH", f"Updating {len(batch)} repo package(s): {' '.join(batch)}")
        try:
            self._pacman.update(batch)
        except ManagerInvocationFailedError as e:
            state.audit.warn("UPDATE", f"Failed repo batch: {' '.join(batch)}")
            for name in batch:
                state.record_failure(name, e.reason)
            return
        except FileNotFoundError:
            state.audit.error("UPDATE", "pacman or sudo not found")
            for name in batch:
                state.record_failure(name, f"{self._pacman.name} not installed")
            return
        state.counts.processed += len(batch)

    def _update_single(self, name: str, helper: UpdateOperator) -> None:
        state = self._state
        state.audit.info("UPDATE", f"Updating {name} via {helper.name}")
        try:
            helper.update([name])
        except ManagerInvocationFailedError as e:
            state.audit.warn("UPDATE", f"Failed to update {name}")
            state.record_failure(name, e.reason)
            return
        except FileNotFoundError:
            state.audit.error("UPDATE", f"{helper.name} not installed")
            state.record_failure(name, f"{helper.name} not installed")
            return
        state.counts.processed += 1

    def run_applications(
        self,
        sources: Iterable[str],
        manifest: Manifest | None = None,
    ) -> None:
        """Run whole-source application updaters.

        Args:
            sources: Application sources to update (e.g. "flatpak", "fwupd").
            manifest: Loaded manifest, used for pending-update counts.
        """
        state = self._state
        for source in sources:
            operator = self._applications.get(source)
            if operator is None:
                state.audit.warn("APPS", f"Unknown application source {source}")
                continue

            block = manifest.application(source) if manifest is not None else None
            pending = f"{block.update_count} pending" if block is not None else "pending unknown"

            if state.config.dry_run:
                state.audit.info("DRYRUN", f"Would run {source} updates ({pending})")
                if not (state.config.quiet or state.config.json_output):
                    console.print(f"  [info]{source}[/] updates ({pending}) [muted](dry-run)[/]")
                continue

            if not operator.is_available():
                state.audit.warn("APPS", f"{source} is not installed; skipping")
                state.counts.skipped += 1
                continue

            state.audit.info("APPS", f"Running {source} updates ({pending})")
            try:
                operator.update([])
            except ManagerInvocationFailedError as e:
                state.audit.warn("APPS", f"{source} updates failed")
                state.record_failure(source, e.reason)
                continue
            except FileNotFoundError:
                state.record_failure(source, f"{operator.name} not installed")
                continue
            state.counts.processed += 1
