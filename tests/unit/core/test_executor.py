"""Unit tests for the batch executor.

Tests for queue bounds, source routing, dry-run and failure recording.
"""

from pathlib import Path
from unittest.mock import patch

import pytest
from synsyu.core.audit import AuditLog
from synsyu.core.config import RunConfig
from synsyu.core.errors import ManagerInvocationFailedError
from synsyu.core.executor import (
    DISK_FAILURE_REASON,
    BatchExecutor,
    BatchQueue,
    OrchestratorState,
)
from synsyu.core.manifest import UpdateCandidate
from synsyu.core.safety import SafetyGate
from synsyu.models.manifest import Manifest, PackageSource
from synsyu.operators.base import UpdateOperator


class RecordingOperator(UpdateOperator):
    """Operator that records calls and fails on demand."""

    def __init__(
        self,
        name: str = "pacman",
        fail_on: set[str] | None = None,
        available: bool = True,
        missing: bool = False,
    ) -> None:
        super().__init__(noconfirm=True)
        self._name = name
        self._fail_on = fail_on or set()
        self._available = available
        self._missing = missing
        self.calls: list[list[str]] = []

    @property
    def name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        return self._available

    def build_command(self, packages: list[str]) -> list[str]:
        return [self._name, *packages]

    def update(self, packages: list[str]) -> None:
        self.calls.append(list(packages))
        if self._missing:
            raise FileNotFoundError(self._name)
        if self._fail_on & set(packages) or (not packages and self._fail_on):
            raise ManagerInvocationFailedError(
                self._name, packages, 1, batched=len(packages) > 1
            )


def _config(tmp_path: Path, **kwargs: object) -> RunConfig:
    settings: dict[str, object] = {"min_free_bytes": 0, "disk_margin_bytes": 0}
    settings.update(kwargs)
    return RunConfig(tmp_path / "config.toml", tmp_path / "manifest.json", **settings)  # type: ignore[arg-type]


def _repo(name: str, footprint: int = 0) -> UpdateCandidate:
    return UpdateCandidate(name, PackageSource.REPO, "2.0-1", footprint)


def _aur(name: str) -> UpdateCandidate:
    return UpdateCandidate(name, PackageSource.AUR, "1.0-1")


@pytest.fixture
def audit(tmp_path: Path) -> AuditLog:
    return AuditLog.open(tmp_path / "logs", stamp="s")


@pytest.fixture
def free_space():
    """Plenty of free space for per-package checks."""
    with patch("synsyu.core.safety.free_space", return_value=10**15) as mock_space:
        yield mock_space


def _executor(
    config: RunConfig,
    audit: AuditLog,
    *,
    helper: str | None = "paru",
    pacman: RecordingOperator | None = None,
    helper_op: RecordingOperator | None = None,
    applications: dict[str, UpdateOperator] | None = None,
) -> tuple[BatchExecutor, OrchestratorState]:
    state = OrchestratorState(config, audit, helper=helper)
    executor = BatchExecutor(
        state,
        SafetyGate(config, audit),
        pacman=pacman or RecordingOperator(),
        helper=helper_op,
        applications=applications,
    )
    return executor, state


class TestBatchQueue:
    """Tests for BatchQueue."""

    def test_rejects_zero_capacity(self) -> None:
        with pytest.raises(ValueError, match="at least 1"):
            BatchQueue(0)

    def test_push_reports_full(self) -> None:
        queue = BatchQueue(2)

        assert queue.push("a") is False
        assert queue.push("b") is True
        assert queue.drain() == ["a", "b"]
        assert len(queue) == 0


@pytest.mark.usefixtures("free_space")
class TestBatchExecutor:
    """Tests for BatchExecutor.run."""

    def test_repo_batches_respect_capacity(self, tmp_path: Path, audit: AuditLog) -> None:
        """25 repo packages with capacity 10 give batches of 10, 10 and 5."""
        pacman = RecordingOperator()
        executor, state = _executor(_config(tmp_path, batch_size=10), audit, pacman=pacman)

        executor.run([_repo(f"pkg{i:02d}") for i in range(25)])

        assert [len(batch) for batch in pacman.calls] == [10, 10, 5]
        assert pacman.calls[0][0] == "pkg00"
        assert pacman.calls[2][-1] == "pkg24"
        assert state.counts.processed == 25
        assert state.counts.matched == 25

    def test_aur_one_call_per_package(self, tmp_path: Path, audit: AuditLog) -> None:
        helper = RecordingOperator("paru")
        executor, state = _executor(_config(tmp_path), audit, helper_op=helper)

        executor.run([_aur("paru-bin"), _aur("yay-bin")])

        assert helper.calls == [["paru-bin"], ["yay-bin"]]
        assert state.counts.processed == 2

    def test_local_and_unknown_skipped(self, tmp_path: Path, audit: AuditLog) -> None:
        pacman = RecordingOperator()
        executor, state = _executor(_config(tmp_path), audit, pacman=pacman)

        executor.run(
            [
                UpdateCandidate("mine", PackageSource.LOCAL, None),
                UpdateCandidate("odd", PackageSource.UNKNOWN, None),
            ]
        )

        assert pacman.calls == []
        assert state.counts.skipped == 2
        assert audit.path is not None
        log = audit.path.read_text(encoding="utf-8")
        assert "Package mine managed locally" in log
        assert "[WARN] [SKIP] Unknown source for odd" in log

    def test_no_helper_skips_aur(self, tmp_path: Path, audit: AuditLog) -> None:
        executor, state = _executor(_config(tmp_path), audit, helper=None)

        executor.run([_aur("paru-bin")])

        assert state.counts.skipped == 1
        assert not state.ledger

    def test_repo_disabled(self, tmp_path: Path, audit: AuditLog) -> None:
        pacman = RecordingOperator()
        executor, state = _executor(_config(tmp_path, include_repo=False), audit, pacman=pacman)

        executor.run([_repo("linux")])

        assert pacman.calls == []
        assert state.counts.skipped == 1

    def test_dry_run_never_invokes(self, tmp_path: Path, audit: AuditLog) -> None:
        """Dry-run announces candidates without enqueueing or invoking."""
        pacman = RecordingOperator()
        helper = RecordingOperator("paru")
        executor, state = _executor(
            _config(tmp_path, dry_run=True, quiet=True), audit, pacman=pacman, helper_op=helper
        )

        executor.run([_repo("linux"), _aur("paru-bin")])

        assert pacman.calls == []
        assert helper.calls == []
        assert len(state.queue) == 0
        assert state.counts.processed == 0
        assert audit.path is not None
        log = audit.path.read_text(encoding="utf-8")
        assert "Would update linux via PACMAN" in log
        assert "Would update paru-bin via AUR" in log

    def test_failed_batch_records_every_member(self, tmp_path: Path, audit: AuditLog) -> None:
        """A failed batch marks each package in it and the run continues."""
        pacman = RecordingOperator(fail_on={"b"})
        executor, state = _executor(_config(tmp_path, batch_size=2), audit, pacman=pacman)

        executor.run([_repo("a"), _repo("b"), _repo("c")])

        assert pacman.calls == [["a", "b"], ["c"]]
        assert [(r.package, r.reason) for r in state.ledger.records] == [
            ("a", "pacman batch failed (exit 1)"),
            ("b", "pacman batch failed (exit 1)"),
        ]
        assert state.counts.failed == 2
        assert state.counts.processed == 1

    def test_failed_aur_package(self, tmp_path: Path, audit: AuditLog) -> None:
        helper = RecordingOperator("paru", fail_on={"broken"})
        executor, state = _executor(_config(tmp_path), audit, helper_op=helper)

        executor.run([_aur("broken"), _aur("fine")])

        assert [(r.package, r.reason) for r in state.ledger.records] == [
            ("broken", "paru exited 1")
        ]
        assert state.counts.processed == 1

    def test_missing_helper_binary(self, tmp_path: Path, audit: AuditLog) -> None:
        helper = RecordingOperator("paru", missing=True)
        executor, state = _executor(_config(tmp_path), audit, helper_op=helper)

        executor.run([_aur("paru-bin")])

        assert state.ledger.records[0].reason == "paru not installed"

    def test_disk_item_failure(self, tmp_path: Path, audit: AuditLog, free_space) -> None:
        """A package that no longer fits is recorded and not executed."""
        free_space.return_value = 1000
        pacman = RecordingOperator()
        executor, state = _executor(_config(tmp_path), audit, pacman=pacman)

        executor.run([_repo("huge", footprint=5000), _repo("small", footprint=10)])

        assert pacman.calls == [["small"]]
        assert [(r.package, r.reason) for r in state.ledger.records] == [
            ("huge", DISK_FAILURE_REASON)
        ]

    def test_will_execute(self, tmp_path: Path, audit: AuditLog) -> None:
        executor, _ = _executor(_config(tmp_path, include_aur=False), audit)

        assert executor.will_execute(_repo("linux")) is True
        assert executor.will_execute(_aur("paru-bin")) is False
        assert executor.will_execute(UpdateCandidate("x", PackageSource.LOCAL, None)) is False


class TestRunApplications:
    """Tests for BatchExecutor.run_applications."""

    def test_runs_each_source(self, tmp_path: Path, audit: AuditLog) -> None:
        flatpak = RecordingOperator("flatpak")
        fwupd = RecordingOperator("fwupd")
        executor, state = _executor(
            _config(tmp_path), audit, applications={"flatpak": flatpak, "fwupd": fwupd}
        )

        executor.run_applications(["flatpak", "fwupd"])

        assert flatpak.calls == [[]]
        assert fwupd.calls == [[]]
        assert state.counts.processed == 2

    def test_unavailable_source_skipped(self, tmp_path: Path, audit: AuditLog) -> None:
        flatpak = RecordingOperator("flatpak", available=False)
        executor, state = _executor(_config(tmp_path), audit, applications={"flatpak": flatpak})

        executor.run_applications(["flatpak"])

        assert flatpak.calls == []
        assert state.counts.skipped == 1
        assert not state.ledger

    def test_failure_recorded_under_source(self, tmp_path: Path, audit: AuditLog) -> None:
        fwupd = RecordingOperator("fwupd", fail_on={"any"})
        executor, state = _executor(_config(tmp_path), audit, applications={"fwupd": fwupd})

        executor.run_applications(["fwupd"])

        assert [(r.package, r.reason) for r in state.ledger.records] == [
            ("fwupd", "fwupd exited 1")
        ]

    def test_dry_run_reports_pending(self, tmp_path: Path, audit: AuditLog) -> None:
        flatpak = RecordingOperator("flatpak")
        manifest = Manifest.model_validate(
            {"applications": {"flatpak": {"enabled": True, "update_count": 3}}}
        )
        executor, _ = _executor(
            _config(tmp_path, dry_run=True, quiet=True),
            audit,
            applications={"flatpak": flatpak},
        )

        executor.run_applications(["flatpak"], manifest)

        assert flatpak.calls == []
        assert audit.path is not None
        assert "Would run flatpak updates (3 pending)" in audit.path.read_text(encoding="utf-8")
