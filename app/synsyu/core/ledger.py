"""Run-scoped record of failed package updates."""

from dataclasses import dataclass, field

from rich.table import Table

from synsyu.core.audit import AuditLog
from synsyu.utils.formatting import console


@dataclass(frozen=True, slots=True)
class FailureRecord:
    """One failed update.

    Attributes:
        package: Package (or application source) name.
        reason: Single-line failure reason.
    """

    package: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {"package": self.package, "reason": self.reason}


@dataclass
class FailureLedger:
    """Append-only list of failures collected during one run."""

    records: list[FailureRecord] = field(default_factory=list)

    def record(self, package: str, reason: str) -> FailureRecord:
        """Append a failure, collapsing the reason onto one line.

        Args:
            package: Package that failed.
            reason: Failure reason; embedded newlines become single spaces.

        Returns:
            The stored record.
        """
        lines = (line.strip() for line in reason.splitlines())
        entry = FailureRecord(package, " ".join(line for line in lines if line))
        self.records.append(entry)
        return entry

    def __len__(self) -> int:
        return len(self.records)

    def __bool__(self) -> bool:
        return bool(self.records)

    def summarize(self, audit: AuditLog, *, quiet: bool = False) -> None:
        """Report all failures to the audit log and, unless quiet, the console.

        Does nothing when no failure was recorded.
        """
        if not self.records:
            return

        audit.warn("SUMMARY", f"{len(self.records)} package update(s) failed")
        for entry in self.records:
            audit.warn("FAIL", f"{entry.package}: {entry.reason}")

        if not quiet:
            console.print(create_failures_table(self.records))


def create_failures_table(records: list[FailureRecord]) -> Table:
    """Create a Rich table listing failed updates.

    Args:
        records: Failures to display.

    Returns:
        Rich Table with Package and Reason columns.
    """
    table = Table(
        title="Failed Updates",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=6, justify="center")
    table.add_column("Package", no_wrap=True)
    table.add_column("Reason")

    for entry in records:
        table.add_row("[error]FAIL[/error]", entry.package, f"[muted]{entry.reason}[/muted]")

    return table
