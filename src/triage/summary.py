"""Per-issue outcomes and the run summary.

Each issue produces exactly one IssueResult. The summary folds results
into three counters; the process exit status is non-zero if and only if
at least one issue failed.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from src.triage.reporting import BANNER, Reporter


class TriageOutcome(str, Enum):
    """Terminal state of one issue in a run."""

    TRIAGED = "triaged"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class IssueResult:
    """Outcome of processing a single issue.

    Attributes:
        number: The issue number.
        outcome: Terminal state reached.
        labels: Labels added (or previewed in dry-run) when triaged.
        detail: Failure or skip reason.
    """

    number: int
    outcome: TriageOutcome
    labels: list[str] = field(default_factory=list)
    detail: Optional[str] = None

    @classmethod
    def triaged(cls, number: int, labels: list[str]) -> "IssueResult":
        return cls(number=number, outcome=TriageOutcome.TRIAGED, labels=labels)

    @classmethod
    def skipped(cls, number: int, detail: str = "already triaged") -> "IssueResult":
        return cls(number=number, outcome=TriageOutcome.SKIPPED, detail=detail)

    @classmethod
    def failed(cls, number: int, detail: str) -> "IssueResult":
        return cls(number=number, outcome=TriageOutcome.FAILED, detail=detail)


@dataclass
class TriageSummary:
    """Counters accumulated across a run."""

    triaged: int = 0
    skipped: int = 0
    failed: int = 0
    results: list[IssueResult] = field(default_factory=list)

    def record(self, result: IssueResult) -> None:
        """Fold one issue outcome into the counters."""
        self.results.append(result)
        if result.outcome is TriageOutcome.TRIAGED:
            self.triaged += 1
        elif result.outcome is TriageOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1

    @property
    def failed_issues(self) -> list[int]:
        return [
            r.number for r in self.results if r.outcome is TriageOutcome.FAILED
        ]

    @property
    def exit_code(self) -> int:
        return 1 if self.failed > 0 else 0

    def render(self, reporter: Reporter, dry_run: bool) -> None:
        """Print the end-of-run summary banner.

        Args:
            reporter: Destination for the summary lines.
            dry_run: Whether to add the hint about re-running with --apply.
        """
        reporter.line()
        reporter.line(BANNER)
        reporter.line("  Triage Summary")
        reporter.line()
        reporter.line(f"  Triaged:  {self.triaged}")
        reporter.line(f"  Skipped:  {self.skipped} (already triaged)")
        reporter.line(f"  Failed:   {self.failed}")
        if self.failed_issues:
            failed = ", ".join(f"#{n}" for n in self.failed_issues)
            reporter.line(f"            {failed}")
        reporter.line()
        if dry_run:
            reporter.line("  This was a DRY RUN. To apply changes:")
            reporter.line("    triage-issues --apply")
        reporter.line(BANNER)
