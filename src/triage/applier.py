"""Converts a classification into label additions on the tracker.

The dry-run flag is fixed when the applier is constructed. In dry-run mode
the intended ``gh issue edit`` command is printed and the tracker is never
called; in apply mode the labels are added in one call. A failure partway
through is not rolled back.
"""

from typing import Optional, Protocol, Sequence

import structlog

from src.triage.classifier.models import IssueClassification
from src.triage.exceptions import LabelApplyError, TriageError
from src.triage.reporting import Reporter

logger = structlog.get_logger()


class LabelTracker(Protocol):
    """The part of the issue tracker the applier needs."""

    def format_add_labels_command(
        self, number: int, labels: Sequence[str]
    ) -> str: ...

    async def add_labels(self, number: int, labels: Sequence[str]) -> None: ...


class LabelApplier:
    """Applies classification labels to an issue, or previews them.

    Attributes:
        tracker: Issue tracker used for label mutation.
        dry_run: When True, only print what would be done.
        reporter: Destination for progress lines.
    """

    def __init__(
        self,
        tracker: LabelTracker,
        dry_run: bool = True,
        reporter: Optional[Reporter] = None,
    ):
        self.tracker = tracker
        self.dry_run = dry_run
        self.reporter = reporter or Reporter()

    async def apply(
        self, issue_number: int, classification: IssueClassification
    ) -> list[str]:
        """Add the classification's labels to an issue.

        Args:
            issue_number: The issue to label.
            classification: Validated classification for the issue.

        Returns:
            The labels that were added, or would be added in dry-run mode.

        Raises:
            LabelApplyError: If the tracker rejects the label addition.
        """
        labels = classification.label_set()
        reasoning = classification.reasoning or "No reasoning provided"

        self.reporter.line(f"  Labels:    {' '.join(labels)}")
        self.reporter.line(f"  Reasoning: {reasoning}")

        if self.dry_run:
            command = self.tracker.format_add_labels_command(issue_number, labels)
            self.reporter.line(f"  [DRY-RUN] {command}")
            return labels

        self.reporter.line(f"  [APPLY]   Labeling #{issue_number}...")
        try:
            await self.tracker.add_labels(issue_number, labels)
        except TriageError as e:
            self.reporter.line("  ❌ Failed to apply labels")
            logger.error(
                "Failed to apply labels",
                issue_number=issue_number,
                labels=labels,
                error=str(e),
            )
            raise LabelApplyError(
                f"Failed to apply labels to #{issue_number}: {e}",
                issue_number=issue_number,
                labels=labels,
                cause=e,
            )

        self.reporter.line("  ✅ Done")
        return labels
