"""Exception hierarchy for the triage tool.

Every error that is isolated to a single issue derives from TriageError,
so the runner can record it as a failed outcome and move on to the next
issue. Errors outside this hierarchy abort the run.
"""

from typing import Optional


class TriageError(Exception):
    """Base class for per-issue triage failures.

    Attributes:
        message: Human-readable error description.
        cause: The underlying exception that caused the failure.
    """

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class LabelApplyError(TriageError):
    """Raised when adding labels to an issue fails.

    Labels are added in a single ``gh issue edit`` call; if it fails
    partway, any labels already added stay on the issue.

    Attributes:
        issue_number: The issue the labels were meant for.
        labels: The labels that were requested.
    """

    def __init__(
        self,
        message: str,
        issue_number: int,
        labels: list[str],
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause=cause)
        self.issue_number = issue_number
        self.labels = labels
