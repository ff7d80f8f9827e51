"""Sequential triage of one issue or all open issues.

Each issue moves through: fetched → already triaged (skipped), or
classified → labels applied (triaged); any TriageError along the way marks
the issue failed. Issues are processed one at a time in list order, with
a fixed delay between classifications to respect the endpoint's rate
limits. A failure on one issue never stops the batch.

Source:
- src/triage/github/client.py (GitHubCLI)
- src/triage/classifier/agent.py (IssueClassifier)
- src/triage/applier.py (LabelApplier)
- src/triage/summary.py (TriageSummary, IssueResult)
"""

import asyncio
from typing import Optional

import structlog

from src.triage.applier import LabelApplier
from src.triage.classifier.agent import IssueClassifier
from src.triage.exceptions import TriageError
from src.triage.github.client import GitHubCLI
from src.triage.github.models import Issue
from src.triage.labels import has_triage_labels
from src.triage.reporting import RULE, Reporter
from src.triage.summary import IssueResult, TriageSummary

logger = structlog.get_logger()


class TriageRunner:
    """Drives the fetch → filter → classify → apply flow.

    Attributes:
        tracker: GitHub access for fetching issues.
        classifier: LLM classifier.
        applier: Label applier (carries the dry-run flag).
        delay_seconds: Pause between issues in batch mode.
        issue_limit: Maximum number of open issues to list.
        reporter: Destination for progress lines.
    """

    def __init__(
        self,
        tracker: GitHubCLI,
        classifier: IssueClassifier,
        applier: LabelApplier,
        delay_seconds: float = 1.0,
        issue_limit: int = 500,
        reporter: Optional[Reporter] = None,
    ):
        self.tracker = tracker
        self.classifier = classifier
        self.applier = applier
        self.delay_seconds = delay_seconds
        self.issue_limit = issue_limit
        self.reporter = reporter or Reporter()

    async def run(self, issue_number: Optional[int] = None) -> TriageSummary:
        """Triage a single issue, or every open issue that needs it.

        Args:
            issue_number: Issue to triage; None scans all open issues.

        Returns:
            TriageSummary with one result per issue considered.

        Raises:
            GitHubCLIError: If the open issues cannot be listed.
        """
        summary = TriageSummary()

        if issue_number is not None:
            self.reporter.line(f"--- Triaging single issue #{issue_number} ---")
            self.reporter.line()
            summary.record(await self.triage_issue(issue_number))
            return summary

        self.reporter.line("--- Scanning for untriaged open issues ---")
        self.reporter.line()

        issues = await self.tracker.list_open_issues(limit=self.issue_limit)

        pending: list[int] = []
        for issue in issues:
            if has_triage_labels(issue.labels):
                summary.record(IssueResult.skipped(issue.number))
            else:
                pending.append(issue.number)

        logger.info(
            "Open issues scanned",
            total=len(issues),
            untriaged=len(pending),
            skipped=summary.skipped,
        )

        if not pending:
            self.reporter.line("✅ All open issues are already triaged! Nothing to do.")
            return summary

        self.reporter.line(f"Found {len(pending)} untriaged issue(s).")
        self.reporter.line()

        for index, number in enumerate(pending):
            if index > 0:
                await asyncio.sleep(self.delay_seconds)
            summary.record(await self.triage_issue(number))
            self.reporter.line()

        return summary

    async def triage_issue(self, number: int) -> IssueResult:
        """Fetch an issue and process it.

        A fetch failure is recorded as a failed result rather than raised.
        """
        try:
            issue = await self.tracker.view_issue(number)
        except TriageError as e:
            self.reporter.line(f"  ❌ Could not fetch issue #{number}")
            logger.error("Issue fetch failed", issue_number=number, error=e.message)
            return IssueResult.failed(number, f"fetch failed: {e.message}")

        return await self.process(issue)

    async def process(self, issue: Issue) -> IssueResult:
        """Filter, classify, and label an already fetched issue.

        Args:
            issue: The fetched issue.

        Returns:
            IssueResult describing the terminal state.
        """
        self.reporter.line(RULE)
        self.reporter.line(f"  Issue #{issue.number}: {issue.title}")
        self.reporter.line(f"  Current labels: {issue.labels_display}")

        if has_triage_labels(issue.labels):
            self.reporter.line("  ⏭️  Already triaged (has type + priority). Skipping.")
            return IssueResult.skipped(issue.number)

        self.reporter.line(f"  🤖 Classifying with {self.classifier.model_name}...")
        try:
            classification = await self.classifier.classify(issue)
        except TriageError as e:
            self.reporter.line("  ❌ Classification failed")
            return IssueResult.failed(issue.number, f"classification failed: {e.message}")

        try:
            labels = await self.applier.apply(issue.number, classification)
        except TriageError as e:
            return IssueResult.failed(issue.number, f"label apply failed: {e.message}")

        return IssueResult.triaged(issue.number, labels)
